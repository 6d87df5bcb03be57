"""Strip annotation markup from a selection, leaving plain text."""

from __future__ import annotations

from annotext.markup.lexer import MarkupTokenType, tokenize_markup

_ERASED = frozenset((MarkupTokenType.MARK_OPEN, MarkupTokenType.MARK_CLOSE))


def erase_annotations(fragment: str) -> str:
    """Remove every opening and closing ``<mark>`` tag from *fragment*.

    Indicator elements are left in place; the canonicaliser drops them
    once the whole document is available.  Unmatched tags are removed
    individually and a fragment without markup is returned unchanged.
    """
    return "".join(
        token.value
        for token in tokenize_markup(fragment)
        if token.type not in _ERASED
    )


def erase_range(text: str, start: int, end: int) -> str:
    """Erase annotation markup inside ``text[start:end]``.

    Offsets are clamped to the text, so an out-of-range selection is a
    no-op rather than an error.
    """
    start = max(0, min(start, len(text)))
    end = max(start, min(end, len(text)))
    return text[:start] + erase_annotations(text[start:end]) + text[end:]
