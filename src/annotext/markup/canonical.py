"""Canonical form for annotation markup.

Each span's trailing indicator run is replaced, in one pass, by exactly
one indicator if the span has a note and by nothing otherwise.  A span
without a note also loses indicators separated from it by whitespace,
but keeps the whitespace.  Nothing else is touched, so running the pass
on its own output changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from annotext.markup.grammar import INDICATOR
from annotext.markup.lexer import MarkupTokenType, iter_spans

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace ``text[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str

    @property
    def delta(self) -> int:
        return len(self.replacement) - (self.end - self.start)


def canonical_edits(text: str) -> list[Edit]:
    """Compute the edits that bring *text* into canonical form.

    Returns an empty list when *text* is already canonical.
    """
    edits: list[Edit] = []
    for span in iter_spans(text):
        start, end = span.markup_end, span.end_pos
        if span.to_annotation().has_indicator:
            wanted = INDICATOR
        else:
            if span.detached:
                end = span.detached[-1].end_pos
            wanted = "".join(
                token.value
                for token in span.detached
                if token.type == MarkupTokenType.TEXT
            )
        if text[start:end] != wanted:
            edits.append(Edit(start, end, wanted))
    return edits


def apply_edits(text: str, edits: list[Edit]) -> str:
    """Apply non-overlapping, position-ordered edits to *text*."""
    parts: list[str] = []
    pos = 0
    for edit in edits:
        parts.append(text[pos : edit.start])
        parts.append(edit.replacement)
        pos = edit.end
    parts.append(text[pos:])
    return "".join(parts)


def canonicalize_with_edits(text: str) -> tuple[str, list[Edit]]:
    """Canonicalise *text* and also return the edits that were applied."""
    edits = canonical_edits(text)
    if not edits:
        return text, edits
    logger.debug("Canonicalisation rewrote %d indicator runs", len(edits))
    return apply_edits(text, edits), edits


def canonicalize(text: str) -> str:
    """Return *text* with every span's indicator state corrected.

    Spans with a note end up with exactly one indicator directly after
    the closing tag; spans without one end up with none.  Idempotent.
    """
    return canonicalize_with_edits(text)[0]


def is_canonical(text: str) -> bool:
    return not canonical_edits(text)


def map_offset(offset: int, edits: list[Edit]) -> int:
    """Map an offset in the original text to the canonical text.

    Edits wholly before the offset shift it by their length change; an
    offset inside a replaced run moves to the end of the replacement.
    """
    shift = 0
    for edit in edits:
        if edit.end <= offset:
            shift += edit.delta
        elif edit.start < offset:
            return edit.start + shift + len(edit.replacement)
        else:
            break
    return offset + shift
