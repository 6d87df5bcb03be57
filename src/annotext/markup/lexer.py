"""Markup lexer and span scanner.

Two stages, each testable on its own:

1. ``tokenize_markup`` turns document text into MARK_OPEN, MARK_CLOSE,
   INDICATOR and TEXT tokens (Lark basic lexer, no parser).
2. ``scan_spans`` folds the token stream into ``MarkupSpan`` objects:
   opening tag, enclosed text, closing tag and the run of indicator
   elements directly after it.

Malformed input never raises.  An opening tag with no closing tag before
the next opening tag (or the end of the text) is dropped, and a stray
closing tag is treated as plain text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from lark import Lark
from selectolax.lexbor import LexborHTMLParser

from annotext.markup.grammar import (
    CLASS_ATTR,
    CLASS_PREFIX,
    MARK_TAG,
    MARKUP_GRAMMAR,
    NOTE_ATTR,
    STYLE_ATTR,
    STYLE_COLOR_PATTERN,
    TAGS_ATTR,
    TAGS_SEPARATOR,
)
from annotext.markup.models import AnnotationSpan, ColorSpec, normalize_tags

if TYPE_CHECKING:
    from collections.abc import Iterator


class MarkupTokenType(Enum):
    """Token types for the markup lexer."""

    TEXT = "TEXT"
    MARK_OPEN = "MARK_OPEN"
    MARK_CLOSE = "MARK_CLOSE"
    INDICATOR = "INDICATOR"


@dataclass(frozen=True, slots=True)
class MarkupToken:
    """A token from the markup lexer.

    Attributes:
        type: The token type.
        value: The raw string matched.
        start_pos: Start index in the input (inclusive).
        end_pos: End index in the input (exclusive).
    """

    type: MarkupTokenType
    value: str
    start_pos: int
    end_pos: int


@dataclass(frozen=True, slots=True)
class SpanAttributes:
    """Attributes read from an opening ``<mark>`` tag.

    ``note`` is None when the attribute is absent or empty.  ``raw_tags``
    holds the stored tokens as written, before normalisation.
    """

    color: ColorSpec | None
    note: str | None
    raw_tags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MarkupSpan:
    """One complete annotation span found in the text.

    Attributes:
        open_tag: The MARK_OPEN token.
        close_tag: The MARK_CLOSE token.
        text: Literal text between the tags.
        indicators: INDICATOR tokens directly after the closing tag.
        detached: Whitespace and INDICATOR tokens following that run,
            ending at the last indicator reachable across whitespace
            only.  Empty when no such indicator exists.
        attributes: Parsed opening-tag attributes.
    """

    open_tag: MarkupToken
    close_tag: MarkupToken
    text: str
    indicators: tuple[MarkupToken, ...]
    attributes: SpanAttributes
    detached: tuple[MarkupToken, ...] = ()

    @property
    def start_pos(self) -> int:
        return self.open_tag.start_pos

    @property
    def markup_end(self) -> int:
        """End of the closing tag, before any indicator."""
        return self.close_tag.end_pos

    @property
    def end_pos(self) -> int:
        """End of the span including its trailing indicator run."""
        if self.indicators:
            return self.indicators[-1].end_pos
        return self.close_tag.end_pos

    def to_annotation(self) -> AnnotationSpan:
        """Decode the span into its text, colour, note and normalised tags."""
        attrs = self.attributes
        return AnnotationSpan(
            display_text=self.text,
            color=attrs.color,
            note=attrs.note,
            tags=normalize_tags(attrs.raw_tags),
        )


# Compile once at module load
_markup_lexer = Lark(MARKUP_GRAMMAR, parser=None, lexer="basic")


def tokenize_markup(text: str) -> list[MarkupToken]:
    """Tokenize document text containing annotation markup.

    Args:
        text: Document text, possibly containing ``<mark>`` spans.

    Returns:
        List of MarkupToken objects covering the whole input in order.

    Example:
        >>> tokens = tokenize_markup("a <mark>b</mark>")
        >>> [t.type.value for t in tokens]
        ['TEXT', 'MARK_OPEN', 'TEXT', 'MARK_CLOSE']
    """
    if not text:
        return []

    tokens: list[MarkupToken] = []
    for lark_token in _markup_lexer.lex(text):
        # Lark lexer always provides start_pos and end_pos for tokens
        start_pos = lark_token.start_pos if lark_token.start_pos is not None else 0
        end_pos = lark_token.end_pos if lark_token.end_pos is not None else 0
        tokens.append(
            MarkupToken(
                type=MarkupTokenType[lark_token.type],
                value=lark_token.value,
                start_pos=start_pos,
                end_pos=end_pos,
            )
        )
    return tokens


def _parse_color(attrs: dict[str, str | None]) -> ColorSpec | None:
    class_value = attrs.get(CLASS_ATTR) or ""
    for css_class in class_value.split():
        if css_class.lower().startswith(CLASS_PREFIX) and len(css_class) > len(
            CLASS_PREFIX
        ):
            return ColorSpec.css_class(css_class[len(CLASS_PREFIX) :])

    style_value = attrs.get(STYLE_ATTR) or ""
    match = STYLE_COLOR_PATTERN.search(style_value)
    if match and match.group(1).strip():
        return ColorSpec.inline_style(match.group(1).strip())
    return None


def parse_open_tag(open_tag: str) -> SpanAttributes:
    """Read colour, note and raw tags from an opening ``<mark>`` tag.

    Entity decoding of attribute values is left to the HTML parser.
    """
    tree = LexborHTMLParser(f"{open_tag}</{MARK_TAG}>")
    node = tree.css_first(MARK_TAG)
    attrs: dict[str, str | None] = dict(node.attributes) if node is not None else {}

    note = attrs.get(NOTE_ATTR) or None

    raw_tags_value = attrs.get(TAGS_ATTR) or ""
    raw_tags = tuple(
        t.strip() for t in raw_tags_value.split(TAGS_SEPARATOR) if t.strip()
    )

    return SpanAttributes(color=_parse_color(attrs), note=note, raw_tags=raw_tags)


def _is_blank(token: MarkupToken) -> bool:
    return token.type == MarkupTokenType.TEXT and not token.value.strip()


def _detached_run(tokens: list[MarkupToken], start: int) -> tuple[MarkupToken, ...]:
    # Peek only; the tokens stay in the stream for the main loop
    end = start
    j = start
    while j < len(tokens) and (
        tokens[j].type == MarkupTokenType.INDICATOR or _is_blank(tokens[j])
    ):
        j += 1
        if tokens[j - 1].type == MarkupTokenType.INDICATOR:
            end = j
    return tuple(tokens[start:end])


def scan_spans(tokens: list[MarkupToken]) -> Iterator[MarkupSpan]:
    """Fold a token stream into complete annotation spans.

    Implements a small state machine: an opening tag starts a pending
    span, TEXT (and any INDICATOR inside the span) accumulates its text,
    and the closing tag completes it.  Indicators directly after the
    closing tag are collected into the span's trailing run, and any
    further indicators reachable across whitespace into its detached run.

    Args:
        tokens: Tokens from ``tokenize_markup``.

    Yields:
        MarkupSpan objects in document order.
    """
    pending_open: MarkupToken | None = None
    pending_text: list[str] = []
    i = 0

    while i < len(tokens):
        token = tokens[i]
        i += 1

        if token.type == MarkupTokenType.MARK_OPEN:
            # A second opening tag abandons the first (unterminated) one
            pending_open = token
            pending_text = []

        elif pending_open is None:
            continue

        elif token.type == MarkupTokenType.MARK_CLOSE:
            indicators: list[MarkupToken] = []
            while i < len(tokens) and tokens[i].type == MarkupTokenType.INDICATOR:
                indicators.append(tokens[i])
                i += 1
            detached = _detached_run(tokens, i)
            yield MarkupSpan(
                open_tag=pending_open,
                close_tag=token,
                text="".join(pending_text),
                indicators=tuple(indicators),
                attributes=parse_open_tag(pending_open.value),
                detached=detached,
            )
            pending_open = None
            pending_text = []

        else:
            pending_text.append(token.value)


def iter_spans(text: str) -> Iterator[MarkupSpan]:
    """Tokenize *text* and yield its annotation spans in order."""
    return scan_spans(tokenize_markup(text))
