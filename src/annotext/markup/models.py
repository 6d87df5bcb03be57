"""Data model for annotation spans and the records projected from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from annotext.markup.grammar import TAG_MARKER, TAG_WHITESPACE_RUN

if TYPE_CHECKING:
    from collections.abc import Iterable

ColorMethod = Literal["css-classes", "inline-styles"]


def normalize_tag(raw: str) -> str | None:
    """Normalise free tag text to ``#lower-kebab`` form.

    Trims, collapses internal whitespace to a single hyphen, lowercases
    and prefixes the tag marker.  Returns None for tags that end up empty.

    Example:
        >>> normalize_tag("  My   Tag ")
        '#my-tag'
    """
    cleaned = raw.strip().lstrip(TAG_MARKER).strip()
    if not cleaned:
        return None
    return TAG_MARKER + TAG_WHITESPACE_RUN.sub("-", cleaned).lower()


def normalize_tags(raw_tags: Iterable[str]) -> tuple[str, ...]:
    """Normalise a sequence of raw tags, dropping empties and duplicates."""
    seen: dict[str, None] = {}
    for raw in raw_tags:
        tag = normalize_tag(raw)
        if tag is not None:
            seen.setdefault(tag, None)
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class ColorSpec:
    """How a span is coloured: a named style class or a raw colour value.

    Attributes:
        method: ``"css-classes"`` or ``"inline-styles"``.
        value: Lowercase colour name for classes (``"yellow"``), raw
            colour value for styles (``"#FFF3A3A6"``).
    """

    method: ColorMethod
    value: str

    @classmethod
    def css_class(cls, name: str) -> ColorSpec:
        return cls(method="css-classes", value=name.lower())

    @classmethod
    def inline_style(cls, color: str) -> ColorSpec:
        return cls(method="inline-styles", value=color.strip())


@dataclass(frozen=True, slots=True)
class AnnotationSpan:
    """The unit the markup grammar encodes.

    Attributes:
        display_text: The plain text the user selected.
        color: Colour of the highlight, None when the tag carries none.
        note: Free-text note, None when no note is attached.
        tags: Normalised tags (``"#my-tag"``), ordered, without duplicates.
    """

    display_text: str
    color: ColorSpec | None = None
    note: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def has_indicator(self) -> bool:
        """True when the span must be followed by a note indicator."""
        return bool(self.note)


@dataclass(frozen=True, slots=True)
class AnnotationRecord:
    """Read-only projection of one span, for presentation only."""

    text: str
    note: str | None
    color: ColorSpec | None
    tags: tuple[str, ...]
