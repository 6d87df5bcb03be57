"""Selection + metadata -> annotation markup.

The encoder only builds the replacement string.  Inserting it into the
buffer and moving the cursor is the caller's job.
"""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING

from annotext.markup.grammar import (
    CLASS_ATTR,
    CLASS_PREFIX,
    INDICATOR,
    MARK_CLOSE,
    MARK_TAG,
    NOTE_ATTR,
    STYLE_ATTR,
    STYLE_TEMPLATE,
    TAGS_ATTR,
    TAGS_SEPARATOR,
)
from annotext.markup.models import ColorSpec

if TYPE_CHECKING:
    from collections.abc import Iterable

    from annotext.config import HighlighterConfig

logger = logging.getLogger(__name__)


class UnknownHighlighterError(KeyError):
    """Raised when a highlighter key is not in the configured palette."""


def _split_raw_tags(tags: Iterable[str]) -> list[str]:
    # Commas separate stored tokens, so a comma inside a tag starts a new one
    raw: list[str] = []
    for tag in tags:
        raw.extend(part.strip() for part in tag.split(TAGS_SEPARATOR))
    return [part for part in raw if part]


def color_spec_for(key: str, config: HighlighterConfig) -> ColorSpec:
    """Resolve a configured highlighter name to a ColorSpec.

    Args:
        key: Highlighter name as configured (e.g. ``"Yellow"``).
        config: Highlighter palette and method.

    Raises:
        UnknownHighlighterError: If *key* is not configured.
    """
    try:
        color = config.highlighters[key]
    except KeyError:
        raise UnknownHighlighterError(key) from None

    if config.method == "css-classes":
        return ColorSpec.css_class(key)
    return ColorSpec.inline_style(color)


def _attr(name: str, value: str) -> str:
    return f' {name}="{html.escape(value, quote=True)}"'


def build_open_tag(
    color: ColorSpec | None,
    note: str | None = None,
    raw_tags: Iterable[str] = (),
) -> str:
    """Build the opening ``<mark>`` tag for a span."""
    parts = [f"<{MARK_TAG}"]
    if color is not None:
        if color.method == "css-classes":
            parts.append(_attr(CLASS_ATTR, f"{CLASS_PREFIX}{color.value.lower()}"))
        else:
            parts.append(_attr(STYLE_ATTR, STYLE_TEMPLATE.format(color.value)))
    if note:
        parts.append(_attr(NOTE_ATTR, note))
    tags = _split_raw_tags(raw_tags)
    if tags:
        parts.append(_attr(TAGS_ATTR, TAGS_SEPARATOR.join(tags)))
    parts.append(">")
    return "".join(parts)


def encode_annotation(
    selected_text: str,
    color: ColorSpec | None,
    note: str | None = None,
    tags: Iterable[str] = (),
) -> str:
    """Produce the markup that replaces a selection.

    Args:
        selected_text: The selected text, inserted literally (may be empty).
        color: Colour of the highlight.
        note: Optional note.  An empty string counts as no note.
        tags: Raw tag text as typed by the user.

    Returns:
        Opening tag + text + closing tag, plus the note indicator when a
        note is set.
    """
    note = note or None
    open_tag = build_open_tag(color, note, tags)
    indicator = INDICATOR if note else ""
    logger.debug(
        "Encoding annotation (%d chars, note=%s)", len(selected_text), bool(note)
    )
    return f"{open_tag}{selected_text}{MARK_CLOSE}{indicator}"
