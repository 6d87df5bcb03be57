"""Annotation markup vocabulary.

The wire format shared by the encoder, extractor, eraser and
canonicaliser::

    <mark class="hltr-yellow" data-note="..." data-tags="a,b">text</mark>
    <span class="note-icon">:LiStickyNote:</span>

The opening tag carries exactly one of ``class`` (prefix + lowercase
colour name) or ``style`` (``background: <colour>;``).  ``data-note`` and
``data-tags`` are optional; their absence is the only null encoding.
The indicator element follows the closing tag only when a note is set.

Changing anything here means changing all four consumers together.
"""

from __future__ import annotations

import re

MARK_TAG = "mark"
MARK_CLOSE = "</mark>"

CLASS_ATTR = "class"
STYLE_ATTR = "style"
NOTE_ATTR = "data-note"
TAGS_ATTR = "data-tags"

CLASS_PREFIX = "hltr-"
STYLE_TEMPLATE = "background: {};"
TAGS_SEPARATOR = ","
TAG_MARKER = "#"

INDICATOR_CLASS = "note-icon"
INDICATOR_ICON = ":LiStickyNote:"
INDICATOR = f'<span class="{INDICATOR_CLASS}">{INDICATOR_ICON}</span>'

# Colour inside a style attribute: ``background: #fff3a3a6;`` or
# ``background-color: rgb(1, 2, 3)``.
STYLE_COLOR_PATTERN = re.compile(r"background(?:-color)?\s*:\s*([^;]+)", re.IGNORECASE)

# Runs of whitespace inside a tag collapse to a single hyphen
TAG_WHITESPACE_RUN = re.compile(r"\s+")

# Lark grammar for markup tokenization.
#
# MARK_OPEN/MARK_CLOSE/INDICATOR are complete tags.  TEXT catches
# everything else with a negative lookahead, so at any position exactly
# one terminal can match.  Attribute values never contain a raw ">"
# because the encoder escapes them.  Any ``note-icon`` span counts as an
# indicator so stale variants are cleaned up along with exact ones.
_OPEN = r"<mark(?:\s[^>]*)?>"
_CLOSE = r"<\/mark\s*>"
_INDICATOR = r"<span\s+class=\"note-icon\"\s*>[^<]*<\/span>"

MARKUP_GRAMMAR = (
    f"MARK_OPEN: /{_OPEN}/i\n"
    f"MARK_CLOSE: /{_CLOSE}/i\n"
    f"INDICATOR: /{_INDICATOR}/i\n"
    f"TEXT: /(?:(?!{_OPEN}|{_CLOSE}|{_INDICATOR}).)+/is"
)
