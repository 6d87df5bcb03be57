"""Presentation side of the engine: the notes panel and the note bubble.

``NotesPanel`` is a record sink for ``AnnotationSync``.  It keeps the
last pushed records and renders them with rich.  ``NoteBubble`` is the
popup shown when hovering a noted highlight; the panel owns at most one
open bubble and closes it before opening another.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Group
from rich.errors import StyleSyntaxError
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text

from annotext.markup.extractor import note_at

if TYPE_CHECKING:
    from rich.console import RenderableType

    from annotext.config import HighlighterStyle
    from annotext.markup.models import AnnotationRecord, ColorSpec

logger = logging.getLogger(__name__)

PANEL_TITLE = "Highlights & Notes"


# How each highlighter style draws its colour in a terminal
_STYLE_TEMPLATES: dict[str, str] = {
    "lowlight": "underline {}",
    "floating": "bold {}",
    "rounded": "on {}",
    "realistic": "on {}",
}


def highlight_style(
    color: ColorSpec, style: HighlighterStyle = "lowlight"
) -> Style | None:
    """Rich style for a highlight, or None if its colour cannot be drawn.

    Only inline colours carry a value rich can use; class names do not.
    """
    if color.method != "inline-styles":
        return None
    value = color.value
    # rich only understands 6-digit hex, drop any alpha channel
    if value.startswith("#") and len(value) == 9:
        value = value[:7]
    try:
        return Style.parse(_STYLE_TEMPLATES[style].format(value))
    except StyleSyntaxError:
        return None


class NoteBubble:
    """A transient popup showing one note near a pointer position.

    Use as a context manager, or call ``close()`` explicitly.  Closing
    twice is harmless.
    """

    def __init__(self, note: str, x: int, y: int, owner: NotesPanel) -> None:
        self.note = note
        self.x = x
        self.y = y
        self._owner = owner
        self.is_open = True

    def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        self._owner._bubble_closed(self)

    def render(self) -> Panel:
        return Panel(Text(self.note), title="Note", expand=False)

    def __enter__(self) -> NoteBubble:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class NotesPanel:
    """Side panel listing the annotations of the active document.

    Args:
        style: Highlighter style used to draw each highlight's colour.
    """

    def __init__(self, style: HighlighterStyle = "lowlight") -> None:
        self.style: HighlighterStyle = style
        self.records: tuple[AnnotationRecord, ...] = ()
        self._bubble: NoteBubble | None = None

    def __call__(self, records: tuple[AnnotationRecord, ...]) -> None:
        """Receive a fresh record list from the sync controller."""
        self.records = records
        logger.debug("Notes panel received %d records", len(records))

    @property
    def bubble(self) -> NoteBubble | None:
        """The open note bubble, if any."""
        return self._bubble

    def show_note(self, note: str, x: int, y: int) -> NoteBubble:
        """Open a bubble for *note*, closing any bubble already open."""
        if self._bubble is not None:
            self._bubble.close()
        self._bubble = NoteBubble(note, x, y, self)
        return self._bubble

    def hover(self, text: str, offset: int, x: int, y: int) -> NoteBubble | None:
        """Show the note under *offset* in *text*, if the span has one.

        Hovering anything without a note closes the open bubble.
        """
        note = note_at(text, offset)
        if note is None:
            self.close_bubble()
            return None
        return self.show_note(note, x, y)

    def close_bubble(self) -> None:
        if self._bubble is not None:
            self._bubble.close()

    def _bubble_closed(self, bubble: NoteBubble) -> None:
        if self._bubble is bubble:
            self._bubble = None

    def render(self) -> RenderableType:
        """Render the records as a rich panel."""
        if not self.records:
            return Panel(Text("No highlights found"), title=PANEL_TITLE)

        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Highlight")
        table.add_column("Note")
        table.add_column("Tags")

        for record in self.records:
            label = f'"{record.text}"'
            if self.style == "rounded":
                label = f" {label} "
            highlight = Text(label)
            if record.color is not None:
                style = highlight_style(record.color, self.style)
                if style is not None:
                    highlight.stylize(style)
                else:
                    highlight.append(f"  [{record.color.value}]", style="dim")

            table.add_row(highlight, record.note or "", " ".join(record.tags))

        return Panel(Group(table), title=PANEL_TITLE)
