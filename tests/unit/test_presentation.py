"""Tests for the notes panel and note bubble."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from annotext.markup.extractor import extract_annotations
from annotext.markup.grammar import INDICATOR
from annotext.markup.models import AnnotationRecord, ColorSpec
from annotext.presentation import PANEL_TITLE, NotesPanel, highlight_style

if TYPE_CHECKING:
    from annotext.config import HighlighterStyle

TEXT = (
    f'start <mark class="hltr-yellow" data-note="first note">alpha</mark>{INDICATOR}'
    ' middle <mark data-note="second note">beta</mark>'
    f'{INDICATOR} <mark style="background: #BBFABBA6;">gamma</mark> end'
)


def _render(panel: NotesPanel) -> str:
    buffer = io.StringIO()
    Console(file=buffer, width=120, color_system=None).print(panel.render())
    return buffer.getvalue()


def _render_ansi(panel: NotesPanel) -> str:
    buffer = io.StringIO()
    console = Console(
        file=buffer, width=120, color_system="truecolor", force_terminal=True
    )
    console.print(panel.render())
    return buffer.getvalue()


class TestNotesPanel:
    """NotesPanel as a record sink."""

    def test_receives_records(self) -> None:
        panel = NotesPanel()
        records = tuple(extract_annotations(TEXT))
        panel(records)
        assert panel.records == records

    def test_render_empty(self) -> None:
        output = _render(NotesPanel())
        assert "No highlights found" in output
        assert PANEL_TITLE in output

    def test_render_lists_records(self) -> None:
        panel = NotesPanel()
        panel(tuple(extract_annotations(TEXT)))
        output = _render(panel)
        assert '"alpha"' in output
        assert "first note" in output
        assert '"gamma"' in output
        assert "[yellow]" in output

    def test_render_tags(self) -> None:
        panel = NotesPanel()
        panel(
            (
                AnnotationRecord(
                    text="x",
                    note=None,
                    color=ColorSpec.inline_style("not-a-colour"),
                    tags=("#a", "#b"),
                ),
            )
        )
        output = _render(panel)
        assert "#a #b" in output
        assert "[not-a-colour]" in output


class TestNoteBubble:
    """Hover behaviour and bubble lifetime."""

    def test_hover_on_noted_span_opens_bubble(self) -> None:
        panel = NotesPanel()
        bubble = panel.hover(TEXT, TEXT.index("alpha"), 10, 20)
        assert bubble is not None
        assert bubble.note == "first note"
        assert (bubble.x, bubble.y) == (10, 20)
        assert panel.bubble is bubble

    def test_second_hover_replaces_bubble(self) -> None:
        """At most one bubble is open at a time."""
        panel = NotesPanel()
        first = panel.hover(TEXT, TEXT.index("alpha"), 0, 0)
        second = panel.hover(TEXT, TEXT.index("beta"), 5, 5)

        assert first is not None
        assert second is not None
        assert not first.is_open
        assert second.is_open
        assert second.note == "second note"
        assert panel.bubble is second

    def test_hover_without_note_closes_bubble(self) -> None:
        panel = NotesPanel()
        bubble = panel.hover(TEXT, TEXT.index("alpha"), 0, 0)
        assert panel.hover(TEXT, TEXT.index("gamma"), 0, 0) is None
        assert bubble is not None
        assert not bubble.is_open
        assert panel.bubble is None

    def test_hover_plain_text(self) -> None:
        panel = NotesPanel()
        assert panel.hover(TEXT, 0, 0, 0) is None
        assert panel.bubble is None

    def test_context_manager_closes(self) -> None:
        panel = NotesPanel()
        with panel.show_note("hello", 1, 2) as bubble:
            assert panel.bubble is bubble
        assert not bubble.is_open
        assert panel.bubble is None

    def test_close_twice_is_harmless(self) -> None:
        panel = NotesPanel()
        bubble = panel.show_note("hello", 1, 2)
        bubble.close()
        bubble.close()
        assert panel.bubble is None

    def test_closing_stale_bubble_keeps_current(self) -> None:
        panel = NotesPanel()
        stale = panel.show_note("old", 0, 0)
        current = panel.show_note("new", 0, 0)
        stale.close()
        assert panel.bubble is current

    def test_bubble_render_contains_note(self) -> None:
        buffer = io.StringIO()
        bubble = NotesPanel().show_note("a note", 0, 0)
        Console(file=buffer, width=80, color_system=None).print(bubble.render())
        assert "a note" in buffer.getvalue()


class TestHighlightStyle:
    """Configured highlighter styles change how colours are drawn."""

    GREEN = ColorSpec.inline_style("#BBFABBA6")

    def test_lowlight_underlines_in_colour(self) -> None:
        style = highlight_style(self.GREEN, "lowlight")
        assert style is not None
        assert style.underline
        assert style.color is not None
        assert style.bgcolor is None

    def test_floating_colours_text(self) -> None:
        style = highlight_style(self.GREEN, "floating")
        assert style is not None
        assert style.bold
        assert style.bgcolor is None

    @pytest.mark.parametrize("name", ["rounded", "realistic"])
    def test_background_styles(self, name: HighlighterStyle) -> None:
        style = highlight_style(self.GREEN, name)
        assert style is not None
        assert style.bgcolor is not None
        assert style.bgcolor.triplet is not None
        assert style.bgcolor.triplet.hex == "#bbfabb"

    def test_class_colour_not_drawn(self) -> None:
        assert highlight_style(ColorSpec.css_class("yellow"), "realistic") is None

    def test_panel_uses_configured_style(self) -> None:
        records = tuple(extract_annotations(TEXT))
        realistic = NotesPanel("realistic")
        realistic(records)
        lowlight = NotesPanel("lowlight")
        lowlight(records)

        assert "48;2;187;250;187" in _render_ansi(realistic)
        assert "48;2;187;250;187" not in _render_ansi(lowlight)

    def test_rounded_pads_label(self) -> None:
        panel = NotesPanel("rounded")
        panel(tuple(extract_annotations(TEXT)))
        assert ' "gamma" ' in _render(panel)
