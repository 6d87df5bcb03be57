"""Tests for the AnnotationSync controller against live buffers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from annotext.markup.grammar import INDICATOR
from annotext.markup.models import AnnotationRecord, ColorSpec
from annotext.sync.buffer import Cursor, DocumentRegistry, SharedDocument
from annotext.sync.controller import AnnotationSync

if TYPE_CHECKING:
    from annotext.config import CursorStrategy

NOTED = '<mark class="hltr-yellow" data-note="remember">word</mark>'
PLAIN = '<mark class="hltr-red">other</mark>'


class RecordingSink:
    """Collects every tuple of records pushed by the controller."""

    def __init__(self) -> None:
        self.calls: list[tuple[AnnotationRecord, ...]] = []

    def __call__(self, records: tuple[AnnotationRecord, ...]) -> None:
        self.calls.append(records)

    @property
    def last(self) -> tuple[AnnotationRecord, ...]:
        return self.calls[-1]


class FakeBuffer:
    """In-memory buffer that records writes."""

    def __init__(self, content: str, cursor: Cursor | None = None) -> None:
        self.content = content
        self.cursor = cursor or Cursor(0, 0)
        self.set_calls: list[str] = []

    def get_content(self) -> str:
        return self.content

    def set_content(self, content: str) -> None:
        self.set_calls.append(content)
        self.content = content

    def get_cursor(self) -> Cursor:
        return self.cursor

    def set_cursor(self, cursor: Cursor) -> None:
        self.cursor = cursor


class FailingBuffer(FakeBuffer):
    def get_content(self) -> str:
        raise RuntimeError("buffer went away")


@pytest.fixture
def registry() -> DocumentRegistry:
    return DocumentRegistry()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


class TestNotifications:
    """Controller driven by registry notifications."""

    def test_canonical_document_never_written(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        """Opening an already-canonical document causes zero writes."""
        controller = AnnotationSync.for_registry(registry, sink)
        registry.open("a", f"intro {NOTED}{INDICATOR} and {PLAIN}.")
        registry.activate("a")

        assert controller.writes == 0
        assert [r.text for r in sink.last] == ["word", "other"]

    def test_non_canonical_document_written_once(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        """The re-entrant pass after our own write sees canonical text."""
        controller = AnnotationSync.for_registry(registry, sink)
        doc = registry.open("a", f"{NOTED}{INDICATOR}{INDICATOR} {PLAIN}{INDICATOR}")
        registry.activate("a")

        assert controller.writes == 1
        assert doc.get_content() == f"{NOTED}{INDICATOR} {PLAIN}"
        assert len(sink.last) == 2

    def test_user_edit_triggers_cleanup(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        controller = AnnotationSync.for_registry(registry, sink)
        doc = registry.open("a", f"{NOTED}{INDICATOR}")
        registry.activate("a")
        assert controller.writes == 0

        # Paste a duplicate indicator right after the existing one
        doc.insert_at(len(doc.get_content()), INDICATOR)

        assert controller.writes == 1
        assert doc.get_content() == f"{NOTED}{INDICATOR}"

    def test_inserted_highlight_published(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        AnnotationSync.for_registry(registry, sink)
        doc = registry.open("a", "hello world")
        registry.activate("a")
        assert sink.last == ()

        doc.replace_range(0, 5, '<mark class="hltr-yellow">hello</mark>')

        assert sink.last == (
            AnnotationRecord(
                text="hello", note=None, color=ColorSpec.css_class("yellow"), tags=()
            ),
        )

    def test_view_change_publishes_without_rewrite(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        controller = AnnotationSync.for_registry(registry, sink)
        registry.open("a", NOTED + INDICATOR)
        registry.open("b", PLAIN)
        registry.activate("a")
        registry.activate("b")

        assert controller.writes == 0
        assert [r.text for r in sink.last] == ["other"]

    def test_background_document_ignored(
        self, registry: DocumentRegistry, sink: RecordingSink
    ) -> None:
        controller = AnnotationSync.for_registry(registry, sink)
        registry.open("a", "active")
        background = registry.open("b", "")
        registry.activate("a")
        calls_before = len(sink.calls)

        background.set_content(NOTED)

        assert controller.writes == 0
        assert len(sink.calls) == calls_before
        assert background.get_content() == NOTED


class TestSync:
    """Direct calls to AnnotationSync.sync."""

    def test_no_active_document(
        self,
        registry: DocumentRegistry,
        sink: RecordingSink,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """The registry raises NoActiveDocumentError; it is logged at debug."""
        controller = AnnotationSync.for_registry(registry, sink)
        with caplog.at_level(logging.DEBUG, logger="annotext.sync.controller"):
            assert controller.sync() is False
        assert sink.calls == []
        assert "no active document" in caplog.text

    def test_provider_returning_none(self, sink: RecordingSink) -> None:
        controller = AnnotationSync(lambda: None, sink)
        assert controller.sync() is False
        assert sink.calls == []

    def test_returns_true_when_rewritten(self) -> None:
        buffer = FakeBuffer(PLAIN + INDICATOR)
        controller = AnnotationSync(lambda: buffer)

        assert controller.sync() is True
        assert buffer.set_calls == [PLAIN]
        assert controller.sync() is False
        assert buffer.set_calls == [PLAIN]

    def test_buffer_failure_logged_and_not_written(
        self, sink: RecordingSink, caplog: pytest.LogCaptureFixture
    ) -> None:
        buffer = FailingBuffer(PLAIN + INDICATOR)
        controller = AnnotationSync(lambda: buffer, sink)

        with caplog.at_level(logging.ERROR, logger="annotext.sync.controller"):
            assert controller.sync("content-changed") is False

        assert buffer.set_calls == []
        assert sink.calls == []
        assert "Annotation cleanup failed on content-changed" in caplog.text

    def test_canonicaliser_failure_leaves_buffer_untouched(
        self,
        sink: RecordingSink,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Cleanup fails but the unmodified snapshot is still published."""

        def boom(_text: str) -> None:
            raise ValueError("bad markup")

        monkeypatch.setattr("annotext.sync.controller.canonicalize_with_edits", boom)
        buffer = FakeBuffer(PLAIN + INDICATOR)
        controller = AnnotationSync(lambda: buffer, sink)

        with caplog.at_level(logging.ERROR, logger="annotext.sync.controller"):
            assert controller.sync() is False

        assert buffer.set_calls == []
        assert buffer.content == PLAIN + INDICATOR
        assert "bad markup" in caplog.text
        assert [r.text for r in sink.last] == ["other"]

    def test_sink_failure_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        def sink(_records: tuple[AnnotationRecord, ...]) -> None:
            raise RuntimeError("panel closed")

        buffer = FakeBuffer(PLAIN + INDICATOR)
        controller = AnnotationSync(lambda: buffer, sink)

        with caplog.at_level(logging.ERROR, logger="annotext.sync.controller"):
            assert controller.sync() is True

        assert buffer.content == PLAIN
        assert "Annotation extraction failed" in caplog.text


class TestCursorRestore:
    """Cursor handling after a rewrite."""

    BEFORE = f"{PLAIN}{INDICATOR}{INDICATOR} tail"
    AFTER = f"{PLAIN} tail"

    def _run(self, strategy: CursorStrategy) -> SharedDocument:
        doc = SharedDocument("d", self.BEFORE)
        doc.set_cursor(Cursor(0, self.BEFORE.index("tail")))
        controller = AnnotationSync(lambda: doc, cursor_strategy=strategy)
        assert controller.sync() is True
        assert doc.get_content() == self.AFTER
        return doc

    def test_coordinate_keeps_raw_position_clamped(self) -> None:
        """The raw column is past the shortened line, so it clamps to the end."""
        doc = self._run("coordinate")
        assert doc.get_cursor() == Cursor(0, len(self.AFTER))

    def test_anchored_follows_text(self) -> None:
        doc = self._run("anchored")
        assert doc.get_cursor() == Cursor(0, self.AFTER.index("tail"))

    def test_cursor_on_other_line_unchanged(self) -> None:
        doc = SharedDocument("d", f"{PLAIN}{INDICATOR}\nsecond line")
        doc.set_cursor(Cursor(1, 3))
        AnnotationSync(lambda: doc).sync()
        assert doc.get_cursor() == Cursor(1, 3)
