"""Keep a live buffer's annotation markup canonical.

Every notification runs the same cycle against a fresh snapshot:

1. read the text and cursor,
2. canonicalise,
3. stop if nothing changed,
4. otherwise write the canonical text back and restore the cursor,
5. extract records and push them to the presentation sink.

Step 5 runs even when steps 1 to 4 fail, as long as the text can be
read.

Writing back raises another "content changed" notification.  That
re-entrant pass reads canonical text, so it stops at step 3 and the
loop ends after one extra extraction.  No reentrancy flag is needed as
long as canonicalisation is idempotent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from annotext.markup.canonical import canonicalize_with_edits, map_offset
from annotext.markup.extractor import extract_annotations
from annotext.sync.buffer import (
    NoActiveDocumentError,
    cursor_to_offset,
    offset_to_cursor,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from annotext.config import CursorStrategy
    from annotext.markup.canonical import Edit
    from annotext.markup.models import AnnotationRecord
    from annotext.sync.buffer import Cursor, DocumentBuffer, DocumentRegistry

    RecordSink = Callable[[tuple[AnnotationRecord, ...]], None]

logger = logging.getLogger(__name__)


def _restore_cursor(
    cursor: Cursor,
    before: str,
    after: str,
    edits: list[Edit],
    strategy: CursorStrategy,
) -> Cursor:
    # "coordinate" keeps the raw line/ch even if text before it changed
    # length; the buffer clamps it to the new text.
    if strategy == "coordinate":
        return cursor
    offset = map_offset(cursor_to_offset(before, cursor), edits)
    return offset_to_cursor(after, offset)


class AnnotationSync:
    """Bridge the pure markup functions to a host's live buffer.

    Args:
        get_buffer: Returns the active buffer.  It may return None or raise
            NoActiveDocumentError when no document is active.
        sink: Receives the extracted records after every notification.
        cursor_strategy: How the cursor is restored after a rewrite.
    """

    def __init__(
        self,
        get_buffer: Callable[[], DocumentBuffer | None],
        sink: RecordSink | None = None,
        cursor_strategy: CursorStrategy = "coordinate",
    ) -> None:
        self._get_buffer = get_buffer
        self._sink = sink
        self._cursor_strategy: CursorStrategy = cursor_strategy
        self.writes = 0

    @classmethod
    def for_registry(
        cls,
        registry: DocumentRegistry,
        sink: RecordSink | None = None,
        cursor_strategy: CursorStrategy = "coordinate",
    ) -> AnnotationSync:
        """Create a controller subscribed to a registry's notifications."""
        controller = cls(registry.require_active, sink, cursor_strategy)
        registry.on_content_changed(controller.on_content_changed)
        registry.on_active_view_changed(controller.on_active_view_changed)
        return controller

    def on_content_changed(self) -> None:
        self.sync("content-changed")

    def on_active_view_changed(self) -> None:
        self.sync("view-changed")

    def sync(self, reason: str = "manual") -> bool:
        """Run one canonicalise-then-extract cycle.

        Failures are logged and swallowed; the buffer is only written
        once the canonical text has been fully computed.  Records are
        published even when cleanup fails, from whatever text the buffer
        then holds.

        Returns:
            True if the buffer was rewritten.
        """
        try:
            buffer = self._get_buffer()
            if buffer is None:
                raise NoActiveDocumentError("no active document")
        except NoActiveDocumentError:
            logger.debug("Skipping %s sync: no active document", reason)
            return False

        try:
            rewritten = self._canonicalise(buffer)
        except Exception:
            logger.exception("Annotation cleanup failed on %s", reason)
            rewritten = False

        try:
            self._publish(buffer.get_content())
        except Exception:
            logger.exception("Annotation extraction failed on %s", reason)

        return rewritten

    def _canonicalise(self, buffer: DocumentBuffer) -> bool:
        content = buffer.get_content()
        cursor = buffer.get_cursor()

        canonical, edits = canonicalize_with_edits(content)
        if canonical == content:
            return False

        logger.info("Rewriting %d annotation indicator runs", len(edits))
        self.writes += 1
        buffer.set_content(canonical)
        buffer.set_cursor(
            _restore_cursor(cursor, content, canonical, edits, self._cursor_strategy)
        )
        return True

    def _publish(self, content: str) -> None:
        if self._sink is None:
            return
        self._sink(tuple(extract_annotations(content)))
