"""Host-side document buffers.

``DocumentBuffer`` is the interface the sync controller needs from a
host editor.  ``SharedDocument`` implements it on a pycrdt ``Text``, and
``DocumentRegistry`` tracks which document is active and relays the
host's "content changed" and "active view changed" notifications.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NamedTuple, Protocol

from pycrdt import Doc, Text

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class NoActiveDocumentError(LookupError):
    """Raised when a notification arrives and no document is active."""


class Cursor(NamedTuple):
    """Editor cursor as a zero-based line and character column."""

    line: int
    ch: int


def cursor_to_offset(text: str, cursor: Cursor) -> int:
    """Convert a line/ch cursor to a character offset, clamping to *text*."""
    lines = text.split("\n")
    line = max(0, min(cursor.line, len(lines) - 1))
    ch = max(0, min(cursor.ch, len(lines[line])))
    return sum(len(prev) + 1 for prev in lines[:line]) + ch


def offset_to_cursor(text: str, offset: int) -> Cursor:
    """Convert a character offset to a line/ch cursor, clamping to *text*."""
    offset = max(0, min(offset, len(text)))
    before = text[:offset]
    line = before.count("\n")
    return Cursor(line, offset - (before.rfind("\n") + 1))


class DocumentBuffer(Protocol):
    """What the sync controller needs from a host editor buffer."""

    def get_content(self) -> str:
        """Return the full document text."""
        ...

    def set_content(self, content: str) -> None:
        """Replace the full document text."""
        ...

    def get_cursor(self) -> Cursor:
        """Return the current cursor."""
        ...

    def set_cursor(self, cursor: Cursor) -> None:
        """Move the cursor, clamped to the document."""
        ...


class SharedDocument:
    """A pycrdt-backed text buffer with a cursor and change listeners.

    Every mutation runs in one CRDT transaction.  Change listeners run
    after it has been committed, so a listener may write back into the
    buffer.
    """

    def __init__(self, doc_id: str = "", content: str = "") -> None:
        """Initialize a new shared document.

        Args:
            doc_id: Identifier for this document (e.g. a file path).
            content: Initial text, set without notifying listeners.
        """
        self.doc_id = doc_id
        self.doc = Doc()
        self.doc["text"] = Text()
        self._cursor = Cursor(0, 0)
        self._listeners: list[Listener] = []

        if content:
            text = self.text
            text += content

    @property
    def text(self) -> Text:
        """Get the shared text object."""
        return self.doc["text"]

    def get_content(self) -> str:
        """Get the current text content as a string."""
        return str(self.text)

    def set_content(self, content: str) -> None:
        """Replace the text content in a single transaction."""
        with self.doc.transaction():
            text = self.text
            text.clear()
            if content:
                text += content
        self._notify()

    def insert_at(self, position: int, content: str) -> None:
        """Insert text at a specific position.

        Args:
            position: Character index to insert at
            content: Text to insert
        """
        self.text.insert(position, content)
        self._notify()

    def delete_range(self, start: int, end: int) -> None:
        """Delete text in a range.

        Args:
            start: Start index (inclusive)
            end: End index (exclusive)
        """
        del self.text[start:end]
        self._notify()

    def replace_range(self, start: int, end: int, content: str) -> None:
        """Replace ``text[start:end]`` with *content* in one transaction.

        Used to substitute a selection, e.g. with encoder output.
        """
        with self.doc.transaction():
            if end > start:
                del self.text[start:end]
            if content:
                self.text.insert(start, content)
        self._notify()

    def get_cursor(self) -> Cursor:
        return self._cursor

    def set_cursor(self, cursor: Cursor) -> None:
        content = self.get_content()
        self._cursor = offset_to_cursor(content, cursor_to_offset(content, cursor))

    def add_listener(self, listener: Listener) -> None:
        """Call *listener* after every committed change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        # Iterate over a copy: a listener may detach itself
        for listener in list(self._listeners):
            listener()


class DocumentRegistry:
    """Open documents, the active one, and host notifications.

    Content-change notifications are relayed only for the active
    document; switching documents raises a view-change notification.
    """

    def __init__(self) -> None:
        self._documents: dict[str, SharedDocument] = {}
        self._active_id: str | None = None
        self._content_listeners: list[Listener] = []
        self._view_listeners: list[Listener] = []

    def open(self, doc_id: str, content: str = "") -> SharedDocument:
        """Get an existing document or open a new one.

        Args:
            doc_id: Document identifier.
            content: Initial text for a newly opened document.

        Returns:
            The SharedDocument instance.
        """
        if doc_id not in self._documents:
            document = SharedDocument(doc_id, content)
            document.add_listener(lambda: self._relay_content_change(doc_id))
            self._documents[doc_id] = document
            logger.debug("Opened document %s", doc_id)
        return self._documents[doc_id]

    def get(self, doc_id: str) -> SharedDocument | None:
        return self._documents.get(doc_id)

    def close(self, doc_id: str) -> bool:
        """Close a document, clearing the active view if it was active.

        Returns:
            True if the document was found and closed.
        """
        removed = self._documents.pop(doc_id, None) is not None
        if removed and self._active_id == doc_id:
            self._active_id = None
            self._fire(self._view_listeners)
        return removed

    @property
    def active(self) -> SharedDocument | None:
        """The active document, or None when nothing is active."""
        if self._active_id is None:
            return None
        return self._documents.get(self._active_id)

    def require_active(self) -> SharedDocument:
        """Return the active document.

        Raises:
            NoActiveDocumentError: If no document is active.
        """
        document = self.active
        if document is None:
            raise NoActiveDocumentError("no active document")
        return document

    def activate(self, doc_id: str) -> SharedDocument:
        """Make *doc_id* the active document and notify view listeners.

        Raises:
            KeyError: If the document is not open.
        """
        document = self._documents[doc_id]
        self._active_id = doc_id
        self._fire(self._view_listeners)
        return document

    def on_content_changed(self, listener: Listener) -> None:
        self._content_listeners.append(listener)

    def on_active_view_changed(self, listener: Listener) -> None:
        self._view_listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        for listeners in (self._content_listeners, self._view_listeners):
            if listener in listeners:
                listeners.remove(listener)

    def _relay_content_change(self, doc_id: str) -> None:
        if doc_id == self._active_id:
            self._fire(self._content_listeners)

    @staticmethod
    def _fire(listeners: list[Listener]) -> None:
        for listener in list(listeners):
            listener()

