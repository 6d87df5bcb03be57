"""Synchronisation between the markup engine and a live host buffer."""

from annotext.sync.buffer import (
    Cursor,
    DocumentBuffer,
    DocumentRegistry,
    NoActiveDocumentError,
    SharedDocument,
)
from annotext.sync.controller import AnnotationSync

__all__ = [
    "AnnotationSync",
    "Cursor",
    "DocumentBuffer",
    "DocumentRegistry",
    "NoActiveDocumentError",
    "SharedDocument",
]
