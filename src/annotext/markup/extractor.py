"""Document text -> ordered annotation records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from annotext.markup.lexer import iter_spans
from annotext.markup.models import AnnotationRecord

if TYPE_CHECKING:
    from collections.abc import Iterator

    from annotext.markup.lexer import MarkupSpan

logger = logging.getLogger(__name__)


def _to_record(span: MarkupSpan) -> AnnotationRecord:
    annotation = span.to_annotation()
    return AnnotationRecord(
        text=annotation.display_text,
        note=annotation.note,
        color=annotation.color,
        tags=annotation.tags,
    )


def iter_annotations(text: str) -> Iterator[AnnotationRecord]:
    """Lazily yield one record per annotation span, in document order."""
    for span in iter_spans(text):
        yield _to_record(span)


def extract_annotations(text: str) -> list[AnnotationRecord]:
    """Extract every annotation span in *text* as a record.

    One record per span no matter how many indicator elements trail it.
    Unterminated spans are skipped.

    Args:
        text: Full document text.

    Returns:
        Records in left-to-right document order.
    """
    records = list(iter_annotations(text))
    logger.debug("Extracted %d annotation records", len(records))
    return records


def note_at(text: str, offset: int) -> str | None:
    """Return the note of the span under *offset*, if any.

    The span covers its opening tag through its trailing indicators, so
    hovering the indicator finds the same note as hovering the highlight.
    """
    for span in iter_spans(text):
        if span.start_pos > offset:
            break
        if offset < span.end_pos:
            return span.attributes.note
    return None
