"""Annotation markup: encode, extract, erase and canonicalise ``<mark>`` spans."""

from annotext.markup.canonical import (
    canonicalize,
    canonicalize_with_edits,
    is_canonical,
)
from annotext.markup.encoder import (
    UnknownHighlighterError,
    color_spec_for,
    encode_annotation,
)
from annotext.markup.eraser import erase_annotations, erase_range
from annotext.markup.extractor import extract_annotations, iter_annotations, note_at
from annotext.markup.models import (
    AnnotationRecord,
    AnnotationSpan,
    ColorSpec,
    normalize_tag,
    normalize_tags,
)

__all__ = [
    "AnnotationRecord",
    "AnnotationSpan",
    "ColorSpec",
    "UnknownHighlighterError",
    "canonicalize",
    "canonicalize_with_edits",
    "color_spec_for",
    "encode_annotation",
    "erase_annotations",
    "erase_range",
    "extract_annotations",
    "is_canonical",
    "iter_annotations",
    "normalize_tag",
    "normalize_tags",
    "note_at",
]
