from .aligner import SUPPORTED_PRED_KINDS, group_tag_fields_by_token, should_display
from .normalizer import annotations_to_dict, normalize, spans_to_edges, tags_to_edges
from .spec import find_spec_keys, is_subtype, parse_spec
from .types import (
    AnnotationLayer,
    EdgeLabel,
    FieldSpec,
    IndexedInput,
    ModelInfo,
    TokenAnnotationSet,
)

__all__ = [
    "SUPPORTED_PRED_KINDS",
    "group_tag_fields_by_token",
    "should_display",
    "annotations_to_dict",
    "normalize",
    "spans_to_edges",
    "tags_to_edges",
    "find_spec_keys",
    "is_subtype",
    "parse_spec",
    "AnnotationLayer",
    "EdgeLabel",
    "FieldSpec",
    "IndexedInput",
    "ModelInfo",
    "TokenAnnotationSet",
]
