"""Prediction field normalization (record + spec -> layered edges).

Public API:
  - normalize(record, spec) -> Dict[token_field, TokenAnnotationSet]
  - tags_to_edges / spans_to_edges / coerce_edges
  - annotations_to_dict(annotations) -> JSON-ready dict

Kind rules:
  SequenceTags : tag i          -> {span1: (i, i+1), label: tag}
  SpanLabels   : {start,end,label} -> {span1: (start, end), label}
  EdgeLabels   : {span1,label[,span2]} passed through
Any other keys of a span or edge item (score, ...) ride along in
EdgeLabel.extra and are rendered back next to span1/label.
Span bounds must be integers; they are never rounded.

Placeholder values ("", None, missing key) become an empty edge list.
Fallback tokens: if the token field is empty, the first TextSegment field is
split on runs of whitespace (str.split()).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from spangraph.exceptions import RecordDataError
from .aligner import group_tag_fields_by_token
from .spec import find_spec_keys, is_subtype
from .types import (
    AnnotationLayer,
    Annotations,
    EdgeLabel,
    Record,
    Spec,
    TokenAnnotationSet,
)

logger = logging.getLogger(__name__)


def _is_placeholder(value: Any) -> bool:
    """Empty value a hand-made datapoint may carry in place of a list."""
    if value is None:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False


def _as_list(value: Any, field_name: str) -> List[Any]:
    if _is_placeholder(value):
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        raise RecordDataError(
            f"Field '{field_name}' must be a list, got {type(value).__name__}: {value!r}"
        )
    return list(value)


def _get(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        if key not in item:
            raise RecordDataError(f"Missing '{key}' in {item!r}")
        return item[key]
    if hasattr(item, key):
        return getattr(item, key)
    raise RecordDataError(f"Missing '{key}' in {item!r}")


def tags_to_edges(tags: Sequence[str]) -> List[EdgeLabel]:
    """Convert sequence tags to a list of length-1 span labels."""
    return [EdgeLabel(span1=(i, i + 1), label=str(label)) for i, label in enumerate(tags)]


def _extra(item: Any, known: Tuple[str, ...]) -> Dict[str, Any]:
    if not isinstance(item, Mapping):
        return {}
    return {k: v for k, v in item.items() if k not in known}


def spans_to_edges(spans: Sequence[Any]) -> List[EdgeLabel]:
    """Convert span labels to single-sided edge labels."""
    return [
        EdgeLabel(
            span1=(_get(s, "start"), _get(s, "end")),
            label=str(_get(s, "label")),
            extra=_extra(s, ("start", "end", "label")),
        )
        for s in spans
    ]


def coerce_edges(edges: Sequence[Any]) -> List[EdgeLabel]:
    """Edge labels are already in edge form; only the container type changes."""
    out: List[EdgeLabel] = []
    for e in edges:
        if isinstance(e, EdgeLabel):
            out.append(e)
            continue
        span2 = e.get("span2") if isinstance(e, Mapping) else getattr(e, "span2", None)
        out.append(
            EdgeLabel(
                span1=_get(e, "span1"),
                label=str(_get(e, "label")),
                span2=span2,
                extra=_extra(e, ("span1", "span2", "label")),
            )
        )
    return out


def resolve_tokens(record: Record, spec: Spec, token_key: str) -> Tuple[str, ...]:
    """Tokens of `token_key`, or the first TextSegment split on whitespace if empty."""
    tokens = record.get(token_key)
    if not _is_placeholder(tokens):
        return tuple(str(t) for t in _as_list(tokens, token_key))

    text_keys = find_spec_keys(spec, "TextSegment")
    if not text_keys:
        return ()
    text: Optional[Any] = record.get(text_keys[0])
    if not text:
        return ()
    if not isinstance(text, str):
        raise RecordDataError(f"Field '{text_keys[0]}' must be a string, got {type(text).__name__}")
    logger.debug("Token field '%s' empty; splitting '%s' on whitespace", token_key, text_keys[0])
    return tuple(text.split())


def field_to_edges(record: Record, spec: Spec, tag_key: str) -> Tuple[EdgeLabel, ...]:
    raw = _as_list(record.get(tag_key), tag_key)
    fs = spec[tag_key]
    if is_subtype(fs, "SequenceTags"):
        edges = tags_to_edges(raw)
    elif is_subtype(fs, "SpanLabels"):
        edges = spans_to_edges(raw)
    else:
        edges = coerce_edges(raw)
    return tuple(edges)


def normalize(record: Record, spec: Spec) -> Annotations:
    """Build one TokenAnnotationSet per Tokens field of `spec`.

    Deterministic and side-effect free; raises UnalignedFieldError for a bad spec
    and RecordDataError for record values that do not fit their declared kind.
    """
    token_to_tags = group_tag_fields_by_token(spec)

    ret: Annotations = {}
    for token_key, tag_keys in token_to_tags.items():
        layers = tuple(
            AnnotationLayer(name=tag_key, edges=field_to_edges(record, spec, tag_key))
            for tag_key in tag_keys
        )
        ret[token_key] = TokenAnnotationSet(
            tokens=resolve_tokens(record, spec, token_key),
            layers=layers,
        )
    return ret


def _edge_to_dict(e: EdgeLabel) -> Dict[str, Any]:
    d: Dict[str, Any] = {"span1": list(e.span1), "label": e.label}
    if e.span2 is not None:
        d["span2"] = list(e.span2)
    for k, v in e.extra.items():
        d.setdefault(k, v)
    return d


def annotations_to_dict(annotations: Annotations) -> Dict[str, Any]:
    """JSON-ready rendering: tuples become lists, absent span2 is dropped."""
    out: Dict[str, Any] = {}
    for token_key, tas in annotations.items():
        out[token_key] = {
            "tokens": list(tas.tokens),
            "layers": [
                {"name": layer.name, "edges": [_edge_to_dict(e) for e in layer.edges]}
                for layer in tas.layers
            ],
        }
    return out
