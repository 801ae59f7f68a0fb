from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from spangraph.exceptions import RecordDataError

Span = Tuple[int, int]
Record = Mapping[str, Any]


@dataclass(frozen=True)
class FieldSpec:
    """Declared semantic kind of one dataset/model field.

    - kind: type name (Tokens, TextSegment, SequenceTags, SpanLabels, EdgeLabels, ...)
    - align: name of the Tokens field this field is aligned to (prediction fields only)
    - extra: any other descriptor attributes, kept verbatim (vocab, parent, ...)
    """

    kind: str
    align: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


Spec = Dict[str, FieldSpec]


def _as_bound(x: Any, what: str, span: Any) -> int:
    if isinstance(x, bool):
        raise RecordDataError(f"{what} bounds must be integers, got {span!r}")
    if isinstance(x, int):
        return x
    if isinstance(x, float) and x.is_integer():
        return int(x)
    raise RecordDataError(f"{what} bounds must be integers, got {span!r}")


def _check_span(span: Any, what: str) -> Span:
    if isinstance(span, (str, bytes, Mapping)):
        raise RecordDataError(f"{what} must be a [start, end] pair, got {span!r}")
    try:
        start, end = span
    except (TypeError, ValueError) as e:
        raise RecordDataError(f"{what} must be a [start, end] pair, got {span!r}") from e
    start, end = _as_bound(start, what, span), _as_bound(end, what, span)
    if not 0 <= start < end:
        raise RecordDataError(f"{what} must satisfy 0 <= start < end, got [{start}, {end})")
    return (start, end)


@dataclass(frozen=True)
class EdgeLabel:
    """Labeled half-open token range, optionally with a second argument span.

    - span1: (start, end), 0 <= start < end
    - label: edge label
    - span2: (start, end) of the second argument for two-sided edges
    - extra: any other keys of the raw edge (score, ...), kept verbatim
    """

    span1: Span
    label: str
    span2: Optional[Span] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "span1", _check_span(self.span1, "span1"))
        if self.span2 is not None:
            object.__setattr__(self, "span2", _check_span(self.span2, "span2"))


@dataclass(frozen=True)
class AnnotationLayer:
    """One prediction field's edges, attached to a token field."""

    name: str
    edges: Tuple[EdgeLabel, ...] = ()


@dataclass(frozen=True)
class TokenAnnotationSet:
    """Tokens of one token field plus every layer aligned to it."""

    tokens: Tuple[str, ...] = ()
    layers: Tuple[AnnotationLayer, ...] = ()


Annotations = Dict[str, TokenAnnotationSet]


@dataclass(frozen=True)
class IndexedInput:
    """A selected datapoint: stable id plus its raw record."""

    id: str
    data: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ModelInfo:
    """Model entry of the spec catalog."""

    name: str
    datasets: Tuple[str, ...]
    input_spec: Spec
    output_spec: Spec
