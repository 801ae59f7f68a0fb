"""Spec parsing and the field-kind hierarchy.

A raw spec descriptor may be written three ways:
  tokens: Tokens                              # bare kind name
  tags: {kind: SequenceTags, align: tokens}   # explicit kind
  tags: {__name__: SequenceTags, align: tokens}  # serialized-type form
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from spangraph.exceptions import ConfigError
from .types import FieldSpec, Spec

# child kind -> parent kind
KIND_PARENTS: Dict[str, str] = {
    "GeneratedText": "TextSegment",
    "SearchQuery": "TextSegment",
}

KindQuery = Union[str, Iterable[str]]


def _as_kinds(kinds: KindQuery) -> List[str]:
    if isinstance(kinds, str):
        return [kinds]
    return list(kinds)


def is_subtype(field_spec: FieldSpec, kinds: KindQuery) -> bool:
    """True if the field's kind, or any ancestor kind, is one of `kinds`."""
    wanted = set(_as_kinds(kinds))
    kind: Optional[str] = field_spec.kind
    while kind is not None:
        if kind in wanted:
            return True
        kind = KIND_PARENTS.get(kind)
    return False


def find_spec_keys(spec: Spec, kinds: KindQuery) -> List[str]:
    """Field names whose kind matches `kinds`, in spec order."""
    return [name for name, fs in spec.items() if is_subtype(fs, kinds)]


def parse_field(name: str, raw: Any) -> FieldSpec:
    if isinstance(raw, FieldSpec):
        return raw
    if isinstance(raw, str):
        return FieldSpec(kind=raw)
    if isinstance(raw, Mapping):
        kind = raw.get("kind", raw.get("__name__"))
        if not isinstance(kind, str) or not kind:
            raise ConfigError(f"Field '{name}' has no kind: {dict(raw)!r}")
        align = raw.get("align")
        if align is not None and not isinstance(align, str):
            raise ConfigError(f"Field '{name}' has a non-string align: {align!r}")
        extra = {k: v for k, v in raw.items() if k not in ("kind", "__name__", "align")}
        return FieldSpec(kind=kind, align=align, extra=extra)
    raise ConfigError(f"Field '{name}' has an unsupported descriptor: {raw!r}")


def parse_spec(raw: Optional[Mapping[str, Any]]) -> Spec:
    """Turn a raw mapping (YAML / JSON) into a Spec, keeping field order."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Spec must be a mapping of field name -> descriptor, got {type(raw).__name__}")
    return {str(name): parse_field(str(name), d) for name, d in raw.items()}


def spec_to_dict(spec: Spec) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for name, fs in spec.items():
        d: Dict[str, Any] = {"kind": fs.kind}
        if fs.align is not None:
            d["align"] = fs.align
        d.update(fs.extra)
        out[name] = d
    return out
