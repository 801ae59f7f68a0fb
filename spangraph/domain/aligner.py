from __future__ import annotations

from typing import Dict, Iterable, List

from spangraph.exceptions import UnalignedFieldError
from .spec import find_spec_keys
from .types import Spec

# Prediction kinds the span graph can draw
SUPPORTED_PRED_KINDS = ("SequenceTags", "SpanLabels", "EdgeLabels")


def group_tag_fields_by_token(spec: Spec) -> Dict[str, List[str]]:
    """Map every Tokens field to the prediction fields aligned to it.

    - every Tokens field gets an entry, even with no tag fields
    - tag fields keep spec order within each list
    - a tag field whose `align` is missing or not a Tokens field raises UnalignedFieldError
    """
    tag_keys = find_spec_keys(spec, SUPPORTED_PRED_KINDS)
    token_keys = find_spec_keys(spec, "Tokens")

    token_to_tags: Dict[str, List[str]] = {k: [] for k in token_keys}
    for tag_key in tag_keys:
        token_key = spec[tag_key].align
        if token_key not in token_to_tags:
            raise UnalignedFieldError(tag_key, token_key)
        token_to_tags[token_key].append(tag_key)
    return token_to_tags


def should_display(spec: Spec) -> bool:
    """True iff the spec has a Tokens field and at least one supported prediction field."""
    has_tokens = len(find_spec_keys(spec, "Tokens")) > 0
    has_supported_preds = len(find_spec_keys(spec, SUPPORTED_PRED_KINDS)) > 0
    return has_tokens and has_supported_preds


def should_display_gold(dataset_spec: Spec) -> bool:
    return should_display(dataset_spec)


def should_display_preds(model_output_specs: Iterable[Spec]) -> bool:
    """True if any model's output spec can be drawn."""
    return any(should_display(s) for s in model_output_specs)
