import pytest

from spangraph.domain.aligner import (
    group_tag_fields_by_token,
    should_display,
    should_display_gold,
    should_display_preds,
)
from spangraph.domain.spec import parse_spec
from spangraph.exceptions import ConfigError, UnalignedFieldError


def test_groups_tag_fields_under_their_token_field(mixed_spec):
    assert group_tag_fields_by_token(mixed_spec) == {"tokens": ["pos", "chunks", "arcs"]}


def test_token_fields_without_tags_get_empty_lists():
    spec = parse_spec(
        {
            "src_tokens": "Tokens",
            "tgt_tokens": "Tokens",
            "tgt_tags": {"kind": "SequenceTags", "align": "tgt_tokens"},
        }
    )
    grouping = group_tag_fields_by_token(spec)

    assert grouping == {"src_tokens": [], "tgt_tokens": ["tgt_tags"]}
    assert list(grouping) == ["src_tokens", "tgt_tokens"]


def test_unaligned_field_fails_loudly():
    spec = parse_spec(
        {
            "tokens": "Tokens",
            "ner": {"kind": "SequenceTags", "align": "missing_tokens"},
        }
    )
    with pytest.raises(UnalignedFieldError) as excinfo:
        group_tag_fields_by_token(spec)

    assert isinstance(excinfo.value, ConfigError)
    assert excinfo.value.field_name == "ner"
    assert "missing_tokens" in str(excinfo.value)


def test_tag_field_without_align_is_unaligned():
    spec = parse_spec({"tokens": "Tokens", "spans": "SpanLabels"})
    with pytest.raises(UnalignedFieldError):
        group_tag_fields_by_token(spec)


def test_align_to_non_token_field_is_unaligned():
    spec = parse_spec({"text": "TextSegment", "ner": {"kind": "SequenceTags", "align": "text"}})
    with pytest.raises(UnalignedFieldError):
        group_tag_fields_by_token(spec)


def test_should_display(mixed_spec, ner_spec):
    assert should_display(mixed_spec)
    assert should_display(ner_spec)
    assert should_display_gold(ner_spec)


def test_tokens_without_prediction_fields_is_not_displayed():
    spec = parse_spec({"text": "TextSegment", "tokens": "Tokens"})
    assert should_display(spec) is False


def test_prediction_fields_without_tokens_is_not_displayed():
    spec = parse_spec({"ner": {"kind": "SequenceTags", "align": "tokens"}})
    assert should_display(spec) is False


def test_should_display_preds_any_model(ner_spec):
    no_tokens = parse_spec({"probas": "MulticlassPreds"})
    assert should_display_preds([no_tokens, ner_spec])
    assert not should_display_preds([no_tokens])
    assert not should_display_preds([])
