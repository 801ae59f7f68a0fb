import pytest

from spangraph.domain.spec import find_spec_keys, is_subtype, parse_spec, spec_to_dict
from spangraph.domain.types import FieldSpec
from spangraph.exceptions import ConfigError


def test_parse_spec_accepts_all_descriptor_forms():
    spec = parse_spec(
        {
            "tokens": "Tokens",
            "ner": {"kind": "SequenceTags", "align": "tokens"},
            "spans": {"__name__": "SpanLabels", "align": "tokens", "vocab": ["NP", "VP"]},
        }
    )

    assert list(spec) == ["tokens", "ner", "spans"]
    assert spec["tokens"] == FieldSpec(kind="Tokens")
    assert spec["ner"].align == "tokens"
    assert spec["spans"].kind == "SpanLabels"
    assert spec["spans"].extra == {"vocab": ["NP", "VP"]}


def test_parse_spec_none_is_empty():
    assert parse_spec(None) == {}


@pytest.mark.parametrize(
    "raw",
    [
        {"f": {"align": "tokens"}},
        {"f": 3},
        {"f": {"kind": "SequenceTags", "align": 7}},
    ],
)
def test_parse_spec_rejects_bad_descriptors(raw):
    with pytest.raises(ConfigError):
        parse_spec(raw)


def test_parse_spec_rejects_non_mapping():
    with pytest.raises(ConfigError):
        parse_spec(["tokens"])


def test_is_subtype_follows_kind_parents():
    generated = FieldSpec(kind="GeneratedText")
    assert is_subtype(generated, "TextSegment")
    assert is_subtype(generated, ["Tokens", "GeneratedText"])
    assert not is_subtype(generated, "Tokens")


def test_find_spec_keys_keeps_spec_order():
    spec = parse_spec(
        {
            "b": "TextSegment",
            "tokens": "Tokens",
            "a": "GeneratedText",
        }
    )
    assert find_spec_keys(spec, "TextSegment") == ["b", "a"]


def test_spec_to_dict_inverts_parse():
    raw = {"tokens": {"kind": "Tokens"}, "ner": {"kind": "SequenceTags", "align": "tokens"}}
    assert spec_to_dict(parse_spec(raw)) == raw


def test_reference_texts_is_not_a_text_segment():
    spec = parse_spec({"refs": "ReferenceTexts", "text": "TextSegment"})
    assert find_spec_keys(spec, "TextSegment") == ["text"]
