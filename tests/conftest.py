from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from spangraph.domain.spec import parse_spec
from spangraph.services.app_state import AppState


CATALOG: Dict[str, Any] = {
    "datasets": {
        "conll": {
            "spec": {
                "text": "TextSegment",
                "tokens": "Tokens",
                "ner": {"kind": "SequenceTags", "align": "tokens"},
            }
        },
        "plain": {"spec": {"text": "TextSegment"}},
    },
    "models": {
        "tagger": {
            "datasets": ["conll"],
            "spec": {
                "input": {"text": "TextSegment", "tokens": "Tokens"},
                "output": {
                    "tokens": "Tokens",
                    "pred_ner": {"kind": "SequenceTags", "align": "tokens"},
                    "pred_chunks": {"kind": "SpanLabels", "align": "tokens"},
                },
            },
        },
        "classifier": {
            "spec": {
                "input": {"text": "TextSegment"},
                "output": {"probas": "MulticlassPreds"},
            },
        },
    },
}


class ControlledPredictionService:
    """Prediction service whose calls stay pending until the test resolves them."""

    def __init__(self) -> None:
        self.calls: List[SimpleNamespace] = []

    async def fetch_predictions(self, inputs, model, dataset_name, requested_kinds):
        fut = asyncio.get_running_loop().create_future()
        self.calls.append(
            SimpleNamespace(
                inputs=list(inputs),
                model=model,
                dataset_name=dataset_name,
                requested_kinds=list(requested_kinds),
                future=fut,
            )
        )
        return await fut

    def call_for(self, input_id: str) -> SimpleNamespace:
        for call in self.calls:
            if call.inputs[0].id == input_id:
                return call
        raise KeyError(input_id)


class ImmediatePredictionService:
    """Prediction service answering from a fixed id -> record table."""

    def __init__(self, records: Dict[str, Dict[str, Any]]) -> None:
        self.records = records
        self.calls: List[str] = []

    async def fetch_predictions(self, inputs, model, dataset_name, requested_kinds):
        self.calls.extend(i.id for i in inputs)
        return [self.records[i.id] for i in inputs]


async def ticks(n: int = 5) -> None:
    """Let scheduled tasks run a few steps."""
    for _ in range(n):
        await asyncio.sleep(0)


@pytest.fixture
def ner_spec():
    return parse_spec(
        {
            "text": "TextSegment",
            "tokens": "Tokens",
            "ner": {"kind": "SequenceTags", "align": "tokens"},
        }
    )


@pytest.fixture
def mixed_spec():
    return parse_spec(
        {
            "text": "TextSegment",
            "tokens": "Tokens",
            "pos": {"kind": "SequenceTags", "align": "tokens"},
            "chunks": {"kind": "SpanLabels", "align": "tokens"},
            "arcs": {"kind": "EdgeLabels", "align": "tokens"},
        }
    )


@pytest.fixture
def catalog() -> Dict[str, Any]:
    return CATALOG


@pytest.fixture
def app_state() -> AppState:
    return AppState.from_dict(CATALOG)
