import asyncio

import pytest
import requests

from spangraph.domain.types import IndexedInput
from spangraph.exceptions import PredictionFetchError
from spangraph.infra.prediction_client import HttpPredictionService


class _FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", bad_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self.text = text
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("no json")
        return self._payload


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []
        self.closed = False

    def post(self, url, params=None, json=None, timeout=None):
        self.posts.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


INPUTS = [IndexedInput(id="a", data={"text": "hi there"})]


def _fetch(service):
    return asyncio.run(
        service.fetch_predictions(INPUTS, "tagger", "conll", ["Tokens", "SequenceTags"])
    )


def test_posts_inputs_and_returns_records():
    session = _FakeSession(_FakeResponse(payload=[{"tokens": ["hi", "there"]}]))
    service = HttpPredictionService("http://preds.local/", timeout=3.0, session=session)

    assert _fetch(service) == [{"tokens": ["hi", "there"]}]

    post = session.posts[0]
    assert post["url"] == "http://preds.local/get_preds"
    assert post["params"] == {
        "model": "tagger",
        "dataset_name": "conll",
        "requested_types": "Tokens,SequenceTags",
    }
    assert post["json"] == {"inputs": [{"id": "a", "data": {"text": "hi there"}, "meta": {}}]}
    assert post["timeout"] == 3.0


def test_accepts_wrapped_preds_payload():
    session = _FakeSession(_FakeResponse(payload={"preds": [{"tokens": []}]}))
    assert _fetch(HttpPredictionService("http://x", session=session)) == [{"tokens": []}]


@pytest.mark.parametrize(
    "response",
    [
        _FakeResponse(status_code=500, text="internal error"),
        _FakeResponse(bad_json=True),
        _FakeResponse(payload={"unexpected": 1}),
        _FakeResponse(payload=["not a record"]),
        _FakeResponse(payload=[{"tokens": []}, {"tokens": []}]),
    ],
)
def test_bad_responses_raise_prediction_fetch_error(response):
    service = HttpPredictionService("http://x", session=_FakeSession(response))
    with pytest.raises(PredictionFetchError):
        _fetch(service)


def test_transport_error_is_wrapped():
    session = _FakeSession(error=requests.ConnectionError("refused"))
    with pytest.raises(PredictionFetchError) as excinfo:
        _fetch(HttpPredictionService("http://x", session=session))
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_close_closes_session():
    session = _FakeSession()
    HttpPredictionService("http://x", session=session).close()
    assert session.closed
