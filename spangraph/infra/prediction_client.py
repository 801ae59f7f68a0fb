# spangraph/infra/prediction_client.py

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from spangraph.domain.types import IndexedInput
from spangraph.exceptions import PredictionFetchError

logger = logging.getLogger(__name__)


class PredictionService(Protocol):
    """Returns exactly one prediction record per input, in input order."""

    async def fetch_predictions(
        self,
        inputs: Sequence[IndexedInput],
        model: str,
        dataset_name: Optional[str],
        requested_kinds: Sequence[str],
    ) -> List[Dict[str, Any]]:
        ...


def _input_to_json(inp: IndexedInput) -> Dict[str, Any]:
    return {"id": inp.id, "data": inp.data, "meta": inp.meta}


class HttpPredictionService:
    """
    get_preds client over HTTP.

    POST {base_url}/get_preds?model=..&dataset_name=..&requested_types=A,B
    body: {"inputs": [{"id", "data", "meta"}, ...]}
    response: [record, ...]  or  {"preds": [record, ...]}

    The blocking requests call runs in a worker thread (asyncio.to_thread) so
    the event loop keeps serving selection changes while a fetch is in flight.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def _post_get_preds(
        self,
        inputs: Sequence[IndexedInput],
        model: str,
        dataset_name: Optional[str],
        requested_kinds: Sequence[str],
    ) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/get_preds"
        params = {
            "model": model,
            "dataset_name": dataset_name or "",
            "requested_types": ",".join(requested_kinds),
        }

        try:
            logger.info("get_preds call: model=%s, dataset=%s, n_inputs=%d", model, dataset_name, len(inputs))
            resp = self._session.post(
                url,
                params=params,
                json={"inputs": [_input_to_json(i) for i in inputs]},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.exception("get_preds request failed")
            raise PredictionFetchError(f"get_preds request failed: {e}") from e

        if not resp.ok:
            raise PredictionFetchError(
                f"get_preds returned HTTP {resp.status_code}: {resp.text[:200]}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise PredictionFetchError(f"get_preds response is not JSON: {e}") from e

        if isinstance(data, dict):
            data = data.get("preds")
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise PredictionFetchError("get_preds response must be a list of records")
        if len(data) != len(inputs):
            raise PredictionFetchError(
                f"get_preds returned {len(data)} records for {len(inputs)} inputs"
            )
        return data

    async def fetch_predictions(
        self,
        inputs: Sequence[IndexedInput],
        model: str,
        dataset_name: Optional[str],
        requested_kinds: Sequence[str],
    ) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(
            self._post_get_preds, list(inputs), model, dataset_name, list(requested_kinds)
        )
