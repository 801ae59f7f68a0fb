"""Structured prediction (span graph) modules.

SpanGraphGoldModule : gold annotations of the selected datapoint, derived synchronously
SpanGraphModule     : model predictions for the selected datapoint, fetched asynchronously

Lifecycle: construct -> attach() -> detach(). Everything attach() sets up is
registered on a Scope and torn down exactly once by detach().
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from spangraph.domain.aligner import SUPPORTED_PRED_KINDS, should_display, should_display_preds
from spangraph.domain.normalizer import normalize
from spangraph.domain.types import Annotations, IndexedInput, ModelInfo, Spec
from spangraph.exceptions import PredictionFetchError
from spangraph.infra.prediction_client import PredictionService
from spangraph.reactive import Computed, Scope, Signal
from spangraph.services.app_state import AppState
from spangraph.services.loading import LoadingCoordinator
from spangraph.services.selection import SelectionReactor, SelectionService

logger = logging.getLogger(__name__)

REQUESTED_KINDS = ["Tokens", *SUPPORTED_PRED_KINDS]


class _ModuleBase:
    title = ""
    # width in a 12 column layout
    num_cols = 4
    duplicate_for_example_comparison = False
    duplicate_for_model_comparison = True
    duplicate_as_row = False

    def __init__(self) -> None:
        self._scope: Optional[Scope] = None

    @property
    def attached(self) -> bool:
        return self._scope is not None

    def attach(self) -> None:
        if self._scope is not None:
            raise RuntimeError(f"{type(self).__name__} is already attached")
        scope = Scope(name=type(self).__name__)
        try:
            self._setup(scope)
        except Exception:
            scope.close()
            raise
        self._scope = scope

    def detach(self) -> None:
        scope, self._scope = self._scope, None
        if scope is not None:
            scope.close()

    def _setup(self, scope: Scope) -> None:
        raise NotImplementedError


class SpanGraphGoldModule(_ModuleBase):
    title = "Structured Prediction (gold)"
    duplicate_for_example_comparison = True
    duplicate_for_model_comparison = False
    duplicate_as_row = True

    def __init__(self, app_state: AppState, selection_service: SelectionService) -> None:
        super().__init__()
        self._app_state = app_state
        self._selection_service = selection_service
        self._gold: Optional[Computed] = None

    @property
    def data_spec(self) -> Spec:
        return self._app_state.current_dataset_spec

    def _compute_gold(self) -> Annotations:
        inp = self._selection_service.primary_selected_input_data
        if inp is None:
            return {}
        return normalize(inp.data, self.data_spec)

    def _setup(self, scope: Scope) -> None:
        gold = Computed(
            self._compute_gold,
            [self._selection_service.primary_selection, self._app_state.current_dataset_signal],
            name="gold_display_data",
        )
        scope.add(gold.dispose)
        self._gold = gold
        scope.add(self._drop_gold)

    def _drop_gold(self) -> None:
        self._gold = None

    @property
    def gold_display_data(self) -> Annotations:
        if self._gold is None:
            return {}
        return self._gold.get()

    @staticmethod
    def should_display_module(model_specs: Mapping[str, ModelInfo], dataset_spec: Spec) -> bool:
        return should_display(dataset_spec)


class SpanGraphModule(_ModuleBase):
    title = "Structured Prediction (model preds)"
    duplicate_for_example_comparison = True
    duplicate_as_row = True

    def __init__(
        self,
        model: str,
        app_state: AppState,
        selection_service: SelectionService,
        prediction_service: PredictionService,
        *,
        cancel_superseded: bool = False,
    ) -> None:
        super().__init__()
        self.model = model
        self._app_state = app_state
        self._selection_service = selection_service
        self._prediction_service = prediction_service

        # Updated by the reactor, never mutated in place.
        self.pred_display_data: Signal = Signal({}, name=f"{model}.pred_display_data")
        self.error: Signal = Signal(None, name=f"{model}.error")
        self._coordinator = LoadingCoordinator(cancel_superseded=cancel_superseded, name=model)
        self.is_loading: Signal = self._coordinator.is_loading
        self._reactor: Optional[SelectionReactor] = None

    @property
    def pred_spec(self) -> Spec:
        return self._app_state.get_model_spec(self.model).output_spec

    async def _fetch_and_normalize(self, inp: IndexedInput) -> Annotations:
        results = await self._prediction_service.fetch_predictions(
            [inp], self.model, self._app_state.current_dataset, REQUESTED_KINDS
        )
        if not results:
            raise PredictionFetchError(f"No predictions returned for input {inp.id}")
        return normalize(results[0], self.pred_spec)

    def _commit(self, annotations: Annotations) -> None:
        self.error.set(None)
        self.pred_display_data.set(annotations)

    def _clear(self) -> None:
        self.error.set(None)
        self.pred_display_data.set({})

    def _fail(self, exc: Exception) -> None:
        self.error.set(str(exc))

    def _setup(self, scope: Scope) -> None:
        # fetches are scheduled on the running loop
        asyncio.get_running_loop()
        # unknown model -> ConfigError before anything subscribes
        self._app_state.get_model_spec(self.model)

        reactor = SelectionReactor(
            self._selection_service.primary_selection,
            self._coordinator,
            self._fetch_and_normalize,
            on_commit=self._commit,
            on_clear=self._clear,
            on_error=self._fail,
        )
        scope.add(reactor.stop)
        self._reactor = reactor
        scope.add(self._drop_reactor)
        reactor.start()
        logger.info("span graph module attached (model=%s)", self.model)

    def _drop_reactor(self) -> None:
        self._reactor = None

    async def drain(self) -> None:
        """Wait for every fetch issued so far to settle."""
        if self._reactor is not None:
            await self._reactor.drain()

    @staticmethod
    def should_display_module(model_specs: Mapping[str, ModelInfo], dataset_spec: Spec) -> bool:
        return should_display_preds(info.output_spec for info in model_specs.values())
