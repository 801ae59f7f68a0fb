from __future__ import annotations

import logging
from typing import Dict, Optional

from spangraph.core.config import ModuleConfig
from spangraph.domain.aligner import should_display
from spangraph.infra.prediction_client import HttpPredictionService, PredictionService
from spangraph.services.app_state import AppState
from spangraph.services.selection import SelectionService
from spangraph.services.span_graph_module import SpanGraphGoldModule, SpanGraphModule

logger = logging.getLogger(__name__)


class SpanGraphRuntime:
    """
    Shared services plus one gold module and one pred module per drawable model.

    Pred modules are only built when a prediction service is available
    (injected, or SPANGRAPH_PREDICTION_URL configured).
    """

    def __init__(
        self,
        app_state: AppState,
        config: Optional[ModuleConfig] = None,
        prediction_service: Optional[PredictionService] = None,
    ) -> None:
        self.config = config or ModuleConfig()
        self.app_state = app_state
        self.selection_service = SelectionService()

        self._owns_prediction_service = False
        if prediction_service is None and self.config.prediction_url:
            prediction_service = HttpPredictionService(
                self.config.prediction_url, timeout=self.config.prediction_timeout
            )
            self._owns_prediction_service = True
        self.prediction_service = prediction_service

        self.gold_module = SpanGraphGoldModule(app_state, self.selection_service)
        self.pred_modules: Dict[str, SpanGraphModule] = {}
        if prediction_service is not None:
            for name, info in app_state.model_infos().items():
                if not should_display(info.output_spec):
                    logger.info("model %s has no drawable outputs; skipped", name)
                    continue
                self.pred_modules[name] = SpanGraphModule(
                    name,
                    app_state,
                    self.selection_service,
                    prediction_service,
                    cancel_superseded=self.config.cancel_superseded,
                )

    def attach(self) -> None:
        self.gold_module.attach()
        for module in self.pred_modules.values():
            module.attach()

    def detach(self) -> None:
        for module in self.pred_modules.values():
            module.detach()
        self.gold_module.detach()
        if self._owns_prediction_service:
            self.prediction_service.close()

    async def drain(self) -> None:
        for module in self.pred_modules.values():
            await module.drain()
