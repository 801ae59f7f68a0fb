# spangraph/app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spangraph import __version__
from spangraph.core.config import CORS_ORIGINS, LOG_LEVEL, ModuleConfig, load_config
from spangraph.app.routes_health import router as health_router
from spangraph.app.routes_spangraph import router as spangraph_router
from spangraph.infra.paths import resolve_specs_path
from spangraph.infra.prediction_client import PredictionService
from spangraph.services.app_state import AppState
from spangraph.services.span_graph_service import SpanGraphRuntime

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(
    app_state: Optional[AppState] = None,
    prediction_service: Optional[PredictionService] = None,
    config: Optional[ModuleConfig] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Modules are attached on startup (they need the running event loop) and
    detached on shutdown. Without arguments the spec catalog and settings
    come from the environment.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or load_config()
        state = app_state or AppState.from_yaml(resolve_specs_path(), current_dataset=cfg.default_dataset)
        runtime = SpanGraphRuntime(state, config=cfg, prediction_service=prediction_service)
        runtime.attach()
        app.state.runtime = runtime
        logger.info("span graph runtime attached (pred_modules=%s)", sorted(runtime.pred_modules))
        try:
            yield
        finally:
            runtime.detach()
            logger.info("span graph runtime detached")

    app = FastAPI(
        title="Span Graph Module Service",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(spangraph_router)

    logger.info("FastAPI app created. (log_level=%s)", LOG_LEVEL)
    return app

app = create_app()
