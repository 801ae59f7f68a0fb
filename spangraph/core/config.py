# spangraph/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Project root (the directory holding pyproject.toml)
BASE_DIR = Path(__file__).resolve().parents[2]

# .env loading
ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)

# Log level (LOG_LEVEL in .env, default INFO)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS
# - CORS_ORIGINS="http://localhost:3000,http://127.0.0.1:8000" restricts origins
# - unset means allow everything (["*"])
_cors_raw = os.getenv("CORS_ORIGINS", "")
if _cors_raw:
    CORS_ORIGINS = [o.strip() for o in _cors_raw.split(",") if o.strip()]
else:
    CORS_ORIGINS = ["*"]

# Dataset / model spec catalog
SPECS_PATH = Path(
    os.getenv("SPANGRAPH_SPECS_PATH", str(BASE_DIR / "spangraph" / "conf" / "specs.yaml"))
)


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


@dataclass
class ModuleConfig:
    """Span graph module settings.

    - prediction_url: base URL of the prediction service (None disables model preds)
    - prediction_timeout: seconds before an outbound get_preds call gives up
    - cancel_superseded: cancel older fetches when a newer one is issued under the same key
    - default_dataset: dataset selected at startup (None = first one in the catalog)
    """

    prediction_url: Optional[str] = None
    prediction_timeout: float = 30.0
    cancel_superseded: bool = False
    default_dataset: Optional[str] = None


def load_config() -> ModuleConfig:
    """
    Load module settings from SPANGRAPH_* environment variables.

    Environment
    - SPANGRAPH_PREDICTION_URL (default: unset)
    - SPANGRAPH_PREDICTION_TIMEOUT (default: 30)
    - SPANGRAPH_CANCEL_SUPERSEDED (default: 0)
    - SPANGRAPH_DEFAULT_DATASET (default: unset)
    """
    url = os.getenv("SPANGRAPH_PREDICTION_URL", "").strip() or None
    timeout = _env_float("SPANGRAPH_PREDICTION_TIMEOUT", 30.0)
    if timeout <= 0:
        timeout = 30.0

    return ModuleConfig(
        prediction_url=url.rstrip("/") if url else None,
        prediction_timeout=timeout,
        cancel_superseded=_env_bool("SPANGRAPH_CANCEL_SUPERSEDED", False),
        default_dataset=os.getenv("SPANGRAPH_DEFAULT_DATASET", "").strip() or None,
    )
