# spangraph/infra/paths.py
from pathlib import Path

from spangraph.core.config import BASE_DIR, SPECS_PATH

CONF_DIR = BASE_DIR / "spangraph" / "conf"
EXAMPLE_SPECS_PATH = CONF_DIR / "specs.yaml"


def resolve_specs_path() -> Path:
    """Configured spec catalog if it exists, otherwise the bundled example."""
    if SPECS_PATH.exists():
        return SPECS_PATH
    return EXAMPLE_SPECS_PATH
