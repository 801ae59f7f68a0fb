# spangraph/infra/yaml_io.py
from pathlib import Path
from typing import Any

import yaml

from spangraph.exceptions import SpecLoadError


def load_yaml(path: Path) -> Any:
    """Load a YAML file and return the parsed Python object."""
    if not path.exists():
        raise SpecLoadError(f"YAML file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SpecLoadError(f"Could not parse YAML file {path}: {e}") from e


def save_yaml(path: Path, data: Any) -> None:
    """Write a Python object to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
