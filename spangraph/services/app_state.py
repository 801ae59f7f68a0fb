# spangraph/services/app_state.py
"""
Dataset / model spec catalog.

YAML layout:

    datasets:
      conll2003:
        spec:
          text: TextSegment
          tokens: Tokens
          ner: {kind: SequenceTags, align: tokens}
    models:
      tagger:
        datasets: [conll2003]
        spec:
          input:  {...}
          output: {...}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from spangraph.domain.spec import parse_spec
from spangraph.domain.types import ModelInfo, Spec
from spangraph.exceptions import ConfigError
from spangraph.infra.yaml_io import load_yaml
from spangraph.reactive import Signal

logger = logging.getLogger(__name__)


def _parse_model(name: str, raw: Any) -> ModelInfo:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Model '{name}' entry must be a mapping")
    spec = raw.get("spec") or {}
    if not isinstance(spec, Mapping):
        raise ConfigError(f"Model '{name}' spec must be a mapping with input/output")
    datasets = raw.get("datasets") or []
    if isinstance(datasets, str):
        datasets = [datasets]
    return ModelInfo(
        name=name,
        datasets=tuple(str(d) for d in datasets),
        input_spec=parse_spec(spec.get("input")),
        output_spec=parse_spec(spec.get("output")),
    )


class AppState:
    def __init__(
        self,
        datasets: Dict[str, Spec],
        models: Dict[str, ModelInfo],
        current_dataset: Optional[str] = None,
    ) -> None:
        self._datasets = dict(datasets)
        self._models = dict(models)

        if current_dataset is None and self._datasets:
            current_dataset = next(iter(self._datasets))
        if current_dataset is not None:
            self._check_dataset(current_dataset)
        self._current_dataset: Signal = Signal(current_dataset, name="current_dataset")

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]], current_dataset: Optional[str] = None) -> "AppState":
        raw = raw or {}
        if not isinstance(raw, Mapping):
            raise ConfigError("Spec catalog must be a mapping with 'datasets' and 'models'")

        datasets: Dict[str, Spec] = {}
        for name, entry in (raw.get("datasets") or {}).items():
            spec_raw = entry.get("spec") if isinstance(entry, Mapping) else None
            datasets[str(name)] = parse_spec(spec_raw)

        models = {str(name): _parse_model(str(name), entry) for name, entry in (raw.get("models") or {}).items()}
        return cls(datasets, models, current_dataset=current_dataset)

    @classmethod
    def from_yaml(cls, path: Path, current_dataset: Optional[str] = None) -> "AppState":
        state = cls.from_dict(load_yaml(path), current_dataset=current_dataset)
        logger.info(
            "Spec catalog loaded: %s (datasets=%d, models=%d)",
            path,
            len(state._datasets),
            len(state._models),
        )
        return state

    # -------------------------
    # datasets
    # -------------------------

    def _check_dataset(self, name: str) -> None:
        if name not in self._datasets:
            raise ConfigError(f"Unknown dataset '{name}'. Known: {sorted(self._datasets)}")

    def dataset_names(self) -> List[str]:
        return list(self._datasets)

    def get_dataset_spec(self, name: str) -> Spec:
        self._check_dataset(name)
        return self._datasets[name]

    @property
    def current_dataset_signal(self) -> Signal:
        return self._current_dataset

    @property
    def current_dataset(self) -> Optional[str]:
        return self._current_dataset.get()

    @current_dataset.setter
    def current_dataset(self, name: str) -> None:
        self._check_dataset(name)
        self._current_dataset.set(name)

    @property
    def current_dataset_spec(self) -> Spec:
        name = self.current_dataset
        return self._datasets[name] if name is not None else {}

    # -------------------------
    # models
    # -------------------------

    def model_names(self) -> List[str]:
        return list(self._models)

    def get_model_spec(self, model: str) -> ModelInfo:
        if model not in self._models:
            raise ConfigError(f"Unknown model '{model}'. Known: {sorted(self._models)}")
        return self._models[model]

    def model_infos(self) -> Dict[str, ModelInfo]:
        return dict(self._models)

    def compatible_models(self, dataset: Optional[str] = None) -> List[str]:
        """Models that list `dataset` (default: current); an empty list means any dataset."""
        dataset = dataset if dataset is not None else self.current_dataset
        return [
            name for name, info in self._models.items()
            if not info.datasets or dataset in info.datasets
        ]
