#  spangraph/cli_normalize.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from spangraph.exceptions import ConfigError, RecordDataError, SpecLoadError
from spangraph.infra.yaml_io import load_yaml, save_yaml
from spangraph.services.app_state import AppState
from spangraph.domain.normalizer import annotations_to_dict, normalize
from spangraph.domain.spec import parse_spec


def _load_record(path: Path) -> Any:
    # YAML is a superset of JSON, so one loader covers both
    return load_yaml(path)


def _resolve_spec(args: argparse.Namespace):
    raw = load_yaml(Path(args.spec))
    if args.dataset or args.model:
        state = AppState.from_dict(raw)
        if args.model:
            return state.get_model_spec(args.model).output_spec
        return state.get_dataset_spec(args.dataset)
    return parse_spec(raw)


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Normalize a record into span graph annotations.")
    ap.add_argument("--record", required=True, help="record file (JSON or YAML)")
    ap.add_argument("--spec", required=True, help="spec YAML: a bare spec, or a catalog with --dataset/--model")
    ap.add_argument("--dataset", default=None, help="dataset name inside a spec catalog")
    ap.add_argument("--model", default=None, help="model name inside a spec catalog (uses its output spec)")
    ap.add_argument("--out", default=None, help="write YAML here instead of printing JSON")
    args = ap.parse_args(argv)

    try:
        spec = _resolve_spec(args)
        record = _load_record(Path(args.record))
        if not isinstance(record, dict):
            raise RecordDataError(f"Record file must hold a mapping, got {type(record).__name__}")
        result = annotations_to_dict(normalize(record, spec))
    except (ConfigError, RecordDataError, SpecLoadError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.out:
        save_yaml(Path(args.out), result)
    else:
        print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
