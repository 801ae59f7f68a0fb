"""Span graph module: race-safe prediction loading and annotation normalization.

Public entrypoints:
- normalize(record, spec), should_display(spec)
- LoadingCoordinator
- SpanGraphModule / SpanGraphGoldModule
"""

__version__ = "0.1.0"

from .domain import normalize, parse_spec, should_display
from .services.loading import LoadingCoordinator
from .services.span_graph_module import SpanGraphGoldModule, SpanGraphModule

__all__ = [
    "__version__",
    "normalize",
    "parse_spec",
    "should_display",
    "LoadingCoordinator",
    "SpanGraphGoldModule",
    "SpanGraphModule",
]
