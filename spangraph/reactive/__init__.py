"""Explicit signal / derived-value / lifecycle primitives used by the modules."""

from .lifecycle import Scope
from .signals import Computed, Signal

__all__ = ["Computed", "Scope", "Signal"]
