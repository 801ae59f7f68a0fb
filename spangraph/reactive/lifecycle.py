from __future__ import annotations

import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Cleanup = Callable[[], None]


class Scope:
    """Registered cleanup actions, run exactly once in reverse order.

    close() is idempotent. Every cleanup runs even if an earlier one fails;
    the first failure is re-raised after the rest have run.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cleanups: List[Cleanup] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, cleanup: Cleanup) -> Cleanup:
        """Register a cleanup; on an already closed scope it runs immediately."""
        if self._closed:
            cleanup()
            return cleanup
        self._cleanups.append(cleanup)
        return cleanup

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        first_error: Optional[Exception] = None
        while self._cleanups:
            fn = self._cleanups.pop()
            try:
                fn()
            except Exception as e:
                logger.exception("cleanup failed in scope %s", self.name or hex(id(self)))
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def __enter__(self) -> "Scope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
