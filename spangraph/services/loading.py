"""Race-safe loading of derived data ("last issued wins").

Every run(key, op) is stamped with a new sequence number at call time and the
stamp is stored as the live ticket for `key`. When the operation finishes its
result is returned only if its stamp is still the live one; otherwise the
result belongs to a superseded call and run() resolves to None.

is_loading is True iff at least one key has a live ticket.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from spangraph.reactive import Signal

logger = logging.getLogger(__name__)

T = TypeVar("T")
Operation = Union[Awaitable[T], Callable[[], Awaitable[T]]]


class LoadingCoordinator:
    def __init__(
        self,
        *,
        is_loading: Optional[Signal] = None,
        cancel_superseded: bool = False,
        name: str = "",
    ) -> None:
        self.name = name
        self.cancel_superseded = cancel_superseded
        self.is_loading: Signal = is_loading if is_loading is not None else Signal(False, name=f"{name}.is_loading")

        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}
        self._futures: Dict[str, "asyncio.Future[Any]"] = {}

    # -------------------------
    # inspection
    # -------------------------

    def is_latest(self, key: str, seq: int) -> bool:
        return self._latest.get(key) == seq

    def pending_keys(self) -> List[str]:
        return list(self._latest)

    # -------------------------
    # issue / settle
    # -------------------------

    def run(self, key: str, operation: Operation) -> "asyncio.Task[Optional[T]]":
        """Start `operation` under `key` and return a task resolving to its result or None.

        Must be called with a running event loop. The ticket is stamped before
        this method returns, so issuance order equals call order.
        """
        loop = asyncio.get_running_loop()
        awaitable = operation() if callable(operation) else operation

        seq = next(self._counter)
        previous = self._futures.get(key)

        future = asyncio.ensure_future(awaitable, loop=loop)
        self._latest[key] = seq
        self._futures[key] = future
        self._refresh_busy()

        if previous is not None and not previous.done():
            logger.debug("[%s] %s #%d supersedes an in-flight call", self.name, key, seq)
            if self.cancel_superseded:
                previous.cancel()

        return loop.create_task(self._settle(key, seq, future))

    async def _settle(self, key: str, seq: int, future: "asyncio.Future[T]") -> Optional[T]:
        try:
            result = await future
        except asyncio.CancelledError:
            current = asyncio.current_task()
            outer_cancelled = current is not None and current.cancelling() > 0
            if not outer_cancelled and not self.is_latest(key, seq):
                logger.debug("[%s] %s #%d cancelled after being superseded", self.name, key, seq)
                return None
            self._release(key, seq)
            raise
        except Exception:
            self._release(key, seq)
            raise

        if not self.is_latest(key, seq):
            logger.debug("[%s] %s #%d finished after a newer call; result dropped", self.name, key, seq)
            return None

        self._release(key, seq)
        return result

    def discard(self, key: str) -> None:
        """Disown the live call for `key`; its result will be dropped."""
        seq = self._latest.pop(key, None)
        future = self._futures.pop(key, None)
        if seq is None:
            return
        logger.debug("[%s] %s #%d discarded", self.name, key, seq)
        if self.cancel_superseded and future is not None and not future.done():
            future.cancel()
        self._refresh_busy()

    def _release(self, key: str, seq: int) -> None:
        """Drop the ticket for `key` only while `seq` still owns it."""
        if not self.is_latest(key, seq):
            return
        del self._latest[key]
        self._futures.pop(key, None)
        self._refresh_busy()

    def _refresh_busy(self) -> None:
        self.is_loading.set(bool(self._latest))
