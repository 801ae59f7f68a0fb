from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from spangraph.domain.types import Annotations, IndexedInput
from spangraph.reactive import Signal
from spangraph.services.loading import LoadingCoordinator

logger = logging.getLogger(__name__)

PREDS_KEY = "getPreds"

FetchAndNormalize = Callable[[IndexedInput], Awaitable[Annotations]]


class SelectionService:
    """Owns the primary selection (an IndexedInput or None)."""

    def __init__(self) -> None:
        self.primary_selection: Signal = Signal(None, name="primary_selection")

    @property
    def primary_selected_input_data(self) -> Optional[IndexedInput]:
        return self.primary_selection.get()

    def select(self, inp: IndexedInput) -> None:
        self.primary_selection.set(inp)

    def clear(self) -> None:
        self.primary_selection.set(None)


class SelectionReactor:
    """Runs a fetch-and-normalize cycle on every primary selection change.

    - fires once on start() with the current selection, then on every change
    - None clears the visible state synchronously and disowns any live fetch
    - otherwise the fetch goes through the coordinator under PREDS_KEY and
      only the last issued one reaches on_commit
    """

    def __init__(
        self,
        selection: Signal,
        coordinator: LoadingCoordinator,
        fetch_and_normalize: FetchAndNormalize,
        *,
        on_commit: Callable[[Annotations], None],
        on_clear: Callable[[], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        key: str = PREDS_KEY,
    ) -> None:
        self.key = key
        self._selection = selection
        self._coordinator = coordinator
        self._fetch = fetch_and_normalize
        self._on_commit = on_commit
        self._on_clear = on_clear
        self._on_error = on_error

        self._tasks: Set["asyncio.Task[None]"] = set()
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._selection.subscribe(self._on_selection, immediate=True)

    def stop(self) -> None:
        """Unsubscribe and drop every outstanding fetch; nothing commits afterwards."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._coordinator.discard(self.key)
        for task in list(self._tasks):
            task.cancel()

    def _on_selection(self, inp: Optional[IndexedInput]) -> None:
        self._generation += 1
        if inp is None:
            self._coordinator.discard(self.key)
            self._on_clear()
            return

        settle = self._coordinator.run(self.key, lambda: self._fetch(inp))
        task = asyncio.get_running_loop().create_task(self._apply(inp, settle, self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _apply(
        self,
        inp: IndexedInput,
        settle: "asyncio.Task[Optional[Annotations]]",
        generation: int,
    ) -> None:
        try:
            annotations = await settle
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._generation:
                logger.debug("superseded fetch for input %s failed: %s", inp.id, e)
                return
            logger.exception("prediction fetch failed for input %s", inp.id)
            if self._on_error is not None:
                self._on_error(e)
            return

        if annotations is None:
            return
        self._on_commit(annotations)

    async def drain(self) -> None:
        """Wait until every fetch issued so far has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
