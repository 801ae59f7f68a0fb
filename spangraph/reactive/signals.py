"""Minimal observable values with explicit dependencies.

- Signal   : settable value; set() notifies subscribers synchronously, in subscription order
- Computed : lazily recomputed, cached value derived from declared dependencies

A value is considered changed unless the new object *is* the current one, so
replacing a dict with an equal copy still notifies.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, Optional, Sequence, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


class _Observable(Generic[T]):
    def __init__(self, name: str = "") -> None:
        self.name = name
        self._subscribers: List[Subscriber] = []

    def get(self) -> T:
        raise NotImplementedError

    @property
    def value(self) -> T:
        return self.get()

    def subscribe(self, callback: Subscriber, *, immediate: bool = False) -> Unsubscribe:
        """Register `callback(value)`; with immediate=True it also fires once right away."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        if immediate:
            callback(self.get())
        return unsubscribe

    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _notify(self, value: T) -> None:
        # copy: a callback may unsubscribe itself
        for cb in list(self._subscribers):
            cb(value)


class Signal(_Observable[T]):
    def __init__(self, value: T, name: str = "") -> None:
        super().__init__(name)
        self._value = value

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value is self._value:
            return
        self._value = value
        logger.debug("signal %s changed", self.name or hex(id(self)))
        self._notify(value)


class Computed(_Observable[T]):
    """Derived value cached until one of `deps` notifies.

    Without subscribers the recomputation waits for the next get();
    with subscribers it happens on notification so they receive the new value.
    """

    def __init__(
        self,
        fn: Callable[[], T],
        deps: Sequence[Union[Signal, "Computed"]],
        name: str = "",
    ) -> None:
        super().__init__(name)
        self._fn = fn
        self._dirty = True
        self._value: Optional[T] = None
        self._unsubs: List[Unsubscribe] = [d.subscribe(self._invalidate) for d in deps]

    @property
    def dirty(self) -> bool:
        return self._dirty

    def get(self) -> T:
        if self._dirty:
            self._value = self._fn()
            self._dirty = False
        return self._value  # type: ignore[return-value]

    def _invalidate(self, _changed: object = None) -> None:
        self._dirty = True
        if self._subscribers:
            self._notify(self.get())

    def dispose(self) -> None:
        """Stop listening to dependencies."""
        for unsub in self._unsubs:
            unsub()
        self._unsubs = []
