"""Synchronous observer lists owned by each event producer."""

from typing import Callable, List


class Signal:
    """An ordered list of listeners notified synchronously on ``emit``.

    Listeners run in subscription order inside the producing call. Exceptions
    raised by a listener propagate to the producer's caller.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: List[Callable[..., None]] = []

    def subscribe(self, listener: Callable[..., None]) -> Callable[..., None]:
        """Add ``listener``; subscribing the same callable twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Callable[..., None]) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    def emit(self, *args) -> None:
        # Snapshot so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(*args)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"Signal({self.name!r}, listeners={len(self._listeners)})"
