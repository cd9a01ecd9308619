"""Observer channels for log and status notifications."""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from .dispatcher import CrossThreadDispatcher


class EventChannel:
    """A named stream of string notifications.

    Observers attach only through subscribe(), so every subscription is
    scoped and removed when its block exits.
    """

    def __init__(self, name: str, dispatcher: CrossThreadDispatcher | None = None):
        self.name = name
        self.dispatcher = dispatcher
        self._subscribers: list[Callable[[str], None]] = []
        self._lock = threading.Lock()

    def _add(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def _remove(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @contextmanager
    def subscribe(self, callback: Callable[[str], None]) -> Iterator[None]:
        """Keep callback subscribed for the duration of the with block."""
        self._add(callback)
        try:
            yield
        finally:
            self._remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def emit(self, message: str) -> None:
        """Deliver message to every current subscriber.

        With a dispatcher attached, delivery is queued for its consumer thread.
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            if self.dispatcher is not None:
                self.dispatcher.enqueue(callback, message)
            else:
                callback(message)
