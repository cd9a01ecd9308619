"""Marshal callbacks from background threads onto one consumer thread."""

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class CrossThreadDispatcher:
    """Single-consumer work queue.

    Any thread may enqueue. One consumer thread calls drain() once per tick
    (for example from a UI timer); every callback queued before the drain
    started runs to completion in FIFO order. Callbacks enqueued while a drain
    is running are picked up by the next drain.
    """

    def __init__(self):
        self._queue: deque[tuple[Callable, tuple]] = deque()
        self._lock = threading.Lock()
        self._consumer: int | None = None

    def bind_consumer(self) -> None:
        """Make the calling thread the only thread allowed to drain."""
        with self._lock:
            self._consumer = threading.get_ident()

    def enqueue(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule callback(*args) to run on the consumer thread."""
        with self._lock:
            self._queue.append((callback, args))

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def drain(self) -> int:
        """Run the queued callbacks and return how many ran.

        Raises:
            RuntimeError: If called from a thread other than the consumer.
        """
        with self._lock:
            current = threading.get_ident()
            if self._consumer is None:
                self._consumer = current
            elif self._consumer != current:
                raise RuntimeError("CrossThreadDispatcher drained from a non-consumer thread")

            batch = self._queue
            self._queue = deque()

        for callback, args in batch:
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Dispatched callback {callback!r} failed")

        return len(batch)
