"""Debouncing of file-change bursts into single rebuild requests."""

from __future__ import annotations

import threading
import time
from typing import Callable


class Debouncer:
    """Coalesces a burst of change notifications into one trigger.

    ``notify`` may be called from any thread (the watchdog observer);
    ``consume`` is polled by the single preview loop. At most one trigger
    is ever pending, however many notifications arrive.
    """

    def __init__(self, window: float, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._pending = False
        self._last_event = 0.0
        self.notifications = 0

    def notify(self) -> None:
        with self._lock:
            self._pending = True
            self._last_event = self._clock()
            self.notifications += 1

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def ready(self) -> bool:
        """True once the window has passed since the last notification."""
        with self._lock:
            return self._is_ready()

    def consume(self) -> bool:
        """Clear and return the pending trigger if it is ready."""
        with self._lock:
            if not self._is_ready():
                return False
            self._pending = False
            return True

    def _is_ready(self) -> bool:
        return self._pending and self._clock() - self._last_event >= self.window
