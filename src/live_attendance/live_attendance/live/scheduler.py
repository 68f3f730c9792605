from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        raise NotImplementedError


class Scheduler(Protocol):
    """Runs a callback once after a delay (seconds). The returned handle cancels it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class _ThreadingHandle:
    def __init__(self, scheduler: "ThreadingScheduler", callback: Callable[[], None]):
        self._scheduler = scheduler
        self._callback = callback
        self._cancelled = False
        self.timer: threading.Timer | None = None

    def cancel(self) -> None:
        # Must not take scheduler.lock: callers may hold a controller lock.
        self._cancelled = True
        if self.timer is not None:
            self.timer.cancel()

    def run(self) -> None:
        with self._scheduler.lock:
            if self._cancelled:
                return
            self._cancelled = True
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled callback failed")


class ThreadingScheduler(Scheduler):
    """threading.Timer based scheduler.

    All callbacks run under one lock, so they execute one at a time in the
    order they fire, like a single-threaded event loop.
    """

    def __init__(self):
        self.lock = threading.RLock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ThreadingHandle(self, callback)
        timer = threading.Timer(max(float(delay), 0.0), handle.run)
        timer.daemon = True
        handle.timer = timer
        timer.start()
        return handle
