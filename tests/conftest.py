from __future__ import annotations

from datetime import datetime

import pytest


class _ManualHandle:
    def __init__(self, when: float, seq: int, callback):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-clock scheduler: timers only fire inside advance()."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._timers: list[_ManualHandle] = []

    def call_later(self, delay, callback):
        self._seq += 1
        handle = _ManualHandle(self.now + float(delay), self._seq, callback)
        self._timers.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            timer.cancelled = True
            self.now = timer.when
            timer.callback()
        self.now = target

    @property
    def pending(self) -> list[_ManualHandle]:
        return [t for t in self._timers if not t.cancelled]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 17, 0)


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()
