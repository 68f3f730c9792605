from __future__ import annotations

from typing import Protocol

from .model import LiveFilter, LiveSessionBatch


class LiveSessionRepository(Protocol):
    def fetch_live_sessions(self, live_filter: LiveFilter) -> LiveSessionBatch:
        """Today's sessions matching the filter plus the store's current time.

        Implementations bound the call with their own timeout and raise on
        failure; the caller treats any exception as a failed refresh.
        """

        raise NotImplementedError

    def fetch_employee_session(self, employee_id: str) -> LiveSessionBatch:
        """The employee's latest session for today (or still open from the
        previous day), at most one, plus the store's current time. Closed
        sessions are included."""

        raise NotImplementedError
