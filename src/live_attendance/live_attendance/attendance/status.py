from __future__ import annotations

from datetime import datetime, timedelta

from ..core.enums import SCHEDULED_STATUSES, SessionStatus
from .model import AttendanceSession


def _last_live_day(session: AttendanceSession):
    # An overnight shift keeps its session live into the next calendar day.
    if session.shift is not None and session.shift.is_overnight:
        return session.work_date + timedelta(days=1)
    return session.work_date


def effective_status(session: AttendanceSession, evaluation_instant: datetime) -> SessionStatus:
    """Classify a session at the evaluation instant.

    The stored status is only trusted for days the scheduler marked
    (absent/holiday/weekend) with no clock-in. Everything else is derived from
    the clock-in, clock-out and break data, so an open session from an earlier
    day reads as incomplete even if nobody reconciled it yet.
    """
    if session.clock_in_time is None:
        if session.status in SCHEDULED_STATUSES:
            return session.status
        return SessionStatus.NOT_STARTED

    if session.clock_out_time is not None:
        return SessionStatus.PRESENT

    if _last_live_day(session) < evaluation_instant.date():
        return SessionStatus.INCOMPLETE

    if session.current_break is not None:
        return SessionStatus.ON_BREAK
    return SessionStatus.ACTIVE
