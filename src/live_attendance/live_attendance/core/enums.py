from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    """Trạng thái phiên chấm công trong ngày của một nhân viên."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ON_BREAK = "on_break"
    INCOMPLETE = "incomplete"
    PRESENT = "present"
    ABSENT = "absent"
    HOLIDAY = "holiday"
    WEEKEND = "weekend"


class SessionCommand(str, Enum):
    """Lệnh chấm công do lớp thao tác của nhân viên phát ra."""

    CLOCK_IN = "clock_in"
    START_BREAK = "start_break"
    END_BREAK = "end_break"
    CLOCK_OUT = "clock_out"


# Pre-seeded by the scheduler; kept as-is while no clock-in exists.
SCHEDULED_STATUSES = frozenset({SessionStatus.ABSENT, SessionStatus.HOLIDAY, SessionStatus.WEEKEND})
