"""Shift-relative calculations for one attendance session.

Every function takes the evaluation instant explicitly (the live view passes
the store's server time) and never reads the local clock. All of them are
total: a missing shift, clock-in or an unparseable shift time yields the
"not late / no overtime / zero minutes" result instead of an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..attendance.consistency import find_inconsistencies
from ..attendance.model import AttendanceSession, DerivedAnnotation
from ..common.datetime_utils import minutes_between, parse_time_of_day, parse_wall_clock
from ..core.constants import DEFAULT_EXPECTED_WORK_HOURS
from .model import Shift

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Lateness:
    is_late: bool = False
    late_minutes: int = 0
    shift_start: Optional[datetime] = None


@dataclass(frozen=True)
class Overtime:
    is_in_overtime: bool = False
    overtime_minutes: int = 0
    shift_end: Optional[datetime] = None


@dataclass(frozen=True)
class WorkMinutes:
    worked_minutes: int = 0
    break_minutes: int = 0


def anchor_shift_start(shift: Shift, clock_in: datetime) -> Optional[datetime]:
    """Shift start on the clock-in's day.

    Clocking in after midnight for an overnight shift (before the shift's end
    time of day) belongs to the shift that started the previous evening.
    """
    start = parse_wall_clock(shift.start_time, clock_in)
    if start is None:
        return None

    if shift.is_overnight:
        end_of_day = parse_time_of_day(shift.end_time)
        if clock_in.time() < end_of_day:
            start -= _ONE_DAY
    return start


def anchor_shift_end(shift: Shift, clock_in: datetime, instant: datetime) -> Optional[datetime]:
    """End of the shift the session belongs to.

    A day shift ends on the instant's calendar day. An overnight shift ends
    a shift length after its anchored start, so the end follows the
    clock-in rather than the time of day being evaluated.
    """
    if shift.is_overnight:
        start = anchor_shift_start(shift, clock_in)
        if start is None:
            return None
        return start + timedelta(hours=calculate_expected_hours(shift))
    return parse_wall_clock(shift.end_time, instant)


def calculate_lateness(session: AttendanceSession) -> Lateness:
    """Lateness depends on clock-in only, so it is fixed for the whole session."""
    shift = session.shift
    clock_in = session.clock_in_time
    if shift is None or clock_in is None:
        return Lateness()

    start = anchor_shift_start(shift, clock_in)
    if start is None:
        return Lateness()

    threshold = start + timedelta(minutes=max(int(shift.grace_minutes or 0), 0))
    if clock_in > threshold:
        return Lateness(is_late=True, late_minutes=minutes_between(threshold, clock_in), shift_start=start)
    return Lateness(shift_start=start)


def calculate_overtime(session: AttendanceSession, evaluation_instant: datetime) -> Overtime:
    """Overtime of a session that is still clocked in, measured up to the evaluation instant."""
    shift = session.shift
    if shift is None or session.clock_in_time is None:
        return Overtime()

    end = anchor_shift_end(shift, session.clock_in_time, evaluation_instant)
    if end is None:
        return Overtime()

    if session.clock_out_time is None and evaluation_instant > end:
        return Overtime(
            is_in_overtime=True,
            overtime_minutes=max(minutes_between(end, evaluation_instant), 0),
            shift_end=end,
        )
    return Overtime(shift_end=end)


def calculate_final_overtime(session: AttendanceSession) -> int:
    """Overtime frozen at clock-out; 0 for sessions that are still open."""
    shift = session.shift
    clock_out = session.clock_out_time
    if shift is None or session.clock_in_time is None or clock_out is None:
        return 0

    end = anchor_shift_end(shift, session.clock_in_time, clock_out)
    if end is None:
        return 0
    return max(minutes_between(end, clock_out), 0)


def calculate_expected_hours(shift: Optional[Shift]) -> float:
    if shift is None:
        return DEFAULT_EXPECTED_WORK_HOURS

    start = parse_time_of_day(shift.start_time)
    end = parse_time_of_day(shift.end_time)
    if start is None or end is None:
        return DEFAULT_EXPECTED_WORK_HOURS

    start_s = start.hour * 3600 + start.minute * 60 + start.second
    end_s = end.hour * 3600 + end.minute * 60 + end.second
    if end_s < start_s:
        end_s += 24 * 3600
    return (end_s - start_s) / 3600


def calculate_work_minutes(session: AttendanceSession, evaluation_instant: datetime) -> WorkMinutes:
    """Worked and break minutes between clock-in and clock-out (or the evaluation instant)."""
    clock_in = session.clock_in_time
    if clock_in is None:
        return WorkMinutes()

    window_end = session.clock_out_time or evaluation_instant
    if window_end <= clock_in:
        return WorkMinutes()

    on_break = timedelta(0)
    for b in session.breaks:
        b_start = max(b.start_time, clock_in)
        b_end = min(b.end_time or evaluation_instant, window_end)
        if b_end > b_start:
            on_break += b_end - b_start

    worked = max((window_end - clock_in) - on_break, timedelta(0))
    return WorkMinutes(
        worked_minutes=int(worked // timedelta(minutes=1)),
        break_minutes=int(on_break // timedelta(minutes=1)),
    )


def annotate(session: AttendanceSession, evaluation_instant: datetime) -> DerivedAnnotation:
    issues = find_inconsistencies(session)
    if issues:
        logger.warning("Session of %s on %s is inconsistent: %s", session.employee_id, session.work_date, "; ".join(issues))
        return DerivedAnnotation(
            expected_hours=calculate_expected_hours(session.shift),
            data_inconsistent=True,
            issues=tuple(issues),
        )

    lateness = calculate_lateness(session)
    overtime = calculate_overtime(session, evaluation_instant)
    work = calculate_work_minutes(session, evaluation_instant)

    return DerivedAnnotation(
        is_late=lateness.is_late,
        late_minutes=lateness.late_minutes,
        is_in_overtime=overtime.is_in_overtime,
        overtime_minutes=overtime.overtime_minutes,
        worked_minutes=work.worked_minutes,
        break_minutes=work.break_minutes,
        expected_hours=calculate_expected_hours(session.shift),
        final_overtime_minutes=calculate_final_overtime(session),
    )
