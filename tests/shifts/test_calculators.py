from __future__ import annotations

from datetime import date, datetime

import pytest

from src.live_attendance.live_attendance.attendance.model import AttendanceSession, BreakInterval
from src.live_attendance.live_attendance.core.enums import SessionStatus
from src.live_attendance.live_attendance.shifts.calculators import (
    annotate,
    calculate_expected_hours,
    calculate_final_overtime,
    calculate_lateness,
    calculate_overtime,
    calculate_work_minutes,
)
from src.live_attendance.live_attendance.shifts.model import Shift

DAY = date(2026, 2, 2)

OFFICE = Shift(1, "Hành chính", "09:00", "18:00")
NIGHT = Shift(3, "Ca đêm", "22:00", "06:00", grace_minutes=10)


def _session(clock_in=None, clock_out=None, breaks=(), shift=OFFICE, work_date=DAY):
    return AttendanceSession(
        employee_id="EMP001",
        work_date=work_date,
        status=SessionStatus.ACTIVE if clock_in else SessionStatus.NOT_STARTED,
        clock_in_time=clock_in,
        clock_out_time=clock_out,
        breaks=tuple(breaks),
        shift=shift,
    )


def test_lateness_after_shift_start():
    lateness = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 9, 17)))

    assert lateness.is_late is True
    assert lateness.late_minutes == 17
    assert lateness.shift_start == datetime(2026, 2, 2, 9, 0)


def test_clock_in_on_the_minute_is_not_late():
    lateness = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 9, 0)))

    assert lateness.is_late is False
    assert lateness.late_minutes == 0


def test_early_clock_in_is_not_late():
    assert calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 8, 40))).is_late is False


def test_lateness_is_counted_after_grace_period():
    shift = Shift(2, "Ca sáng", "06:00", "14:00", grace_minutes=5)

    within_grace = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 6, 5), shift=shift))
    after_grace = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 6, 12), shift=shift))

    assert within_grace.is_late is False
    assert after_grace.is_late is True
    assert after_grace.late_minutes == 7


def test_overnight_clock_in_after_midnight_uses_previous_evening():
    lateness = calculate_lateness(_session(clock_in=datetime(2026, 2, 3, 0, 30), shift=NIGHT))

    assert lateness.shift_start == datetime(2026, 2, 2, 22, 0)
    assert lateness.is_late is True
    assert lateness.late_minutes == 140


def test_overnight_clock_in_in_the_evening():
    lateness = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 22, 15), shift=NIGHT))

    assert lateness.is_late is True
    assert lateness.late_minutes == 5


@pytest.mark.parametrize(
    "shift",
    [None, Shift(9, "Lỗi", "abc", "18:00"), Shift(9, "Trống", None, None)],
)
def test_lateness_is_false_without_a_usable_shift(shift):
    lateness = calculate_lateness(_session(clock_in=datetime(2026, 2, 2, 11, 0), shift=shift))

    assert lateness.is_late is False
    assert lateness.late_minutes == 0


def test_lateness_without_clock_in():
    assert calculate_lateness(_session()).is_late is False


def test_overtime_while_still_clocked_in():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 0))

    overtime = calculate_overtime(session, datetime(2026, 2, 2, 18, 45))

    assert overtime.is_in_overtime is True
    assert overtime.overtime_minutes == 45
    assert overtime.shift_end == datetime(2026, 2, 2, 18, 0)


def test_no_overtime_before_shift_end():
    overtime = calculate_overtime(_session(clock_in=datetime(2026, 2, 2, 9, 0)), datetime(2026, 2, 2, 17, 59))

    assert overtime.is_in_overtime is False
    assert overtime.overtime_minutes == 0


def test_no_live_overtime_after_clock_out():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 0), clock_out=datetime(2026, 2, 2, 19, 0))

    overtime = calculate_overtime(session, datetime(2026, 2, 2, 20, 0))

    assert overtime.is_in_overtime is False
    assert overtime.overtime_minutes == 0
    assert calculate_final_overtime(session) == 60


def test_final_overtime_is_zero_for_open_or_early_sessions():
    assert calculate_final_overtime(_session(clock_in=datetime(2026, 2, 2, 9, 0))) == 0
    early = _session(clock_in=datetime(2026, 2, 2, 9, 0), clock_out=datetime(2026, 2, 2, 17, 30))
    assert calculate_final_overtime(early) == 0


def test_overnight_overtime_the_next_morning():
    session = _session(clock_in=datetime(2026, 2, 2, 22, 0), shift=NIGHT)

    assert calculate_overtime(session, datetime(2026, 2, 2, 23, 30)).is_in_overtime is False
    assert calculate_overtime(session, datetime(2026, 2, 3, 5, 0)).is_in_overtime is False

    morning = calculate_overtime(session, datetime(2026, 2, 3, 7, 0))
    assert morning.is_in_overtime is True
    assert morning.overtime_minutes == 60


def test_early_clock_in_for_night_shift_is_not_overtime_before_it_starts():
    session = _session(clock_in=datetime(2026, 2, 2, 21, 40), shift=NIGHT)

    overtime = calculate_overtime(session, datetime(2026, 2, 2, 21, 50))

    assert overtime.is_in_overtime is False
    assert overtime.overtime_minutes == 0
    assert overtime.shift_end == datetime(2026, 2, 3, 6, 0)


def test_night_shift_left_open_keeps_accruing_overtime_the_next_evening():
    session = _session(clock_in=datetime(2026, 2, 2, 22, 0), shift=NIGHT)

    overtime = calculate_overtime(session, datetime(2026, 2, 3, 23, 0))

    assert overtime.is_in_overtime is True
    assert overtime.shift_end == datetime(2026, 2, 3, 6, 0)
    assert overtime.overtime_minutes == 17 * 60


def test_night_shift_clocked_in_after_midnight_ends_that_morning():
    session = _session(clock_in=datetime(2026, 2, 3, 0, 30), shift=NIGHT)

    overtime = calculate_overtime(session, datetime(2026, 2, 3, 6, 20))

    assert overtime.shift_end == datetime(2026, 2, 3, 6, 0)
    assert overtime.overtime_minutes == 20


def test_final_overtime_of_night_shift_uses_its_own_end():
    session = _session(
        clock_in=datetime(2026, 2, 2, 22, 0),
        clock_out=datetime(2026, 2, 3, 6, 45),
        shift=NIGHT,
    )

    assert calculate_final_overtime(session) == 45

    early_out = _session(
        clock_in=datetime(2026, 2, 2, 21, 30),
        clock_out=datetime(2026, 2, 2, 23, 0),
        shift=NIGHT,
    )
    assert calculate_final_overtime(early_out) == 0


def test_overtime_without_shift():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 0), shift=None)

    assert calculate_overtime(session, datetime(2026, 2, 2, 23, 0)).is_in_overtime is False


@pytest.mark.parametrize(
    "shift, expected",
    [
        (OFFICE, 9.0),
        (NIGHT, 8.0),
        (Shift(4, "Nửa ca", "08:00", "12:30"), 4.5),
        (None, 8.0),
        (Shift(9, "Lỗi", "xx", "18:00"), 8.0),
    ],
)
def test_expected_hours(shift, expected):
    assert calculate_expected_hours(shift) == pytest.approx(expected)


def test_work_minutes_excludes_closed_and_open_breaks():
    session = _session(
        clock_in=datetime(2026, 2, 2, 9, 0),
        breaks=[
            BreakInterval(datetime(2026, 2, 2, 10, 0), datetime(2026, 2, 2, 10, 15)),
            BreakInterval(datetime(2026, 2, 2, 12, 0)),
        ],
    )

    work = calculate_work_minutes(session, datetime(2026, 2, 2, 12, 30))

    assert work.break_minutes == 45
    assert work.worked_minutes == 3 * 60 + 30 - 45


def test_work_minutes_stop_at_clock_out():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 0), clock_out=datetime(2026, 2, 2, 17, 0))

    work = calculate_work_minutes(session, datetime(2026, 2, 2, 23, 0))

    assert work.worked_minutes == 8 * 60
    assert work.break_minutes == 0


def test_work_minutes_without_clock_in():
    work = calculate_work_minutes(_session(), datetime(2026, 2, 2, 12, 0))

    assert (work.worked_minutes, work.break_minutes) == (0, 0)


def test_annotate_consistent_session():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 17))

    annotation = annotate(session, datetime(2026, 2, 2, 10, 17))

    assert annotation.is_late is True
    assert annotation.late_minutes == 17
    assert annotation.is_in_overtime is False
    assert annotation.overtime_minutes == 0
    assert annotation.worked_minutes == 60
    assert annotation.expected_hours == pytest.approx(9.0)
    assert annotation.data_inconsistent is False
    assert annotation.issues == ()


def test_annotate_flags_inconsistent_session_and_skips_calculations(caplog):
    session = _session(clock_in=datetime(2026, 2, 2, 9, 30), clock_out=datetime(2026, 2, 2, 9, 0))

    with caplog.at_level("WARNING"):
        annotation = annotate(session, datetime(2026, 2, 2, 10, 0))

    assert annotation.data_inconsistent is True
    assert "clock-out is before clock-in" in annotation.issues
    assert annotation.is_late is False
    assert annotation.worked_minutes == 0
    assert "EMP001" in caplog.text


def test_annotation_is_reproducible_for_the_same_instant():
    session = _session(clock_in=datetime(2026, 2, 2, 9, 0))
    instant = datetime(2026, 2, 2, 19, 0)

    assert annotate(session, instant) == annotate(session, instant)
