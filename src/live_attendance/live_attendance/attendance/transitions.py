"""Clock-in / break / clock-out commands on a session snapshot.

Commands are issued by the employee-facing action layer; here they are pure
functions that check the precondition and return the resulting session. The
live dashboard never calls them, it only classifies whatever the store holds.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from ..core.enums import SessionCommand, SessionStatus
from ..core.exceptions import InvalidTransitionError
from .model import AttendanceSession, BreakInterval

_ALLOWED_FROM: dict[SessionCommand, frozenset[SessionStatus]] = {
    SessionCommand.CLOCK_IN: frozenset({SessionStatus.NOT_STARTED}),
    SessionCommand.START_BREAK: frozenset({SessionStatus.ACTIVE}),
    SessionCommand.END_BREAK: frozenset({SessionStatus.ON_BREAK}),
    SessionCommand.CLOCK_OUT: frozenset({SessionStatus.ACTIVE, SessionStatus.ON_BREAK}),
}


def allowed_commands(status: SessionStatus) -> list[SessionCommand]:
    return [cmd for cmd, sources in _ALLOWED_FROM.items() if status in sources]


def _require(session: AttendanceSession, command: SessionCommand, message: str) -> None:
    if session.status not in _ALLOWED_FROM[command]:
        raise InvalidTransitionError(f"{message} (trạng thái hiện tại: {session.status.value})")


def _require_not_before(at: datetime, reference: datetime, message: str) -> None:
    if at < reference:
        raise InvalidTransitionError(message)


def clock_in(session: AttendanceSession, at: datetime) -> AttendanceSession:
    _require(session, SessionCommand.CLOCK_IN, "Bạn đã chấm công vào ca hôm nay rồi")
    return replace(session, clock_in_time=at, status=SessionStatus.ACTIVE)


def start_break(session: AttendanceSession, at: datetime) -> AttendanceSession:
    _require(session, SessionCommand.START_BREAK, "Chỉ có thể bắt đầu nghỉ khi đang làm việc")
    _require_not_before(at, session.clock_in_time, "Giờ bắt đầu nghỉ trước giờ vào ca")
    if session.breaks:
        _require_not_before(at, session.breaks[-1].end_time or at, "Giờ bắt đầu nghỉ trùng lần nghỉ trước")

    return replace(
        session,
        breaks=session.breaks + (BreakInterval(start_time=at),),
        status=SessionStatus.ON_BREAK,
    )


def _close_open_break(session: AttendanceSession, at: datetime) -> tuple[BreakInterval, ...]:
    breaks = list(session.breaks)
    for idx in range(len(breaks) - 1, -1, -1):
        if breaks[idx].is_open:
            _require_not_before(at, breaks[idx].start_time, "Giờ kết thúc nghỉ trước giờ bắt đầu nghỉ")
            breaks[idx] = replace(breaks[idx], end_time=at)
            break
    return tuple(breaks)


def end_break(session: AttendanceSession, at: datetime) -> AttendanceSession:
    _require(session, SessionCommand.END_BREAK, "Bạn không trong giờ nghỉ")
    if session.current_break is None:
        raise InvalidTransitionError("Không có lần nghỉ nào đang mở")
    return replace(session, breaks=_close_open_break(session, at), status=SessionStatus.ACTIVE)


def clock_out(session: AttendanceSession, at: datetime) -> AttendanceSession:
    _require(session, SessionCommand.CLOCK_OUT, "Bạn chưa chấm công vào ca hoặc đã tan ca")
    _require_not_before(at, session.clock_in_time, "Giờ tan ca trước giờ vào ca")
    return replace(
        session,
        breaks=_close_open_break(session, at),
        clock_out_time=at,
        status=SessionStatus.PRESENT,
    )


_COMMANDS = {
    SessionCommand.CLOCK_IN: clock_in,
    SessionCommand.START_BREAK: start_break,
    SessionCommand.END_BREAK: end_break,
    SessionCommand.CLOCK_OUT: clock_out,
}


def apply_command(session: AttendanceSession, command: SessionCommand, at: datetime) -> AttendanceSession:
    return _COMMANDS[SessionCommand(command)](session, at)
