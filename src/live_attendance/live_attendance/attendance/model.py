from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_EXPECTED_WORK_HOURS
from ..core.enums import SessionStatus
from ..shifts.model import Shift


@dataclass(frozen=True)
class BreakInterval:
    """Một lần nghỉ giữa ca. end_time is None while the break is still running."""

    start_time: datetime
    end_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True)
class AttendanceSession:
    """Thực thể miền (domain): Phiên chấm công của một nhân viên trong một ngày.

    Presence of clock-in, clock-out and breaks is explicit: the optional
    fields are None when the event has not happened, breaks is an ordered
    tuple (possibly empty). The stored status is what the store reported; the
    status used by the dashboard is derived by attendance.status.
    """

    employee_id: str
    work_date: date
    status: SessionStatus = SessionStatus.NOT_STARTED
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    breaks: tuple[BreakInterval, ...] = field(default_factory=tuple)
    shift: Optional[Shift] = None

    full_name: str = ""
    department: Optional[str] = None
    work_location: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_in_time is not None and self.clock_out_time is None

    @property
    def open_breaks(self) -> tuple[BreakInterval, ...]:
        return tuple(b for b in self.breaks if b.is_open)

    @property
    def current_break(self) -> Optional[BreakInterval]:
        open_breaks = self.open_breaks
        return open_breaks[-1] if open_breaks else None


@dataclass(frozen=True)
class DerivedAnnotation:
    """Read-model: values computed from a session at one evaluation instant (never persisted)."""

    is_late: bool = False
    late_minutes: int = 0
    is_in_overtime: bool = False
    overtime_minutes: int = 0
    worked_minutes: int = 0
    break_minutes: int = 0
    expected_hours: float = DEFAULT_EXPECTED_WORK_HOURS
    final_overtime_minutes: int = 0
    data_inconsistent: bool = False
    issues: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnnotatedSession:
    session: AttendanceSession
    status: SessionStatus
    annotation: DerivedAnnotation

    @property
    def employee_id(self) -> str:
        return self.session.employee_id
