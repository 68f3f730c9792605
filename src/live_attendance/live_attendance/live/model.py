from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..attendance.model import AnnotatedSession, AttendanceSession
from ..core.constants import ALL_FILTER_VALUE


@dataclass(frozen=True)
class LiveFilter:
    """Department / work-location filter applied by the store. None or "all" means no filter."""

    department: Optional[str] = None
    work_location: Optional[str] = None

    @classmethod
    def from_params(cls, department: Optional[str] = None, work_location: Optional[str] = None) -> "LiveFilter":
        def _clean(value: Optional[str]) -> Optional[str]:
            value = (value or "").strip()
            if not value or value.lower() == ALL_FILTER_VALUE:
                return None
            return value

        return cls(department=_clean(department), work_location=_clean(work_location))


@dataclass(frozen=True)
class LiveSessionBatch:
    """What the store returns: today's sessions plus the server's current time."""

    sessions: tuple[AttendanceSession, ...]
    evaluation_instant: datetime


@dataclass(frozen=True)
class LiveSummary:
    total_active: int = 0
    working: int = 0
    on_break: int = 0
    late: int = 0
    overtime: int = 0
    incomplete: int = 0

    def __add__(self, other: "LiveSummary") -> "LiveSummary":
        if not isinstance(other, LiveSummary):
            return NotImplemented
        return LiveSummary(
            total_active=self.total_active + other.total_active,
            working=self.working + other.working,
            on_break=self.on_break + other.on_break,
            late=self.late + other.late,
            overtime=self.overtime + other.overtime,
            incomplete=self.incomplete + other.incomplete,
        )

    def to_dict(self) -> dict:
        return {
            "totalActive": self.total_active,
            "working": self.working,
            "onBreak": self.on_break,
            "late": self.late,
            "overtime": self.overtime,
            "incomplete": self.incomplete,
        }


@dataclass(frozen=True)
class LiveSnapshot:
    evaluation_instant: datetime
    summary: LiveSummary
    sessions: tuple[AnnotatedSession, ...] = ()
    inconsistent: tuple[AnnotatedSession, ...] = field(default_factory=tuple)
