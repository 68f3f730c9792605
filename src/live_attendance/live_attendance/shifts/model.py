from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.datetime_utils import parse_time_of_day
from ..core.constants import DEFAULT_LATE_GRACE_MINUTES


@dataclass(frozen=True)
class Shift:
    """Thực thể miền (domain): Ca làm việc (Shift).

    start_time/end_time are kept as the wall-clock strings the schedule stores
    ("HH:MM"); they are parsed when a calculation needs them so that a bad
    value only disables that calculation.
    """

    shift_id: int
    shift_name: str
    start_time: Optional[str]
    end_time: Optional[str]
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES

    @property
    def is_overnight(self) -> bool:
        start = parse_time_of_day(self.start_time)
        end = parse_time_of_day(self.end_time)
        if start is None or end is None:
            return False
        return end < start
