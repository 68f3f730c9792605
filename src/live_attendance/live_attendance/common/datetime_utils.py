from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..core.constants import CLOCK_PLACEHOLDER

logger = logging.getLogger(__name__)

_WALL_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier. Calculators never call it;
    they receive the evaluation instant as a parameter.
    """
    return datetime.now()


def parse_time_of_day(time_string: Optional[str]) -> Optional[time]:
    """Parse "HH:MM" (or "HH:MM:SS") into a time, None when malformed."""
    if not isinstance(time_string, str):
        return None

    match = _WALL_CLOCK_RE.match(time_string)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return time(hour=hours, minute=minutes, second=seconds)


def parse_wall_clock(time_string: Optional[str], anchor: Union[date, datetime, None]) -> Optional[datetime]:
    """Interpret a wall-clock string as that time on the anchor's calendar day.

    The anchor can be a date or a datetime; a datetime's tzinfo is kept so the
    result compares with instants in the same zone. Returns None instead of
    raising on malformed input: callers skip the calculation.
    """
    if anchor is None:
        return None

    parsed = parse_time_of_day(time_string)
    if parsed is None:
        logger.debug("Cannot parse wall-clock value %r", time_string)
        return None

    if isinstance(anchor, datetime):
        return datetime.combine(anchor.date(), parsed, tzinfo=anchor.tzinfo)
    return datetime.combine(anchor, parsed)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored (negative when end < start)."""
    return int((end - start) // timedelta(minutes=1))


def format_duration(minutes: Optional[int]) -> str:
    """Format minutes as "2h 30m", "2h" or "45m"."""
    if not minutes or minutes <= 0:
        return "0m"

    minutes = int(minutes)
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def format_clock_time(instant: Union[datetime, str, None], placeholder: str = CLOCK_PLACEHOLDER) -> str:
    """Format an instant as 12-hour "HH:MM AM/PM"."""
    if isinstance(instant, str):
        try:
            instant = datetime.fromisoformat(instant.strip())
        except ValueError:
            return placeholder

    if not isinstance(instant, datetime):
        return placeholder

    suffix = "AM" if instant.hour < 12 else "PM"
    hour = instant.hour % 12 or 12
    return f"{hour:02d}:{instant.minute:02d} {suffix}"
