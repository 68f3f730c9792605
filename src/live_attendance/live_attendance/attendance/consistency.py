from __future__ import annotations

from ..core.exceptions import InconsistentSessionError
from .model import AttendanceSession


def find_inconsistencies(session: AttendanceSession) -> list[str]:
    """Return the invariants a session snapshot breaks (empty when consistent).

    Nothing is corrected here: a session with issues is reported as-is and
    left out of the live counters.
    """
    issues: list[str] = []

    clock_in = session.clock_in_time
    clock_out = session.clock_out_time

    if clock_out is not None and clock_in is None:
        issues.append("clock-out recorded without clock-in")
    if clock_in is not None and clock_out is not None and clock_out < clock_in:
        issues.append("clock-out is before clock-in")
    if session.breaks and clock_in is None:
        issues.append("breaks recorded without clock-in")

    for b in session.breaks:
        if b.end_time is not None and b.end_time < b.start_time:
            issues.append(f"break starting {b.start_time:%H:%M} ends before it starts")

    if len(session.open_breaks) > 1:
        issues.append("more than one open break")

    ordered = sorted(session.breaks, key=lambda b: b.start_time)
    for prev, nxt in zip(ordered, ordered[1:]):
        # An open break runs until now, so anything after it overlaps.
        if prev.end_time is None or prev.end_time > nxt.start_time:
            issues.append(f"breaks starting {prev.start_time:%H:%M} and {nxt.start_time:%H:%M} overlap")

    return issues


def is_consistent(session: AttendanceSession) -> bool:
    return not find_inconsistencies(session)


def ensure_consistent(session: AttendanceSession) -> AttendanceSession:
    issues = find_inconsistencies(session)
    if issues:
        raise InconsistentSessionError(session.employee_id, issues)
    return session
