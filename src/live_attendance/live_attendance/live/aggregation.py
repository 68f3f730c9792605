from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..attendance.model import AnnotatedSession, AttendanceSession
from ..attendance.status import effective_status
from ..core.enums import SessionStatus
from ..shifts.calculators import annotate
from .model import LiveSessionBatch, LiveSnapshot, LiveSummary


def annotate_session(session: AttendanceSession, evaluation_instant: datetime) -> AnnotatedSession:
    return AnnotatedSession(
        session=session,
        status=effective_status(session, evaluation_instant),
        annotation=annotate(session, evaluation_instant),
    )


def annotate_sessions(sessions: Iterable[AttendanceSession], evaluation_instant: datetime) -> list[AnnotatedSession]:
    return [annotate_session(s, evaluation_instant) for s in sessions]


def summarize(annotated: Iterable[AnnotatedSession]) -> LiveSummary:
    """Fold annotated sessions into dashboard counters in one pass.

    Sessions flagged as inconsistent are skipped. Each session contributes
    independently, so partial summaries can be added together.
    """
    total = working = on_break = late = overtime = incomplete = 0

    for item in annotated:
        if item.annotation.data_inconsistent:
            continue

        total += 1
        if item.status == SessionStatus.ACTIVE:
            working += 1
        elif item.status == SessionStatus.ON_BREAK:
            on_break += 1
        elif item.status == SessionStatus.INCOMPLETE:
            incomplete += 1

        if item.annotation.is_late:
            late += 1
        if item.annotation.is_in_overtime:
            overtime += 1

    return LiveSummary(
        total_active=total,
        working=working,
        on_break=on_break,
        late=late,
        overtime=overtime,
        incomplete=incomplete,
    )


def _newest_clock_in_first(item: AnnotatedSession):
    clock_in = item.session.clock_in_time
    return (clock_in is not None, clock_in or datetime.min, item.employee_id)


def build_snapshot(batch: LiveSessionBatch) -> LiveSnapshot:
    """Annotate and summarize a batch against the server-reported evaluation instant."""
    annotated = annotate_sessions(batch.sessions, batch.evaluation_instant)

    consistent = [a for a in annotated if not a.annotation.data_inconsistent]
    inconsistent = [a for a in annotated if a.annotation.data_inconsistent]
    consistent.sort(key=_newest_clock_in_first, reverse=True)

    return LiveSnapshot(
        evaluation_instant=batch.evaluation_instant,
        summary=summarize(consistent),
        sessions=tuple(consistent),
        inconsistent=tuple(inconsistent),
    )
