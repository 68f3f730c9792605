from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any, Dict, List, Sequence

import mysql.connector

from ..attendance.model import AttendanceSession, BreakInterval
from ..core.enums import SessionStatus
from ..core.exceptions import FetchError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from ..shifts.model import Shift
from .model import LiveFilter, LiveSessionBatch
from .repository import LiveSessionRepository

logger = logging.getLogger(__name__)

_SESSION_COLUMNS = """
    SELECT s.session_id, s.employee_id, s.work_date, s.clock_in_time, s.clock_out_time, s.status,
           e.full_name, e.department, e.work_location,
           sh.shift_id, sh.shift_name, sh.start_time, sh.end_time, sh.grace_minutes
    FROM attendance_sessions s
    JOIN employees e ON e.employee_id = s.employee_id
    LEFT JOIN shifts sh ON sh.shift_id = COALESCE(s.shift_id, e.shift_id)
"""


class MySQLLiveSessionRepository(LiveSessionRepository):
    """Reads the sessions that are still open (clocked in, not clocked out).

    Open sessions from the previous day are included so overnight shifts and
    forgotten clock-outs (incomplete) show up on the dashboard. The server's
    NOW() is returned as the evaluation instant.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, lookback_days: int = 1):
        self._conn_factory = conn_factory
        self._lookback_days = max(int(lookback_days), 0)

    def fetch_live_sessions(self, live_filter: LiveFilter) -> LiveSessionBatch:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT NOW() AS server_now")
                server_now = fetchone(cur)["server_now"]

                rows = self._load_open_sessions(cur, live_filter, since=server_now.date() - timedelta(days=self._lookback_days))
                breaks = self._load_breaks(cur, [int(r["session_id"]) for r in rows])
        except mysql.connector.Error as e:
            raise FetchError(f"Không đọc được dữ liệu chấm công: {e}") from e

        sessions = tuple(self._to_session(r, breaks.get(int(r["session_id"]), [])) for r in rows)
        logger.debug("Fetched %d open sessions for %s at %s", len(sessions), live_filter, server_now)
        return LiveSessionBatch(sessions=sessions, evaluation_instant=server_now)

    def fetch_employee_session(self, employee_id: str) -> LiveSessionBatch:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT NOW() AS server_now")
                server_now = fetchone(cur)["server_now"]

                today = server_now.date()
                cur.execute(
                    _SESSION_COLUMNS
                    + """
                    WHERE s.employee_id = %s
                      AND (s.work_date = %s OR (s.work_date >= %s AND s.clock_out_time IS NULL))
                    ORDER BY s.work_date DESC, s.clock_in_time DESC
                    LIMIT 1
                    """,
                    (employee_id, today, today - timedelta(days=self._lookback_days)),
                )
                row = fetchone(cur)
                breaks = self._load_breaks(cur, [int(row["session_id"])] if row else [])
        except mysql.connector.Error as e:
            raise FetchError(f"Không đọc được dữ liệu chấm công: {e}") from e

        sessions = (self._to_session(row, breaks.get(int(row["session_id"]), [])),) if row else ()
        return LiveSessionBatch(sessions=sessions, evaluation_instant=server_now)

    def _load_open_sessions(self, cur, live_filter: LiveFilter, *, since) -> List[Dict[str, Any]]:
        sql = _SESSION_COLUMNS + """
            WHERE s.clock_in_time IS NOT NULL
              AND s.clock_out_time IS NULL
              AND s.work_date >= %s
        """
        params: list = [since]

        if live_filter.department:
            sql += " AND e.department = %s"
            params.append(live_filter.department)
        if live_filter.work_location:
            sql += " AND e.work_location = %s"
            params.append(live_filter.work_location)

        sql += " ORDER BY s.clock_in_time DESC"
        cur.execute(sql, tuple(params))
        return fetchall(cur)

    def _load_breaks(self, cur, session_ids: Sequence[int]) -> Dict[int, List[BreakInterval]]:
        out: Dict[int, List[BreakInterval]] = defaultdict(list)
        if not session_ids:
            return out

        placeholders = ",".join(["%s"] * len(session_ids))
        cur.execute(
            f"""
            SELECT session_id, start_time, end_time
            FROM attendance_breaks
            WHERE session_id IN ({placeholders})
            ORDER BY start_time
            """,
            tuple(session_ids),
        )
        for r in fetchall(cur):
            out[int(r["session_id"])].append(BreakInterval(start_time=r["start_time"], end_time=r.get("end_time")))
        return out

    def _to_session(self, r: Dict[str, Any], breaks: List[BreakInterval]) -> AttendanceSession:
        shift = None
        if r.get("shift_id") is not None:
            shift = Shift(
                shift_id=int(r["shift_id"]),
                shift_name=r.get("shift_name") or "",
                start_time=normalize_mysql_time(r.get("start_time")),
                end_time=normalize_mysql_time(r.get("end_time")),
                grace_minutes=int(r.get("grace_minutes") or 0),
            )

        try:
            status = SessionStatus(r.get("status") or SessionStatus.NOT_STARTED.value)
        except ValueError:
            logger.warning("Unknown session status %r for %s, treating as not_started", r.get("status"), r["employee_id"])
            status = SessionStatus.NOT_STARTED

        return AttendanceSession(
            employee_id=str(r["employee_id"]),
            work_date=r["work_date"],
            status=status,
            clock_in_time=r.get("clock_in_time"),
            clock_out_time=r.get("clock_out_time"),
            breaks=tuple(breaks),
            shift=shift,
            full_name=r.get("full_name") or "",
            department=r.get("department"),
            work_location=r.get("work_location"),
        )
