from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..attendance.model import AnnotatedSession
from ..common.datetime_utils import format_clock_time, format_duration, minutes_between, now_local
from .aggregation import annotate_session
from .model import LiveFilter
from .refresh import LiveRefreshController, LiveViewState, Notifier, RefreshPolicy
from .repository import LiveSessionRepository
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class LiveDashboardService:
    """One refresh controller per dashboard filter, created on first use."""

    def __init__(
        self,
        repository: LiveSessionRepository,
        *,
        scheduler: Scheduler,
        policy: RefreshPolicy | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._repository = repository
        self._scheduler = scheduler
        self._policy = policy or RefreshPolicy()
        self._clock = clock
        self._controllers: dict[LiveFilter, LiveRefreshController] = {}
        self._lock = threading.Lock()

    def controller_for(self, live_filter: LiveFilter) -> LiveRefreshController:
        with self._lock:
            controller = self._controllers.get(live_filter)
            if controller is None:
                controller = LiveRefreshController(
                    self._repository,
                    live_filter,
                    scheduler=self._scheduler,
                    policy=self._policy,
                    clock=self._clock,
                    on_idle=self._forget,
                )
                controller.start(refresh_now=False)
                self._controllers[live_filter] = controller
                logger.info("Live dashboard started for %s", live_filter)
            controller.touch()
            return controller

    def _forget(self, controller: LiveRefreshController) -> None:
        with self._lock:
            if self._controllers.get(controller.live_filter) is controller:
                del self._controllers[controller.live_filter]
        logger.info("Live dashboard for %s dropped after inactivity", controller.live_filter)

    @property
    def live_filters(self) -> list[LiveFilter]:
        with self._lock:
            return list(self._controllers)

    def view(self, live_filter: LiveFilter, *, notify: Optional[Notifier] = None) -> LiveViewState:
        controller = self.controller_for(live_filter)
        if controller.state.version == 0:
            controller.refresh(silent=False, notify=notify)
        return controller.state

    def refresh(self, live_filter: LiveFilter, *, notify: Optional[Notifier] = None) -> LiveViewState:
        controller = self.controller_for(live_filter)
        controller.refresh(silent=False, notify=notify)
        return controller.state

    def reconnect(self, live_filter: LiveFilter, *, notify: Optional[Notifier] = None) -> LiveViewState:
        controller = self.controller_for(live_filter)
        controller.reconnect(notify=notify)
        return controller.state

    def set_visible(self, live_filter: LiveFilter, visible: bool) -> LiveViewState:
        controller = self.controller_for(live_filter)
        controller.set_visible(visible)
        return controller.state

    def set_online(self, online: bool) -> None:
        with self._lock:
            controllers = list(self._controllers.values())
        for controller in controllers:
            controller.set_online(online)

    def close(self) -> None:
        with self._lock:
            controllers = list(self._controllers.values())
            self._controllers.clear()
        for controller in controllers:
            controller.close()

    def employee_status(self, employee_id: str) -> Optional[dict]:
        """Live card for one employee, read straight from the store.

        Returns None when the employee has no session today, a short
        clocked-out record when the session is closed or never started, and
        the annotated dashboard card otherwise. Store errors propagate.
        """
        batch = self._repository.fetch_employee_session(employee_id)
        if not batch.sessions:
            return None

        session = batch.sessions[0]
        if not session.is_open:
            return {
                "employeeId": session.employee_id,
                "fullName": session.full_name or "Unknown",
                "status": "clocked_out",
                "lastClockIn": session.clock_in_time.isoformat() if session.clock_in_time else None,
                "lastClockOut": session.clock_out_time.isoformat() if session.clock_out_time else None,
            }

        item = annotate_session(session, batch.evaluation_instant)
        if item.annotation.data_inconsistent:
            return self._inconsistent_to_ui(item)
        return self._session_to_ui(item, batch.evaluation_instant)

    def to_ui(self, state: LiveViewState, live_filter: LiveFilter) -> dict:
        controller = self.controller_for(live_filter)
        data = state.data
        return {
            "state": {
                "version": state.version,
                "loading": state.loading,
                "isConnectedOrFresh": state.is_connected_or_fresh,
                "isStale": controller.is_stale(),
                "isOnline": controller.is_online,
                "isVisible": controller.is_visible,
                "lastUpdated": state.last_updated.isoformat() if state.last_updated else None,
                "lastError": state.last_error,
            },
            "filter": {
                "department": live_filter.department,
                "location": live_filter.work_location,
            },
            "evaluatedAt": data.evaluation_instant.isoformat() if data else None,
            "summary": data.summary.to_dict() if data else None,
            "sessions": [self._session_to_ui(a, data.evaluation_instant) for a in data.sessions] if data else [],
            "inconsistent": [self._inconsistent_to_ui(a) for a in data.inconsistent] if data else [],
        }

    def _session_to_ui(self, item: AnnotatedSession, evaluation_instant: datetime) -> dict:
        session = item.session
        ann = item.annotation
        current_break = session.current_break

        return {
            "employeeId": session.employee_id,
            "fullName": session.full_name or "Unknown",
            "department": session.department or "",
            "workLocation": session.work_location or "",
            "status": item.status.value,
            "shift": {
                "name": session.shift.shift_name,
                "start": session.shift.start_time,
                "end": session.shift.end_time,
            }
            if session.shift
            else None,
            "clockIn": format_clock_time(session.clock_in_time, placeholder="--:--"),
            "isLate": ann.is_late,
            "lateMinutes": ann.late_minutes,
            "late": format_duration(ann.late_minutes),
            "isInOvertime": ann.is_in_overtime,
            "overtimeMinutes": ann.overtime_minutes,
            "overtime": format_duration(ann.overtime_minutes),
            "workedMinutes": ann.worked_minutes,
            "worked": format_duration(ann.worked_minutes),
            "breakMinutes": ann.break_minutes,
            "breakTime": format_duration(ann.break_minutes),
            "breakCount": len(session.breaks),
            "expectedHours": ann.expected_hours,
            "currentBreak": {
                "startedAt": format_clock_time(current_break.start_time),
                "duration": format_duration(max(minutes_between(current_break.start_time, evaluation_instant), 0)),
            }
            if current_break
            else None,
        }

    def _inconsistent_to_ui(self, item: AnnotatedSession) -> dict:
        return {
            "employeeId": item.session.employee_id,
            "fullName": item.session.full_name or "Unknown",
            "dataInconsistent": True,
            "issues": list(item.annotation.issues),
        }
