from __future__ import annotations

from datetime import date, datetime, timedelta

from src.live_attendance.live_attendance.attendance.model import AttendanceSession
from src.live_attendance.live_attendance.core.enums import SessionStatus
from src.live_attendance.live_attendance.live.model import LiveFilter, LiveSessionBatch
from src.live_attendance.live_attendance.live.refresh import LiveRefreshController, RefreshPolicy
from src.live_attendance.live_attendance.live.service import LiveDashboardService
from src.live_attendance.live_attendance.shifts.model import Shift

BASE = datetime(2026, 2, 2, 9, 17)


def _matching(sessions, live_filter):
    return tuple(
        s
        for s in sessions
        if (not live_filter.department or s.department == live_filter.department)
        and (not live_filter.work_location or s.work_location == live_filter.work_location)
    )


class FakeLiveSessions:
    def __init__(self, sessions=()):
        self.sessions = list(sessions)
        self.calls = 0

    def fetch_live_sessions(self, live_filter: LiveFilter) -> LiveSessionBatch:
        self.calls += 1
        return LiveSessionBatch(_matching(self.sessions, live_filter), BASE)

    def fetch_employee_session(self, employee_id: str) -> LiveSessionBatch:
        self.calls += 1
        return LiveSessionBatch(tuple(s for s in self.sessions if s.employee_id == employee_id), BASE)


def _service(repo, scheduler, idle_timeout=60):
    return LiveDashboardService(
        repo,
        scheduler=scheduler,
        policy=RefreshPolicy(refresh_interval=30, idle_timeout=idle_timeout),
        clock=lambda: BASE + timedelta(seconds=scheduler.now),
    )


def test_unread_dashboards_are_closed_and_forgotten(manual_scheduler):
    repo = FakeLiveSessions()
    service = _service(repo, manual_scheduler)

    for idx in range(50):
        service.view(LiveFilter(department=f"Phòng {idx}"))
    assert repo.calls == 50

    manual_scheduler.advance(3600)

    # one silent tick each before the idle window runs out
    assert repo.calls == 100
    assert service.live_filters == []
    assert manual_scheduler.pending == []


def test_dashboard_read_regularly_stays_live(manual_scheduler):
    repo = FakeLiveSessions()
    service = _service(repo, manual_scheduler)
    live_filter = LiveFilter(department="Kỹ thuật")
    service.view(live_filter)

    for _ in range(10):
        manual_scheduler.advance(30)
        service.view(live_filter)

    assert repo.calls == 11
    assert service.live_filters == [live_filter]


def test_view_after_eviction_starts_a_fresh_dashboard(manual_scheduler):
    repo = FakeLiveSessions()
    service = _service(repo, manual_scheduler)
    live_filter = LiveFilter(work_location="Hà Nội")
    first = service.controller_for(live_filter)
    service.view(live_filter)

    manual_scheduler.advance(120)
    assert first.is_closed is True
    assert service.live_filters == []

    state = service.view(live_filter)

    assert service.controller_for(live_filter) is not first
    assert state.data is not None
    assert service.live_filters == [live_filter]


def test_idle_timeout_zero_keeps_dashboards_running(manual_scheduler):
    repo = FakeLiveSessions()
    service = _service(repo, manual_scheduler, idle_timeout=0)
    service.view(LiveFilter())

    manual_scheduler.advance(600)

    assert repo.calls == 1 + 20
    assert service.live_filters == [LiveFilter()]


def test_idle_controller_reports_itself(manual_scheduler):
    closed = []
    controller = LiveRefreshController(
        FakeLiveSessions(),
        scheduler=manual_scheduler,
        policy=RefreshPolicy(refresh_interval=30, idle_timeout=45),
        clock=lambda: BASE + timedelta(seconds=manual_scheduler.now),
        on_idle=closed.append,
    )
    controller.start()

    manual_scheduler.advance(30)
    assert closed == []
    assert controller.is_idle() is False

    manual_scheduler.advance(30)
    assert closed == [controller]
    assert controller.is_closed is True


def test_employee_status_uses_store_lookup(manual_scheduler):
    session = AttendanceSession(
        employee_id="EMP001",
        work_date=date(2026, 2, 2),
        status=SessionStatus.ACTIVE,
        clock_in_time=datetime(2026, 2, 2, 9, 5),
        shift=Shift(1, "Hành chính", "09:00", "18:00"),
        full_name="Nguyễn Văn An",
    )
    repo = FakeLiveSessions([session])
    service = _service(repo, manual_scheduler)

    card = service.employee_status("EMP001")

    assert card["employeeId"] == "EMP001"
    assert card["status"] == "active"
    assert card["lateMinutes"] == 5
    assert service.employee_status("EMP404") is None
    assert service.live_filters == []


def test_employee_status_of_session_never_clocked_in(manual_scheduler):
    session = AttendanceSession(employee_id="EMP007", work_date=date(2026, 2, 2), full_name="Phạm Thị Dung")
    service = _service(FakeLiveSessions([session]), manual_scheduler)

    assert service.employee_status("EMP007") == {
        "employeeId": "EMP007",
        "fullName": "Phạm Thị Dung",
        "status": "clocked_out",
        "lastClockIn": None,
        "lastClockOut": None,
    }
