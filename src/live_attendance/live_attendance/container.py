from __future__ import annotations

from dataclasses import dataclass

from .database.connection import DBConfig, DatabaseConnection
from .live.mysql_live_repository import MySQLLiveSessionRepository
from .live.refresh import RefreshPolicy
from .live.repository import LiveSessionRepository
from .live.scheduler import Scheduler, ThreadingScheduler
from .live.service import LiveDashboardService


@dataclass(frozen=True)
class Container:
    live_sessions_repo: LiveSessionRepository
    scheduler: Scheduler
    refresh_policy: RefreshPolicy

    live_dashboard_service: LiveDashboardService


def build_container(
    *,
    db_config: dict | None = None,
    refresh_policy: RefreshPolicy | None = None,
    live_sessions_repo: LiveSessionRepository | None = None,
    scheduler: Scheduler | None = None,
) -> Container:
    """Wire services. Tests pass an in-memory repository and a manual scheduler."""
    if live_sessions_repo is None:
        if db_config is None:
            raise ValueError("db_config is required when no live session repository is given")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        live_sessions_repo = MySQLLiveSessionRepository(conn)

    scheduler = scheduler or ThreadingScheduler()
    refresh_policy = refresh_policy or RefreshPolicy()

    live_dashboard_service = LiveDashboardService(
        live_sessions_repo,
        scheduler=scheduler,
        policy=refresh_policy,
    )

    return Container(
        live_sessions_repo=live_sessions_repo,
        scheduler=scheduler,
        refresh_policy=refresh_policy,
        live_dashboard_service=live_dashboard_service,
    )
