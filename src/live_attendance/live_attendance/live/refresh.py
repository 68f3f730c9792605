"""Refresh controller for one live dashboard consumer.

The controller owns the only mutable piece of the live view: a frozen
``LiveViewState`` that is replaced as a whole (with a new version) on every
change. Refreshes are single-flight; a request arriving while one is running
is dropped, never queued. Timers go through a ``Scheduler`` so the periodic
tick, the visibility debounce and the network-recovery delay can be driven by
a virtual clock in tests.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import (
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_ONLINE_RETRY_SECONDS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_VISIBILITY_DEBOUNCE_SECONDS,
    STALE_AFTER_INTERVALS,
)
from .aggregation import build_snapshot
from .model import LiveFilter, LiveSnapshot
from .repository import LiveSessionRepository
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

# notify(message, category), same shape as flask.flash
Notifier = Callable[[str, str], None]

OFFLINE_MESSAGE = "Mất kết nối mạng, dữ liệu trực tiếp tạm dừng cập nhật"
EMPTY_MESSAGE = "Hiện không có nhân viên nào đang chấm công"


def _no_notify(message: str, category: str) -> None:
    return None


@dataclass(frozen=True)
class RefreshPolicy:
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    visibility_debounce: float = DEFAULT_VISIBILITY_DEBOUNCE_SECONDS
    online_retry_delay: float = DEFAULT_ONLINE_RETRY_SECONDS
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings) -> "RefreshPolicy":
        return cls(
            refresh_interval=float(getattr(settings, "LIVE_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS)),
            visibility_debounce=float(
                getattr(settings, "LIVE_VISIBILITY_DEBOUNCE_SECONDS", DEFAULT_VISIBILITY_DEBOUNCE_SECONDS)
            ),
            online_retry_delay=float(getattr(settings, "LIVE_ONLINE_RETRY_SECONDS", DEFAULT_ONLINE_RETRY_SECONDS)),
            idle_timeout=float(getattr(settings, "LIVE_IDLE_TIMEOUT_SECONDS", DEFAULT_IDLE_TIMEOUT_SECONDS)),
        )


@dataclass(frozen=True)
class LiveViewState:
    data: Optional[LiveSnapshot] = None
    loading: bool = False
    is_connected_or_fresh: bool = False
    last_updated: Optional[datetime] = None
    last_error: Optional[str] = None
    version: int = 0


def has_data(state: LiveViewState) -> bool:
    return state.data is not None


def age_seconds(state: LiveViewState, now: datetime) -> Optional[float]:
    if state.last_updated is None:
        return None
    return max((now - state.last_updated).total_seconds(), 0.0)


def is_stale(state: LiveViewState, now: datetime, max_age_seconds: float) -> bool:
    age = age_seconds(state, now)
    return age is None or age > max_age_seconds


class LiveRefreshController:
    def __init__(
        self,
        repository: LiveSessionRepository,
        live_filter: LiveFilter | None = None,
        *,
        scheduler: Scheduler,
        policy: RefreshPolicy | None = None,
        notify: Notifier | None = None,
        clock: Callable[[], datetime] = now_local,
        on_idle: Callable[["LiveRefreshController"], None] | None = None,
    ):
        self._repository = repository
        self._filter = live_filter or LiveFilter()
        self._scheduler = scheduler
        self._policy = policy or RefreshPolicy()
        self._notify = notify if notify is not None else _no_notify
        self._clock = clock
        self._on_idle = on_idle

        self._lock = threading.RLock()
        self._state = LiveViewState()
        self._in_flight = False
        self._visible = True
        self._online = True
        self._started = False
        self._closed = False
        self._tick_handle: TimerHandle | None = None
        self._pending_handle: TimerHandle | None = None
        self._last_touched = clock()

    @property
    def state(self) -> LiveViewState:
        return self._state

    @property
    def live_filter(self) -> LiveFilter:
        return self._filter

    @property
    def is_visible(self) -> bool:
        return self._visible

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def is_refreshing(self) -> bool:
        return self._in_flight

    @property
    def is_closed(self) -> bool:
        return self._closed

    def is_stale(self, now: datetime | None = None) -> bool:
        max_age = self._policy.refresh_interval * STALE_AFTER_INTERVALS
        return is_stale(self._state, now or self._clock(), max_age)

    def touch(self) -> None:
        """Record that a consumer read or drove this view."""
        self._last_touched = self._clock()

    def is_idle(self, now: datetime | None = None) -> bool:
        timeout = self._policy.idle_timeout
        if not timeout or timeout <= 0:
            return False
        return ((now or self._clock()) - self._last_touched).total_seconds() >= timeout

    # --- lifecycle -------------------------------------------------------

    def start(self, *, refresh_now: bool = True) -> None:
        with self._lock:
            if self._started or self._closed:
                return
            self._started = True
            self._schedule_tick()

        if refresh_now:
            self.refresh(silent=False)

    def close(self) -> None:
        """Stop the periodic tick and drop any pending delayed refresh."""
        with self._lock:
            self._closed = True
            if self._tick_handle is not None:
                self._tick_handle.cancel()
                self._tick_handle = None
            self._cancel_pending()
        logger.debug("Live refresh controller for %s closed", self._filter)

    # --- refresh ---------------------------------------------------------

    def refresh(self, silent: bool = False, *, notify: Notifier | None = None) -> bool:
        """Fetch, annotate and publish a new snapshot.

        Returns True when a new snapshot was published. A silent refresh
        leaves ``loading`` alone and sends no notices; an interactive one
        reports the outcome through ``notify``.
        """
        notify = notify if notify is not None else self._notify
        if not silent:
            self.touch()

        with self._lock:
            if self._closed:
                return False
            if self._in_flight:
                logger.debug("Refresh for %s already in flight, dropping request", self._filter)
                return False
            if not self._online:
                self._publish(last_error=OFFLINE_MESSAGE, is_connected_or_fresh=False)
                if not silent:
                    notify(OFFLINE_MESSAGE, "warning")
                return False

            self._in_flight = True
            if not silent:
                self._publish(loading=True)

        try:
            batch = self._repository.fetch_live_sessions(self._filter)
            snapshot = build_snapshot(batch)
        except Exception as e:
            logger.exception("Live attendance refresh for %s failed", self._filter)
            with self._lock:
                changes = {"last_error": str(e) or e.__class__.__name__, "is_connected_or_fresh": False}
                if not silent:
                    changes["loading"] = False
                self._publish(**changes)
                self._in_flight = False
            if not silent:
                notify("Không tải được dữ liệu chấm công trực tiếp", "danger")
            return False

        with self._lock:
            changes = {
                "data": snapshot,
                "last_updated": self._clock(),
                "last_error": None,
                "is_connected_or_fresh": True,
            }
            if not silent:
                changes["loading"] = False
            self._publish(**changes)
            self._in_flight = False

        logger.debug(
            "Live attendance for %s refreshed (silent=%s, sessions=%d, evaluated at %s)",
            self._filter,
            silent,
            snapshot.summary.total_active,
            snapshot.evaluation_instant,
        )
        if not silent and snapshot.summary.total_active == 0:
            notify(EMPTY_MESSAGE, "info")
        return True

    def reconnect(self, *, notify: Notifier | None = None) -> bool:
        with self._lock:
            self._online = True
            self._cancel_pending()
        return self.refresh(silent=False, notify=notify)

    # --- consumer signals ------------------------------------------------

    def set_visible(self, visible: bool) -> None:
        with self._lock:
            self.touch()
            was_visible = self._visible
            self._visible = bool(visible)
            if self._closed or was_visible == self._visible:
                return

            if self._visible:
                self._schedule_pending(self._policy.visibility_debounce)
            else:
                self._cancel_pending()

    def set_online(self, online: bool) -> None:
        with self._lock:
            was_online = self._online
            self._online = bool(online)
            if self._closed or was_online == self._online:
                return

            if self._online:
                logger.info("Network back for %s, refreshing in %.1fs", self._filter, self._policy.online_retry_delay)
                self._schedule_pending(self._policy.online_retry_delay)
            else:
                logger.info("Network lost for %s", self._filter)
                self._cancel_pending()
                self._publish(last_error=OFFLINE_MESSAGE, is_connected_or_fresh=False)

    # --- internals -------------------------------------------------------

    def _publish(self, **changes) -> None:
        self._state = replace(self._state, version=self._state.version + 1, **changes)

    def _schedule_tick(self) -> None:
        self._tick_handle = self._scheduler.call_later(self._policy.refresh_interval, self._on_tick)

    def _on_tick(self) -> None:
        with self._lock:
            if self._closed:
                return
            idle = self.is_idle()
            if not idle:
                self._schedule_tick()
                if not (self._visible and self._online):
                    logger.debug("Skipping tick for %s (visible=%s, online=%s)", self._filter, self._visible, self._online)
                    return

        if idle:
            logger.info("No consumer for %s in %.0fs, stopping live refresh", self._filter, self._policy.idle_timeout)
            self.close()
            if self._on_idle is not None:
                self._on_idle(self)
            return
        self.refresh(silent=True)

    def _schedule_pending(self, delay: float) -> None:
        self._cancel_pending()
        self._pending_handle = self._scheduler.call_later(delay, self._on_pending)

    def _cancel_pending(self) -> None:
        if self._pending_handle is not None:
            self._pending_handle.cancel()
            self._pending_handle = None

    def _on_pending(self) -> None:
        with self._lock:
            self._pending_handle = None
            if self._closed or self._in_flight or not (self._visible and self._online):
                return
        self.refresh(silent=True)
