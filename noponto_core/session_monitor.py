"""
Work-session monitoring: periodic progress ticks and one-shot milestone signals.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Union

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from noponto import logger as app_logger
from noponto_shared.progress import DEFAULT_TARGET_MINUTES, ProgressSnapshot, compute_progress
from noponto_shared.session_times import SessionTimes, require_valid

DEFAULT_TICK_INTERVAL_SECONDS = 60
DEFAULT_ALMOST_COMPLETE_MINUTES = 3


class MonitorStatus(Enum):
    IDLE = "Idle"
    ACTIVE = "Active"
    STOPPED = "Stopped"


class TickFailure(RuntimeError):
    """Raised when a tick cannot compute progress; the tick is skipped."""


class ClockAnomalyWarning(UserWarning):
    """A wall-clock reading that makes the session arithmetic unreliable."""


@dataclass(frozen=True)
class WorkAlmostComplete:
    remaining_minutes: int
    session_id: str


@dataclass(frozen=True)
class WorkComplete:
    session_id: str


MilestoneEvent = Union[WorkAlmostComplete, WorkComplete]


@dataclass
class MonitorSession:
    """The one workday being monitored. Flags are write-once for its lifetime."""

    session_times: SessionTimes
    started_at: datetime
    status: MonitorStatus = MonitorStatus.ACTIVE
    almost_complete_fired: bool = False
    complete_fired: bool = False
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


def ms_until_next_tick(now: datetime, interval_seconds: int) -> int:
    """
    Milliseconds from ``now`` to the next wall-clock boundary of the interval.

    Boundaries are aligned to midnight, so a 60 second interval lands on the
    start of every minute. Never returns 0; exactly on a boundary the full
    period is returned.
    """
    period_ms = max(1, int(interval_seconds)) * 1000
    elapsed_ms = ((now.hour * 60 + now.minute) * 60 + now.second) * 1000 + now.microsecond // 1000
    return period_ms - (elapsed_ms % period_ms)


class SessionMonitor(QObject):
    """
    Owns the single MonitorSession and re-evaluates progress on a wall-clock
    aligned timer. Each milestone is emitted at most once per session; the
    monitor keeps ticking after completion until it is stopped.
    """

    snapshotUpdated = Signal(object)
    statusChanged = Signal(object)
    workAlmostComplete = Signal(object)
    workComplete = Signal(object)
    tickFailed = Signal(str)
    clockAnomaly = Signal(object)

    def __init__(
        self,
        *,
        tick_interval_seconds: int = DEFAULT_TICK_INTERVAL_SECONDS,
        almost_complete_minutes: int = DEFAULT_ALMOST_COMPLETE_MINUTES,
        target_minutes: int = DEFAULT_TARGET_MINUTES,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self.tick_interval_seconds = tick_interval_seconds
        self.almost_complete_minutes = almost_complete_minutes
        self.target_minutes = target_minutes

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.timeout.connect(self._on_timer)  # type: ignore[arg-type]

        self._lock = threading.Lock()
        self._status = MonitorStatus.IDLE
        self._session: Optional[MonitorSession] = None
        self._snapshot: Optional[ProgressSnapshot] = None
        self._now_provider: Optional[Callable[[], datetime]] = None

        self._last_worked_minutes: Optional[int] = None
        self._reported_before_second_period = False
        self._reported_day_change = False

    # ------------------------------------------------------------------#
    # Public interface
    # ------------------------------------------------------------------#

    @property
    def status(self) -> MonitorStatus:
        with self._lock:
            return self._status

    @property
    def is_active(self) -> bool:
        return self.status is MonitorStatus.ACTIVE

    @property
    def is_tick_pending(self) -> bool:
        return self._timer.isActive()

    def set_now_provider(self, provider: Callable[[], datetime]) -> None:
        """
        Override wall-clock acquisition. Primarily used for testing.
        """
        self._now_provider = provider

    def configure(
        self,
        *,
        tick_interval_seconds: Optional[int] = None,
        almost_complete_minutes: Optional[int] = None,
        target_minutes: Optional[int] = None,
    ) -> None:
        """Apply new thresholds. Target and threshold take effect on the next tick."""
        with self._lock:
            if almost_complete_minutes is not None:
                self.almost_complete_minutes = max(1, int(almost_complete_minutes))
            if target_minutes is not None:
                self.target_minutes = max(1, int(target_minutes))
            interval_changed = (
                tick_interval_seconds is not None
                and int(tick_interval_seconds) != self.tick_interval_seconds
            )
            if interval_changed:
                self.tick_interval_seconds = max(1, int(tick_interval_seconds))
        if interval_changed:
            self._logger.info("Tick interval updated to {} seconds.", self.tick_interval_seconds)
            self._schedule_next_tick()

    def start(self, times: SessionTimes) -> bool:
        """
        Begin monitoring ``times``.

        Returns False, without looking at ``times`` or touching the running
        session, when monitoring is already active. Otherwise raises
        SessionValidationError when the times are incomplete or out of order;
        no session is created in that case.
        """
        if self.is_active:
            self._logger.warning("Start requested while monitoring is already active; ignoring.")
            return False

        require_valid(times)
        now = self._now()
        with self._lock:
            if self._status is MonitorStatus.ACTIVE:
                rejected = True
            else:
                rejected = False
                self._session = MonitorSession(session_times=times, started_at=now)
                self._snapshot = None
                self._status = MonitorStatus.ACTIVE
                self._last_worked_minutes = None
                self._reported_before_second_period = False
                self._reported_day_change = False
                session_id = self._session.session_id

        if rejected:
            self._logger.warning("Start requested while monitoring is already active; ignoring.")
            return False

        self._logger.info(
            "Monitoring started (session={}, start1={}, end1={}, start2={}).",
            session_id,
            times.start1,
            times.end1,
            times.start2,
        )
        self.statusChanged.emit(MonitorStatus.ACTIVE)
        self.tick()
        self._schedule_next_tick()
        return True

    def stop(self) -> None:
        """Stop monitoring. The pending tick is cancelled before this returns."""
        with self._lock:
            if self._status is not MonitorStatus.ACTIVE:
                return
            self._timer.stop()
            session = self._session
            self._session = None
            self._snapshot = None
            self._status = MonitorStatus.STOPPED

        self._logger.info("Monitoring stopped (session={}).", session.session_id if session else "unknown")
        self.statusChanged.emit(MonitorStatus.STOPPED)

    def start_monitoring(self, times: SessionTimes) -> bool:
        return self.start(times)

    def stop_monitoring(self) -> None:
        self.stop()

    def get_snapshot(self) -> Optional[ProgressSnapshot]:
        """Most recent snapshot of the active session, or None when idle."""
        with self._lock:
            return self._snapshot

    def current_session(self) -> Optional[MonitorSession]:
        """A copy of the active session; mutating it has no effect on the monitor."""
        with self._lock:
            return replace(self._session) if self._session is not None else None

    def tick(self) -> Optional[ProgressSnapshot]:
        """
        Re-evaluate progress and emit any milestone that became due.

        Does nothing unless monitoring is active. A failing computation is
        logged and skipped; monitoring carries on with the next tick.
        """
        with self._lock:
            if self._status is not MonitorStatus.ACTIVE or self._session is None:
                return None
            session = self._session
            target = self.target_minutes

        now = self._now()
        try:
            snapshot = self._compute(session.session_times, now, target)
        except TickFailure as exc:
            self._logger.warning("Tick skipped for session {}: {}", session.session_id, exc)
            self.tickFailed.emit(str(exc))
            return None
        except Exception as exc:  # pragma: no cover - unexpected failure guard
            self._logger.exception("Unexpected error during tick for session {}.", session.session_id)
            self.tickFailed.emit(str(exc))
            return None

        with self._lock:
            if self._session is not session:
                return None
            self._snapshot = snapshot
            events = self._evaluate_milestones(session, snapshot)
            anomalies = self._check_clock(session, snapshot, now)

        self.snapshotUpdated.emit(snapshot)

        for anomaly in anomalies:
            self._logger.warning("Clock anomaly in session {}: {}", session.session_id, anomaly)
            self.clockAnomaly.emit(anomaly)

        for event in events:
            if isinstance(event, WorkComplete):
                self._logger.info("Work complete for session {}.", session.session_id)
                self.workComplete.emit(event)
            else:
                self._logger.info(
                    "Work almost complete for session {}: {} minute(s) remaining.",
                    session.session_id,
                    event.remaining_minutes,
                )
                self.workAlmostComplete.emit(event)

        return snapshot

    def resync(self) -> None:
        """
        Tick now and re-align the timer to the wall clock.

        QTimer counts on a monotonic clock that does not advance while the
        machine sleeps, so after a resume the pending tick can be up to one
        period late. Calling this when the application becomes active again
        brings the snapshot and the schedule back in line.
        """
        if not self.is_active:
            return
        self._timer.stop()
        self._logger.debug("Resynchronising tick schedule with the wall clock.")
        self._on_timer()

    # ------------------------------------------------------------------#
    # Internals
    # ------------------------------------------------------------------#

    def _now(self) -> datetime:
        if self._now_provider is not None:
            return self._now_provider()
        return datetime.now()

    def _compute(self, times: SessionTimes, now: datetime, target: int) -> ProgressSnapshot:
        try:
            return compute_progress(times, now, target_minutes=target)
        except (TypeError, ValueError) as exc:
            raise TickFailure(f"Unable to compute progress: {exc}") from exc

    def _evaluate_milestones(self, session: MonitorSession, snapshot: ProgressSnapshot) -> List[MilestoneEvent]:
        # Caller holds self._lock. Flags are set before anything is emitted.
        if snapshot.is_complete:
            if session.complete_fired:
                return []
            session.complete_fired = True
            return [WorkComplete(session_id=session.session_id)]

        remaining = snapshot.remaining_minutes
        if (
            0 < remaining <= self.almost_complete_minutes
            and not session.almost_complete_fired
            and not session.complete_fired
        ):
            session.almost_complete_fired = True
            return [WorkAlmostComplete(remaining_minutes=remaining, session_id=session.session_id)]
        return []

    def _check_clock(
        self,
        session: MonitorSession,
        snapshot: ProgressSnapshot,
        now: datetime,
    ) -> List[ClockAnomalyWarning]:
        # Caller holds self._lock.
        anomalies: List[ClockAnomalyWarning] = []

        if snapshot.before_second_period and not self._reported_before_second_period:
            self._reported_before_second_period = True
            anomalies.append(
                ClockAnomalyWarning(
                    f"current time {now:%H:%M} is before the second period start "
                    f"{session.session_times.start2}; counting the second period as zero"
                )
            )

        if self._last_worked_minutes is not None and snapshot.worked_minutes < self._last_worked_minutes:
            anomalies.append(
                ClockAnomalyWarning(
                    f"worked time went back from {self._last_worked_minutes} to "
                    f"{snapshot.worked_minutes} minutes; the system clock moved backwards"
                )
            )
        self._last_worked_minutes = snapshot.worked_minutes

        if now.date() != session.started_at.date() and not self._reported_day_change:
            self._reported_day_change = True
            anomalies.append(
                ClockAnomalyWarning(
                    f"session started on {session.started_at:%Y-%m-%d} but it is now {now:%Y-%m-%d}; "
                    "times are evaluated against the current day"
                )
            )

        return anomalies

    def _on_timer(self) -> None:
        self.tick()
        self._schedule_next_tick()

    def _schedule_next_tick(self) -> None:
        """
        Arm the single-shot timer for the next wall-clock boundary.

        The delay is measured on QTimer's monotonic clock. A system sleep
        stretches it, and the late tick re-aligns the following one.
        """
        with self._lock:
            if self._status is not MonitorStatus.ACTIVE:
                return
            interval = self.tick_interval_seconds
        delay_ms = ms_until_next_tick(self._now(), interval)
        self._timer.start(delay_ms)
        self._logger.debug("Next tick in {} ms.", delay_ms)
