import time
from datetime import datetime

import pytest
from PySide6.QtCore import QCoreApplication

import noponto_core.session_monitor as session_monitor
from noponto_core.session_monitor import (
    ClockAnomalyWarning,
    MonitorStatus,
    SessionMonitor,
    WorkAlmostComplete,
    WorkComplete,
    ms_until_next_tick,
)
from noponto_shared.session_times import SessionTimes, SessionValidationError


@pytest.fixture
def monitor(clock):
    monitor = SessionMonitor()
    monitor.set_now_provider(clock)
    yield monitor
    monitor.stop()


@pytest.fixture
def events(monitor):
    captured = {"almost": [], "complete": [], "failed": [], "anomalies": [], "status": []}
    monitor.workAlmostComplete.connect(captured["almost"].append)
    monitor.workComplete.connect(captured["complete"].append)
    monitor.tickFailed.connect(captured["failed"].append)
    monitor.clockAnomaly.connect(captured["anomalies"].append)
    monitor.statusChanged.connect(captured["status"].append)
    return captured


def test_new_monitor_is_idle(monitor):
    assert monitor.status is MonitorStatus.IDLE
    assert monitor.get_snapshot() is None
    assert monitor.current_session() is None
    assert monitor.tick() is None


def test_start_computes_first_snapshot_and_arms_timer(monitor, events, workday_times):
    assert monitor.start_monitoring(workday_times) is True
    assert monitor.status is MonitorStatus.ACTIVE
    assert monitor.is_tick_pending
    assert events["status"] == [MonitorStatus.ACTIVE]

    snapshot = monitor.get_snapshot()
    assert snapshot.worked_minutes == 240
    assert snapshot.remaining_minutes == 240


def test_milestones_fire_exactly_once(monitor, events, clock, workday_times):
    monitor.start(workday_times)
    while clock.now.hour < 17:
        clock.advance()
        monitor.tick()
    for _ in range(100):
        clock.advance()
        monitor.tick()

    assert len(events["almost"]) == 1
    assert len(events["complete"]) == 1
    almost = events["almost"][0]
    assert isinstance(almost, WorkAlmostComplete)
    assert almost.remaining_minutes == 3
    assert isinstance(events["complete"][0], WorkComplete)
    assert almost.session_id == events["complete"][0].session_id

    session = monitor.current_session()
    assert session.almost_complete_fired and session.complete_fired


def test_almost_complete_is_skipped_when_already_done(monitor, events, clock, workday_times):
    clock.set(17, 30)
    monitor.start(workday_times)
    monitor.tick()

    assert events["almost"] == []
    assert len(events["complete"]) == 1


def test_almost_complete_inside_window_on_start(monitor, events, clock, workday_times):
    clock.set(16, 58)
    monitor.start(workday_times)

    assert [event.remaining_minutes for event in events["almost"]] == [2]
    assert events["complete"] == []


def test_stop_then_start_opens_a_new_session(monitor, events, clock, workday_times):
    clock.set(17, 0)
    monitor.start(workday_times)
    first = monitor.current_session().session_id

    monitor.stop_monitoring()
    assert monitor.status is MonitorStatus.STOPPED
    assert monitor.get_snapshot() is None
    assert not monitor.is_tick_pending
    assert monitor.tick() is None

    clock.advance(5)
    monitor.start(workday_times)
    second = monitor.current_session().session_id

    assert first != second
    assert [event.session_id for event in events["complete"]] == [first, second]
    assert events["status"] == [MonitorStatus.ACTIVE, MonitorStatus.STOPPED, MonitorStatus.ACTIVE]


def test_invalid_times_never_start(monitor, events):
    with pytest.raises(SessionValidationError):
        monitor.start(SessionTimes("12:00", "08:00", "13:00"))

    assert monitor.status is MonitorStatus.IDLE
    assert monitor.current_session() is None
    assert not monitor.is_tick_pending
    assert events["status"] == []


def test_incomplete_times_never_start(monitor):
    with pytest.raises(SessionValidationError):
        monitor.start(SessionTimes("08:00", "12:00", "13"))
    assert monitor.status is MonitorStatus.IDLE


def test_second_start_is_rejected(monitor, events, log_messages, workday_times):
    monitor.start(workday_times)
    session_id = monitor.current_session().session_id

    assert monitor.start(SessionTimes("07:00", "11:00", "12:00")) is False
    assert monitor.current_session().session_id == session_id
    assert monitor.current_session().session_times == workday_times
    assert events["status"] == [MonitorStatus.ACTIVE]
    assert any(message.startswith("WARNING|") and "already active" in message for message in log_messages)


def test_second_start_while_active_ignores_invalid_times(monitor, events, workday_times):
    monitor.start(workday_times)

    assert monitor.start(SessionTimes("12:00", "08:00", "")) is False
    assert monitor.current_session().session_times == workday_times
    assert events["status"] == [MonitorStatus.ACTIVE]


def test_stop_when_idle_is_a_no_op(monitor, events):
    monitor.stop()
    assert monitor.status is MonitorStatus.IDLE
    assert events["status"] == []


def test_current_session_is_a_copy(monitor, workday_times):
    monitor.start(workday_times)
    copy = monitor.current_session()
    copy.complete_fired = True
    assert monitor.current_session().complete_fired is False


def test_failed_tick_is_skipped(monitor, events, workday_times, monkeypatch):
    monitor.start(workday_times)
    previous = monitor.get_snapshot()

    def broken(*args, **kwargs):
        raise ValueError("bad clock")

    monkeypatch.setattr(session_monitor, "compute_progress", broken)
    assert monitor.tick() is None

    assert len(events["failed"]) == 1
    assert "bad clock" in events["failed"][0]
    assert monitor.status is MonitorStatus.ACTIVE
    assert monitor.get_snapshot() is previous


def test_start_before_second_period_reports_once(monitor, events, clock, workday_times):
    clock.set(12, 30)
    monitor.start(workday_times)
    clock.advance()
    monitor.tick()

    assert len(events["anomalies"]) == 1
    assert isinstance(events["anomalies"][0], ClockAnomalyWarning)
    assert monitor.get_snapshot().worked_minutes == 240


def test_clock_moving_backwards_is_reported(monitor, events, clock, workday_times):
    clock.set(15, 0)
    monitor.start(workday_times)
    clock.set(14, 30)
    snapshot = monitor.tick()

    assert snapshot.worked_minutes == 330
    assert len(events["anomalies"]) == 1
    assert "backwards" in str(events["anomalies"][0])


def test_clock_moving_back_into_milestone_band_does_not_refire(monitor, events, clock, workday_times):
    clock.set(16, 58)
    monitor.start(workday_times)
    clock.set(17, 1)
    monitor.tick()
    clock.set(16, 58)
    snapshot = monitor.tick()
    clock.set(17, 5)
    monitor.tick()

    assert snapshot.remaining_minutes == 2
    assert len(events["almost"]) == 1
    assert len(events["complete"]) == 1
    assert any("backwards" in str(warning) for warning in events["anomalies"])


def test_day_change_is_reported_once(monitor, events, clock, workday_times):
    clock.set(23, 58)
    monitor.start(workday_times)
    clock.advance(3)
    monitor.tick()
    clock.advance()
    monitor.tick()

    day_changes = [warning for warning in events["anomalies"] if "session started on" in str(warning)]
    assert len(day_changes) == 1


def test_configure_updates_thresholds(monitor, events, clock, workday_times):
    monitor.configure(almost_complete_minutes=10, target_minutes=300)
    clock.set(13, 55)
    monitor.start(workday_times)

    assert monitor.get_snapshot().remaining_minutes == 5
    assert [event.remaining_minutes for event in events["almost"]] == [5]


@pytest.mark.parametrize(
    "now, interval, expected",
    [
        (datetime(2025, 3, 10, 10, 0, 30), 60, 30_000),
        (datetime(2025, 3, 10, 10, 0, 0), 60, 60_000),
        (datetime(2025, 3, 10, 10, 0, 59, 500_000), 60, 500),
        (datetime(2025, 3, 10, 10, 0, 10), 30, 20_000),
        (datetime(2025, 3, 10, 23, 59, 59), 3600, 1_000),
    ],
)
def test_ms_until_next_tick_aligns_to_wall_clock(now, interval, expected):
    assert ms_until_next_tick(now, interval) == expected


def test_resync_ticks_immediately_and_rearms(monitor, events, clock, workday_times):
    monitor.start(workday_times)
    clock.set(16, 58)

    monitor.resync()

    assert monitor.get_snapshot().remaining_minutes == 2
    assert [event.remaining_minutes for event in events["almost"]] == [2]
    assert monitor.is_tick_pending


def test_resync_when_idle_does_nothing(monitor):
    monitor.resync()
    assert monitor.status is MonitorStatus.IDLE
    assert not monitor.is_tick_pending


def _process_events_for(seconds):
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        time.sleep(0.01)


def test_timer_ticks_on_wall_clock_until_stopped(workday_times):
    monitor = SessionMonitor(tick_interval_seconds=1)
    snapshots = []
    monitor.snapshotUpdated.connect(snapshots.append)

    monitor.start(workday_times)
    try:
        _process_events_for(2.5)
        timer_driven = snapshots[1:]
        assert len(timer_driven) >= 2
        for snapshot in timer_driven:
            offset = snapshot.computed_at.microsecond
            assert min(offset, 1_000_000 - offset) < 250_000
        assert monitor.is_tick_pending
    finally:
        monitor.stop()

    delivered = len(snapshots)
    assert not monitor.is_tick_pending
    _process_events_for(1.5)
    assert len(snapshots) == delivered
