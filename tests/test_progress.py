from datetime import datetime

import pytest

from noponto_shared.progress import (
    ProgressSnapshot,
    compute_progress,
    display_percent,
    format_duration,
)
from noponto_shared.session_times import SessionTimes


def _at(hours, minutes):
    return datetime(2025, 3, 10, hours, minutes)


def test_progress_right_after_lunch(workday_times):
    snapshot = compute_progress(workday_times, _at(13, 0))
    assert snapshot.worked_minutes == 240
    assert snapshot.remaining_minutes == 240
    assert snapshot.percent_complete == pytest.approx(50.0)
    assert not snapshot.is_complete
    assert snapshot.projected_end_time == "17:00"
    assert not snapshot.before_second_period


def test_progress_at_target(workday_times):
    snapshot = compute_progress(workday_times, _at(17, 0))
    assert snapshot.worked_minutes == 480
    assert snapshot.remaining_minutes == 0
    assert snapshot.is_complete
    assert snapshot.percent_complete == 100


def test_overtime_clamps_remaining_and_percent(workday_times):
    snapshot = compute_progress(workday_times, _at(18, 30))
    assert snapshot.worked_minutes == 570
    assert snapshot.remaining_minutes == 0
    assert snapshot.percent_complete == 100
    assert snapshot.is_complete


def test_before_second_period_counts_only_first_period(workday_times):
    snapshot = compute_progress(workday_times, _at(12, 30))
    assert snapshot.worked_minutes == 240
    assert snapshot.remaining_minutes == 240
    assert snapshot.before_second_period


def test_custom_target():
    times = SessionTimes("09:00", "12:00", "13:00")
    snapshot = compute_progress(times, _at(15, 0), target_minutes=360)
    assert snapshot.worked_minutes == 300
    assert snapshot.remaining_minutes == 60


def test_incomplete_times_raise():
    with pytest.raises(ValueError):
        compute_progress(SessionTimes("08:00", "12:00", ""), _at(13, 0))


@pytest.mark.parametrize(
    "minutes, expected",
    [(0, "0h 0m"), (-15, "0h 0m"), (5, "0h 5m"), (60, "1h 0m"), (125, "2h 5m"), (480, "8h 0m")],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def _snapshot(percent, complete=False):
    now = _at(16, 59)
    return ProgressSnapshot(
        worked_minutes=0,
        remaining_minutes=0 if complete else 1,
        projected_end=now,
        percent_complete=percent,
        is_complete=complete,
        computed_at=now,
    )


def test_display_percent_never_rounds_up_to_full():
    assert display_percent(None) == 0
    assert display_percent(_snapshot(49.6)) == 49
    assert display_percent(_snapshot(99.8)) == 99
    assert display_percent(_snapshot(100.0, complete=True)) == 100
