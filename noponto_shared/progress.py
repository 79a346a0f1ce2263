"""
Pure progress arithmetic for a two-period workday.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from .session_times import SessionTimes, time_to_minutes

DEFAULT_TARGET_MINUTES = 8 * 60


@dataclass(frozen=True)
class ProgressSnapshot:
    """Result of one progress evaluation. Recomputed every tick, never stored."""

    worked_minutes: int
    remaining_minutes: int
    projected_end: datetime
    percent_complete: float
    is_complete: bool
    computed_at: datetime
    before_second_period: bool = False

    @property
    def projected_end_time(self) -> str:
        return self.projected_end.strftime("%H:%M")

    @property
    def worked_display(self) -> str:
        return format_duration(self.worked_minutes)

    @property
    def remaining_display(self) -> str:
        return format_duration(self.remaining_minutes)


def compute_progress(
    times: SessionTimes,
    now: datetime,
    *,
    target_minutes: int = DEFAULT_TARGET_MINUTES,
) -> ProgressSnapshot:
    """
    Derive worked and remaining time for ``times`` as of ``now``.

    All three times are taken to fall on ``now``'s calendar day; sessions that
    cross midnight are not supported. Raises ValueError when a time is missing
    or malformed.
    """
    start1 = time_to_minutes(times.start1)
    end1 = time_to_minutes(times.end1)
    start2 = time_to_minutes(times.start2)
    now_minutes = now.hour * 60 + now.minute

    worked_period1 = end1 - start1
    worked_period2 = max(0, now_minutes - start2)
    total_worked = worked_period1 + worked_period2
    remaining = target_minutes - total_worked

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start2_at = midnight + timedelta(minutes=start2)
    projected_end = start2_at + timedelta(minutes=remaining)

    if total_worked >= target_minutes:
        percent = 100.0
    else:
        percent = total_worked / target_minutes * 100

    return ProgressSnapshot(
        worked_minutes=total_worked,
        remaining_minutes=max(0, remaining),
        projected_end=projected_end,
        percent_complete=percent,
        is_complete=remaining <= 0,
        computed_at=now,
        before_second_period=now_minutes < start2,
    )


def format_duration(minutes: int) -> str:
    """Render minutes as ``"Xh Ym"``; anything not positive reads ``"0h 0m"``."""
    if minutes <= 0:
        return "0h 0m"
    hours, rest = divmod(int(minutes), 60)
    return f"{hours}h {rest}m"


def display_percent(snapshot: ProgressSnapshot | None) -> int:
    """Floor the percentage so 100 only shows once the target is actually met."""
    if snapshot is None:
        return 0
    if snapshot.is_complete:
        return 100
    return min(99, math.floor(snapshot.percent_complete))
