"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Keep test runs out of the user's log directory and off the display.
os.environ.setdefault("NOPONTO_LOG_DIR", tempfile.mkdtemp(prefix="noponto-logs-"))
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from loguru import logger  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from noponto import logger as app_logger  # noqa: E402
from noponto_shared.session_times import SessionTimes  # noqa: E402


class FakeClock:
    """Callable wall clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, hours: int, minutes: int) -> None:
        self.now = self.now.replace(hour=hours, minute=minutes, second=0, microsecond=0)

    def advance(self, minutes: int = 1) -> None:
        self.now = self.now + timedelta(minutes=minutes)


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """Headless application instance for QObjects, timers and the coordinator's widgets."""
    app = QApplication.instance() or QApplication([])
    app_logger.configure(Path(os.environ["NOPONTO_LOG_DIR"]) / "tests.log")
    yield app


@pytest.fixture
def log_messages():
    """Messages logged while the test runs, as ``LEVEL|message`` strings."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.rstrip("\n")), format="{level}|{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def workday_times():
    """A regular day: 08:00-12:00, back from lunch at 13:00."""
    return SessionTimes(start1="08:00", end1="12:00", start2="13:00")


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 13, 0))
