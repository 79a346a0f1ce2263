"""
Core runtime for NoPonto: session monitoring, persistence and notifications.
"""

from .session_monitor import (  # noqa: F401
    ClockAnomalyWarning,
    MonitorStatus,
    SessionMonitor,
    TickFailure,
    WorkAlmostComplete,
    WorkComplete,
)
from .session_store import SessionStore  # noqa: F401
