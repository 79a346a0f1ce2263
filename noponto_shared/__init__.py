"""
Shared, Qt-free models for session times and progress arithmetic.
"""

from .progress import ProgressSnapshot, compute_progress, format_duration  # noqa: F401
from .session_times import (  # noqa: F401
    SequenceValidation,
    SessionTimes,
    SessionValidationError,
    normalize,
    validate_sequence,
)
