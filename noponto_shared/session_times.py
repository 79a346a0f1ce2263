"""
Time-of-day parsing and validation for the three punch times of a workday.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping

FIELD_NAMES = ("start1", "end1", "start2")

_MAX_DIGITS = 4


class SessionValidationError(ValueError):
    """Raised when a set of session times cannot be monitored."""

    def __init__(self, validation: "SequenceValidation") -> None:
        self.validation = validation
        if validation.field_errors:
            detail = "invalid fields: " + ", ".join(sorted(validation.field_errors))
        else:
            detail = "all three times must be filled in as HH:MM"
        super().__init__(f"Session times rejected ({detail}).")


@dataclass(frozen=True)
class SessionTimes:
    """Start of the first period, end of the first period, start of the second."""

    start1: str = ""
    end1: str = ""
    start2: str = ""

    @property
    def is_filled(self) -> bool:
        return bool(self.start1 and self.end1 and self.start2)

    def as_dict(self) -> Dict[str, str]:
        return {"start1": self.start1, "end1": self.end1, "start2": self.start2}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SessionTimes":
        values = {}
        for name in FIELD_NAMES:
            raw = data.get(name)
            values[name] = raw.strip() if isinstance(raw, str) else ""
        return cls(**values)


@dataclass(frozen=True)
class SequenceValidation:
    is_valid: bool
    field_errors: FrozenSet[str] = field(default_factory=frozenset)


def normalize(raw: str) -> str:
    """
    Turn raw keystrokes into a canonical ``HH:MM`` prefix.

    Non-digits are stripped and at most four digits are kept. Every position
    is then checked left to right; an illegal digit is dropped and the
    following digits shift into its place, so the position is checked again
    until it holds a legal digit or nothing is left. The result is one of
    ``""``, ``"D"``, ``"DD"``, ``"DD:D"`` or ``"DD:DD"`` and feeding it back in
    returns it unchanged.
    """
    digits = [ch for ch in (raw or "") if "0" <= ch <= "9"][:_MAX_DIGITS]

    while digits and int(digits[0]) > 2:
        del digits[0]

    while len(digits) >= 2 and digits[0] == "2" and int(digits[1]) > 3:
        del digits[1]

    while len(digits) >= 3 and int(digits[2]) > 5:
        del digits[2]

    text = "".join(digits)
    if len(text) >= 3:
        return f"{text[:2]}:{text[2:]}"
    return text


def is_complete_time(value: str) -> bool:
    """A field is complete once it is a fully typed ``HH:MM`` value."""
    return bool(value) and len(value) == 5 and ":" in value


def time_to_minutes(value: str) -> int:
    """
    Convert ``HH:MM`` into minutes since midnight.

    Raises ValueError for anything that is not a real time of day.
    """
    if not is_complete_time(value):
        raise ValueError(f"Incomplete time value: {value!r}")
    hours_text, _, minutes_text = value.partition(":")
    if not (hours_text.isdigit() and minutes_text.isdigit()):
        raise ValueError(f"Time value is not numeric: {value!r}")
    hours, minutes = int(hours_text), int(minutes_text)
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time value out of range: {value!r}")
    return hours * 60 + minutes


def validate_sequence(times: SessionTimes) -> SequenceValidation:
    """
    Check that the complete fields follow ``start1 < end1 < start2``.

    Incomplete fields are left out of the comparisons; they only make the
    triple invalid as a whole. Errors accumulate per field.
    """
    errors: set[str] = set()
    minutes: Dict[str, int] = {}

    for name in FIELD_NAMES:
        value = getattr(times, name)
        if not is_complete_time(value):
            continue
        try:
            minutes[name] = time_to_minutes(value)
        except ValueError:
            errors.add(name)

    start1 = minutes.get("start1")
    end1 = minutes.get("end1")
    start2 = minutes.get("start2")

    if start1 is not None and end1 is not None and start1 >= end1:
        errors.update(("start1", "end1"))

    if start2 is not None:
        if start1 is not None and start2 == start1:
            errors.add("start2")
        if end1 is not None:
            if start2 == end1:
                errors.add("start2")
            if start2 <= end1:
                errors.update(("start2", "end1"))

    all_complete = all(is_complete_time(getattr(times, name)) for name in FIELD_NAMES)
    return SequenceValidation(is_valid=all_complete and not errors, field_errors=frozenset(errors))


def require_valid(times: SessionTimes) -> SequenceValidation:
    """Validate ``times`` and raise SessionValidationError when monitoring must not start."""
    validation = validate_sequence(times)
    if not validation.is_valid:
        raise SessionValidationError(validation)
    return validation
