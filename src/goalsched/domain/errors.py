"""Typed errors raised while constructing engine inputs.

Schedule violations are never raised; they are collected on the validation
result. These errors cover malformed input only.
"""


class GoalScheduleError(ValueError):
    """Base class for all construction-time errors."""


class InvalidRange(GoalScheduleError):
    """A date range whose start falls after its end."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: start {start} is after end {end}")


class InvalidTimeFormat(GoalScheduleError):
    """A time string that is not a valid 24-hour HH:MM value."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid time format: {value!r} (expected HH:MM, 24-hour)")


class InvalidSpecification(GoalScheduleError):
    """A goal specification field with an unknown or malformed value."""
