"""Domain models and tunables for goal schedule checking."""

from goalsched.domain.errors import (
    GoalScheduleError,
    InvalidRange,
    InvalidSpecification,
    InvalidTimeFormat,
)
from goalsched.domain.models import (
    CalendarEvent,
    ComparisonOp,
    CountRule,
    CountUnit,
    EventSource,
    Fix,
    GoalSpecification,
    GoalType,
    LocationMode,
    RuleSource,
    TimeRule,
    TimeWindow,
    VerificationMethod,
    VerificationSpec,
    WeekBoundary,
    Weekday,
    WeeklyPattern,
    Window,
    format_time,
    parse_time,
)
from goalsched.domain.policies import (
    CompatibilityPolicy,
    DefaultCompatibilityPolicy,
)

__all__ = [
    # Errors
    "GoalScheduleError",
    "InvalidRange",
    "InvalidSpecification",
    "InvalidTimeFormat",
    # Models
    "CalendarEvent",
    "ComparisonOp",
    "CountRule",
    "CountUnit",
    "EventSource",
    "Fix",
    "GoalSpecification",
    "GoalType",
    "LocationMode",
    "RuleSource",
    "TimeRule",
    "TimeWindow",
    "VerificationMethod",
    "VerificationSpec",
    "WeekBoundary",
    "Weekday",
    "WeeklyPattern",
    "Window",
    "format_time",
    "parse_time",
    # Policies
    "CompatibilityPolicy",
    "DefaultCompatibilityPolicy",
]
