"""Validation module for checking schedules against goal specifications."""

from goalsched.validation.calendar_validator import (
    CalendarEventValidator,
    CalendarValidationResult,
    CheckDetail,
    ValidationDetails,
)
from goalsched.validation.fixes import FixSuggester, suggest_time_fix, suggest_weekday_fix
from goalsched.validation.matchers import (
    disallowed_weekdays,
    effective_ranges,
    evaluate_frequency,
    is_allowed,
    matches,
)
from goalsched.validation.readiness import (
    ReadinessContext,
    ReadinessResult,
    ScheduleReadinessEvaluator,
)
from goalsched.validation.validator import (
    ScheduleCompatibilityValidator,
    ValidationResult,
    Violation,
    ViolationType,
)

__all__ = [
    "ScheduleCompatibilityValidator",
    "ValidationResult",
    "Violation",
    "ViolationType",
    "CalendarEventValidator",
    "CalendarValidationResult",
    "CheckDetail",
    "ValidationDetails",
    "ScheduleReadinessEvaluator",
    "ReadinessContext",
    "ReadinessResult",
    "FixSuggester",
    "suggest_time_fix",
    "suggest_weekday_fix",
    "matches",
    "effective_ranges",
    "disallowed_weekdays",
    "is_allowed",
    "evaluate_frequency",
]
