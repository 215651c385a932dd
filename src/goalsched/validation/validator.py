"""Validation of weekly patterns against a goal specification.

This module is the single place where a repeating weekly proposal is
judged. Every check runs on every call and records its violations on the
result, so one pass reports all problems at once.
"""

import logging
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Optional

from goalsched.domain.models import (
    CountUnit,
    Fix,
    GoalSpecification,
    LocationMode,
    Weekday,
    WeeklyPattern,
    Window,
    format_time,
    format_weekdays,
)
from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy
from goalsched.validation.fixes import FixSuggester
from goalsched.validation.matchers import (
    TimeRange,
    disallowed_weekdays,
    effective_ranges,
    evaluate_frequency,
    failing_days,
    matches,
    observed_count,
)

logger = logging.getLogger(__name__)


class ViolationType(Enum):
    """Types of compatibility violations."""

    WEEKDAY_NOT_ALLOWED = "weekday_not_allowed"
    WEEKDAY_MISSING = "weekday_missing"
    TIME_OUTSIDE_WINDOW = "time_outside_window"
    FREQUENCY_NOT_MET = "frequency_not_met"

    @property
    def category(self) -> str:
        """Check category: "weekday", "time" or "frequency"."""
        return self.value.split("_", 1)[0]


@dataclass
class Violation:
    """A single compatibility violation."""

    violation_type: ViolationType
    message: str
    weekday: Optional[Weekday] = None
    window: Optional[Window] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.violation_type.value}] {self.message}"


@dataclass
class ValidationResult:
    """Result of validating a schedule.

    Violations are append-only: checks add to the result and never replace
    what an earlier check recorded.
    """

    is_compatible: bool = True
    issues: list[str] = field(default_factory=list)
    fixes: Optional[Fix] = None
    summary: str = ""
    violations: list[Violation] = field(default_factory=list)

    def add_violation(self, violation: Violation) -> None:
        """Record a violation and its issue message."""
        self.violations.append(violation)
        self.issues.append(violation.message)

    def add_issue(self, message: str) -> None:
        """Record an issue that has no violation record behind it."""
        self.issues.append(message)

    def violations_of(self, *types: ViolationType) -> list[Violation]:
        return [v for v in self.violations if v.violation_type in types]

    @property
    def violation_types(self) -> set[ViolationType]:
        return {v.violation_type for v in self.violations}

    def to_dict(self) -> dict:
        return {
            "isCompatible": self.is_compatible,
            "issues": list(self.issues),
            "fixes": self.fixes.to_dict() if self.fixes else None,
            "summary": self.summary,
        }


def format_range(time_range: TimeRange) -> str:
    start, end = time_range
    if start == end:
        return format_time(start)
    return f"{format_time(start)}-{format_time(end)}"


def format_ranges(ranges: list[TimeRange]) -> str:
    return ", ".join(format_range(r) for r in ranges)


class ScheduleCompatibilityValidator:
    """Validates a weekly pattern against a goal specification.

    Weekday, time and frequency checks run independently and all of their
    violations are reported. Time-window violations alone never make a
    pattern incompatible, since each one has an automatic fix.

    Example:
        >>> validator = ScheduleCompatibilityValidator()
        >>> result = validator.validate(pattern, spec)
        >>> if not result.is_compatible:
        ...     for issue in result.issues:
        ...         print(issue)
    """

    def __init__(
        self,
        policy: Optional[CompatibilityPolicy] = None,
        fix_suggester: Optional[FixSuggester] = None,
    ):
        self.policy = policy or DefaultCompatibilityPolicy()
        self.fix_suggester = fix_suggester or FixSuggester(self.policy)

    def validate(self, pattern: WeeklyPattern, spec: GoalSpecification) -> ValidationResult:
        """Validate a weekly pattern.

        Args:
            pattern: Selected weekdays and proposed times.
            spec: The goal specification to satisfy.

        Returns:
            ValidationResult with the verdict, issues, fixes and summary.
        """
        result = ValidationResult()

        weekday_failed = self._check_weekdays(pattern, spec, result)
        time_violations = self._check_times(pattern, spec, result)
        frequency_passed = self._check_frequency(pattern, spec, result)

        result.is_compatible = self._is_compatible(result, spec, frequency_passed)
        result.fixes = self.fix_suggester.suggest(pattern, spec, weekday_failed, time_violations)
        result.summary = self._summarize(result, spec)

        logger.debug(
            "Pattern validation: compatible=%s violations=%s",
            result.is_compatible,
            [v.violation_type.value for v in result.violations],
        )
        return result

    def _check_weekdays(
        self,
        pattern: WeeklyPattern,
        spec: GoalSpecification,
        result: ValidationResult,
    ) -> bool:
        """Check the weekday selection. Returns True if it failed."""
        offending = disallowed_weekdays(pattern.weekdays, spec.weekday_constraints)
        if not offending:
            return False

        result.add_violation(
            Violation(
                violation_type=ViolationType.WEEKDAY_NOT_ALLOWED,
                message=(
                    f"Weekdays not allowed by the goal: {format_weekdays(offending)} "
                    f"(allowed: {format_weekdays(spec.weekday_constraints)})"
                ),
                details={"offending": sorted(int(d) for d in offending)},
            )
        )
        return True

    def _check_times(
        self,
        pattern: WeeklyPattern,
        spec: GoalSpecification,
        result: ValidationResult,
    ) -> list[tuple[Weekday, time]]:
        """Check each proposed time against its weekday's effective ranges."""
        tolerance = self.policy.point_tolerance()
        violations = []

        for day in sorted(pattern.weekdays):
            ranges = effective_ranges(day, spec)
            if not ranges:
                continue
            for t in pattern.times_for(day):
                if matches(t, ranges, tolerance):
                    continue
                violations.append((day, t))
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.TIME_OUTSIDE_WINDOW,
                        message=(
                            f"{day.label} {format_time(t)} is outside the allowed "
                            f"time windows ({format_ranges(ranges)})"
                        ),
                        weekday=day,
                        details={"time": format_time(t)},
                    )
                )

        return violations

    def _check_frequency(
        self,
        pattern: WeeklyPattern,
        spec: GoalSpecification,
        result: ValidationResult,
    ) -> bool:
        """Check the frequency target. Returns True if it passed."""
        rule = spec.count_rule
        if rule is None:
            return True

        if spec.enforce_partial_weeks and pattern.has_any_time:
            logger.debug("Partial weeks accepted; frequency %s treated as satisfied", rule)
            return True

        if rule.unit == CountUnit.PER_DAY:
            counts = {day: len(pattern.times_for(day)) for day in sorted(pattern.weekdays)}
            if not counts:
                counts = {None: 0}
            failed = failing_days(counts, rule)
            for day in failed:
                subject = day.label if day is not None else "No weekday"
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.FREQUENCY_NOT_MET,
                        message=(
                            f"{subject} has {counts[day]} sessions; the goal requires "
                            f"{rule.operator.phrase} {rule.count} per day"
                        ),
                        weekday=day,
                        details={"actual": counts[day], "required": rule.count},
                    )
                )
            return not failed

        weekly = pattern.total_sessions
        observed = observed_count(weekly, rule.unit, self.policy.weeks_per_month())
        if evaluate_frequency(observed, rule.operator, rule.count):
            return True

        if rule.unit == CountUnit.PER_MONTH:
            message = (
                f"Schedule provides about {observed} sessions per month "
                f"({weekly} per week x {self.policy.weeks_per_month()}); the goal requires "
                f"{rule.operator.phrase} {rule.count} per month"
            )
        else:
            message = (
                f"Weekly schedule provides {observed} sessions; the goal requires "
                f"{rule.operator.phrase} {rule.count} per week"
            )
        result.add_violation(
            Violation(
                violation_type=ViolationType.FREQUENCY_NOT_MET,
                message=message,
                details={"actual": observed, "required": rule.count},
            )
        )
        return False

    def _is_compatible(
        self,
        result: ValidationResult,
        spec: GoalSpecification,
        frequency_passed: bool,
    ) -> bool:
        """Apply the compatibility rule.

        Compatible when there are no violations, when only time windows
        were violated, when the goal restricts no weekdays, or when partial
        weeks are accepted and frequency passed.
        """
        if not result.violations:
            return True
        if result.violation_types == {ViolationType.TIME_OUTSIDE_WINDOW}:
            return True
        if not spec.has_weekday_restriction:
            return True
        if spec.enforce_partial_weeks and frequency_passed:
            return True
        return False

    def _summarize(self, result: ValidationResult, spec: GoalSpecification) -> str:
        count = len(result.violations)
        if not count:
            parts = ["Schedule is compatible with the goal."]
        elif result.is_compatible:
            time_count = len(result.violations_of(ViolationType.TIME_OUTSIDE_WINDOW))
            if time_count == count:
                parts = [
                    f"Schedule is compatible; {time_count} time(s) can be adjusted "
                    f"to fit the allowed windows."
                ]
            else:
                parts = [f"Schedule is compatible with {count} non-blocking issue(s)."]
        else:
            parts = [f"Schedule is not compatible with the goal: {count} issue(s) found."]

        if spec.location_mode == LocationMode.MOVEMENT:
            parts.append("Location is verified by movement, so no fixed place is required.")
        if spec.enforce_partial_weeks:
            parts.append("Partial weeks are accepted, so the weekly count is not strictly enforced.")
        return " ".join(parts)
