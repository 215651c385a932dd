"""Validation of concrete dated events against a goal specification.

Events are judged week by week. The evaluated range is partitioned into
7-day windows and only complete windows are checked, unless the goal
enforces partial weeks, in which case partial windows join the frequency
check with a scaled requirement.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from goalsched.domain.errors import InvalidRange
from goalsched.domain.models import (
    CalendarEvent,
    CountUnit,
    EventSource,
    GoalSpecification,
    Weekday,
    Window,
    format_time,
    format_weekdays,
)
from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy
from goalsched.scheduling.week_partitioner import partition, span_days
from goalsched.validation.fixes import FixSuggester
from goalsched.validation.matchers import (
    disallowed_weekdays,
    effective_ranges,
    failing_days,
    matches,
    observed_count,
)
from goalsched.validation.validator import (
    ValidationResult,
    Violation,
    ViolationType,
    format_ranges,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckDetail:
    """Outcome of one check dimension across all evaluated windows.

    ``details`` is an append-only trail; recording a detail marks the check
    as failed.
    """

    passed: bool = True
    required: Optional[int] = None
    actual: Optional[int] = None
    missing: list[Weekday] = field(default_factory=list)
    details: list[str] = field(default_factory=list)

    def add_detail(self, message: str) -> None:
        self.details.append(message)
        self.passed = False

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "required": self.required,
            "actual": self.actual,
            "missing": [day.label for day in self.missing],
            "details": list(self.details),
        }


@dataclass
class ValidationDetails:
    """Per-dimension check details for a calendar validation."""

    frequency: CheckDetail = field(default_factory=CheckDetail)
    weekday: CheckDetail = field(default_factory=CheckDetail)
    time: CheckDetail = field(default_factory=CheckDetail)

    def to_dict(self) -> dict:
        return {
            "frequencyCheck": self.frequency.to_dict(),
            "weekdayCheck": self.weekday.to_dict(),
            "timeCheck": self.time.to_dict(),
        }


@dataclass
class CalendarValidationResult(ValidationResult):
    """Validation result for dated events."""

    complete_week_count: int = 0
    details: ValidationDetails = field(default_factory=ValidationDetails)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["completeWeekCount"] = self.complete_week_count
        data["details"] = self.details.to_dict()
        return data


class CalendarEventValidator:
    """Validates dated events over a goal period.

    Three checks run on every complete window:

    1. Frequency: events in the window satisfy the count rule
    2. Weekday: every required weekday appears, and no pattern event falls
       on a weekday outside the allow-list
    3. Time: pattern events that carry a time fall inside the effective
       ranges of their weekday

    Every violation in every window is recorded, so the result lists all
    offending weeks.

    Example:
        >>> validator = CalendarEventValidator()
        >>> result = validator.validate(events, spec, date(2024, 1, 3), date(2024, 1, 12))
        >>> for detail in result.details.frequency.details:
        ...     print(detail)
    """

    def __init__(
        self,
        policy: Optional[CompatibilityPolicy] = None,
        fix_suggester: Optional[FixSuggester] = None,
    ):
        self.policy = policy or DefaultCompatibilityPolicy()
        self.fix_suggester = fix_suggester or FixSuggester(self.policy)

    def validate(
        self,
        events: Iterable[CalendarEvent],
        spec: GoalSpecification,
        start: date,
        end: date,
    ) -> CalendarValidationResult:
        """Validate events between start and end, inclusive.

        Args:
            events: Dated events. Events outside the range are ignored;
                duplicates each count.
            spec: The goal specification to satisfy.
            start: First day of the goal period.
            end: Last day of the goal period.

        Returns:
            CalendarValidationResult with per-check details.

        Raises:
            InvalidRange: If start is after end.
        """
        if start > end:
            raise InvalidRange(start, end)

        result = CalendarValidationResult()
        days = span_days(start, end)
        if days < self.policy.minimum_evaluation_days():
            result.summary = (
                f"Range spans {days} days, shorter than a full week; "
                f"weekly requirements are not evaluated."
            )
            logger.debug("Calendar validation skipped: %d-day range", days)
            return result

        windows = partition(start, end, spec.week_boundary)
        complete = [w for w in windows if not w.is_partial]
        result.complete_week_count = len(complete)
        if not complete and not spec.enforce_partial_weeks:
            result.summary = (
                "No complete week falls inside the range; "
                "weekly requirements are not evaluated."
            )
            return result

        in_range = [e for e in events if start <= e.date <= end]
        by_window = {w: [e for e in in_range if w.contains(e.date)] for w in windows}

        frequency_windows = windows if spec.enforce_partial_weeks else complete
        self._check_frequency(frequency_windows, by_window, spec, result)
        self._check_weekdays(complete, by_window, spec, result)
        offending_days = self._check_times(complete, by_window, spec, result)

        result.is_compatible = not result.violations
        result.fixes = self.fix_suggester.suggest_for_events(in_range, spec, offending_days)
        result.summary = self._summarize(result, spec, windows)

        logger.debug(
            "Calendar validation %s..%s: compatible=%s complete_weeks=%d violations=%d",
            start, end, result.is_compatible, result.complete_week_count, len(result.violations),
        )
        return result

    def _check_frequency(
        self,
        windows: list[Window],
        by_window: dict[Window, list[CalendarEvent]],
        spec: GoalSpecification,
        result: CalendarValidationResult,
    ) -> None:
        rule = spec.count_rule
        check = result.details.frequency
        if rule is None:
            return

        check.required = rule.count
        if rule.unit == CountUnit.PER_DAY:
            self._check_daily_frequency(windows, by_window, spec, result)
            return

        lowest = None
        for window in windows:
            count = len(by_window[window])
            if lowest is None or count < lowest:
                lowest = count

            required = rule.count
            if window.is_partial:
                required = self.policy.scaled_requirement(rule.count, window.active_days)
            observed = observed_count(count, rule.unit, self.policy.weeks_per_month())
            if rule.operator.compare(observed, required):
                continue

            if rule.unit == CountUnit.PER_MONTH:
                message = (
                    f"Week {window.label}: {count} sessions, about {observed} per month; "
                    f"the goal requires {rule.operator.phrase} {required} per month"
                )
            else:
                message = (
                    f"Week {window.label}: {count} sessions scheduled; "
                    f"the goal requires {rule.operator.phrase} {required}"
                )
            check.add_detail(message)
            result.add_violation(
                Violation(
                    violation_type=ViolationType.FREQUENCY_NOT_MET,
                    message=message,
                    window=window,
                    details={"actual": count, "required": required},
                )
            )
        check.actual = lowest

    def _check_daily_frequency(
        self,
        windows: list[Window],
        by_window: dict[Window, list[CalendarEvent]],
        spec: GoalSpecification,
        result: CalendarValidationResult,
    ) -> None:
        """Each scheduled day of each window must satisfy the rule on its own."""
        rule = spec.count_rule
        check = result.details.frequency
        lowest = None

        for window in windows:
            counts = Counter(e.date for e in by_window[window])
            if spec.weekday_constraints:
                for d in window.dates():
                    if Weekday.from_date(d) in spec.weekday_constraints:
                        counts.setdefault(d, 0)
            daily = dict(sorted(counts.items()))
            for count in daily.values():
                if lowest is None or count < lowest:
                    lowest = count

            for d in failing_days(daily, rule):
                message = (
                    f"{d.isoformat()} ({Weekday.from_date(d).short_label}): {daily[d]} sessions; "
                    f"the goal requires {rule.operator.phrase} {rule.count} per day"
                )
                check.add_detail(message)
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.FREQUENCY_NOT_MET,
                        message=message,
                        weekday=Weekday.from_date(d),
                        window=window,
                        details={"actual": daily[d], "required": rule.count},
                    )
                )
        check.actual = lowest

    def _check_weekdays(
        self,
        windows: list[Window],
        by_window: dict[Window, list[CalendarEvent]],
        spec: GoalSpecification,
        result: CalendarValidationResult,
    ) -> None:
        required = spec.weekday_constraints
        if not required:
            return

        check = result.details.weekday
        missing_overall: set[Weekday] = set()
        for window in windows:
            window_events = by_window[window]
            present = {e.weekday for e in window_events}

            missing = required - present
            if missing:
                missing_overall |= missing
                message = f"Week {window.label}: no sessions on {format_weekdays(missing)}"
                check.add_detail(message)
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.WEEKDAY_MISSING,
                        message=message,
                        window=window,
                        details={"missing": sorted(int(d) for d in missing)},
                    )
                )

            pattern_days = {e.weekday for e in window_events if e.source == EventSource.WEEKLY}
            offending = disallowed_weekdays(pattern_days, required)
            if offending:
                message = (
                    f"Week {window.label}: sessions on weekdays not allowed by the goal "
                    f"({format_weekdays(offending)})"
                )
                check.add_detail(message)
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.WEEKDAY_NOT_ALLOWED,
                        message=message,
                        window=window,
                        details={"offending": sorted(int(d) for d in offending)},
                    )
                )

        check.missing = sorted(missing_overall)

    def _check_times(
        self,
        windows: list[Window],
        by_window: dict[Window, list[CalendarEvent]],
        spec: GoalSpecification,
        result: CalendarValidationResult,
    ) -> set[Weekday]:
        """Check pattern events with a time. Returns weekdays with violations."""
        check = result.details.time
        tolerance = self.policy.point_tolerance()
        offending: set[Weekday] = set()

        for window in windows:
            for event in by_window[window]:
                if event.time is None or event.source != EventSource.WEEKLY:
                    continue
                ranges = effective_ranges(event.weekday, spec)
                if not ranges or matches(event.time, ranges, tolerance):
                    continue

                offending.add(event.weekday)
                message = (
                    f"{event.date.isoformat()} ({event.weekday.short_label}) "
                    f"{format_time(event.time)} is outside the allowed time windows "
                    f"({format_ranges(ranges)})"
                )
                check.add_detail(message)
                result.add_violation(
                    Violation(
                        violation_type=ViolationType.TIME_OUTSIDE_WINDOW,
                        message=message,
                        weekday=event.weekday,
                        window=window,
                        details={"time": format_time(event.time)},
                    )
                )

        return offending

    def _summarize(
        self,
        result: CalendarValidationResult,
        spec: GoalSpecification,
        windows: list[Window],
    ) -> str:
        weeks = result.complete_week_count
        if result.is_compatible:
            parts = [
                f"Schedule is compatible with goal requirements. "
                f"{weeks} complete weeks validated."
            ]
        else:
            parts = [
                f"Schedule is not compatible with goal requirements: "
                f"{len(result.violations)} issue(s) across {weeks} complete weeks."
            ]
        if any(w.is_partial for w in windows):
            if spec.enforce_partial_weeks:
                parts.append("Partial weeks were checked against a scaled weekly target.")
            else:
                parts.append("Partial weeks were not evaluated.")
        return " ".join(parts)
