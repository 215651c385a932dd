"""Primitive checks shared by the validators.

- Time window matching with tolerance on point ranges
- Resolution of the effective time ranges for a weekday
- Weekday allow-list checking
- Frequency target evaluation
"""

from datetime import time, timedelta
from typing import Iterable, Mapping, Optional, TypeVar

from goalsched.domain.models import (
    FIRST_MINUTE,
    LAST_MINUTE,
    ComparisonOp,
    CountRule,
    CountUnit,
    GoalSpecification,
    Weekday,
    time_to_minutes,
)

TimeRange = tuple[time, time]
K = TypeVar("K")

DEFAULT_POINT_TOLERANCE = timedelta(minutes=15)


def tolerance_minutes(tolerance: timedelta) -> int:
    return int(tolerance.total_seconds() // 60)


def range_bounds(time_range: TimeRange, tolerance: timedelta) -> tuple[int, int]:
    """Minute bounds of a range as tested, after point-range expansion.

    Point ranges grow by ``tolerance`` on both sides, clamped to
    [00:00, 23:59]. Other ranges are returned as-is.
    """
    lo = time_to_minutes(time_range[0])
    hi = time_to_minutes(time_range[1])
    if lo == hi:
        tol = tolerance_minutes(tolerance)
        return max(FIRST_MINUTE, lo - tol), min(LAST_MINUTE, hi + tol)
    return lo, hi


def matches(
    t: time,
    ranges: Iterable[TimeRange],
    tolerance: timedelta = DEFAULT_POINT_TOLERANCE,
) -> bool:
    """Check if a time falls inside any of the allowed ranges.

    Boundaries are inclusive. A range whose start is after its end wraps
    past midnight.

    Args:
        t: Time to test.
        ranges: Allowed (start, end) ranges; the union is tested.
        tolerance: Expansion applied to point ranges only.
    """
    minute = time_to_minutes(t)
    for time_range in ranges:
        lo, hi = range_bounds(time_range, tolerance)
        if lo <= hi:
            if lo <= minute <= hi:
                return True
        elif minute >= lo or minute <= hi:
            return True
    return False


def allowed_minutes(
    ranges: Iterable[TimeRange],
    tolerance: timedelta = DEFAULT_POINT_TOLERANCE,
) -> list[int]:
    """Every minute of the day that ``matches`` accepts, in ascending order."""
    minutes = set()
    for time_range in ranges:
        lo, hi = range_bounds(time_range, tolerance)
        if lo <= hi:
            minutes.update(range(lo, hi + 1))
        else:
            minutes.update(range(lo, LAST_MINUTE + 1))
            minutes.update(range(FIRST_MINUTE, hi + 1))
    return sorted(minutes)


def effective_ranges(weekday: Weekday, spec: GoalSpecification) -> list[TimeRange]:
    """Allowed time ranges for a weekday.

    Day-specific time rules naming the weekday take precedence; the global
    time windows apply only when no rule names it. An empty list means the
    weekday has no time constraint.
    """
    day_ranges = [rule.window.range for rule in spec.time_rules if rule.applies_to(weekday)]
    if day_ranges:
        return day_ranges
    return [window.range for window in spec.time_windows]


def disallowed_weekdays(
    selected: Iterable[Weekday],
    allowed: Optional[Iterable[Weekday]],
) -> frozenset[Weekday]:
    """Selected weekdays outside the allow-list.

    An absent or empty allow-list permits every weekday.
    """
    allowed_set = frozenset(allowed or ())
    if not allowed_set:
        return frozenset()
    return frozenset(selected) - allowed_set


def is_allowed(
    selected: Iterable[Weekday],
    allowed: Optional[Iterable[Weekday]],
) -> bool:
    """True if the selection is a subset of (or equal to) the allow-list."""
    return not disallowed_weekdays(selected, allowed)


def evaluate_frequency(observed: int, op: ComparisonOp, required: int) -> bool:
    return op.compare(observed, required)


def observed_count(weekly_count: int, unit: CountUnit, weeks_per_month: int = 4) -> int:
    """Observed count in the rule's unit, from a weekly count.

    Monthly counts are approximated as ``weekly_count * weeks_per_month``.
    Per-day rules are evaluated day by day with ``failing_days`` instead.
    """
    if unit == CountUnit.PER_MONTH:
        return weekly_count * weeks_per_month
    return weekly_count


def failing_days(counts: Mapping[K, int], rule: CountRule) -> list[K]:
    """Keys whose individual count does not satisfy a per-day rule."""
    return [key for key, count in counts.items() if not rule.operator.compare(count, rule.count)]
