"""Minimal corrective fixes for failed compatibility checks.

The suggester only proposes changes for dimensions that actually failed:
a passing weekday selection is never rewritten, and only weekdays with an
out-of-window time get new times. Passing times on those weekdays are kept
as they are.
"""

from datetime import time, timedelta
from typing import Iterable, Optional

from goalsched.domain.models import (
    CalendarEvent,
    EventSource,
    Fix,
    GoalSpecification,
    Weekday,
    WeeklyPattern,
    minutes_to_time,
    time_to_minutes,
)
from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy
from goalsched.validation.matchers import (
    DEFAULT_POINT_TOLERANCE,
    TimeRange,
    allowed_minutes,
    effective_ranges,
    matches,
)

MINUTES_PER_DAY = 24 * 60


def minute_distance(a: int, b: int) -> int:
    """Minutes between two times of day, the short way round the clock."""
    d = abs(a - b) % MINUTES_PER_DAY
    return min(d, MINUTES_PER_DAY - d)


def suggest_time_fix(
    t: time,
    ranges: Iterable[TimeRange],
    tolerance: timedelta = DEFAULT_POINT_TOLERANCE,
) -> time:
    """Nearest allowed time.

    Returns ``t`` unchanged if it already matches a range (or there are no
    ranges). Otherwise returns the start or end of the range closest to
    ``t``. Distance is measured around the clock, so 23:50 is ten minutes
    from 00:00. Ties go to the earlier candidate.
    """
    ranges = list(ranges)
    if not ranges or matches(t, ranges, tolerance):
        return t

    minute = time_to_minutes(t)
    best = t
    best_distance = None
    for start, end in ranges:
        for boundary in (start, end):
            distance = minute_distance(time_to_minutes(boundary), minute)
            if best_distance is None or distance < best_distance:
                best, best_distance = boundary, distance
    return best


def suggest_weekday_fix(
    selected: Iterable[Weekday],
    allowed: Optional[Iterable[Weekday]],
) -> Optional[frozenset[Weekday]]:
    """Selection narrowed to the allow-list, if that changes anything.

    Returns None when there is no allow-list or the selection is already
    inside it. When none of the selected weekdays is allowed the result is
    the empty set, meaning every selected weekday should be removed.
    """
    selected_set = frozenset(selected)
    allowed_set = frozenset(allowed or ())
    if not allowed_set:
        return None
    kept = selected_set & allowed_set
    if kept == selected_set:
        return None
    return kept


class FixSuggester:
    """Builds a Fix covering only the dimensions that failed.

    Example:
        >>> suggester = FixSuggester()
        >>> fix = suggester.suggest(pattern, spec, weekday_failed=True, time_violations=[])
    """

    def __init__(self, policy: Optional[CompatibilityPolicy] = None):
        self.policy = policy or DefaultCompatibilityPolicy()

    def suggest_time_fix(self, t: time, ranges: Iterable[TimeRange]) -> time:
        return suggest_time_fix(t, ranges, self.policy.point_tolerance())

    def suggest(
        self,
        pattern: WeeklyPattern,
        spec: GoalSpecification,
        weekday_failed: bool,
        time_violations: Iterable[tuple[Weekday, time]],
    ) -> Optional[Fix]:
        """Suggest a fix for a weekly pattern.

        Args:
            pattern: The pattern that was validated.
            spec: The specification it was validated against.
            weekday_failed: Whether the weekday check failed.
            time_violations: (weekday, time) pairs outside their windows.

        Returns:
            A Fix, or None if nothing needs correcting.
        """
        weekly_weekdays = None
        if weekday_failed:
            weekly_weekdays = suggest_weekday_fix(pattern.weekdays, spec.weekday_constraints)

        offending_days = sorted({day for day, _ in time_violations})
        time_settings = None
        if offending_days:
            time_settings = {
                day: self._fixed_times(pattern.times_for(day), effective_ranges(day, spec))
                for day in offending_days
            }

        fix = Fix(weekly_weekdays=weekly_weekdays, weekly_time_settings=time_settings)
        return None if fix.is_empty else fix

    def suggest_for_events(
        self,
        events: Iterable[CalendarEvent],
        spec: GoalSpecification,
        offending_days: Iterable[Weekday],
    ) -> Optional[Fix]:
        """Suggest weekly times for weekdays whose pattern events were out of window.

        One-off events are left alone; only pattern-origin times are
        rewritten.
        """
        days = sorted(set(offending_days))
        if not days:
            return None

        time_settings = {}
        for day in days:
            day_times = [
                event.time
                for event in events
                if event.source == EventSource.WEEKLY
                and event.time is not None
                and event.weekday == day
            ]
            time_settings[day] = self._fixed_times(day_times, effective_ranges(day, spec))
        return Fix(weekly_time_settings=time_settings)

    def _fixed_times(self, times: Iterable[time], ranges: list[TimeRange]) -> tuple[time, ...]:
        """Corrected times for one weekday, one per distinct input time.

        Passing times are kept. An out-of-window time moves to its nearest
        boundary, or to the closest free allowed minute when another session
        already holds that boundary, so the day keeps its session count.
        """
        tolerance = self.policy.point_tolerance()
        distinct = sorted(set(times))
        taken = {t for t in distinct if not ranges or matches(t, ranges, tolerance)}
        pending = [t for t in distinct if t not in taken]
        candidates = None

        for t in pending:
            snapped = self.suggest_time_fix(t, ranges)
            if snapped not in taken:
                taken.add(snapped)
                continue

            if candidates is None:
                candidates = allowed_minutes(ranges, tolerance)
            target = time_to_minutes(snapped)
            minute = time_to_minutes(t)
            free = [m for m in candidates if minutes_to_time(m) not in taken]
            if not free:
                continue
            best = min(free, key=lambda m: (minute_distance(m, target), minute_distance(m, minute), m))
            taken.add(minutes_to_time(best))

        return tuple(sorted(taken))
