"""Tests for time window matching, weekday checks and frequency evaluation."""

from datetime import time, timedelta

import pytest

from goalsched.domain.models import (
    ComparisonOp,
    CountRule,
    CountUnit,
    GoalSpecification,
    TimeRule,
    TimeWindow,
    Weekday,
    minutes_to_time,
)
from goalsched.validation.matchers import (
    allowed_minutes,
    disallowed_weekdays,
    effective_ranges,
    evaluate_frequency,
    failing_days,
    is_allowed,
    matches,
    observed_count,
    range_bounds,
)


class TestMatches:
    """Tests for matches()."""

    @pytest.mark.parametrize("tolerance", [0, 1, 5, 15, 30, 90])
    def test_point_range_tolerance(self, tolerance):
        """A point range matches within the tolerance and not one minute beyond."""
        noon = 12 * 60
        point = (time(12, 0), time(12, 0))
        tau = timedelta(minutes=tolerance)

        assert matches(time(12, 0), [point], tau) is True
        assert matches(minutes_to_time(noon + tolerance), [point], tau) is True
        assert matches(minutes_to_time(noon - tolerance), [point], tau) is True
        assert matches(minutes_to_time(noon + tolerance + 1), [point], tau) is False
        assert matches(minutes_to_time(noon - tolerance - 1), [point], tau) is False

    def test_default_tolerance_is_fifteen_minutes(self):
        point = (time(7, 0), time(7, 0))

        assert matches(time(7, 15), [point]) is True
        assert matches(time(6, 45), [point]) is True
        assert matches(time(7, 16), [point]) is False

    def test_point_range_clamped_at_midnight(self):
        """Expansion is clamped to the day and does not wrap."""
        point = (time(0, 5), time(0, 5))

        assert range_bounds(point, timedelta(minutes=15)) == (0, 20)
        assert matches(time(0, 0), [point]) is True
        assert matches(time(23, 55), [point]) is False

    def test_range_boundaries_inclusive(self):
        work_hours = (time(9, 0), time(17, 0))

        assert matches(time(9, 0), [work_hours]) is True
        assert matches(time(17, 0), [work_hours]) is True
        assert matches(time(8, 59), [work_hours]) is False
        assert matches(time(17, 1), [work_hours]) is False

    def test_non_point_range_has_no_tolerance(self):
        assert matches(time(8, 50), [(time(9, 0), time(17, 0))]) is False

    def test_union_of_ranges(self):
        ranges = [(time(7, 0), time(8, 0)), (time(19, 0), time(21, 0))]

        assert matches(time(7, 30), ranges) is True
        assert matches(time(20, 0), ranges) is True
        assert matches(time(12, 0), ranges) is False

    def test_overnight_range_wraps(self):
        overnight = [(time(22, 0), time(2, 0))]

        assert matches(time(23, 30), overnight) is True
        assert matches(time(1, 0), overnight) is True
        assert matches(time(2, 0), overnight) is True
        assert matches(time(12, 0), overnight) is False

    def test_empty_ranges_never_match(self):
        assert matches(time(12, 0), []) is False


class TestAllowedMinutes:
    """Tests for allowed_minutes()."""

    def test_point_with_tolerance(self):
        minutes = allowed_minutes([(time(7, 0), time(7, 0))], timedelta(minutes=2))

        assert minutes == [418, 419, 420, 421, 422]

    def test_overnight_range(self):
        minutes = allowed_minutes([(time(23, 58), time(0, 1))])

        assert minutes == [0, 1, 1438, 1439]

    def test_agrees_with_matches(self):
        ranges = [(time(6, 30), time(6, 30)), (time(22, 0), time(1, 0))]
        accepted = set(allowed_minutes(ranges))

        for minute in range(0, 24 * 60, 7):
            assert (minute in accepted) == matches(minutes_to_time(minute), ranges)


class TestEffectiveRanges:
    """Tests for the day-specific over global precedence."""

    @pytest.fixture
    def spec(self):
        return GoalSpecification(
            time_rules=(
                TimeRule(
                    days=frozenset({Weekday.MONDAY}),
                    window=TimeWindow(time(7, 0), time(7, 0)),
                ),
            ),
            time_windows=(TimeWindow(time(18, 0), time(20, 0)),),
        )

    def test_day_rule_overrides_global(self, spec):
        assert effective_ranges(Weekday.MONDAY, spec) == [(time(7, 0), time(7, 0))]

    def test_unnamed_day_uses_global(self, spec):
        assert effective_ranges(Weekday.TUESDAY, spec) == [(time(18, 0), time(20, 0))]

    def test_multiple_rules_for_same_day_are_unioned(self):
        spec = GoalSpecification(
            time_rules=(
                TimeRule(days=frozenset({Weekday.MONDAY}), window=TimeWindow(time(7, 0), time(7, 0))),
                TimeRule(days=frozenset({Weekday.MONDAY}), window=TimeWindow(time(19, 0), time(19, 0))),
            ),
        )

        assert effective_ranges(Weekday.MONDAY, spec) == [
            (time(7, 0), time(7, 0)),
            (time(19, 0), time(19, 0)),
        ]

    def test_no_constraints(self):
        assert effective_ranges(Weekday.FRIDAY, GoalSpecification()) == []


class TestWeekdayChecks:
    """Tests for the weekday allow-list checks."""

    ALL_SUBSETS = [
        frozenset(),
        frozenset({Weekday.MONDAY}),
        frozenset({Weekday.SATURDAY, Weekday.SUNDAY}),
        frozenset(Weekday),
    ]

    @pytest.mark.parametrize("selected", ALL_SUBSETS)
    def test_absent_or_empty_allow_list_allows_everything(self, selected):
        assert is_allowed(selected, None) is True
        assert is_allowed(selected, frozenset()) is True
        assert disallowed_weekdays(selected, None) == frozenset()

    @pytest.mark.parametrize("selected", ALL_SUBSETS)
    def test_selection_equal_to_allow_list(self, selected):
        assert is_allowed(selected, selected) is True

    def test_subset_allowed(self):
        allowed = {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY}

        assert is_allowed({Weekday.MONDAY, Weekday.FRIDAY}, allowed) is True

    def test_outside_days_reported(self):
        allowed = {Weekday.MONDAY, Weekday.WEDNESDAY}
        selected = {Weekday.MONDAY, Weekday.TUESDAY, Weekday.SUNDAY}

        assert is_allowed(selected, allowed) is False
        assert disallowed_weekdays(selected, allowed) == {Weekday.TUESDAY, Weekday.SUNDAY}


class TestFrequency:
    """Tests for frequency evaluation."""

    @pytest.mark.parametrize(
        "op,observed,required,expected",
        [
            (ComparisonOp.GE, 3, 3, True),
            (ComparisonOp.GE, 2, 3, False),
            (ComparisonOp.EQ, 3, 3, True),
            (ComparisonOp.EQ, 4, 3, False),
            (ComparisonOp.LE, 3, 3, True),
            (ComparisonOp.LE, 4, 3, False),
            (ComparisonOp.LT, 2, 3, True),
            (ComparisonOp.LT, 3, 3, False),
            (ComparisonOp.GT, 4, 3, True),
            (ComparisonOp.GT, 3, 3, False),
        ],
    )
    def test_operators(self, op, observed, required, expected):
        assert evaluate_frequency(observed, op, required) is expected

    def test_monthly_count_is_weekly_times_four(self):
        assert observed_count(3, CountUnit.PER_MONTH) == 12
        assert observed_count(3, CountUnit.PER_MONTH, weeks_per_month=5) == 15

    def test_weekly_count_unchanged(self):
        assert observed_count(3, CountUnit.PER_WEEK) == 3

    def test_failing_days_evaluates_each_day(self):
        rule = CountRule(ComparisonOp.GE, 2, CountUnit.PER_DAY)
        counts = {Weekday.MONDAY: 2, Weekday.WEDNESDAY: 1, Weekday.FRIDAY: 3}

        assert failing_days(counts, rule) == [Weekday.WEDNESDAY]
