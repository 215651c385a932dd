"""Tests for calendar event validation."""

from datetime import date, time, timedelta

import pytest

from goalsched.domain.errors import InvalidRange
from goalsched.domain.models import (
    CalendarEvent,
    ComparisonOp,
    CountRule,
    CountUnit,
    EventSource,
    GoalSpecification,
    TimeRule,
    TimeWindow,
    WeekBoundary,
    Weekday,
)
from goalsched.validation.calendar_validator import CalendarEventValidator
from goalsched.validation.validator import ViolationType


def event(day: date, at: time = None, source: EventSource = EventSource.WEEKLY) -> CalendarEvent:
    return CalendarEvent(date=day, time=at, source=source)


def at_least(count: int, unit: CountUnit = CountUnit.PER_WEEK) -> CountRule:
    return CountRule(operator=ComparisonOp.GE, count=count, unit=unit)


class TestCalendarEventValidator:
    """Tests for CalendarEventValidator."""

    @pytest.fixture
    def validator(self):
        return CalendarEventValidator()

    @pytest.fixture
    def three_per_week(self):
        return GoalSpecification(count_rule=at_least(3))

    def test_complete_week_short_of_target(self, validator, three_per_week):
        """Only the complete window is counted; the trailing partial window is ignored."""
        events = [
            event(date(2024, 1, 4)),
            event(date(2024, 1, 8)),
            # Partial window 2024-01-10 ~ 2024-01-12
            event(date(2024, 1, 10)),
            event(date(2024, 1, 11)),
            event(date(2024, 1, 12)),
        ]

        result = validator.validate(events, three_per_week, date(2024, 1, 3), date(2024, 1, 12))

        assert result.is_compatible is False
        assert result.complete_week_count == 1
        frequency = result.violations_of(ViolationType.FREQUENCY_NOT_MET)
        assert len(frequency) == 1
        assert "2024-01-03 ~ 2024-01-09" in frequency[0].message
        assert result.details.frequency.passed is False
        assert result.details.frequency.required == 3
        assert result.details.frequency.actual == 2
        assert "Partial weeks were not evaluated" in result.summary

    def test_short_range_short_circuits(self, validator, three_per_week):
        """Ranges under a week are compatible regardless of content."""
        result = validator.validate([], three_per_week, date(2024, 1, 1), date(2024, 1, 5))

        assert result.is_compatible is True
        assert result.issues == []
        assert "shorter than a full week" in result.summary
        assert result.complete_week_count == 0

    def test_inverted_range_raises(self, validator, three_per_week):
        with pytest.raises(InvalidRange):
            validator.validate([], three_per_week, date(2024, 1, 12), date(2024, 1, 3))

    def test_compatible_summary(self, validator, three_per_week):
        start = date(2024, 1, 1)
        events = [event(start + timedelta(days=offset)) for offset in (0, 2, 4, 7, 9, 11)]

        result = validator.validate(events, three_per_week, start, date(2024, 1, 14))

        assert result.is_compatible is True
        assert result.summary == (
            "Schedule is compatible with goal requirements. 2 complete weeks validated."
        )
        assert result.fixes is None

    def test_duplicate_events_each_count(self, validator, three_per_week):
        events = [event(date(2024, 1, 1), time(7, 0))] * 3

        result = validator.validate(events, three_per_week, date(2024, 1, 1), date(2024, 1, 7))

        assert result.is_compatible is True

    def test_events_outside_range_ignored(self, validator, three_per_week):
        events = [
            event(date(2023, 12, 31)),
            event(date(2024, 1, 1)),
            event(date(2024, 1, 8)),
        ]

        result = validator.validate(events, three_per_week, date(2024, 1, 1), date(2024, 1, 7))

        assert result.details.frequency.actual == 1

    def test_every_offending_week_is_reported(self, validator, three_per_week):
        start = date(2024, 1, 1)
        events = [event(start + timedelta(weeks=w)) for w in range(3)]

        result = validator.validate(events, three_per_week, start, date(2024, 1, 21))

        assert result.complete_week_count == 3
        assert len(result.details.frequency.details) == 3
        assert len(result.violations_of(ViolationType.FREQUENCY_NOT_MET)) == 3

    def test_missing_required_weekday(self, validator):
        spec = GoalSpecification(weekday_constraints=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY}))
        events = [
            event(date(2024, 1, 1)),  # Mon
            event(date(2024, 1, 3)),  # Wed
            event(date(2024, 1, 8)),  # Mon, no Wednesday in week two
        ]

        result = validator.validate(events, spec, date(2024, 1, 1), date(2024, 1, 14))

        assert result.is_compatible is False
        missing = result.violations_of(ViolationType.WEEKDAY_MISSING)
        assert len(missing) == 1
        assert "2024-01-08 ~ 2024-01-14" in missing[0].message
        assert result.details.weekday.missing == [Weekday.WEDNESDAY]

    def test_pattern_event_on_disallowed_weekday(self, validator):
        spec = GoalSpecification(weekday_constraints=frozenset({Weekday.MONDAY}))
        events = [
            event(date(2024, 1, 1)),
            event(date(2024, 1, 2)),  # Tuesday, from the pattern
            event(date(2024, 1, 8)),
            event(date(2024, 1, 9), source=EventSource.ONE_OFF),  # Tuesday, one-off
        ]

        result = validator.validate(events, spec, date(2024, 1, 1), date(2024, 1, 14))

        offending = result.violations_of(ViolationType.WEEKDAY_NOT_ALLOWED)
        assert len(offending) == 1
        assert "2024-01-01 ~ 2024-01-07" in offending[0].message

    def test_time_check_only_for_pattern_events(self, validator):
        spec = GoalSpecification(
            time_rules=(
                TimeRule(
                    days=frozenset({Weekday.MONDAY}),
                    window=TimeWindow(time(7, 0), time(7, 0)),
                ),
            ),
        )
        events = [
            event(date(2024, 1, 1), time(8, 30)),
            event(date(2024, 1, 8), time(8, 30), EventSource.ONE_OFF),
            event(date(2024, 1, 10)),  # no time
        ]

        result = validator.validate(events, spec, date(2024, 1, 1), date(2024, 1, 14))

        assert result.is_compatible is False
        time_violations = result.violations_of(ViolationType.TIME_OUTSIDE_WINDOW)
        assert len(time_violations) == 1
        assert "2024-01-01" in time_violations[0].message
        assert result.details.time.passed is False
        assert result.fixes.weekly_time_settings == {Weekday.MONDAY: (time(7, 0),)}

    def test_enforce_partial_weeks_scales_target(self, validator):
        spec = GoalSpecification(count_rule=at_least(3), enforce_partial_weeks=True)
        full_week = [event(date(2024, 1, 3)), event(date(2024, 1, 5)), event(date(2024, 1, 7))]

        # Partial window of 3 days needs ceil(3 * 3 / 7) = 2
        short = validator.validate(
            full_week + [event(date(2024, 1, 10))], spec, date(2024, 1, 3), date(2024, 1, 12)
        )
        enough = validator.validate(
            full_week + [event(date(2024, 1, 10)), event(date(2024, 1, 12))],
            spec,
            date(2024, 1, 3),
            date(2024, 1, 12),
        )

        assert short.is_compatible is False
        assert "2024-01-10 ~ 2024-01-12" in short.issues[0]
        assert enough.is_compatible is True
        assert "scaled weekly target" in enough.summary

    def test_iso_range_without_complete_week(self, validator, three_per_week):
        spec = GoalSpecification(count_rule=at_least(3), week_boundary=WeekBoundary.ISO_WEEK)

        result = validator.validate([], spec, date(2024, 1, 3), date(2024, 1, 9))

        assert result.is_compatible is True
        assert result.complete_week_count == 0
        assert "No complete week" in result.summary

    def test_per_day_rule(self, validator):
        spec = GoalSpecification(
            count_rule=at_least(2, CountUnit.PER_DAY),
            weekday_constraints=frozenset({Weekday.MONDAY}),
        )
        events = [
            event(date(2024, 1, 1), time(7, 0)),
            event(date(2024, 1, 1), time(19, 0)),
            event(date(2024, 1, 8), time(7, 0)),
        ]

        result = validator.validate(events, spec, date(2024, 1, 1), date(2024, 1, 14))

        frequency = result.violations_of(ViolationType.FREQUENCY_NOT_MET)
        assert len(frequency) == 1
        assert frequency[0].message.startswith("2024-01-08 (Mon)")
        assert result.details.frequency.actual == 1

    def test_per_month_rule(self, validator):
        spec = GoalSpecification(count_rule=at_least(12, CountUnit.PER_MONTH))
        events = [event(date(2024, 1, d)) for d in (1, 3, 5)]

        result = validator.validate(events, spec, date(2024, 1, 1), date(2024, 1, 7))

        assert result.is_compatible is True

    def test_no_count_rule(self, validator):
        result = validator.validate([], GoalSpecification(), date(2024, 1, 1), date(2024, 1, 14))

        assert result.is_compatible is True
        assert result.details.frequency.required is None

    def test_to_dict_includes_details(self, validator, three_per_week):
        result = validator.validate([], three_per_week, date(2024, 1, 1), date(2024, 1, 7))

        data = result.to_dict()

        assert data["isCompatible"] is False
        assert data["completeWeekCount"] == 1
        assert data["details"]["frequencyCheck"] == {
            "passed": False,
            "required": 3,
            "actual": 0,
            "missing": [],
            "details": ["Week 2024-01-01 ~ 2024-01-07: 0 sessions scheduled; the goal requires at least 3"],
        }
