"""Tests for session counting over a goal period."""

from datetime import date, time

from goalsched.domain.models import CalendarEvent, EventSource, Weekday
from goalsched.scheduling.session_counter import scheduled_sessions, sessions_per_window
from goalsched.scheduling.week_partitioner import partition


class TestScheduledSessions:
    """Tests for scheduled_sessions()."""

    def test_weekday_selection(self):
        sessions = scheduled_sessions(
            date(2024, 1, 1), date(2024, 1, 14), {Weekday.MONDAY, Weekday.FRIDAY}
        )

        assert sessions == {
            date(2024, 1, 1): 1,
            date(2024, 1, 5): 1,
            date(2024, 1, 8): 1,
            date(2024, 1, 12): 1,
        }

    def test_times_per_day(self):
        sessions = scheduled_sessions(
            date(2024, 1, 1),
            date(2024, 1, 7),
            {Weekday.MONDAY},
            times={Weekday.MONDAY: (time(7, 0), time(19, 0))},
        )

        assert sessions == {date(2024, 1, 1): 2}

    def test_include_and_exclude(self):
        sessions = scheduled_sessions(
            date(2024, 1, 1),
            date(2024, 1, 14),
            {Weekday.MONDAY},
            include_dates={date(2024, 1, 3)},
            exclude_dates={date(2024, 1, 8)},
        )

        assert sessions == {date(2024, 1, 1): 1, date(2024, 1, 3): 1}

    def test_include_overrides_exclude(self):
        sessions = scheduled_sessions(
            date(2024, 1, 1),
            date(2024, 1, 7),
            set(),
            include_dates={date(2024, 1, 2)},
            exclude_dates={date(2024, 1, 2)},
        )

        assert sessions == {date(2024, 1, 2): 1}

    def test_events_count_individually(self):
        events = [
            CalendarEvent(date(2024, 1, 2), time(7, 0)),
            CalendarEvent(date(2024, 1, 2), time(7, 0)),
            CalendarEvent(date(2024, 1, 4), None, EventSource.ONE_OFF),
            CalendarEvent(date(2024, 1, 20), time(7, 0)),
        ]

        sessions = scheduled_sessions(date(2024, 1, 1), date(2024, 1, 7), set(), events=events)

        assert sessions == {date(2024, 1, 2): 2, date(2024, 1, 4): 1}

    def test_excluded_dates_drop_events(self):
        events = [CalendarEvent(date(2024, 1, 2), time(7, 0))]

        sessions = scheduled_sessions(
            date(2024, 1, 1), date(2024, 1, 7), set(),
            exclude_dates={date(2024, 1, 2)}, events=events,
        )

        assert sessions == {}


class TestSessionsPerWindow:
    """Tests for sessions_per_window()."""

    def test_totals_by_window(self):
        windows = partition(date(2024, 1, 3), date(2024, 1, 12))
        sessions = {date(2024, 1, 4): 1, date(2024, 1, 8): 2, date(2024, 1, 11): 1}

        totals = sessions_per_window(windows, sessions)

        assert [count for _, count in totals] == [3, 1]
