"""Tests for date-range partitioning into 7-day windows."""

from datetime import date, timedelta

import pytest

from goalsched.domain.errors import InvalidRange
from goalsched.domain.models import WeekBoundary
from goalsched.scheduling.week_partitioner import (
    complete_windows,
    count_complete_weeks,
    first_complete_week,
    has_complete_weeks,
    last_complete_week,
    partition,
    span_days,
)


class TestPartition:
    """Tests for partition()."""

    def test_two_aligned_weeks(self):
        """Two full weeks from a Monday yield two complete windows."""
        windows = partition(date(2024, 1, 1), date(2024, 1, 14))

        assert len(windows) == 2
        assert all(not w.is_partial for w in windows)
        assert windows[0].start == date(2024, 1, 1)
        assert windows[0].end == date(2024, 1, 7)
        assert windows[1].start == date(2024, 1, 8)
        assert windows[1].end == date(2024, 1, 14)

    def test_ten_days_mid_week(self):
        """A 10-day range starting Wednesday has one complete and one partial window."""
        windows = partition(date(2024, 1, 3), date(2024, 1, 12))

        assert len(windows) == 2
        assert windows[0].is_partial is False
        assert windows[0].active_days == 7
        assert windows[1].is_partial is True
        assert windows[1].start == date(2024, 1, 10)
        assert windows[1].end == date(2024, 1, 12)
        assert windows[1].active_days == 3

    def test_iso_week_boundary(self):
        """ISO weeks start on Monday, so a Friday start opens with a partial week."""
        windows = partition(date(2024, 1, 5), date(2024, 1, 18), WeekBoundary.ISO_WEEK)

        assert [(w.start, w.end, w.is_partial) for w in windows] == [
            (date(2024, 1, 5), date(2024, 1, 7), True),
            (date(2024, 1, 8), date(2024, 1, 14), False),
            (date(2024, 1, 15), date(2024, 1, 18), True),
        ]
        assert windows[0].active_days == 3
        assert windows[2].active_days == 4

    def test_single_day(self):
        """A one-day range is a single partial window."""
        windows = partition(date(2024, 1, 1), date(2024, 1, 1))

        assert len(windows) == 1
        assert windows[0].is_partial is True
        assert windows[0].active_days == 1

    def test_exactly_seven_days(self):
        """Seven days from the range start form one complete window."""
        windows = partition(date(2024, 1, 3), date(2024, 1, 9))

        assert len(windows) == 1
        assert windows[0].is_partial is False

    def test_start_after_end_raises(self):
        """An inverted range is rejected."""
        with pytest.raises(InvalidRange):
            partition(date(2024, 1, 10), date(2024, 1, 5))

    def test_invalid_range_is_value_error(self):
        """Construction errors are ValueErrors."""
        with pytest.raises(ValueError):
            partition(date(2024, 1, 10), date(2024, 1, 5))

    @pytest.mark.parametrize("boundary", list(WeekBoundary))
    @pytest.mark.parametrize(
        "start",
        [date(2024, 1, 1), date(2024, 1, 3), date(2024, 2, 28), date(2023, 12, 31)],
    )
    @pytest.mark.parametrize("length", [1, 6, 7, 8, 13, 14, 15, 31, 60])
    def test_windows_cover_range_exactly(self, boundary, start, length):
        """Windows are contiguous, non-overlapping and cover exactly [start, end]."""
        end = start + timedelta(days=length - 1)
        windows = partition(start, end, boundary)

        assert windows[0].start == start
        assert windows[-1].end == end
        for previous, current in zip(windows, windows[1:]):
            assert current.start == previous.end + timedelta(days=1)
        assert sum(w.active_days for w in windows) == length
        for w in windows:
            assert w.active_days == span_days(w.start, w.end)
            assert w.is_partial == (w.active_days < 7)


class TestCompleteWeekHelpers:
    """Tests for the complete-week helpers."""

    def test_complete_windows_excludes_partial(self):
        windows = complete_windows(date(2024, 1, 3), date(2024, 1, 12))

        assert len(windows) == 1
        assert windows[0].start == date(2024, 1, 3)

    def test_count_complete_weeks(self):
        assert count_complete_weeks(date(2024, 1, 1), date(2024, 1, 31)) == 4
        assert count_complete_weeks(date(2024, 1, 1), date(2024, 1, 5)) == 0

    def test_has_complete_weeks(self):
        assert has_complete_weeks(date(2024, 1, 1), date(2024, 1, 7)) is True
        assert has_complete_weeks(date(2024, 1, 1), date(2024, 1, 6)) is False

    def test_first_and_last_complete_week(self):
        start, end = date(2024, 1, 5), date(2024, 1, 25)

        first = first_complete_week(start, end, WeekBoundary.ISO_WEEK)
        last = last_complete_week(start, end, WeekBoundary.ISO_WEEK)

        assert first.start == date(2024, 1, 8)
        assert last.start == date(2024, 1, 15)

    def test_no_complete_week_returns_none(self):
        assert first_complete_week(date(2024, 1, 1), date(2024, 1, 3)) is None
        assert last_complete_week(date(2024, 1, 1), date(2024, 1, 3)) is None

    def test_span_days_is_inclusive(self):
        assert span_days(date(2024, 1, 1), date(2024, 1, 1)) == 1
        assert span_days(date(2024, 1, 1), date(2024, 1, 10)) == 10
