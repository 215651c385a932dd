"""Partitioning of date ranges into 7-day windows.

Frequency targets are only meaningful over complete weeks, so every
date-based check starts by splitting the goal period into consecutive
7-day windows and marking the ones cut short by the period's edges.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from goalsched.domain.errors import InvalidRange
from goalsched.domain.models import WeekBoundary, Window

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def span_days(start: date, end: date) -> int:
    """Number of days in the inclusive range [start, end]."""
    return (end - start).days + 1


def window_anchor(start: date, boundary: WeekBoundary) -> date:
    """First day of the first window.

    START_WEEKDAY keeps the range's own start date; ISO_WEEK moves back to
    the Monday on or before it.
    """
    if boundary == WeekBoundary.ISO_WEEK:
        return start - timedelta(days=start.weekday())
    return start


def partition(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> list[Window]:
    """Split an inclusive date range into consecutive 7-day windows.

    Windows are emitted while their nominal first day is on or before
    ``end``. Each window is clipped to [start, end]; a clipped window is
    partial.

    Args:
        start: First day of the range.
        end: Last day of the range.
        boundary: Week-start policy.

    Returns:
        Contiguous, non-overlapping windows covering exactly [start, end].

    Raises:
        InvalidRange: If start is after end.
    """
    if start > end:
        raise InvalidRange(start, end)

    windows = []
    week_start = window_anchor(start, boundary)
    while week_start <= end:
        week_end = week_start + timedelta(days=DAYS_PER_WEEK - 1)
        clipped_start = max(week_start, start)
        clipped_end = min(week_end, end)
        active_days = span_days(clipped_start, clipped_end)
        windows.append(
            Window(
                start=clipped_start,
                end=clipped_end,
                active_days=active_days,
                is_partial=active_days < DAYS_PER_WEEK,
            )
        )
        week_start += timedelta(days=DAYS_PER_WEEK)

    logger.debug(
        "Partitioned %s..%s (%s) into %d windows, %d complete",
        start, end, boundary.value, len(windows),
        sum(1 for w in windows if not w.is_partial),
    )
    return windows


def complete_windows(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> list[Window]:
    """Only the full 7-day windows of a range."""
    return [w for w in partition(start, end, boundary) if not w.is_partial]


def count_complete_weeks(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> int:
    return len(complete_windows(start, end, boundary))


def has_complete_weeks(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> bool:
    return count_complete_weeks(start, end, boundary) > 0


def first_complete_week(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> Optional[Window]:
    windows = complete_windows(start, end, boundary)
    return windows[0] if windows else None


def last_complete_week(
    start: date,
    end: date,
    boundary: WeekBoundary = WeekBoundary.START_WEEKDAY,
) -> Optional[Window]:
    windows = complete_windows(start, end, boundary)
    return windows[-1] if windows else None
