"""Session counting over a goal period.

Counts how many sessions a weekly selection (plus explicit include/exclude
dates and any dated events supplied by the caller) puts on each day of a
period. Only counts are produced; no events are created.
"""

from datetime import date, time, timedelta
from typing import Iterable, Mapping, Optional

from goalsched.domain.models import CalendarEvent, Weekday, Window


def scheduled_sessions(
    start: date,
    end: date,
    weekdays: Iterable[Weekday],
    times: Optional[Mapping[Weekday, tuple[time, ...]]] = None,
    include_dates: Iterable[date] = (),
    exclude_dates: Iterable[date] = (),
    events: Iterable[CalendarEvent] = (),
) -> dict[date, int]:
    """Sessions per scheduled date within [start, end].

    A date is scheduled when its weekday is selected and it is not excluded,
    when it is explicitly included, or when a caller-supplied event falls on
    it and it is not excluded.

    Sessions on a date are the number of events on it when there are any;
    otherwise the number of proposed times for its weekday, and at least 1.
    Duplicate events on the same date and time each count.

    Args:
        start: First day of the period.
        end: Last day of the period.
        weekdays: Selected weekdays.
        times: Proposed times per weekday.
        include_dates: Dates scheduled regardless of weekday.
        exclude_dates: Dates removed from the weekly selection.
        events: Dated events already known for the period.

    Returns:
        Mapping of scheduled date to its session count, in date order.
    """
    selected = set(weekdays)
    times = times or {}
    include = set(include_dates)
    exclude = set(exclude_dates)

    events_per_date: dict[date, int] = {}
    for event in events:
        if event.date in exclude:
            continue
        events_per_date[event.date] = events_per_date.get(event.date, 0) + 1

    sessions: dict[date, int] = {}
    current = start
    while current <= end:
        weekday = Weekday.from_date(current)
        is_scheduled = (
            (weekday in selected and current not in exclude)
            or current in include
            or current in events_per_date
        )
        if is_scheduled:
            if current in events_per_date:
                sessions[current] = events_per_date[current]
            else:
                sessions[current] = max(1, len(times.get(weekday, ())))
        current += timedelta(days=1)

    return sessions


def sessions_per_window(
    windows: list[Window],
    sessions: Mapping[date, int],
) -> list[tuple[Window, int]]:
    """Total sessions inside each window."""
    return [
        (window, sum(count for d, count in sessions.items() if window.contains(d)))
        for window in windows
    ]
