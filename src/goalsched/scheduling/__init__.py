"""Date-range partitioning and session counting."""

from goalsched.scheduling.session_counter import scheduled_sessions, sessions_per_window
from goalsched.scheduling.week_partitioner import (
    complete_windows,
    count_complete_weeks,
    first_complete_week,
    has_complete_weeks,
    last_complete_week,
    partition,
    span_days,
)

__all__ = [
    # Partitioning
    "partition",
    "complete_windows",
    "count_complete_weeks",
    "has_complete_weeks",
    "first_complete_week",
    "last_complete_week",
    "span_days",
    # Session counting
    "scheduled_sessions",
    "sessions_per_window",
]
