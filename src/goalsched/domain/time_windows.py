"""Safe construction and cleanup of time windows from upstream data.

Specifications arrive from an external text-to-structure service and may
carry half-specified windows (a start without an end, blank labels, unknown
sources). The helpers here build windows only from complete, well-formed
input, drop the rest with a warning, and merge duplicates.
"""

import logging
from typing import Mapping, Optional

from goalsched.domain.errors import GoalScheduleError
from goalsched.domain.models import (
    RuleSource,
    TimeRule,
    TimeWindow,
    format_time,
    is_valid_time_format,
    parse_time,
)

logger = logging.getLogger(__name__)


def create_time_window(
    label: str,
    start: str,
    end: str,
    source: RuleSource = RuleSource.INFERRED,
) -> Optional[TimeWindow]:
    """Create a window from raw fields, or None if any field is unusable.

    Args:
        label: Display label. Blank labels are rejected.
        start: Start time as "HH:MM".
        end: End time as "HH:MM".
        source: Where the window came from.
    """
    if not label or not start or not end:
        logger.warning(
            "Skipping time window with missing fields: label=%r start=%r end=%r",
            label, start, end,
        )
        return None
    if not is_valid_time_format(start) or not is_valid_time_format(end):
        logger.warning("Skipping time window with invalid time: start=%r end=%r", start, end)
        return None
    trimmed = label.strip()
    if not trimmed:
        logger.warning("Skipping time window with blank label")
        return None
    return TimeWindow(start=parse_time(start), end=parse_time(end), source=source, label=trimmed)


def point_window(value: str, source: RuleSource = RuleSource.INFERRED) -> Optional[TimeWindow]:
    """Create a point window ("07:00" matched with tolerance)."""
    if not is_valid_time_format(value):
        return None
    return create_time_window(value, value, value, source)


def range_window(
    start: str,
    end: str,
    label: Optional[str] = None,
    source: RuleSource = RuleSource.INFERRED,
) -> Optional[TimeWindow]:
    """Create a range window, labelled "start-end" unless a label is given."""
    return create_time_window(label or f"{start}-{end}", start, end, source)


def sanitize_time_windows(raw_windows) -> list[TimeWindow]:
    """Parse raw window objects, dropping malformed ones, then merge duplicates."""
    if not isinstance(raw_windows, (list, tuple)):
        return []

    windows = []
    for raw in raw_windows:
        window = _parse_window(raw)
        if window is not None:
            windows.append(window)
    return merge_duplicate_time_windows(windows)


def sanitize_time_rules(raw_rules) -> list[TimeRule]:
    """Parse raw day-specific rules, dropping malformed ones."""
    if not isinstance(raw_rules, (list, tuple)):
        return []

    rules = []
    for raw in raw_rules:
        if not isinstance(raw, Mapping):
            logger.warning("Skipping time rule that is not an object: %r", raw)
            continue
        try:
            rules.append(TimeRule.from_dict(raw))
        except GoalScheduleError as exc:
            logger.warning("Skipping invalid time rule %r: %s", raw, exc)
    return rules


def merge_duplicate_time_windows(windows: list[TimeWindow]) -> list[TimeWindow]:
    """Collapse windows with the same label and range.

    When duplicates disagree on source, the user-stated one is kept.
    Order of first appearance is preserved.
    """
    merged: dict[tuple, TimeWindow] = {}
    for window in windows:
        key = (window.label, format_time(window.start), format_time(window.end))
        existing = merged.get(key)
        if existing is None:
            merged[key] = window
        elif window.source == RuleSource.USER_TEXT and existing.source == RuleSource.INFERRED:
            merged[key] = window
    return list(merged.values())


def _parse_window(raw) -> Optional[TimeWindow]:
    if not isinstance(raw, Mapping):
        logger.warning("Skipping time window that is not an object: %r", raw)
        return None
    raw_range = raw.get("range")
    if not isinstance(raw_range, (list, tuple)) or len(raw_range) != 2:
        logger.warning("Skipping time window with incomplete range: %r", raw)
        return None
    try:
        source = RuleSource.parse(raw.get("source") or RuleSource.INFERRED.value)
    except GoalScheduleError:
        logger.warning("Skipping time window with unknown source: %r", raw)
        return None
    start, end = raw_range
    label = raw.get("label")
    if label is None and isinstance(start, str) and isinstance(end, str):
        label = start if start == end else f"{start}-{end}"
    if not isinstance(label, str):
        logger.warning("Skipping time window without a label: %r", raw)
        return None
    return create_time_window(label, start, end, source)
