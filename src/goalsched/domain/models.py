"""Domain models for the goal schedule compatibility engine.

This module contains the value types shared by every component: the goal
specification produced upstream, the weekly pattern and calendar events
under test, partition windows, and suggested fixes. All of them are
immutable and constructed per validation call.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, time, timedelta
from enum import Enum, IntEnum
from typing import Iterator, Mapping, Optional

from goalsched.domain.errors import InvalidSpecification, InvalidTimeFormat

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")

FIRST_MINUTE = 0
LAST_MINUTE = 23 * 60 + 59  # 23:59


def is_valid_time_format(value) -> bool:
    """Check if a value is a valid 24-hour "HH:MM" string."""
    if not isinstance(value, str) or not value.strip():
        return False
    return _TIME_PATTERN.match(value.strip()) is not None


def parse_time(value) -> time:
    """Parse a 24-hour "HH:MM" string into a time.

    Args:
        value: The string to parse. A time instance is returned unchanged.

    Raises:
        InvalidTimeFormat: If the value is not a valid HH:MM string.
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)
    match = _TIME_PATTERN.match(value.strip())
    if match is None:
        raise InvalidTimeFormat(value)
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def format_time(t: time) -> str:
    """Format a time as "HH:MM"."""
    return t.strftime("%H:%M")


def time_to_minutes(t: time) -> int:
    """Minutes from midnight."""
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    """Time for a minute offset from midnight (0-1439)."""
    if not FIRST_MINUTE <= minutes <= LAST_MINUTE:
        raise ValueError(f"Minute offset out of range: {minutes}")
    hours, mins = divmod(minutes, 60)
    return time(hour=hours, minute=mins)


def _parse_enum(enum_cls, value, field_name: str):
    """Resolve an enum member from its wire value or member name."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        text = value.strip()
        for member in enum_cls:
            if text == member.value or text.upper() == member.name:
                return member
    raise InvalidSpecification(f"Unknown {field_name}: {value!r}")


class Weekday(IntEnum):
    """Day of week, indexed 0=Sunday through 6=Saturday."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def short_label(self) -> str:
        return self.label[:3]

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        """Weekday of a calendar date (date.weekday() counts from Monday)."""
        return cls((d.weekday() + 1) % 7)

    @classmethod
    def parse(cls, value) -> "Weekday":
        """Parse an index (0-6), a full name or a three-letter abbreviation."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 6:
                return cls(value)
        elif isinstance(value, str):
            text = value.strip().lower()
            if text.isdigit():
                return cls.parse(int(text))
            for member in cls:
                name = member.name.lower()
                if text == name or text == name[:3]:
                    return member
        raise InvalidSpecification(f"Unknown weekday: {value!r}")


def format_weekdays(days) -> str:
    """Comma-separated weekday labels in calendar order."""
    return ", ".join(day.label for day in sorted(days))


class ComparisonOp(Enum):
    """Comparison applied between an observed and a required count."""

    GE = ">="
    EQ = "=="
    LE = "<="
    LT = "<"
    GT = ">"

    @classmethod
    def parse(cls, value) -> "ComparisonOp":
        return _parse_enum(cls, value, "comparison operator")

    def compare(self, observed: int, required: int) -> bool:
        if self is ComparisonOp.GE:
            return observed >= required
        if self is ComparisonOp.EQ:
            return observed == required
        if self is ComparisonOp.LE:
            return observed <= required
        if self is ComparisonOp.LT:
            return observed < required
        return observed > required

    @property
    def phrase(self) -> str:
        """English phrase used in issue messages (e.g. "at least")."""
        return {
            ComparisonOp.GE: "at least",
            ComparisonOp.EQ: "exactly",
            ComparisonOp.LE: "at most",
            ComparisonOp.LT: "fewer than",
            ComparisonOp.GT: "more than",
        }[self]


class CountUnit(Enum):
    """Counting unit of a frequency target."""

    PER_DAY = "per_day"
    PER_WEEK = "per_week"
    PER_MONTH = "per_month"

    @classmethod
    def parse(cls, value) -> "CountUnit":
        return _parse_enum(cls, value, "count unit")

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class WeekBoundary(Enum):
    """Where 7-day windows begin when partitioning a date range."""

    START_WEEKDAY = "startWeekday"  # Anchored to the range's own start date
    ISO_WEEK = "isoWeek"  # Anchored to Monday

    @classmethod
    def parse(cls, value) -> "WeekBoundary":
        return _parse_enum(cls, value, "week boundary")


class RuleSource(Enum):
    """Where a time constraint came from."""

    USER_TEXT = "user_text"
    INFERRED = "inferred"

    @classmethod
    def parse(cls, value) -> "RuleSource":
        return _parse_enum(cls, value, "rule source")


class EventSource(Enum):
    """Origin of a calendar event."""

    WEEKLY = "weekly"  # Materialized from the repeating pattern
    ONE_OFF = "override"  # Added or edited on a specific date

    @classmethod
    def parse(cls, value) -> "EventSource":
        if isinstance(value, str) and value.strip().lower() in ("one_off", "oneoff"):
            return cls.ONE_OFF
        return _parse_enum(cls, value, "event source")


class GoalType(Enum):
    """Goal category. Frequency and partner goals skip schedule readiness."""

    SCHEDULE = "schedule"
    FREQUENCY = "frequency"
    PARTNER = "partner"
    MILESTONE = "milestone"

    @classmethod
    def parse(cls, value) -> "GoalType":
        return _parse_enum(cls, value, "goal type")


class VerificationMethod(Enum):
    """How completion of a scheduled session is verified."""

    LOCATION = "location"
    TIME = "time"
    SCREENTIME = "screentime"
    PHOTO = "photo"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value) -> "VerificationMethod":
        return _parse_enum(cls, value, "verification method")


class LocationMode(Enum):
    """Location verification mode."""

    GEOFENCE = "geofence"  # Must be at a fixed place
    MOVEMENT = "movement"  # Distance travelled, no fixed place

    @classmethod
    def parse(cls, value) -> "LocationMode":
        return _parse_enum(cls, value, "location mode")


@dataclass(frozen=True)
class CountRule:
    """Frequency target, e.g. ">= 3 per week".

    Attributes:
        operator: Comparison between observed and required counts.
        count: Required count.
        unit: Counting unit.
    """

    operator: ComparisonOp
    count: int
    unit: CountUnit = CountUnit.PER_WEEK

    def __post_init__(self):
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 0:
            raise InvalidSpecification(f"Count must be a non-negative integer: {self.count!r}")

    def __str__(self) -> str:
        return f"{self.operator.value} {self.count} {self.unit.label}"

    @classmethod
    def from_dict(cls, data: Mapping) -> "CountRule":
        try:
            return cls(
                operator=ComparisonOp.parse(data["operator"]),
                count=data["count"],
                unit=CountUnit.parse(data.get("unit", CountUnit.PER_WEEK.value)),
            )
        except KeyError as exc:
            raise InvalidSpecification(f"countRule is missing {exc.args[0]!r}") from exc


@dataclass(frozen=True)
class TimeWindow:
    """An allowed time-of-day range.

    A window whose start equals its end is a point range and is matched
    with tolerance on both sides.
    """

    start: time
    end: time
    source: RuleSource = RuleSource.INFERRED
    label: str = ""

    @property
    def is_point(self) -> bool:
        return self.start == self.end

    @property
    def range(self) -> tuple[time, time]:
        return (self.start, self.end)

    def __str__(self) -> str:
        if self.is_point:
            return format_time(self.start)
        return f"{format_time(self.start)}-{format_time(self.end)}"

    @classmethod
    def from_dict(cls, data: Mapping) -> "TimeWindow":
        raw_range = data.get("range")
        if not isinstance(raw_range, (list, tuple)) or len(raw_range) != 2:
            raise InvalidSpecification(f"Time range must have exactly two entries: {raw_range!r}")
        return cls(
            start=parse_time(raw_range[0]),
            end=parse_time(raw_range[1]),
            source=RuleSource.parse(data.get("source", RuleSource.INFERRED.value)),
            label=(data.get("label") or "").strip(),
        )


@dataclass(frozen=True)
class TimeRule:
    """A time window bound to specific weekdays."""

    days: frozenset[Weekday]
    window: TimeWindow

    def __post_init__(self):
        object.__setattr__(self, "days", frozenset(Weekday.parse(d) for d in self.days))

    def applies_to(self, day: Weekday) -> bool:
        return day in self.days

    @classmethod
    def from_dict(cls, data: Mapping) -> "TimeRule":
        days = data.get("days")
        if not isinstance(days, (list, tuple, set, frozenset)):
            raise InvalidSpecification(f"timeRules entry needs a list of days: {days!r}")
        return cls(days=frozenset(days), window=TimeWindow.from_dict(data))


@dataclass(frozen=True)
class VerificationSpec:
    """Verification requirements attached to a goal."""

    methods: frozenset[VerificationMethod] = frozenset()
    mandatory: frozenset[VerificationMethod] = frozenset()
    location_mode: Optional[LocationMode] = None
    target_location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "VerificationSpec":
        methods = data.get("methods") or data.get("signals") or []
        mandatory = data.get("mandatory") or []
        location = (data.get("constraints") or {}).get("location") or {}
        mode = location.get("mode")
        return cls(
            methods=frozenset(VerificationMethod.parse(m) for m in methods),
            mandatory=frozenset(VerificationMethod.parse(m) for m in mandatory),
            location_mode=LocationMode.parse(mode) if mode else None,
            target_location=location.get("name") or None,
        )


@dataclass(frozen=True)
class GoalSpecification:
    """Declarative recurrence contract a schedule must satisfy.

    Attributes:
        count_rule: Frequency target. None means no frequency requirement.
        weekday_constraints: Allowed weekdays. Empty means any weekday.
        time_rules: Day-specific allowed time ranges.
        time_windows: Global fallback ranges, used only for weekdays that no
            time rule names.
        week_boundary: How date ranges are split into 7-day windows.
        enforce_partial_weeks: Evaluate windows shorter than 7 days against
            a frequency target scaled to their length.
        verification: Verification requirements, if known.
        goal_type: Goal category.
    """

    count_rule: Optional[CountRule] = None
    weekday_constraints: frozenset[Weekday] = frozenset()
    time_rules: tuple[TimeRule, ...] = ()
    time_windows: tuple[TimeWindow, ...] = ()
    week_boundary: WeekBoundary = WeekBoundary.START_WEEKDAY
    enforce_partial_weeks: bool = False
    verification: Optional[VerificationSpec] = None
    goal_type: GoalType = GoalType.SCHEDULE

    def __post_init__(self):
        object.__setattr__(
            self,
            "weekday_constraints",
            frozenset(Weekday.parse(d) for d in (self.weekday_constraints or ())),
        )
        object.__setattr__(self, "time_rules", tuple(self.time_rules))
        object.__setattr__(self, "time_windows", tuple(self.time_windows))

    @property
    def has_weekday_restriction(self) -> bool:
        return bool(self.weekday_constraints)

    @property
    def has_time_constraint(self) -> bool:
        return bool(self.time_rules or self.time_windows)

    @property
    def location_mode(self) -> Optional[LocationMode]:
        return self.verification.location_mode if self.verification else None

    @classmethod
    def from_dict(cls, data: Mapping, strict: bool = True) -> "GoalSpecification":
        """Build a specification from the upstream camelCase JSON shape.

        Accepts either the whole goal object (with ``schedule`` and
        ``verification`` members) or the ``schedule`` object alone.

        Args:
            data: Parsed JSON object.
            strict: If False, malformed time rules and windows are dropped
                with a warning instead of raising.

        Raises:
            InvalidSpecification: On unknown enum values or malformed shapes.
            InvalidTimeFormat: On malformed times when strict.
        """
        from goalsched.domain.time_windows import sanitize_time_rules, sanitize_time_windows

        if not isinstance(data, Mapping):
            raise InvalidSpecification(f"Goal specification must be an object, got {type(data).__name__}")

        if "schedule" in data or "verification" in data:
            schedule = data.get("schedule") or {}
        else:
            schedule = data

        raw_type = data.get("type") or data.get("goalType")
        raw_count_rule = schedule.get("countRule")
        raw_boundary = schedule.get("weekBoundary")
        raw_rules = schedule.get("timeRules") or []
        raw_windows = schedule.get("timeWindows") or []

        if strict:
            time_rules = [TimeRule.from_dict(r) for r in raw_rules]
            time_windows = [TimeWindow.from_dict(w) for w in raw_windows]
        else:
            time_rules = sanitize_time_rules(raw_rules)
            time_windows = sanitize_time_windows(raw_windows)

        spec = cls(
            count_rule=CountRule.from_dict(raw_count_rule) if raw_count_rule else None,
            weekday_constraints=frozenset(schedule.get("weekdayConstraints") or ()),
            time_rules=tuple(time_rules),
            time_windows=tuple(time_windows),
            week_boundary=(
                WeekBoundary.parse(raw_boundary) if raw_boundary else WeekBoundary.START_WEEKDAY
            ),
            enforce_partial_weeks=bool(schedule.get("enforcePartialWeeks", False)),
            verification=(
                VerificationSpec.from_dict(data["verification"]) if data.get("verification") else None
            ),
            goal_type=GoalType.parse(raw_type) if raw_type else GoalType.SCHEDULE,
        )
        logger.debug(
            "Parsed goal specification: count_rule=%s weekdays=%s rules=%d windows=%d",
            spec.count_rule,
            sorted(spec.weekday_constraints),
            len(spec.time_rules),
            len(spec.time_windows),
        )
        return spec


@dataclass(frozen=True)
class WeeklyPattern:
    """A repeating weekly schedule proposal.

    Attributes:
        weekdays: Selected weekdays.
        times: Proposed times per weekday. Stored de-duplicated and sorted;
            entries for days without times are dropped.
    """

    weekdays: frozenset[Weekday] = frozenset()
    times: Mapping[Weekday, tuple[time, ...]] = field(default_factory=dict)

    def __post_init__(self):
        weekdays = frozenset(Weekday.parse(d) for d in self.weekdays)
        times = {}
        for day, values in dict(self.times).items():
            parsed = tuple(sorted({parse_time(v) for v in values}))
            if parsed:
                times[Weekday.parse(day)] = parsed
        object.__setattr__(self, "weekdays", weekdays)
        object.__setattr__(self, "times", times)

    def times_for(self, day: Weekday) -> tuple[time, ...]:
        """Proposed times for a weekday (empty if none)."""
        return self.times.get(day, ())

    @property
    def total_sessions(self) -> int:
        """Number of proposed times across all selected weekdays."""
        return sum(len(self.times_for(day)) for day in self.weekdays)

    @property
    def has_any_time(self) -> bool:
        return any(self.times_for(day) for day in self.weekdays)

    def apply_fix(self, fix: "Fix") -> "WeeklyPattern":
        """Return a new pattern with a suggested fix applied."""
        weekdays = fix.weekly_weekdays if fix.weekly_weekdays is not None else self.weekdays
        times = dict(self.times)
        if fix.weekly_time_settings:
            times.update(fix.weekly_time_settings)
        return WeeklyPattern(
            weekdays=weekdays,
            times={day: values for day, values in times.items() if day in weekdays},
        )

    def to_dict(self) -> dict:
        return {
            "weeklyWeekdays": sorted(int(day) for day in self.weekdays),
            "weeklyTimeSettings": {
                str(int(day)): [format_time(t) for t in values]
                for day, values in sorted(self.times.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "WeeklyPattern":
        """Build a pattern from ``weeklyWeekdays`` / ``weeklyTimeSettings``.

        Time-setting keys may be weekday indexes as integers or strings.
        """
        raw_times = data.get("weeklyTimeSettings") or {}
        if not isinstance(raw_times, Mapping):
            raise InvalidSpecification("weeklyTimeSettings must be an object")
        for values in raw_times.values():
            if not isinstance(values, (list, tuple)):
                raise InvalidSpecification(f"Times must be a list: {values!r}")
        return cls(
            weekdays=frozenset(data.get("weeklyWeekdays") or ()),
            times={Weekday.parse(day): tuple(values) for day, values in raw_times.items()},
        )


@dataclass(frozen=True)
class CalendarEvent:
    """A concrete, dated occurrence."""

    date: date
    time: Optional[time] = None
    source: EventSource = EventSource.WEEKLY

    @property
    def weekday(self) -> Weekday:
        return Weekday.from_date(self.date)

    def __str__(self) -> str:
        when = f" {format_time(self.time)}" if self.time else ""
        return f"{self.date.isoformat()} ({self.weekday.short_label}){when}"

    @classmethod
    def from_dict(cls, data: Mapping) -> "CalendarEvent":
        try:
            event_date = date.fromisoformat(data["date"])
        except KeyError as exc:
            raise InvalidSpecification("Calendar event is missing 'date'") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidSpecification(f"Invalid event date: {data.get('date')!r}") from exc
        raw_time = data.get("time")
        return cls(
            date=event_date,
            time=parse_time(raw_time) if raw_time else None,
            source=EventSource.parse(data.get("source", EventSource.WEEKLY.value)),
        )


@dataclass(frozen=True)
class Window:
    """One 7-day partition window, clipped to the evaluated range.

    Attributes:
        start: First day of the window inside the range.
        end: Last day of the window inside the range.
        active_days: Days of the window inside the range.
        is_partial: True if fewer than 7 days are inside the range.
    """

    start: date
    end: date
    active_days: int
    is_partial: bool

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def dates(self) -> Iterator[date]:
        for offset in range(self.active_days):
            yield self.start + timedelta(days=offset)

    @property
    def label(self) -> str:
        return f"{self.start.isoformat()} ~ {self.end.isoformat()}"


@dataclass(frozen=True)
class Fix:
    """Minimal suggested adjustment, present only for failed dimensions.

    Attributes:
        weekly_weekdays: Replacement weekday selection, if weekdays failed.
        weekly_time_settings: Replacement times for the weekdays whose
            times failed.
    """

    weekly_weekdays: Optional[frozenset[Weekday]] = None
    weekly_time_settings: Optional[Mapping[Weekday, tuple[time, ...]]] = None

    @property
    def is_empty(self) -> bool:
        return self.weekly_weekdays is None and not self.weekly_time_settings

    def to_dict(self) -> dict:
        result = {}
        if self.weekly_weekdays is not None:
            result["weeklyWeekdays"] = sorted(int(day) for day in self.weekly_weekdays)
        if self.weekly_time_settings:
            result["weeklyTimeSettings"] = {
                str(int(day)): [format_time(t) for t in values]
                for day, values in sorted(self.weekly_time_settings.items())
            }
        return result
