"""Readiness gate for the goal-creation flow.

Decides whether the data entered so far is enough to move a goal on to
review. Schedule goals must have a valid period, at least one scheduled
day, a weekly pattern that can meet a weekly target in a full week, and a
usable verification setup. Frequency and partner goals skip the schedule
gate and only need their own fields filled in.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Mapping, Optional

from goalsched.domain.models import (
    CalendarEvent,
    CountUnit,
    GoalSpecification,
    GoalType,
    VerificationMethod,
    Weekday,
    WeeklyPattern,
)
from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy
from goalsched.scheduling.session_counter import scheduled_sessions, sessions_per_window
from goalsched.scheduling.week_partitioner import partition, span_days

logger = logging.getLogger(__name__)

INVALID_PERIOD = "Please select a valid duration (start and end date)."
NO_SCHEDULED_DAYS = "No scheduled days yet."
NO_VERIFICATION = "No verification methods selected."
NO_TARGET_LOCATION = "Location verification is selected, but no target location is set."
PARTIAL_WEEKS_NOTE = "Partial weeks do not enforce the weekly target."


@dataclass(frozen=True)
class ReadinessContext:
    """Everything entered in the creation flow so far.

    Attributes:
        start: First day of the goal period, if chosen.
        end: Last day of the goal period, if chosen.
        weekly_weekdays: Weekdays selected for the repeating pattern.
        weekly_time_settings: Proposed times per weekday.
        include_dates: Dates scheduled in addition to the pattern.
        exclude_dates: Dates removed from the pattern.
        calendar_events: Dated events already known for the period.
        verification_methods: Methods chosen by the user. When empty, the
            methods of the goal specification are used.
        target_location_name: Place used by location verification.
        goal_spec: Compiled goal specification, if any.
        goal_type: Goal category; defaults to the specification's.
        per_week: Weekly target entered for a frequency goal.
        partner_id: Chosen partner, for partner goals.
        partner_invite_email: Invited partner, for partner goals.
    """

    start: Optional[date] = None
    end: Optional[date] = None
    weekly_weekdays: frozenset[Weekday] = frozenset()
    weekly_time_settings: Mapping[Weekday, tuple[time, ...]] = field(default_factory=dict)
    include_dates: frozenset[date] = frozenset()
    exclude_dates: frozenset[date] = frozenset()
    calendar_events: tuple[CalendarEvent, ...] = ()
    verification_methods: frozenset[VerificationMethod] = frozenset()
    target_location_name: Optional[str] = None
    goal_spec: Optional[GoalSpecification] = None
    goal_type: Optional[GoalType] = None
    per_week: Optional[int] = None
    partner_id: Optional[str] = None
    partner_invite_email: Optional[str] = None

    @property
    def has_valid_period(self) -> bool:
        return self.start is not None and self.end is not None and self.start <= self.end

    @property
    def effective_goal_type(self) -> GoalType:
        if self.goal_type is not None:
            return self.goal_type
        if self.goal_spec is not None:
            return self.goal_spec.goal_type
        return GoalType.SCHEDULE

    @property
    def effective_methods(self) -> frozenset[VerificationMethod]:
        if self.verification_methods:
            return frozenset(self.verification_methods)
        if self.goal_spec is not None and self.goal_spec.verification is not None:
            return self.goal_spec.verification.methods
        return frozenset()

    @property
    def effective_target_location(self) -> Optional[str]:
        if self.target_location_name:
            return self.target_location_name
        if self.goal_spec is not None and self.goal_spec.verification is not None:
            return self.goal_spec.verification.target_location
        return None

    @classmethod
    def from_dict(cls, data: Mapping, goal_spec: Optional[GoalSpecification] = None) -> "ReadinessContext":
        """Build a context from the creation flow's camelCase JSON shape."""
        def _date(key):
            raw = data.get(key)
            return date.fromisoformat(raw) if raw else None

        pattern = WeeklyPattern.from_dict(data)
        partner = data.get("partner") or {}
        raw_type = data.get("goalType") or data.get("type")
        return cls(
            start=_date("startDate"),
            end=_date("endDate"),
            weekly_weekdays=pattern.weekdays,
            weekly_time_settings=pattern.times,
            include_dates=frozenset(date.fromisoformat(d) for d in data.get("includeDates") or ()),
            exclude_dates=frozenset(date.fromisoformat(d) for d in data.get("excludeDates") or ()),
            calendar_events=tuple(
                CalendarEvent.from_dict(e) for e in data.get("calendarEvents") or ()
            ),
            verification_methods=frozenset(
                VerificationMethod.parse(m) for m in data.get("verificationMethods") or ()
            ),
            target_location_name=data.get("targetLocationName") or None,
            goal_spec=goal_spec,
            goal_type=GoalType.parse(raw_type) if raw_type else None,
            per_week=data.get("perWeek"),
            partner_id=partner.get("id") or None,
            partner_invite_email=partner.get("inviteEmail") or None,
        )


@dataclass
class ReadinessResult:
    """Outcome of a readiness evaluation.

    ``reasons`` block readiness and pair up with ``suggestions``;
    ``notes`` are informational only.
    """

    ready: bool = True
    reasons: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def add_reason(self, reason: str, suggestion: Optional[str] = None) -> None:
        self.reasons.append(reason)
        if suggestion:
            self.suggestions.append(suggestion)
        self.ready = False

    def add_note(self, note: str) -> None:
        self.notes.append(note)

    def to_dict(self) -> dict:
        return {
            "ready": self.ready,
            "reasons": list(self.reasons),
            "suggestions": list(self.suggestions),
            "notes": list(self.notes),
        }


class ScheduleReadinessEvaluator:
    """Evaluates whether a goal is ready to move on to review.

    Example:
        >>> evaluator = ScheduleReadinessEvaluator()
        >>> result = evaluator.evaluate(ReadinessContext(start=..., end=..., ...))
        >>> if not result.ready:
        ...     print(result.reasons)
    """

    def __init__(self, policy: Optional[CompatibilityPolicy] = None):
        self.policy = policy or DefaultCompatibilityPolicy()

    def evaluate(self, ctx: ReadinessContext) -> ReadinessResult:
        """Evaluate readiness.

        Args:
            ctx: Data entered in the creation flow.

        Returns:
            ReadinessResult listing every blocking reason.
        """
        result = ReadinessResult()
        goal_type = ctx.effective_goal_type

        if goal_type == GoalType.FREQUENCY:
            self._check_frequency_goal(ctx, result)
        elif goal_type == GoalType.PARTNER:
            self._check_partner_goal(ctx, result)
        else:
            if self._check_schedule(ctx, result):
                self._check_verification(ctx, result)

        logger.debug(
            "Readiness for %s goal: ready=%s reasons=%s",
            goal_type.value, result.ready, result.reasons,
        )
        return result

    def _check_schedule(self, ctx: ReadinessContext, result: ReadinessResult) -> bool:
        """Schedule gate. Returns False if the period itself is unusable."""
        if not ctx.has_valid_period:
            result.add_reason(INVALID_PERIOD, "Set your start date and duration above.")
            return False

        sessions = scheduled_sessions(
            ctx.start,
            ctx.end,
            ctx.weekly_weekdays,
            times=ctx.weekly_time_settings,
            include_dates=ctx.include_dates,
            exclude_dates=ctx.exclude_dates,
            events=ctx.calendar_events,
        )
        if not sessions:
            result.add_reason(
                NO_SCHEDULED_DAYS,
                "Select weekdays and/or tap days on the calendar to schedule.",
            )
            return True

        spec = ctx.goal_spec
        if spec is not None and spec.count_rule is not None:
            if spec.count_rule.unit == CountUnit.PER_WEEK:
                self._check_weekly_target(ctx, spec, sessions, result)
        return True

    def _check_weekly_target(
        self,
        ctx: ReadinessContext,
        spec: GoalSpecification,
        sessions: dict[date, int],
        result: ReadinessResult,
    ) -> None:
        """At least one evaluated window must meet the weekly target."""
        rule = spec.count_rule
        windows = partition(ctx.start, ctx.end, spec.week_boundary)

        if span_days(ctx.start, ctx.end) < self.policy.minimum_evaluation_days():
            candidates = windows if spec.enforce_partial_weeks else []
        elif spec.enforce_partial_weeks:
            candidates = windows
        else:
            candidates = [w for w in windows if not w.is_partial]

        if not candidates:
            result.add_note(PARTIAL_WEEKS_NOTE)
            return

        if not spec.enforce_partial_weeks and any(w.is_partial for w in windows):
            result.add_note(PARTIAL_WEEKS_NOTE)

        best = None
        for window, count in sessions_per_window(candidates, sessions):
            required = rule.count
            if window.is_partial:
                required = self.policy.scaled_requirement(rule.count, window.active_days)
            if rule.operator.compare(count, required):
                return
            if best is None or count > best:
                best = count

        result.add_reason(
            f"Weekly schedule must provide {rule.operator.phrase} {rule.count} "
            f"sessions in a full week (found {best}).",
            "Add more weekdays or times so that every full week meets the target.",
        )

    def _check_verification(self, ctx: ReadinessContext, result: ReadinessResult) -> None:
        methods = ctx.effective_methods
        if not methods:
            result.add_reason(
                NO_VERIFICATION,
                "Select at least one verification method (e.g., Manual, Time, Location).",
            )
        if VerificationMethod.LOCATION in methods and not ctx.effective_target_location:
            result.add_reason(
                NO_TARGET_LOCATION,
                "Choose a target location in Schedule or Review.",
            )

    def _check_frequency_goal(self, ctx: ReadinessContext, result: ReadinessResult) -> None:
        if not ctx.has_valid_period:
            result.add_reason("Set a period", "Choose a start and end date for the goal.")

        per_week = ctx.per_week
        rule = ctx.goal_spec.count_rule if ctx.goal_spec is not None else None
        if per_week is None and rule is not None and rule.unit == CountUnit.PER_WEEK:
            per_week = rule.count
        if not per_week or per_week < 1:
            result.add_reason("Set times per week", "Enter how many times per week you will do it.")

        methods = ctx.effective_methods
        if VerificationMethod.MANUAL not in methods:
            result.add_reason("Manual is required", "Select Manual verification.")
        if not methods & {VerificationMethod.LOCATION, VerificationMethod.PHOTO}:
            result.add_reason("Choose Location or Photo", "Add Location or Photo verification.")

    def _check_partner_goal(self, ctx: ReadinessContext, result: ReadinessResult) -> None:
        if not ctx.has_valid_period:
            result.add_reason("Set a period", "Choose a start and end date for the goal.")
        if not ctx.partner_id and not ctx.partner_invite_email:
            result.add_reason("Select or invite a partner", "Pick a partner or send an invite by email.")
