"""Plain-text reports for validation and readiness results.

This module renders human-readable reports showing:
- The goal specification being checked against
- The verdict, issues and suggested fixes of a pattern validation
- Per-check details and offending weeks of a calendar validation
- Blocking reasons and notes of a readiness evaluation
"""

from pathlib import Path
from typing import Optional, Union

from goalsched.domain.models import (
    Fix,
    GoalSpecification,
    WeeklyPattern,
    format_time,
    format_weekdays,
)
from goalsched.validation.calendar_validator import CalendarValidationResult, CheckDetail
from goalsched.validation.readiness import ReadinessResult
from goalsched.validation.validator import ValidationResult

Result = Union[ValidationResult, ReadinessResult]

WIDTH = 80


class ReportGenerator:
    """Generates text reports for engine results."""

    def generate(
        self,
        result: Result,
        output_path: Union[str, Path],
        spec: Optional[GoalSpecification] = None,
        pattern: Optional[WeeklyPattern] = None,
    ) -> str:
        """Generate a text report and save it to a file.

        Args:
            result: A validation or readiness result.
            output_path: Path to save the text file.
            spec: Specification to describe in the header, if known.
            pattern: Weekly pattern that was validated, if any.

        Returns:
            The generated text content.
        """
        content = self.generate_to_string(result, spec, pattern)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        result: Result,
        spec: Optional[GoalSpecification] = None,
        pattern: Optional[WeeklyPattern] = None,
    ) -> str:
        """Generate a text report and return it as a string."""
        if isinstance(result, ReadinessResult):
            lines = self._readiness_lines(result)
        else:
            lines = self._validation_lines(result, spec, pattern)
        return "\n".join(lines) + "\n"

    def _header(self, title: str) -> list[str]:
        return ["=" * WIDTH, title, "=" * WIDTH, ""]

    def _section(self, title: str) -> list[str]:
        return ["-" * WIDTH, title, "-" * WIDTH]

    def _validation_lines(
        self,
        result: ValidationResult,
        spec: Optional[GoalSpecification],
        pattern: Optional[WeeklyPattern],
    ) -> list[str]:
        is_calendar = isinstance(result, CalendarValidationResult)
        lines = self._header(
            "CALENDAR COMPATIBILITY REPORT" if is_calendar else "SCHEDULE COMPATIBILITY REPORT"
        )

        if spec is not None:
            lines.extend(self._spec_lines(spec))
        if pattern is not None:
            lines.extend(self._section("PROPOSED PATTERN"))
            lines.extend(self._pattern_lines(pattern))
            lines.append("")

        lines.extend(self._section("VERDICT"))
        lines.append(f"Compatible: {'yes' if result.is_compatible else 'no'}")
        if is_calendar:
            lines.append(f"Complete weeks: {result.complete_week_count}")
        lines.append(result.summary)
        lines.append("")

        if is_calendar:
            lines.extend(self._section("CHECK DETAILS"))
            details = result.details
            for name, check in (
                ("Frequency", details.frequency),
                ("Weekday", details.weekday),
                ("Time", details.time),
            ):
                lines.extend(self._check_lines(name, check))
            lines.append("")

        lines.extend(self._section(f"ISSUES ({len(result.issues)})"))
        if result.issues:
            for i, issue in enumerate(result.issues, 1):
                lines.append(f"{i:>3}. {issue}")
        else:
            lines.append("None")
        lines.append("")

        if result.fixes is not None:
            lines.extend(self._section("SUGGESTED FIXES"))
            lines.extend(self._fix_lines(result.fixes))
            lines.append("")

        return lines

    def _spec_lines(self, spec: GoalSpecification) -> list[str]:
        lines = self._section("GOAL SPECIFICATION")
        lines.append(f"Goal type: {spec.goal_type.value}")
        lines.append(f"Frequency: {spec.count_rule if spec.count_rule else 'none'}")
        allowed = format_weekdays(spec.weekday_constraints) if spec.weekday_constraints else "any"
        lines.append(f"Allowed weekdays: {allowed}")
        for rule in spec.time_rules:
            lines.append(f"Time rule: {format_weekdays(rule.days)} at {rule.window}")
        if spec.time_windows:
            windows = ", ".join(str(w) for w in spec.time_windows)
            lines.append(f"Time windows: {windows}")
        lines.append(f"Week boundary: {spec.week_boundary.value}")
        lines.append(f"Enforce partial weeks: {'yes' if spec.enforce_partial_weeks else 'no'}")
        lines.append("")
        return lines

    def _pattern_lines(self, pattern: WeeklyPattern) -> list[str]:
        if not pattern.weekdays:
            return ["No weekdays selected"]
        lines = []
        for day in sorted(pattern.weekdays):
            times = ", ".join(format_time(t) for t in pattern.times_for(day)) or "(no time)"
            lines.append(f"  {day.label:<10} {times}")
        return lines

    def _check_lines(self, name: str, check: CheckDetail) -> list[str]:
        status = "PASS" if check.passed else "FAIL"
        line = f"{name:<10} {status}"
        if check.required is not None:
            line += f"  required={check.required} lowest={check.actual}"
        if check.missing:
            line += f"  missing={format_weekdays(check.missing)}"
        lines = [line]
        for detail in check.details:
            lines.append(f"    - {detail}")
        return lines

    def _fix_lines(self, fix: Fix) -> list[str]:
        lines = []
        if fix.weekly_weekdays is not None:
            days = format_weekdays(fix.weekly_weekdays) if fix.weekly_weekdays else "(none)"
            lines.append(f"Weekdays: {days}")
        if fix.weekly_time_settings:
            for day, times in sorted(fix.weekly_time_settings.items()):
                lines.append(f"  {day.label:<10} {', '.join(format_time(t) for t in times)}")
        return lines

    def _readiness_lines(self, result: ReadinessResult) -> list[str]:
        lines = self._header("SCHEDULE READINESS REPORT")
        lines.append(f"Ready: {'yes' if result.ready else 'no'}")
        lines.append("")

        if result.reasons:
            lines.extend(self._section("BLOCKING REASONS"))
            for reason in result.reasons:
                lines.append(f"  - {reason}")
            lines.append("")

        if result.suggestions:
            lines.extend(self._section("SUGGESTIONS"))
            for suggestion in result.suggestions:
                lines.append(f"  - {suggestion}")
            lines.append("")

        if result.notes:
            lines.extend(self._section("NOTES"))
            for note in result.notes:
                lines.append(f"  - {note}")
            lines.append("")

        return lines
