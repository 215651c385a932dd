"""PDF generation for compatibility reports.

This module creates printable PDF reports showing:
- The verdict banner and summary
- A weekly timeline of allowed time windows and proposed times
- Issues, per-check details and suggested fixes
"""

from datetime import time
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from goalsched.domain.models import (
    GoalSpecification,
    Weekday,
    WeeklyPattern,
    format_time,
    format_weekdays,
    time_to_minutes,
)
from goalsched.domain.policies import CompatibilityPolicy, DefaultCompatibilityPolicy
from goalsched.validation.calendar_validator import CalendarValidationResult
from goalsched.validation.matchers import TimeRange, effective_ranges, matches, range_bounds
from goalsched.validation.validator import ValidationResult

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "compatible": (0.4, 0.7, 0.4),  # Green
    "incompatible": (0.85, 0.35, 0.35),  # Red
    "allowed": (0.8, 0.9, 0.8),  # Light green
    "time_ok": (0.2, 0.5, 0.2),  # Dark green
    "time_bad": (0.8, 0.2, 0.2),  # Dark red
    "unconstrained": (0.95, 0.95, 0.95),  # Light gray
}

MINUTES_PER_DAY = 24 * 60


class PDFGenerator:
    """Generates printable PDF compatibility reports.

    Allowed windows are drawn with the same point tolerance the validator
    used, so pass the policy the result was produced with.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(result, "report.pdf", spec=spec, pattern=pattern)
    """

    def __init__(
        self,
        page_width: float = 612,  # Letter portrait width (8.5")
        page_height: float = 792,  # Letter portrait height (11")
        margin: float = 36,  # 0.5 inch margins
        policy: Optional[CompatibilityPolicy] = None,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.policy = policy or DefaultCompatibilityPolicy()

    def generate(
        self,
        result: ValidationResult,
        output_path: Union[str, Path],
        spec: Optional[GoalSpecification] = None,
        pattern: Optional[WeeklyPattern] = None,
    ) -> None:
        """Generate a PDF report and save it to a file.

        Args:
            result: A pattern or calendar validation result.
            output_path: Path to save the PDF.
            spec: Specification checked against; enables the timeline.
            pattern: Weekly pattern that was validated, if any.
        """
        try:
            from reportlab.lib.pagesizes import letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=letter)
        self._draw_report(c, result, spec, pattern)
        c.save()

    def generate_to_buffer(
        self,
        result: ValidationResult,
        spec: Optional[GoalSpecification] = None,
        pattern: Optional[WeeklyPattern] = None,
    ) -> BytesIO:
        """Generate a PDF report and return it as a bytes buffer."""
        try:
            from reportlab.lib.pagesizes import letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=letter)
        self._draw_report(c, result, spec, pattern)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw_report(
        self,
        c,
        result: ValidationResult,
        spec: Optional[GoalSpecification],
        pattern: Optional[WeeklyPattern],
    ) -> None:
        y = self._draw_header(c, result)

        if spec is not None:
            y = self._draw_timeline(c, spec, pattern, y - 20)

        lines = [("Issues", result.issues or ["None"])]
        if isinstance(result, CalendarValidationResult):
            details = result.details
            for name, check in (
                ("Frequency check", details.frequency),
                ("Weekday check", details.weekday),
                ("Time check", details.time),
            ):
                status = "passed" if check.passed else "failed"
                body = [f"Status: {status}"]
                if check.required is not None:
                    body.append(f"Required: {check.required}, lowest observed: {check.actual}")
                if check.missing:
                    body.append(f"Missing weekdays: {format_weekdays(check.missing)}")
                lines.append((name, body + check.details))
        if result.fixes is not None:
            lines.append(("Suggested fixes", self._fix_lines(result)))

        for title, body in lines:
            y = self._draw_section(c, title, body, y - 20)

        c.showPage()

    def _draw_header(self, c, result: ValidationResult) -> float:
        """Draw title and verdict banner. Returns the y below them."""
        top = self.page_height - self.margin
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, top - 20, "Schedule Compatibility Report")

        banner_y = top - 60
        color = COLORS["compatible"] if result.is_compatible else COLORS["incompatible"]
        c.setFillColorRGB(*color)
        c.rect(self.margin, banner_y, self.page_width - 2 * self.margin, 24, fill=1, stroke=0)
        c.setFillColorRGB(1, 1, 1)
        c.setFont("Helvetica-Bold", 12)
        verdict = "COMPATIBLE" if result.is_compatible else "NOT COMPATIBLE"
        c.drawString(self.margin + 8, banner_y + 8, verdict)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        y = banner_y - 16
        for line in self._wrap(result.summary, 110):
            c.drawString(self.margin, y, line)
            y -= 12
        return y

    def _draw_timeline(
        self,
        c,
        spec: GoalSpecification,
        pattern: Optional[WeeklyPattern],
        y: float,
    ) -> float:
        """Draw one row per weekday with allowed ranges and proposed times."""
        row_height = 18
        left = self.margin + 70
        width = self.page_width - self.margin - left
        scale = width / MINUTES_PER_DAY

        c.setFont("Helvetica-Bold", 11)
        c.drawString(self.margin, y, "Weekly timeline")
        y -= 16

        # Hour axis
        c.setFont("Helvetica", 7)
        c.setStrokeColorRGB(0.7, 0.7, 0.7)
        for hour in range(0, 25, 3):
            x = left + hour * 60 * scale
            c.line(x, y, x, y - 4)
            c.drawCentredString(x, y + 3, f"{hour:02d}")
        y -= 8

        for day in Weekday:
            y -= row_height
            allowed = not spec.weekday_constraints or day in spec.weekday_constraints

            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold" if allowed else "Helvetica-Oblique", 9)
            c.drawString(self.margin, y + 5, day.label)

            c.setFillColorRGB(*COLORS["unconstrained"])
            c.rect(left, y, width, row_height - 4, fill=1, stroke=0)

            ranges = effective_ranges(day, spec)
            c.setFillColorRGB(*COLORS["allowed"])
            for time_range in ranges:
                lo, hi = range_bounds(time_range, self.policy.point_tolerance())
                spans = [(lo, hi)] if lo <= hi else [(lo, MINUTES_PER_DAY), (0, hi)]
                for span_lo, span_hi in spans:
                    c.rect(left + span_lo * scale, y, max((span_hi - span_lo) * scale, 1),
                           row_height - 4, fill=1, stroke=0)

            if pattern is not None and day in pattern.weekdays:
                for t in pattern.times_for(day):
                    ok = self.is_time_allowed(t, ranges)
                    c.setFillColorRGB(*(COLORS["time_ok"] if ok else COLORS["time_bad"]))
                    x = left + time_to_minutes(t) * scale
                    c.rect(x - 1, y - 1, 3, row_height - 2, fill=1, stroke=0)
                    c.setFont("Helvetica", 6)
                    c.drawString(x + 3, y + row_height - 9, format_time(t))

        c.setFillColorRGB(0, 0, 0)
        return y - 4

    def is_time_allowed(self, t: time, ranges: list[TimeRange]) -> bool:
        return not ranges or matches(t, ranges, self.policy.point_tolerance())

    def _draw_section(self, c, title: str, body: list[str], y: float) -> float:
        """Draw a titled list, continuing on a new page when full."""
        if y < self.margin + 40:
            c.showPage()
            y = self.page_height - self.margin - 20

        c.setFont("Helvetica-Bold", 11)
        c.drawString(self.margin, y, title)
        y -= 14

        c.setFont("Helvetica", 9)
        for entry in body:
            for i, line in enumerate(self._wrap(entry, 100)):
                if y < self.margin:
                    c.showPage()
                    c.setFont("Helvetica", 9)
                    y = self.page_height - self.margin - 20
                prefix = "- " if i == 0 else "  "
                c.drawString(self.margin + 10, y, prefix + line)
                y -= 12
        return y

    def _fix_lines(self, result: ValidationResult) -> list[str]:
        fix = result.fixes
        lines = []
        if fix.weekly_weekdays is not None:
            days = format_weekdays(fix.weekly_weekdays) if fix.weekly_weekdays else "(none)"
            lines.append(f"Weekdays: {days}")
        for day, times in sorted((fix.weekly_time_settings or {}).items()):
            lines.append(f"{day.label}: {', '.join(format_time(t) for t in times)}")
        return lines

    @staticmethod
    def _wrap(text: str, width: int) -> list[str]:
        words = text.split()
        lines, current = [], ""
        for word in words:
            if current and len(current) + 1 + len(word) > width:
                lines.append(current)
                current = word
            else:
                current = f"{current} {word}" if current else word
        if current:
            lines.append(current)
        return lines or [""]
