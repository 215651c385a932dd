"""Command-line interface for the goal schedule compatibility engine."""

import argparse
import json
import logging
import sys
from datetime import date, time
from typing import Optional

from goalsched.core.logging import configure_logging
from goalsched.domain.errors import GoalScheduleError, InvalidSpecification
from goalsched.domain.models import (
    CalendarEvent,
    ComparisonOp,
    CountRule,
    CountUnit,
    EventSource,
    GoalSpecification,
    RuleSource,
    TimeRule,
    TimeWindow,
    Weekday,
    WeeklyPattern,
)
from goalsched.domain.policies import DefaultCompatibilityPolicy
from goalsched.output.pdf_generator import PDFGenerator
from goalsched.output.report_generator import ReportGenerator
from goalsched.validation.calendar_validator import CalendarEventValidator
from goalsched.validation.readiness import ReadinessContext, ScheduleReadinessEvaluator
from goalsched.validation.validator import ScheduleCompatibilityValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_COMPATIBLE = 1
EXIT_INPUT_ERROR = 2


def load_json(path: str):
    """Read a JSON document from a file path ("-" reads stdin)."""
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_spec(path: str, strict: bool = True) -> GoalSpecification:
    return GoalSpecification.from_dict(load_json(path), strict=strict)


def load_events(path: str) -> list[CalendarEvent]:
    """Read events from a JSON array or an object with an ``events`` member."""
    data = load_json(path)
    if isinstance(data, dict):
        data = data.get("events") or []
    if not isinstance(data, list):
        raise InvalidSpecification("Events file must hold a list of events")
    return [CalendarEvent.from_dict(item) for item in data]


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}")


def create_sample_spec() -> GoalSpecification:
    """Sample goal: at least once a week, mornings on Mon/Wed and Fri/Sat."""
    return GoalSpecification(
        count_rule=CountRule(operator=ComparisonOp.GE, count=1, unit=CountUnit.PER_WEEK),
        weekday_constraints=frozenset(
            {Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY, Weekday.SATURDAY}
        ),
        time_rules=(
            TimeRule(
                days=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY}),
                window=TimeWindow(time(7, 0), time(7, 0), RuleSource.USER_TEXT),
            ),
            TimeRule(
                days=frozenset({Weekday.FRIDAY, Weekday.SATURDAY}),
                window=TimeWindow(time(9, 0), time(9, 0), RuleSource.USER_TEXT),
            ),
        ),
    )


def emit(args: argparse.Namespace, result, spec=None, pattern=None, policy=None) -> None:
    """Print the result and write any requested report files."""
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(ReportGenerator().generate_to_string(result, spec, pattern), end="")

    if getattr(args, "text", None):
        ReportGenerator().generate(result, args.text, spec, pattern)
        logger.info("Text report written to %s", args.text)
    if getattr(args, "output", None):
        PDFGenerator(policy=policy).generate(result, args.output, spec, pattern)
        logger.info("PDF report written to %s", args.output)


def build_policy(args: argparse.Namespace) -> DefaultCompatibilityPolicy:
    return DefaultCompatibilityPolicy(
        point_tolerance_minutes=args.tolerance,
        month_multiplier=args.weeks_per_month,
    )


def run_validate_pattern(args: argparse.Namespace) -> int:
    spec = load_spec(args.spec, strict=not args.lenient)
    pattern = WeeklyPattern.from_dict(load_json(args.pattern))

    policy = build_policy(args)
    result = ScheduleCompatibilityValidator(policy=policy).validate(pattern, spec)
    emit(args, result, spec, pattern, policy=policy)
    return EXIT_OK if result.is_compatible else EXIT_NOT_COMPATIBLE


def run_validate_events(args: argparse.Namespace) -> int:
    spec = load_spec(args.spec, strict=not args.lenient)
    events = load_events(args.events)

    policy = build_policy(args)
    result = CalendarEventValidator(policy=policy).validate(events, spec, args.start, args.end)
    emit(args, result, spec, policy=policy)
    return EXIT_OK if result.is_compatible else EXIT_NOT_COMPATIBLE


def run_readiness(args: argparse.Namespace) -> int:
    spec = load_spec(args.spec, strict=not args.lenient) if args.spec else None
    ctx = ReadinessContext.from_dict(load_json(args.context), goal_spec=spec)

    evaluator = ScheduleReadinessEvaluator(policy=build_policy(args))
    result = evaluator.evaluate(ctx)
    emit(args, result)
    return EXIT_OK if result.ready else EXIT_NOT_COMPATIBLE


def run_demo(args: argparse.Namespace) -> int:
    """Validate a few sample patterns and a sample calendar."""
    spec = create_sample_spec()
    policy = build_policy(args)
    validator = ScheduleCompatibilityValidator(policy=policy)

    samples = {
        "Within tolerance": WeeklyPattern(
            weekdays=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY, Weekday.SATURDAY}),
            times={
                Weekday.MONDAY: ("07:05",),
                Weekday.WEDNESDAY: ("07:00",),
                Weekday.FRIDAY: ("09:10",),
                Weekday.SATURDAY: ("08:50",),
            },
        ),
        "Wrong weekday": WeeklyPattern(
            weekdays=frozenset({Weekday.TUESDAY}),
            times={Weekday.TUESDAY: ("07:00",)},
        ),
        "Late on Monday": WeeklyPattern(
            weekdays=frozenset({Weekday.MONDAY}),
            times={Weekday.MONDAY: ("08:30",)},
        ),
    }

    last = None
    for name, pattern in samples.items():
        result = validator.validate(pattern, spec)
        verdict = "compatible" if result.is_compatible else "NOT compatible"
        print(f"{name}: {verdict}")
        for issue in result.issues:
            print(f"    - {issue}")
        if result.fixes is not None:
            print(f"    fix: {json.dumps(result.fixes.to_dict())}")
        last = (result, pattern)

    start, end = date(2024, 1, 3), date(2024, 1, 12)
    events = [
        CalendarEvent(date(2024, 1, 3), time(7, 0), EventSource.WEEKLY),
        CalendarEvent(date(2024, 1, 8), time(7, 0), EventSource.WEEKLY),
        CalendarEvent(date(2024, 1, 10), time(7, 0), EventSource.WEEKLY),
    ]
    calendar = CalendarEventValidator(policy=policy).validate(events, spec, start, end)
    print(f"\nCalendar {start} to {end}: {calendar.summary}")
    for issue in calendar.issues:
        print(f"    - {issue}")

    if args.output and last is not None:
        result, pattern = last
        PDFGenerator(policy=policy).generate(result, args.output, spec, pattern)
        print(f"\nPDF created: {args.output}")
    return EXIT_OK


def add_common_arguments(parser: argparse.ArgumentParser, spec_required: bool = True) -> None:
    parser.add_argument(
        "--spec", "-s",
        type=str,
        required=spec_required,
        help="Goal specification JSON file",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Drop malformed time windows instead of failing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report",
    )
    parser.add_argument(
        "--text",
        type=str,
        help="Also write the text report to this file",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goalsched",
        description="Goal Schedule Compatibility Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate-pattern --spec goal.json --pattern pattern.json
  %(prog)s validate-pattern --spec goal.json --pattern pattern.json --output report.pdf
  %(prog)s validate-events --spec goal.json --events events.json --start 2024-01-03 --end 2024-01-12
  %(prog)s readiness --context draft.json --spec goal.json
  %(prog)s demo

Exit status is 0 when compatible (or ready), 1 when not, 2 on invalid input or usage.
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--tolerance", "-t",
        type=int,
        default=15,
        help="Point-time matching tolerance in minutes (default: 15)",
    )
    parser.add_argument(
        "--weeks-per-month",
        type=int,
        default=4,
        help="Weeks per month when checking monthly targets (default: 4)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    pattern_parser = subparsers.add_parser(
        "validate-pattern",
        help="Validate a weekly pattern against a goal",
    )
    add_common_arguments(pattern_parser)
    pattern_parser.add_argument(
        "--pattern", "-p",
        type=str,
        required=True,
        help="Weekly pattern JSON file (weeklyWeekdays / weeklyTimeSettings)",
    )
    pattern_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    events_parser = subparsers.add_parser(
        "validate-events",
        help="Validate dated events over a goal period",
    )
    add_common_arguments(events_parser)
    events_parser.add_argument(
        "--events", "-e",
        type=str,
        required=True,
        help="Calendar events JSON file",
    )
    events_parser.add_argument("--start", type=parse_date, required=True, help="First day (YYYY-MM-DD)")
    events_parser.add_argument("--end", type=parse_date, required=True, help="Last day (YYYY-MM-DD)")
    events_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    readiness_parser = subparsers.add_parser(
        "readiness",
        help="Check whether a goal draft is ready for review",
    )
    add_common_arguments(readiness_parser, spec_required=False)
    readiness_parser.add_argument(
        "--context", "-c",
        type=str,
        required=True,
        help="Goal draft JSON file",
    )

    demo_parser = subparsers.add_parser("demo", help="Run sample validations")
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path",
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(log_level=args.log_level)

    commands = {
        "validate-pattern": run_validate_pattern,
        "validate-events": run_validate_events,
        "readiness": run_readiness,
        "demo": run_demo,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return EXIT_INPUT_ERROR

    try:
        return command(args)
    except (GoalScheduleError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except OSError as exc:
        print(f"error: cannot read input: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
