"""Pickup calendar command-line tool."""

from __future__ import annotations

import argparse
import sys
from datetime import UTC, datetime, time
from pathlib import Path

from pickup_calendar.config import PickupCalendarConfig
from pickup_calendar.datemath import DayOfWeek
from pickup_calendar.errors import PickupCalendarError


def _parse_time(value: str) -> time:
    try:
        return time.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid time of day: {value!r} (expected HH:MM)") from e


def _parse_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date-time: {value!r} (expected ISO 8601)") from e


def _parse_dow(value: str) -> DayOfWeek:
    try:
        return DayOfWeek.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


class _WeekdayOfMonthAction(argparse.Action):
    """Parse ``DOW WEEK`` into a (DayOfWeek, int) pair."""

    def __call__(self, parser, namespace, values, option_string=None):
        dow, week_number = values
        try:
            parsed = (_parse_dow(dow), int(week_number))
        except (argparse.ArgumentTypeError, ValueError) as e:
            raise argparse.ArgumentError(self, f"invalid DOW WEEK: {dow} {week_number} ({e})") from e
        setattr(namespace, self.dest, parsed)


def build_parser(config: PickupCalendarConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pickup-calendar",
        description="Recurring pickup calendar (trash day, recycling, ...)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Trash every Tuesday at 7:30
  pickup-calendar add-weekly trash tuesday 07:30

  # Recycling every other Friday, starting next week
  pickup-calendar add-biweekly recycling friday 07:30 --next-week

  # Mortgage five days before the end of each month
  pickup-calendar add-day-of-month mortgage -5 12:00

  # Next pickup of each kind
  pickup-calendar next
        """,
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=config.data_dir,
        help=f"directory holding stored calendars (default: {config.data_dir})",
    )
    parser.add_argument("--user", default="default", help="calendar owner (default: default)")
    parser.add_argument(
        "--now",
        type=_parse_datetime,
        default=None,
        help="reference date-time in ISO 8601 (default: current local time)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=config.debug,
        help="enable debug logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add-weekly", help="add an every-week pickup")
    p.add_argument("name")
    p.add_argument("dow", type=_parse_dow)
    p.add_argument("time", type=_parse_time)

    p = sub.add_parser("add-biweekly", help="add an every-other-week pickup")
    p.add_argument("name")
    p.add_argument("dow", type=_parse_dow)
    p.add_argument("time", type=_parse_time)
    p.add_argument("--next-week", action="store_true", help="first pickup is next week, not this week")

    p = sub.add_parser("add-day-of-month", help="add a monthly pickup on a numbered day")
    p.add_argument("name")
    p.add_argument("day", type=int, help="1..31, or -1..-31 counting from the month's end")
    p.add_argument("time", type=_parse_time)

    p = sub.add_parser("add-weekday-of-month", help="add a monthly pickup on the Nth weekday")
    p.add_argument("name")
    p.add_argument("dow", type=_parse_dow)
    p.add_argument("week_number", type=int, help="1..5, or -1..-5 counting from the month's end")
    p.add_argument("time", type=_parse_time)

    p = sub.add_parser("delete", help="delete one recurrence of a pickup")
    p.add_argument("name")
    p.add_argument("time", type=_parse_time)
    which = p.add_mutually_exclusive_group(required=True)
    which.add_argument("--weekly", type=_parse_dow, metavar="DOW")
    which.add_argument("--biweekly", type=_parse_dow, metavar="DOW")
    which.add_argument("--day-of-month", type=int, metavar="DAY")
    which.add_argument("--weekday-of-month", nargs=2, metavar=("DOW", "WEEK"), action=_WeekdayOfMonthAction)

    p = sub.add_parser("delete-name", help="delete every recurrence of a pickup")
    p.add_argument("name")

    sub.add_parser("delete-all", help="delete the whole calendar")

    p = sub.add_parser("next", help="show the next pickup(s)")
    p.add_argument("name", nargs="?")

    sub.add_parser("show", help="print the stored iCalendar text")

    p = sub.add_parser("migrate", help="import a legacy JSON weekly schedule")
    p.add_argument("schedule_file", type=Path)

    p = sub.add_parser("serve", help="serve calendars over HTTP")
    p.add_argument("--addr", default=config.host, help=f"listening address (default: {config.host})")
    p.add_argument("--port", type=int, default=config.port, help=f"listening port (default: {config.port})")

    return parser


def _run(args: argparse.Namespace, config: PickupCalendarConfig) -> None:
    from pickup_calendar.legacy import calendar_from_schedule, schedule_from_json
    from pickup_calendar.next_pickups import NextPickups
    from pickup_calendar.store import LocalCalendarStore

    store = LocalCalendarStore(args.data_dir, prodid=config.prodid)
    now = args.now or datetime.now()

    if args.command == "serve":
        import uvicorn

        from pickup_calendar.feed import create_app

        print(f"Pickup calendar feed listening on {args.addr}:{args.port}")
        print(f"Serving calendars from: {store.root_dir}")
        uvicorn.run(create_app(store), host=args.addr, port=args.port, log_level="info")
        return

    if args.command == "show":
        text = store.load_text(args.user)
        print(text if text is not None else f"No calendar for {args.user}")
        return

    if args.command == "next":
        next_pickups = NextPickups(now, store.load(args.user), args.name)
        if not next_pickups.count:
            print("No pickups scheduled")
        for name, when in next_pickups.pickups.items():
            print(f"Next {name} pickup is {when:%A, %B %d at %H:%M}")
        return

    if args.command == "migrate":
        schedule = schedule_from_json(args.schedule_file.read_text(encoding="utf-8"))
        calendar = calendar_from_schedule(schedule, now)
        store.save(args.user, calendar, stamp=datetime.now(UTC))
        print(f"Migrated {len(calendar)} pickup(s) for {args.user}")
        return

    calendar = store.load(args.user)

    if args.command == "add-weekly":
        changed = calendar.add_weekly(now, args.name, args.dow, args.time)
    elif args.command == "add-biweekly":
        changed = calendar.add_biweekly(now, args.name, args.dow, args.time, next_week=args.next_week)
    elif args.command == "add-day-of-month":
        changed = calendar.add_day_of_month(now, args.name, args.day, args.time)
    elif args.command == "add-weekday-of-month":
        changed = calendar.add_weekday_of_month(now, args.name, args.dow, args.week_number, args.time)
    elif args.command == "delete":
        if args.weekly is not None:
            count = calendar.delete_weekly(args.name, args.weekly, args.time)
        elif args.biweekly is not None:
            count = calendar.delete_biweekly(args.name, args.biweekly, args.time)
        elif args.day_of_month is not None:
            count = calendar.delete_day_of_month(args.name, args.day_of_month, args.time)
        else:
            dow, week_number = args.weekday_of_month
            count = calendar.delete_weekday_of_month(args.name, dow, week_number, args.time)
        changed = count > 0
    elif args.command == "delete-name":
        changed = calendar.delete_entire_name(args.name)
    elif args.command == "delete-all":
        changed = calendar.delete_all()
    else:
        raise AssertionError(f"unhandled command: {args.command}")

    if changed:
        store.save(args.user, calendar, stamp=datetime.now(UTC))
        print("Calendar updated")
    else:
        print("Nothing changed")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pickup calendar tool."""
    config = PickupCalendarConfig()
    args = build_parser(config).parse_args(argv)

    # Setup debug logging if requested
    if args.debug:
        from pickup_calendar.debug import setup_debug_logging

        setup_debug_logging()

    try:
        _run(args, config)
    except PickupCalendarError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
