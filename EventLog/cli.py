# EventLog/cli.py

import argparse
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from EventLog.config import Settings
from EventLog.models import EventKind
from EventLog.sleep import SleepLogStore
from EventLog.storage import SqliteKeyValueStorage
from EventLog.store import EventLogStore

logging.basicConfig(
    format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-25s | %(message)s",
    level=logging.INFO,
)
log = logging.getLogger("EventLog.cli")


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventlog",
        description="EventLog: phone unlock and sleep logging CLI"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for all EventLog modules.")
    parser.add_argument("--storage", type=Path, default=None, help="SQLite storage path (overrides EVENTLOG_STORAGE_PATH).")
    subparsers = parser.add_subparsers(dest="command", title="Available Commands", required=True)

    # --- Unlock log ---
    parser_unlock = subparsers.add_parser("unlock", help="Record an unlock now.")
    def handle_unlock(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        event = unlocks.record_event(EventKind.UNLOCK)
        print(f"Unlock recorded at {event.display_time(unlocks.tz, unlocks.settings.display_time_format)} "
              f"({unlocks.today_count()} today)")
    parser_unlock.set_defaults(func=handle_unlock)

    parser_foreground = subparsers.add_parser("foreground", help="Record an unlock for an app foreground transition (skipped while paused).")
    def handle_foreground(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        event = unlocks.record_foreground()
        if event is None:
            print("Tracking is paused. Nothing recorded.")
        else:
            print(f"Unlock recorded at {event.display_time(unlocks.tz, unlocks.settings.display_time_format)}")
    parser_foreground.set_defaults(func=handle_foreground)

    parser_tracking = subparsers.add_parser("tracking", help="Pause, resume or show automatic unlock tracking.")
    parser_tracking.add_argument("action", choices=["on", "off", "toggle", "status"])
    def handle_tracking(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        if args_ns.action == "on":
            unlocks.set_tracking(True)
        elif args_ns.action == "off":
            unlocks.set_tracking(False)
        elif args_ns.action == "toggle":
            unlocks.toggle_tracking()
        print(f"Tracking: {unlocks.tracking_state.value}")
    parser_tracking.set_defaults(func=handle_tracking)

    parser_today = subparsers.add_parser("today", help="Show today's unlock count and last unlock.")
    def handle_today(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        print(f"Unlocks today: {unlocks.today_count()}")
        if unlocks.last_action:
            last = unlocks.last_action.timestamp.astimezone(unlocks.tz)
            print(f"Last unlock: {last.strftime(unlocks.settings.display_time_format)}")
    parser_today.set_defaults(func=handle_today)

    parser_days = subparsers.add_parser("days", help="List unlocks grouped by day.")
    parser_days.add_argument("--limit", type=int, default=7, help="Number of days to show (default: 7).")
    def handle_days(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        settings = unlocks.settings
        groups = unlocks.group_by_day()
        if not groups:
            print("No unlocks recorded.")
            return
        for day, events in list(groups.items())[:args_ns.limit]:
            print(f"{events[0].display_date(unlocks.tz, settings.display_date_format)} ({len(events)} unlocks)")
            for event in events:
                print(f"  {event.display_time(unlocks.tz, settings.display_time_format)}")
    parser_days.set_defaults(func=handle_days)

    parser_summary = subparsers.add_parser("summary", help="First unlock, last unlock and active span for a day.")
    parser_summary.add_argument("--day", type=lambda s: date.fromisoformat(s) if s else None, help="Day YYYY-MM-DD (default: today).")
    parser_summary.add_argument("--days-ago", type=int, default=None, help="Days ago (overrides --day).")
    def handle_summary(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        today = unlocks.clock().astimezone(unlocks.tz).date()
        target_day = (today - timedelta(days=args_ns.days_ago)) if args_ns.days_ago is not None else (args_ns.day or today)
        span = unlocks.daily_summary(target_day)
        if span is None:
            print(f"No summary for {target_day}: fewer than two unlocks.")
            return
        fmt = unlocks.settings.display_time_format
        print(f"{target_day}: first {span.first.display_time(unlocks.tz, fmt)}, "
              f"last {span.last.display_time(unlocks.tz, fmt)}, active {span.active_span_text} over {span.count} unlocks")
    parser_summary.set_defaults(func=handle_summary)

    # --- Sleep log ---
    parser_sleep = subparsers.add_parser("sleep", help="Record going to sleep now.")
    parser_wake = subparsers.add_parser("wake", help="Record waking up now.")
    def handle_transition(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        record = sleeps.record_sleep_transition(EventKind(args_ns.command))
        if record.duration:
            print(f"Slept {record.duration}")
        else:
            print(f"{args_ns.command.capitalize()} time recorded.")
    parser_sleep.set_defaults(func=handle_transition)
    parser_wake.set_defaults(func=handle_transition)

    parser_sleep_log = subparsers.add_parser("sleep-log", help="List sleep records.")
    parser_sleep_log.add_argument("--limit", type=int, default=10, help="Number of records to show (default: 10).")
    def handle_sleep_log(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        fmt = sleeps.settings.display_time_format
        if not sleeps.records:
            print("No sleep records.")
            return
        for record in sleeps.records[:args_ns.limit]:
            print(f"{record.date}  sleep {record.sleep_time(sleeps.tz, fmt) or '--'}  "
                  f"wake {record.wake_time(sleeps.tz, fmt) or '--'}  {record.duration or ''}".rstrip())
    parser_sleep_log.set_defaults(func=handle_sleep_log)

    # --- Clear ---
    parser_clear = subparsers.add_parser("clear", help="Delete every record of a log. Cannot be undone.")
    parser_clear.add_argument("log_name", choices=["unlock", "sleep"])
    parser_clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt.")
    def handle_clear(args_ns, unlocks: EventLogStore, sleeps: SleepLogStore):
        if not args_ns.yes and not _confirm(f"Clear all {args_ns.log_name} records?"):
            print("Cancelled.")
            return
        (unlocks if args_ns.log_name == "unlock" else sleeps).clear_all()
        print(f"Cleared {args_ns.log_name} log.")
    parser_clear.set_defaults(func=handle_clear)

    return parser


def main(argv=None):
    settings = Settings()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.getLogger("EventLog").setLevel(logging.DEBUG)
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        for handler in root_logger.handlers:
            handler.setLevel(logging.DEBUG)
        log.debug("Debug logging enabled via CLI.")
    else:
        logging.getLogger("EventLog").setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    storage = SqliteKeyValueStorage(args.storage or settings.storage_path)
    unlocks = EventLogStore(storage, settings).load()
    sleeps = SleepLogStore(storage, settings).load()

    if hasattr(args, "func"):
        args.func(args, unlocks, sleeps)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
