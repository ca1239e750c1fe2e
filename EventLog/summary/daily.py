from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Tuple

from EventLog.models import DailySpan, Event

log = logging.getLogger(__name__)


def split_span(delta: timedelta) -> Tuple[int, int]:
    """Whole hours and remainder minutes of ``delta``, both floored."""
    total_minutes = int(delta.total_seconds() // 60)
    return total_minutes // 60, total_minutes % 60


def format_span(delta: timedelta) -> str:
    hours, minutes = split_span(delta)
    return f"{hours}h {minutes}m"


def group_by_day(events: Iterable[Event], tz: Optional[tzinfo] = None) -> Dict[date, List[Event]]:
    """
    Buckets events by their local calendar date.

    Order inside a bucket is the input order (newest-first when fed straight
    from a log); buckets appear in the order their first event was seen.
    """
    groups: Dict[date, List[Event]] = {}
    for event in events:
        groups.setdefault(event.local_date(tz), []).append(event)
    return groups


def daily_summary(events: Iterable[Event], tz: Optional[tzinfo] = None) -> Optional[DailySpan]:
    """
    First/last event and active span for one day's events.
    Returns None when fewer than two events are available.
    """
    ordered = sorted(events, key=lambda e: e.timestamp)
    if len(ordered) < 2:
        return None

    first, last = ordered[0], ordered[-1]
    span = last.timestamp - first.timestamp
    return DailySpan(
        date=first.local_date(tz),
        first=first,
        last=last,
        count=len(ordered),
        active_span=span,
        active_span_text=format_span(span),
    )


def daily_summaries(events: Iterable[Event], tz: Optional[tzinfo] = None) -> Dict[date, Optional[DailySpan]]:
    """Summary per local date; days with a single event map to None."""
    return {day: daily_summary(day_events, tz) for day, day_events in group_by_day(events, tz).items()}


def today_count(events: Iterable[Event], tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> int:
    """Number of events whose local date is today's local date."""
    now = now or datetime.now(timezone.utc)
    today = now.astimezone(tz or timezone.utc).date()
    count = sum(1 for event in events if event.local_date(tz) == today)
    log.debug(f"{count} events on {today}.")
    return count
