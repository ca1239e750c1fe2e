from __future__ import annotations

import enum
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TIME_FORMAT = "%I:%M %p"
DEFAULT_DATE_FORMAT = "%a %b %d %Y"


class EventKind(str, enum.Enum):
    UNLOCK = "unlock"
    SLEEP = "sleep"
    WAKE = "wake"


class TrackingState(str, enum.Enum):
    TRACKING = "tracking"
    PAUSED = "paused"


def ensure_aware(value: datetime) -> datetime:
    # Naive timestamps (old snapshots, naive clocks) are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Event(BaseModel):
    """
    A single timestamped occurrence (unlock, sleep or wake).

    Display strings are derived from ``timestamp`` on every read, in whatever
    timezone the caller passes, so nothing locale dependent is stored.
    """
    id: int = Field(..., description="Unique id, strictly increasing in creation order")
    kind: EventKind = EventKind.UNLOCK
    timestamp: datetime = Field(..., description="Absolute instant of the event")

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def local_timestamp(self, tz: Optional[tzinfo] = None) -> datetime:
        return self.timestamp.astimezone(tz or timezone.utc)

    def local_date(self, tz: Optional[tzinfo] = None) -> date:
        return self.local_timestamp(tz).date()

    def display_time(self, tz: Optional[tzinfo] = None, fmt: str = DEFAULT_TIME_FORMAT) -> str:
        return self.local_timestamp(tz).strftime(fmt)

    def display_date(self, tz: Optional[tzinfo] = None, fmt: str = DEFAULT_DATE_FORMAT) -> str:
        return self.local_timestamp(tz).strftime(fmt)

    def day_of_week(self, tz: Optional[tzinfo] = None) -> str:
        return self.local_timestamp(tz).strftime("%A")


class SleepRecord(BaseModel):
    """A sleep/wake pair. Either side may be missing; ``duration`` is set once both exist."""
    id: int
    date: date
    sleep_timestamp: Optional[datetime] = None
    wake_timestamp: Optional[datetime] = None
    duration: Optional[str] = Field(None, description="'Xh Ym' once both timestamps are known")

    @field_validator('sleep_timestamp', 'wake_timestamp')
    @classmethod
    def validate_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_aware(value)

    @property
    def is_open(self) -> bool:
        return self.wake_timestamp is None

    def sleep_time(self, tz: Optional[tzinfo] = None, fmt: str = DEFAULT_TIME_FORMAT) -> Optional[str]:
        if self.sleep_timestamp is None:
            return None
        return self.sleep_timestamp.astimezone(tz or timezone.utc).strftime(fmt)

    def wake_time(self, tz: Optional[tzinfo] = None, fmt: str = DEFAULT_TIME_FORMAT) -> Optional[str]:
        if self.wake_timestamp is None:
            return None
        return self.wake_timestamp.astimezone(tz or timezone.utc).strftime(fmt)


class LastAction(BaseModel):
    kind: EventKind
    timestamp: datetime

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, value: datetime) -> datetime:
        return ensure_aware(value)


class DailySpan(BaseModel):
    """First and last event of one day and the time between them."""
    date: date
    first: Event
    last: Event
    count: int
    active_span: timedelta
    active_span_text: str = Field(..., description="e.g. '4h 30m'")


class TrackingStatus(BaseModel):
    """Snapshot kept in the status slot."""
    state: TrackingState = TrackingState.TRACKING
