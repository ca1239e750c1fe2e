"""
In-memory event logs mirrored to key-value storage.

The in-memory state is authoritative for the session: every mutation is
applied in memory first, then the affected slots are rewritten in full.
Storage failures are logged and otherwise ignored.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from EventLog.config import Settings
from EventLog.models import Event, EventKind, LastAction, TrackingState, TrackingStatus
from EventLog.storage import KeyValueStorage, StorageError
from EventLog.summary import daily

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]

UNLOCK_NAMESPACE = "unlock"

_EVENTS = TypeAdapter(List[Event])
_STATUS = TypeAdapter(TrackingStatus)
_LAST_ACTION = TypeAdapter(Optional[LastAction])


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_id(now: datetime, previous: Optional[int]) -> int:
    """Wall-clock milliseconds, bumped past ``previous`` so ids keep increasing."""
    candidate = int(now.timestamp() * 1000)
    if previous is not None and candidate <= previous:
        return previous + 1
    return candidate


class SnapshotStore:
    """Shared load/save plumbing for stores that keep full JSON snapshots in named slots."""

    def __init__(self, storage: KeyValueStorage, settings: Optional[Settings] = None, clock: Optional[Clock] = None):
        self.storage = storage
        self.settings = settings or Settings()
        self.clock = clock or utc_now
        self.tz = self.settings.get_local_timezone()

    def _read_slot(self, key: str, adapter: TypeAdapter, default: Any) -> Any:
        try:
            raw = self.storage.get_item(key)
        except StorageError as e:
            log.error(f"Failed to read '{key}', using defaults: {e}", exc_info=True)
            return default
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except (ValidationError, ValueError) as e:
            log.error(f"Stored snapshot '{key}' is malformed, using defaults: {e}", exc_info=True)
            return default

    def _write_slots(self, slots: Dict[str, Any]) -> bool:
        """Writes each slot independently. Returns False if any write failed."""
        ok = True
        for key, (adapter, value) in slots.items():
            try:
                if value is None:
                    self.storage.remove_item(key)
                else:
                    self.storage.set_item(key, adapter.dump_json(value).decode("utf-8"))
            except (StorageError, ValueError) as e:
                log.error(f"Failed to persist '{key}': {e}", exc_info=True)
                ok = False
        return ok


class EventLogStore(SnapshotStore):
    """
    Newest-first log of timestamped events with a tracking toggle.

    Slots: ``{namespace}:events``, ``{namespace}:status`` and
    ``{namespace}:last_action``.
    """

    _RETENTION_DEFAULT = object()

    def __init__(
        self,
        storage: KeyValueStorage,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        retention: Any = _RETENTION_DEFAULT,
        namespace: str = UNLOCK_NAMESPACE,
    ):
        super().__init__(storage, settings, clock)
        self.retention: Optional[int] = self.settings.unlock_retention if retention is self._RETENTION_DEFAULT else retention
        if self.retention is not None and self.retention < 1:
            raise ValueError(f"retention must be positive or None, got {self.retention}")
        self.namespace = namespace
        self._events: List[Event] = []
        self._status = TrackingStatus()
        self._last_action: Optional[LastAction] = None

    # --- Slot keys ---
    @property
    def events_key(self) -> str:
        return f"{self.namespace}:events"

    @property
    def status_key(self) -> str:
        return f"{self.namespace}:status"

    @property
    def last_action_key(self) -> str:
        return f"{self.namespace}:last_action"

    # --- State ---
    @property
    def events(self) -> List[Event]:
        return list(self._events)

    @property
    def tracking_state(self) -> TrackingState:
        return self._status.state

    @property
    def tracking_enabled(self) -> bool:
        return self._status.state is TrackingState.TRACKING

    @property
    def last_action(self) -> Optional[LastAction]:
        return self._last_action

    def load(self) -> "EventLogStore":
        """Replaces in-memory state with whatever the storage holds. Never raises."""
        events = self._read_slot(self.events_key, _EVENTS, [])
        self._events = list(events)
        if self.retention is not None:
            del self._events[self.retention:]
        self._status = self._read_slot(self.status_key, _STATUS, TrackingStatus())
        self._last_action = self._read_slot(self.last_action_key, _LAST_ACTION, None)
        log.info(f"Loaded {len(self._events)} '{self.namespace}' events (tracking: {self.tracking_state.value}).")
        return self

    def persist(self) -> bool:
        return self._write_slots({
            self.events_key: (_EVENTS, self._events),
            self.status_key: (_STATUS, self._status),
            self.last_action_key: (_LAST_ACTION, self._last_action),
        })

    # --- Mutations ---
    def record_event(self, kind: EventKind = EventKind.UNLOCK) -> Event:
        """Stamps a new event with the current time and puts it at the head of the log."""
        now = self.clock()
        previous_id = self._events[0].id if self._events else None
        event = Event(id=next_id(now, previous_id), kind=EventKind(kind), timestamp=now)

        self._events.insert(0, event)
        if self.retention is not None and len(self._events) > self.retention:
            dropped = len(self._events) - self.retention
            del self._events[self.retention:]
            log.debug(f"Dropped {dropped} events beyond retention bound {self.retention}.")
        self._last_action = LastAction(kind=event.kind, timestamp=event.timestamp)

        log.info(f"Recorded {event.kind.value} event {event.id} at {event.timestamp.isoformat()}")
        self.persist()
        return event

    def record_foreground(self) -> Optional[Event]:
        """Records an unlock for an app foreground transition, unless tracking is paused."""
        if not self.tracking_enabled:
            log.debug("Tracking paused. Ignoring foreground transition.")
            return None
        return self.record_event(EventKind.UNLOCK)

    def set_tracking(self, enabled: bool) -> None:
        self._status = TrackingStatus(state=TrackingState.TRACKING if enabled else TrackingState.PAUSED)
        log.info(f"Tracking {self._status.state.value}.")
        self._write_slots({self.status_key: (_STATUS, self._status)})

    def toggle_tracking(self) -> bool:
        self.set_tracking(not self.tracking_enabled)
        return self.tracking_enabled

    def clear_all(self) -> None:
        """Empties the log and resets tracking and the last-action cache. Irreversible."""
        cleared = len(self._events)
        self._events = []
        self._status = TrackingStatus()
        self._last_action = None
        log.info(f"Cleared {cleared} '{self.namespace}' events.")
        self.persist()

    # --- Derived views ---
    def today_count(self) -> int:
        return daily.today_count(self._events, self.tz, self.clock())

    def group_by_day(self) -> Dict[date, List[Event]]:
        return daily.group_by_day(self._events, self.tz)

    def daily_summary(self, day: date):
        return daily.daily_summary(self.group_by_day().get(day, []), self.tz)

    def daily_summaries(self):
        return daily.daily_summaries(self._events, self.tz)
