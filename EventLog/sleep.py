"""
Sleep log: sleep/wake pairs with a computed duration.

A transition only ever looks at the newest record unless
``Settings.sleep_close_stale_open`` is set, so an older record left open
stays open when a new night starts.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import TypeAdapter

from EventLog.models import EventKind, LastAction, SleepRecord, ensure_aware
from EventLog.store import SnapshotStore, next_id
from EventLog.summary.daily import format_span

log = logging.getLogger(__name__)

SLEEP_NAMESPACE = "sleep"

_RECORDS = TypeAdapter(List[SleepRecord])
_LAST_ACTION = TypeAdapter(Optional[LastAction])


class SleepLogStore(SnapshotStore):
    """Newest-first, unbounded list of sleep records."""

    records_key = f"{SLEEP_NAMESPACE}:records"
    last_action_key = f"{SLEEP_NAMESPACE}:last_action"

    def __init__(self, storage, settings=None, clock=None):
        super().__init__(storage, settings, clock)
        self._records: List[SleepRecord] = []
        self._last_action: Optional[LastAction] = None

    @property
    def records(self) -> List[SleepRecord]:
        return list(self._records)

    @property
    def last_action(self) -> Optional[LastAction]:
        return self._last_action

    def open_records(self) -> List[SleepRecord]:
        return [r for r in self._records if r.is_open and r.sleep_timestamp is not None]

    def load(self) -> "SleepLogStore":
        self._records = self._read_slot(self.records_key, _RECORDS, [])
        self._last_action = self._read_slot(self.last_action_key, _LAST_ACTION, None)
        log.info(f"Loaded {len(self._records)} sleep records.")
        return self

    def persist(self) -> bool:
        return self._write_slots({
            self.records_key: (_RECORDS, self._records),
            self.last_action_key: (_LAST_ACTION, self._last_action),
        })

    def _find_pairable(self, kind: EventKind, now: datetime) -> Optional[int]:
        """Index of the record this transition completes, or None to start a new one."""
        candidates = self._records if self.settings.sleep_close_stale_open else self._records[:1]
        for index, record in enumerate(candidates):
            if kind is EventKind.WAKE and record.wake_timestamp is None:
                return index
            # A wake-only record only takes a sleep that happened before that wake
            if (kind is EventKind.SLEEP and record.sleep_timestamp is None
                    and record.wake_timestamp is not None and record.wake_timestamp > now):
                return index
        return None

    def record_sleep_transition(self, kind: EventKind) -> SleepRecord:
        kind = EventKind(kind)
        if kind not in (EventKind.SLEEP, EventKind.WAKE):
            raise ValueError(f"Sleep transitions are 'sleep' or 'wake', got '{kind.value}'")

        now = ensure_aware(self.clock())
        index = self._find_pairable(kind, now)

        if index is None:
            previous_id = self._records[0].id if self._records else None
            record = SleepRecord(id=next_id(now, previous_id), date=now.astimezone(self.tz).date())
            self._records.insert(0, record)
            index = 0
            log.info(f"Started sleep record {record.id} with a {kind.value} time.")
        record = self._records[index]

        if kind is EventKind.SLEEP:
            record.sleep_timestamp = now
        else:
            record.wake_timestamp = now
        record.duration = self._duration(record)

        self._last_action = LastAction(kind=kind, timestamp=now)
        log.info(f"Recorded {kind.value} at {now.isoformat()} on record {record.id} (duration: {record.duration}).")
        self.persist()
        return record

    @staticmethod
    def _duration(record: SleepRecord) -> Optional[str]:
        if record.sleep_timestamp is None or record.wake_timestamp is None:
            return None
        delta = record.wake_timestamp - record.sleep_timestamp
        if delta.total_seconds() < 0:
            log.warning(f"Record {record.id} wakes before it sleeps. Leaving duration unset.")
            return None
        return format_span(delta)

    def clear_all(self) -> None:
        cleared = len(self._records)
        self._records = []
        self._last_action = None
        log.info(f"Cleared {cleared} sleep records.")
        self.persist()
