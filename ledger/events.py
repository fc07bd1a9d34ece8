"""
Event Log

Append-only sequence of committed ledger events, with optional
subscribers notified after each commit.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from core.schemas.events import EventRecord, LedgerEvent


logger = logging.getLogger(__name__)

Subscriber = Callable[[EventRecord], None]


class EventLog:
    def __init__(self) -> None:
        self._records: list[EventRecord] = []
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def append(self, event: LedgerEvent) -> EventRecord:
        with self._lock:
            record = EventRecord(sequence=len(self._records), payload=event)
            self._records.append(record)
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            # A failing subscriber must not undo a committed transaction
            try:
                subscriber(record)
            except Exception as e:
                logger.warning(f"Event subscriber failed on {event.event}: {e}")
        return record

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def records(self, event: Optional[str] = None) -> list[EventRecord]:
        """All records, or only those of one event name."""
        with self._lock:
            if event is None:
                return list(self._records)
            return [r for r in self._records if r.payload.event == event]

    def events(self, event: Optional[str] = None) -> list[LedgerEvent]:
        return [r.payload for r in self.records(event)]

    def __len__(self) -> int:
        return len(self._records)
