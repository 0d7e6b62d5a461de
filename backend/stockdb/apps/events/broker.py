from __future__ import annotations

import enum
import itertools
import os
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

EVENT_LOG_CAPACITY = int(os.getenv("EVENT_LOG_CAPACITY", "500"))

_STAGED_KEY = "stockdb.staged_events"


class AppEventType(str, enum.Enum):
    ITEM_CREATED = "item_created"
    STOCK_ADDED = "stock_added"
    ORDER_CREATED = "order_created"
    ITEM_RESERVED = "item_reserved"
    STOCK_LOW = "stock_low"
    ORDER_FULFILLED = "order_fulfilled"


@dataclass
class AppEvent:
    id: int
    type: AppEventType
    at: datetime
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "at": self.at.isoformat(),
            "details": self.details,
        }


class EventLog:
    """Process-local, capacity-bounded record of domain events.

    The oldest event is evicted once `capacity` is reached. Ids keep
    increasing across evictions.
    """

    def __init__(self, capacity: int = EVENT_LOG_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._events: Deque[AppEvent] = deque(maxlen=capacity)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def record(self, type: Union[AppEventType, str], details: Optional[Dict[str, Any]] = None) -> AppEvent:
        event_type = AppEventType(type)
        with self._lock:
            event = AppEvent(
                id=next(self._ids),
                type=event_type,
                at=datetime.now(timezone.utc),
                details=details,
            )
            self._events.append(event)
        return event

    def list(self, limit: Optional[int] = None) -> List[AppEvent]:
        """Newest first."""
        with self._lock:
            events = list(reversed(self._events))
        if limit is not None:
            return events[:limit]
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def stage(
        self,
        db: Session,
        type: Union[AppEventType, str],
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Queue an event on `db`; it is recorded only when `db` commits."""
        if not db.in_transaction():
            db.begin()
        staged: List[Tuple[EventLog, AppEventType, Optional[Dict[str, Any]]]] = db.info.setdefault(_STAGED_KEY, [])
        staged.append((self, AppEventType(type), details))


def staged_events(db: Session) -> List[Tuple[AppEventType, Optional[Dict[str, Any]]]]:
    return [(event_type, details) for _, event_type, details in db.info.get(_STAGED_KEY, [])]


@sa_event.listens_for(Session, "after_commit")
def _publish_staged(session: Session) -> None:
    for log, event_type, details in session.info.pop(_STAGED_KEY, None) or []:
        log.record(event_type, details)


@sa_event.listens_for(Session, "after_transaction_end")
def _discard_staged(session: Session, transaction) -> None:
    # Root transaction ended without commit (rollback or close): drop staged events.
    if transaction.parent is None:
        session.info.pop(_STAGED_KEY, None)


event_log = EventLog()


def record_event(type: Union[AppEventType, str], details: Optional[Dict[str, Any]] = None) -> AppEvent:
    return event_log.record(type, details)
