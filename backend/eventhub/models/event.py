"""
Event record held by the in-memory store.

Key design decisions:
- `date` and `time` are kept apart, as entered; the start instant is derived
  by the status policy in server local time
- `status` holds the last computed value; read paths refresh it lazily
- `cancelled` is terminal, nothing recomputes it away
- `max_participants=None` means unlimited capacity
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_DURATION_MINUTES = 60
DEFAULT_CATEGORY = "General"

# Fields that update_event() accepts
EVENT_MUTABLE_FIELDS = frozenset({
    "title", "description", "date", "time", "duration", "location",
    "max_participants", "category", "is_public", "is_active", "status",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Event:
    title: str
    description: str
    date: date
    time: str  # HH:MM, 24-hour
    location: str
    organizer_id: str
    duration: int = DEFAULT_DURATION_MINUTES
    max_participants: Optional[int] = None
    category: str = DEFAULT_CATEGORY
    is_public: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_active: bool = True
    status: EventStatus = EventStatus.UPCOMING
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.status = EventStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, title={self.title}, "
            f"starts={self.date} {self.time}, status={self.status.value})>"
        )
