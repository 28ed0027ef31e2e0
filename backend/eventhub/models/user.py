"""
User record held by the in-memory store.

The bcrypt hash lives on the record but is never part of any response
schema.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class UserRole(str, Enum):
    ORGANIZER = "organizer"
    ATTENDEE = "attendee"


# Fields that update_user() accepts
USER_MUTABLE_FIELDS = frozenset({
    "email", "first_name", "last_name", "role", "is_active", "hashed_password",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    email: str
    hashed_password: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.ATTENDEE
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        self.email = self.email.lower()
        self.role = UserRole(self.role)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_organizer(self) -> bool:
        return self.role == UserRole.ORGANIZER

    @property
    def is_attendee(self) -> bool:
        return self.role == UserRole.ATTENDEE

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
