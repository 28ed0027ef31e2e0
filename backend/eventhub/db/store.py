"""
In-memory registration store.

DATA LAYOUT
===========

  users                 user_id  -> User
  events                event_id -> Event
  event_registrations   event_id -> set[user_id]    (participants)
  user_registrations    user_id  -> set[event_id]   (registrations)

The last two are mirrored indexes over one many-to-many relation:
"u in event_registrations[e]" holds exactly when "e in user_registrations[u]".
Every mutation below keeps both sides in lockstep, and deletes cascade
through both.

Consistency rules:
  - One registration per (user, event) pair
  - Email is unique among live users (compared lowercase)
  - An event's organizer must be a live user when the event is created
  - Deleting a user or an event removes every edge that touches it

CONCURRENCY
===========

Each store instance owns one re-entrant lock and every public method runs
inside it, so a multi-threaded server never observes a half-updated mirror.
register_with_capacity() performs the fullness check inside the same
critical section as the insert, closing the check-then-register race that a
separate count-then-register sequence would leave open.

OWNERSHIP
=========

Records are copied on the way in and on the way out. Mutating a record
returned by a getter has no effect on the store; use update_user() /
update_event() instead.

Business outcomes (not found, duplicate, full) are return values, never
exceptions. Only programmer errors (unknown update fields) raise.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Optional

from eventhub.models.event import Event, EventStatus, EVENT_MUTABLE_FIELDS
from eventhub.models.user import User, USER_MUTABLE_FIELDS
from eventhub.services.status_policy import is_full


class RegistrationOutcome(str, Enum):
    REGISTERED = "registered"
    ALREADY_REGISTERED = "already_registered"
    FULL = "full"
    NOT_FOUND = "not_found"


def _locked(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _copy(record):
    return replace(record) if record is not None else None


class RegistrationStore:
    def __init__(self):
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._events: dict[str, Event] = {}
        self._event_registrations: dict[str, set[str]] = {}
        self._user_registrations: dict[str, set[str]] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @_locked
    def create_user(self, user: User) -> Optional[User]:
        """Insert a user. Returns None if the id or email is already taken."""
        if user.id in self._users or self._find_user_by_email(user.email):
            return None
        self._users[user.id] = _copy(user)
        self._user_registrations[user.id] = set()
        return _copy(user)

    @_locked
    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return _copy(self._users.get(user_id))

    @_locked
    def get_user_by_email(self, email: str) -> Optional[User]:
        return _copy(self._find_user_by_email(email))

    @_locked
    def get_all_users(self) -> list[User]:
        return [_copy(user) for user in self._users.values()]

    @_locked
    def update_user(self, user_id: str, updates: dict) -> Optional[User]:
        """
        Merge allow-listed fields into the stored user.
        Email uniqueness is the caller's responsibility.
        """
        _check_fields(updates, USER_MUTABLE_FIELDS, "user")
        user = self._users.get(user_id)
        if user is None:
            return None
        updates = {**updates, "updated_at": datetime.now(timezone.utc)}
        # replace() re-runs __post_init__, normalising email and role
        user = self._users[user_id] = replace(user, **updates)
        return _copy(user)

    @_locked
    def delete_user(self, user_id: str) -> Optional[User]:
        """Remove a user and every registration edge touching them."""
        user = self._users.pop(user_id, None)
        if user is None:
            return None
        self._user_registrations.pop(user_id, None)
        for participants in self._event_registrations.values():
            participants.discard(user_id)
        return user

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @_locked
    def create_event(self, event: Event) -> Optional[Event]:
        """Insert an event. Returns None if the id exists or the organizer is unknown."""
        if event.id in self._events or event.organizer_id not in self._users:
            return None
        self._events[event.id] = _copy(event)
        self._event_registrations[event.id] = set()
        return _copy(event)

    @_locked
    def get_event_by_id(self, event_id: str) -> Optional[Event]:
        return _copy(self._events.get(event_id))

    @_locked
    def get_all_events(self) -> list[Event]:
        return [_copy(event) for event in self._events.values()]

    @_locked
    def get_events_by_organizer(self, organizer_id: str) -> list[Event]:
        return [
            _copy(event) for event in self._events.values()
            if event.organizer_id == organizer_id
        ]

    @_locked
    def update_event(self, event_id: str, updates: dict) -> Optional[Event]:
        _check_fields(updates, EVENT_MUTABLE_FIELDS, "event")
        event = self._events.get(event_id)
        if event is None:
            return None
        updates = {**updates, "updated_at": datetime.now(timezone.utc)}
        event = self._events[event_id] = replace(event, **updates)
        return _copy(event)

    @_locked
    def set_computed_status(self, event_id: str, new_status: EventStatus) -> Optional[Event]:
        """
        Persist a clock-derived status without bumping updated_at.
        A stored cancelled status wins over the computed one. Returns the stored event.
        """
        event = self._events.get(event_id)
        if event is None:
            return None
        if event.status != EventStatus.CANCELLED and event.status != new_status:
            event = self._events[event_id] = replace(event, status=new_status)
        return _copy(event)

    @_locked
    def delete_event(self, event_id: str) -> Optional[Event]:
        """Remove an event and every registration edge touching it."""
        event = self._events.pop(event_id, None)
        if event is None:
            return None
        for user_id in self._event_registrations.pop(event_id, set()):
            registrations = self._user_registrations.get(user_id)
            if registrations is not None:
                registrations.discard(event_id)
        return event

    # ------------------------------------------------------------------
    # Registrations
    # ------------------------------------------------------------------

    @_locked
    def register_user_for_event(self, user_id: str, event_id: str) -> bool:
        """
        Add the (user, event) edge to both indexes.
        Returns False if either side is missing or the edge already exists.
        """
        if user_id not in self._users or event_id not in self._events:
            return False
        if user_id in self._event_registrations.get(event_id, ()):
            return False
        self._event_registrations.setdefault(event_id, set()).add(user_id)
        self._user_registrations.setdefault(user_id, set()).add(event_id)
        return True

    @_locked
    def register_with_capacity(self, user_id: str, event_id: str) -> RegistrationOutcome:
        """Check existence, duplicates and capacity, then register, as one step."""
        event = self._events.get(event_id)
        if user_id not in self._users or event is None:
            return RegistrationOutcome.NOT_FOUND
        participants = self._event_registrations.get(event_id, set())
        if user_id in participants:
            return RegistrationOutcome.ALREADY_REGISTERED
        if is_full(event, len(participants)):
            return RegistrationOutcome.FULL
        self.register_user_for_event(user_id, event_id)
        return RegistrationOutcome.REGISTERED

    @_locked
    def unregister_user_from_event(self, user_id: str, event_id: str) -> bool:
        """Remove the edge from both indexes. Idempotent, always True."""
        participants = self._event_registrations.get(event_id)
        if participants is not None:
            participants.discard(user_id)
        registrations = self._user_registrations.get(user_id)
        if registrations is not None:
            registrations.discard(event_id)
        return True

    @_locked
    def is_user_registered_for_event(self, user_id: str, event_id: str) -> bool:
        return user_id in self._event_registrations.get(event_id, ())

    @_locked
    def get_event_registration_count(self, event_id: str) -> int:
        return len(self._event_registrations.get(event_id, ()))

    @_locked
    def get_event_registrations(self, event_id: str) -> list[User]:
        """Participants of an event; ids that no longer resolve are skipped."""
        user_ids = self._event_registrations.get(event_id, ())
        return [_copy(self._users[uid]) for uid in user_ids if uid in self._users]

    @_locked
    def get_user_registrations(self, user_id: str) -> list[Event]:
        """Events a user is registered for; ids that no longer resolve are skipped."""
        event_ids = self._user_registrations.get(user_id, ())
        return [_copy(self._events[eid]) for eid in event_ids if eid in self._events]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @_locked
    def get_total_users(self) -> int:
        return len(self._users)

    @_locked
    def get_total_events(self) -> int:
        return len(self._events)

    @_locked
    def get_total_registrations(self) -> int:
        return sum(len(participants) for participants in self._event_registrations.values())

    @_locked
    def stats(self) -> dict:
        return {
            "users": self.get_total_users(),
            "events": self.get_total_events(),
            "registrations": self.get_total_registrations(),
        }

    @_locked
    def clear(self) -> None:
        """Drop everything. Used for test isolation and resets."""
        self._users.clear()
        self._events.clear()
        self._event_registrations.clear()
        self._user_registrations.clear()

    # ------------------------------------------------------------------

    def _find_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        for user in self._users.values():
            if user.email == email:
                return user
        return None


def _check_fields(updates: dict, allowed: frozenset, kind: str) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValueError(f"Cannot update {kind} field(s): {', '.join(sorted(unknown))}")
