"""
Event service handling CRUD operations and event views.

Every read path refreshes the event's status against the clock before
exposing it (see status_policy).
"""

from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException, status

from eventhub.core.logging import get_logger
from eventhub.core.metrics import events_created, events_deleted
from eventhub.db.store import RegistrationStore
from eventhub.models.event import Event, EventStatus
from eventhub.models.user import User
from eventhub.schemas.event import (
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventUpdate,
    OrganizerSummary,
    ParticipantResponse,
)
from eventhub.services.access_policy import can_view_event, is_listed_for, owns_event
from eventhub.services.status_policy import compute_datetime, is_full, refresh_status

logger = get_logger(__name__)


def to_response(store: RegistrationStore, event: Event, actor: Optional[User]) -> EventResponse:
    """Attach registration count, fullness and the actor's registration flag."""
    count = store.get_event_registration_count(event.id)
    return EventResponse.model_validate(event).model_copy(update={
        "registration_count": count,
        "is_registered": actor is not None and store.is_user_registered_for_event(actor.id, event.id),
        "is_full": is_full(event, count),
    })


def participants_of(store: RegistrationStore, event_id: str) -> list[ParticipantResponse]:
    return [
        ParticipantResponse(id=u.id, name=u.full_name, email=u.email, role=u.role.value)
        for u in store.get_event_registrations(event_id)
    ]


def to_detail(
    store: RegistrationStore,
    event: Event,
    actor: Optional[User],
    with_participants: bool = False,
) -> EventDetailResponse:
    detail = EventDetailResponse(**to_response(store, event, actor).model_dump())
    organizer = store.get_user_by_id(event.organizer_id)
    if organizer:
        detail.organizer = OrganizerSummary(id=organizer.id, name=organizer.full_name, email=organizer.email)
    if with_participants:
        detail.participants = participants_of(store, event.id)
    return detail


def _not_found(event_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Event {event_id} not found",
    )


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _check_not_in_past(event_date: date, now: datetime) -> None:
    if event_date < now.date():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Event date cannot be in the past",
        )


def get_event(store: RegistrationStore, event_id: str, now: datetime) -> Event:
    """Fetch an event with a fresh status. Raises 404."""
    event = store.get_event_by_id(event_id)
    if event is None:
        raise _not_found(event_id)
    return refresh_status(store, event, now)


def get_owned_event(store: RegistrationStore, event_id: str, actor: User, now: datetime, action: str) -> Event:
    """Fetch an event the actor organizes. Raises 404 or 403."""
    event = get_event(store, event_id, now)
    if not owns_event(actor, event):
        logger.warning("access_denied", user_id=actor.id, event_id=event_id, action=action)
        raise _forbidden(f"You can only {action} your own events")
    return event


def get_visible_event(store: RegistrationStore, event_id: str, actor: Optional[User], now: datetime) -> Event:
    """Fetch an event the actor may see. Raises 404 or 403 for private events."""
    event = get_event(store, event_id, now)
    if not can_view_event(actor, event):
        raise _forbidden("Access denied. This is a private event.")
    return event


def create_event(store: RegistrationStore, event_data: EventCreate, organizer: User, now: datetime) -> Event:
    """Insert an event owned by the organizer. The date may not be before the clock's day."""
    _check_not_in_past(event_data.date, now)
    event = store.create_event(Event(organizer_id=organizer.id, **event_data.model_dump()))
    if event is None:
        # Organizer vanished between authentication and insert
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Organizer no longer exists",
        )

    events_created.inc()
    logger.info(
        "event_created",
        event_id=event.id,
        title=event.title,
        organizer_id=organizer.id,
        max_participants=event.max_participants,
    )
    return refresh_status(store, event, now)


def list_events(
    store: RegistrationStore,
    actor: Optional[User],
    now: datetime,
    status_filter: Optional[EventStatus] = None,
    category: Optional[str] = None,
    organizer_id: Optional[str] = None,
    on_date: Optional[date] = None,
    search: Optional[str] = None,
) -> list[Event]:
    """
    Filter the events visible to the actor, sorted by start time.
    Anonymous callers see public active events; signed-in callers also see their own.
    """
    events = [refresh_status(store, e, now) for e in store.get_all_events()]

    if status_filter:
        events = [e for e in events if e.status == status_filter]
    if category:
        events = [e for e in events if e.category.lower() == category.lower()]
    if organizer_id:
        events = [e for e in events if e.organizer_id == organizer_id]
    if on_date:
        events = [e for e in events if e.date == on_date]
    if search:
        term = search.lower()
        events = [
            e for e in events
            if term in e.title.lower() or term in e.description.lower() or term in e.category.lower()
        ]

    events = [e for e in events if is_listed_for(actor, e)]
    events.sort(key=compute_datetime)
    return events


def list_organizer_events(store: RegistrationStore, organizer: User, now: datetime) -> list[Event]:
    events = [refresh_status(store, e, now) for e in store.get_events_by_organizer(organizer.id)]
    events.sort(key=compute_datetime)
    return events


def update_event(store: RegistrationStore, event: Event, update_data: EventUpdate, now: datetime) -> Event:
    """
    Apply a partial update to an event the caller owns.

    - A cancelled event stays cancelled
    - max_participants cannot drop below the current registration count
    - A new date may not be before the clock's current day
    - max_participants may be explicitly cleared (null) to make capacity unlimited
    """
    updates = update_data.model_dump(exclude_unset=True)
    updates = {k: v for k, v in updates.items() if v is not None or k == "max_participants"}

    if event.status == EventStatus.CANCELLED and updates.get("status", EventStatus.CANCELLED) != EventStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cancelled events cannot be reactivated",
        )

    if "date" in updates:
        _check_not_in_past(updates["date"], now)

    new_max = updates.get("max_participants", event.max_participants)
    count = store.get_event_registration_count(event.id)
    if new_max is not None and new_max < count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Max participants cannot be lower than current registrations ({count})",
        )

    if "status" in updates:
        updates["status"] = EventStatus(updates["status"])

    updated = store.update_event(event.id, updates)
    if updated is None:
        raise _not_found(event.id)

    logger.info("event_updated", event_id=event.id, fields=sorted(updates))
    return updated


def remove_event(store: RegistrationStore, event_id: str) -> Optional[list[User]]:
    """
    Delete an event and its registrations.
    Returns the participants it had, or None if it did not exist.
    """
    participants = store.get_event_registrations(event_id)
    if store.delete_event(event_id) is None:
        return None
    events_deleted.inc()
    logger.info("event_deleted", event_id=event_id, participants=len(participants))
    return participants
