"""
Registration service: signing users up for events and back out.

ORDER OF CHECKS (register)
==========================

  1. Event exists                            -> 404
  2. Actor may see it (public or organizer)  -> 403
  3. Event is active                         -> 400
  4. Status refreshed; not completed or
     cancelled                               -> 400
  5. Store.register_with_capacity():
       already registered                    -> 409
       event full                            -> 400 "Event is full"

Step 5 runs as a single critical section inside the store, so the capacity
check and the insert cannot interleave with another registration for the
same event. Capacity exhaustion is reported separately from the duplicate
conflict so clients can tell "you're already in" from "no room left".
"""

from collections import defaultdict
from datetime import datetime

from fastapi import HTTPException, status

from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_registration_attempt, unregistrations
from eventhub.db.store import RegistrationOutcome, RegistrationStore
from eventhub.models.event import Event, EventStatus
from eventhub.models.user import User
from eventhub.services.event_service import get_event, get_visible_event
from eventhub.services.status_policy import compute_datetime, refresh_status

logger = get_logger(__name__)


def register_for_event(store: RegistrationStore, user: User, event_id: str, now: datetime) -> tuple[Event, int]:
    """
    Register the user for an event.
    Returns the event and its registration count after the insert.
    """
    try:
        event = get_visible_event(store, event_id, user, now)
    except HTTPException as e:
        record_registration_attempt("not_found" if e.status_code == 404 else "denied")
        raise

    if not event.is_active:
        record_registration_attempt("denied")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event is not active",
        )

    if event.status in (EventStatus.COMPLETED, EventStatus.CANCELLED):
        record_registration_attempt("denied")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot register for {event.status.value} events",
        )

    outcome = store.register_with_capacity(user.id, event_id)
    record_registration_attempt(outcome.value)

    if outcome == RegistrationOutcome.NOT_FOUND:
        # Deleted between the lookup and the insert
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )

    if outcome == RegistrationOutcome.ALREADY_REGISTERED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You are already registered for this event",
        )

    if outcome == RegistrationOutcome.FULL:
        logger.warning(
            "registration_failed_full",
            event_id=event_id,
            user_id=user.id,
            max_participants=event.max_participants,
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event is full",
        )

    count = store.get_event_registration_count(event_id)
    logger.info("registration_created", event_id=event_id, user_id=user.id, registration_count=count)
    return event, count


def unregister_from_event(store: RegistrationStore, user: User, event_id: str, now: datetime) -> Event:
    """Remove the user's registration. Not allowed once the event has started."""
    event = get_event(store, event_id, now)

    if not store.is_user_registered_for_event(user.id, event_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are not registered for this event",
        )

    if event.status in (EventStatus.ONGOING, EventStatus.COMPLETED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot unregister from events that have started or completed",
        )

    store.unregister_user_from_event(user.id, event_id)
    unregistrations.inc()
    logger.info("registration_removed", event_id=event_id, user_id=user.id)
    return event


def get_user_registrations(store: RegistrationStore, user: User, now: datetime) -> list[Event]:
    """The user's registered events with fresh statuses, sorted by start."""
    events = [refresh_status(store, e, now) for e in store.get_user_registrations(user.id)]
    events.sort(key=compute_datetime)
    return events


def group_by_status(events: list[Event]) -> dict[str, list[Event]]:
    grouped = defaultdict(list)
    for event in events:
        grouped[event.status.value].append(event)
    return {s.value: grouped[s.value] for s in EventStatus}
