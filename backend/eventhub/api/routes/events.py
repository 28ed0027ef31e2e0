"""
Event endpoints: browsing, organizer CRUD and participant registration.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from eventhub.core.clock import Clock
from eventhub.core.logging import get_logger
from eventhub.core.security import get_current_user, get_optional_user, require_organizer
from eventhub.db.session import get_clock, get_store
from eventhub.db.store import RegistrationStore
from eventhub.models.event import EventStatus
from eventhub.models.user import User
from eventhub.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventDetailResponse,
    EventEnvelope,
    EventListResponse,
    EventUpdate,
    MyEventsResponse,
    MyEventsSummary,
    Pagination,
    ParticipantListResponse,
)
from eventhub.services import event_service, registration_service
from eventhub.services.access_policy import owns_event
from eventhub.services.interfaces.notifier import Notifier
from eventhub.services.notifier_factory import get_notifier

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    organizer: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    actor: Optional[User] = Depends(get_optional_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """
    List events with filters and offset pagination.
    Anonymous callers see public events; signed-in callers also see their own private ones.
    """
    events = event_service.list_events(
        store, actor, clock.now(),
        status_filter=status_filter,
        category=category,
        organizer_id=organizer,
        on_date=on_date,
        search=search,
    )
    total = len(events)
    page = events[offset:offset + limit]

    return EventListResponse(
        events=[event_service.to_response(store, e, actor) for e in page],
        pagination=Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total),
        filters={
            "status": status_filter.value if status_filter else None,
            "category": category,
            "organizer": organizer,
            "date": on_date.isoformat() if on_date else None,
            "search": search,
        },
    )


@router.get("/my-events", response_model=MyEventsResponse)
async def my_events_endpoint(
    organizer: User = Depends(require_organizer),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Events organized by the current user, with their participants."""
    events = event_service.list_organizer_events(store, organizer, clock.now())
    details = [event_service.to_detail(store, e, organizer, with_participants=True) for e in events]

    def count(s: EventStatus) -> int:
        return sum(1 for d in details if d.status == s)

    return MyEventsResponse(
        events=details,
        summary=MyEventsSummary(
            total=len(details),
            upcoming=count(EventStatus.UPCOMING),
            ongoing=count(EventStatus.ONGOING),
            completed=count(EventStatus.COMPLETED),
            cancelled=count(EventStatus.CANCELLED),
            total_registrations=sum(d.registration_count for d in details),
        ),
    )


@router.post("/", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    background_tasks: BackgroundTasks,
    organizer: User = Depends(require_organizer),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
):
    """Create a new event. Organizers only."""
    event = event_service.create_event(store, event_data, organizer, clock.now())
    background_tasks.add_task(notifier.send_event_created, organizer, event)
    return EventEnvelope(
        message="Event created successfully",
        event=event_service.to_response(store, event, organizer),
    )


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(
    event_id: str,
    actor: Optional[User] = Depends(get_optional_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Event details. Private events are visible to their organizer only, who also sees participants."""
    event = event_service.get_visible_event(store, event_id, actor, clock.now())
    return event_service.to_detail(store, event, actor, with_participants=owns_event(actor, event))


@router.put("/{event_id}", response_model=EventEnvelope)
async def update_event_endpoint(
    event_id: str,
    update_data: EventUpdate,
    organizer: User = Depends(require_organizer),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Partially update an event you organize. Setting status to cancelled is permanent."""
    now = clock.now()
    event = event_service.get_owned_event(store, event_id, organizer, now, action="update")
    updated = event_service.update_event(store, event, update_data, now)
    updated = event_service.get_event(store, updated.id, now)
    return EventEnvelope(
        message="Event updated successfully",
        event=event_service.to_response(store, updated, organizer),
    )


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(
    event_id: str,
    background_tasks: BackgroundTasks,
    organizer: User = Depends(require_organizer),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
):
    """Delete an event you organize. Registered participants are notified."""
    event = event_service.get_owned_event(store, event_id, organizer, clock.now(), action="delete")
    participants = event_service.remove_event(store, event_id) or []
    for participant in participants:
        background_tasks.add_task(notifier.send_event_cancelled, participant, event)
    return EventDeleteResponse(
        message="Event deleted successfully",
        participants_notified=len(participants),
    )


@router.post("/{event_id}/register", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def register_endpoint(
    event_id: str,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    notifier: Notifier = Depends(get_notifier),
):
    """Register for an event. 409 if already registered, 400 if the event is full."""
    event, count = registration_service.register_for_event(store, user, event_id, clock.now())
    background_tasks.add_task(notifier.send_registration_confirmation, user, event)
    return EventEnvelope(
        message="Successfully registered for event",
        event=event_service.to_response(store, event, user),
        registration_count=count,
    )


@router.delete("/{event_id}/register", response_model=EventEnvelope)
async def unregister_endpoint(
    event_id: str,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Withdraw a registration before the event starts."""
    event = registration_service.unregister_from_event(store, user, event_id, clock.now())
    return EventEnvelope(
        message="Successfully unregistered from event",
        event=event_service.to_response(store, event, user),
        registration_count=store.get_event_registration_count(event_id),
    )


@router.get("/{event_id}/participants", response_model=ParticipantListResponse)
async def participants_endpoint(
    event_id: str,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Participant list. Only the event's organizer may view it."""
    event = event_service.get_owned_event(store, event_id, user, clock.now(), action="view participants of")
    participants = event_service.participants_of(store, event_id)
    return ParticipantListResponse(
        event={
            "id": event.id,
            "title": event.title,
            "date": event.date.isoformat(),
            "time": event.time,
        },
        participants=participants,
        count=len(participants),
        max_participants=event.max_participants,
    )
