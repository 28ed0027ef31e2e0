"""
Role and ownership gates checked before any store mutation.
Pure predicates; the service layer turns a False into a 403.
"""

from typing import Optional

from eventhub.models.event import Event
from eventhub.models.user import User


def is_organizer(actor: User) -> bool:
    """Creating events requires the organizer role."""
    return actor.is_organizer


def owns_event(actor: Optional[User], event: Event) -> bool:
    """Update, delete and participant listing are reserved to the event's organizer."""
    return actor is not None and actor.id == event.organizer_id


def can_view_event(actor: Optional[User], event: Event) -> bool:
    """Public events are visible to everyone, private ones only to their organizer."""
    return event.is_public or owns_event(actor, event)


def is_listed_for(actor: Optional[User], event: Event) -> bool:
    """Listing also hides deactivated events from everyone but the organizer."""
    return (event.is_public and event.is_active) or owns_event(actor, event)
