"""
Event lifecycle status and capacity decisions.

STATUS MODEL
============

  upcoming --(start reached)--> ongoing --(start + duration passed)--> completed
  any state --(explicit update)--> cancelled   (terminal)

Nothing runs on a timer. Status is a function of (date, time, duration, now)
and read paths call refresh_status() before exposing an event, so the stored
value is only the last one computed. `cancelled` is never overwritten.

All functions take `now` explicitly; callers pass `clock.now()`.
"""

from datetime import datetime, timedelta

from eventhub.models.event import Event, EventStatus


def compute_datetime(event: Event) -> datetime:
    """Combine the event's date and HH:MM time into a local start instant."""
    hours, minutes = (int(part) for part in event.time.split(":"))
    return datetime(event.date.year, event.date.month, event.date.day, hours, minutes)


def compute_end(event: Event) -> datetime:
    return compute_datetime(event) + timedelta(minutes=event.duration)


def has_started(event: Event, now: datetime) -> bool:
    return now >= compute_datetime(event)


def has_ended(event: Event, now: datetime) -> bool:
    return now > compute_end(event)


def compute_status(event: Event, now: datetime) -> EventStatus:
    if event.status == EventStatus.CANCELLED:
        return EventStatus.CANCELLED

    start = compute_datetime(event)
    if now < start:
        return EventStatus.UPCOMING
    if now <= compute_end(event):
        return EventStatus.ONGOING
    return EventStatus.COMPLETED


def update_status(event: Event, now: datetime) -> EventStatus:
    """Recompute the status and set it on the given record."""
    event.status = compute_status(event, now)
    return event.status


def is_full(event: Event, current_participants: int) -> bool:
    if event.max_participants is None:
        return False
    return current_participants >= event.max_participants


def refresh_status(store, event: Event, now: datetime) -> Event:
    """
    Read-path helper: recompute status and persist it if it moved.

    The write goes through store.set_computed_status(), which re-checks the
    stored record under the store lock, so a cancellation that lands after
    `event` was read is kept. Returns the event with its current status.
    """
    previous = event.status
    if update_status(event, now) == previous:
        return event
    stored = store.set_computed_status(event.id, event.status)
    return stored if stored is not None else event
