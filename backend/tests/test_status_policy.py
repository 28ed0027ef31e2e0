"""
Tests for clock-driven event status and capacity checks.
"""

from datetime import date, datetime

from eventhub.core.clock import FixedClock
from eventhub.db.store import RegistrationStore
from eventhub.models.event import EventStatus
from eventhub.models.user import UserRole
from eventhub.services.status_policy import (
    compute_datetime,
    compute_end,
    compute_status,
    has_ended,
    has_started,
    is_full,
    refresh_status,
    update_status,
)

from conftest import make_event, make_user

EVENT_DAY = date(2030, 3, 10)


def event_at(time="18:00", duration=60, **overrides):
    return make_event("org-1", date=EVENT_DAY, time=time, duration=duration, **overrides)


def test_compute_datetime_combines_date_and_time():
    assert compute_datetime(event_at("09:05")) == datetime(2030, 3, 10, 9, 5)
    assert compute_datetime(event_at("7:30")) == datetime(2030, 3, 10, 7, 30)
    assert compute_end(event_at("23:30", duration=90)) == datetime(2030, 3, 11, 1, 0)


def test_future_event_is_upcoming():
    assert compute_status(event_at(), datetime(2030, 3, 10, 17, 59)) == EventStatus.UPCOMING


def test_event_in_window_is_ongoing():
    assert compute_status(event_at(), datetime(2030, 3, 10, 18, 30)) == EventStatus.ONGOING


def test_window_boundaries_are_inclusive():
    """Ongoing at exactly the start and exactly the end."""
    event = event_at()
    assert compute_status(event, datetime(2030, 3, 10, 18, 0)) == EventStatus.ONGOING
    assert compute_status(event, datetime(2030, 3, 10, 19, 0)) == EventStatus.ONGOING
    assert compute_status(event, datetime(2030, 3, 10, 19, 0, 1)) == EventStatus.COMPLETED


def test_past_event_is_completed():
    assert compute_status(event_at(), datetime(2030, 3, 11, 9, 0)) == EventStatus.COMPLETED


def test_cancelled_is_sticky():
    """A cancelled event never moves to another status."""
    event = event_at(status=EventStatus.CANCELLED)
    for now in (datetime(2030, 1, 1), datetime(2030, 3, 10, 18, 30), datetime(2031, 1, 1)):
        assert compute_status(event, now) == EventStatus.CANCELLED


def test_started_and_ended_predicates():
    event = event_at()
    assert not has_started(event, datetime(2030, 3, 10, 17, 59))
    assert has_started(event, datetime(2030, 3, 10, 18, 0))
    assert not has_ended(event, datetime(2030, 3, 10, 19, 0))
    assert has_ended(event, datetime(2030, 3, 10, 19, 1))


def test_update_status_sets_record():
    event = event_at()
    assert update_status(event, datetime(2030, 3, 12)) == EventStatus.COMPLETED
    assert event.status == EventStatus.COMPLETED


def test_is_full():
    assert not is_full(event_at(), 10_000)
    limited = event_at(max_participants=2)
    assert not is_full(limited, 1)
    assert is_full(limited, 2)
    assert is_full(limited, 3)


def test_refresh_status_persists_change():
    """Status moves with the clock and the new value is stored."""
    store = RegistrationStore()
    organizer = store.create_user(make_user("org@example.com", UserRole.ORGANIZER))
    event = store.create_event(make_event(organizer.id, date=EVENT_DAY, time="18:00"))
    clock = FixedClock(datetime(2030, 3, 10, 12, 0))

    assert refresh_status(store, event, clock.now()).status == EventStatus.UPCOMING

    clock.advance(hours=6, minutes=15)
    refreshed = refresh_status(store, store.get_event_by_id(event.id), clock.now())
    assert refreshed.status == EventStatus.ONGOING
    assert store.get_event_by_id(event.id).status == EventStatus.ONGOING

    clock.advance(days=1)
    refresh_status(store, store.get_event_by_id(event.id), clock.now())
    assert store.get_event_by_id(event.id).status == EventStatus.COMPLETED


def test_refresh_status_keeps_cancellation_made_after_read():
    """A stale copy read before cancellation cannot overwrite the cancelled status."""
    store = RegistrationStore()
    organizer = store.create_user(make_user("org@example.com", UserRole.ORGANIZER))
    event = store.create_event(make_event(organizer.id, date=EVENT_DAY))

    stale = store.get_event_by_id(event.id)
    store.update_event(event.id, {"status": EventStatus.CANCELLED})

    refreshed = refresh_status(store, stale, datetime(2031, 1, 1))
    assert refreshed.status == EventStatus.CANCELLED
    assert store.get_event_by_id(event.id).status == EventStatus.CANCELLED


def test_refresh_status_does_not_touch_updated_at():
    store = RegistrationStore()
    organizer = store.create_user(make_user("org@example.com", UserRole.ORGANIZER))
    event = store.create_event(make_event(organizer.id, date=EVENT_DAY))

    refresh_status(store, event, datetime(2031, 1, 1))

    stored = store.get_event_by_id(event.id)
    assert stored.status == EventStatus.COMPLETED
    assert stored.updated_at == event.updated_at
