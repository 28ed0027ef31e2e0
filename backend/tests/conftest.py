"""
Pytest fixtures for an isolated app, store, client and authentication.

Every test gets a fresh application from create_app(), so the in-memory
store starts empty and nothing leaks between tests.
"""

import os

# Cheap hashing and no throttling under test; must be set before settings load
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from eventhub.main import create_app
from eventhub.core.security import create_access_token, hash_password
from eventhub.db.store import RegistrationStore
from eventhub.models.event import Event
from eventhub.models.user import User, UserRole
from eventhub.services.interfaces.notifier import Notifier

FAR_FUTURE = date(2099, 6, 15)
PASSWORD = "testpassword123"


class RecordingNotifier(Notifier):
    """Notifier that remembers what it was asked to send."""

    def __init__(self):
        self.sent: list[tuple] = []

    async def send_welcome(self, user):
        self.sent.append(("welcome", user.email, None))
        return True

    async def send_registration_confirmation(self, user, event):
        self.sent.append(("registration", user.email, event.id))
        return True

    async def send_event_created(self, organizer, event):
        self.sent.append(("event_created", organizer.email, event.id))
        return True

    async def send_event_cancelled(self, user, event):
        self.sent.append(("event_cancelled", user.email, event.id))
        return True

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.sent]


def make_user(email: str, role: UserRole = UserRole.ATTENDEE, password: str = PASSWORD) -> User:
    return User(
        email=email,
        hashed_password=hash_password(password),
        first_name=email.split("@")[0].capitalize(),
        last_name="Tester",
        role=role,
    )


def make_event(organizer_id: str, **overrides) -> Event:
    fields = dict(
        title="Test Conference",
        description="A test event",
        date=FAR_FUTURE,
        time="18:00",
        location="Test Venue",
        organizer_id=organizer_id,
    )
    fields.update(overrides)
    return Event(**fields)


def auth_headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def app(notifier):
    return create_app(notifier=notifier)


@pytest.fixture
def store(app) -> RegistrationStore:
    return app.state.store


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def organizer(store) -> User:
    return store.create_user(make_user("organizer@example.com", UserRole.ORGANIZER))


@pytest.fixture
def attendee(store) -> User:
    return store.create_user(make_user("attendee@example.com"))


@pytest.fixture
def organizer_headers(organizer) -> dict:
    return auth_headers_for(organizer)


@pytest.fixture
def auth_headers(attendee) -> dict:
    """Authorization headers for the attendee."""
    return auth_headers_for(attendee)


@pytest.fixture
def test_event(store, organizer) -> Event:
    """A public event far in the future with unlimited capacity."""
    return store.create_event(make_event(organizer.id))


@pytest.fixture
def small_event(store, organizer) -> Event:
    """A public event with room for two participants."""
    return store.create_event(make_event(organizer.id, title="Small Workshop", max_participants=2))


@pytest.fixture
def private_event(store, organizer) -> Event:
    return store.create_event(make_event(organizer.id, title="Private Meetup", is_public=False))
