"""
Tests for account endpoints: sign-up, login, token refresh and profile.
"""

from datetime import date, datetime, timedelta

import pytest
from httpx import AsyncClient

from eventhub.core.clock import FixedClock
from eventhub.core.security import create_access_token, decode_access_token

from conftest import PASSWORD, auth_headers_for, make_event


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, store, notifier):
    """Successful registration returns user data, a token and sends a welcome email."""
    response = await client.post(
        "/api/users/register",
        json={
            "email": "NewUser@Example.com",
            "password": "securepass123",
            "first_name": "New",
            "last_name": "User",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["role"] == "attendee"
    assert "hashed_password" not in data["user"]
    assert "password" not in data["user"]
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == "24h"
    assert decode_access_token(data["token"])["sub"] == data["user"]["id"]

    assert store.get_user_by_email("newuser@example.com") is not None
    assert notifier.sent == [("welcome", "newuser@example.com", None)]


@pytest.mark.asyncio
async def test_register_organizer(client: AsyncClient):
    response = await client.post(
        "/api/users/register",
        json={
            "email": "host@example.com",
            "password": "securepass123",
            "first_name": "Host",
            "last_name": "Person",
            "role": "organizer",
        },
    )
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "organizer"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, attendee):
    """Duplicate email registration returns 409, regardless of case."""
    response = await client.post(
        "/api/users/register",
        json={
            "email": "ATTENDEE@example.com",
            "password": "securepass123",
            "first_name": "Dup",
            "last_name": "User",
        },
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_invalid_payload(client: AsyncClient):
    """Weak password, bad email or unknown role returns 422."""
    base = {"email": "x@example.com", "password": "securepass123", "first_name": "X", "last_name": "Y"}

    for override in ({"password": "123"}, {"email": "not-an-email"}, {"role": "admin"}, {"first_name": "  "}):
        response = await client.post("/api/users/register", json={**base, **override})
        assert response.status_code == 422, override


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, attendee):
    """Valid credentials return a JWT token."""
    response = await client.post(
        "/api/users/login",
        json={"email": "attendee@example.com", "password": PASSWORD},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Login successful"
    assert data["user"]["id"] == attendee.id
    assert decode_access_token(data["token"])["role"] == "attendee"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, attendee):
    """Invalid password returns 401."""
    response = await client.post(
        "/api/users/login",
        json={"email": "attendee@example.com", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient):
    response = await client.post(
        "/api/users/login",
        json={"email": "ghost@example.com", "password": PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_account(client: AsyncClient, store, attendee):
    store.update_user(attendee.id, {"is_active": False})
    response = await client.post(
        "/api/users/login",
        json={"email": "attendee@example.com", "password": PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_token(client: AsyncClient):
    response = await client.get("/api/users/profile")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_expired_and_forged_tokens_rejected(client: AsyncClient, attendee):
    expired = create_access_token(attendee, expires_delta=timedelta(seconds=-10))
    response = await client.get("/api/users/profile", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"

    response = await client.get("/api/users/profile", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_token_for_deleted_user_rejected(client: AsyncClient, store, attendee, auth_headers):
    store.delete_user(attendee.id)
    response = await client.get("/api/users/profile", headers=auth_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, attendee):
    """A correctly signed token, even expired, is exchanged for a fresh one."""
    expired = create_access_token(attendee, expires_delta=timedelta(seconds=-10))
    response = await client.post(
        "/api/users/refresh-token",
        headers={"Authorization": f"Bearer {expired}"},
    )
    assert response.status_code == 200
    token = response.json()["token"]
    assert decode_access_token(token)["sub"] == attendee.id


@pytest.mark.asyncio
async def test_refresh_token_failures(client: AsyncClient, store, attendee, auth_headers):
    response = await client.post("/api/users/refresh-token")
    assert response.status_code == 401
    assert response.json()["detail"] == "No token provided"

    response = await client.post("/api/users/refresh-token", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401

    store.delete_user(attendee.id)
    response = await client.post("/api/users/refresh-token", headers=auth_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "User not found or inactive"


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, store, attendee, auth_headers, test_event):
    """Profile includes the user's registrations and stats."""
    store.register_user_for_event(attendee.id, test_event.id)

    response = await client.get("/api/users/profile", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "attendee@example.com"
    assert [e["id"] for e in data["registrations"]] == [test_event.id]
    assert data["registrations"][0]["is_registered"] is True
    assert data["stats"] == {"total_registrations": 1, "upcoming_events": 1}


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, store, attendee, auth_headers):
    response = await client.put(
        "/api/users/profile",
        json={"first_name": "Renamed", "email": "Renamed@Example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["first_name"] == "Renamed"
    assert data["last_name"] == "Tester"
    assert data["email"] == "renamed@example.com"
    assert store.get_user_by_email("renamed@example.com").id == attendee.id
    assert store.get_user_by_email("attendee@example.com") is None


@pytest.mark.asyncio
async def test_update_profile_email_taken(client: AsyncClient, organizer, auth_headers):
    response = await client.put(
        "/api/users/profile",
        json={"email": "organizer@example.com"},
        headers=auth_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_change_password(client: AsyncClient, auth_headers):
    response = await client.put(
        "/api/users/change-password",
        json={"current_password": "wrongpassword", "new_password": "brandnew123"},
        headers=auth_headers,
    )
    assert response.status_code == 401

    response = await client.put(
        "/api/users/change-password",
        json={"current_password": PASSWORD, "new_password": "brandnew123"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    old = await client.post("/api/users/login", json={"email": "attendee@example.com", "password": PASSWORD})
    assert old.status_code == 401
    new = await client.post("/api/users/login", json={"email": "attendee@example.com", "password": "brandnew123"})
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_delete_account_requires_password(client: AsyncClient, store, attendee, auth_headers):
    response = await client.request(
        "DELETE", "/api/users/profile", json={"password": "wrongpassword"}, headers=auth_headers,
    )
    assert response.status_code == 401
    assert store.get_user_by_id(attendee.id) is not None


@pytest.mark.asyncio
async def test_delete_attendee_account(client: AsyncClient, store, attendee, auth_headers, test_event):
    """Deleting an attendee removes their registrations; the event survives."""
    store.register_user_for_event(attendee.id, test_event.id)

    response = await client.request(
        "DELETE", "/api/users/profile", json={"password": PASSWORD}, headers=auth_headers,
    )
    assert response.status_code == 200
    assert store.get_user_by_id(attendee.id) is None
    assert store.get_event_registration_count(test_event.id) == 0
    assert store.get_event_by_id(test_event.id) is not None


@pytest.mark.asyncio
async def test_delete_organizer_account_cascades(
    client: AsyncClient, store, notifier, organizer, organizer_headers, attendee, test_event,
):
    """Deleting an organizer removes their events and notifies participants."""
    second = store.create_event(make_event(organizer.id, title="Second"))
    store.register_user_for_event(attendee.id, test_event.id)
    store.register_user_for_event(attendee.id, second.id)

    response = await client.request(
        "DELETE", "/api/users/profile", json={"password": PASSWORD}, headers=organizer_headers,
    )
    assert response.status_code == 200
    assert store.get_user_by_id(organizer.id) is None
    assert store.get_total_events() == 0
    assert store.get_user_registrations(attendee.id) == []
    assert sorted(notifier.sent) == sorted([
        ("event_cancelled", "attendee@example.com", test_event.id),
        ("event_cancelled", "attendee@example.com", second.id),
    ])

    # The old token no longer resolves
    response = await client.get("/api/users/profile", headers=auth_headers_for(organizer))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_registrations_grouped_by_status(
    client: AsyncClient, store, app, attendee, auth_headers, organizer,
):
    app.state.clock = FixedClock(datetime(2030, 6, 1, 12, 0))
    past = store.create_event(make_event(organizer.id, title="Past", date=date(2030, 5, 1)))
    future = store.create_event(make_event(organizer.id, title="Future", date=date(2030, 7, 1)))
    cancelled = store.create_event(make_event(organizer.id, title="Off", date=date(2030, 7, 2), status="cancelled"))
    for event in (past, future, cancelled):
        store.register_user_for_event(attendee.id, event.id)

    response = await client.get("/api/users/registrations", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["summary"] == {"total": 3, "upcoming": 1, "ongoing": 0, "completed": 1, "cancelled": 1}
    assert [e["title"] for e in data["registrations"]] == ["Past", "Future", "Off"]
    assert [e["id"] for e in data["events"]["completed"]] == [past.id]
