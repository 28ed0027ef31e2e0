"""
Account service: sign-up, login, token refresh and profile management.
"""

import jwt
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from eventhub.core.logging import get_logger
from eventhub.core.metrics import users_registered
from eventhub.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from eventhub.db.store import RegistrationStore
from eventhub.models.event import Event
from eventhub.models.user import User
from eventhub.schemas.user import PasswordChange, UserCreate, UserLogin, UserUpdate
from eventhub.services.event_service import remove_event

logger = get_logger(__name__)


async def register_user(store: RegistrationStore, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password.
    Raises 409 if the email already exists.
    """
    if store.get_user_by_email(user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        )

    hashed = await run_in_threadpool(hash_password, user_data.password)
    user = store.create_user(User(
        email=user_data.email,
        hashed_password=hashed,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role,
    ))
    if user is None:
        # Lost a race with a concurrent sign-up while hashing
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        )

    users_registered.inc()
    logger.info("user_registered", user_id=user.id, email=user.email, role=user.role.value)
    return user


async def authenticate_user(store: RegistrationStore, login_data: UserLogin) -> User:
    """
    Check credentials and return the user.
    Raises 401 if credentials are invalid or the account is inactive.
    """
    user = store.get_user_by_email(login_data.email)

    if not user or not await run_in_threadpool(verify_password, login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive. Please contact support.",
        )

    logger.info("user_logged_in", user_id=user.id)
    return user


def refresh_access_token(store: RegistrationStore, token: str) -> str:
    """
    Issue a fresh token from a correctly signed one, even if it has expired.
    The user must still exist and be active.
    """
    try:
        payload = decode_access_token(token, verify_exp=False)
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user = store.get_user_by_id(payload["sub"])
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    logger.info("token_refreshed", user_id=user.id)
    return create_access_token(user)


def update_profile(store: RegistrationStore, user: User, update_data: UserUpdate) -> User:
    """Update name and email. Raises 409 if the new email belongs to someone else."""
    updates = update_data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in updates:
        existing = store.get_user_by_email(updates["email"])
        if existing and existing.id != user.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already taken by another user",
            )

    updated = store.update_user(user.id, updates)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("profile_updated", user_id=user.id, fields=sorted(updates))
    return updated


async def change_password(store: RegistrationStore, user: User, data: PasswordChange) -> None:
    if not await run_in_threadpool(verify_password, data.current_password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    hashed = await run_in_threadpool(hash_password, data.new_password)
    store.update_user(user.id, {"hashed_password": hashed})
    logger.info("password_changed", user_id=user.id)


async def delete_account(
    store: RegistrationStore,
    user: User,
    password: str,
) -> list[tuple[Event, list[User]]]:
    """
    Delete the account after re-checking the password.

    Events the user organizes are deleted first (each cascading to its
    registrations) so no event is left pointing at a missing organizer.
    Returns the removed events with the participants they had, for
    cancellation notices.
    """
    if not await run_in_threadpool(verify_password, password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password",
        )

    removed = []
    for event in store.get_events_by_organizer(user.id):
        participants = remove_event(store, event.id)
        if participants is not None:
            removed.append((event, participants))

    store.delete_user(user.id)
    logger.info("account_deleted", user_id=user.id, events_removed=len(removed))
    return removed
