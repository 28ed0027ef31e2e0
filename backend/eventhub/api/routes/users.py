"""
User endpoints: sign-up, login, token refresh and profile management.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from eventhub.core.clock import Clock
from eventhub.core.security import bearer_scheme, create_access_token, get_current_user, token_expires_in
from eventhub.db.session import get_clock, get_store
from eventhub.db.store import RegistrationStore
from eventhub.models.event import EventStatus
from eventhub.models.user import User
from eventhub.schemas.user import (
    AccountDelete,
    AuthResponse,
    MessageResponse,
    PasswordChange,
    ProfileResponse,
    ProfileStats,
    RegistrationSummary,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserRegistrationsResponse,
    UserResponse,
    UserUpdate,
)
from eventhub.services import auth_service
from eventhub.services.event_service import to_response
from eventhub.services.interfaces.notifier import Notifier
from eventhub.services.notifier_factory import get_notifier
from eventhub.services.registration_service import get_user_registrations, group_by_status

router = APIRouter(prefix="/users", tags=["Users"])


def _auth_response(message: str, user: User) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(user),
        token=create_access_token(user),
        expires_in=token_expires_in(),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    background_tasks: BackgroundTasks,
    store: RegistrationStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Create an account and receive a JWT. A welcome email is sent in the background."""
    user = await auth_service.register_user(store, user_data)
    background_tasks.add_task(notifier.send_welcome, user)
    return _auth_response("User registered successfully", user)


@router.post("/login", response_model=AuthResponse)
async def login(login_data: UserLogin, store: RegistrationStore = Depends(get_store)):
    """Authenticate and receive a JWT access token."""
    user = await auth_service.authenticate_user(store, login_data)
    return _auth_response("Login successful", user)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: RegistrationStore = Depends(get_store),
):
    """Exchange a signed (possibly expired) token for a fresh one."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = auth_service.refresh_access_token(store, credentials.credentials)
    return TokenResponse(message="Token refreshed successfully", token=token, expires_in=token_expires_in())


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """Current user with their registrations."""
    events = get_user_registrations(store, user, clock.now())
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        registrations=[to_response(store, e, user) for e in events],
        stats=ProfileStats(
            total_registrations=len(events),
            upcoming_events=sum(1 for e in events if e.status == EventStatus.UPCOMING),
        ),
    )


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update_data: UserUpdate,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
):
    return auth_service.update_profile(store, user, update_data)


@router.delete("/profile", response_model=MessageResponse)
async def delete_account(
    data: AccountDelete,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Delete the account, the events it organizes and all related registrations."""
    removed = await auth_service.delete_account(store, user, data.password)
    for event, participants in removed:
        for participant in participants:
            if participant.id != user.id:
                background_tasks.add_task(notifier.send_event_cancelled, participant, event)
    return MessageResponse(message="Account deleted successfully")


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    data: PasswordChange,
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
):
    await auth_service.change_password(store, user, data)
    return MessageResponse(message="Password changed successfully")


@router.get("/registrations", response_model=UserRegistrationsResponse)
async def list_registrations(
    user: User = Depends(get_current_user),
    store: RegistrationStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """The user's registrations, grouped by event status."""
    events = get_user_registrations(store, user, clock.now())
    grouped = group_by_status(events)
    return UserRegistrationsResponse(
        registrations=[to_response(store, e, user) for e in events],
        summary=RegistrationSummary(
            total=len(events),
            **{name: len(items) for name, items in grouped.items()},
        ),
        events={name: [to_response(store, e, user) for e in items] for name, items in grouped.items()},
    )
