from eventhub.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventDetailResponse, EventListResponse,
)
from eventhub.schemas.user import (
    UserCreate, UserLogin, UserUpdate, UserResponse, AuthResponse, TokenResponse,
)

__all__ = [
    "EventCreate", "EventUpdate", "EventResponse", "EventDetailResponse", "EventListResponse",
    "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "AuthResponse", "TokenResponse",
]
