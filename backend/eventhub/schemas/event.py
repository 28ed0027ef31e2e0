"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date as date_type, datetime
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field

from eventhub.models.event import DEFAULT_CATEGORY, DEFAULT_DURATION_MINUTES, EventStatus

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


Text = Annotated[str, AfterValidator(_not_blank)]


class EventCreate(BaseModel):
    title: Text = Field(..., min_length=1, max_length=255)
    description: Text = Field(..., min_length=1, max_length=5000)
    date: date_type = Field(..., description="Not before the current day")
    time: str = Field(..., pattern=TIME_PATTERN, examples=["18:30"])
    duration: int = Field(DEFAULT_DURATION_MINUTES, gt=0, description="Minutes")
    location: Text = Field(..., min_length=1, max_length=255)
    max_participants: Optional[int] = Field(None, gt=0)
    category: Text = Field(DEFAULT_CATEGORY, min_length=1, max_length=100)
    is_public: bool = True


class EventUpdate(BaseModel):
    title: Optional[Text] = Field(None, min_length=1, max_length=255)
    description: Optional[Text] = Field(None, min_length=1, max_length=5000)
    date: Optional[date_type] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    duration: Optional[int] = Field(None, gt=0)
    location: Optional[Text] = Field(None, min_length=1, max_length=255)
    max_participants: Optional[int] = Field(None, gt=0)
    category: Optional[Text] = Field(None, min_length=1, max_length=100)
    is_public: Optional[bool] = None
    # Automatic states are derived from the clock; only cancellation is set by hand
    status: Optional[Literal["cancelled"]] = None


class OrganizerSummary(BaseModel):
    id: str
    name: str
    email: str


class ParticipantResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str


class EventResponse(BaseModel):
    id: str
    title: str
    description: str
    date: date_type
    time: str
    duration: int
    location: str
    max_participants: Optional[int]
    organizer_id: str
    category: str
    is_public: bool
    is_active: bool
    status: EventStatus
    created_at: datetime
    updated_at: datetime
    registration_count: int = 0
    is_registered: bool = False
    is_full: bool = False

    model_config = {"from_attributes": True}


class EventDetailResponse(EventResponse):
    organizer: Optional[OrganizerSummary] = None
    participants: Optional[list[ParticipantResponse]] = None


class EventEnvelope(BaseModel):
    message: str
    event: EventResponse
    registration_count: Optional[int] = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class EventListResponse(BaseModel):
    events: list[EventResponse]
    pagination: Pagination
    filters: dict[str, Optional[str]]


class MyEventsSummary(BaseModel):
    total: int
    upcoming: int
    ongoing: int
    completed: int
    cancelled: int
    total_registrations: int


class MyEventsResponse(BaseModel):
    events: list[EventDetailResponse]
    summary: MyEventsSummary


class EventDeleteResponse(BaseModel):
    message: str
    participants_notified: int


class ParticipantListResponse(BaseModel):
    event: dict[str, str]
    participants: list[ParticipantResponse]
    count: int
    max_participants: Optional[int]
