"""
Email notifications delivered through an HTTP mail relay.
Implements the Notifier interface using httpx.

Fail-safe delivery:
  Every send is fire-and-forget from the request's point of view. Network
  errors, timeouts and non-2xx responses are logged and counted, and the
  method returns False instead of raising. The registration, account or
  event change that triggered the email has already been stored and is
  never rolled back.
"""

from html import escape

import httpx

from eventhub.core.config import Settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_notification
from eventhub.models.event import Event
from eventhub.models.user import User
from eventhub.services.interfaces.notifier import Notifier
from eventhub.services.status_policy import compute_datetime

logger = get_logger(__name__)

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {accent};">{heading}</h2>
  <p>Dear {name},</p>
  <p>{intro}</p>
  <div style="background-color: #f5f5f5; padding: 20px; border-radius: 5px; margin: 20px 0;">
    {details}
  </div>
  <p>{outro}</p>
  <p>Best regards,<br>The Event Management Team</p>
</div>
"""


def _rows(pairs: list[tuple[str, object]]) -> str:
    return "\n    ".join(
        f"<p><strong>{escape(label)}:</strong> {escape(str(value))}</p>" for label, value in pairs
    )


def _event_rows(event: Event) -> list[tuple[str, object]]:
    return [
        ("Event", event.title),
        ("Description", event.description),
        ("Date", compute_datetime(event).strftime("%A, %d %B %Y")),
        ("Time", event.time),
        ("Duration", f"{event.duration} minutes"),
        ("Location", event.location),
        ("Category", event.category),
    ]


def render_welcome(user: User) -> tuple[str, str]:
    abilities = "browse and register for upcoming events"
    if user.is_organizer:
        abilities += ", and create and manage your own events"
    html = _LAYOUT.format(
        accent="#333",
        heading="Welcome to Virtual Event Management Platform!",
        name=escape(user.full_name),
        intro="Thank you for registering. Your account has been successfully created.",
        details=_rows([
            ("Name", user.full_name),
            ("Email", user.email),
            ("Role", user.role.value.capitalize()),
            ("Account Created", user.created_at.strftime("%Y-%m-%d")),
        ]),
        outro=f"You can now {abilities}.",
    )
    return "Welcome to Virtual Event Management Platform!", html


def render_registration(user: User, event: Event) -> tuple[str, str]:
    html = _LAYOUT.format(
        accent="#4CAF50",
        heading="Event Registration Confirmed!",
        name=escape(user.full_name),
        intro="You have successfully registered for the following event:",
        details=_rows(_event_rows(event)),
        outro="Please save this information and make sure to attend the event on time.",
    )
    return f"Event Registration Confirmed: {event.title}", html


def render_event_created(organizer: User, event: Event) -> tuple[str, str]:
    rows = [("Event ID", event.id)] + _event_rows(event) + [
        ("Max Participants", event.max_participants or "Unlimited"),
        ("Visibility", "Public" if event.is_public else "Private"),
    ]
    html = _LAYOUT.format(
        accent="#2196F3",
        heading="Event Created Successfully!",
        name=escape(organizer.full_name),
        intro="Your event has been created and is now open for registration:",
        details=_rows(rows),
        outro="You can track registrations from your organizer dashboard.",
    )
    return f"Event Created Successfully: {event.title}", html


def render_event_cancelled(user: User, event: Event) -> tuple[str, str]:
    html = _LAYOUT.format(
        accent="#F44336",
        heading="Event Cancelled",
        name=escape(user.full_name),
        intro="An event you registered for has been cancelled by its organizer:",
        details=_rows(_event_rows(event)),
        outro="Your registration has been removed. We apologise for the inconvenience.",
    )
    return f"Event Cancelled: {event.title}", html


class HttpEmailNotifier(Notifier):
    """
    Email delivery via a JSON mail relay (POST {from, to, subject, html}).

    Use when:
    - EMAIL_BACKEND=http and a relay endpoint is configured
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.api_url = settings.EMAIL_API_URL
        self.api_key = settings.EMAIL_API_KEY
        self.sender = settings.EMAIL_FROM
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS
        self._transport = transport

    async def send_email(self, kind: str, to: str, subject: str, html: str) -> bool:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"from": self.sender, "to": to, "subject": subject, "html": html}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("notification_failed", kind=kind, recipient=to, error=str(e))
            record_notification(kind, "failed")
            return False

        logger.info("notification_sent", kind=kind, recipient=to)
        record_notification(kind, "sent")
        return True

    async def send_welcome(self, user: User) -> bool:
        subject, html = render_welcome(user)
        return await self.send_email("welcome", user.email, subject, html)

    async def send_registration_confirmation(self, user: User, event: Event) -> bool:
        subject, html = render_registration(user, event)
        return await self.send_email("registration", user.email, subject, html)

    async def send_event_created(self, organizer: User, event: Event) -> bool:
        subject, html = render_event_created(organizer, event)
        return await self.send_email("event_created", organizer.email, subject, html)

    async def send_event_cancelled(self, user: User, event: Event) -> bool:
        subject, html = render_event_cancelled(user, event)
        return await self.send_email("event_cancelled", user.email, subject, html)
