"""
Console notification strategy - no delivery.
Logs what would have been sent.
"""

from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_notification
from eventhub.models.event import Event
from eventhub.models.user import User
from eventhub.services.interfaces.notifier import Notifier

logger = get_logger(__name__)


class ConsoleNotifier(Notifier):
    """
    Log-only notifications.

    Use when:
    - Developing locally or running tests
    - No mail relay is configured
    """

    def _log(self, kind: str, recipient: str, **context) -> bool:
        logger.info("notification_logged", kind=kind, recipient=recipient, **context)
        record_notification(kind, "logged")
        return True

    async def send_welcome(self, user: User) -> bool:
        return self._log("welcome", user.email, user_id=user.id)

    async def send_registration_confirmation(self, user: User, event: Event) -> bool:
        return self._log("registration", user.email, event_id=event.id)

    async def send_event_created(self, organizer: User, event: Event) -> bool:
        return self._log("event_created", organizer.email, event_id=event.id)

    async def send_event_cancelled(self, user: User, event: Event) -> bool:
        return self._log("event_cancelled", user.email, event_id=event.id)
