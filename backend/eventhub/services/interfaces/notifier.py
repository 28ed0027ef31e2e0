"""
Notification strategy interface.
Allows swapping between email delivery backends.
"""

from abc import ABC, abstractmethod

from eventhub.models.event import Event
from eventhub.models.user import User


class Notifier(ABC):
    """
    Interface for user-facing notifications.

    Implementations:
    - ConsoleNotifier: log the notification, deliver nothing
    - HttpEmailNotifier: render HTML email and post it to a mail relay API

    Notifications are dispatched fire-and-forget after the state change they
    report has been committed. Implementations must never raise: a failed
    delivery is logged and counted, and the request that triggered it is
    unaffected.
    """

    @abstractmethod
    async def send_welcome(self, user: User) -> bool:
        """
        Greet a newly registered account.

        Returns:
            True if delivered (or logged), False on failure
        """
        pass

    @abstractmethod
    async def send_registration_confirmation(self, user: User, event: Event) -> bool:
        """Confirm that `user` is registered for `event`."""
        pass

    @abstractmethod
    async def send_event_created(self, organizer: User, event: Event) -> bool:
        """Tell an organizer their event is live."""
        pass

    @abstractmethod
    async def send_event_cancelled(self, user: User, event: Event) -> bool:
        """Tell a participant that an event they registered for was deleted."""
        pass
