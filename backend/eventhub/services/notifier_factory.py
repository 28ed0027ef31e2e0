"""
Notifier factory.
Configures which notification backend to use.
"""

from fastapi import Request

from eventhub.core.config import Settings
from eventhub.services.interfaces.console_notifier import ConsoleNotifier
from eventhub.services.interfaces.notifier import Notifier
from eventhub.services.notification_service import HttpEmailNotifier


def build_notifier(settings: Settings) -> Notifier:
    """
    Build the configured notifier.

    - console (default): log only
    - http: deliver through the mail relay at EMAIL_API_URL
    """
    if settings.EMAIL_BACKEND == "http":
        return HttpEmailNotifier(settings)
    return ConsoleNotifier()


def get_notifier(request: Request) -> Notifier:
    """FastAPI dependency returning the app's notifier."""
    return request.app.state.notifier
