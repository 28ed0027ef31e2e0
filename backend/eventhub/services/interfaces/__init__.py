"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import Notifier
from .console_notifier import ConsoleNotifier

__all__ = ['Notifier', 'ConsoleNotifier']
