"""
Request-scoped access to the process-wide store and clock.

Both are created by create_app() and kept on app.state, so every app
instance (and every test) gets its own isolated store.
"""

from fastapi import Request

from eventhub.core.clock import Clock
from eventhub.db.store import RegistrationStore


def get_store(request: Request) -> RegistrationStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return request.app.state.clock
