"""Shared route dependencies.

Learn: The connection registry and the code store are per-app objects
hung on app.state by create_app(), not module globals. Handlers reach
them through these dependencies, so each app instance (and each test)
gets its own isolated state.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.db.engine import get_db
from fitcoach.realtime.registry import ConnectionRegistry
from fitcoach.services.notification_service import NotificationDispatcher
from fitcoach.services.notification_store import NotificationStore
from fitcoach.services.verification import VerificationCodeStore


def get_connections(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


def get_code_store(request: Request) -> VerificationCodeStore:
    return request.app.state.codes


def get_notification_store(db: AsyncSession = Depends(get_db)) -> NotificationStore:
    return NotificationStore(db)


def get_dispatcher(
    store: NotificationStore = Depends(get_notification_store),
    connections: ConnectionRegistry = Depends(get_connections),
) -> NotificationDispatcher:
    return NotificationDispatcher(store=store, connections=connections)
