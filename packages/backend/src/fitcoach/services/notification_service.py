"""Notification dispatcher: persist first, then push if the user is online.

Learn: send() is a two-step flow:
1. Write the notification to the durable inbox (NotificationStore).
   If this fails the whole call fails with StorageError.
2. Best-effort live delivery: if the recipient has a registered channel,
   write the event onto it. Any failure here is logged and swallowed;
   the record is already stored and the client will see it on its next
   inbox poll.

There is no retry or dead-letter queue for live delivery; a missed push
is recovered only by polling.

Read-flag lifecycle: unread → read, one way. Marking an already-read
notification again is a successful no-op.
"""

from typing import Optional

import structlog

from fitcoach.db.models import Notification
from fitcoach.events.codec import encode_event
from fitcoach.events.types import NOTIFICATION_CREATED
from fitcoach.realtime.registry import ConnectionRegistry
from fitcoach.schemas.notification import NotificationRead
from fitcoach.services.notification_store import NotificationStore, StorageError

logger = structlog.get_logger()

__all__ = [
    "NotificationDispatcher",
    "NotificationNotFoundError",
    "StorageError",
    "notification_event",
]


class NotificationNotFoundError(Exception):
    """Raised when a notification is not found (or belongs to someone else)."""


def notification_event(notification: Notification) -> str:
    """Encode a stored notification as a push event."""
    data = NotificationRead.model_validate(notification).model_dump(
        mode="json", by_alias=True
    )
    return encode_event(NOTIFICATION_CREATED, data)


class NotificationDispatcher:
    """Sends notifications and manages their read state."""

    def __init__(self, store: NotificationStore, connections: ConnectionRegistry):
        self.store = store
        self.connections = connections

    # ─── Send ─────────────────────────────────────────────

    async def send(
        self,
        recipient_id: str,
        title: str,
        content: str,
        category: str = "general",
    ) -> Notification:
        """Persist a notification and push it to the recipient if connected.

        Returns the stored record whether or not live delivery happened.
        Raises StorageError if the record could not be stored.
        """
        notification = await self.store.insert(
            user_id=recipient_id,
            title=title,
            content=content,
            category=category,
        )
        logger.info(
            "notification.stored",
            notification_id=notification.id,
            user_id=recipient_id,
            category=category,
        )

        await self._deliver(notification)
        return notification

    async def _deliver(self, notification: Notification) -> bool:
        """Push to the live channel, if any. Never raises."""
        channel = self.connections.lookup(notification.user_id)
        if channel is None:
            logger.debug(
                "notification.recipient_offline",
                notification_id=notification.id,
                user_id=notification.user_id,
            )
            return False

        try:
            await channel.write(notification_event(notification))
        except Exception as e:
            logger.warning(
                "notification.delivery_failed",
                notification_id=notification.id,
                user_id=notification.user_id,
                error=repr(e),
            )
            return False

        logger.info(
            "notification.delivered",
            notification_id=notification.id,
            user_id=notification.user_id,
        )
        return True

    # ─── Read state ───────────────────────────────────────

    async def mark_read(
        self,
        notification_id: int,
        user_id: Optional[str] = None,
    ) -> Notification:
        """Mark one notification read. Idempotent.

        With `user_id`, a notification owned by another user is treated
        as missing.
        """
        notification = await self.store.get(notification_id)
        if notification is None or (
            user_id is not None and notification.user_id != user_id
        ):
            raise NotificationNotFoundError(
                f"Notification {notification_id} not found"
            )
        return await self.store.set_read(notification)

    async def open_notification(self, notification_id: int, user_id: str) -> Notification:
        """Fetch a notification for its detail view: opening it reads it."""
        return await self.mark_read(notification_id, user_id=user_id)

    async def mark_all_read(self, user_id: str) -> int:
        """Mark all of a user's notifications read. Returns how many changed."""
        updated = await self.store.mark_all_read(user_id)
        logger.info("notification.marked_all_read", user_id=user_id, updated=updated)
        return updated

    async def unread_count(self, user_id: str) -> int:
        return await self.store.count_unread(user_id)

    # ─── Inbox ────────────────────────────────────────────

    async def list_notifications(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        """The poll API: a user's notifications, newest first."""
        return await self.store.list_for_user(
            user_id, unread_only=unread_only, limit=limit
        )
