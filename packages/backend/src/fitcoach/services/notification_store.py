"""Notification store: durable inbox backed by SQL.

Learn: Thin data-access layer over the notifications table, in the same
spirit as a repository: the dispatcher never builds queries itself.
Each write commits on its own, so a returned record is already durable.
Write failures are rolled back and re-raised as StorageError so callers
don't need to know about SQLAlchemy.
"""

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.db.models import Notification


class StorageError(Exception):
    """Raised when a notification write could not be made durable."""


class NotificationStore:
    """Notification persistence for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError(f"Failed to {action}: {e}") from e

    async def insert(
        self,
        *,
        user_id: str,
        title: str,
        content: str,
        category: str,
    ) -> Notification:
        """Append a notification. Returns it with id and created_at set."""
        notification = Notification(
            user_id=user_id,
            title=title,
            content=content,
            category=category,
            is_read=False,
        )
        self.db.add(notification)
        await self._commit(f"store notification for user {user_id}")
        return notification

    async def get(self, notification_id: int) -> Optional[Notification]:
        return await self.db.get(Notification, notification_id)

    async def set_read(self, notification: Notification) -> Notification:
        """Flip the read flag. Already-read records are left untouched."""
        if not notification.is_read:
            notification.is_read = True
            await self._commit(f"mark notification {notification.id} read")
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of a user read. Returns rows changed.

        Learn: A single UPDATE guarded by is_read = false: a row flipped
        by a concurrent call is never counted twice. The "fetch" sync
        strategy refreshes records already loaded in this session.
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .returning(Notification.id)
            .execution_options(synchronize_session="fetch")
        )
        changed = len(result.scalars().all())

        await self._commit(f"mark notifications read for user {user_id}")
        return changed

    async def count_unread(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        """A user's notifications, newest first."""
        q = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        if unread_only:
            q = q.where(Notification.is_read.is_(False))
        result = await self.db.execute(q)
        return list(result.scalars().all())
