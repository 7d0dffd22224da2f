"""Connection registry: at most one live push channel per user.

Learn: The registry is a plain dict behind a lock. Every operation
touches a single key, so the lock only has to make each read/replace/
remove atomic; there's never a multi-key transaction.

Last writer wins: a second tab (or a reconnect that races the old
socket's teardown) replaces the first channel. The replaced channel is
NOT closed here; its own handler closes it when the socket drops. To
keep that late teardown from evicting the newer channel, handlers pass
their channel to unregister() and only their own mapping is removed.

One registry lives on app.state per application instance (no module
global), so tests build isolated ones.
"""

import threading
from typing import Optional

import structlog

from fitcoach.realtime.channel import Channel

logger = structlog.get_logger()


class ConnectionRegistry:
    """Maps user id → the user's current push channel."""

    def __init__(self):
        self._channels: dict[str, Channel] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, channel: Channel) -> None:
        """Store (or replace) the channel for a user."""
        with self._lock:
            replaced = self._channels.get(user_id)
            self._channels[user_id] = channel
        logger.info(
            "connections.registered",
            user_id=user_id,
            replaced=replaced is not None and replaced is not channel,
        )

    def unregister(self, user_id: str, channel: Optional[Channel] = None) -> bool:
        """Remove a user's channel. No-op if absent.

        With `channel`, the mapping is removed only if it still points at
        that exact channel. Returns True if something was removed.
        """
        with self._lock:
            current = self._channels.get(user_id)
            if current is None:
                return False
            if channel is not None and current is not channel:
                return False
            del self._channels[user_id]
        logger.info("connections.unregistered", user_id=user_id)
        return True

    def lookup(self, user_id: str) -> Optional[Channel]:
        """Current channel for a user, or None. Never blocks on I/O."""
        with self._lock:
            return self._channels.get(user_id)

    def user_ids(self) -> list[str]:
        with self._lock:
            return list(self._channels)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)
