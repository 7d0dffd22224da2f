"""Push channels: the write side of a live client connection.

Learn: A Channel is anything with async write() and close(). Producers
(the notification dispatcher) call write() with an already-encoded JSON
string and must be prepared for it to raise: the client may have gone
away between lookup and write.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class ChannelClosedError(Exception):
    """Raised when writing to a channel that has been closed."""


class Channel(Protocol):
    async def write(self, payload: str) -> None: ...

    async def close(self) -> None: ...


class WebSocketChannel:
    """Channel backed by an accepted WebSocket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def write(self, payload: str) -> None:
        await self.websocket.send_text(payload)

    async def close(self) -> None:
        if self.websocket.client_state == WebSocketState.CONNECTED:
            await self.websocket.close()


_CLOSED = object()


class QueueChannel:
    """Channel backed by a bounded asyncio queue.

    Learn: The SSE endpoint can't write to the socket directly: the
    response body is an async generator that Starlette pulls from.
    So writes go into a queue and events() drains it. The queue is
    bounded: a reader that stops reading makes write() raise
    asyncio.QueueFull instead of growing memory without limit.
    """

    def __init__(self, maxsize: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def write(self, payload: str) -> None:
        if self._closed:
            raise ChannelClosedError("Channel is closed")
        self._queue.put_nowait(payload)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Reader isn't blocked on a full queue; it drains, then sees _closed.
            pass

    async def events(self) -> AsyncIterator[str]:
        """Yield payloads in write order until the channel is closed."""
        while not (self._closed and self._queue.empty()):
            payload = await self._queue.get()
            if payload is _CLOSED:
                return
            yield payload
