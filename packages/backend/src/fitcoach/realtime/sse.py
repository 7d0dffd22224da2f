"""Server-Sent Events framing for the web client.

Learn: SSE is a one-way text stream over a long-lived HTTP response.
Each event is a "data: <payload>" line followed by a blank line. The
browser's EventSource reconnects on its own, so a dropped stream just
means the client polls the inbox until it's back.
"""

from collections.abc import AsyncIterator

from fitcoach.events.codec import subscribed_event
from fitcoach.realtime.channel import QueueChannel
from fitcoach.realtime.registry import ConnectionRegistry

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx response buffering
}


def format_sse(payload: str) -> str:
    return f"data: {payload}\n\n"


async def sse_frames(
    connections: ConnectionRegistry,
    user_id: str,
    channel: QueueChannel,
) -> AsyncIterator[str]:
    """Register a channel for user_id and stream it as SSE frames.

    The channel is registered only once the response body starts, and
    the first frame is the subscribed greeting. Runs until the channel
    closes or the client disconnects (Starlette cancels the generator).
    Either way the channel is unregistered.
    """
    connections.register(user_id, channel)
    try:
        await channel.write(subscribed_event())
        async for payload in channel.events():
            yield format_sse(payload)
    finally:
        connections.unregister(user_id, channel)
        await channel.close()
