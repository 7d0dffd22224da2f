"""Push channel tests: QueueChannel and SSE framing."""

import asyncio
import json

import pytest

from fitcoach.events.codec import encode_event, subscribed_event
from fitcoach.realtime.channel import ChannelClosedError, QueueChannel
from fitcoach.realtime.registry import ConnectionRegistry
from fitcoach.realtime.sse import format_sse, sse_frames
from fitcoach.services.notification_service import NotificationDispatcher
from fitcoach.services.notification_store import NotificationStore


def test_encode_event_shape():
    payload = json.loads(encode_event("notification.created", {"id": 3, "title": "x"}))
    assert payload == {"type": "notification.created", "id": 3, "title": "x"}

    hello = json.loads(subscribed_event())
    assert hello["type"] == "subscribed"
    assert hello["message"]


def test_format_sse():
    assert format_sse('{"a": 1}') == 'data: {"a": 1}\n\n'


@pytest.mark.asyncio
async def test_queue_channel_yields_in_order_until_closed():
    channel = QueueChannel(maxsize=10)
    await channel.write("one")
    await channel.write("two")
    await channel.close()

    received = [p async for p in channel.events()]
    assert received == ["one", "two"]


@pytest.mark.asyncio
async def test_queue_channel_write_after_close():
    channel = QueueChannel()
    await channel.close()
    assert channel.closed
    with pytest.raises(ChannelClosedError):
        await channel.write("late")


@pytest.mark.asyncio
async def test_queue_channel_full_rejects_write():
    channel = QueueChannel(maxsize=2)
    await channel.write("a")
    await channel.write("b")
    with pytest.raises(asyncio.QueueFull):
        await channel.write("c")

    # Closing a full channel still ends the stream after draining
    await channel.close()
    assert [p async for p in channel.events()] == ["a", "b"]


@pytest.mark.asyncio
async def test_queue_channel_close_wakes_waiting_reader():
    channel = QueueChannel()

    async def read_all():
        return [p async for p in channel.events()]

    reader = asyncio.create_task(read_all())
    await asyncio.sleep(0)
    await channel.write("only")
    await channel.close()

    assert await asyncio.wait_for(reader, timeout=1) == ["only"]


@pytest.mark.asyncio
async def test_sse_frames_registers_greets_and_unregisters_on_close():
    registry = ConnectionRegistry()
    channel = QueueChannel()
    frames = sse_frames(registry, "u1", channel)

    greeting = await frames.__anext__()
    assert json.loads(greeting[len("data: "):])["type"] == "subscribed"
    assert registry.lookup("u1") is channel

    await channel.write(encode_event("notification.created", {"id": 1}))
    await channel.close()
    rest = [f async for f in frames]

    assert len(rest) == 1
    assert rest[0].startswith("data: ") and rest[0].endswith("\n\n")
    assert json.loads(rest[0][len("data: "):])["id"] == 1
    assert registry.lookup("u1") is None


@pytest.mark.asyncio
async def test_sse_frames_unregisters_when_client_disconnects():
    registry = ConnectionRegistry()
    channel = QueueChannel()
    frames = sse_frames(registry, "u1", channel)
    await frames.__anext__()

    await frames.aclose()

    assert registry.lookup("u1") is None
    assert channel.closed


@pytest.mark.asyncio
async def test_dispatcher_delivers_into_sse_channel(db_session):
    registry = ConnectionRegistry()
    channel = QueueChannel()
    frames = sse_frames(registry, "u1", channel)
    await frames.__anext__()
    dispatcher = NotificationDispatcher(NotificationStore(db_session), registry)

    n = await dispatcher.send("u1", "Streamed", "", "general")
    event = json.loads((await frames.__anext__())[len("data: "):])
    await frames.aclose()

    assert event["id"] == n.id
    assert event["title"] == "Streamed"


@pytest.mark.asyncio
async def test_dispatcher_survives_closed_sse_channel(db_session):
    registry = ConnectionRegistry()
    channel = QueueChannel()
    registry.register("u1", channel)
    await channel.close()
    dispatcher = NotificationDispatcher(NotificationStore(db_session), registry)

    n = await dispatcher.send("u1", "Nobody listening", "", "general")

    assert n.id is not None
    assert await dispatcher.unread_count("u1") == 1
