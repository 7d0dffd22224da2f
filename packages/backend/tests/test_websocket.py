"""WebSocket push tests.

Learn: These use Starlette's synchronous TestClient, which runs the app
on its own event loop in a background thread. Entered as a context
manager it keeps ONE loop for every request and socket, so a POST that
raises a notification can push onto a socket opened earlier in the
same test. The database is a SQLite file: tables are created with a
plain sync engine, and the app's sessions use aiosqlite on the
TestClient's loop.
"""

import pytest
from conftest import auth_headers
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from starlette.websockets import WebSocketDisconnect

from fitcoach.auth.jwt import create_access_token
from fitcoach.db.engine import get_db
from fitcoach.db.models import Base
from fitcoach.main import create_app


@pytest.fixture()
def ws_app(tmp_path):
    db_path = tmp_path / "ws.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")

    async def override_get_db():
        async with AsyncSession(bind=engine, expire_on_commit=False) as session:
            yield session

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield app, client
        client.portal.call(engine.dispose)


def test_rejects_missing_token(ws_app):
    _, client = ws_app
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/notifications"):
            pass
    assert exc.value.code == 4001


def test_rejects_invalid_token(ws_app):
    _, client = ws_app
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/notifications?token=garbage"):
            pass
    assert exc.value.code == 4001


def test_subscribe_ping_and_disconnect(ws_app):
    app, client = ws_app
    token = create_access_token("runner-1")

    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "subscribed"
        assert "runner-1" in app.state.connections

        ws.send_text("not json")
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

    # Handler unregisters once the client is gone
    assert "runner-1" not in app.state.connections


def test_notification_pushed_to_connected_user(ws_app):
    _, client = ws_app
    token = create_access_token("runner-1")

    with client.websocket_connect(f"/ws/notifications?token={token}") as ws:
        assert ws.receive_json()["type"] == "subscribed"

        r = client.post(
            "/api/v1/notifications",
            json={"userId": "runner-1", "title": "PR!", "content": "New 5k record", "category": "achievement"},
            headers=auth_headers("coach"),
        )
        assert r.status_code == 201

        event = ws.receive_json()
        assert event["type"] == "notification.created"
        assert event["id"] == r.json()["id"]
        assert event["title"] == "PR!"
        assert event["category"] == "achievement"
        assert event["isRead"] is False

    # The pushed record is also in the polled inbox
    r = client.get("/api/v1/notifications", headers=auth_headers("runner-1"))
    assert [n["title"] for n in r.json()] == ["PR!"]


def test_reconnect_replaces_channel(ws_app):
    app, client = ws_app
    token = create_access_token("runner-1")

    with client.websocket_connect(f"/ws/notifications?token={token}") as first:
        first.receive_json()
        old_channel = app.state.connections.lookup("runner-1")

        with client.websocket_connect(f"/ws/notifications?token={token}") as second:
            second.receive_json()
            new_channel = app.state.connections.lookup("runner-1")
            assert new_channel is not old_channel

            client.post(
                "/api/v1/notifications",
                json={"userId": "runner-1", "title": "Only the newest socket"},
                headers=auth_headers("coach"),
            )
            assert second.receive_json()["title"] == "Only the newest socket"
