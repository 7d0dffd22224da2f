"""WebSocket endpoint: live notification delivery to app clients.

Learn: Each client connects to /ws/notifications?token=JWT. The handler:
1. Authenticates via the JWT query param (browsers and React Native
   can't set headers on a WebSocket handshake)
2. Registers the socket with the ConnectionRegistry under the user id
3. Answers {"type": "ping"} keep-alives from the client
4. Unregisters on disconnect

The socket is write-mostly: notifications are pushed onto it by the
NotificationDispatcher from whatever request raised them. This handler
only reads, to notice pings and the disconnect.
"""

import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from fitcoach.auth.jwt import TokenError, verify_token
from fitcoach.events.codec import encode_event, subscribed_event
from fitcoach.events.types import PING, PONG
from fitcoach.realtime.channel import WebSocketChannel
from fitcoach.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter()

# Application-defined close code (4000–4999 range)
CLOSE_UNAUTHORIZED = 4001


@router.websocket("/ws/notifications")
async def notifications_websocket(websocket: WebSocket):
    """WebSocket endpoint for a user's real-time notifications."""
    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Authentication required")
        return

    try:
        user_id = verify_token(token)["sub"]
    except TokenError:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Invalid or expired token")
        return

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()

    connections: ConnectionRegistry = websocket.app.state.connections
    channel = WebSocketChannel(websocket)
    connections.register(user_id, channel)

    try:
        await channel.write(subscribed_event())
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == PING:
                await websocket.send_text(encode_event(PONG))
    except WebSocketDisconnect:
        logger.debug("websocket.disconnected", user_id=user_id)
    finally:
        connections.unregister(user_id, channel)
        await channel.close()
