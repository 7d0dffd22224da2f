"""Push event encoding.

Learn: Every message written to a channel is one JSON object with a
"type" discriminator followed by the event's own fields, e.g.
{"type": "notification.created", "id": 7, "title": ...}. Clients switch
on "type" and ignore types they don't know.
"""

import json
from typing import Any

from fitcoach.events.types import SUBSCRIBED


def encode_event(event_type: str, data: dict[str, Any] | None = None) -> str:
    """Serialize an event for a push channel."""
    return json.dumps({"type": event_type, **(data or {})}, default=str)


def subscribed_event() -> str:
    return encode_event(SUBSCRIBED, {"message": "Subscribed to notifications"})
