"""Event type constants.

Learn: Centralizing event types as constants prevents typos and
makes it easy to discover every message a client can receive over
a push channel.
"""

# ─── Push channel lifecycle ──────────────────────────────

SUBSCRIBED = "subscribed"
PING = "ping"
PONG = "pong"

# ─── Notifications ───────────────────────────────────────

NOTIFICATION_CREATED = "notification.created"
