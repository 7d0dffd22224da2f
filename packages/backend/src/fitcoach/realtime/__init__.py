"""Real-time infrastructure: per-user push channels.

Learn: A notification reaches a client over one of two transports:
1. WebSocket: /ws/notifications?token=JWT (mobile app)
2. Server-Sent Events: GET /api/v1/notifications/stream (web app)

Both wrap their connection in a Channel and register it with the
ConnectionRegistry under the authenticated user id. The dispatcher only
ever sees the Channel interface, never the transport.
"""
