"""FitCoach: notification and phone-verification backend.

The live-state core of the FitCoach coaching app: real-time notification
fan-out to connected clients, the durable notification inbox, and
short-lived phone verification codes.
"""

__version__ = "0.1.0"
