"""Pydantic schemas for notifications.

Learn: The frontends speak camelCase JSON (isRead, createdAt) while the
ORM and Python code use snake_case. alias_generator=to_camel maps one to
the other; populate_by_name lets Python callers keep using snake_case.
FastAPI serializes response models by alias, so the wire is camelCase.
"""

from datetime import datetime

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_camel = {"alias_generator": to_camel, "populate_by_name": True}


# ─── Send (producer → platform) ─────────────────────────


class NotificationCreate(BaseModel):
    """Raise a notification for a user."""
    user_id: str = Field(..., min_length=1, max_length=64, description="Recipient user id")
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field("", description="Body text")
    category: str = Field("general", min_length=1, max_length=50, description="Free-form tag")

    model_config = _camel


# ─── Read (platform → client) ───────────────────────────


class NotificationRead(BaseModel):
    """A stored notification record: also the live push payload."""
    id: int
    user_id: str
    title: str
    content: str
    category: str
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True, **_camel}


class UnreadCount(BaseModel):
    count: int


class MarkAllReadResult(BaseModel):
    updated: int
