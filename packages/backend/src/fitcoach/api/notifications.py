"""Notifications API: send, stream, poll, and mark read.

Learn: Routes for the notification lifecycle:
- POST /notifications → store + push to the recipient if online
- GET /notifications/stream → SSE push channel for the caller
- GET /notifications → caller's inbox, newest first (the poll path)
- GET /notifications/unread-count → badge number
- GET /notifications/:id → detail view (marks it read)
- POST /notifications/:id/read → mark one read
- POST /notifications/read-all → mark all read

Static paths are declared before /notifications/{notification_id}
so "stream" and "unread-count" never get parsed as an id.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from fitcoach.api.deps import get_connections, get_dispatcher
from fitcoach.auth.dependencies import CurrentIdentity, get_current_user
from fitcoach.config import settings
from fitcoach.realtime.channel import QueueChannel
from fitcoach.realtime.registry import ConnectionRegistry
from fitcoach.realtime.sse import SSE_HEADERS, sse_frames
from fitcoach.schemas.notification import (
    MarkAllReadResult,
    NotificationCreate,
    NotificationRead,
    UnreadCount,
)
from fitcoach.services.notification_service import (
    NotificationDispatcher,
    NotificationNotFoundError,
    StorageError,
)

router = APIRouter()


# ─── Send ────────────────────────────────────────────────


@router.post("/notifications", response_model=NotificationRead, status_code=201)
async def send_notification(
    body: NotificationCreate,
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    """Store a notification and push it live if the recipient is connected."""
    try:
        return await svc.send(
            recipient_id=body.user_id,
            title=body.title,
            content=body.content,
            category=body.category,
        )
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))


# ─── Live stream (SSE) ───────────────────────────────────


@router.get("/notifications/stream")
async def stream_notifications(
    identity: CurrentIdentity = Depends(get_current_user),
    connections: ConnectionRegistry = Depends(get_connections),
):
    """Open a Server-Sent Events channel for the caller's notifications."""
    channel = QueueChannel(maxsize=settings.sse_queue_size)
    return StreamingResponse(
        sse_frames(connections, identity.user_id, channel),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


# ─── Inbox ───────────────────────────────────────────────


@router.get("/notifications", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    """The caller's notifications, newest first."""
    return await svc.list_notifications(
        identity.user_id, unread_only=unread_only, limit=limit
    )


@router.get("/notifications/unread-count", response_model=UnreadCount)
async def unread_count(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    return UnreadCount(count=await svc.unread_count(identity.user_id))


@router.post("/notifications/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    """Mark every unread notification of the caller read."""
    try:
        updated = await svc.mark_all_read(identity.user_id)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return MarkAllReadResult(updated=updated)


# ─── Single notification ─────────────────────────────────


@router.get("/notifications/{notification_id}", response_model=NotificationRead)
async def get_notification(
    notification_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    """Detail view. Opening a notification marks it read."""
    try:
        return await svc.open_notification(notification_id, identity.user_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/notifications/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        return await svc.mark_read(notification_id, user_id=identity.user_id)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
