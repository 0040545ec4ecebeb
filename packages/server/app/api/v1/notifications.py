"""
Notification endpoints.

- GET   /                - Caller's notifications, newest first
- PATCH /{id}/read       - Mark one notification as read
- POST  /read-all        - Mark every notification as read
- GET   /stream          - SSE stream of new notifications (Redis pub/sub)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from app.core.auth import AuthenticatedUser, require_user
from app.core.database import get_session
from app.core.events import notification_stream
from app.services import notifications as notification_service
from cohete_shared.schemas.notifications import NotificationRead, ReadAllResponse

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await notification_service.list_notifications(session, auth.user_id, unread_only)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await notification_service.mark_read(session, notification_id, auth.user_id)


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_notifications_read(
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    updated = await notification_service.mark_all_read(session, auth.user_id)
    return ReadAllResponse(updated=updated)


@router.get("/stream")
async def stream_notifications(
    request: Request,
    auth: AuthenticatedUser = Depends(require_user),
):
    """
    Stream the caller's new notifications via SSE.

    The stored rows stay the source of truth; clients reload the list after
    reconnecting.
    """
    return EventSourceResponse(notification_stream(request, auth.user_id, auth.jti))
