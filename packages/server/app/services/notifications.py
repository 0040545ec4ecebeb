"""
Notification service: create, list and mark notifications as read.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.events import publish_notification
from app.models.notification import Notification
from cohete_shared.schemas.common import NotificationType

log = structlog.get_logger()


async def notify(
    session: AsyncSession,
    user_id: uuid.UUID,
    type: NotificationType,
    title: str,
    message: str,
    related_entity_type: Optional[str] = None,
    related_entity_id: Optional[uuid.UUID] = None,
) -> Notification:
    """Store a notification and publish it to the user's channel."""
    notification = Notification(
        user_id=user_id,
        type=type.value,
        title=title,
        message=message,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
    )
    session.add(notification)
    await session.flush()
    await publish_notification(notification)
    log.info("notification.created", user_id=str(user_id), type=type.value)
    return notification


async def list_notifications(
    session: AsyncSession, user_id: uuid.UUID, unread_only: bool = False
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await session.execute(query.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())


async def mark_read(
    session: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID
) -> Notification:
    notification = await session.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.is_read = True
    session.add(notification)
    await session.flush()
    return notification


async def mark_all_read(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
