"""
Notification fan-out over Redis Pub/Sub and the per-user SSE stream.

Every stored notification is published on ``cohete:notifications:{user_id}``;
connected browsers receive it through ``notification_stream``.
"""

from __future__ import annotations

import asyncio
import json
from typing import AsyncGenerator
from uuid import UUID

import structlog
from fastapi import Request
from redis.exceptions import RedisError

from app.core.redis import get_redis
from app.models.notification import Notification

log = structlog.get_logger()

NOTIFICATION_CHANNEL_PREFIX = "cohete:notifications:"
HEARTBEAT_INTERVAL = 30  # seconds
REVOCATION_CHECK_EVERY = 10  # poll iterations


def notification_channel(user_id: UUID) -> str:
    return f"{NOTIFICATION_CHANNEL_PREFIX}{user_id}"


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": str(notification.id),
        "user_id": str(notification.user_id),
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_entity_type": notification.related_entity_type,
        "related_entity_id": (
            str(notification.related_entity_id) if notification.related_entity_id else None
        ),
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }


async def publish_notification(notification: Notification) -> None:
    """Publish a stored notification. Delivery is best effort; the row is the source of truth."""
    try:
        redis = await get_redis()
        await redis.publish(
            notification_channel(notification.user_id),
            json.dumps(serialize_notification(notification)),
        )
    except RedisError as exc:
        log.warning(
            "notification.publish_failed",
            notification_id=str(notification.id),
            error=str(exc),
        )


async def _is_revoked(jti: str | None) -> bool:
    if not jti:
        return False
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


async def notification_stream(
    request: Request,
    user_id: UUID,
    jti: str | None = None,
) -> AsyncGenerator[dict | str, None]:
    """
    SSE generator for one user's notifications.

    Sends a heartbeat comment when idle and closes the stream once the
    session token is revoked.
    """
    redis = await get_redis()
    pubsub = redis.pubsub()
    channel = notification_channel(user_id)
    await pubsub.subscribe(channel)
    log.info("notifications.stream_opened", user_id=str(user_id))

    try:
        checks = 0
        while True:
            if await request.is_disconnected():
                break

            checks += 1
            if checks >= REVOCATION_CHECK_EVERY:
                checks = 0
                if await _is_revoked(jti):
                    yield {
                        "event": "session.revoked",
                        "data": json.dumps({"reason": "credential_revoked"}),
                    }
                    break

            try:
                message = await asyncio.wait_for(
                    pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0),
                    timeout=HEARTBEAT_INTERVAL,
                )
            except asyncio.TimeoutError:
                message = None

            if message is None:
                yield ": heartbeat\n\n"
                continue

            if message["type"] == "message":
                data = json.loads(message["data"])
                yield {
                    "event": "notification",
                    "id": data["id"],
                    "data": json.dumps(data),
                }
    except asyncio.CancelledError:
        log.info("notifications.stream_cancelled", user_id=str(user_id))
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
