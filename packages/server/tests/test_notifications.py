"""
Tests for notifications: listing, read state, Redis fan-out and the SSE stream.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core import events
from app.models.notification import Notification
from conftest import auth_headers


@pytest.fixture
def add_notification(db):
    async def _add(user, title="Aviso", is_read=False, type="info"):
        notification = Notification(
            user_id=user.id, type=type, title=title, message=f"{title}!", is_read=is_read
        )
        db.add(notification)
        await db.commit()
        return notification

    return _add


class TestNotificationEndpoints:
    @pytest.mark.asyncio
    async def test_list_only_own(self, client, add_notification, member, outsider):
        await add_notification(member, "Uno")
        await add_notification(member, "Dos", is_read=True)
        await add_notification(outsider, "Ajena")

        resp = await client.get("/api/v1/notifications", headers=auth_headers(member))
        assert resp.status_code == 200
        assert {n["title"] for n in resp.json()} == {"Uno", "Dos"}

        resp = await client.get(
            "/api/v1/notifications", params={"unread_only": True}, headers=auth_headers(member)
        )
        assert [n["title"] for n in resp.json()] == ["Uno"]

    @pytest.mark.asyncio
    async def test_mark_read(self, client, add_notification, member):
        notification = await add_notification(member)
        resp = await client.patch(
            f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(member)
        )
        assert resp.status_code == 200
        assert resp.json()["is_read"] is True

    @pytest.mark.asyncio
    async def test_cannot_mark_someone_elses(self, client, add_notification, member, outsider):
        notification = await add_notification(member)
        resp = await client.patch(
            f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(outsider)
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_read_all(self, client, add_notification, member, outsider):
        await add_notification(member, "Uno")
        await add_notification(member, "Dos")
        await add_notification(member, "Tres", is_read=True)
        await add_notification(outsider, "Ajena")

        resp = await client.post("/api/v1/notifications/read-all", headers=auth_headers(member))
        assert resp.json() == {"updated": 2}

        resp = await client.get(
            "/api/v1/notifications", params={"unread_only": True}, headers=auth_headers(outsider)
        )
        assert len(resp.json()) == 1


# ---------------------------------------------------------------------------
# Redis fan-out
# ---------------------------------------------------------------------------

class FakePubSub:
    def __init__(self, messages):
        self.messages = list(messages)
        self.channels: list[str] = []
        self.closed = False

    async def subscribe(self, channel):
        self.channels.append(channel)

    async def get_message(self, ignore_subscribe_messages=True, timeout=1.0):
        return self.messages.pop(0) if self.messages else None

    async def unsubscribe(self, channel):
        self.channels.remove(channel)

    async def aclose(self):
        self.closed = True


def _redis_with(pubsub, revoked=False):
    redis = MagicMock()
    redis.pubsub.return_value = pubsub
    redis.exists = AsyncMock(return_value=1 if revoked else 0)

    async def _get_redis():
        return redis

    return patch("app.core.events.get_redis", _get_redis)


def _request(disconnect_after: int):
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=[False] * disconnect_after + [True])
    return request


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_failure_is_logged_not_raised(self, member):
        notification = Notification(user_id=member.id, title="t", message="m")
        redis = MagicMock()
        redis.publish = AsyncMock(side_effect=RedisConnectionError("down"))

        async def _get_redis():
            return redis

        with patch("app.core.events.get_redis", _get_redis):
            await events.publish_notification(notification)

        redis.publish.assert_awaited_once()

    def test_serialize(self, member):
        notification = Notification(user_id=member.id, title="t", message="m", type="comment")
        data = events.serialize_notification(notification)
        assert data["user_id"] == str(member.id)
        assert data["type"] == "comment"
        assert data["related_entity_id"] is None


class TestNotificationStream:
    @pytest.mark.asyncio
    async def test_delivers_messages_and_heartbeats(self, member):
        payload = {"id": "abc", "title": "Nueva tarea asignada"}
        pubsub = FakePubSub([{"type": "message", "data": json.dumps(payload)}])

        with _redis_with(pubsub):
            items = [item async for item in events.notification_stream(_request(2), member.id, "jti")]

        assert items[0] == {"event": "notification", "id": "abc", "data": json.dumps(payload)}
        assert items[1] == ": heartbeat\n\n"
        assert len(items) == 2
        assert pubsub.channels == []
        assert pubsub.closed is True

    @pytest.mark.asyncio
    async def test_closes_when_session_revoked(self, member, monkeypatch):
        monkeypatch.setattr(events, "REVOCATION_CHECK_EVERY", 1)
        pubsub = FakePubSub([])

        with _redis_with(pubsub, revoked=True):
            items = [item async for item in events.notification_stream(_request(5), member.id, "jti")]

        assert items == [
            {"event": "session.revoked", "data": json.dumps({"reason": "credential_revoked"})}
        ]
        assert pubsub.closed is True
