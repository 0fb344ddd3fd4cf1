"""
Tests for real-time user events (Redis pub/sub relayed over SSE).

Covers:
- Event envelope published to the user's channel
- SSE relay of published events
- Heartbeat while idle
- Unsubscribe on disconnect
"""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.events import publish_user_event, user_channel, user_event_generator


def _pubsub(messages):
    pubsub = AsyncMock()
    pubsub.get_message = AsyncMock(side_effect=messages)
    return pubsub


def _request(disconnect_after: int):
    """Request stub that reports a disconnect on the given poll."""
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=[False] * disconnect_after + [True])
    return request


class TestPublish:
    @pytest.mark.asyncio
    async def test_envelope(self):
        user_id = uuid.uuid4()
        redis = AsyncMock()
        with patch("app.core.events.get_redis", AsyncMock(return_value=redis)):
            await publish_user_event(user_id, "submission_reviewed", {"action": "approved"})

        channel, raw = redis.publish.await_args.args
        assert channel == f"fc:user:{user_id}"
        event = json.loads(raw)
        assert event["type"] == "submission_reviewed"
        assert event["user_id"] == str(user_id)
        assert event["payload"] == {"action": "approved"}
        assert "timestamp" in event


class TestStream:
    @pytest.mark.asyncio
    async def test_relays_published_event(self):
        user_id = uuid.uuid4()
        data = json.dumps({"type": "submission_reviewed", "user_id": str(user_id), "payload": {}})
        pubsub = _pubsub([{"type": "message", "data": data}])
        redis = MagicMock()
        redis.pubsub = MagicMock(return_value=pubsub)

        with patch("app.core.events.get_redis", AsyncMock(return_value=redis)):
            events = [e async for e in user_event_generator(_request(1), user_id, heartbeat_seconds=30)]

        assert events == [{"event": "submission_reviewed", "data": data}]
        pubsub.subscribe.assert_awaited_once_with(user_channel(user_id))
        pubsub.unsubscribe.assert_awaited_once_with(user_channel(user_id))
        pubsub.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_heartbeat_when_idle(self):
        pubsub = _pubsub([None, None, None])
        redis = MagicMock()
        redis.pubsub = MagicMock(return_value=pubsub)

        with patch("app.core.events.get_redis", AsyncMock(return_value=redis)):
            events = [e async for e in user_event_generator(_request(3), uuid.uuid4(), heartbeat_seconds=2)]

        assert events == [": heartbeat\n\n"]

    @pytest.mark.asyncio
    async def test_ignores_non_message_frames(self):
        pubsub = _pubsub([{"type": "pong", "data": None}])
        redis = MagicMock()
        redis.pubsub = MagicMock(return_value=pubsub)

        with patch("app.core.events.get_redis", AsyncMock(return_value=redis)):
            events = [e async for e in user_event_generator(_request(1), uuid.uuid4(), heartbeat_seconds=30)]

        assert events == []
