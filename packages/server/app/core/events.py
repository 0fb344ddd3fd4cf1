"""
Real-time user events over Redis Pub/Sub, relayed to clients as SSE.

Each user has one channel (``fc:user:<id>``). Publishing happens after the
database transaction that produced the event has committed; callers treat
delivery as best-effort.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Awaitable, Callable
from uuid import UUID

import structlog
from fastapi import Request

from app.core.config import get_settings
from app.core.redis import get_redis

log = structlog.get_logger()
settings = get_settings()

USER_CHANNEL_PREFIX = "fc:user:"

# (user_id, event_type, payload) -> None
EventPublisher = Callable[[UUID, str, dict[str, Any]], Awaitable[None]]


def user_channel(user_id: UUID) -> str:
    return f"{USER_CHANNEL_PREFIX}{user_id}"


async def publish_user_event(user_id: UUID, event_type: str, payload: dict[str, Any]) -> None:
    """Publish one event to a user's real-time channel."""
    event_data = {
        "type": event_type,
        "user_id": str(user_id),
        "payload": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    redis = await get_redis()
    await redis.publish(user_channel(user_id), json.dumps(event_data))


async def user_event_generator(
    request: Request,
    user_id: UUID,
    heartbeat_seconds: int | None = None,
) -> AsyncGenerator[dict | str, None]:
    """
    SSE generator for one user's channel.

    Emits each published event under its own type and a ``: heartbeat``
    comment whenever the channel is idle for ``heartbeat_seconds``.
    """
    heartbeat = heartbeat_seconds or settings.sse_heartbeat_seconds
    redis = await get_redis()
    pubsub = redis.pubsub()
    await pubsub.subscribe(user_channel(user_id))

    idle = 0.0
    try:
        while True:
            if await request.is_disconnected():
                break

            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message is None:
                idle += 1.0
                if idle >= heartbeat:
                    idle = 0.0
                    yield ": heartbeat\n\n"
                continue

            idle = 0.0
            if message["type"] == "message":
                event_data = json.loads(message["data"])
                yield {
                    "event": event_data["type"],
                    "data": json.dumps(event_data),
                }

    except asyncio.CancelledError:
        log.info("sse.stream_cancelled", user_id=str(user_id))
        raise
    finally:
        await pubsub.unsubscribe(user_channel(user_id))
        await pubsub.aclose()
