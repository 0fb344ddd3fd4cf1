"""
Notification endpoints.

- GET /        The caller's persisted notifications, newest first
- GET /stream  SSE relay of the caller's real-time channel
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from sse_starlette.sse import EventSourceResponse

from app.core.auth import AuthenticatedUser, require_user
from app.core.database import get_session
from app.core.events import user_event_generator
from app.models.notification import Notification
from fieldcheck_shared.schemas.submissions import NotificationRead

router = APIRouter()


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    unread: Optional[bool] = None,
    limit: int = Query(50, ge=1, le=200),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Notification).where(Notification.user_id == auth.user_id)
    if unread:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


@router.get("/stream")
async def stream_notifications(
    request: Request,
    auth: AuthenticatedUser = Depends(require_user),
):
    """
    Stream the caller's events via SSE.

    Emits ``: heartbeat`` comments while the channel is idle.
    """
    return EventSourceResponse(user_event_generator(request, auth.user_id))
