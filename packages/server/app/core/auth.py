"""
Authentication and authorization for Field Check.

Supports:
- Bearer JWT sessions issued by the account service (shared secret)
- Role-based authorization dependencies (field worker, reviewer)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from fieldcheck_shared.schemas.common import REVIEWER_ROLES, Role

log = structlog.get_logger()
settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated, active user."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.role = user.role

    @property
    def is_reviewer(self) -> bool:
        return self.role in {r.value for r in REVIEWER_ROLES}


async def get_authenticated_user(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency: ``Authorization: Bearer <jwt>``."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_jwt(authorization[7:].strip())
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    user = await session.get(User, user_id)
    if not user or user.status != "active":
        log.info("auth.rejected", user_id=str(user_id))
        raise HTTPException(status_code=401, detail="User not found or inactive")

    auth = AuthenticatedUser(user)
    request.state.auth = auth
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return auth


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

async def require_user(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any active user can access this endpoint."""
    return auth


async def require_field_worker(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires the field_worker role."""
    if auth.role != Role.FIELD_WORKER.value:
        raise HTTPException(status_code=403, detail="Field worker access required")
    return auth


async def require_reviewer(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires admin, manager or team_leader."""
    if not auth.is_reviewer:
        raise HTTPException(status_code=403, detail="Reviewer access required")
    return auth
