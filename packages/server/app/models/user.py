"""User model (owned by the account administration service, read-only here)."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: Optional[str] = Field(default=None, unique=True, index=True)
    name: str = Field(nullable=False)
    role: str = Field(nullable=False, default="field_worker")  # admin | manager | team_leader | field_worker
    status: str = Field(nullable=False, default="active")  # active | inactive
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
        },
        sa_type=sa.DateTime(timezone=True),
    )
