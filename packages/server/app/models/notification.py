"""In-app notification for a user (persisted; real-time delivery is separate)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Notification(UUIDMixin, SQLModel, table=True):
    __tablename__ = "notifications"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    type: str = Field(nullable=False)  # e.g., submission_approved, task_assigned
    title: str = Field(nullable=False)
    message: str = Field(nullable=False)
    is_read: bool = Field(nullable=False, default=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
