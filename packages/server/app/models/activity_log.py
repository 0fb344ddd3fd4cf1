"""Activity log model (append-only audit trail, written in the same transaction as the change)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, utcnow


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
    action: str = Field(nullable=False)  # e.g., task_checked_in, task_submitted, submission_approved
    entity_type: str = Field(nullable=False)  # task | submission
    entity_id: uuid.UUID = Field(nullable=False, index=True)
    details: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
