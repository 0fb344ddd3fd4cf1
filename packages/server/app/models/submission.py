"""Submission model: one worker's check-in → check-out attempt on a task."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin

# At most one submission per (task, worker) may await a review decision.
_ACTIVE = sa.text("status IN ('in_progress', 'pending')")


class Submission(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "task_submissions"
    __table_args__ = (
        sa.Index(
            "uq_task_submissions_active",
            "task_id",
            "worker_id",
            unique=True,
            postgresql_where=_ACTIVE,
            sqlite_where=_ACTIVE,
        ),
        sa.UniqueConstraint("task_id", "worker_id", "revision", name="uq_task_submissions_revision"),
    )

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True)
    worker_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    revision: int = Field(nullable=False, default=1)
    status: str = Field(nullable=False, default="in_progress", index=True)  # in_progress | pending | approved | rejected | info_requested
    check_in_time: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    check_in_latitude: float = Field(nullable=False)
    check_in_longitude: float = Field(nullable=False)
    check_in_accuracy: Optional[float] = None
    check_out_time: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    check_out_latitude: Optional[float] = None
    check_out_longitude: Optional[float] = None
    worker_notes: Optional[str] = None
    submitted_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
