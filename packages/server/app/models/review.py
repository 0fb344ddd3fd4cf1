"""Review model (append-only decision log)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class Review(UUIDMixin, SQLModel, table=True):
    __tablename__ = "task_reviews"

    submission_id: uuid.UUID = Field(foreign_key="task_submissions.id", nullable=False, index=True)
    reviewer_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    action: str = Field(nullable=False)  # approved | rejected | info_requested
    notes: Optional[str] = None
    reviewed_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
