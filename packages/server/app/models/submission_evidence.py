"""Evidence captured on a submission: checklist completions, answers and photos."""

from datetime import datetime
from typing import Any, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, UUIDMixin, utcnow


class SubmissionChecklistItem(UUIDMixin, SQLModel, table=True):
    __tablename__ = "submission_checklist_items"
    __table_args__ = (
        sa.UniqueConstraint("submission_id", "checklist_item_id", name="uq_submission_checklist_item"),
    )

    submission_id: uuid.UUID = Field(foreign_key="task_submissions.id", nullable=False, index=True)
    checklist_item_id: uuid.UUID = Field(foreign_key="task_checklists.id", nullable=False)
    completed: bool = Field(nullable=False, default=False)
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))


class SubmissionAnswer(UUIDMixin, SQLModel, table=True):
    __tablename__ = "submission_answers"
    __table_args__ = (
        sa.UniqueConstraint("submission_id", "question_id", name="uq_submission_answer"),
    )

    submission_id: uuid.UUID = Field(foreign_key="task_submissions.id", nullable=False, index=True)
    question_id: uuid.UUID = Field(foreign_key="task_questions.id", nullable=False)
    answer: Any = Field(default=None, nullable=True, sa_type=JSONType)
    answered_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )


class SubmissionPhoto(UUIDMixin, SQLModel, table=True):
    """Append-only; removed only with the owning submission."""

    __tablename__ = "submission_photos"

    submission_id: uuid.UUID = Field(foreign_key="task_submissions.id", nullable=False, index=True)
    photo_url: str = Field(nullable=False)
    photo_type: str = Field(nullable=False)  # before | after
    caption: Optional[str] = None
    # "metadata" is reserved on declarative classes
    photo_metadata: dict = Field(
        default_factory=dict,
        sa_column=sa.Column("metadata", JSONType, nullable=False),
    )
    uploaded_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
