"""Task model with its ordered checklist items and questions."""

from datetime import datetime
from typing import Any, List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("geofence_radius BETWEEN 10 AND 10000", name="ck_tasks_geofence_radius"),
    )

    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    location_address: str = Field(nullable=False)
    location_latitude: float = Field(nullable=False)
    location_longitude: float = Field(nullable=False)
    location_notes: Optional[str] = None
    geofence_radius: int = Field(nullable=False, default=100)  # meters
    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", index=True)
    due_date: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    priority: str = Field(nullable=False, default="medium")  # low | medium | high | urgent
    status: str = Field(nullable=False, default="assigned", index=True)  # assigned | in_progress | completed | approved | rejected
    before_photos_count: int = Field(nullable=False, default=2)
    before_photos_instructions: Optional[str] = None
    after_photos_count: int = Field(nullable=False, default=2)
    after_photos_instructions: Optional[str] = None
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")


class TaskChecklistItem(UUIDMixin, SQLModel, table=True):
    __tablename__ = "task_checklists"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True)
    item: str = Field(nullable=False)
    is_critical: bool = Field(nullable=False, default=False)
    position: int = Field(nullable=False, default=0)


class TaskQuestion(UUIDMixin, SQLModel, table=True):
    __tablename__ = "task_questions"

    task_id: uuid.UUID = Field(foreign_key="tasks.id", nullable=False, index=True)
    question_text: str = Field(nullable=False)
    question_type: str = Field(nullable=False, default="text")
    options: Optional[List[Any]] = Field(default=None, sa_type=JSONType)
    required: bool = Field(nullable=False, default=True)
    help_text: Optional[str] = None
    position: int = Field(nullable=False, default=0)
