"""Task-related Pydantic schemas for shared use across server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import UUID4

from .common import TaskPriority, TaskStatus
from .submissions import SubmissionRead


# ---------------------------------------------------------------------------
# Checklist & questions
# ---------------------------------------------------------------------------

class ChecklistItemCreate(BaseModel):
    item: str = Field(min_length=1)
    is_critical: bool = False


class QuestionCreate(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: str = "text"  # text | number | yes_no | single_choice | multi_choice
    options: Optional[List[Any]] = None
    required: bool = True
    help_text: Optional[str] = None


class ChecklistItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    item: str
    is_critical: bool
    position: int


class QuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    question_text: str
    question_type: str
    options: Optional[List[Any]] = None
    required: bool
    help_text: Optional[str] = None
    position: int


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    location_address: str = Field(min_length=1)
    location_latitude: float = Field(ge=-90, le=90)
    location_longitude: float = Field(ge=-180, le=180)
    location_notes: Optional[str] = None
    geofence_radius: int = Field(default=100, ge=10, le=10000)
    assigned_to: Optional[UUID4] = None
    due_date: datetime
    priority: TaskPriority = TaskPriority.MEDIUM
    before_photos_count: int = Field(default=2, ge=0, le=10)
    before_photos_instructions: Optional[str] = None
    after_photos_count: int = Field(default=2, ge=0, le=10)
    after_photos_instructions: Optional[str] = None
    checklist: List[ChecklistItemCreate] = Field(default_factory=list)
    questions: List[QuestionCreate] = Field(default_factory=list)


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assigned_to: Optional[UUID4] = None
    location_address: str
    location_latitude: float
    location_longitude: float
    location_notes: Optional[str] = None
    geofence_radius: int
    due_date: datetime
    before_photos_count: int
    before_photos_instructions: Optional[str] = None
    after_photos_count: int
    after_photos_instructions: Optional[str] = None
    created_by: Optional[UUID4] = None
    created_at: datetime
    updated_at: datetime


class TaskDetail(TaskRead):
    """Task with its checklist, questions and most recent submission."""
    checklist: List[ChecklistItemRead] = Field(default_factory=list)
    questions: List[QuestionRead] = Field(default_factory=list)
    submission: Optional[SubmissionRead] = None
