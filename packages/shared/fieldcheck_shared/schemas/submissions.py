"""Submission lifecycle schemas: check-in, evidence capture, check-out and review."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import UUID4

from .common import PhotoType, ReviewAction, SubmissionStatus


# ---------------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------------

class CheckInRequest(BaseModel):
    """Request body for POST /submissions."""
    task_id: UUID4
    check_in_latitude: float = Field(ge=-90, le=90)
    check_in_longitude: float = Field(ge=-180, le=180)
    check_in_accuracy: Optional[float] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Evidence capture & check-out
# ---------------------------------------------------------------------------

class ChecklistCompletion(BaseModel):
    checklist_item_id: UUID4
    completed: bool


class AnswerSubmission(BaseModel):
    question_id: UUID4
    answer: Any


class SubmissionUpdate(BaseModel):
    """Request body for PUT /submissions/{id}.

    Evidence writes, notes and the optional check-out are applied in one
    transaction.
    """
    worker_notes: Optional[str] = None
    checklist_items: Optional[List[ChecklistCompletion]] = None
    answers: Optional[List[AnswerSubmission]] = None
    check_out: bool = False
    check_out_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    check_out_longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @field_validator("worker_notes")
    @classmethod
    def _strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def _coordinates_come_in_pairs(self) -> "SubmissionUpdate":
        if (self.check_out_latitude is None) != (self.check_out_longitude is None):
            raise ValueError("check_out_latitude and check_out_longitude must be given together")
        return self


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------

class ReviewCreate(BaseModel):
    """Request body for POST /submissions/{id}/review."""
    action: ReviewAction
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def _strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    submission_id: UUID4
    reviewer_id: UUID4
    action: ReviewAction
    notes: Optional[str] = None
    reviewed_at: datetime


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    task_id: UUID4
    worker_id: UUID4
    revision: int
    status: SubmissionStatus
    check_in_time: datetime
    check_in_latitude: float
    check_in_longitude: float
    check_in_accuracy: Optional[float] = None
    check_out_time: Optional[datetime] = None
    check_out_latitude: Optional[float] = None
    check_out_longitude: Optional[float] = None
    worker_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PhotoRead(BaseModel):
    id: UUID4
    submission_id: UUID4
    photo_url: str
    photo_type: PhotoType
    caption: Optional[str] = None
    metadata: dict = Field(default_factory=dict)
    uploaded_at: datetime


class ChecklistCompletionRead(BaseModel):
    checklist_item_id: UUID4
    item: Optional[str] = None
    is_critical: bool = False
    completed: bool
    completed_at: Optional[datetime] = None


class AnswerRead(BaseModel):
    question_id: UUID4
    question_text: Optional[str] = None
    question_type: Optional[str] = None
    answer: Any = None
    answered_at: datetime


class SubmissionDetail(SubmissionRead):
    """Submission with all captured evidence and its review history (newest first)."""
    photos: List[PhotoRead] = Field(default_factory=list)
    checklist: List[ChecklistCompletionRead] = Field(default_factory=list)
    answers: List[AnswerRead] = Field(default_factory=list)
    reviews: List[ReviewRead] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime
