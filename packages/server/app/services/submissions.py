"""
Read side of submissions: detail assembly and listing for API responses.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden
from app.models.submission import Submission
from app.models.submission_evidence import SubmissionPhoto
from app.models.user import User
from app.services.evidence import EvidenceStore
from app.services.repositories import SubmissionRepository
from app.services.review import ReviewGate
from fieldcheck_shared.schemas.common import REVIEWER_ROLES
from fieldcheck_shared.schemas.submissions import (
    AnswerRead,
    ChecklistCompletionRead,
    PhotoRead,
    ReviewRead,
    SubmissionDetail,
    SubmissionRead,
)


def to_photo_read(photo: SubmissionPhoto) -> PhotoRead:
    return PhotoRead(
        id=photo.id,
        submission_id=photo.submission_id,
        photo_url=photo.photo_url,
        photo_type=photo.photo_type,
        caption=photo.caption,
        metadata=photo.photo_metadata or {},
        uploaded_at=photo.uploaded_at,
    )


def is_reviewer(user: User) -> bool:
    return user.role in {r.value for r in REVIEWER_ROLES}


def ensure_can_view(submission: Submission, viewer: User) -> None:
    """Workers see their own submissions; reviewers see all."""
    if submission.worker_id != viewer.id and not is_reviewer(viewer):
        raise Forbidden("Not your submission", submission_id=str(submission.id))


async def get_submission_detail(
    session: AsyncSession, submission_id: uuid.UUID, viewer: User
) -> SubmissionDetail:
    submission = await SubmissionRepository(session).get(submission_id)
    ensure_can_view(submission, viewer)

    evidence = EvidenceStore(session)
    checklist = [
        ChecklistCompletionRead(
            checklist_item_id=done.checklist_item_id,
            item=item.item if item else None,
            is_critical=item.is_critical if item else False,
            completed=done.completed,
            completed_at=done.completed_at,
        )
        for done, item in await evidence.checklist_for(submission.id)
    ]
    answers = [
        AnswerRead(
            question_id=answer.question_id,
            question_text=question.question_text if question else None,
            question_type=question.question_type if question else None,
            answer=answer.answer,
            answered_at=answer.answered_at,
        )
        for answer, question in await evidence.answers_for(submission.id)
    ]
    photos = [to_photo_read(p) for p in await evidence.photos_for(submission.id)]
    reviews = [ReviewRead.model_validate(r) for r in await ReviewGate(session).history(submission.id)]

    return SubmissionDetail(
        **SubmissionRead.model_validate(submission).model_dump(),
        photos=photos,
        checklist=checklist,
        answers=answers,
        reviews=reviews,
    )


async def list_submissions(
    session: AsyncSession,
    viewer: User,
    *,
    task_id: Optional[uuid.UUID] = None,
    worker_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    offset: int = 0,
    limit: int = 25,
) -> Sequence[Submission]:
    # Field workers are always scoped to their own submissions
    if not is_reviewer(viewer):
        worker_id = viewer.id
    return await SubmissionRepository(session).list(
        worker_id=worker_id, task_id=task_id, status=status, offset=offset, limit=limit
    )
