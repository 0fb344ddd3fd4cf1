"""
Evidence store: checklist completions, question answers and photo records.

Checklist completions and answers are upserted on their natural key
(submission × checklist item, submission × question) so a retried write from
a mobile client overwrites instead of duplicating; the later write's
timestamp wins. Photos are append-only.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ValidationError
from app.models.base import utcnow
from app.models.submission import Submission
from app.models.submission_evidence import (
    SubmissionAnswer,
    SubmissionChecklistItem,
    SubmissionPhoto,
)
from app.models.task import TaskChecklistItem, TaskQuestion
from fieldcheck_shared.schemas.common import PhotoType
from fieldcheck_shared.schemas.submissions import AnswerSubmission, ChecklistCompletion

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class EvidenceStore:
    def __init__(self, session: AsyncSession, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.session = session
        self.clock = clock

    def _insert(self, model: type):
        dialect = self.session.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect](model)
        except KeyError:
            raise RuntimeError(f"Evidence upsert not supported on {dialect!r}") from None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_checklist(
        self, submission: Submission, completions: Sequence[ChecklistCompletion]
    ) -> None:
        if not completions:
            return
        known = {
            row[0]
            for row in (
                await self.session.execute(
                    select(TaskChecklistItem.id).where(TaskChecklistItem.task_id == submission.task_id)
                )
            ).all()
        }
        for c in completions:
            if c.checklist_item_id not in known:
                raise ValidationError(
                    "Checklist item does not belong to this task",
                    checklist_item_id=str(c.checklist_item_id),
                )

        for c in completions:
            stmt = self._insert(SubmissionChecklistItem).values(
                id=uuid.uuid4(),
                submission_id=submission.id,
                checklist_item_id=c.checklist_item_id,
                completed=c.completed,
                completed_at=self.clock() if c.completed else None,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["submission_id", "checklist_item_id"],
                set_={
                    "completed": stmt.excluded.completed,
                    "completed_at": stmt.excluded.completed_at,
                },
            )
            await self.session.execute(stmt)

    async def upsert_answers(
        self, submission: Submission, answers: Sequence[AnswerSubmission]
    ) -> None:
        if not answers:
            return
        known = {
            row[0]
            for row in (
                await self.session.execute(
                    select(TaskQuestion.id).where(TaskQuestion.task_id == submission.task_id)
                )
            ).all()
        }
        for a in answers:
            if a.question_id not in known:
                raise ValidationError(
                    "Question does not belong to this task",
                    question_id=str(a.question_id),
                )

        for a in answers:
            stmt = self._insert(SubmissionAnswer).values(
                id=uuid.uuid4(),
                submission_id=submission.id,
                question_id=a.question_id,
                answer=a.answer,
                answered_at=self.clock(),
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["submission_id", "question_id"],
                set_={
                    "answer": stmt.excluded.answer,
                    "answered_at": stmt.excluded.answered_at,
                },
            )
            await self.session.execute(stmt)

    async def add_photo(
        self,
        submission: Submission,
        *,
        photo_url: str,
        photo_type: PhotoType,
        caption: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SubmissionPhoto:
        photo = SubmissionPhoto(
            submission_id=submission.id,
            photo_url=photo_url,
            photo_type=PhotoType(photo_type).value,
            caption=caption or None,
            photo_metadata=metadata or {},
            uploaded_at=self.clock(),
        )
        self.session.add(photo)
        await self.session.flush()
        return photo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def checklist_for(
        self, submission_id: uuid.UUID
    ) -> list[tuple[SubmissionChecklistItem, Optional[TaskChecklistItem]]]:
        result = await self.session.execute(
            select(SubmissionChecklistItem, TaskChecklistItem)
            .join(
                TaskChecklistItem,
                TaskChecklistItem.id == SubmissionChecklistItem.checklist_item_id,
                isouter=True,
            )
            .where(SubmissionChecklistItem.submission_id == submission_id)
            .order_by(TaskChecklistItem.position)
            .execution_options(populate_existing=True)
        )
        return [(done, item) for done, item in result.all()]

    async def answers_for(
        self, submission_id: uuid.UUID
    ) -> list[tuple[SubmissionAnswer, Optional[TaskQuestion]]]:
        result = await self.session.execute(
            select(SubmissionAnswer, TaskQuestion)
            .join(TaskQuestion, TaskQuestion.id == SubmissionAnswer.question_id, isouter=True)
            .where(SubmissionAnswer.submission_id == submission_id)
            .order_by(TaskQuestion.position)
            .execution_options(populate_existing=True)
        )
        return [(answer, question) for answer, question in result.all()]

    async def photos_for(self, submission_id: uuid.UUID) -> list[SubmissionPhoto]:
        result = await self.session.execute(
            select(SubmissionPhoto)
            .where(SubmissionPhoto.submission_id == submission_id)
            .order_by(SubmissionPhoto.photo_type, SubmissionPhoto.uploaded_at)
        )
        return list(result.scalars().all())

    async def photo_counts(self, submission_id: uuid.UUID) -> Counter:
        photos = await self.photos_for(submission_id)
        return Counter(p.photo_type for p in photos)
