"""
Storage-facing collaborators for tasks and submissions.

Both wrap an injected ``AsyncSession``; transaction boundaries belong to the
caller. ``*_for_update`` reads take a row lock (``SELECT … FOR UPDATE``) on
backends that support it.
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFound
from app.models.submission import Submission
from app.models.task import Task, TaskChecklistItem, TaskQuestion
from fieldcheck_shared.schemas.common import ACTIVE_SUBMISSION_STATUSES


class TaskRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, task_id: uuid.UUID) -> Task:
        task = await self.session.get(Task, task_id)
        if not task:
            raise NotFound("Task not found", task_id=str(task_id))
        return task

    async def get_for_update(self, task_id: uuid.UUID) -> Task:
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        task = result.scalar_one_or_none()
        if not task:
            raise NotFound("Task not found", task_id=str(task_id))
        return task

    async def checklist(self, task_id: uuid.UUID) -> list[TaskChecklistItem]:
        result = await self.session.execute(
            select(TaskChecklistItem)
            .where(TaskChecklistItem.task_id == task_id)
            .order_by(TaskChecklistItem.position)
        )
        return list(result.scalars().all())

    async def questions(self, task_id: uuid.UUID) -> list[TaskQuestion]:
        result = await self.session.execute(
            select(TaskQuestion)
            .where(TaskQuestion.task_id == task_id)
            .order_by(TaskQuestion.position)
        )
        return list(result.scalars().all())

    async def list(
        self,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to: Optional[uuid.UUID] = None,
        offset: int = 0,
        limit: int = 25,
    ) -> Sequence[Task]:
        stmt = select(Task)
        if status:
            stmt = stmt.where(Task.status == status)
        if priority:
            stmt = stmt.where(Task.priority == priority)
        if assigned_to:
            stmt = stmt.where(Task.assigned_to == assigned_to)
        stmt = stmt.order_by(Task.due_date, Task.created_at).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()


class SubmissionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, submission_id: uuid.UUID) -> Submission:
        submission = await self.session.get(Submission, submission_id)
        if not submission:
            raise NotFound("Submission not found", submission_id=str(submission_id))
        return submission

    async def get_for_update(self, submission_id: uuid.UUID) -> Submission:
        result = await self.session.execute(
            select(Submission)
            .where(Submission.id == submission_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        submission = result.scalar_one_or_none()
        if not submission:
            raise NotFound("Submission not found", submission_id=str(submission_id))
        return submission

    async def find_active(self, task_id: uuid.UUID, worker_id: uuid.UUID) -> Optional[Submission]:
        """The submission for (task, worker) still awaiting a review decision, if any."""
        result = await self.session.execute(
            select(Submission).where(
                Submission.task_id == task_id,
                Submission.worker_id == worker_id,
                Submission.status.in_([s.value for s in ACTIVE_SUBMISSION_STATUSES]),
            )
        )
        return result.scalars().first()

    async def latest_revision(self, task_id: uuid.UUID, worker_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.max(Submission.revision)).where(
                Submission.task_id == task_id,
                Submission.worker_id == worker_id,
            )
        )
        return result.scalar() or 0

    async def next_revision(self, task_id: uuid.UUID, worker_id: uuid.UUID) -> int:
        return await self.latest_revision(task_id, worker_id) + 1

    async def latest_for_task(self, task_id: uuid.UUID) -> Optional[Submission]:
        result = await self.session.execute(
            select(Submission)
            .where(Submission.task_id == task_id)
            .order_by(Submission.created_at.desc(), Submission.revision.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list(
        self,
        *,
        worker_id: Optional[uuid.UUID] = None,
        task_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 25,
    ) -> Sequence[Submission]:
        stmt = select(Submission)
        if worker_id:
            stmt = stmt.where(Submission.worker_id == worker_id)
        if task_id:
            stmt = stmt.where(Submission.task_id == task_id)
        if status:
            stmt = stmt.where(Submission.status == status)
        stmt = stmt.order_by(Submission.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()
