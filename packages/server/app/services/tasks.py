"""
Task service layer: task creation and enrichment for API responses.

Handles:
- Task creation with ordered checklist items and questions
- Assignment notification (persisted, then published after commit)
- Enrichment of task data with checklist, questions and latest submission
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transaction
from app.core.errors import ValidationError
from app.core.events import EventPublisher, publish_user_event
from app.models.activity_log import ActivityLog
from app.models.notification import Notification
from app.models.task import Task, TaskChecklistItem, TaskQuestion
from app.models.user import User
from app.services.repositories import SubmissionRepository, TaskRepository
from fieldcheck_shared.schemas.common import Role, TaskStatus
from fieldcheck_shared.schemas.submissions import SubmissionRead
from fieldcheck_shared.schemas.tasks import (
    ChecklistItemRead,
    QuestionRead,
    TaskCreate,
    TaskDetail,
    TaskRead,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


async def enrich_task(session: AsyncSession, task: Task) -> TaskDetail:
    """Convert a Task ORM object to a TaskDetail with all related data."""
    tasks = TaskRepository(session)
    checklist = await tasks.checklist(task.id)
    questions = await tasks.questions(task.id)
    latest = await SubmissionRepository(session).latest_for_task(task.id)

    return TaskDetail(
        **TaskRead.model_validate(task).model_dump(),
        checklist=[ChecklistItemRead.model_validate(c) for c in checklist],
        questions=[QuestionRead.model_validate(q) for q in questions],
        submission=SubmissionRead.model_validate(latest) if latest else None,
    )


def to_task_reads(tasks: Sequence[Task]) -> list[TaskRead]:
    return [TaskRead.model_validate(t) for t in tasks]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create_task(
    session: AsyncSession,
    task_in: TaskCreate,
    created_by: uuid.UUID,
    *,
    publisher: Optional[EventPublisher] = publish_user_event,
) -> Task:
    async with transaction(session):
        if task_in.assigned_to is not None:
            assignee = await session.get(User, task_in.assigned_to)
            if not assignee or assignee.status != "active":
                raise ValidationError(
                    "Assigned user does not exist or is inactive",
                    assigned_to=str(task_in.assigned_to),
                )
            if assignee.role != Role.FIELD_WORKER.value:
                raise ValidationError(
                    "Tasks can only be assigned to field workers",
                    assigned_to=str(task_in.assigned_to),
                )

        task = Task(
            **task_in.model_dump(exclude={"checklist", "questions", "priority"}),
            priority=task_in.priority.value,
            status=TaskStatus.ASSIGNED.value,
            created_by=created_by,
        )
        session.add(task)
        await session.flush()

        for position, item in enumerate(task_in.checklist):
            session.add(
                TaskChecklistItem(
                    task_id=task.id,
                    item=item.item,
                    is_critical=item.is_critical,
                    position=position,
                )
            )

        for position, q in enumerate(task_in.questions):
            session.add(
                TaskQuestion(
                    task_id=task.id,
                    question_text=q.question_text,
                    question_type=q.question_type,
                    options=q.options,
                    required=q.required,
                    help_text=q.help_text,
                    position=position,
                )
            )

        session.add(
            ActivityLog(
                user_id=created_by,
                action="task_created",
                entity_type="task",
                entity_id=task.id,
                details={
                    "title": task.title,
                    "assigned_to": str(task.assigned_to) if task.assigned_to else None,
                },
            )
        )
        if task.assigned_to is not None:
            session.add(
                Notification(
                    user_id=task.assigned_to,
                    type="task_assigned",
                    title="New Task Assigned",
                    message=f"You have been assigned: {task.title}",
                )
            )
        await session.flush()

    log.info("task.created", task_id=str(task.id), assigned_to=str(task.assigned_to))

    if task.assigned_to is not None and publisher is not None:
        try:
            await publisher(task.assigned_to, "task_assigned", {"task_id": str(task.id), "title": task.title})
        except Exception as exc:
            log.warning("notification.publish_failed", worker_id=str(task.assigned_to), error=str(exc))

    return task
