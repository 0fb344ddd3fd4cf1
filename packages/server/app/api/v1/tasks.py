"""
Task endpoints: create, list, detail.

Task status is driven by the submission lifecycle; there is no direct
status update endpoint.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_reviewer, require_user
from app.core.database import get_session
from app.core.errors import Forbidden
from app.services.repositories import TaskRepository
from app.services.tasks import create_task, enrich_task, to_task_reads
from fieldcheck_shared.schemas.common import TaskPriority, TaskStatus
from fieldcheck_shared.schemas.tasks import TaskCreate, TaskDetail, TaskRead

router = APIRouter()


@router.get("", response_model=List[TaskRead])
async def list_tasks_endpoint(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assigned_to: Optional[uuid.UUID] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """List tasks by status, priority and assignee; field workers only see their own."""
    if not auth.is_reviewer:
        assigned_to = auth.user_id
    tasks = await TaskRepository(session).list(
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    return to_task_reads(tasks)


@router.post("", response_model=TaskDetail, status_code=201)
async def create_task_endpoint(
    task_in: TaskCreate,
    auth: AuthenticatedUser = Depends(require_reviewer),
    session: AsyncSession = Depends(get_session),
):
    """Create a task with its checklist and questions."""
    task = await create_task(session, task_in, auth.user_id)
    return await enrich_task(session, task)


@router.get("/{task_id}", response_model=TaskDetail)
async def get_task_endpoint(
    task_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Get a single task with checklist, questions and latest submission."""
    task = await TaskRepository(session).get(task_id)
    if not auth.is_reviewer and task.assigned_to != auth.user_id:
        raise Forbidden("Task not assigned to you", task_id=str(task_id))
    return await enrich_task(session, task)
