"""
Status transition tables for tasks and submissions.

Every status write in the lifecycle goes through ``transition_task`` /
``transition_submission`` so that Task.status and Submission.status can
only move along these edges. Writing a task's current status again is a
no-op.
"""

from __future__ import annotations

from app.core.errors import InvalidState
from app.models.submission import Submission
from app.models.task import Task
from fieldcheck_shared.schemas.common import SubmissionStatus, TaskStatus

_REVIEWED = [SubmissionStatus.APPROVED, SubmissionStatus.REJECTED, SubmissionStatus.INFO_REQUESTED]

SUBMISSION_TRANSITIONS: dict[SubmissionStatus, list[SubmissionStatus]] = {
    SubmissionStatus.IN_PROGRESS: [SubmissionStatus.PENDING],
    SubmissionStatus.PENDING: _REVIEWED,
    # Re-review is recorded, not blocked
    SubmissionStatus.APPROVED: _REVIEWED,
    SubmissionStatus.REJECTED: _REVIEWED,
    SubmissionStatus.INFO_REQUESTED: _REVIEWED,
}

TASK_TRANSITIONS: dict[TaskStatus, list[TaskStatus]] = {
    TaskStatus.ASSIGNED: [TaskStatus.IN_PROGRESS],
    TaskStatus.IN_PROGRESS: [TaskStatus.COMPLETED],
    # in_progress again when the worker re-submits after info_requested
    TaskStatus.COMPLETED: [TaskStatus.APPROVED, TaskStatus.REJECTED, TaskStatus.IN_PROGRESS],
    TaskStatus.APPROVED: [TaskStatus.REJECTED],
    TaskStatus.REJECTED: [TaskStatus.APPROVED, TaskStatus.IN_PROGRESS],
}


def transition_submission(submission: Submission, to_status: SubmissionStatus) -> None:
    current = SubmissionStatus(submission.status)
    allowed = SUBMISSION_TRANSITIONS.get(current, [])
    if to_status not in allowed:
        raise InvalidState(
            f"Submission cannot move from '{current.value}' to '{to_status.value}'",
            current_status=current.value,
            allowed=[s.value for s in allowed],
        )
    submission.status = to_status.value


def transition_task(task: Task, to_status: TaskStatus) -> None:
    current = TaskStatus(task.status)
    if to_status == current:
        return
    allowed = TASK_TRANSITIONS.get(current, [])
    if to_status not in allowed:
        raise InvalidState(
            f"Task cannot move from '{current.value}' to '{to_status.value}'",
            current_status=current.value,
            allowed=[s.value for s in allowed],
        )
    task.status = to_status.value
