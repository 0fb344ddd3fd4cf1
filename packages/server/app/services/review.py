"""
Review gate: a reviewer's decision on a checked-out submission.

The Review row, the submission status, the task status, the worker's
notification and the activity log entry commit together. The real-time
event goes out only after that commit and its failure never undoes the
decision.

Re-reviewing an already decided submission is allowed; every decision is
appended and the effective status is that of the most recent review.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import transaction
from app.core.errors import Forbidden, InvalidState, ValidationError
from app.core.events import EventPublisher, publish_user_event
from app.models.activity_log import ActivityLog
from app.models.base import utcnow
from app.models.notification import Notification
from app.models.review import Review
from app.models.user import User
from app.services.repositories import SubmissionRepository, TaskRepository
from app.services.transitions import transition_submission, transition_task
from fieldcheck_shared.schemas.common import (
    REVIEWER_ROLES,
    ReviewAction,
    SubmissionStatus,
    TaskStatus,
)

log = structlog.get_logger()

NOTIFICATION_MESSAGES = {
    ReviewAction.APPROVED: "Your task submission has been approved",
    ReviewAction.REJECTED: "Your task submission was rejected. Please review and resubmit.",
    ReviewAction.INFO_REQUESTED: "Additional information requested for your task submission",
}

# info_requested leaves the task where it is
TASK_STATUS_FOR_ACTION = {
    ReviewAction.APPROVED: TaskStatus.APPROVED,
    ReviewAction.REJECTED: TaskStatus.REJECTED,
}


class ReviewGate:
    def __init__(
        self,
        session: AsyncSession,
        *,
        publisher: Optional[EventPublisher] = publish_user_event,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session = session
        self.tasks = TaskRepository(session)
        self.submissions = SubmissionRepository(session)
        self.publisher = publisher
        self.clock = clock

    async def decide(
        self,
        submission_id: uuid.UUID,
        reviewer: User,
        action: ReviewAction | str,
        notes: Optional[str] = None,
    ) -> Review:
        try:
            action = ReviewAction(action)
        except ValueError:
            raise ValidationError(
                "Invalid review action",
                action=str(action),
                allowed=[a.value for a in ReviewAction],
            ) from None

        if reviewer.role not in {r.value for r in REVIEWER_ROLES}:
            raise Forbidden("Reviewer access required", role=reviewer.role)

        async with transaction(self.session):
            submission = await self.submissions.get_for_update(submission_id)
            if submission.status == SubmissionStatus.IN_PROGRESS or submission.submitted_at is None:
                raise InvalidState(
                    "Cannot review a submission that has not been checked out",
                    submission_id=str(submission_id),
                    current_status=submission.status,
                )

            latest = await self.submissions.latest_revision(submission.task_id, submission.worker_id)
            if submission.revision < latest:
                raise InvalidState(
                    "Submission has been superseded by a newer revision",
                    submission_id=str(submission_id),
                    current_status=submission.status,
                    latest_revision=latest,
                )

            task = await self.tasks.get_for_update(submission.task_id)

            transition_submission(submission, SubmissionStatus(action.value))
            task_status = TASK_STATUS_FOR_ACTION.get(action)
            if task_status is not None:
                transition_task(task, task_status)

            now = self.clock()
            submission.updated_at = now
            review = Review(
                submission_id=submission.id,
                reviewer_id=reviewer.id,
                action=action.value,
                notes=notes or None,
                reviewed_at=now,
            )
            self.session.add_all([review, submission, task])
            self.session.add(
                Notification(
                    user_id=submission.worker_id,
                    type=f"submission_{action.value}",
                    title="Submission Review",
                    message=NOTIFICATION_MESSAGES[action],
                    created_at=now,
                )
            )
            self.session.add(
                ActivityLog(
                    user_id=reviewer.id,
                    action=f"submission_{action.value}",
                    entity_type="submission",
                    entity_id=submission.id,
                    details={"notes": notes, "task_id": str(task.id)},
                )
            )
            await self.session.flush()

        log.info(
            "submission.reviewed",
            submission_id=str(submission.id),
            reviewer_id=str(reviewer.id),
            action=action.value,
            task_status=task.status,
        )

        await self._notify(
            submission.worker_id,
            {"submission_id": str(submission.id), "task_id": str(task.id), "action": action.value},
        )
        return review

    async def history(self, submission_id: uuid.UUID) -> list[Review]:
        """All reviews of a submission, newest first."""
        result = await self.session.execute(
            select(Review)
            .where(Review.submission_id == submission_id)
            .order_by(Review.reviewed_at.desc())
        )
        return list(result.scalars().all())

    async def _notify(self, worker_id: uuid.UUID, payload: dict) -> None:
        if self.publisher is None:
            return
        try:
            await self.publisher(worker_id, "submission_reviewed", payload)
        except Exception as exc:  # delivery is best-effort once the decision is committed
            log.warning(
                "notification.publish_failed",
                worker_id=str(worker_id),
                submission_id=payload.get("submission_id"),
                error=str(exc),
            )
