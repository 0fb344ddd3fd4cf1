"""
Submission lifecycle: check-in → evidence capture → check-out.

Each public method is one unit of work on the injected session: every write
(submission, evidence, task status, activity log) commits together or not at
all. Review decisions live in ``app.services.review``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transaction
from app.core.errors import (
    ConflictError,
    Forbidden,
    GeofenceViolation,
    InvalidState,
    ValidationError,
)
from app.models.activity_log import ActivityLog
from app.models.base import utcnow
from app.models.submission import Submission
from app.models.submission_evidence import SubmissionPhoto
from app.models.task import Task
from app.services.evidence import EvidenceStore
from app.services.geo import GeoPoint, check_geofence
from app.services.repositories import SubmissionRepository, TaskRepository
from app.services.transitions import transition_submission, transition_task
from fieldcheck_shared.schemas.common import (
    EvidencePolicy,
    PhotoType,
    SubmissionStatus,
    TaskStatus,
)
from fieldcheck_shared.schemas.submissions import (
    AnswerSubmission,
    ChecklistCompletion,
    SubmissionUpdate,
)

log = structlog.get_logger()


class SubmissionLifecycle:
    def __init__(
        self,
        session: AsyncSession,
        *,
        evidence_policy: EvidencePolicy = EvidencePolicy.ADVISORY,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session = session
        self.tasks = TaskRepository(session)
        self.submissions = SubmissionRepository(session)
        self.evidence = EvidenceStore(session, clock=clock)
        self.evidence_policy = EvidencePolicy(evidence_policy)
        self.clock = clock

    # ------------------------------------------------------------------
    # Check-in
    # ------------------------------------------------------------------

    async def check_in(
        self,
        task_id: uuid.UUID,
        worker_id: uuid.UUID,
        point: GeoPoint,
        accuracy: Optional[float] = None,
    ) -> Submission:
        """Open a submission for (task, worker) at ``point``.

        The task row is locked for the duration of the check so two
        concurrent check-ins serialize; the partial unique index on active
        submissions catches anything that slips past.
        """
        async with transaction(self.session):
            task = await self.tasks.get_for_update(task_id)
            if task.assigned_to != worker_id:
                raise Forbidden("Task not assigned to you", task_id=str(task_id))

            fence = check_geofence(task, point)
            if not fence.inside:
                log.info(
                    "submission.geofence_rejected",
                    task_id=str(task_id),
                    worker_id=str(worker_id),
                    distance=round(fence.distance, 1),
                    allowed_radius=fence.allowed_radius,
                )
                raise GeofenceViolation(distance=fence.distance, allowed_radius=fence.allowed_radius)

            existing = await self.submissions.find_active(task.id, worker_id)
            if existing:
                raise ConflictError(
                    "Task already checked in",
                    submission_id=str(existing.id),
                    current_status=existing.status,
                )

            transition_task(task, TaskStatus.IN_PROGRESS)

            now = self.clock()
            submission = Submission(
                task_id=task.id,
                worker_id=worker_id,
                revision=await self.submissions.next_revision(task.id, worker_id),
                status=SubmissionStatus.IN_PROGRESS.value,
                check_in_time=now,
                created_at=now,
                updated_at=now,
                check_in_latitude=point.latitude,
                check_in_longitude=point.longitude,
                check_in_accuracy=accuracy,
            )
            self.session.add(submission)
            self.session.add(task)
            self.session.add(
                ActivityLog(
                    user_id=worker_id,
                    action="task_checked_in",
                    entity_type="submission",
                    entity_id=submission.id,
                    details={"task_id": str(task.id), "distance": round(fence.distance, 2)},
                )
            )
            try:
                await self.session.flush()
            except IntegrityError as exc:
                raise ConflictError("Task already checked in", task_id=str(task_id)) from exc

        log.info(
            "submission.checked_in",
            submission_id=str(submission.id),
            task_id=str(task.id),
            revision=submission.revision,
            distance=round(fence.distance, 1),
        )
        return submission

    # ------------------------------------------------------------------
    # Evidence capture
    # ------------------------------------------------------------------

    async def record_evidence(
        self,
        submission_id: uuid.UUID,
        worker_id: uuid.UUID,
        *,
        checklist_items: Sequence[ChecklistCompletion] = (),
        answers: Sequence[AnswerSubmission] = (),
    ) -> Submission:
        async with transaction(self.session):
            submission = await self._open_submission(submission_id, worker_id)
            await self._record(submission, checklist_items, answers)
        return submission

    async def add_photo(
        self,
        submission_id: uuid.UUID,
        worker_id: uuid.UUID,
        *,
        photo_url: str,
        photo_type: PhotoType,
        caption: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SubmissionPhoto:
        async with transaction(self.session):
            submission = await self._open_submission(submission_id, worker_id)
            photo = await self.evidence.add_photo(
                submission,
                photo_url=photo_url,
                photo_type=photo_type,
                caption=caption,
                metadata=metadata,
            )
            submission.updated_at = self.clock()
            self.session.add(submission)
        log.info("submission.photo_added", submission_id=str(submission_id), photo_type=photo.photo_type)
        return photo

    # ------------------------------------------------------------------
    # Check-out
    # ------------------------------------------------------------------

    async def check_out(
        self,
        submission_id: uuid.UUID,
        worker_id: uuid.UUID,
        *,
        notes: Optional[str] = None,
        point: Optional[GeoPoint] = None,
    ) -> Submission:
        async with transaction(self.session):
            submission = await self._open_submission(submission_id, worker_id)
            if notes is not None:
                submission.worker_notes = notes
            await self._check_out(submission, point)
        return submission

    async def update(
        self, submission_id: uuid.UUID, worker_id: uuid.UUID, changes: SubmissionUpdate
    ) -> Submission:
        """Apply notes, evidence and an optional check-out in one transaction."""
        async with transaction(self.session):
            submission = await self._open_submission(submission_id, worker_id)
            if changes.worker_notes is not None:
                submission.worker_notes = changes.worker_notes
            await self._record(submission, changes.checklist_items or (), changes.answers or ())
            if changes.check_out:
                point = None
                if changes.check_out_latitude is not None:
                    point = GeoPoint(changes.check_out_latitude, changes.check_out_longitude)
                await self._check_out(submission, point)
        return submission

    # ------------------------------------------------------------------
    # Internals (run inside the caller's transaction)
    # ------------------------------------------------------------------

    async def _open_submission(self, submission_id: uuid.UUID, worker_id: uuid.UUID) -> Submission:
        submission = await self.submissions.get_for_update(submission_id)
        if submission.worker_id != worker_id:
            raise Forbidden("Not your submission", submission_id=str(submission_id))
        if submission.status != SubmissionStatus.IN_PROGRESS:
            raise InvalidState(
                "Submission has already been checked out",
                submission_id=str(submission_id),
                current_status=submission.status,
            )
        return submission

    async def _record(
        self,
        submission: Submission,
        checklist_items: Sequence[ChecklistCompletion],
        answers: Sequence[AnswerSubmission],
    ) -> None:
        await self.evidence.upsert_checklist(submission, checklist_items)
        await self.evidence.upsert_answers(submission, answers)
        submission.updated_at = self.clock()
        self.session.add(submission)
        await self.session.flush()

    async def _check_out(self, submission: Submission, point: Optional[GeoPoint]) -> None:
        task = await self.tasks.get_for_update(submission.task_id)
        if self.evidence_policy == EvidencePolicy.STRICT:
            missing = await self._missing_evidence(submission, task)
            if missing:
                raise ValidationError("Submission is missing required evidence", missing=missing)

        transition_submission(submission, SubmissionStatus.PENDING)
        transition_task(task, TaskStatus.COMPLETED)

        now = self.clock()
        submission.check_out_time = now
        submission.submitted_at = now
        submission.updated_at = now
        if point is not None:
            submission.check_out_latitude = point.latitude
            submission.check_out_longitude = point.longitude

        self.session.add(submission)
        self.session.add(task)
        self.session.add(
            ActivityLog(
                user_id=submission.worker_id,
                action="task_submitted",
                entity_type="submission",
                entity_id=submission.id,
                details={"task_id": str(task.id)},
            )
        )
        await self.session.flush()
        log.info("submission.checked_out", submission_id=str(submission.id), task_id=str(task.id))

    async def _missing_evidence(self, submission: Submission, task: Task) -> dict[str, Any]:
        missing: dict[str, Any] = {}

        counts = await self.evidence.photo_counts(submission.id)
        for photo_type, required in (
            (PhotoType.BEFORE, task.before_photos_count),
            (PhotoType.AFTER, task.after_photos_count),
        ):
            short = required - counts[photo_type.value]
            if short > 0:
                missing[f"{photo_type.value}_photos"] = short

        done = {
            row.checklist_item_id
            for row, _ in await self.evidence.checklist_for(submission.id)
            if row.completed
        }
        critical = [
            str(item.id)
            for item in await self.tasks.checklist(task.id)
            if item.is_critical and item.id not in done
        ]
        if critical:
            missing["critical_checklist_items"] = critical

        answered = {
            answer.question_id
            for answer, _ in await self.evidence.answers_for(submission.id)
            if answer.answer not in (None, "", [])
        }
        unanswered = [
            str(q.id)
            for q in await self.tasks.questions(task.id)
            if q.required and q.id not in answered
        ]
        if unanswered:
            missing["required_questions"] = unanswered

        return missing
