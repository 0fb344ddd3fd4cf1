"""
Submission endpoints: check-in, evidence capture, check-out, photos and review.

- POST /            Check in at the task site (geofenced)
- PUT /{id}         Record checklist/answers/notes, optionally check out
- POST /{id}/photos Upload a before/after photo
- POST /{id}/review Reviewer decision (approved | rejected | info_requested)
- GET /, GET /{id}  Listing and full detail with evidence and reviews
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_field_worker, require_reviewer, require_user
from app.core.config import get_settings
from app.core.database import get_session
from app.core.storage import PhotoStorage
from app.services.geo import GeoPoint
from app.services.lifecycle import SubmissionLifecycle
from app.services.review import ReviewGate
from app.services.submissions import get_submission_detail, list_submissions, to_photo_read
from fieldcheck_shared.schemas.common import PhotoType, SubmissionStatus
from fieldcheck_shared.schemas.submissions import (
    CheckInRequest,
    PhotoRead,
    ReviewCreate,
    ReviewRead,
    SubmissionDetail,
    SubmissionRead,
    SubmissionUpdate,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_lifecycle(session: AsyncSession = Depends(get_session)) -> SubmissionLifecycle:
    return SubmissionLifecycle(session, evidence_policy=get_settings().evidence_policy)


def get_review_gate(session: AsyncSession = Depends(get_session)) -> ReviewGate:
    return ReviewGate(session)


def get_photo_storage() -> PhotoStorage:
    return PhotoStorage()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("", response_model=SubmissionRead, status_code=201)
async def check_in_endpoint(
    body: CheckInRequest,
    auth: AuthenticatedUser = Depends(require_field_worker),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    """Check in to an assigned task from within its geofence."""
    return await lifecycle.check_in(
        body.task_id,
        auth.user_id,
        GeoPoint(body.check_in_latitude, body.check_in_longitude),
        accuracy=body.check_in_accuracy,
    )


@router.put("/{submission_id}", response_model=SubmissionRead)
async def update_submission_endpoint(
    submission_id: uuid.UUID,
    body: SubmissionUpdate,
    auth: AuthenticatedUser = Depends(require_field_worker),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
):
    """Record evidence and notes; ``check_out: true`` submits for review."""
    return await lifecycle.update(submission_id, auth.user_id, body)


@router.post("/{submission_id}/photos", response_model=PhotoRead, status_code=201)
async def upload_photo_endpoint(
    submission_id: uuid.UUID,
    photo: UploadFile = File(...),
    photo_type: PhotoType = Form(...),
    caption: Optional[str] = Form(None),
    auth: AuthenticatedUser = Depends(require_field_worker),
    lifecycle: SubmissionLifecycle = Depends(get_lifecycle),
    storage: PhotoStorage = Depends(get_photo_storage),
):
    """Upload a before/after photo to an in-progress submission."""
    data = await storage.read_upload(photo)
    stored = await storage.save(data, photo.filename, photo.content_type)
    try:
        record = await lifecycle.add_photo(
            submission_id,
            auth.user_id,
            photo_url=stored.url,
            photo_type=photo_type,
            caption=caption,
            metadata=stored.metadata,
        )
    except Exception:
        await storage.delete(stored.path)
        raise
    return to_photo_read(record)


@router.post("/{submission_id}/review", response_model=ReviewRead)
async def review_submission_endpoint(
    submission_id: uuid.UUID,
    body: ReviewCreate,
    auth: AuthenticatedUser = Depends(require_reviewer),
    gate: ReviewGate = Depends(get_review_gate),
):
    """Approve, reject or request more information on a checked-out submission."""
    return await gate.decide(submission_id, auth.user, body.action, body.notes)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("", response_model=List[SubmissionRead])
async def list_submissions_endpoint(
    task_id: Optional[uuid.UUID] = None,
    worker_id: Optional[uuid.UUID] = None,
    status: Optional[SubmissionStatus] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(25, ge=1, le=100),
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """List submissions; field workers only see their own."""
    return await list_submissions(
        session,
        auth.user,
        task_id=task_id,
        worker_id=worker_id,
        status=status.value if status else None,
        offset=(page - 1) * per_page,
        limit=per_page,
    )


@router.get("/{submission_id}", response_model=SubmissionDetail)
async def get_submission_endpoint(
    submission_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Submission with photos, checklist, answers and review history."""
    return await get_submission_detail(session, submission_id, auth.user)
