"""
Unit tests for request schemas and the status transition tables.

Tests cover:
- Request body validation (coordinates, radius, photo counts, actions)
- Submission and task transition tables
- Error payload shape
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import GeofenceViolation, InvalidState
from app.services.transitions import (
    SUBMISSION_TRANSITIONS,
    TASK_TRANSITIONS,
    transition_submission,
    transition_task,
)
from fieldcheck_shared.schemas.common import (
    ACTIVE_SUBMISSION_STATUSES,
    REVIEWER_ROLES,
    Role,
    SubmissionStatus,
    TaskStatus,
)
from fieldcheck_shared.schemas.submissions import CheckInRequest, ReviewCreate, SubmissionUpdate
from fieldcheck_shared.schemas.tasks import TaskCreate


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TestCheckInRequest:
    def test_valid(self):
        body = CheckInRequest(task_id=uuid.uuid4(), check_in_latitude=13.7, check_in_longitude=100.5)
        assert body.check_in_accuracy is None

    @pytest.mark.parametrize("lat, lng", [(90.1, 0), (-90.1, 0), (0, 180.1), (0, -180.1)])
    def test_out_of_range(self, lat, lng):
        with pytest.raises(PydanticValidationError):
            CheckInRequest(task_id=uuid.uuid4(), check_in_latitude=lat, check_in_longitude=lng)

    def test_negative_accuracy(self):
        with pytest.raises(PydanticValidationError):
            CheckInRequest(
                task_id=uuid.uuid4(), check_in_latitude=0, check_in_longitude=0, check_in_accuracy=-1
            )


class TestTaskCreate:
    def _body(self, **overrides):
        body = dict(
            title="Pole inspection",
            description="Check base",
            location_address="Rama IV",
            location_latitude=13.72,
            location_longitude=100.53,
            due_date="2026-03-10T09:00:00Z",
        )
        body.update(overrides)
        return body

    def test_defaults(self):
        task = TaskCreate(**self._body())
        assert task.geofence_radius == 100
        assert task.before_photos_count == 2
        assert task.after_photos_count == 2
        assert task.checklist == []

    @pytest.mark.parametrize("radius", [9, 10001])
    def test_radius_bounds(self, radius):
        with pytest.raises(PydanticValidationError):
            TaskCreate(**self._body(geofence_radius=radius))

    def test_photo_count_bounds(self):
        with pytest.raises(PydanticValidationError):
            TaskCreate(**self._body(after_photos_count=11))


class TestReviewCreate:
    def test_unknown_action_rejected(self):
        with pytest.raises(PydanticValidationError):
            ReviewCreate(action="escalated")

    def test_notes_stripped(self):
        assert ReviewCreate(action="approved", notes="  fine  ").notes == "fine"


class TestSubmissionUpdate:
    def test_defaults_do_nothing(self):
        update = SubmissionUpdate()
        assert update.check_out is False
        assert update.checklist_items is None


# ---------------------------------------------------------------------------
# Transition tables
# ---------------------------------------------------------------------------


class TestSubmissionTransitions:
    def test_in_progress_only_moves_to_pending(self):
        assert SUBMISSION_TRANSITIONS[SubmissionStatus.IN_PROGRESS] == [SubmissionStatus.PENDING]

    def test_pending_cannot_go_back(self):
        submission = SimpleNamespace(status="pending")
        with pytest.raises(InvalidState) as exc_info:
            transition_submission(submission, SubmissionStatus.IN_PROGRESS)
        assert exc_info.value.extra["current_status"] == "pending"
        assert submission.status == "pending"

    def test_in_progress_cannot_be_reviewed(self):
        with pytest.raises(InvalidState):
            transition_submission(SimpleNamespace(status="in_progress"), SubmissionStatus.APPROVED)

    def test_reviewed_states_allow_re_review(self):
        submission = SimpleNamespace(status="info_requested")
        transition_submission(submission, SubmissionStatus.APPROVED)
        assert submission.status == "approved"

    def test_every_status_has_an_entry(self):
        assert set(SUBMISSION_TRANSITIONS) == set(SubmissionStatus)


class TestTaskTransitions:
    def test_same_status_is_noop(self):
        task = SimpleNamespace(status="completed")
        transition_task(task, TaskStatus.COMPLETED)
        assert task.status == "completed"

    def test_assigned_cannot_complete(self):
        with pytest.raises(InvalidState):
            transition_task(SimpleNamespace(status="assigned"), TaskStatus.COMPLETED)

    def test_approved_cannot_restart(self):
        with pytest.raises(InvalidState):
            transition_task(SimpleNamespace(status="approved"), TaskStatus.IN_PROGRESS)

    def test_every_status_has_an_entry(self):
        assert set(TASK_TRANSITIONS) == set(TaskStatus)


# ---------------------------------------------------------------------------
# Shared constants & error payloads
# ---------------------------------------------------------------------------


def test_active_statuses():
    assert ACTIVE_SUBMISSION_STATUSES == {SubmissionStatus.IN_PROGRESS, SubmissionStatus.PENDING}


def test_reviewer_roles_exclude_field_workers():
    assert Role.FIELD_WORKER not in REVIEWER_ROLES
    assert {Role.ADMIN, Role.MANAGER, Role.TEAM_LEADER} == REVIEWER_ROLES


def test_geofence_error_payload():
    err = GeofenceViolation(distance=1154.2, allowed_radius=100.0)
    assert err.status_code == 400
    assert err.to_dict() == {
        "error": "Check-in location outside geofence",
        "code": "GEOFENCE_VIOLATION",
        "distance": 1154.2,
        "allowed_radius": 100.0,
    }
