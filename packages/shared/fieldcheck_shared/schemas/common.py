from enum import Enum
from typing import Optional
from pydantic import BaseModel

class TaskStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"

class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

class SubmissionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUESTED = "info_requested"

# Submissions still waiting on a review decision
ACTIVE_SUBMISSION_STATUSES: frozenset["SubmissionStatus"] = frozenset(
    {SubmissionStatus.IN_PROGRESS, SubmissionStatus.PENDING}
)

class ReviewAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUESTED = "info_requested"

class PhotoType(str, Enum):
    BEFORE = "before"
    AFTER = "after"

class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    TEAM_LEADER = "team_leader"
    FIELD_WORKER = "field_worker"

REVIEWER_ROLES: frozenset["Role"] = frozenset({Role.ADMIN, Role.MANAGER, Role.TEAM_LEADER})

class EvidencePolicy(str, Enum):
    ADVISORY = "advisory"
    STRICT = "strict"

class APIError(BaseModel):
    error: str
    code: str
    details: Optional[object] = None
