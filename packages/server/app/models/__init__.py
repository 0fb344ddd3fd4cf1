# SQLModel definitions, imported here to ensure metadata is populated for create_all.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .task import Task, TaskChecklistItem, TaskQuestion  # noqa: F401
from .submission import Submission  # noqa: F401
from .submission_evidence import SubmissionAnswer, SubmissionChecklistItem, SubmissionPhoto  # noqa: F401
from .review import Review  # noqa: F401
from .notification import Notification  # noqa: F401
from .activity_log import ActivityLog  # noqa: F401
