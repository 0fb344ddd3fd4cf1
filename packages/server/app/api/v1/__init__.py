"""
API v1 Router
"""

from fastapi import APIRouter
from . import notifications, submissions, tasks

router = APIRouter()

router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(submissions.router, prefix="/submissions", tags=["Submissions"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/tasks",
            "/submissions",
            "/notifications",
            "/notifications/stream",
        ],
    }
