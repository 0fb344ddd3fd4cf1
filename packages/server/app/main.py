"""
Field Check API Server

Entry point for the FastAPI application.
"""

from pathlib import Path

import structlog
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1 import router as api_v1_router
from app.core.config import get_settings
from app.core.database import dispose_db, get_session, init_db
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.core.redis import close_redis, redis_is_ready

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Field Check",
        description="Geofenced check-in, evidence capture and review for field tasks.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    register_exception_handlers(app)

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    # Uploaded photos
    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=Path(settings.upload_dir), check_dir=False),
        name="uploads",
    )

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check(session: AsyncSession = Depends(get_session)):
        """Readiness check: database and Redis must both answer."""
        try:
            await session.execute(text("SELECT 1"))
            database = True
        except SQLAlchemyError as exc:
            log.warning("database.unavailable", error=str(exc))
            database = False
        redis = await redis_is_ready()

        checks = {"database": database, "redis": redis}
        if all(checks.values()):
            return {"status": "ready", "checks": checks}
        return JSONResponse(status_code=503, content={"status": "unavailable", "checks": checks})

    @app.on_event("startup")
    async def on_startup():
        log.info("Field Check starting", evidence_policy=settings.evidence_policy.value)
        if settings.create_schema_on_startup:
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Field Check shutting down")
        await close_redis()
        await dispose_db()

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, log_config=None)
