"""
Office HR API: application entry point.

This is the **only** file that assembles the app. Business logic lives
in `services/`; routing in `api/`; tables in `models/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from officehr.api.v1.api import api_router
from officehr.api.v1.endpoints.auth import limiter
from officehr.core.config import settings
from officehr.core.exceptions import register_exception_handlers
from officehr.core.security import get_password_hash
from officehr.db.session import Database

# Ensure all models are imported so metadata.create_all can see them
from officehr.models.attendance import Attendance  # noqa: F401
from officehr.models.audit_log import AuditLog  # noqa: F401
from officehr.models.holiday import Holiday  # noqa: F401
from officehr.models.leave import Leave  # noqa: F401
from officehr.models.notification import Notification  # noqa: F401
from officehr.models.user import ROLE_SUPER_ADMIN, User
from officehr.services.scheduler import AttendanceReconciler, build_scheduler

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_super_admin(database: Database) -> None:
    """Create the first super admin on an empty install."""
    async with database.session() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is not None:
            return
        session.add(
            User(
                name="System Administrator",
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                role=ROLE_SUPER_ADMIN,
            )
        )
        await session.commit()
        logger.info(
            "Default super admin created: %s (password: <redacted>)",
            settings.FIRST_ADMIN_EMAIL,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    await database.create_all()
    logger.info("Database tables initialised")
    await seed_super_admin(database)

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = build_scheduler(AttendanceReconciler(database))
        scheduler.start()
        logger.info("Scheduler started (%s)", settings.SCHEDULER_TIMEZONE)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
        await database.dispose()
        logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app(database: Database | None = None) -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Office HR: attendance, leave and notifications",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.database = database or Database.from_url(settings.DATABASE_URL)
    application.state.limiter = limiter

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
