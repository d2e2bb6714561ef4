"""
Gym staff attendance — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `rules/` package; `api/`, `models/` and `db/` carry it to
HTTP and the database.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gym_attendance.api.v1.api import api_router
from gym_attendance.core.config import settings
from gym_attendance.core.exceptions import register_exception_handlers
from gym_attendance.db.base import Base
from gym_attendance.db.session import engine

# Ensure all models are imported so metadata.create_all can see them
from gym_attendance.models.attendance import AttendanceRecord  # noqa: F401
from gym_attendance.models.attendance_settings import AttendanceSettingsRecord  # noqa: F401
from gym_attendance.models.leave_balance import LeaveBalanceRecord  # noqa: F401
from gym_attendance.models.staff import StaffMember  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    logger.info(
        "%s v%s started (studio time %s)",
        settings.PROJECT_NAME,
        settings.VERSION,
        settings.TIMEZONE_OFFSET,
    )
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Staff attendance for gyms and fitness studios",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

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
