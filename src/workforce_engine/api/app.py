"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from workforce_engine.api.routes import (
    attendance_router,
    health_router,
    leave_router,
    payslips_router,
    periods_router,
    policy_router,
    salaries_router,
)
from workforce_engine.config import get_settings
from workforce_engine.database import dispose_db, init_db
from workforce_engine.errors import (
    AlreadyClockedIn,
    AlreadyReviewed,
    ConcurrentGenerationInProgress,
    DuplicateLeaveType,
    InvalidRange,
    NoOpenSession,
    NoPayslipsGenerated,
    NoSalaryConfigured,
    NotFoundError,
    PeriodFinalized,
    ValidationFailed,
    WorkforceEngineError,
)
from workforce_engine.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[WorkforceEngineError], int] = {
    AlreadyClockedIn: status.HTTP_409_CONFLICT,
    NoOpenSession: status.HTTP_409_CONFLICT,
    AlreadyReviewed: status.HTTP_409_CONFLICT,
    PeriodFinalized: status.HTTP_409_CONFLICT,
    NoPayslipsGenerated: status.HTTP_409_CONFLICT,
    ConcurrentGenerationInProgress: status.HTTP_409_CONFLICT,
    DuplicateLeaveType: status.HTTP_409_CONFLICT,
    InvalidRange: status.HTTP_400_BAD_REQUEST,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    NoSalaryConfigured: status.HTTP_404_NOT_FOUND,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def status_for(exc: WorkforceEngineError) -> int:
    """HTTP status for a domain error; unknown subclasses map to 400."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


def configure_logging(level: str) -> None:
    """Route application loggers to stderr at the configured level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    configure_logging(get_settings().log_level)
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Workforce Engine API",
        description="Attendance, leave and payroll for multi-tenant organizations",
        version=settings.engine_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(WorkforceEngineError)
    async def domain_exception_handler(
        request: Request, exc: WorkforceEngineError
    ) -> JSONResponse:
        """Translate domain errors to their HTTP status and stable code."""
        return JSONResponse(
            status_code=status_for(exc),
            content={
                "detail": exc.message,
                "code": exc.code,
                "context": {k: str(v) for k, v in exc.context.items()},
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        """Storage failures are reported as unavailable, never as domain errors."""
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "detail": "The database is unavailable",
                "code": "UNAVAILABLE",
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        attendance_router,
        leave_router,
        salaries_router,
        periods_router,
        payslips_router,
        policy_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
