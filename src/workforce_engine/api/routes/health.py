"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from workforce_engine.api.dependencies import DbSession
from workforce_engine.models import AttendanceSession, PayrollPeriod, Payslip, SalaryConfig

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Tables every request path depends on; missing ones mean init-db has not run
REQUIRED_TABLES = (AttendanceSession, SalaryConfig, PayrollPeriod, Payslip)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str


class ReadinessResponse(BaseModel):
    status: str
    missing_tables: list[str] = []


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession) -> HealthResponse:
    """Check API and database connectivity."""
    db_status = "unhealthy"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the database: %s", e)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(db: DbSession):
    """Ready once the schema is in place and queryable."""
    missing = []
    for model in REQUIRED_TABLES:
        try:
            await db.execute(select(model).limit(1))
        except SQLAlchemyError:
            await db.rollback()
            missing.append(model.__tablename__)

    if missing:
        logger.warning("Not ready, missing tables: %s", ", ".join(missing))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "missing_tables": missing},
        )
    return ReadinessResponse(status="ready")


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
