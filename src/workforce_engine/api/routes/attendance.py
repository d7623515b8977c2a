"""Attendance API endpoints."""

from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from workforce_engine.api.dependencies import ActorId, DbSession, OrgId
from workforce_engine.api.schemas import (
    AttendanceSessionResponse,
    ClockRequest,
    ClockStatusResponse,
    ErrorResponse,
    TeamAttendanceResponse,
)
from workforce_engine.services.attendance_service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post(
    "/clock-in",
    response_model=AttendanceSessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def clock_in(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
    payload: ClockRequest | None = None,
) -> AttendanceSessionResponse:
    """Open an attendance session for the acting employee."""
    record = await AttendanceService(db).clock_in(
        org_id, employee_id, notes=payload.notes if payload else None
    )
    await db.commit()
    return AttendanceSessionResponse.model_validate(record)


@router.post(
    "/clock-out",
    response_model=AttendanceSessionResponse,
    responses={409: {"model": ErrorResponse}},
)
async def clock_out(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
    payload: ClockRequest | None = None,
) -> AttendanceSessionResponse:
    """Close the acting employee's open session."""
    record = await AttendanceService(db).clock_out(
        org_id, employee_id, notes=payload.notes if payload else None
    )
    await db.commit()
    return AttendanceSessionResponse.model_validate(record)


@router.get("/status", response_model=ClockStatusResponse)
async def clock_status(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
) -> ClockStatusResponse:
    """Whether the acting employee is clocked in."""
    current = await AttendanceService(db).status(org_id, employee_id)
    return ClockStatusResponse(
        clocked_in=current.clocked_in,
        clock_in=current.clock_in,
        session=(
            AttendanceSessionResponse.model_validate(current.session)
            if current.session is not None
            else None
        ),
    )


@router.get("/sessions", response_model=list[AttendanceSessionResponse])
async def my_sessions(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[AttendanceSessionResponse]:
    """The acting employee's sessions, newest first."""
    service = AttendanceService(db)
    if start is not None and end is not None:
        records = await service.sessions_in_range(org_id, employee_id, start, end)
        records = list(reversed(records))[:limit]
    else:
        records = await service.history(org_id, employee_id, start, end, limit=limit)
    return [AttendanceSessionResponse.model_validate(r) for r in records]


@router.get("/team", response_model=list[TeamAttendanceResponse])
async def team_attendance(
    db: DbSession,
    org_id: OrgId,
    day: date | None = None,
    department_id: UUID | None = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> list[TeamAttendanceResponse]:
    """Everyone's sessions for one day (today by default)."""
    rows = await AttendanceService(db).team_day(
        org_id, day or date.today(), department_id=department_id, search=search
    )
    return [
        TeamAttendanceResponse(
            session_id=record.session_id,
            employee_id=record.employee_id,
            clock_in=record.clock_in,
            clock_out=record.clock_out,
            notes=record.notes,
            display_name=employee.display_name,
            email=employee.email,
            department_id=employee.department_id,
        )
        for record, employee in rows
    ]
