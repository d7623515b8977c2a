"""Leave request and leave type API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from workforce_engine.api.dependencies import ActorId, DbSession, OrgId
from workforce_engine.api.schemas import (
    ErrorResponse,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveReviewRequest,
    LeaveTypeCreate,
    LeaveTypeResponse,
)
from workforce_engine.services.leave_service import LeaveService

router = APIRouter(tags=["leave"])


# ============================================================================
# Leave requests
# ============================================================================


@router.post(
    "/leave",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def submit_leave(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
    payload: LeaveRequestCreate,
) -> LeaveRequestResponse:
    """Submit a leave request for the acting employee."""
    request = await LeaveService(db).submit(
        org_id,
        employee_id,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    await db.commit()
    return LeaveRequestResponse.model_validate(request)


@router.get("/leave", response_model=list[LeaveRequestResponse])
async def my_leave(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
) -> list[LeaveRequestResponse]:
    """The acting employee's requests, newest first."""
    requests = await LeaveService(db).for_employee(org_id, employee_id)
    return [LeaveRequestResponse.model_validate(r) for r in requests]


@router.get("/leave/pending", response_model=list[LeaveRequestResponse])
async def pending_leave(
    db: DbSession,
    org_id: OrgId,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[LeaveRequestResponse]:
    """Reviewer queue, oldest first."""
    requests = await LeaveService(db).pending_for(org_id, limit=limit, offset=offset)
    return [LeaveRequestResponse.model_validate(r) for r in requests]


@router.get("/leave/all", response_model=list[LeaveRequestResponse])
async def all_leave(
    db: DbSession,
    org_id: OrgId,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[LeaveRequestResponse]:
    """Every request in the organization, newest first."""
    requests = await LeaveService(db).all_for_org(org_id, limit=limit)
    return [LeaveRequestResponse.model_validate(r) for r in requests]


@router.put(
    "/leave/{leave_request_id}/review",
    response_model=LeaveRequestResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def review_leave(
    db: DbSession,
    org_id: OrgId,
    reviewer_id: ActorId,
    leave_request_id: Annotated[UUID, Path()],
    payload: LeaveReviewRequest,
) -> LeaveRequestResponse:
    """Approve or reject a pending request."""
    request = await LeaveService(db).review(
        org_id, leave_request_id, payload.status, reviewer_id
    )
    await db.commit()
    return LeaveRequestResponse.model_validate(request)


# ============================================================================
# Leave types
# ============================================================================


@router.get("/leave-types", response_model=list[LeaveTypeResponse])
async def list_leave_types(db: DbSession, org_id: OrgId) -> list[LeaveTypeResponse]:
    """Custom leave types, or the built-in defaults when none exist."""
    types = await LeaveService(db).list_types(org_id)
    return [LeaveTypeResponse.model_validate(t) for t in types]


@router.post(
    "/leave-types",
    response_model=LeaveTypeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def add_leave_type(
    db: DbSession,
    org_id: OrgId,
    payload: LeaveTypeCreate,
) -> LeaveTypeResponse:
    """Add a custom leave type."""
    leave_type = await LeaveService(db).add_type(org_id, payload.name, payload.color)
    await db.commit()
    return LeaveTypeResponse.model_validate(leave_type)


@router.delete(
    "/leave-types/{leave_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_leave_type(
    db: DbSession,
    org_id: OrgId,
    leave_type_id: Annotated[UUID, Path()],
) -> Response:
    """Remove a custom leave type."""
    await LeaveService(db).delete_type(org_id, leave_type_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
