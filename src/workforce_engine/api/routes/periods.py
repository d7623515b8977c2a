"""Payroll period API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Response, status

from workforce_engine.api.dependencies import DbSession, OptionalActorId, OrgId
from workforce_engine.api.schemas import (
    CurrencyTotalsResponse,
    ErrorResponse,
    GenerationResponse,
    PayslipResponse,
    PeriodCreate,
    PeriodResponse,
    PeriodUpdate,
)
from workforce_engine.services.payslip_service import PayslipService
from workforce_engine.services.period_service import PeriodService
from workforce_engine.services.state_machine import PeriodStatus

router = APIRouter(prefix="/periods", tags=["periods"])


# ============================================================================
# Period CRUD
# ============================================================================


@router.get("", response_model=list[PeriodResponse])
async def list_periods(db: DbSession, org_id: OrgId) -> list[PeriodResponse]:
    """Periods of the organization with payslip counts, newest first."""
    rows = await PeriodService(db).list_for_org(org_id)
    responses = []
    for period, payslip_count in rows:
        response = PeriodResponse.model_validate(period)
        response.payslip_count = payslip_count
        responses.append(response)
    return responses


@router.post(
    "",
    response_model=PeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_period(
    db: DbSession,
    org_id: OrgId,
    actor_id: OptionalActorId,
    payload: PeriodCreate,
) -> PeriodResponse:
    """Create an open payroll period."""
    period = await PeriodService(db).create(
        org_id,
        payload.name,
        payload.start_date,
        payload.end_date,
        created_by=actor_id,
    )
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.get(
    "/{period_id}",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
) -> PeriodResponse:
    """Get a specific period by ID."""
    period = await PeriodService(db).get(org_id, period_id)
    return PeriodResponse.model_validate(period)


@router.put(
    "/{period_id}",
    response_model=PeriodResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_period(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
    payload: PeriodUpdate,
) -> PeriodResponse:
    """Rename or re-date a period that is not finalized."""
    period = await PeriodService(db).update(
        org_id,
        period_id,
        name=payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.delete(
    "/{period_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_period(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
) -> Response:
    """Delete a period and its payslips."""
    await PeriodService(db).delete(org_id, period_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "/{period_id}/generate",
    response_model=GenerationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def generate_payslips(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
) -> GenerationResponse:
    """Compute payslips for every employee in scope (idempotent)."""
    summary = await PeriodService(db).generate(org_id, period_id)
    await db.commit()
    return GenerationResponse(
        period_id=summary.period_id,
        status=PeriodStatus.GENERATED.value,
        payslips_written=summary.payslips_written,
        skipped_employee_ids=summary.skipped_employee_ids,
        totals={
            currency: CurrencyTotalsResponse.model_validate(totals)
            for currency, totals in summary.totals.items()
        },
    )


@router.post(
    "/{period_id}/finalize",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def finalize_period(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
) -> PeriodResponse:
    """Freeze the period's payslips."""
    period = await PeriodService(db).finalize(org_id, period_id)
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.get(
    "/{period_id}/payslips",
    response_model=list[PayslipResponse],
    responses={404: {"model": ErrorResponse}},
)
async def period_payslips(
    db: DbSession,
    org_id: OrgId,
    period_id: Annotated[UUID, Path()],
) -> list[PayslipResponse]:
    """All payslips of a period, ordered by employee name."""
    await PeriodService(db).get(org_id, period_id)
    rows = await PayslipService(db).for_period(org_id, period_id)
    responses = []
    for payslip, employee in rows:
        response = PayslipResponse.model_validate(payslip)
        response.employee_name = employee.display_name
        responses.append(response)
    return responses
