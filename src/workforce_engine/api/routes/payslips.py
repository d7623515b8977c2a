"""Payslip API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from workforce_engine.api.dependencies import ActorId, DbSession, OrgId
from workforce_engine.api.schemas import (
    ErrorResponse,
    MyPayslipResponse,
    PayslipAdjust,
    PayslipResponse,
)
from workforce_engine.services.payslip_service import PayslipService

router = APIRouter(tags=["payslips"])


@router.get("/my-payslips", response_model=list[MyPayslipResponse])
async def my_payslips(
    db: DbSession,
    org_id: OrgId,
    employee_id: ActorId,
) -> list[MyPayslipResponse]:
    """The acting employee's payslips, newest period first."""
    rows = await PayslipService(db).for_employee(org_id, employee_id)
    return [
        MyPayslipResponse(
            **PayslipResponse.model_validate(payslip).model_dump(),
            period_name=period.name,
            period_start=period.start_date,
            period_end=period.end_date,
            period_status=period.status,
        )
        for payslip, period in rows
    ]


@router.put(
    "/payslips/{payslip_id}",
    response_model=PayslipResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def adjust_payslip(
    db: DbSession,
    org_id: OrgId,
    payslip_id: Annotated[UUID, Path()],
    payload: PayslipAdjust,
) -> PayslipResponse:
    """Set bonuses, deductions or notes on a payslip of an unfinalized period."""
    payslip = await PayslipService(db).adjust(
        org_id,
        payslip_id,
        bonuses=payload.bonuses,
        deductions=payload.deductions,
        notes=payload.notes,
    )
    await db.commit()
    return PayslipResponse.model_validate(payslip)
