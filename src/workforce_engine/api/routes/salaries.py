"""Salary configuration API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Response, status

from workforce_engine.api.dependencies import DbSession, OrgId
from workforce_engine.api.schemas import (
    EmployeeSummary,
    ErrorResponse,
    SalaryConfigResponse,
    SalaryConfigUpdate,
    SalaryConfigUpsert,
)
from workforce_engine.models import Employee, SalaryConfig
from workforce_engine.services.salary_service import SalaryService

router = APIRouter(prefix="/salaries", tags=["salaries"])


def _to_response(config: SalaryConfig, employee: Employee | None = None) -> SalaryConfigResponse:
    response = SalaryConfigResponse.model_validate(config)
    if employee is not None:
        response.employee_name = employee.display_name
    return response


@router.get("", response_model=list[SalaryConfigResponse])
async def list_salaries(db: DbSession, org_id: OrgId) -> list[SalaryConfigResponse]:
    """All salary configurations of the organization."""
    rows = await SalaryService(db).list_for_org(org_id)
    return [_to_response(config, employee) for config, employee in rows]


@router.get("/missing", response_model=list[EmployeeSummary])
async def employees_without_salary(db: DbSession, org_id: OrgId) -> list[EmployeeSummary]:
    """Active employees that payroll generation would skip."""
    employees = await SalaryService(db).employees_without_salary(org_id)
    return [EmployeeSummary.model_validate(e) for e in employees]


@router.post(
    "",
    response_model=SalaryConfigResponse,
    responses={400: {"model": ErrorResponse}},
)
async def set_salary(
    db: DbSession,
    org_id: OrgId,
    payload: SalaryConfigUpsert,
) -> SalaryConfigResponse:
    """Create or overwrite an employee's salary configuration."""
    config = await SalaryService(db).set(
        org_id,
        payload.employee_id,
        base_salary=payload.base_salary,
        hourly_rate=payload.hourly_rate,
        currency=payload.currency,
        effective_date=payload.effective_date,
    )
    await db.commit()
    return _to_response(config)


@router.put(
    "/{salary_config_id}",
    response_model=SalaryConfigResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_salary(
    db: DbSession,
    org_id: OrgId,
    salary_config_id: Annotated[UUID, Path()],
    payload: SalaryConfigUpdate,
) -> SalaryConfigResponse:
    """Partially update a salary configuration."""
    config = await SalaryService(db).update(
        org_id,
        salary_config_id,
        base_salary=payload.base_salary,
        hourly_rate=payload.hourly_rate,
        currency=payload.currency,
        effective_date=payload.effective_date,
    )
    await db.commit()
    return _to_response(config)


@router.delete(
    "/{salary_config_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_salary(
    db: DbSession,
    org_id: OrgId,
    salary_config_id: Annotated[UUID, Path()],
) -> Response:
    """Remove a salary configuration."""
    await SalaryService(db).delete(org_id, salary_config_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
