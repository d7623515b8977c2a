"""Payroll policy API endpoints."""

from fastapi import APIRouter

from workforce_engine.api.dependencies import DbSession, OrgId
from workforce_engine.api.schemas import ErrorResponse, PolicyResponse, PolicyUpdate
from workforce_engine.calculators.calendar import format_workweek
from workforce_engine.calculators.types import WorkPolicy
from workforce_engine.services.policy_service import PolicyService

router = APIRouter(prefix="/policy", tags=["policy"])


def _to_response(policy: WorkPolicy) -> PolicyResponse:
    return PolicyResponse(
        standard_daily_hours=policy.standard_daily_hours,
        workweek=format_workweek(policy.workdays),
        timezone=str(policy.tz),
        default_currency=policy.default_currency,
    )


@router.get("", response_model=PolicyResponse)
async def get_policy(db: DbSession, org_id: OrgId) -> PolicyResponse:
    """The organization's expected-hours policy."""
    return _to_response(await PolicyService(db).get_policy(org_id))


@router.put(
    "",
    response_model=PolicyResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_policy(
    db: DbSession,
    org_id: OrgId,
    payload: PolicyUpdate,
) -> PolicyResponse:
    """Change the organization's expected-hours policy."""
    service = PolicyService(db)
    await service.update_policy(
        org_id,
        standard_daily_hours=payload.standard_daily_hours,
        workweek=payload.workweek,
        timezone=payload.timezone,
        default_currency=payload.default_currency,
    )
    await db.commit()
    return _to_response(await service.get_policy(org_id))
