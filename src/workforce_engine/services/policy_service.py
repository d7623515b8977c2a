"""Organization payroll policy (expected-hours baseline)."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID
from zoneinfo import ZoneInfoNotFoundError

from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.calendar import (
    DEFAULT_WORKWEEK,
    format_workweek,
    parse_workweek,
    resolve_timezone,
)
from workforce_engine.calculators.types import WorkPolicy
from workforce_engine.config import get_settings
from workforce_engine.errors import NotFoundError, ValidationFailed
from workforce_engine.models import Organization

logger = logging.getLogger(__name__)


class PolicyService:
    """Read and update the per-organization payroll policy."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings = get_settings()

    async def get_policy(self, org_id: UUID) -> WorkPolicy:
        """Policy for an organization, falling back to settings defaults."""
        org = await self.session.get(Organization, org_id)
        if org is None:
            return WorkPolicy(
                standard_daily_hours=self.settings.default_daily_hours,
                workdays=parse_workweek(DEFAULT_WORKWEEK),
                tz=resolve_timezone(self.settings.default_timezone),
                default_currency=self.settings.default_currency,
            )
        return WorkPolicy(
            standard_daily_hours=Decimal(org.standard_daily_hours),
            workdays=parse_workweek(org.workweek),
            tz=resolve_timezone(org.timezone),
            default_currency=org.default_currency,
        )

    async def update_policy(
        self,
        org_id: UUID,
        standard_daily_hours: Decimal | None = None,
        workweek: str | None = None,
        timezone: str | None = None,
        default_currency: str | None = None,
    ) -> Organization:
        """Update the given policy fields, leaving the others untouched."""
        org = await self.session.get(Organization, org_id)
        if org is None:
            raise NotFoundError("Organization", org_id)

        if standard_daily_hours is not None:
            if not Decimal("0") <= standard_daily_hours <= Decimal("24"):
                raise ValidationFailed("standard_daily_hours must be between 0 and 24")
            org.standard_daily_hours = standard_daily_hours
        if workweek is not None:
            try:
                days = parse_workweek(workweek)
            except ValueError as e:
                raise ValidationFailed(str(e)) from e
            org.workweek = format_workweek(days)
        if timezone is not None:
            try:
                resolve_timezone(timezone)
            except (ValueError, ZoneInfoNotFoundError) as e:
                raise ValidationFailed(f"Unknown time zone: {timezone}") from e
            org.timezone = timezone
        if default_currency is not None:
            org.default_currency = default_currency.upper()

        await self.session.flush()
        logger.info("Updated payroll policy for org %s", org_id)
        return org
