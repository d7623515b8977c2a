"""Tests for the organization payroll policy."""

from datetime import timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.errors import NotFoundError, ValidationFailed
from workforce_engine.services.policy_service import PolicyService


class TestPolicyService:
    async def test_defaults(self, session: AsyncSession, org):
        policy = await PolicyService(session).get_policy(org.org_id)

        assert policy.standard_daily_hours == Decimal("8.00")
        assert policy.workdays == frozenset({0, 1, 2, 3, 4})
        assert policy.tz is timezone.utc
        assert policy.default_currency == "MYR"

    async def test_unknown_org_falls_back_to_settings(self, session: AsyncSession):
        policy = await PolicyService(session).get_policy(uuid4())

        assert policy.workdays == frozenset({0, 1, 2, 3, 4})

    async def test_update_normalizes_values(self, session: AsyncSession, org):
        service = PolicyService(session)

        updated = await service.update_policy(
            org.org_id,
            standard_daily_hours=Decimal("7.5"),
            workweek="Sat, mon,tue",
            default_currency="sgd",
        )

        assert updated.workweek == "mon,tue,sat"
        assert updated.default_currency == "SGD"
        policy = await service.get_policy(org.org_id)
        assert policy.standard_daily_hours == Decimal("7.5")
        assert policy.workdays == frozenset({0, 1, 5})

    @pytest.mark.parametrize(
        "changes",
        [
            {"standard_daily_hours": Decimal("25")},
            {"workweek": "mon,someday"},
            {"timezone": "Nowhere/Special"},
        ],
    )
    async def test_invalid_values_rejected(self, session: AsyncSession, org, changes):
        with pytest.raises(ValidationFailed):
            await PolicyService(session).update_policy(org.org_id, **changes)

    async def test_unknown_org(self, session: AsyncSession):
        with pytest.raises(NotFoundError):
            await PolicyService(session).update_policy(uuid4(), workweek="mon")
