"""Salary configuration store (one current configuration per employee)."""

from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.database import dialect_name
from workforce_engine.errors import NoSalaryConfigured, NotFoundError, ValidationFailed
from workforce_engine.models import Employee, SalaryConfig
from workforce_engine.models.base import utcnow
from workforce_engine.services.policy_service import PolicyService

logger = logging.getLogger(__name__)

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _validate_terms(
    base_salary: Decimal | None,
    hourly_rate: Decimal | None,
    currency: str | None,
) -> None:
    if base_salary is not None and base_salary < 0:
        raise ValidationFailed("base_salary must not be negative")
    if hourly_rate is not None and hourly_rate < 0:
        raise ValidationFailed("hourly_rate must not be negative")
    if currency is not None and not _CURRENCY_RE.match(currency):
        raise ValidationFailed(f"Invalid currency code: {currency!r}")


class SalaryService:
    """Keyed upsert store for employee compensation parameters.

    Payroll reads the configuration as it is at generation time; there is
    no history, so regenerating after a change yields new numbers.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def set(
        self,
        org_id: UUID,
        employee_id: UUID,
        base_salary: Decimal,
        hourly_rate: Decimal = Decimal("0"),
        currency: str | None = None,
        effective_date: date | None = None,
    ) -> SalaryConfig:
        """Create or overwrite the employee's configuration atomically."""
        if currency is None:
            currency = (await PolicyService(self.session).get_policy(org_id)).default_currency
        currency = currency.upper()
        _validate_terms(base_salary, hourly_rate, currency)

        values: dict[str, Any] = {
            "org_id": org_id,
            "employee_id": employee_id,
            "base_salary": base_salary,
            "hourly_rate": hourly_rate,
            "currency": currency,
            "effective_date": effective_date or date.today(),
        }
        insert = pg_insert if dialect_name(self.session) == "postgresql" else sqlite_insert
        stmt = insert(SalaryConfig).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["org_id", "employee_id"],
            set_={
                "base_salary": stmt.excluded.base_salary,
                "hourly_rate": stmt.excluded.hourly_rate,
                "currency": stmt.excluded.currency,
                "effective_date": stmt.excluded.effective_date,
                "updated_at": utcnow(),
            },
        )
        try:
            await self.session.execute(stmt)
        except IntegrityError as e:
            await self.session.rollback()
            # The employee does not exist in this organization
            raise NotFoundError("Employee", employee_id) from e

        config = await self.get(org_id, employee_id)
        logger.info(
            "Salary set for employee %s: base=%s rate=%s %s",
            employee_id,
            base_salary,
            hourly_rate,
            currency,
        )
        return config

    async def find(self, org_id: UUID, employee_id: UUID) -> SalaryConfig | None:
        """The employee's configuration, or None."""
        result = await self.session.execute(
            select(SalaryConfig)
            .where(
                SalaryConfig.org_id == org_id,
                SalaryConfig.employee_id == employee_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, org_id: UUID, employee_id: UUID) -> SalaryConfig:
        """The employee's configuration. Raises NoSalaryConfigured if absent."""
        config = await self.find(org_id, employee_id)
        if config is None:
            raise NoSalaryConfigured(employee_id)
        return config

    async def update(
        self,
        org_id: UUID,
        salary_config_id: UUID,
        base_salary: Decimal | None = None,
        hourly_rate: Decimal | None = None,
        currency: str | None = None,
        effective_date: date | None = None,
    ) -> SalaryConfig:
        """Partially update a configuration by id."""
        config = await self._get_by_id(org_id, salary_config_id)
        if currency is not None:
            currency = currency.upper()
        _validate_terms(base_salary, hourly_rate, currency)

        if base_salary is not None:
            config.base_salary = base_salary
        if hourly_rate is not None:
            config.hourly_rate = hourly_rate
        if currency is not None:
            config.currency = currency
        if effective_date is not None:
            config.effective_date = effective_date

        await self.session.flush()
        return config

    async def delete(self, org_id: UUID, salary_config_id: UUID) -> None:
        """Remove a configuration; the employee is skipped by later generations."""
        result = await self.session.execute(
            delete(SalaryConfig).where(
                SalaryConfig.salary_config_id == salary_config_id,
                SalaryConfig.org_id == org_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Salary configuration", salary_config_id)

    async def list_for_org(self, org_id: UUID) -> list[tuple[SalaryConfig, Employee]]:
        """All configurations with their employees, ordered by name."""
        result = await self.session.execute(
            select(SalaryConfig, Employee)
            .join(Employee, SalaryConfig.employee_id == Employee.employee_id)
            .where(SalaryConfig.org_id == org_id)
            .order_by(Employee.display_name, Employee.employee_id)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def configs_by_employee(self, org_id: UUID) -> dict[UUID, SalaryConfig]:
        """Every configuration of the organization as it stands now.

        ``effective_date`` is informational; payroll always uses the current row.
        """
        result = await self.session.execute(
            select(SalaryConfig)
            .where(SalaryConfig.org_id == org_id)
            .execution_options(populate_existing=True)
        )
        return {config.employee_id: config for config in result.scalars().all()}

    async def employees_without_salary(self, org_id: UUID) -> list[Employee]:
        """Active employees of the organization that have no configuration."""
        configured = select(SalaryConfig.employee_id).where(SalaryConfig.org_id == org_id)
        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.org_id == org_id,
                Employee.status == "active",
                Employee.employee_id.not_in(configured),
            )
            .order_by(Employee.display_name)
        )
        return list(result.scalars().all())

    async def _get_by_id(self, org_id: UUID, salary_config_id: UUID) -> SalaryConfig:
        result = await self.session.execute(
            select(SalaryConfig).where(
                SalaryConfig.salary_config_id == salary_config_id,
                SalaryConfig.org_id == org_id,
            )
        )
        config = result.scalar_one_or_none()
        if config is None:
            raise NotFoundError("Salary configuration", salary_config_id)
        return config
