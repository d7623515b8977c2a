"""Payslip reads and manual adjustments."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.payslip_calculator import quantize
from workforce_engine.errors import NotFoundError, PeriodFinalized, ValidationFailed
from workforce_engine.models import Employee, PayrollPeriod, Payslip
from workforce_engine.services.state_machine import PeriodStateMachine

logger = logging.getLogger(__name__)


class PayslipService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_period(
        self, org_id: UUID, period_id: UUID
    ) -> list[tuple[Payslip, Employee]]:
        """Payslips of a period with their employees, ordered by name."""
        result = await self.session.execute(
            select(Payslip, Employee)
            .join(Employee, Payslip.employee_id == Employee.employee_id)
            .where(Payslip.org_id == org_id, Payslip.period_id == period_id)
            .order_by(Employee.display_name, Employee.employee_id)
            .execution_options(populate_existing=True)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def for_employee(
        self, org_id: UUID, employee_id: UUID
    ) -> list[tuple[Payslip, PayrollPeriod]]:
        """An employee's payslips with their periods, newest period first."""
        result = await self.session.execute(
            select(Payslip, PayrollPeriod)
            .join(PayrollPeriod, Payslip.period_id == PayrollPeriod.period_id)
            .where(Payslip.org_id == org_id, Payslip.employee_id == employee_id)
            .order_by(PayrollPeriod.start_date.desc())
            .execution_options(populate_existing=True)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def adjust(
        self,
        org_id: UUID,
        payslip_id: UUID,
        bonuses: Decimal | None = None,
        deductions: Decimal | None = None,
        notes: str | None = None,
    ) -> Payslip:
        """Set bonuses, deductions or notes and recompute gross and net.

        Adjustments are kept when the period is regenerated. Raises
        PeriodFinalized once the owning period is finalized.
        """
        result = await self.session.execute(
            select(Payslip, PayrollPeriod.status)
            .join(PayrollPeriod, Payslip.period_id == PayrollPeriod.period_id)
            .where(Payslip.payslip_id == payslip_id, Payslip.org_id == org_id)
            .execution_options(populate_existing=True)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Payslip", payslip_id)
        payslip, period_status = row[0], row[1]

        if PeriodStateMachine.are_results_immutable(period_status):
            raise PeriodFinalized(payslip.period_id, action="adjust payslips of")

        if bonuses is not None:
            if bonuses < 0:
                raise ValidationFailed("bonuses must not be negative")
            payslip.bonuses = quantize(bonuses)
        if deductions is not None:
            if deductions < 0:
                raise ValidationFailed("deductions must not be negative")
            payslip.deductions = quantize(deductions)
        if notes is not None:
            payslip.notes = notes or None

        payslip.recompute_totals()
        await self.session.flush()

        logger.info("Adjusted payslip %s: net=%s", payslip_id, payslip.net_pay)
        return payslip
