"""Payslip generation for a payroll period."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators import (
    Adjustments,
    LeaveSpan,
    PayslipCalculator,
    PayslipFigures,
    PayslipInputs,
    SalaryTerms,
    SessionSpan,
    payslip_id_for,
    period_window,
)
from workforce_engine.calculators.calendar import as_utc
from workforce_engine.database import acquire_advisory_lock
from workforce_engine.errors import (
    ConcurrentGenerationInProgress,
    NotFoundError,
    PeriodFinalized,
)
from workforce_engine.models import PayrollPeriod, Payslip
from workforce_engine.models.base import utcnow
from workforce_engine.services.attendance_service import AttendanceService
from workforce_engine.services.leave_service import LeaveService
from workforce_engine.services.policy_service import PolicyService
from workforce_engine.services.salary_service import SalaryService
from workforce_engine.services.state_machine import PeriodStateMachine, PeriodStatus

logger = logging.getLogger(__name__)


@dataclass
class CurrencyTotals:
    """Aggregate amounts of the payslips written in one currency."""

    payslips: int = 0
    gross_pay: Decimal = Decimal("0")
    net_pay: Decimal = Decimal("0")


@dataclass
class GenerationSummary:
    """Outcome of one Generate call."""

    period_id: UUID
    payslips_written: int = 0
    skipped_employee_ids: list[UUID] = field(default_factory=list)
    totals: dict[str, CurrencyTotals] = field(default_factory=dict)

    def add(self, figures: PayslipFigures) -> None:
        totals = self.totals.setdefault(figures.currency, CurrencyTotals())
        totals.payslips += 1
        totals.gross_pay += figures.gross_pay
        totals.net_pay += figures.net_pay
        self.payslips_written += 1


class GenerationService:
    """Compute and persist every payslip of a period.

    Key invariants:
    1. A finalized period is never written
    2. Concurrent Generate calls for one period are serialized: on PostgreSQL
       the loser fails fast with ConcurrentGenerationInProgress, elsewhere the
       database write lock makes it wait
    3. Payslips are replaced wholesale (delete then insert) in the caller's
       transaction, so readers never observe a partial set
    4. Bonuses, deductions and notes already on a payslip survive regeneration
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.calculator = PayslipCalculator()

    async def generate(
        self,
        org_id: UUID,
        period_id: UUID,
        now: datetime | None = None,
    ) -> GenerationSummary:
        period = await self._get_period(org_id, period_id)
        if PeriodStateMachine.are_results_immutable(period.status):
            raise PeriodFinalized(period_id, action="generate payslips for")

        if not await acquire_advisory_lock(self.session, f"generate:{period_id}"):
            raise ConcurrentGenerationInProgress(period_id)

        PeriodStateMachine.validate_transition(period.status, PeriodStatus.GENERATED.value)

        # First write of the transaction: locks the period row until commit
        generated_at = as_utc(now or utcnow())
        result = await self.session.execute(
            update(PayrollPeriod)
            .where(
                PayrollPeriod.period_id == period_id,
                PayrollPeriod.org_id == org_id,
                PayrollPeriod.status != PeriodStatus.FINALIZED.value,
            )
            .values(status=PeriodStatus.GENERATED.value, generated_at=generated_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise PeriodFinalized(period_id, action="generate payslips for")

        figures, summary = await self.calculate_period(org_id, period)

        await self.session.execute(
            delete(Payslip)
            .where(Payslip.period_id == period_id)
            .execution_options(synchronize_session=False)
        )
        if figures:
            await self.session.execute(
                insert(Payslip),
                [self._payslip_row(org_id, period_id, f) for f in figures],
            )

        await self.session.refresh(period)
        logger.info(
            "Generated %d payslips for period %s (%d skipped without salary)",
            summary.payslips_written,
            period_id,
            len(summary.skipped_employee_ids),
        )
        return summary

    async def calculate_period(
        self, org_id: UUID, period: PayrollPeriod
    ) -> tuple[list[PayslipFigures], GenerationSummary]:
        """Compute figures for every employee in scope without writing anything."""
        policy = await PolicyService(self.session).get_policy(org_id)
        window = period_window(period.start_date, period.end_date, policy.tz)

        sessions = await AttendanceService(self.session).sessions_by_employee(
            org_id, window.starts_at, window.ends_at
        )
        salaries = await SalaryService(self.session).configs_by_employee(org_id)
        leave = await self._approved_leave(org_id, period)
        adjustments = await self._existing_adjustments(period.period_id)

        summary = GenerationSummary(period_id=period.period_id)
        figures: list[PayslipFigures] = []

        employee_ids = sorted(set(sessions) | set(salaries), key=str)
        for employee_id in employee_ids:
            config = salaries.get(employee_id)
            if config is None:
                summary.skipped_employee_ids.append(employee_id)
                continue

            inputs = PayslipInputs(
                period_id=period.period_id,
                employee_id=employee_id,
                window=window,
                policy=policy,
                salary=SalaryTerms(
                    base_salary=Decimal(config.base_salary),
                    hourly_rate=Decimal(config.hourly_rate),
                    currency=config.currency,
                ),
                sessions=tuple(
                    SessionSpan(clock_in=s.clock_in, clock_out=s.clock_out)
                    for s in sessions.get(employee_id, [])
                ),
                leave=tuple(leave.get(employee_id, [])),
                adjustments=adjustments.get(employee_id, Adjustments()),
            )
            result = self.calculator.calculate(inputs)
            figures.append(result)
            summary.add(result)

        if summary.skipped_employee_ids:
            logger.warning(
                "Period %s: no salary configured for %d employee(s)",
                period.period_id,
                len(summary.skipped_employee_ids),
            )
        return figures, summary

    async def _get_period(self, org_id: UUID, period_id: UUID) -> PayrollPeriod:
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(PayrollPeriod.period_id == period_id, PayrollPeriod.org_id == org_id)
            .execution_options(populate_existing=True)
        )
        period = result.scalar_one_or_none()
        if period is None:
            raise NotFoundError("Payroll period", period_id)
        return period

    async def _approved_leave(
        self, org_id: UUID, period: PayrollPeriod
    ) -> dict[UUID, list[LeaveSpan]]:
        requests = await LeaveService(self.session).approved_overlapping(
            org_id, period.start_date, period.end_date
        )
        grouped: dict[UUID, list[LeaveSpan]] = defaultdict(list)
        for request in requests:
            grouped[request.employee_id].append(
                LeaveSpan(start_date=request.start_date, end_date=request.end_date)
            )
        return grouped

    async def _existing_adjustments(self, period_id: UUID) -> dict[UUID, Adjustments]:
        result = await self.session.execute(
            select(
                Payslip.employee_id,
                Payslip.bonuses,
                Payslip.deductions,
                Payslip.notes,
            ).where(Payslip.period_id == period_id)
        )
        return {
            row.employee_id: Adjustments(
                bonuses=Decimal(row.bonuses),
                deductions=Decimal(row.deductions),
                notes=row.notes,
            )
            for row in result.all()
        }

    @staticmethod
    def _payslip_row(org_id: UUID, period_id: UUID, figures: PayslipFigures) -> dict[str, Any]:
        return {
            "payslip_id": payslip_id_for(period_id, figures.employee_id),
            "period_id": period_id,
            "org_id": org_id,
            "employee_id": figures.employee_id,
            "currency": figures.currency,
            "base_salary": figures.base_salary,
            "hours_worked": figures.hours_worked,
            "expected_hours": figures.expected_hours,
            "overtime_hours": figures.overtime_hours,
            "overtime_pay": figures.overtime_pay,
            "bonuses": figures.bonuses,
            "deductions": figures.deductions,
            "gross_pay": figures.gross_pay,
            "net_pay": figures.net_pay,
            "leave_days": figures.leave_days,
            "notes": figures.notes,
            "calculation_hash": figures.calculation_hash,
        }
