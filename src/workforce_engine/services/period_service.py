"""Payroll period service - lifecycle of periods and their payslip runs."""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.calendar import as_utc
from workforce_engine.database import acquire_advisory_lock
from workforce_engine.errors import (
    InvalidRange,
    NoPayslipsGenerated,
    NotFoundError,
    PeriodFinalized,
)
from workforce_engine.models import PayrollPeriod, Payslip
from workforce_engine.models.base import utcnow
from workforce_engine.services.generation_service import GenerationService, GenerationSummary
from workforce_engine.services.state_machine import PeriodStateMachine, PeriodStatus

logger = logging.getLogger(__name__)


class PeriodService:
    """Service for managing the payroll period lifecycle.

    Operations:
    - create: open a new, non-overlapping period
    - generate: compute payslips (open/generated → generated)
    - finalize: freeze payslips (generated → finalized)
    - delete: remove a period that is not finalized
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        org_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
        created_by: UUID | None = None,
    ) -> PayrollPeriod:
        """Create an open period.

        Raises InvalidRange if the dates are reversed or overlap another period.
        """
        self._check_order(start_date, end_date)

        # Overlap check and insert must not interleave with another create
        await acquire_advisory_lock(self.session, f"periods:{org_id}", wait=True)
        await self._check_overlap(org_id, start_date, end_date)

        period = PayrollPeriod(
            org_id=org_id,
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus.OPEN.value,
            created_by=created_by,
        )
        self.session.add(period)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if created_by is None:
                raise NotFoundError("Organization", org_id) from e
            # Creator is not an employee of this organization
            raise NotFoundError("Employee", created_by) from e

        logger.info(
            "Created payroll period %s (%s to %s) for org %s",
            period.period_id,
            start_date,
            end_date,
            org_id,
        )
        return period

    async def get(self, org_id: UUID, period_id: UUID) -> PayrollPeriod:
        """Load a period scoped to the organization. Raises NotFoundError."""
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(PayrollPeriod.period_id == period_id, PayrollPeriod.org_id == org_id)
            .execution_options(populate_existing=True)
        )
        period = result.scalar_one_or_none()
        if period is None:
            raise NotFoundError("Payroll period", period_id)
        return period

    async def list_for_org(self, org_id: UUID) -> list[tuple[PayrollPeriod, int]]:
        """Periods with their payslip counts, newest start first."""
        counts = (
            select(Payslip.period_id, func.count().label("payslip_count"))
            .group_by(Payslip.period_id)
            .subquery()
        )
        result = await self.session.execute(
            select(PayrollPeriod, func.coalesce(counts.c.payslip_count, 0))
            .outerjoin(counts, counts.c.period_id == PayrollPeriod.period_id)
            .where(PayrollPeriod.org_id == org_id)
            .order_by(PayrollPeriod.start_date.desc())
            .execution_options(populate_existing=True)
        )
        return [(row[0], int(row[1])) for row in result.all()]

    async def update(
        self,
        org_id: UUID,
        period_id: UUID,
        name: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PayrollPeriod:
        """Rename or re-date a period that is not finalized."""
        period = await self.get(org_id, period_id)
        if PeriodStateMachine.are_results_immutable(period.status):
            raise PeriodFinalized(period_id, action="update")

        new_start = start_date or period.start_date
        new_end = end_date or period.end_date
        if (new_start, new_end) != (period.start_date, period.end_date):
            self._check_order(new_start, new_end)
            await acquire_advisory_lock(self.session, f"periods:{org_id}", wait=True)
            await self._check_overlap(org_id, new_start, new_end, exclude=period_id)
            period.start_date = new_start
            period.end_date = new_end
        if name is not None:
            period.name = name

        await self.session.flush()
        return period

    async def generate(
        self,
        org_id: UUID,
        period_id: UUID,
        now: datetime | None = None,
    ) -> GenerationSummary:
        """Compute and store payslips for the period (idempotent)."""
        return await GenerationService(self.session).generate(org_id, period_id, now=now)

    async def finalize(
        self,
        org_id: UUID,
        period_id: UUID,
        now: datetime | None = None,
    ) -> PayrollPeriod:
        """Freeze a generated period.

        Raises PeriodFinalized if already finalized, NoPayslipsGenerated if
        the period has no payslips.
        """
        has_payslips = select(Payslip.payslip_id).where(Payslip.period_id == period_id).exists()
        result = await self.session.execute(
            update(PayrollPeriod)
            .where(
                PayrollPeriod.period_id == period_id,
                PayrollPeriod.org_id == org_id,
                PayrollPeriod.status == PeriodStatus.GENERATED.value,
                has_payslips,
            )
            .values(
                status=PeriodStatus.FINALIZED.value,
                finalized_at=as_utc(now or utcnow()),
            )
            .execution_options(synchronize_session=False)
        )

        period = await self.get(org_id, period_id)
        if result.rowcount == 0:
            if PeriodStateMachine.are_results_immutable(period.status):
                raise PeriodFinalized(period_id, action="finalize")
            raise NoPayslipsGenerated(period_id)

        logger.info("Payroll period %s finalized", period_id)
        return period

    async def delete(self, org_id: UUID, period_id: UUID) -> None:
        """Delete a period and its payslips. Raises PeriodFinalized if finalized."""
        result = await self.session.execute(
            delete(PayrollPeriod)
            .where(
                PayrollPeriod.period_id == period_id,
                PayrollPeriod.org_id == org_id,
                PayrollPeriod.status != PeriodStatus.FINALIZED.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Raises NotFoundError when the period does not exist at all
            await self.get(org_id, period_id)
            raise PeriodFinalized(period_id, action="delete")

        await self.session.execute(
            delete(Payslip)
            .where(Payslip.period_id == period_id)
            .execution_options(synchronize_session=False)
        )
        logger.info("Payroll period %s deleted", period_id)

    @staticmethod
    def _check_order(start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise InvalidRange(
                "Start date must be before end date",
                start_date=start_date,
                end_date=end_date,
            )

    async def _check_overlap(
        self,
        org_id: UUID,
        start_date: date,
        end_date: date,
        exclude: UUID | None = None,
    ) -> None:
        query = select(PayrollPeriod.period_id, PayrollPeriod.name).where(
            PayrollPeriod.org_id == org_id,
            PayrollPeriod.start_date <= end_date,
            PayrollPeriod.end_date >= start_date,
        )
        if exclude is not None:
            query = query.where(PayrollPeriod.period_id != exclude)

        clash = (await self.session.execute(query.limit(1))).first()
        if clash is not None:
            raise InvalidRange(
                f"Period overlaps existing period '{clash.name}'",
                start_date=start_date,
                end_date=end_date,
                period_id=clash.period_id,
            )
