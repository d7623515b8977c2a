"""Salary configuration, payroll period, and payslip models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
    select,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.errors import PeriodFinalized
from workforce_engine.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.orm import Mapper

    from workforce_engine.models.organization import Employee


# ===== Salary Configuration =====


class SalaryConfig(Base, TimestampMixin):
    """Current compensation parameters for one employee (overwritten in place)."""

    __tablename__ = "salary_config"

    salary_config_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MYR")
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["org_id", "employee_id"],
            ["employee.org_id", "employee.employee_id"],
            ondelete="CASCADE",
            name="salary_config_employee_fk",
        ),
        UniqueConstraint("org_id", "employee_id", name="salary_config_org_employee_unique"),
        CheckConstraint("base_salary >= 0", name="salary_config_base_nonnegative"),
        CheckConstraint("hourly_rate >= 0", name="salary_config_rate_nonnegative"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()


# ===== Payroll Periods =====


class PayrollPeriod(Base, TimestampMixin):
    """Payroll period; status moves open → generated → finalized."""

    __tablename__ = "payroll_period"

    period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    finalized_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["org_id", "created_by"],
            ["employee.org_id", "employee.employee_id"],
            name="payroll_period_creator_fk",
        ),
        CheckConstraint(
            "status IN ('open', 'generated', 'finalized')",
            name="payroll_period_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="payroll_period_dates_check"),
        Index("payroll_period_org_start", "org_id", "start_date"),
    )

    # Relationships
    payslips: Mapped[list[Payslip]] = relationship(
        back_populates="period",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


# ===== Payslips =====


class Payslip(Base):
    """Computed pay for one employee in one period."""

    __tablename__ = "payslip"

    payslip_id: Mapped[UUID] = mapped_column(primary_key=True)
    period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.period_id", ondelete="CASCADE"),
        nullable=False,
    )
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    expected_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    bonuses: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    deductions: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    leave_days: Mapped[int] = mapped_column(nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    calculation_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["org_id", "employee_id"],
            ["employee.org_id", "employee.employee_id"],
            ondelete="CASCADE",
            name="payslip_employee_fk",
        ),
        UniqueConstraint("period_id", "employee_id", name="payslip_period_employee_unique"),
        Index("payslip_org_employee", "org_id", "employee_id"),
    )

    # Relationships
    period: Mapped[PayrollPeriod] = relationship(back_populates="payslips")
    employee: Mapped[Employee] = relationship()

    def recompute_totals(self) -> None:
        """Recompute gross and net after bonuses/deductions change."""
        self.gross_pay = self.base_salary + self.overtime_pay + self.bonuses
        self.net_pay = self.gross_pay - self.deductions


def _reject_finalized_payslip_write(
    mapper: Mapper[Any], connection: Connection, target: Payslip
) -> None:
    status = connection.execute(
        select(PayrollPeriod.status).where(PayrollPeriod.period_id == target.period_id)
    ).scalar_one_or_none()
    if status == "finalized":
        raise PeriodFinalized(target.period_id, action="modify payslips of")


event.listen(Payslip, "before_update", _reject_finalized_payslip_write)
event.listen(Payslip, "before_delete", _reject_finalized_payslip_write)
