"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Any
from uuid import UUID

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class WorkPolicy:
    """Organization policy used to build the expected-hours baseline."""

    standard_daily_hours: Decimal
    workdays: frozenset[int]  # date.weekday() values, Monday = 0
    tz: tzinfo
    default_currency: str = "MYR"

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "standard_daily_hours": str(self.standard_daily_hours),
            "workdays": sorted(self.workdays),
            "tz": str(self.tz),
        }


@dataclass(frozen=True)
class PeriodWindow:
    """Inclusive date range of a payroll period plus its local instants."""

    start_date: date
    end_date: date
    starts_at: datetime  # local midnight of start_date, aware
    ends_at: datetime  # local midnight after end_date, aware (exclusive)

    def contains(self, clock_in: datetime, clock_out: datetime) -> bool:
        """A session counts only when it lies entirely inside the window."""
        return self.starts_at <= clock_in and clock_out <= self.ends_at


@dataclass(frozen=True)
class SessionSpan:
    """Attendance session reduced to what the calculator needs."""

    clock_in: datetime
    clock_out: datetime | None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None


@dataclass(frozen=True)
class LeaveSpan:
    """Approved leave as an inclusive date range."""

    start_date: date
    end_date: date


@dataclass(frozen=True)
class SalaryTerms:
    """Compensation parameters taken from the salary configuration."""

    base_salary: Decimal
    hourly_rate: Decimal
    currency: str


@dataclass(frozen=True)
class Adjustments:
    """Pass-through bonuses and deductions supplied outside the calculator."""

    bonuses: Decimal = ZERO
    deductions: Decimal = ZERO
    notes: str | None = None


@dataclass(frozen=True)
class PayslipInputs:
    """Everything needed to compute one employee's payslip."""

    period_id: UUID
    employee_id: UUID
    window: PeriodWindow
    policy: WorkPolicy
    salary: SalaryTerms
    sessions: tuple[SessionSpan, ...] = ()
    leave: tuple[LeaveSpan, ...] = ()
    adjustments: Adjustments = field(default_factory=Adjustments)


@dataclass(frozen=True)
class PayslipFigures:
    """Computed payslip values, all rounded to two decimal places."""

    employee_id: UUID
    currency: str
    base_salary: Decimal
    hours_worked: Decimal
    expected_hours: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    bonuses: Decimal
    deductions: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    leave_days: int
    notes: str | None
    calculation_hash: str

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict (deterministic ordering, string amounts)."""
        return {
            "employee_id": str(self.employee_id),
            "currency": self.currency,
            "base_salary": str(self.base_salary),
            "hours_worked": str(self.hours_worked),
            "expected_hours": str(self.expected_hours),
            "overtime_hours": str(self.overtime_hours),
            "overtime_pay": str(self.overtime_pay),
            "bonuses": str(self.bonuses),
            "deductions": str(self.deductions),
            "gross_pay": str(self.gross_pay),
            "net_pay": str(self.net_pay),
            "leave_days": self.leave_days,
            "notes": self.notes,
            "calculation_hash": self.calculation_hash,
        }
