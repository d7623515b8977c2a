"""Payslip calculator - pure function from attendance, leave and salary to pay."""

from __future__ import annotations

import hashlib
import json
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID, uuid5

from workforce_engine.calculators.calendar import as_utc, leave_workdays, workdays_between
from workforce_engine.calculators.types import (
    CENT,
    ZERO,
    PayslipFigures,
    PayslipInputs,
    SessionSpan,
)

_MICROS_PER_HOUR = Decimal(3_600_000_000)
_ONE_MICROSECOND = timedelta(microseconds=1)


def quantize(value: Decimal) -> Decimal:
    """Round to two decimal places, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def payslip_id_for(period_id: UUID, employee_id: UUID) -> UUID:
    """Stable payslip identifier, so regeneration rewrites identical rows."""
    return uuid5(period_id, str(employee_id))


class PayslipCalculator:
    """Compute one employee's payslip for one period.

    Pipeline (stable order):
    1) Sum durations of completed sessions lying fully inside the period
    2) Expected hours = daily hours x (workdays - workdays on approved leave)
    3) Overtime hours = max(0, worked - expected)
    4) Overtime pay = overtime hours x hourly rate
    5) Gross = base + overtime pay + bonuses; net = gross - deductions

    Net pay is never clamped; a negative result is returned as is.
    """

    def calculate(self, inputs: PayslipInputs) -> PayslipFigures:
        """Calculate payslip figures. Same inputs always give the same output."""
        salary = inputs.salary
        adjustments = inputs.adjustments

        hours_worked = self.hours_worked(inputs)
        expected_hours, leave_days = self.expected_hours(inputs)
        overtime_hours = max(ZERO, hours_worked - expected_hours)
        overtime_pay = quantize(overtime_hours * salary.hourly_rate)

        base_salary = quantize(salary.base_salary)
        bonuses = quantize(adjustments.bonuses)
        deductions = quantize(adjustments.deductions)
        gross_pay = base_salary + overtime_pay + bonuses
        net_pay = gross_pay - deductions

        return PayslipFigures(
            employee_id=inputs.employee_id,
            currency=salary.currency,
            base_salary=base_salary,
            hours_worked=hours_worked,
            expected_hours=expected_hours,
            overtime_hours=quantize(overtime_hours),
            overtime_pay=overtime_pay,
            bonuses=bonuses,
            deductions=deductions,
            gross_pay=gross_pay,
            net_pay=net_pay,
            leave_days=leave_days,
            notes=adjustments.notes,
            calculation_hash=self.compute_inputs_hash(inputs),
        )

    def hours_worked(self, inputs: PayslipInputs) -> Decimal:
        """Completed in-window session time, in hours rounded to 0.01."""
        total = timedelta(0)
        for span in inputs.sessions:
            if span.clock_out is None:
                # Still running: no partial credit
                continue
            clock_in = as_utc(span.clock_in)
            clock_out = as_utc(span.clock_out)
            if clock_out < clock_in:
                continue
            if not inputs.window.contains(clock_in, clock_out):
                continue
            total += clock_out - clock_in

        micros = Decimal(total // _ONE_MICROSECOND)
        return quantize(micros / _MICROS_PER_HOUR)

    def expected_hours(self, inputs: PayslipInputs) -> tuple[Decimal, int]:
        """Baseline hours for the period and the number of excused leave days."""
        window = inputs.window
        policy = inputs.policy
        workdays = workdays_between(window.start_date, window.end_date, policy.workdays)
        excused = leave_workdays(window, inputs.leave, policy.workdays)
        payable_days = len(workdays) - len(excused)
        return quantize(policy.standard_daily_hours * payable_days), len(excused)

    def compute_inputs_hash(self, inputs: PayslipInputs) -> str:
        """Deterministic fingerprint of every input that affects the result."""
        data: dict[str, Any] = {
            "period_id": str(inputs.period_id),
            "employee_id": str(inputs.employee_id),
            "window": [inputs.window.start_date.isoformat(), inputs.window.end_date.isoformat()],
            "policy": inputs.policy.to_canonical_dict(),
            "salary": {
                "base_salary": str(quantize(inputs.salary.base_salary)),
                "hourly_rate": str(quantize(inputs.salary.hourly_rate)),
                "currency": inputs.salary.currency,
            },
            "sessions": sorted(_session_key(s) for s in inputs.sessions),
            "leave": sorted(
                [span.start_date.isoformat(), span.end_date.isoformat()]
                for span in inputs.leave
            ),
            "adjustments": {
                "bonuses": str(quantize(inputs.adjustments.bonuses)),
                "deductions": str(quantize(inputs.adjustments.deductions)),
                "notes": inputs.adjustments.notes,
            },
        }
        json_str = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()


def _session_key(span: SessionSpan) -> list[str]:
    clock_out = as_utc(span.clock_out).isoformat() if span.clock_out else ""
    return [as_utc(span.clock_in).isoformat(), clock_out]
