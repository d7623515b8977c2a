"""Payslip calculation."""

from workforce_engine.calculators.calendar import (
    leave_workdays,
    parse_workweek,
    period_window,
    workdays_between,
)
from workforce_engine.calculators.payslip_calculator import PayslipCalculator, payslip_id_for
from workforce_engine.calculators.types import (
    Adjustments,
    LeaveSpan,
    PayslipFigures,
    PayslipInputs,
    PeriodWindow,
    SalaryTerms,
    SessionSpan,
    WorkPolicy,
)

__all__ = [
    "PayslipCalculator",
    "payslip_id_for",
    "leave_workdays",
    "parse_workweek",
    "period_window",
    "workdays_between",
    "Adjustments",
    "LeaveSpan",
    "PayslipFigures",
    "PayslipInputs",
    "PeriodWindow",
    "SalaryTerms",
    "SessionSpan",
    "WorkPolicy",
]
