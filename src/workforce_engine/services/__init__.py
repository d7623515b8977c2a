"""Workforce engine services."""

from workforce_engine.services.state_machine import (
    InvalidTransitionError,
    LeaveStateMachine,
    LeaveStatus,
    PeriodStateMachine,
    PeriodStatus,
)
from workforce_engine.services.attendance_service import AttendanceService, ClockStatus
from workforce_engine.services.leave_service import LeaveService
from workforce_engine.services.salary_service import SalaryService
from workforce_engine.services.policy_service import PolicyService
from workforce_engine.services.generation_service import GenerationService, GenerationSummary
from workforce_engine.services.period_service import PeriodService
from workforce_engine.services.payslip_service import PayslipService

__all__ = [
    "InvalidTransitionError",
    "LeaveStateMachine",
    "LeaveStatus",
    "PeriodStateMachine",
    "PeriodStatus",
    "AttendanceService",
    "ClockStatus",
    "LeaveService",
    "SalaryService",
    "PolicyService",
    "GenerationService",
    "GenerationSummary",
    "PeriodService",
    "PayslipService",
]
