"""ORM models for the time and compensation engine."""

from workforce_engine.models.base import Base, TimestampMixin
from workforce_engine.models.organization import Employee, Organization
from workforce_engine.models.attendance import AttendanceSession
from workforce_engine.models.leave import LeaveRequest, LeaveType
from workforce_engine.models.payroll import PayrollPeriod, Payslip, SalaryConfig

__all__ = [
    "Base",
    "TimestampMixin",
    "Organization",
    "Employee",
    "AttendanceSession",
    "LeaveType",
    "LeaveRequest",
    "SalaryConfig",
    "PayrollPeriod",
    "Payslip",
]
