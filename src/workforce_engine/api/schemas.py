"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

from workforce_engine.calculators.calendar import as_utc
from workforce_engine.calculators.payslip_calculator import quantize


def _money_str(value: Decimal) -> str:
    return str(quantize(Decimal(value)))


# Fixed-point, two places, serialized as a string in JSON
Money = Annotated[Decimal, PlainSerializer(_money_str, return_type=str, when_used="json")]
Hours = Annotated[Decimal, PlainSerializer(_money_str, return_type=str, when_used="json")]
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
CurrencyCode = Annotated[str, Field(pattern=r"^[A-Za-z]{3}$")]


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


# ============================================================================
# Attendance schemas
# ============================================================================


class ClockRequest(BaseModel):
    """Optional notes attached on clock-in or clock-out."""

    notes: str | None = Field(default=None, max_length=2000)


class AttendanceSessionResponse(BaseModel):
    """Schema for an attendance session."""

    model_config = ConfigDict(from_attributes=True)

    session_id: UUID
    employee_id: UUID
    clock_in: UtcDatetime
    clock_out: UtcDatetime | None = None
    notes: str | None = None


class ClockStatusResponse(BaseModel):
    """Current clock status of the acting employee."""

    clocked_in: bool
    clock_in: UtcDatetime | None = None
    session: AttendanceSessionResponse | None = None


class TeamAttendanceResponse(AttendanceSessionResponse):
    """Attendance session with the employee it belongs to."""

    display_name: str
    email: str | None = None
    department_id: UUID | None = None


# ============================================================================
# Leave schemas
# ============================================================================


class LeaveRequestCreate(BaseModel):
    """Schema for submitting a leave request."""

    leave_type: str = Field(min_length=1, max_length=50)
    start_date: date
    end_date: date
    reason: str | None = None


class LeaveReviewRequest(BaseModel):
    """Reviewer decision: "approved" or "rejected"."""

    status: str


class LeaveRequestResponse(BaseModel):
    """Schema for a leave request."""

    model_config = ConfigDict(from_attributes=True)

    leave_request_id: UUID
    employee_id: UUID
    leave_type: str
    leave_type_id: UUID | None = None
    start_date: date
    end_date: date
    reason: str | None = None
    status: str
    reviewed_by: UUID | None = None
    reviewed_at: UtcDatetime | None = None
    created_at: UtcDatetime


class LeaveTypeCreate(BaseModel):
    """Schema for adding a custom leave type."""

    name: str = Field(min_length=1, max_length=50)
    color: str | None = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


class LeaveTypeResponse(BaseModel):
    """Schema for a leave type (built-in defaults have no id)."""

    model_config = ConfigDict(from_attributes=True)

    leave_type_id: UUID | None = None
    name: str
    color: str
    is_default: bool = False


# ============================================================================
# Salary schemas
# ============================================================================


class SalaryConfigUpsert(BaseModel):
    """Schema for creating or overwriting an employee's salary."""

    employee_id: UUID
    base_salary: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    hourly_rate: Decimal = Field(default=Decimal("0"), ge=0, max_digits=8, decimal_places=2)
    currency: CurrencyCode | None = None
    effective_date: date | None = None


class SalaryConfigUpdate(BaseModel):
    """Schema for partially updating a salary configuration."""

    base_salary: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    currency: CurrencyCode | None = None
    effective_date: date | None = None


class SalaryConfigResponse(BaseModel):
    """Schema for a salary configuration."""

    model_config = ConfigDict(from_attributes=True)

    salary_config_id: UUID
    employee_id: UUID
    employee_name: str | None = None
    base_salary: Money
    hourly_rate: Money
    currency: str
    effective_date: date
    updated_at: UtcDatetime


class EmployeeSummary(BaseModel):
    """Minimal employee view."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    display_name: str
    email: str | None = None
    department_id: UUID | None = None


# ============================================================================
# Payroll period schemas
# ============================================================================


class PeriodCreate(BaseModel):
    """Schema for creating a payroll period."""

    name: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date


class PeriodUpdate(BaseModel):
    """Schema for renaming or re-dating a payroll period."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None


class PeriodResponse(BaseModel):
    """Schema for a payroll period."""

    model_config = ConfigDict(from_attributes=True)

    period_id: UUID
    name: str
    start_date: date
    end_date: date
    status: str
    created_by: UUID | None = None
    generated_at: UtcDatetime | None = None
    finalized_at: UtcDatetime | None = None
    created_at: UtcDatetime
    payslip_count: int | None = None


class CurrencyTotalsResponse(BaseModel):
    """Totals of the payslips written in one currency."""

    model_config = ConfigDict(from_attributes=True)

    payslips: int
    gross_pay: Money
    net_pay: Money


class GenerationResponse(BaseModel):
    """Result of generating payslips for a period."""

    period_id: UUID
    status: str
    payslips_written: int
    skipped_employee_ids: list[UUID]
    totals: dict[str, CurrencyTotalsResponse]


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipResponse(BaseModel):
    """Schema for a payslip."""

    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    period_id: UUID
    employee_id: UUID
    employee_name: str | None = None
    currency: str
    base_salary: Money
    hours_worked: Hours
    expected_hours: Hours
    overtime_hours: Hours
    overtime_pay: Money
    bonuses: Money
    deductions: Money
    gross_pay: Money
    net_pay: Money
    leave_days: int
    notes: str | None = None
    calculation_hash: str


class MyPayslipResponse(PayslipResponse):
    """Payslip with the period it belongs to."""

    period_name: str
    period_start: date
    period_end: date
    period_status: str


class PayslipAdjust(BaseModel):
    """Schema for adjusting bonuses, deductions or notes."""

    bonuses: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    deductions: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = None


# ============================================================================
# Policy schemas
# ============================================================================


class PolicyResponse(BaseModel):
    """Payroll policy of an organization."""

    standard_daily_hours: Hours
    workweek: str
    timezone: str
    default_currency: str


class PolicyUpdate(BaseModel):
    """Schema for updating the payroll policy; omitted fields are unchanged."""

    standard_daily_hours: Decimal | None = Field(default=None, ge=0, le=24)
    workweek: str | None = None
    timezone: str | None = None
    default_currency: CurrencyCode | None = None
