"""Domain errors raised by the time and compensation services.

Every error carries a stable ``code`` that the API layer returns verbatim,
so callers can branch on the reason without parsing messages.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID


class WorkforceEngineError(Exception):
    """Base class for all recoverable domain errors."""

    code = "ERROR"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class AlreadyClockedIn(WorkforceEngineError):
    """Employee already has an open attendance session."""

    code = "ALREADY_CLOCKED_IN"

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(
            "Already clocked in. Please clock out first.", employee_id=employee_id
        )


class NoOpenSession(WorkforceEngineError):
    """Employee has no open attendance session to close."""

    code = "NO_OPEN_SESSION"

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__("Not currently clocked in.", employee_id=employee_id)


class InvalidRange(WorkforceEngineError):
    """A date range is reversed or collides with an existing range."""

    code = "INVALID_RANGE"


class AlreadyReviewed(WorkforceEngineError):
    """Leave request has already left the pending state."""

    code = "ALREADY_REVIEWED"

    def __init__(self, leave_request_id: UUID, status: str):
        self.leave_request_id = leave_request_id
        self.status = status
        super().__init__(
            f"Leave request {leave_request_id} was already {status}",
            leave_request_id=leave_request_id,
            status=status,
        )


class PeriodFinalized(WorkforceEngineError):
    """Payroll period is finalized and can no longer change."""

    code = "PERIOD_FINALIZED"

    def __init__(self, period_id: UUID, action: str = "modify"):
        self.period_id = period_id
        self.action = action
        super().__init__(
            f"Cannot {action} finalized payroll period {period_id}",
            period_id=period_id,
        )


class NoPayslipsGenerated(WorkforceEngineError):
    """Finalize was attempted before any payslip exists for the period."""

    code = "NO_PAYSLIPS_GENERATED"

    def __init__(self, period_id: UUID):
        self.period_id = period_id
        super().__init__(
            "Generate payslips before finalizing", period_id=period_id
        )


class NoSalaryConfigured(WorkforceEngineError):
    """Employee has no salary configuration."""

    code = "NO_SALARY_CONFIGURED"

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(
            f"No salary configured for employee {employee_id}",
            employee_id=employee_id,
        )


class ConcurrentGenerationInProgress(WorkforceEngineError):
    """Another Generate call for the same period is running."""

    code = "GENERATION_IN_PROGRESS"

    def __init__(self, period_id: UUID):
        self.period_id = period_id
        super().__init__(
            f"Payslip generation already in progress for period {period_id}",
            period_id=period_id,
        )


class DuplicateLeaveType(WorkforceEngineError):
    """Leave type name already exists in the organization."""

    code = "DUPLICATE_LEAVE_TYPE"

    def __init__(self, name: str):
        self.name = name
        super().__init__("Leave type already exists", name=name)


class NotFoundError(WorkforceEngineError):
    """Entity does not exist in the caller's organization."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found", entity_id=entity_id)


class ValidationFailed(WorkforceEngineError):
    """Input failed a domain rule not expressible in the request schema."""

    code = "VALIDATION_ERROR"
