"""Payroll period and leave request state machines."""

from __future__ import annotations

from enum import Enum

from workforce_engine.errors import WorkforceEngineError


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "open"
    GENERATED = "generated"
    FINALIZED = "finalized"


class LeaveStatus(str, Enum):
    """Leave request status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvalidTransitionError(WorkforceEngineError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, from_status=from_status, to_status=to_status)


class PeriodStateMachine:
    """State machine for payroll period status transitions.

    Allowed transitions:
    - open → generated
    - generated → generated (regenerate)
    - generated → finalized
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PeriodStatus.OPEN.value: [PeriodStatus.GENERATED.value],
        PeriodStatus.GENERATED.value: [PeriodStatus.GENERATED.value, PeriodStatus.FINALIZED.value],
        PeriodStatus.FINALIZED.value: [],  # Terminal state
    }

    # Statuses where payslips may be (re)written
    GENERATION_ALLOWED = {
        PeriodStatus.OPEN.value,
        PeriodStatus.GENERATED.value,
    }

    # Statuses where payslips are frozen
    RESULTS_IMMUTABLE = {
        PeriodStatus.FINALIZED.value,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_generate(cls, status: str) -> bool:
        """Check if payslip generation is allowed in this status."""
        return status in cls.GENERATION_ALLOWED

    @classmethod
    def are_results_immutable(cls, status: str) -> bool:
        """Check if payslips are immutable in this status."""
        return status in cls.RESULTS_IMMUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class LeaveStateMachine:
    """State machine for leave requests: pending → approved | rejected."""

    VALID_TRANSITIONS: dict[str, list[str]] = {
        LeaveStatus.PENDING.value: [LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value],
        LeaveStatus.APPROVED.value: [],
        LeaveStatus.REJECTED.value: [],
    }

    DECISIONS = {LeaveStatus.APPROVED, LeaveStatus.REJECTED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def validate_decision(cls, decision: str) -> LeaveStatus:
        """Normalize a reviewer decision, rejecting anything but approve/reject."""
        try:
            status = LeaveStatus(decision)
        except ValueError:
            raise InvalidTransitionError(
                LeaveStatus.PENDING.value,
                str(decision),
                'Status must be "approved" or "rejected"',
            ) from None
        if status not in cls.DECISIONS:
            raise InvalidTransitionError(
                LeaveStatus.PENDING.value,
                status.value,
                'Status must be "approved" or "rejected"',
            )
        return status

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Reviewed requests never change again."""
        return not cls.VALID_TRANSITIONS.get(status, [])
