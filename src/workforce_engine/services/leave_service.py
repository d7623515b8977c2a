"""Leave request workflow and organization leave types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.calendar import as_utc
from workforce_engine.errors import (
    AlreadyReviewed,
    DuplicateLeaveType,
    InvalidRange,
    NotFoundError,
)
from workforce_engine.models import LeaveRequest, LeaveType
from workforce_engine.models.base import utcnow
from workforce_engine.models.leave import DEFAULT_LEAVE_TYPE_COLOR
from workforce_engine.services.state_machine import LeaveStateMachine, LeaveStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveTypeView:
    """Leave type as shown to callers; built-in defaults have no id."""

    name: str
    color: str
    leave_type_id: UUID | None = None
    is_default: bool = False


DEFAULT_LEAVE_TYPES: tuple[LeaveTypeView, ...] = (
    LeaveTypeView(name="Annual Leave", color="#22c55e", is_default=True),
    LeaveTypeView(name="Sick Leave", color="#ef4444", is_default=True),
    LeaveTypeView(name="Personal Leave", color="#6366f1", is_default=True),
    LeaveTypeView(name="Unpaid Leave", color="#a0a0a0", is_default=True),
)


class LeaveService:
    """Service for the leave approval workflow.

    Operations:
    - submit: create a pending request (no overlap check)
    - review: pending → approved/rejected as one compare-and-set UPDATE
    - pending_for: reviewer queue, oldest first
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def submit(
        self,
        org_id: UUID,
        employee_id: UUID,
        leave_type: str,
        start_date: date,
        end_date: date,
        reason: str | None = None,
    ) -> LeaveRequest:
        """Submit a leave request in pending status.

        Raises InvalidRange if end_date is before start_date.
        """
        if end_date < start_date:
            raise InvalidRange(
                "Start date must be before end date",
                start_date=start_date,
                end_date=end_date,
            )

        type_name = leave_type.strip()
        matched = await self.session.execute(
            select(LeaveType.leave_type_id).where(
                LeaveType.org_id == org_id,
                LeaveType.name == type_name,
            )
        )

        request = LeaveRequest(
            org_id=org_id,
            employee_id=employee_id,
            leave_type=type_name,
            leave_type_id=matched.scalar_one_or_none(),
            start_date=start_date,
            end_date=end_date,
            reason=reason or None,
            status=LeaveStatus.PENDING.value,
        )
        self.session.add(request)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise NotFoundError("Employee", employee_id) from e

        logger.info(
            "Leave request %s submitted by %s (%s to %s)",
            request.leave_request_id,
            employee_id,
            start_date,
            end_date,
        )
        return request

    async def review(
        self,
        org_id: UUID,
        leave_request_id: UUID,
        decision: str,
        reviewer_id: UUID | None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        """Approve or reject a pending request.

        Raises AlreadyReviewed if the request is no longer pending, and
        NotFoundError if it does not exist in the organization.
        """
        status = LeaveStateMachine.validate_decision(decision)

        statement = (
            update(LeaveRequest)
            .where(
                LeaveRequest.leave_request_id == leave_request_id,
                LeaveRequest.org_id == org_id,
                LeaveRequest.status == LeaveStatus.PENDING.value,
            )
            .values(
                status=status.value,
                reviewed_by=reviewer_id,
                reviewed_at=as_utc(now or utcnow()),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(statement)
        except IntegrityError as e:
            await self.session.rollback()
            # Reviewer is not an employee of this organization
            raise NotFoundError("Employee", reviewer_id) from e

        request = await self.get(org_id, leave_request_id)
        if request is None:
            raise NotFoundError("Leave request", leave_request_id)
        if result.rowcount == 0:
            raise AlreadyReviewed(leave_request_id, request.status)

        logger.info(
            "Leave request %s %s by %s", leave_request_id, status.value, reviewer_id
        )
        return request

    async def get(self, org_id: UUID, leave_request_id: UUID) -> LeaveRequest | None:
        """Load a request (fresh from the database) scoped to the organization."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.leave_request_id == leave_request_id,
                LeaveRequest.org_id == org_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def pending_for(
        self, org_id: UUID, limit: int = 100, offset: int = 0
    ) -> list[LeaveRequest]:
        """Pending requests for the reviewer queue, oldest first."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.org_id == org_id,
                LeaveRequest.status == LeaveStatus.PENDING.value,
            )
            .order_by(LeaveRequest.created_at, LeaveRequest.leave_request_id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def for_employee(self, org_id: UUID, employee_id: UUID) -> list[LeaveRequest]:
        """An employee's own requests, newest first."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.org_id == org_id,
                LeaveRequest.employee_id == employee_id,
            )
            .order_by(LeaveRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def all_for_org(self, org_id: UUID, limit: int = 100) -> list[LeaveRequest]:
        """Every request in the organization, newest first."""
        result = await self.session.execute(
            select(LeaveRequest)
            .where(LeaveRequest.org_id == org_id)
            .order_by(LeaveRequest.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def approved_overlapping(
        self,
        org_id: UUID,
        start_date: date,
        end_date: date,
        employee_id: UUID | None = None,
    ) -> list[LeaveRequest]:
        """Approved requests overlapping the inclusive date range."""
        query = select(LeaveRequest).where(
            LeaveRequest.org_id == org_id,
            LeaveRequest.status == LeaveStatus.APPROVED.value,
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
        )
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)

        query = query.order_by(
            LeaveRequest.employee_id, LeaveRequest.start_date, LeaveRequest.leave_request_id
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Leave types
    # ------------------------------------------------------------------

    async def list_types(self, org_id: UUID) -> list[LeaveTypeView]:
        """Custom types of the organization, or the built-in defaults if none."""
        result = await self.session.execute(
            select(LeaveType).where(LeaveType.org_id == org_id).order_by(LeaveType.name)
        )
        custom = result.scalars().all()
        if not custom:
            return list(DEFAULT_LEAVE_TYPES)
        return [
            LeaveTypeView(name=t.name, color=t.color, leave_type_id=t.leave_type_id)
            for t in custom
        ]

    async def add_type(
        self, org_id: UUID, name: str, color: str | None = None
    ) -> LeaveType:
        """Create a custom leave type. Raises DuplicateLeaveType on name clash."""
        leave_type = LeaveType(
            org_id=org_id,
            name=name.strip(),
            color=color or DEFAULT_LEAVE_TYPE_COLOR,
        )
        self.session.add(leave_type)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateLeaveType(name.strip()) from e
        return leave_type

    async def delete_type(self, org_id: UUID, leave_type_id: UUID) -> None:
        """Remove a custom leave type; existing requests keep their type name."""
        await self.session.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.org_id == org_id,
                LeaveRequest.leave_type_id == leave_type_id,
            )
            .values(leave_type_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(LeaveType).where(
                LeaveType.leave_type_id == leave_type_id,
                LeaveType.org_id == org_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Leave type", leave_type_id)
