"""Leave type and leave request models."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from workforce_engine.models.base import Base, TimestampMixin

DEFAULT_LEAVE_TYPE_COLOR = "#6366f1"


class LeaveType(Base, TimestampMixin):
    """Organization-defined leave category."""

    __tablename__ = "leave_type"

    leave_type_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DEFAULT_LEAVE_TYPE_COLOR
    )

    __table_args__ = (
        UniqueConstraint("org_id", "name", name="leave_type_org_name_unique"),
    )


class LeaveRequest(Base, TimestampMixin):
    """Employee leave request; reviewed exactly once."""

    __tablename__ = "leave_request"

    leave_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    # Name as submitted; survives deletion of the type itself
    leave_type: Mapped[str] = mapped_column(String(50), nullable=False)
    leave_type_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("leave_type.leave_type_id", ondelete="SET NULL"),
        nullable=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    reviewed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        ForeignKeyConstraint(
            ["org_id", "employee_id"],
            ["employee.org_id", "employee.employee_id"],
            ondelete="CASCADE",
            name="leave_request_employee_fk",
        ),
        # Reviewer must belong to the same organization
        ForeignKeyConstraint(
            ["org_id", "reviewed_by"],
            ["employee.org_id", "employee.employee_id"],
            name="leave_request_reviewer_fk",
        ),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="leave_request_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="leave_request_dates_check"),
        Index("leave_request_org_employee", "org_id", "employee_id"),
        Index("leave_request_org_status", "org_id", "status"),
    )

    def covers(self, day: date) -> bool:
        """True when ``day`` falls inside the requested range."""
        return self.start_date <= day <= self.end_date
