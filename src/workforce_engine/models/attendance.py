"""Attendance session model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, ForeignKeyConstraint, Index, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.organization import Employee


class AttendanceSession(Base, TimestampMixin):
    """One clock-in/clock-out pair. ``clock_out`` is NULL while open."""

    __tablename__ = "attendance_session"

    session_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    clock_in: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        ForeignKeyConstraint(
            ["org_id", "employee_id"],
            ["employee.org_id", "employee.employee_id"],
            ondelete="CASCADE",
            name="attendance_session_employee_fk",
        ),
        # At most one open session per (org, employee)
        Index(
            "attendance_one_open_session",
            "org_id",
            "employee_id",
            unique=True,
            postgresql_where=text("clock_out IS NULL"),
            sqlite_where=text("clock_out IS NULL"),
        ),
        Index("attendance_org_employee_clock_in", "org_id", "employee_id", "clock_in"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="attendance_sessions")

    @property
    def is_open(self) -> bool:
        """Session has not been clocked out yet."""
        return self.clock_out is None
