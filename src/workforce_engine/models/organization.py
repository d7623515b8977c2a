"""Organization (tenancy root) and employee reference models."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workforce_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from workforce_engine.models.attendance import AttendanceSession


class Organization(Base, TimestampMixin):
    """Multi-tenant container; also carries the payroll policy."""

    __tablename__ = "organization"

    org_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)

    # Payroll policy: expected-hours baseline
    standard_daily_hours: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), nullable=False, default=Decimal("8.00")
    )
    workweek: Mapped[str] = mapped_column(
        String, nullable=False, default="mon,tue,wed,thu,fri"
    )
    timezone: Mapped[str] = mapped_column(String, nullable=False, default="UTC")
    default_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MYR")

    __table_args__ = (
        CheckConstraint(
            "standard_daily_hours >= 0 AND standard_daily_hours <= 24",
            name="organization_daily_hours_check",
        ),
    )

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="organization")


class Employee(Base, TimestampMixin):
    """Organization-scoped employee identity (not the auth principal)."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization.org_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    department_id: Mapped[UUID | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")

    __table_args__ = (
        UniqueConstraint("org_id", "email", name="employee_org_email_unique"),
        # Target of the composite foreign keys that pin references to one tenant
        UniqueConstraint("org_id", "employee_id", name="employee_org_employee_unique"),
        CheckConstraint(
            "status IN ('active', 'terminated', 'on_leave')",
            name="employee_status_check",
        ),
    )

    # Relationships
    organization: Mapped[Organization] = relationship(back_populates="employees")
    attendance_sessions: Mapped[list[AttendanceSession]] = relationship(
        back_populates="employee"
    )
