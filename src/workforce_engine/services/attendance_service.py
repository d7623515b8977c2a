"""Attendance session store: clock-in, clock-out, and session queries."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.calendar import as_utc, period_window
from workforce_engine.errors import AlreadyClockedIn, NoOpenSession, NotFoundError
from workforce_engine.models import AttendanceSession, Employee
from workforce_engine.models.base import utcnow
from workforce_engine.services.policy_service import PolicyService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockStatus:
    """Whether an employee is clocked in, and since when."""

    clocked_in: bool
    session: AttendanceSession | None = None

    @property
    def clock_in(self) -> datetime | None:
        return self.session.clock_in if self.session is not None else None


class AttendanceService:
    """Service for attendance sessions.

    The one-open-session rule is enforced by the partial unique index
    ``attendance_one_open_session``; clock-in never checks before inserting.
    Open-session status is always read from the database.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def clock_in(
        self,
        org_id: UUID,
        employee_id: UUID,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Open a session for the employee.

        Raises AlreadyClockedIn if an open session exists.
        """
        record = AttendanceSession(
            org_id=org_id,
            employee_id=employee_id,
            clock_in=as_utc(now or utcnow()),
            clock_out=None,
            notes=notes,
        )
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            if await self.get_open_session(org_id, employee_id) is not None:
                raise AlreadyClockedIn(employee_id) from e
            # Only remaining constraint is the employee foreign key
            raise NotFoundError("Employee", employee_id) from e

        logger.info("Employee %s clocked in (org %s)", employee_id, org_id)
        return record

    async def clock_out(
        self,
        org_id: UUID,
        employee_id: UUID,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Close the employee's open session.

        Raises NoOpenSession if the employee is not clocked in.
        """
        open_session = await self.get_open_session(org_id, employee_id)
        if open_session is None:
            raise NoOpenSession(employee_id)

        values: dict[str, object] = {"clock_out": as_utc(now or utcnow())}
        if notes:
            values["notes"] = notes

        # Conditional update: a concurrent clock-out that got there first wins
        result = await self.session.execute(
            update(AttendanceSession)
            .where(
                AttendanceSession.session_id == open_session.session_id,
                AttendanceSession.clock_out.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NoOpenSession(employee_id)

        await self.session.refresh(open_session)
        logger.info("Employee %s clocked out (org %s)", employee_id, org_id)
        return open_session

    async def get_open_session(
        self, org_id: UUID, employee_id: UUID
    ) -> AttendanceSession | None:
        """The employee's open session, if any."""
        result = await self.session.execute(
            select(AttendanceSession)
            .where(
                AttendanceSession.org_id == org_id,
                AttendanceSession.employee_id == employee_id,
                AttendanceSession.clock_out.is_(None),
            )
            .order_by(AttendanceSession.clock_in.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def status(self, org_id: UUID, employee_id: UUID) -> ClockStatus:
        """Current clock status derived from the store."""
        open_session = await self.get_open_session(org_id, employee_id)
        return ClockStatus(clocked_in=open_session is not None, session=open_session)

    async def sessions_in_range(
        self,
        org_id: UUID,
        employee_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[AttendanceSession]:
        """Sessions whose clock_in lies in [start, end], oldest first.

        Open sessions are included with clock_out None.
        """
        result = await self.session.execute(
            select(AttendanceSession)
            .where(
                AttendanceSession.org_id == org_id,
                AttendanceSession.employee_id == employee_id,
                AttendanceSession.clock_in >= as_utc(start),
                AttendanceSession.clock_in <= as_utc(end),
            )
            .order_by(AttendanceSession.clock_in, AttendanceSession.session_id)
        )
        return list(result.scalars().all())

    async def sessions_by_employee(
        self,
        org_id: UUID,
        start: datetime,
        end: datetime,
    ) -> dict[UUID, list[AttendanceSession]]:
        """All org sessions with clock_in in [start, end), grouped per employee."""
        result = await self.session.execute(
            select(AttendanceSession)
            .where(
                AttendanceSession.org_id == org_id,
                AttendanceSession.clock_in >= as_utc(start),
                AttendanceSession.clock_in < as_utc(end),
            )
            .order_by(
                AttendanceSession.employee_id,
                AttendanceSession.clock_in,
                AttendanceSession.session_id,
            )
        )
        grouped: dict[UUID, list[AttendanceSession]] = defaultdict(list)
        for record in result.scalars().all():
            grouped[record.employee_id].append(record)
        return dict(grouped)

    async def history(
        self,
        org_id: UUID,
        employee_id: UUID,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> list[AttendanceSession]:
        """An employee's own sessions, newest first."""
        query = select(AttendanceSession).where(
            AttendanceSession.org_id == org_id,
            AttendanceSession.employee_id == employee_id,
        )
        if start is not None:
            query = query.where(AttendanceSession.clock_in >= as_utc(start))
        if end is not None:
            query = query.where(AttendanceSession.clock_in <= as_utc(end))

        query = query.order_by(AttendanceSession.clock_in.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def team_day(
        self,
        org_id: UUID,
        day: date,
        department_id: UUID | None = None,
        search: str | None = None,
    ) -> list[tuple[AttendanceSession, Employee]]:
        """Everyone's sessions that started on ``day`` (organization local time)."""
        policy = await PolicyService(self.session).get_policy(org_id)
        window = period_window(day, day, policy.tz)

        query = (
            select(AttendanceSession, Employee)
            .join(Employee, AttendanceSession.employee_id == Employee.employee_id)
            .where(
                AttendanceSession.org_id == org_id,
                AttendanceSession.clock_in >= window.starts_at,
                AttendanceSession.clock_in < window.ends_at,
            )
        )
        if department_id is not None:
            query = query.where(Employee.department_id == department_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Employee.display_name.ilike(pattern), Employee.email.ilike(pattern))
            )

        query = query.order_by(AttendanceSession.clock_in.desc())
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]
