"""Pytest fixtures for workforce engine tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workforce_engine.calculators import (
    Adjustments,
    PayslipInputs,
    SalaryTerms,
    SessionSpan,
    WorkPolicy,
    parse_workweek,
    period_window,
)
from workforce_engine.database import make_session_factory
from workforce_engine.models import Base, Employee, Organization, SalaryConfig

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """Aware UTC datetime shorthand."""
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite only enforces foreign keys when asked to, per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_inputs(
    sessions: tuple[SessionSpan, ...] = (),
    start: date = MONDAY,
    end: date = MONDAY,
    base_salary: str = "3000.00",
    hourly_rate: str = "20.00",
    daily_hours: str = "8.00",
    adjustments: Adjustments | None = None,
    **kwargs,
) -> PayslipInputs:
    """Calculator inputs for a UTC, Monday-to-Friday organization."""
    policy = WorkPolicy(
        standard_daily_hours=Decimal(daily_hours),
        workdays=parse_workweek("mon,tue,wed,thu,fri"),
        tz=timezone.utc,
    )
    return PayslipInputs(
        period_id=kwargs.pop("period_id", UUID("00000000-0000-0000-0000-000000000001")),
        employee_id=kwargs.pop("employee_id", UUID("00000000-0000-0000-0000-0000000000aa")),
        window=period_window(start, end, policy.tz),
        policy=policy,
        salary=SalaryTerms(
            base_salary=Decimal(base_salary),
            hourly_rate=Decimal(hourly_rate),
            currency="MYR",
        ),
        sessions=sessions,
        adjustments=adjustments or Adjustments(),
        **kwargs,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite: concurrent sessions get their own connections.

    The busy timeout makes a second writer wait for the first to commit.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'race.db'}",
        connect_args={"timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield make_session_factory(engine)

    await engine.dispose()


# Fixture rows are committed: services roll back the session after an
# IntegrityError, which would otherwise discard them.


@pytest_asyncio.fixture
async def org(session: AsyncSession) -> Organization:
    """Create a test organization with the default policy."""
    organization = Organization(org_id=uuid4(), name="Acme Sdn Bhd")
    session.add(organization)
    await session.commit()
    return organization


@pytest_asyncio.fixture
async def other_org(session: AsyncSession) -> Organization:
    """A second tenant, for isolation checks."""
    organization = Organization(org_id=uuid4(), name="Other Co")
    session.add(organization)
    await session.commit()
    return organization


@pytest_asyncio.fixture
async def alice(session: AsyncSession, org: Organization) -> Employee:
    employee = Employee(
        employee_id=uuid4(),
        org_id=org.org_id,
        display_name="Alice Tan",
        email="alice@example.com",
    )
    session.add(employee)
    await session.commit()
    return employee


@pytest_asyncio.fixture
async def bob(session: AsyncSession, org: Organization) -> Employee:
    employee = Employee(
        employee_id=uuid4(),
        org_id=org.org_id,
        display_name="Bob Lim",
        email="bob@example.com",
    )
    session.add(employee)
    await session.commit()
    return employee


@pytest_asyncio.fixture
async def alice_salary(
    session: AsyncSession, org: Organization, alice: Employee
) -> SalaryConfig:
    """3000.00 MYR base, 20.00 MYR/hr overtime."""
    config = SalaryConfig(
        org_id=org.org_id,
        employee_id=alice.employee_id,
        base_salary=Decimal("3000.00"),
        hourly_rate=Decimal("20.00"),
        currency="MYR",
        effective_date=date(2023, 12, 1),
    )
    session.add(config)
    await session.commit()
    return config


@pytest_asyncio.fixture
async def stranger(session: AsyncSession, other_org: Organization) -> Employee:
    """An employee of the other tenant."""
    employee = Employee(
        employee_id=uuid4(),
        org_id=other_org.org_id,
        display_name="Sam Outsider",
        email="sam@other.example.com",
    )
    session.add(employee)
    await session.commit()
    return employee
