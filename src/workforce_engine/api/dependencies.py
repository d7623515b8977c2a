"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.database import init_db


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back on close.
    """
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def _parse_uuid_header(value: str | None, header: str) -> UUID:
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header} header is required",
        )
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header} format",
        ) from None


async def get_org_id(x_org_id: Annotated[str | None, Header()] = None) -> UUID:
    """Extract the organization from the header set by the auth layer."""
    return _parse_uuid_header(x_org_id, "X-Org-ID")


async def get_actor_id(
    x_employee_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Extract the acting employee from the header set by the auth layer."""
    return _parse_uuid_header(x_employee_id, "X-Employee-ID")


async def get_optional_actor_id(
    x_employee_id: Annotated[str | None, Header()] = None,
) -> UUID | None:
    """Acting employee when the route does not require one."""
    if not x_employee_id:
        return None
    return _parse_uuid_header(x_employee_id, "X-Employee-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
OrgId = Annotated[UUID, Depends(get_org_id)]
ActorId = Annotated[UUID, Depends(get_actor_id)]
OptionalActorId = Annotated[UUID | None, Depends(get_optional_actor_id)]
