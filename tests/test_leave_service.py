"""Tests for the leave request workflow."""

from __future__ import annotations

import asyncio
from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.errors import (
    AlreadyReviewed,
    DuplicateLeaveType,
    InvalidRange,
    NotFoundError,
)
from workforce_engine.models import Employee, Organization
from workforce_engine.services.leave_service import DEFAULT_LEAVE_TYPES, LeaveService
from workforce_engine.services.state_machine import InvalidTransitionError

from tests.conftest import utc


class TestSubmit:
    async def test_submit_creates_pending(self, session: AsyncSession, org, alice):
        request = await LeaveService(session).submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2024, 1, 2), date(2024, 1, 3)
        )
        await session.commit()

        assert request.status == "pending"
        assert request.reviewed_by is None
        assert request.leave_type_id is None

    async def test_reversed_dates_rejected(self, session: AsyncSession, org, alice):
        service = LeaveService(session)

        with pytest.raises(InvalidRange):
            await service.submit(
                org.org_id, alice.employee_id, "Annual Leave", date(2024, 1, 3), date(2024, 1, 2)
            )

        assert await service.for_employee(org.org_id, alice.employee_id) == []

    async def test_single_day_allowed(self, session: AsyncSession, org, alice):
        request = await LeaveService(session).submit(
            org.org_id, alice.employee_id, "Sick Leave", date(2024, 1, 2), date(2024, 1, 2)
        )
        assert request.covers(date(2024, 1, 2))

    async def test_links_custom_type_by_name(self, session: AsyncSession, org, alice):
        service = LeaveService(session)
        leave_type = await service.add_type(org.org_id, "Study Leave")
        await session.commit()

        request = await service.submit(
            org.org_id, alice.employee_id, "Study Leave", date(2024, 1, 2), date(2024, 1, 2)
        )

        assert request.leave_type_id == leave_type.leave_type_id

    async def test_submit_for_employee_of_other_org(self, session: AsyncSession, org, stranger):
        service = LeaveService(session)

        with pytest.raises(NotFoundError):
            await service.submit(
                org.org_id, stranger.employee_id, "Annual Leave", date(2024, 1, 2), date(2024, 1, 2)
            )

        assert await service.all_for_org(org.org_id) == []


class TestReview:
    async def _pending(self, session, org, alice):
        request = await LeaveService(session).submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2024, 1, 2), date(2024, 1, 3)
        )
        await session.commit()
        return request

    async def test_approve(self, session: AsyncSession, org, alice, bob):
        request = await self._pending(session, org, alice)

        reviewed = await LeaveService(session).review(
            org.org_id, request.leave_request_id, "approved", bob.employee_id,
            now=utc(2024, 1, 1, 12),
        )
        await session.commit()

        assert reviewed.status == "approved"
        assert reviewed.reviewed_by == bob.employee_id
        assert reviewed.reviewed_at is not None

    async def test_second_review_rejected(self, session: AsyncSession, org, alice, bob):
        request = await self._pending(session, org, alice)
        service = LeaveService(session)
        await service.review(org.org_id, request.leave_request_id, "rejected", bob.employee_id)
        await session.commit()

        with pytest.raises(AlreadyReviewed) as exc_info:
            await service.review(org.org_id, request.leave_request_id, "approved", bob.employee_id)

        assert exc_info.value.status == "rejected"
        current = await service.get(org.org_id, request.leave_request_id)
        assert current.status == "rejected"

    async def test_invalid_decision(self, session: AsyncSession, org, alice, bob):
        request = await self._pending(session, org, alice)

        with pytest.raises(InvalidTransitionError):
            await LeaveService(session).review(
                org.org_id, request.leave_request_id, "pending", bob.employee_id
            )

    async def test_unknown_request(self, session: AsyncSession, org, bob):
        with pytest.raises(NotFoundError):
            await LeaveService(session).review(org.org_id, uuid4(), "approved", bob.employee_id)

    async def test_other_org_cannot_review(
        self, session: AsyncSession, org, other_org, alice, bob
    ):
        request = await self._pending(session, org, alice)

        with pytest.raises(NotFoundError):
            await LeaveService(session).review(
                other_org.org_id, request.leave_request_id, "approved", bob.employee_id
            )

    async def test_reviewer_from_other_org_rejected(
        self, session: AsyncSession, org, alice, stranger
    ):
        request = await self._pending(session, org, alice)
        service = LeaveService(session)

        with pytest.raises(NotFoundError):
            await service.review(
                org.org_id, request.leave_request_id, "approved", stranger.employee_id
            )

        current = await service.get(org.org_id, request.leave_request_id)
        assert current.status == "pending"
        assert current.reviewed_by is None


class TestConcurrentReview:
    """Two reviewers racing on one request: exactly one decision sticks."""

    async def test_exactly_one_review_succeeds(self, file_session_factory):
        factory = file_session_factory
        org_id = uuid4()
        employee_id, first_reviewer, second_reviewer = uuid4(), uuid4(), uuid4()
        async with factory() as setup:
            setup.add(Organization(org_id=org_id, name="Race Co"))
            for employee, name in (
                (employee_id, "Requester"),
                (first_reviewer, "Reviewer One"),
                (second_reviewer, "Reviewer Two"),
            ):
                setup.add(Employee(employee_id=employee, org_id=org_id, display_name=name))
            await setup.flush()
            request = await LeaveService(setup).submit(
                org_id, employee_id, "Annual Leave", date(2024, 1, 2), date(2024, 1, 3)
            )
            await setup.commit()
            request_id = request.leave_request_id

        async def attempt(decision: str, reviewer_id) -> tuple[str, object]:
            async with factory() as session:
                try:
                    await LeaveService(session).review(org_id, request_id, decision, reviewer_id)
                    await session.commit()
                except AlreadyReviewed:
                    return ("already_reviewed", None)
                return (decision, reviewer_id)

        outcomes = await asyncio.gather(
            attempt("approved", first_reviewer),
            attempt("rejected", second_reviewer),
        )

        winners = [o for o in outcomes if o[0] != "already_reviewed"]
        assert len(winners) == 1
        assert [o[0] for o in outcomes].count("already_reviewed") == 1

        async with factory() as check:
            final = await LeaveService(check).get(org_id, request_id)
        # The stored decision is the winner's, never overwritten by the loser
        assert (final.status, final.reviewed_by) == winners[0]


class TestQueries:
    async def test_pending_queue_excludes_reviewed(self, session: AsyncSession, org, alice, bob):
        service = LeaveService(session)
        first = await service.submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2024, 1, 2), date(2024, 1, 2)
        )
        second = await service.submit(
            org.org_id, bob.employee_id, "Sick Leave", date(2024, 1, 4), date(2024, 1, 4)
        )
        await service.review(org.org_id, first.leave_request_id, "approved", bob.employee_id)
        await session.commit()

        pending = await service.pending_for(org.org_id)

        assert [r.leave_request_id for r in pending] == [second.leave_request_id]

    async def test_approved_overlapping(self, session: AsyncSession, org, alice, bob):
        service = LeaveService(session)
        inside = await service.submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2023, 12, 30), date(2024, 1, 2)
        )
        outside = await service.submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2024, 2, 1), date(2024, 2, 2)
        )
        await service.submit(
            org.org_id, alice.employee_id, "Annual Leave", date(2024, 1, 3), date(2024, 1, 3)
        )
        for request in (inside, outside):
            await service.review(org.org_id, request.leave_request_id, "approved", bob.employee_id)
        await session.commit()

        approved = await service.approved_overlapping(
            org.org_id, date(2024, 1, 1), date(2024, 1, 31)
        )

        assert [r.leave_request_id for r in approved] == [inside.leave_request_id]


class TestLeaveTypes:
    async def test_defaults_when_none_configured(self, session: AsyncSession, org):
        types = await LeaveService(session).list_types(org.org_id)

        assert types == list(DEFAULT_LEAVE_TYPES)
        assert all(t.is_default for t in types)

    async def test_custom_types_replace_defaults(self, session: AsyncSession, org):
        service = LeaveService(session)
        await service.add_type(org.org_id, "Study Leave", "#123456")
        await session.commit()

        types = await service.list_types(org.org_id)

        assert [(t.name, t.color, t.is_default) for t in types] == [
            ("Study Leave", "#123456", False)
        ]

    async def test_default_color(self, session: AsyncSession, org):
        leave_type = await LeaveService(session).add_type(org.org_id, "Wedding Leave")
        assert leave_type.color == "#6366f1"

    async def test_duplicate_name_rejected(self, session: AsyncSession, org):
        service = LeaveService(session)
        await service.add_type(org.org_id, "Study Leave")
        await session.commit()

        with pytest.raises(DuplicateLeaveType):
            await service.add_type(org.org_id, "Study Leave")

    async def test_delete_keeps_requests(self, session: AsyncSession, org, alice):
        service = LeaveService(session)
        leave_type = await service.add_type(org.org_id, "Study Leave")
        await session.commit()
        request = await service.submit(
            org.org_id, alice.employee_id, "Study Leave", date(2024, 1, 2), date(2024, 1, 2)
        )
        await session.commit()

        await service.delete_type(org.org_id, leave_type.leave_type_id)
        await session.commit()

        current = await service.get(org.org_id, request.leave_request_id)
        assert current.leave_type == "Study Leave"
        assert current.leave_type_id is None

    async def test_delete_unknown_type(self, session: AsyncSession, org):
        with pytest.raises(NotFoundError):
            await LeaveService(session).delete_type(org.org_id, uuid4())
