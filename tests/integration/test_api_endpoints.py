"""Integration tests for API endpoints."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from workforce_engine.api.app import create_app
from workforce_engine.api.dependencies import get_db_session
from workforce_engine.database import make_session_factory
from workforce_engine.models import AttendanceSession

from tests.conftest import TEST_DATABASE_URL, utc
from tests.integration.conftest import headers


async def work_two_nine_hour_days(session, org, employee):
    for day in (1, 2):
        session.add(
            AttendanceSession(
                org_id=org.org_id,
                employee_id=employee.employee_id,
                clock_in=utc(2024, 1, day, 8),
                clock_out=utc(2024, 1, day, 17),
            )
        )
    await session.commit()


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["missing_tables"] == []

    async def test_readiness_reports_missing_schema(self):
        # Database reachable but init-db never ran
        engine = create_async_engine(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        factory = make_session_factory(engine)
        application = create_app()

        async def override_db_session():
            async with factory() as session:
                yield session

        application.dependency_overrides[get_db_session] = override_db_session
        try:
            transport = ASGITransport(app=application)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/ready")
        finally:
            await engine.dispose()

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "not_ready"
        assert set(body["missing_tables"]) == {
            "attendance_session",
            "salary_config",
            "payroll_period",
            "payslip",
        }

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestIdentityHeaders:
    async def test_missing_org_header(self, client: AsyncClient):
        response = await client.get("/api/v1/periods")

        assert response.status_code == 400
        assert "X-Org-ID" in response.json()["detail"]

    async def test_malformed_org_header(self, client: AsyncClient):
        response = await client.get("/api/v1/periods", headers={"X-Org-ID": "not-a-uuid"})

        assert response.status_code == 400

    async def test_clock_in_requires_employee(self, client: AsyncClient, org):
        response = await client.post(
            "/api/v1/attendance/clock-in", headers=headers(org.org_id)
        )

        assert response.status_code == 400
        assert "X-Employee-ID" in response.json()["detail"]


class TestAttendanceEndpoints:
    async def test_clock_in_then_out(self, client: AsyncClient, org, alice):
        h = headers(org.org_id, alice.employee_id)

        response = await client.post(
            "/api/v1/attendance/clock-in", headers=h, json={"notes": "office"}
        )
        assert response.status_code == 201
        opened = response.json()
        assert opened["clock_out"] is None
        assert opened["notes"] == "office"

        response = await client.get("/api/v1/attendance/status", headers=h)
        assert response.json()["clocked_in"] is True

        response = await client.post("/api/v1/attendance/clock-out", headers=h)
        assert response.status_code == 200
        closed = response.json()
        assert closed["session_id"] == opened["session_id"]
        assert closed["clock_out"] is not None

        response = await client.get("/api/v1/attendance/status", headers=h)
        assert response.json() == {"clocked_in": False, "clock_in": None, "session": None}

    async def test_double_clock_in_conflict(self, client: AsyncClient, org, alice):
        h = headers(org.org_id, alice.employee_id)
        await client.post("/api/v1/attendance/clock-in", headers=h)

        response = await client.post("/api/v1/attendance/clock-in", headers=h)

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_CLOCKED_IN"

    async def test_clock_out_without_session(self, client: AsyncClient, org, alice):
        response = await client.post(
            "/api/v1/attendance/clock-out", headers=headers(org.org_id, alice.employee_id)
        )

        assert response.status_code == 409
        assert response.json()["code"] == "NO_OPEN_SESSION"

    async def test_unknown_employee_not_found(self, client: AsyncClient, org):
        response = await client.post(
            "/api/v1/attendance/clock-in", headers=headers(org.org_id, uuid4())
        )

        assert response.status_code == 404

    async def test_employee_of_other_org_not_found(self, client: AsyncClient, org, stranger):
        response = await client.post(
            "/api/v1/attendance/clock-in", headers=headers(org.org_id, stranger.employee_id)
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_team_view_for_today(self, client: AsyncClient, org, alice, bob):
        await client.post(
            "/api/v1/attendance/clock-in", headers=headers(org.org_id, alice.employee_id)
        )

        response = await client.get(
            "/api/v1/attendance/team",
            headers=headers(org.org_id),
            params={"day": datetime.now(timezone.utc).date().isoformat()},
        )

        assert response.status_code == 200
        rows = response.json()
        assert [r["display_name"] for r in rows] == ["Alice Tan"]


class TestLeaveEndpoints:
    async def test_submit_and_review(self, client: AsyncClient, org, alice, bob):
        response = await client.post(
            "/api/v1/leave",
            headers=headers(org.org_id, alice.employee_id),
            json={
                "leave_type": "Annual Leave",
                "start_date": "2024-01-02",
                "end_date": "2024-01-03",
                "reason": "Family trip",
            },
        )
        assert response.status_code == 201
        request_id = response.json()["leave_request_id"]
        assert response.json()["status"] == "pending"

        response = await client.get("/api/v1/leave/pending", headers=headers(org.org_id))
        assert [r["leave_request_id"] for r in response.json()] == [request_id]

        review_url = f"/api/v1/leave/{request_id}/review"
        response = await client.put(
            review_url,
            headers=headers(org.org_id, bob.employee_id),
            json={"status": "approved"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewed_by"] == str(bob.employee_id)

        response = await client.put(
            review_url,
            headers=headers(org.org_id, bob.employee_id),
            json={"status": "rejected"},
        )
        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_REVIEWED"

    async def test_review_rejects_unknown_decision(self, client: AsyncClient, org, alice):
        response = await client.post(
            "/api/v1/leave",
            headers=headers(org.org_id, alice.employee_id),
            json={"leave_type": "Sick Leave", "start_date": "2024-01-02", "end_date": "2024-01-02"},
        )

        response = await client.put(
            f"/api/v1/leave/{response.json()['leave_request_id']}/review",
            headers=headers(org.org_id, alice.employee_id),
            json={"status": "pending"},
        )

        assert response.status_code == 400

    async def test_reversed_range_rejected(self, client: AsyncClient, org, alice):
        response = await client.post(
            "/api/v1/leave",
            headers=headers(org.org_id, alice.employee_id),
            json={"leave_type": "Annual Leave", "start_date": "2024-01-05", "end_date": "2024-01-01"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_RANGE"

    async def test_default_leave_types(self, client: AsyncClient, org):
        response = await client.get("/api/v1/leave-types", headers=headers(org.org_id))

        assert response.status_code == 200
        names = [t["name"] for t in response.json()]
        assert "Annual Leave" in names
        assert all(t["is_default"] for t in response.json())

    async def test_custom_leave_type_replaces_defaults(self, client: AsyncClient, org):
        response = await client.post(
            "/api/v1/leave-types",
            headers=headers(org.org_id),
            json={"name": "Study Leave", "color": "#112233"},
        )
        assert response.status_code == 201

        response = await client.post(
            "/api/v1/leave-types", headers=headers(org.org_id), json={"name": "Study Leave"}
        )
        assert response.status_code == 409

        response = await client.get("/api/v1/leave-types", headers=headers(org.org_id))
        assert [t["name"] for t in response.json()] == ["Study Leave"]


class TestSalaryEndpoints:
    async def test_set_and_list(self, client: AsyncClient, org, alice, bob):
        response = await client.post(
            "/api/v1/salaries",
            headers=headers(org.org_id),
            json={
                "employee_id": str(alice.employee_id),
                "base_salary": "3000",
                "hourly_rate": "20",
                "effective_date": "2023-12-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["base_salary"] == "3000.00"
        assert data["currency"] == "MYR"

        response = await client.get("/api/v1/salaries", headers=headers(org.org_id))
        assert [c["employee_name"] for c in response.json()] == ["Alice Tan"]

        response = await client.get("/api/v1/salaries/missing", headers=headers(org.org_id))
        assert [e["display_name"] for e in response.json()] == ["Bob Lim"]

    async def test_negative_salary_rejected(self, client: AsyncClient, org, alice):
        response = await client.post(
            "/api/v1/salaries",
            headers=headers(org.org_id),
            json={"employee_id": str(alice.employee_id), "base_salary": "-1"},
        )

        assert response.status_code == 422


class TestPeriodEndpoints:
    async def create_period(self, client: AsyncClient, org, name="Week 1",
                            start="2024-01-01", end="2024-01-02"):
        response = await client.post(
            "/api/v1/periods",
            headers=headers(org.org_id),
            json={"name": name, "start_date": start, "end_date": end},
        )
        assert response.status_code == 201
        return response.json()

    async def test_full_lifecycle(self, client: AsyncClient, session, org, alice, alice_salary):
        await work_two_nine_hour_days(session, org, alice)
        period = await self.create_period(client, org)
        assert period["status"] == "open"
        base = f"/api/v1/periods/{period['period_id']}"

        response = await client.post(f"{base}/generate", headers=headers(org.org_id))
        assert response.status_code == 200
        summary = response.json()
        assert summary["status"] == "generated"
        assert summary["payslips_written"] == 1
        assert summary["totals"]["MYR"]["net_pay"] == "3040.00"

        response = await client.get(f"{base}/payslips", headers=headers(org.org_id))
        payslip = response.json()[0]
        assert payslip["employee_name"] == "Alice Tan"
        assert payslip["hours_worked"] == "18.00"
        assert payslip["overtime_pay"] == "40.00"
        assert payslip["net_pay"] == "3040.00"

        response = await client.put(
            f"/api/v1/payslips/{payslip['payslip_id']}",
            headers=headers(org.org_id),
            json={"bonuses": "100", "deductions": "50.5"},
        )
        assert response.status_code == 200
        assert response.json()["net_pay"] == "3089.50"

        response = await client.post(f"{base}/finalize", headers=headers(org.org_id))
        assert response.status_code == 200
        assert response.json()["status"] == "finalized"
        assert response.json()["finalized_at"] is not None

        response = await client.post(f"{base}/generate", headers=headers(org.org_id))
        assert response.status_code == 409
        assert response.json()["code"] == "PERIOD_FINALIZED"

        response = await client.put(
            f"/api/v1/payslips/{payslip['payslip_id']}",
            headers=headers(org.org_id),
            json={"bonuses": "1"},
        )
        assert response.status_code == 409

        response = await client.delete(base, headers=headers(org.org_id))
        assert response.status_code == 409

        response = await client.get(
            "/api/v1/my-payslips", headers=headers(org.org_id, alice.employee_id)
        )
        mine = response.json()
        assert len(mine) == 1
        assert mine[0]["period_status"] == "finalized"
        assert mine[0]["net_pay"] == "3089.50"

    async def test_finalize_without_payslips(self, client: AsyncClient, org):
        period = await self.create_period(client, org)
        base = f"/api/v1/periods/{period['period_id']}"

        response = await client.post(f"{base}/generate", headers=headers(org.org_id))
        assert response.json()["payslips_written"] == 0

        response = await client.post(f"{base}/finalize", headers=headers(org.org_id))
        assert response.status_code == 409
        assert response.json()["code"] == "NO_PAYSLIPS_GENERATED"

    async def test_overlap_rejected(self, client: AsyncClient, org):
        existing = await self.create_period(client, org)

        response = await client.post(
            "/api/v1/periods",
            headers=headers(org.org_id),
            json={"name": "Clash", "start_date": "2024-01-02", "end_date": "2024-01-09"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_RANGE"
        assert body["context"]["period_id"] == existing["period_id"]

    async def test_list_includes_payslip_counts(self, client: AsyncClient, org, alice, alice_salary):
        first = await self.create_period(client, org)
        await self.create_period(client, org, name="Week 2", start="2024-01-08", end="2024-01-12")
        await client.post(
            f"/api/v1/periods/{first['period_id']}/generate", headers=headers(org.org_id)
        )

        response = await client.get("/api/v1/periods", headers=headers(org.org_id))

        assert [(p["name"], p["payslip_count"]) for p in response.json()] == [
            ("Week 2", 0),
            ("Week 1", 1),
        ]

    async def test_other_org_cannot_see_period(self, client: AsyncClient, org, other_org):
        period = await self.create_period(client, org)

        response = await client.get(
            f"/api/v1/periods/{period['period_id']}", headers=headers(other_org.org_id)
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_delete_open_period(self, client: AsyncClient, org):
        period = await self.create_period(client, org)
        base = f"/api/v1/periods/{period['period_id']}"

        response = await client.delete(base, headers=headers(org.org_id))
        assert response.status_code == 204

        response = await client.get(base, headers=headers(org.org_id))
        assert response.status_code == 404


class TestPolicyEndpoints:
    async def test_read_and_update(self, client: AsyncClient, org):
        response = await client.get("/api/v1/policy", headers=headers(org.org_id))
        assert response.status_code == 200
        assert response.json()["standard_daily_hours"] == "8.00"
        assert response.json()["workweek"] == "mon,tue,wed,thu,fri"

        response = await client.put(
            "/api/v1/policy",
            headers=headers(org.org_id),
            json={"standard_daily_hours": "7.5", "workweek": "mon,tue,wed,thu,fri,sat"},
        )

        assert response.status_code == 200
        assert response.json()["standard_daily_hours"] == "7.50"
        assert response.json()["workweek"] == "mon,tue,wed,thu,fri,sat"

    @pytest.mark.parametrize("payload", [{"timezone": "Mars/Olympus"}, {"workweek": "funday"}])
    async def test_invalid_policy_rejected(self, client: AsyncClient, org, payload):
        response = await client.put("/api/v1/policy", headers=headers(org.org_id), json=payload)

        assert response.status_code == 400
