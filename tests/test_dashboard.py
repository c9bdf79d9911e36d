"""Dashboard tests — admin, manager and employee overviews plus role gating."""

from __future__ import annotations

from decimal import Decimal

from hrms.dashboard.service import _build_activity_description


async def _check_in(client, headers):
    resp = await client.post("/api/employee/attendance/check-in", json={}, headers=headers)
    assert resp.status_code == 201


async def _submit_application(client, headers):
    resp = await client.post(
        "/api/employee/applications",
        json={
            "title": "Family trip",
            "reason": "Annual vacation",
            "application_type": "leave_request",
            "start_date": "2026-07-01",
            "end_date": "2026-07-05",
        },
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


# ── Activity descriptions ───────────────────────────────────────────


def test_known_action_description():
    assert _build_activity_description("create", "user", "Ada Admin") == "Ada Admin added a new user"


def test_unknown_action_falls_back_to_entity_label():
    text = _build_activity_description("archive", "salary_component")

    assert text == "System performed 'archive' on salary component"


# ── Admin ───────────────────────────────────────────────────────────


class TestAdminDashboard:
    async def test_headcount_and_expected_attendance(
        self, client, admin_headers, manager, employee, outsider,
    ):
        resp = await client.get("/api/admin/dashboard", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["total_users"] == 4
        roles = {item["role"]: item["count"] for item in body["headcount_by_role"]}
        assert roles["employee"] == 2
        assert roles["manager"] == 1
        assert body["attendance_today"]["expected"] == 3
        assert body["attendance_today"]["not_checked_in"] == 3

    async def test_department_breakdown(self, client, admin_headers, manager, employee, outsider):
        resp = await client.get("/api/admin/dashboard", headers=admin_headers)

        counts = {d["department_name"]: d["count"] for d in resp.json()["department_breakdown"]}
        assert counts == {"Engineering": 2, "Sales": 1}

    async def test_check_in_counts_as_present(self, client, admin_headers, employee_headers):
        await _check_in(client, employee_headers)

        resp = await client.get("/api/admin/dashboard", headers=admin_headers)

        today = resp.json()["attendance_today"]
        assert today["present"] == 1
        assert today["not_checked_in"] == today["expected"] - 1

    async def test_pending_counts(self, client, admin_headers, employee_headers, manager_headers):
        await _submit_application(client, employee_headers)
        await client.post(
            "/api/manager/expenses",
            json={"item_name": "Monitor", "amount": "249.90", "date": "2026-03-05"},
            headers=manager_headers,
        )

        body = (await client.get("/api/admin/dashboard", headers=admin_headers)).json()

        assert body["pending_applications"] == 1
        assert body["pending_expenses"] == 1
        assert body["pending_corrections"] == 0

    async def test_recent_activity_lists_user_creation(self, client, admin, admin_headers):
        await client.post(
            "/api/admin/users",
            json={
                "username": "new.hire",
                "password": "welcome123",
                "full_name": "New Hire",
                "email": "new.hire@example.com",
                "role": "employee",
            },
            headers=admin_headers,
        )

        resp = await client.get("/api/admin/dashboard", headers=admin_headers)

        descriptions = [a["description"] for a in resp.json()["recent_activities"]]
        assert f"{admin['full_name']} added a new user" in descriptions

    async def test_payroll_totals_for_current_month(self, client, admin_headers, employee):
        from hrms.common.timeutils import local_today

        today = local_today()
        await client.post(
            "/api/admin/salary/calculate-user",
            json={"month": today.month, "year": today.year, "user_id": str(employee["id"])},
            headers=admin_headers,
        )

        payroll = (await client.get("/api/admin/dashboard", headers=admin_headers)).json()["payroll"]

        assert payroll["records"] == 1
        assert payroll["calculated"] == 1
        assert Decimal(payroll["total_net"]) > 0

    async def test_non_admin_is_403(self, client, manager_headers, employee_headers):
        for headers in (manager_headers, employee_headers):
            resp = await client.get("/api/admin/dashboard", headers=headers)
            assert resp.status_code == 403


# ── Manager ─────────────────────────────────────────────────────────


class TestManagerDashboard:
    async def test_team_scoped(self, client, department, manager_headers, employee, outsider):
        resp = await client.get("/api/manager/dashboard", headers=manager_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["department_id"] == str(department["id"])
        assert body["department_name"] == "Engineering"
        assert body["team_size"] == 2
        assert body["attendance_today"]["expected"] == 2

    async def test_pending_counts_ignore_other_departments(
        self, client, manager_headers, employee_headers, outsider_headers,
    ):
        await _submit_application(client, employee_headers)
        await _submit_application(client, outsider_headers)

        body = (await client.get("/api/manager/dashboard", headers=manager_headers)).json()

        assert body["pending_applications"] == 1
        assert body["unread_notifications"] == 1

    async def test_employee_is_403(self, client, employee_headers):
        resp = await client.get("/api/manager/dashboard", headers=employee_headers)

        assert resp.status_code == 403


# ── Employee ────────────────────────────────────────────────────────


class TestEmployeeDashboard:
    async def test_fresh_employee(self, client, employee_headers):
        resp = await client.get("/api/employee/dashboard", headers=employee_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["today"]["checked_in"] is False
        assert body["pending_applications"] == 0
        assert body["latest_salary"] is None
        assert body["next_holiday"] is None

    async def test_reflects_own_activity(self, client, admin_headers, employee, employee_headers):
        await _check_in(client, employee_headers)
        await _submit_application(client, employee_headers)
        await client.post(
            "/api/admin/announcements",
            json={"title": "Office move", "description": "New floor on Monday."},
            headers=admin_headers,
        )
        await client.post(
            "/api/admin/salary/calculate-user",
            json={"month": 3, "year": 2026, "user_id": str(employee["id"])},
            headers=admin_headers,
        )

        body = (await client.get("/api/employee/dashboard", headers=employee_headers)).json()

        assert body["today"]["checked_in"] is True
        assert body["pending_applications"] == 1
        assert body["unread_announcements"] == 1
        # application receipt + announcement + salary
        assert body["unread_notifications"] == 3
        assert body["latest_salary"]["month"] == 3

    async def test_admin_may_view_own(self, client, admin_headers):
        resp = await client.get("/api/employee/dashboard", headers=admin_headers)

        assert resp.status_code == 200
