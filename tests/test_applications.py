"""Application test suite — employee requests and manager/admin review."""

from __future__ import annotations

from tests.conftest import headers_for


def _application(**overrides) -> dict:
    payload = {
        "title": "Family trip",
        "reason": "Annual vacation",
        "application_type": "leave_request",
        "start_date": "2026-07-01",
        "end_date": "2026-07-05",
    }
    payload.update(overrides)
    return payload


async def _submit(client, headers, **overrides):
    resp = await client.post("/api/employee/applications", json=_application(**overrides), headers=headers)
    assert resp.status_code == 201
    return resp.json()


# ═════════════════════════════════════════════════════════════════════
# 1. EMPLOYEE
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeApplications:
    async def test_submit(self, client, employee, employee_headers, department):
        body = await _submit(client, employee_headers)

        assert body["status"] == "pending"
        assert body["user_id"] == str(employee["id"])
        assert body["department_id"] == str(department["id"])
        assert body["total_days"] == 5

    async def test_start_must_precede_end(self, client, employee_headers):
        resp = await client.post(
            "/api/employee/applications",
            json=_application(start_date="2026-07-05", end_date="2026-07-05"),
            headers=employee_headers,
        )

        assert resp.status_code == 400
        assert "end_date" in resp.json()["errors"]

    async def test_submission_notifies_applicant_and_manager(self, client, employee_headers, manager_headers):
        await _submit(client, employee_headers)

        mine = await client.get("/api/shared/notifications/unread-count", headers=employee_headers)
        theirs = await client.get("/api/shared/notifications/unread-count", headers=manager_headers)

        assert mine.json()["data"]["count"] == 1
        assert theirs.json()["data"]["count"] == 1

    async def test_edit_pending(self, client, employee_headers):
        created = await _submit(client, employee_headers)

        resp = await client.put(
            f"/api/employee/applications/{created['id']}",
            json={"end_date": "2026-07-10"},
            headers=employee_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["total_days"] == 10

    async def test_edit_with_inverted_dates_is_400(self, client, employee_headers):
        created = await _submit(client, employee_headers)

        resp = await client.put(
            f"/api/employee/applications/{created['id']}",
            json={"end_date": "2026-06-01"},
            headers=employee_headers,
        )

        assert resp.status_code == 400

    async def test_edit_non_pending_is_403(self, client, employee_headers, manager_headers):
        created = await _submit(client, employee_headers)
        await client.put(f"/api/manager/applications/{created['id']}/approve", headers=manager_headers)

        resp = await client.put(
            f"/api/employee/applications/{created['id']}",
            json={"title": "Changed"},
            headers=employee_headers,
        )

        assert resp.status_code == 403

    async def test_delete_non_pending_is_403(self, client, employee_headers, manager_headers):
        created = await _submit(client, employee_headers)
        await client.put(
            f"/api/manager/applications/{created['id']}/reject",
            json={"rejection_reason": "Release week"},
            headers=manager_headers,
        )

        resp = await client.delete(f"/api/employee/applications/{created['id']}", headers=employee_headers)

        assert resp.status_code == 403

    async def test_delete_pending(self, client, employee_headers):
        created = await _submit(client, employee_headers)

        resp = await client.delete(f"/api/employee/applications/{created['id']}", headers=employee_headers)

        assert resp.status_code == 204

    async def test_cannot_read_someone_elses(self, client, employee_headers, outsider_headers):
        created = await _submit(client, outsider_headers)

        resp = await client.get(f"/api/employee/applications/{created['id']}", headers=employee_headers)

        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 2. REVIEW
# ═════════════════════════════════════════════════════════════════════


class TestReview:
    async def test_manager_approves(self, client, manager, employee_headers, manager_headers):
        created = await _submit(client, employee_headers)

        resp = await client.put(
            f"/api/manager/applications/{created['id']}/approve", headers=manager_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["approved_by"] == str(manager["id"])

    async def test_manager_rejects_with_reason(self, client, employee_headers, manager_headers):
        created = await _submit(client, employee_headers)

        resp = await client.put(
            f"/api/manager/applications/{created['id']}/reject",
            json={"rejection_reason": "Release week"},
            headers=manager_headers,
        )

        assert resp.json()["status"] == "rejected"
        assert resp.json()["rejection_reason"] == "Release week"

    async def test_cannot_decide_twice(self, client, employee_headers, manager_headers):
        created = await _submit(client, employee_headers)
        url = f"/api/manager/applications/{created['id']}/approve"
        await client.put(url, headers=manager_headers)

        resp = await client.put(url, headers=manager_headers)

        assert resp.status_code == 400

    async def test_manager_cannot_review_other_department(self, client, outsider_headers, manager_headers):
        created = await _submit(client, outsider_headers)

        resp = await client.put(
            f"/api/manager/applications/{created['id']}/approve", headers=manager_headers,
        )

        assert resp.status_code == 403

    async def test_manager_cannot_review_own(self, client, db, manager):
        headers = await headers_for(db, manager)
        created = await _submit(client, headers)

        resp = await client.put(f"/api/manager/applications/{created['id']}/approve", headers=headers)

        assert resp.status_code == 403

    async def test_admin_reviews_any_department(self, client, admin_headers, outsider_headers):
        created = await _submit(client, outsider_headers)

        resp = await client.put(
            f"/api/admin/applications/{created['id']}/approve", headers=admin_headers,
        )

        assert resp.json()["status"] == "approved"

    async def test_approved_leave_shows_in_leave_check(self, client, admin_headers, employee, employee_headers):
        created = await _submit(client, employee_headers)
        await client.put(f"/api/admin/applications/{created['id']}/approve", headers=admin_headers)

        resp = await client.get(
            f"/api/admin/attendance/leave-check/{employee['id']}?date=2026-07-03",
            headers=admin_headers,
        )

        assert resp.json()["on_leave"] is True
        assert resp.json()["application_id"] == created["id"]

    async def test_admin_filters_by_status(self, client, admin_headers, employee_headers, outsider_headers):
        first = await _submit(client, employee_headers)
        await _submit(client, outsider_headers)
        await client.put(f"/api/admin/applications/{first['id']}/approve", headers=admin_headers)

        resp = await client.get("/api/admin/applications?status=pending", headers=admin_headers)

        assert resp.json()["meta"]["total"] == 1
