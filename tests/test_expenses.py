"""Expense test suite — department expenses and the admin approval flow.

pending -> approved -> paid, or pending -> rejected. Nothing returns to
pending and only pending expenses can be edited or deleted.
"""

from __future__ import annotations

from decimal import Decimal


def _expense(**overrides) -> dict:
    payload = {"item_name": "Monitor", "amount": "249.90", "date": "2026-03-05", "reason": "Second screen"}
    payload.update(overrides)
    return payload


async def _create(client, headers, **overrides):
    resp = await client.post("/api/manager/expenses", json=_expense(**overrides), headers=headers)
    assert resp.status_code == 201
    return resp.json()


# ═════════════════════════════════════════════════════════════════════
# 1. MANAGER
# ═════════════════════════════════════════════════════════════════════


class TestManagerExpenses:
    async def test_create_is_pending_in_own_department(self, client, manager, manager_headers, department):
        body = await _create(client, manager_headers)

        assert body["status"] == "pending"
        assert body["user_id"] == str(manager["id"])
        assert body["department_id"] == str(department["id"])
        assert body["department_name"] == "Engineering"
        assert Decimal(body["amount"]) == Decimal("249.90")

    async def test_admins_notified(self, client, admin_headers, manager_headers):
        await _create(client, manager_headers)

        resp = await client.get("/api/shared/notifications/unread-count", headers=admin_headers)

        assert resp.json()["data"]["count"] == 1

    async def test_non_positive_amount_is_400(self, client, manager_headers):
        resp = await client.post(
            "/api/manager/expenses", json=_expense(amount="0"), headers=manager_headers,
        )

        assert resp.status_code == 400

    async def test_update_pending(self, client, manager_headers):
        created = await _create(client, manager_headers)

        resp = await client.put(
            f"/api/manager/expenses/{created['id']}", json={"amount": "199.00"}, headers=manager_headers,
        )

        assert resp.status_code == 200
        assert Decimal(resp.json()["amount"]) == Decimal("199.00")

    async def test_update_after_approval_is_400(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)
        await client.put(f"/api/admin/expenses/{created['id']}/approve", headers=admin_headers)

        resp = await client.put(
            f"/api/manager/expenses/{created['id']}", json={"amount": "1.00"}, headers=manager_headers,
        )

        assert resp.status_code == 400

    async def test_other_department_expense_is_403(self, client, db, admin_headers, manager_headers, other_department):
        foreign = await client.post(
            "/api/admin/expenses",
            json=_expense(department_id=str(other_department["id"])),
            headers=admin_headers,
        )

        resp = await client.get(f"/api/manager/expenses/{foreign.json()['id']}", headers=manager_headers)

        assert resp.status_code == 403

    async def test_list_is_department_scoped(self, client, admin_headers, manager_headers, other_department):
        await _create(client, manager_headers)
        await client.post(
            "/api/admin/expenses",
            json=_expense(department_id=str(other_department["id"])),
            headers=admin_headers,
        )

        resp = await client.get("/api/manager/expenses", headers=manager_headers)

        assert resp.json()["meta"]["total"] == 1

    async def test_employee_cannot_create(self, client, employee_headers):
        resp = await client.post("/api/manager/expenses", json=_expense(), headers=employee_headers)

        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 2. ADMIN FLOW
# ═════════════════════════════════════════════════════════════════════


class TestApprovalFlow:
    async def test_pending_approved_paid(self, client, admin, admin_headers, manager_headers):
        created = await _create(client, manager_headers)

        approved = await client.put(f"/api/admin/expenses/{created['id']}/approve", headers=admin_headers)
        assert approved.json()["status"] == "approved"
        assert approved.json()["approved_by"] == str(admin["id"])

        paid = await client.put(f"/api/admin/expenses/{created['id']}/pay", headers=admin_headers)
        assert paid.json()["status"] == "paid"
        assert paid.json()["paid_at"] is not None

    async def test_pay_pending_is_400(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)

        resp = await client.put(f"/api/admin/expenses/{created['id']}/pay", headers=admin_headers)

        assert resp.status_code == 400

    async def test_reject_paid_is_400(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)
        await client.put(f"/api/admin/expenses/{created['id']}/approve", headers=admin_headers)
        await client.put(f"/api/admin/expenses/{created['id']}/pay", headers=admin_headers)

        resp = await client.put(
            f"/api/admin/expenses/{created['id']}/reject",
            json={"rejection_reason": "Too late"},
            headers=admin_headers,
        )

        assert resp.status_code == 400

    async def test_reject_records_reason_and_notifies(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)

        resp = await client.put(
            f"/api/admin/expenses/{created['id']}/reject",
            json={"rejection_reason": "Not budgeted"},
            headers=admin_headers,
        )

        assert resp.json()["status"] == "rejected"
        assert resp.json()["rejection_reason"] == "Not budgeted"
        listing = await client.get("/api/shared/notifications", headers=manager_headers)
        assert "Not budgeted" in listing.json()["data"][0]["message"]

    async def test_reject_requires_reason(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)

        resp = await client.put(
            f"/api/admin/expenses/{created['id']}/reject", json={}, headers=admin_headers,
        )

        assert resp.status_code == 400

    async def test_delete_only_pending(self, client, admin_headers, manager_headers):
        created = await _create(client, manager_headers)
        await client.put(f"/api/admin/expenses/{created['id']}/approve", headers=admin_headers)

        resp = await client.delete(f"/api/manager/expenses/{created['id']}", headers=manager_headers)

        assert resp.status_code == 400

    async def test_analytics_by_status(self, client, admin_headers, manager_headers):
        first = await _create(client, manager_headers, amount="100.00")
        await _create(client, manager_headers, amount="50.00", date="2026-04-01")
        await client.put(f"/api/admin/expenses/{first['id']}/approve", headers=admin_headers)

        resp = await client.get("/api/admin/expenses/analytics?year=2026", headers=admin_headers)

        body = resp.json()
        assert body["total"]["count"] == 2
        assert Decimal(body["total"]["amount"]) == Decimal("150.00")
        assert body["by_status"]["approved"]["count"] == 1
        assert Decimal(body["by_status"]["pending"]["amount"]) == Decimal("50.00")
