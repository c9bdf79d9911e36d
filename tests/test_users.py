"""Users and departments test suite.

Covers admin user CRUD, department management, manager team scoping,
self-service profile edits and the audit trail.
"""

from __future__ import annotations

import uuid

from hrms.auth.service import hash_password
from hrms.common.constants import UserRole
from tests.conftest import headers_for, make_department, make_user


def _user_payload(**overrides) -> dict:
    payload = {
        "username": "new.hire",
        "password": "welcome123",
        "full_name": "New Hire",
        "email": "new.hire@example.com",
        "role": "employee",
        "base_salary": "2500.00",
    }
    payload.update(overrides)
    return payload


# ═════════════════════════════════════════════════════════════════════
# 1. ADMIN: USERS
# ═════════════════════════════════════════════════════════════════════


class TestAdminUsers:
    async def test_create_user_generates_employee_code(self, client, admin_headers, department):
        resp = await client.post(
            "/api/admin/users",
            json=_user_payload(department_id=str(department["id"])),
            headers=admin_headers,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["username"] == "new.hire"
        assert body["employee_code"] == "EMP-0001"
        assert body["department_name"] == "Engineering"
        assert "password" not in body and "password_hash" not in body

    async def test_created_user_can_log_in(self, client, admin_headers):
        await client.post("/api/admin/users", json=_user_payload(), headers=admin_headers)

        resp = await client.post(
            "/api/auth/login", json={"username": "new.hire", "password": "welcome123"},
        )

        assert resp.status_code == 200

    async def test_duplicate_username_is_409(self, client, admin_headers):
        await client.post("/api/admin/users", json=_user_payload(), headers=admin_headers)

        resp = await client.post(
            "/api/admin/users",
            json=_user_payload(email="other@example.com"),
            headers=admin_headers,
        )

        assert resp.status_code == 409
        assert "username" in resp.json()["errors"]

    async def test_duplicate_email_is_409(self, client, admin_headers):
        await client.post("/api/admin/users", json=_user_payload(), headers=admin_headers)

        resp = await client.post(
            "/api/admin/users",
            json=_user_payload(username="someone.else"),
            headers=admin_headers,
        )

        assert resp.status_code == 409

    async def test_unknown_department_is_404(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/users",
            json=_user_payload(department_id=str(uuid.uuid4())),
            headers=admin_headers,
        )

        assert resp.status_code == 404

    async def test_short_password_is_400(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/users", json=_user_payload(password="123"), headers=admin_headers,
        )

        assert resp.status_code == 400

    async def test_list_users_filters_by_role(self, client, admin_headers, manager, employee):
        resp = await client.get("/api/admin/users?role=manager", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["id"] == str(manager["id"])

    async def test_list_users_search(self, client, admin_headers, employee):
        resp = await client.get("/api/admin/users?search=employee", headers=admin_headers)

        assert [u["username"] for u in resp.json()["data"]] == ["employee"]

    async def test_update_user_role_and_salary(self, client, admin_headers, employee):
        resp = await client.put(
            f"/api/admin/users/{employee['id']}",
            json={"role": "manager", "base_salary": "4200.00"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["role"] == "manager"
        assert resp.json()["base_salary"] == "4200.00"

    async def test_deactivate_revokes_sessions(self, client, admin_headers, employee, employee_headers):
        resp = await client.delete(f"/api/admin/users/{employee['id']}", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json()["is_active"] is False
        me = await client.get("/api/auth/me", headers=employee_headers)
        assert me.status_code == 401

    async def test_admin_cannot_deactivate_self(self, client, admin, admin_headers):
        resp = await client.delete(f"/api/admin/users/{admin['id']}", headers=admin_headers)

        assert resp.status_code == 400

    async def test_get_unknown_user_is_404(self, client, admin_headers):
        resp = await client.get(f"/api/admin/users/{uuid.uuid4()}", headers=admin_headers)

        assert resp.status_code == 404

    async def test_statistics(self, client, admin_headers, manager, employee, outsider):
        resp = await client.get("/api/admin/users/statistics", headers=admin_headers)

        body = resp.json()
        assert body["total"] == 4
        assert body["by_role"]["employee"] == 2


# ═════════════════════════════════════════════════════════════════════
# 2. ADMIN: DEPARTMENTS
# ═════════════════════════════════════════════════════════════════════


class TestDepartments:
    async def test_create_and_list(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/departments", json={"name": "Finance"}, headers=admin_headers,
        )
        assert resp.status_code == 201

        listing = await client.get("/api/admin/departments", headers=admin_headers)
        assert "Finance" in [d["name"] for d in listing.json()]

    async def test_duplicate_name_is_409(self, client, admin_headers, department):
        resp = await client.post(
            "/api/admin/departments", json={"name": "Engineering"}, headers=admin_headers,
        )

        assert resp.status_code == 409

    async def test_employee_count(self, client, admin_headers, department, manager, employee):
        resp = await client.get(f"/api/admin/departments/{department['id']}", headers=admin_headers)

        assert resp.json()["employee_count"] == 2

    async def test_delete_with_active_users_is_400(self, client, admin_headers, department, employee):
        resp = await client.delete(f"/api/admin/departments/{department['id']}", headers=admin_headers)

        assert resp.status_code == 400

    async def test_delete_empty_department(self, client, db, admin_headers):
        empty = await make_department(db, name="Legal")

        resp = await client.delete(f"/api/admin/departments/{empty['id']}", headers=admin_headers)

        assert resp.status_code == 204
        again = await client.get(f"/api/admin/departments/{empty['id']}", headers=admin_headers)
        assert again.status_code == 404

    async def test_shared_listing_hides_inactive(self, client, db, admin_headers, employee_headers):
        legal = await make_department(db, name="Legal")
        await client.put(
            f"/api/admin/departments/{legal['id']}", json={"is_active": False}, headers=admin_headers,
        )

        resp = await client.get("/api/shared/departments", headers=employee_headers)

        assert "Legal" not in [d["name"] for d in resp.json()]


# ═════════════════════════════════════════════════════════════════════
# 3. MANAGER: TEAM
# ═════════════════════════════════════════════════════════════════════


class TestManagerTeam:
    async def test_team_is_department_scoped(self, client, manager_headers, employee, outsider):
        resp = await client.get("/api/manager/employees", headers=manager_headers)

        ids = {u["id"] for u in resp.json()["data"]}
        assert str(employee["id"]) in ids
        assert str(outsider["id"]) not in ids

    async def test_team_member_outside_department_is_403(self, client, manager_headers, outsider):
        resp = await client.get(f"/api/manager/employees/{outsider['id']}", headers=manager_headers)

        assert resp.status_code == 403

    async def test_manager_without_department_is_403(self, client, db):
        floating = await make_user(db, role=UserRole.manager, username="floating")
        headers = await headers_for(db, floating)

        resp = await client.get("/api/manager/employees", headers=headers)

        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 4. SHARED: PROFILE
# ═════════════════════════════════════════════════════════════════════


class TestProfile:
    async def test_get_own_profile(self, client, employee, employee_headers):
        resp = await client.get("/api/shared/profile", headers=employee_headers)

        assert resp.json()["id"] == str(employee["id"])

    async def test_update_contact_fields(self, client, employee_headers):
        resp = await client.put(
            "/api/shared/profile", json={"phone": "+1 555 0100"}, headers=employee_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["phone"] == "+1 555 0100"

    async def test_password_change_requires_current(self, client, db):
        user = await make_user(db, username="pwd.user", password_hash=hash_password("old-pass"))
        headers = await headers_for(db, user)

        bad = await client.put(
            "/api/shared/profile",
            json={"current_password": "wrong", "new_password": "new-pass-1"},
            headers=headers,
        )
        assert bad.status_code == 400

        good = await client.put(
            "/api/shared/profile",
            json={"current_password": "old-pass", "new_password": "new-pass-1"},
            headers=headers,
        )
        assert good.status_code == 200

        login = await client.post(
            "/api/auth/login", json={"username": "pwd.user", "password": "new-pass-1"},
        )
        assert login.status_code == 200

    async def test_profile_cannot_change_role(self, client, employee_headers):
        resp = await client.put(
            "/api/shared/profile", json={"role": "admin"}, headers=employee_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["role"] == "employee"


# ═════════════════════════════════════════════════════════════════════
# 5. AUDIT TRAIL
# ═════════════════════════════════════════════════════════════════════


async def test_user_creation_is_audited(client, admin, admin_headers):
    created = await client.post("/api/admin/users", json=_user_payload(), headers=admin_headers)

    resp = await client.get(
        f"/api/admin/audit?entity_type=user&entity_id={created.json()['id']}",
        headers=admin_headers,
    )

    entries = resp.json()["data"]
    assert len(entries) == 1
    assert entries[0]["action"] == "create"
    assert entries[0]["actor_id"] == str(admin["id"])
    assert "password" not in entries[0]["new_values"]


async def test_audit_requires_admin(client, manager_headers):
    resp = await client.get("/api/admin/audit", headers=manager_headers)

    assert resp.status_code == 403
