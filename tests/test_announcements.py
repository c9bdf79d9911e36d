"""Announcement tests — fan-out to recipients, read tracking, role scoping."""

from __future__ import annotations


async def _publish(client, headers, url="/api/admin/announcements", **overrides):
    payload = {"title": "Office move", "description": "We move to the new floor on Monday."}
    payload.update(overrides)
    resp = await client.post(url, json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()


# ═════════════════════════════════════════════════════════════════════
# 1. PUBLISHING
# ═════════════════════════════════════════════════════════════════════


class TestPublishing:
    async def test_company_wide_reaches_everyone(
        self, client, admin, admin_headers, employee_headers, outsider_headers,
    ):
        created = await _publish(client, admin_headers)

        assert created["department_id"] is None
        assert created["author_name"] == admin["full_name"]
        for headers in (employee_headers, outsider_headers):
            resp = await client.get("/api/shared/announcements", headers=headers)
            assert resp.json()["meta"]["total"] == 1
            assert resp.json()["data"][0]["is_read"] is False

    async def test_author_is_not_notified(self, client, admin_headers, employee_headers):
        await _publish(client, admin_headers)

        author = await client.get("/api/shared/notifications/unread-count", headers=admin_headers)
        reader = await client.get("/api/shared/notifications/unread-count", headers=employee_headers)

        assert author.json()["data"]["count"] == 0
        assert reader.json()["data"]["count"] == 1

    async def test_manager_publishes_to_own_department(
        self, client, department, manager_headers, employee_headers, outsider_headers,
    ):
        created = await _publish(client, manager_headers, url="/api/manager/announcements")

        assert created["department_id"] == str(department["id"])
        mine = await client.get("/api/shared/announcements", headers=employee_headers)
        theirs = await client.get("/api/shared/announcements", headers=outsider_headers)
        assert mine.json()["meta"]["total"] == 1
        assert theirs.json()["meta"]["total"] == 0

    async def test_manager_ignores_department_override(
        self, client, other_department, manager_headers, outsider_headers,
    ):
        await _publish(
            client,
            manager_headers,
            url="/api/manager/announcements",
            department_id=str(other_department["id"]),
        )

        resp = await client.get("/api/shared/announcements", headers=outsider_headers)

        assert resp.json()["meta"]["total"] == 0

    async def test_default_date_is_today(self, client, admin_headers):
        from hrms.common.timeutils import local_today

        created = await _publish(client, admin_headers)

        assert created["date"] == local_today().isoformat()

    async def test_employee_cannot_publish(self, client, employee_headers):
        resp = await client.post(
            "/api/manager/announcements",
            json={"title": "Hi", "description": "x"},
            headers=employee_headers,
        )

        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 2. READING
# ═════════════════════════════════════════════════════════════════════


class TestReading:
    async def test_mark_read(self, client, admin_headers, employee_headers):
        created = await _publish(client, admin_headers)

        resp = await client.put(f"/api/shared/announcements/{created['id']}/read", headers=employee_headers)

        assert resp.status_code == 200
        assert resp.json()["is_read"] is True
        assert resp.json()["read_at"] is not None

        unread = await client.get("/api/shared/announcements?is_read=false", headers=employee_headers)
        assert unread.json()["meta"]["total"] == 0

    async def test_non_recipient_mark_read_is_403(self, client, manager_headers, outsider_headers):
        created = await _publish(client, manager_headers, url="/api/manager/announcements")

        resp = await client.put(f"/api/shared/announcements/{created['id']}/read", headers=outsider_headers)

        assert resp.status_code == 403

    async def test_inactive_hidden_from_recipients(self, client, admin_headers, employee_headers):
        created = await _publish(client, admin_headers)

        toggled = await client.put(f"/api/admin/announcements/{created['id']}/toggle", headers=admin_headers)
        assert toggled.json()["is_active"] is False

        resp = await client.get("/api/shared/announcements", headers=employee_headers)
        assert resp.json()["meta"]["total"] == 0

    async def test_users_added_later_do_not_receive(self, client, db, admin_headers):
        from tests.conftest import headers_for, make_user

        await _publish(client, admin_headers)
        newcomer = await make_user(db, username="newcomer")
        headers = await headers_for(db, newcomer)

        resp = await client.get("/api/shared/announcements", headers=headers)

        assert resp.json()["meta"]["total"] == 0


# ═════════════════════════════════════════════════════════════════════
# 3. ADMIN MANAGEMENT
# ═════════════════════════════════════════════════════════════════════


class TestAdminManagement:
    async def test_update(self, client, admin_headers):
        created = await _publish(client, admin_headers)

        resp = await client.put(
            f"/api/admin/announcements/{created['id']}",
            json={"title": "Office move postponed"},
            headers=admin_headers,
        )

        assert resp.json()["title"] == "Office move postponed"

    async def test_delete_removes_for_recipients(self, client, admin_headers, employee_headers):
        created = await _publish(client, admin_headers)

        resp = await client.delete(f"/api/admin/announcements/{created['id']}", headers=admin_headers)
        assert resp.status_code == 204

        listing = await client.get("/api/shared/announcements", headers=employee_headers)
        assert listing.json()["meta"]["total"] == 0

    async def test_search(self, client, admin_headers):
        await _publish(client, admin_headers)
        await _publish(client, admin_headers, title="Parking rules", description="New permits.")

        resp = await client.get("/api/admin/announcements?search=parking", headers=admin_headers)

        assert [a["title"] for a in resp.json()["data"]] == ["Parking rules"]

    async def test_manager_list_scoped(self, client, admin_headers, manager_headers):
        await _publish(client, admin_headers)
        await _publish(client, manager_headers, url="/api/manager/announcements", title="Team lunch")

        resp = await client.get("/api/manager/announcements", headers=manager_headers)

        assert [a["title"] for a in resp.json()["data"]] == ["Team lunch"]
