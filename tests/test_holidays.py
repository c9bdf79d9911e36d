"""Holiday calendar tests — admin CRUD, recurring occurrences, shared views."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

from hrms.common.timeutils import local_today
from hrms.holidays.service import occurrence_in_year


async def _create(client, headers, **payload):
    resp = await client.post("/api/admin/holidays", json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()


# ── Occurrence rules ────────────────────────────────────────────────


def test_one_off_holiday_only_in_its_year():
    holiday = SimpleNamespace(date=date(2025, 12, 25), is_recurring=False)

    assert occurrence_in_year(holiday, 2025) == date(2025, 12, 25)
    assert occurrence_in_year(holiday, 2026) is None


def test_recurring_holiday_moves_to_year():
    holiday = SimpleNamespace(date=date(2020, 1, 1), is_recurring=True)

    assert occurrence_in_year(holiday, 2031) == date(2031, 1, 1)


def test_recurring_holiday_not_projected_before_first_year():
    holiday = SimpleNamespace(date=date(2030, 5, 1), is_recurring=True)

    assert occurrence_in_year(holiday, 2020) is None
    assert occurrence_in_year(holiday, 2030) == date(2030, 5, 1)


def test_leap_day_falls_back_to_28th():
    holiday = SimpleNamespace(date=date(2024, 2, 29), is_recurring=True)

    assert occurrence_in_year(holiday, 2026) == date(2026, 2, 28)


# ── Admin ───────────────────────────────────────────────────────────


async def test_create_notifies_everyone(client, admin_headers, employee_headers, manager_headers):
    await _create(client, admin_headers, name="Labour Day", date="2026-05-01")

    for headers in (employee_headers, manager_headers):
        resp = await client.get("/api/shared/notifications/unread-count", headers=headers)
        assert resp.json()["data"]["count"] == 1


async def test_duplicate_date_is_409(client, admin_headers):
    await _create(client, admin_headers, name="Labour Day", date="2026-05-01")

    resp = await client.post(
        "/api/admin/holidays", json={"name": "Other", "date": "2026-05-01"}, headers=admin_headers,
    )

    assert resp.status_code == 409


async def test_update_and_delete(client, admin_headers):
    created = await _create(client, admin_headers, name="Labour Day", date="2026-05-01")

    updated = await client.put(
        f"/api/admin/holidays/{created['id']}", json={"name": "May Day"}, headers=admin_headers,
    )
    assert updated.json()["name"] == "May Day"

    deleted = await client.delete(f"/api/admin/holidays/{created['id']}", headers=admin_headers)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/admin/holidays/{created['id']}", headers=admin_headers)
    assert missing.status_code == 404


async def test_admin_list_filters(client, admin_headers):
    await _create(client, admin_headers, name="New Year", date="2020-01-01", is_recurring=True)
    await _create(client, admin_headers, name="Founders Day", date="2026-09-14")

    recurring = await client.get("/api/admin/holidays?is_recurring=true", headers=admin_headers)
    searched = await client.get("/api/admin/holidays?search=founders", headers=admin_headers)

    assert [h["name"] for h in recurring.json()["data"]] == ["New Year"]
    assert searched.json()["meta"]["total"] == 1


async def test_employee_cannot_create(client, employee_headers):
    resp = await client.post(
        "/api/admin/holidays", json={"name": "Mine", "date": "2026-05-02"}, headers=employee_headers,
    )

    assert resp.status_code == 403


async def test_statistics(client, admin_headers):
    await _create(client, admin_headers, name="New Year", date="2020-01-01", is_recurring=True)
    await _create(client, admin_headers, name="Founders Day", date="2026-09-14")

    resp = await client.get("/api/admin/holidays/statistics?year=2026", headers=admin_headers)

    body = resp.json()
    assert body["total"] == 2
    assert body["recurring"] == 1
    assert body["by_month"]["1"] == 1


# ── Shared ──────────────────────────────────────────────────────────


async def test_year_listing_includes_recurring(client, admin_headers, employee_headers):
    await _create(client, admin_headers, name="New Year", date="2020-01-01", is_recurring=True)
    await _create(client, admin_headers, name="Old One-off", date="2020-06-01")

    resp = await client.get("/api/shared/holidays?year=2027", headers=employee_headers)

    body = resp.json()
    assert [h["name"] for h in body] == ["New Year"]
    assert body[0]["occurrence_date"] == "2027-01-01"


async def test_year_listing_skips_recurring_from_later_years(client, admin_headers, employee_headers):
    await _create(client, admin_headers, name="Founding Anniversary", date="2030-05-01", is_recurring=True)

    resp = await client.get("/api/shared/holidays?year=2026", headers=employee_headers)

    assert resp.json() == []


async def test_month_filter(client, admin_headers, employee_headers):
    await _create(client, admin_headers, name="Spring", date="2026-04-10")
    await _create(client, admin_headers, name="Summer", date="2026-07-10")

    resp = await client.get("/api/shared/holidays?year=2026&month=7", headers=employee_headers)

    assert [h["name"] for h in resp.json()] == ["Summer"]


async def test_today_status(client, admin_headers, employee_headers):
    today = local_today()
    await _create(client, admin_headers, name="Today Off", date=today.isoformat())

    resp = await client.get("/api/shared/holidays/today", headers=employee_headers)

    assert resp.json()["is_holiday"] is True
    assert resp.json()["holiday"]["name"] == "Today Off"


async def test_upcoming_sorted_and_limited(client, admin_headers, employee_headers):
    year = local_today().year + 1
    for month in (3, 1, 2):
        await _create(client, admin_headers, name=f"H{month}", date=f"{year}-0{month}-15")

    resp = await client.get("/api/shared/holidays/upcoming?limit=2", headers=employee_headers)

    assert [h["name"] for h in resp.json()] == ["H1", "H2"]
