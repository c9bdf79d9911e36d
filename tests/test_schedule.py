"""Working week tests — schedule maths, admin configuration, effect on attendance."""

from __future__ import annotations

from datetime import date, datetime, time, timezone

from hrms.attendance.schedule import scheduled_minutes, weekday_of
from hrms.common.constants import Weekday
from hrms.common.timeutils import local_today

MONDAY = date(2026, 3, 2)
FRIDAY = date(2026, 3, 6)
SATURDAY = date(2026, 3, 7)


def _iso(day: date, hour: int, minute: int = 0) -> str:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc).isoformat()


async def _configure(client, headers, day, **hours):
    resp = await client.post(
        "/api/admin/working-days", json={"day": day, **hours}, headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


async def _schedule(client, headers, day: date):
    resp = await client.get(
        f"/api/employee/attendance/schedule?date={day.isoformat()}", headers=headers,
    )
    assert resp.status_code == 200
    return resp.json()


# ═════════════════════════════════════════════════════════════════════
# 1. SCHEDULE MATHS
# ═════════════════════════════════════════════════════════════════════


class TestScheduleMaths:
    def test_weekday_of(self):
        assert weekday_of(MONDAY) is Weekday.monday
        assert weekday_of(SATURDAY) is Weekday.saturday

    def test_minutes_less_break(self):
        assert scheduled_minutes(time(8), time(17), time(12), time(13)) == 480

    def test_unset_hours_are_zero(self):
        assert scheduled_minutes(None, time(17)) == 0
        assert scheduled_minutes(time(17), time(8)) == 0


# ═════════════════════════════════════════════════════════════════════
# 2. WEEKLY VIEW
# ═════════════════════════════════════════════════════════════════════


class TestWeeklySchedule:
    async def test_default_week_is_monday_to_friday(self, client, employee_headers):
        body = await _schedule(client, employee_headers, date(2026, 3, 4))

        assert body["week_start"] == MONDAY.isoformat()
        assert body["configured"] is False
        assert body["active_days"] == 5
        assert [d["is_working_day"] for d in body["days"]] == [True] * 5 + [False] * 2

    async def test_holiday_in_week_is_not_worked(self, client, admin_headers, employee_headers):
        await client.post(
            "/api/admin/holidays",
            json={"name": "Founders Day", "date": "2026-03-03"},
            headers=admin_headers,
        )

        body = await _schedule(client, employee_headers, MONDAY)

        tuesday = body["days"][1]
        assert tuesday["is_holiday"] is True
        assert tuesday["holiday_name"] == "Founders Day"
        assert tuesday["is_working_day"] is False
        assert body["active_days"] == 4

    async def test_configured_rows_replace_default(self, client, admin_headers, employee_headers):
        await _configure(client, admin_headers, "monday", start_time="08:00", end_time="17:00",
                         break_start="12:00", break_end="13:00")
        await _configure(client, admin_headers, "saturday", start_time="09:00", end_time="13:00")

        body = await _schedule(client, employee_headers, MONDAY)

        worked = [d["day"] for d in body["days"] if d["is_working_day"]]
        assert worked == ["monday", "saturday"]
        assert body["configured"] is True
        assert body["total_weekly_minutes"] == 480 + 240

    async def test_today_status(self, client, employee_headers):
        resp = await client.get("/api/employee/attendance/schedule/today", headers=employee_headers)

        body = resp.json()
        assert body["date"] == local_today().isoformat()
        assert body["is_working_day"] is (local_today().weekday() < 5)


# ═════════════════════════════════════════════════════════════════════
# 3. ADMIN CONFIGURATION
# ═════════════════════════════════════════════════════════════════════


class TestWorkingDayAdmin:
    async def test_create_reports_minutes(self, client, admin_headers):
        body = await _configure(client, admin_headers, "monday", start_time="08:00", end_time="17:00",
                                break_start="12:00", break_end="13:00")

        assert body["day"] == "monday"
        assert body["working_minutes"] == 480

    async def test_duplicate_day_is_409(self, client, admin_headers):
        await _configure(client, admin_headers, "monday")

        resp = await client.post(
            "/api/admin/working-days", json={"day": "monday"}, headers=admin_headers,
        )

        assert resp.status_code == 409

    async def test_end_before_start_is_400(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/working-days",
            json={"day": "monday", "start_time": "17:00", "end_time": "08:00"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert "end_time" in resp.json()["errors"]

    async def test_break_outside_hours_is_400(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/working-days",
            json={
                "day": "monday",
                "start_time": "08:00",
                "end_time": "17:00",
                "break_start": "18:00",
                "break_end": "18:30",
            },
            headers=admin_headers,
        )

        assert resp.status_code == 400

    async def test_update_delete_and_statistics(self, client, admin_headers):
        monday = await _configure(client, admin_headers, "monday", start_time="08:00", end_time="16:00")
        await _configure(client, admin_headers, "tuesday", start_time="08:00", end_time="12:00")

        updated = await client.put(
            f"/api/admin/working-days/{monday['id']}",
            json={"end_time": "17:00"},
            headers=admin_headers,
        )
        assert updated.json()["working_minutes"] == 540

        stats = (await client.get("/api/admin/working-days/statistics", headers=admin_headers)).json()
        assert stats["active_days"] == 2
        assert stats["total_weekly_minutes"] == 540 + 240
        assert stats["average_daily_minutes"] == 390

        deleted = await client.delete(f"/api/admin/working-days/{monday['id']}", headers=admin_headers)
        assert deleted.status_code == 204
        remaining = await client.get("/api/admin/working-days", headers=admin_headers)
        assert [d["day"] for d in remaining.json()] == ["tuesday"]

    async def test_employee_cannot_configure(self, client, employee_headers):
        resp = await client.post(
            "/api/admin/working-days", json={"day": "monday"}, headers=employee_headers,
        )

        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# 4. EFFECT ON ATTENDANCE
# ═════════════════════════════════════════════════════════════════════


class TestScheduleInAttendance:
    async def test_day_hours_override_shift(self, client, admin_headers, employee):
        await _configure(client, admin_headers, "monday", start_time="10:00", end_time="18:00")

        resp = await client.post(
            "/api/admin/attendance",
            json={"user_id": str(employee["id"]), "date": MONDAY.isoformat(), "check_in": _iso(MONDAY, 9, 45)},
            headers=admin_headers,
        )

        assert resp.json()["is_late"] is False

    async def test_weekend_work_is_overtime(self, client, admin_headers, employee):
        resp = await client.post(
            "/api/admin/attendance",
            json={
                "user_id": str(employee["id"]),
                "date": SATURDAY.isoformat(),
                "check_in": _iso(SATURDAY, 10),
                "check_out": _iso(SATURDAY, 14),
            },
            headers=admin_headers,
        )

        body = resp.json()
        assert body["is_late"] is False
        assert body["is_early_departure"] is False
        assert body["working_minutes"] == 240
        assert body["overtime_minutes"] == 240

    async def test_mark_absent_follows_configured_week(self, client, admin_headers, employee):
        await _configure(client, admin_headers, "monday")
        await _configure(client, admin_headers, "saturday")

        friday = await client.post(
            "/api/admin/attendance/mark-absent", json={"date": FRIDAY.isoformat()}, headers=admin_headers,
        )
        saturday = await client.post(
            "/api/admin/attendance/mark-absent", json={"date": SATURDAY.isoformat()}, headers=admin_headers,
        )

        assert friday.json()["skipped_non_working_day"] is True
        assert saturday.json()["marked"] == 1
