"""Attendance test suite — time arithmetic, check-in/out, corrections, admin tools.

Pure helpers in ``hrms.attendance.timecalc`` are tested directly; everything
else goes through the HTTP API. With no work shift configured the fallback
shift is 08:00-17:00 in the office timezone (UTC in tests).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from hrms.attendance.timecalc import (
    compute_arrival,
    compute_departure,
    effective_late_minutes,
    parse_hhmm,
    whole_minutes,
)
from hrms.common.timeutils import local_today

PAST_DAY = date(2026, 3, 2)


def _at(hour: int, minute: int = 0, day: date = PAST_DAY) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def _iso(hour: int, minute: int = 0, day: date = PAST_DAY) -> str:
    return _at(hour, minute, day).isoformat()


# ═════════════════════════════════════════════════════════════════════
# 1. TIME ARITHMETIC
# ═════════════════════════════════════════════════════════════════════


class TestTimeCalc:
    def test_late_arrival_counts_whole_minutes(self):
        result = compute_arrival(_at(9, 0), _at(8, 0))
        assert result.is_late is True
        assert result.late_minutes == 60

    def test_on_time_arrival(self):
        result = compute_arrival(_at(8, 0), _at(8, 0))
        assert result.is_late is False
        assert result.late_minutes == 0

    def test_partial_minute_truncated(self):
        check_in = _at(8, 0) + timedelta(seconds=59)
        result = compute_arrival(check_in, _at(8, 0))
        assert result.is_late is True
        assert result.late_minutes == 0

    def test_naive_datetime_treated_as_utc(self):
        assert whole_minutes(datetime(2026, 3, 2, 8, 0), _at(8, 30)) == 30

    def test_negative_span_is_zero(self):
        assert whole_minutes(_at(10), _at(9)) == 0

    def test_departure_with_overtime(self):
        result = compute_departure(_at(8), _at(18, 30), _at(17))
        assert result.working_minutes == 630
        assert result.is_early_departure is False
        assert result.overtime_minutes == 90

    def test_early_departure(self):
        result = compute_departure(_at(8), _at(16, 15), _at(17))
        assert result.is_early_departure is True
        assert result.early_departure_minutes == 45
        assert result.overtime_minutes == 0

    @pytest.mark.parametrize(
        "late, grace, expected",
        [(10, 15, 0), (15, 15, 0), (40, 15, 25)],
    )
    def test_effective_late_minutes(self, late, grace, expected):
        assert effective_late_minutes(late, grace) == expected

    def test_parse_hhmm(self):
        assert parse_hhmm("08:30") == time(8, 30)
        assert parse_hhmm("17") == time(17, 0)


# ═════════════════════════════════════════════════════════════════════
# 2. CHECK IN / OUT
# ═════════════════════════════════════════════════════════════════════


class TestCheckInOut:
    async def test_check_in_creates_today_record(self, client, employee, employee_headers):
        resp = await client.post(
            "/api/employee/attendance/check-in",
            json={"location": "HQ"},
            headers=employee_headers,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["user_id"] == str(employee["id"])
        assert body["date"] == local_today().isoformat()
        assert body["check_in"] is not None
        assert body["status"] in ("present", "late")

    async def test_second_check_in_is_400(self, client, employee_headers):
        await client.post("/api/employee/attendance/check-in", json={}, headers=employee_headers)

        resp = await client.post("/api/employee/attendance/check-in", json={}, headers=employee_headers)

        assert resp.status_code == 400
        assert "check_in" in resp.json()["errors"]

    async def test_check_out_without_check_in_is_400(self, client, employee_headers):
        resp = await client.post("/api/employee/attendance/check-out", json={}, headers=employee_headers)

        assert resp.status_code == 400

    async def test_check_out_twice_is_400(self, client, employee_headers):
        await client.post("/api/employee/attendance/check-in", json={}, headers=employee_headers)
        first = await client.post("/api/employee/attendance/check-out", json={}, headers=employee_headers)
        assert first.status_code == 200
        assert first.json()["check_out"] is not None

        again = await client.post("/api/employee/attendance/check-out", json={}, headers=employee_headers)

        assert again.status_code == 400

    async def test_today_reflects_check_in(self, client, employee_headers):
        before = await client.get("/api/employee/attendance/today", headers=employee_headers)
        assert before.json()["checked_in"] is False

        await client.post("/api/employee/attendance/check-in", json={}, headers=employee_headers)

        after = await client.get("/api/employee/attendance/today", headers=employee_headers)
        assert after.json()["checked_in"] is True
        assert after.json()["checked_out"] is False

    async def test_history_rejects_inverted_range(self, client, employee_headers):
        resp = await client.get(
            "/api/employee/attendance/history?from_date=2026-03-10&to_date=2026-03-01",
            headers=employee_headers,
        )

        assert resp.status_code == 400


# ═════════════════════════════════════════════════════════════════════
# 3. CORRECTIONS
# ═════════════════════════════════════════════════════════════════════


async def _request_correction(client, headers, **overrides):
    payload = {
        "date": PAST_DAY.isoformat(),
        "request_type": "wrong_time",
        "requested_check_in": _iso(9, 0),
        "requested_check_out": _iso(18, 0),
        "reason": "Badge reader was down",
    }
    payload.update(overrides)
    return await client.post("/api/employee/attendance/corrections", json=payload, headers=headers)


class TestCorrections:
    async def test_request_and_manager_approve(self, client, employee, employee_headers, manager_headers):
        created = await _request_correction(client, employee_headers)
        assert created.status_code == 201
        assert created.json()["status"] == "pending"

        resp = await client.put(
            f"/api/manager/attendance/corrections/{created.json()['id']}/approve",
            json={},
            headers=manager_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["status"] == "approved"
        assert resp.json()["attendance_id"] is not None

        history = await client.get(
            "/api/employee/attendance/history?from_date=2026-03-01&to_date=2026-03-31",
            headers=employee_headers,
        )
        record = history.json()["data"][0]
        assert record["late_minutes"] == 60
        assert record["working_minutes"] == 540
        assert record["overtime_minutes"] == 60
        assert record["status"] == "late"
        assert record["is_manual_entry"] is True

    async def test_manager_notified_of_request(self, client, employee_headers, manager_headers):
        await _request_correction(client, employee_headers)

        resp = await client.get("/api/shared/notifications/unread-count", headers=manager_headers)

        assert resp.json()["data"]["count"] == 1

    async def test_request_without_times_is_400(self, client, employee_headers):
        resp = await _request_correction(
            client, employee_headers, requested_check_in=None, requested_check_out=None,
        )

        assert resp.status_code == 400

    async def test_future_date_is_400(self, client, employee_headers):
        tomorrow = local_today() + timedelta(days=1)
        resp = await _request_correction(
            client,
            employee_headers,
            date=tomorrow.isoformat(),
            requested_check_in=_iso(8, 0, tomorrow),
            requested_check_out=_iso(17, 0, tomorrow),
        )

        assert resp.status_code == 400

    async def test_duplicate_pending_is_409(self, client, employee_headers):
        await _request_correction(client, employee_headers)

        resp = await _request_correction(client, employee_headers)

        assert resp.status_code == 409

    async def test_reject_requires_notes(self, client, employee_headers, manager_headers):
        created = await _request_correction(client, employee_headers)
        url = f"/api/manager/attendance/corrections/{created.json()['id']}/reject"

        missing = await client.put(url, json={}, headers=manager_headers)
        assert missing.status_code == 400

        resp = await client.put(url, json={"review_notes": "No evidence"}, headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"

    async def test_cannot_decide_twice(self, client, employee_headers, admin_headers):
        created = await _request_correction(client, employee_headers)
        url = f"/api/admin/attendance/corrections/{created.json()['id']}/approve"
        await client.put(url, json={}, headers=admin_headers)

        resp = await client.put(url, json={}, headers=admin_headers)

        assert resp.status_code == 400

    async def test_manager_cannot_review_other_department(self, client, outsider_headers, manager_headers):
        created = await _request_correction(client, outsider_headers)

        resp = await client.put(
            f"/api/manager/attendance/corrections/{created.json()['id']}/approve",
            json={},
            headers=manager_headers,
        )

        assert resp.status_code == 403

    async def test_check_out_before_recorded_check_in_is_400(
        self, client, admin_headers, employee, employee_headers,
    ):
        await client.post(
            "/api/admin/attendance",
            json={
                "user_id": str(employee["id"]),
                "date": PAST_DAY.isoformat(),
                "check_in": _iso(9),
                "check_out": _iso(17),
            },
            headers=admin_headers,
        )

        resp = await _request_correction(
            client,
            employee_headers,
            request_type="missed_checkout",
            requested_check_in=None,
            requested_check_out=_iso(7),
        )

        assert resp.status_code == 400
        assert "requested_check_out" in resp.json()["errors"]

    async def test_approval_rechecks_against_current_record(
        self, client, admin_headers, employee, employee_headers,
    ):
        created = await _request_correction(
            client,
            employee_headers,
            request_type="missed_checkout",
            requested_check_in=None,
            requested_check_out=_iso(7),
        )
        assert created.status_code == 201
        record = await client.post(
            "/api/admin/attendance",
            json={"user_id": str(employee["id"]), "date": PAST_DAY.isoformat(), "check_in": _iso(9)},
            headers=admin_headers,
        )

        resp = await client.put(
            f"/api/admin/attendance/corrections/{created.json()['id']}/approve",
            json={},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        assert "requested_check_out" in resp.json()["errors"]
        stored = await client.get(f"/api/admin/attendance/{record.json()['id']}", headers=admin_headers)
        assert stored.json()["check_out"] is None
        assert stored.json()["working_minutes"] == 0


# ═════════════════════════════════════════════════════════════════════
# 4. ADMIN TOOLS
# ═════════════════════════════════════════════════════════════════════


class TestAdminAttendance:
    async def test_manual_record_computes_minutes(self, client, admin_headers, employee):
        resp = await client.post(
            "/api/admin/attendance",
            json={
                "user_id": str(employee["id"]),
                "date": PAST_DAY.isoformat(),
                "check_in": _iso(8, 20),
                "check_out": _iso(16, 50),
            },
            headers=admin_headers,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["late_minutes"] == 20
        assert body["early_departure_minutes"] == 10
        assert body["working_minutes"] == 510

    async def test_manual_duplicate_day_is_409(self, client, admin_headers, employee):
        payload = {"user_id": str(employee["id"]), "date": PAST_DAY.isoformat(), "status": "absent"}
        await client.post("/api/admin/attendance", json=payload, headers=admin_headers)

        resp = await client.post("/api/admin/attendance", json=payload, headers=admin_headers)

        assert resp.status_code == 409

    async def test_mark_absent_skips_existing(self, client, admin_headers, manager, employee):
        await client.post(
            "/api/admin/attendance",
            json={
                "user_id": str(employee["id"]),
                "date": PAST_DAY.isoformat(),
                "check_in": _iso(8, 0),
            },
            headers=admin_headers,
        )

        resp = await client.post(
            "/api/admin/attendance/mark-absent",
            json={"date": PAST_DAY.isoformat()},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["marked"] == 1
        assert resp.json()["skipped_holiday"] is False

    async def test_mark_absent_skips_holidays(self, client, admin_headers, employee):
        await client.post(
            "/api/admin/holidays",
            json={"name": "Founders Day", "date": PAST_DAY.isoformat()},
            headers=admin_headers,
        )

        resp = await client.post(
            "/api/admin/attendance/mark-absent",
            json={"date": PAST_DAY.isoformat()},
            headers=admin_headers,
        )

        assert resp.json() == {
            "date": PAST_DAY.isoformat(),
            "marked": 0,
            "skipped_holiday": True,
            "skipped_non_working_day": False,
        }

    async def test_mark_absent_skips_weekend(self, client, admin_headers, employee):
        saturday = date(2026, 3, 7)

        resp = await client.post(
            "/api/admin/attendance/mark-absent",
            json={"date": saturday.isoformat()},
            headers=admin_headers,
        )
        records = await client.get(
            f"/api/admin/attendance?from_date={saturday.isoformat()}&to_date={saturday.isoformat()}",
            headers=admin_headers,
        )

        assert resp.json()["marked"] == 0
        assert resp.json()["skipped_non_working_day"] is True
        assert records.json()["meta"]["total"] == 0

    async def test_monthly_report_totals(self, client, admin_headers, employee, manager):
        for user, hour in ((employee, 9), (manager, 8)):
            await client.post(
                "/api/admin/attendance",
                json={
                    "user_id": str(user["id"]),
                    "date": PAST_DAY.isoformat(),
                    "check_in": _iso(hour),
                    "check_out": _iso(17),
                },
                headers=admin_headers,
            )

        resp = await client.get(
            "/api/admin/attendance/report?year=2026&month=3", headers=admin_headers,
        )

        body = resp.json()
        assert body["employees"] == 2
        assert body["totals"]["present_days"] == 2
        assert body["totals"]["late_days"] == 1
        assert body["totals"]["total_late_minutes"] == 60

    async def test_team_board_counts(self, client, manager_headers, employee_headers, employee):
        await client.post("/api/employee/attendance/check-in", json={}, headers=employee_headers)

        resp = await client.get("/api/manager/attendance/team/today", headers=manager_headers)

        body = resp.json()
        assert body["total"] == 2
        assert body["not_checked_in"] == 1
        assert body["present"] + body["late"] == 1

    async def test_work_shift_must_end_after_start(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/work-shifts",
            json={"name": "Broken", "start_time": "17:00", "end_time": "08:00"},
            headers=admin_headers,
        )

        assert resp.status_code == 400

    async def test_work_shift_overrides_fallback(self, client, admin_headers, employee):
        await client.post(
            "/api/admin/work-shifts",
            json={"name": "Late Shift", "start_time": "10:00", "end_time": "19:00", "is_default": True},
            headers=admin_headers,
        )

        resp = await client.post(
            "/api/admin/attendance",
            json={"user_id": str(employee["id"]), "date": PAST_DAY.isoformat(), "check_in": _iso(9, 45)},
            headers=admin_headers,
        )

        assert resp.json()["is_late"] is False
        assert resp.json()["status"] == "present"
