"""Working week — which weekdays are worked, and their hours.

Until an admin stores any working day, Monday to Friday are worked on the
shift hours. Once rows exist, a weekday without an active row is a day off.
Holidays are never working days.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, time, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import WorkingDay
from hrms.attendance.schemas import (
    ScheduleDay,
    WeeklyScheduleResponse,
    WorkingDayCreate,
    WorkingDayResponse,
    WorkingDayStatistics,
    WorkingDayUpdate,
)
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import DEFAULT_WORKING_WEEKDAYS, Weekday
from hrms.common.exceptions import ConflictError, NotFoundException, ValidationException
from hrms.common.timeutils import local_today
from hrms.holidays.service import HolidayService

logger = logging.getLogger(__name__)

_WEEKDAYS = list(Weekday)


def weekday_of(day: date) -> Weekday:
    return _WEEKDAYS[day.weekday()]


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def scheduled_minutes(
    start: Optional[time],
    end: Optional[time],
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
) -> int:
    """Minutes from *start* to *end* less the break; 0 when hours are unset."""
    if start is None or end is None or end <= start:
        return 0
    total = _minutes(end) - _minutes(start)
    if break_start is not None and break_end is not None and break_end > break_start:
        total -= _minutes(break_end) - _minutes(break_start)
    return max(total, 0)


def _validate_hours(
    start: Optional[time],
    end: Optional[time],
    break_start: Optional[time],
    break_end: Optional[time],
) -> None:
    if (start is None) != (end is None):
        raise ValidationException({"end_time": ["Provide both start and end times, or neither."]})
    if start is not None and end <= start:
        raise ValidationException({"end_time": ["End time must be after start time."]})
    if (break_start is None) != (break_end is None):
        raise ValidationException({"break_end": ["Provide both break start and end, or neither."]})
    if break_start is not None:
        if break_end <= break_start:
            raise ValidationException({"break_end": ["Break end must be after break start."]})
        if start is None or break_start < start or break_end > end:
            raise ValidationException({"break_start": ["The break must fall within working hours."]})


def to_response(row: WorkingDay) -> WorkingDayResponse:
    response = WorkingDayResponse.model_validate(row)
    response.working_minutes = scheduled_minutes(
        row.start_time, row.end_time, row.break_start, row.break_end,
    )
    return response


class WorkingDayService:
    """Async working-week operations."""

    # ── Admin CRUD ──────────────────────────────────────────────────

    @staticmethod
    async def list_days(db: AsyncSession) -> list[WorkingDay]:
        rows = (await db.execute(select(WorkingDay))).scalars().all()
        return sorted(rows, key=lambda r: _WEEKDAYS.index(Weekday(r.day)))

    @staticmethod
    async def get_day(db: AsyncSession, working_day_id: uuid.UUID) -> WorkingDay:
        result = await db.execute(select(WorkingDay).where(WorkingDay.id == working_day_id))
        row = result.scalars().first()
        if row is None:
            raise NotFoundException("WorkingDay", working_day_id)
        return row

    @staticmethod
    async def _find_weekday(db: AsyncSession, weekday: Weekday) -> Optional[WorkingDay]:
        result = await db.execute(select(WorkingDay).where(WorkingDay.day == weekday.value))
        return result.scalars().first()

    @staticmethod
    async def create_day(
        db: AsyncSession,
        data: WorkingDayCreate,
        actor_id: uuid.UUID,
    ) -> WorkingDay:
        if await WorkingDayService._find_weekday(db, data.day) is not None:
            raise ConflictError("day", data.day.value)
        _validate_hours(data.start_time, data.end_time, data.break_start, data.break_end)

        row = WorkingDay(**{**data.model_dump(), "day": data.day.value})
        db.add(row)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="working_day",
            entity_id=row.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        logger.info("Working day %s configured", row.day)
        return row

    @staticmethod
    async def update_day(
        db: AsyncSession,
        working_day_id: uuid.UUID,
        data: WorkingDayUpdate,
        actor_id: uuid.UUID,
    ) -> WorkingDay:
        row = await WorkingDayService.get_day(db, working_day_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("is_active") is None:
            changes.pop("is_active", None)

        merged = {
            field: changes.get(field, getattr(row, field))
            for field in ("start_time", "end_time", "break_start", "break_end")
        }
        _validate_hours(
            merged["start_time"], merged["end_time"], merged["break_start"], merged["break_end"],
        )

        old_values = {k: getattr(row, k) for k in changes}
        for field, value in changes.items():
            setattr(row, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="working_day",
            entity_id=row.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return row

    @staticmethod
    async def delete_day(
        db: AsyncSession,
        working_day_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        row = await WorkingDayService.get_day(db, working_day_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="working_day",
            entity_id=row.id,
            actor_id=actor_id,
            old_values={"day": row.day},
        )
        await db.delete(row)
        await db.flush()

    @staticmethod
    async def statistics(db: AsyncSession) -> WorkingDayStatistics:
        rows = await WorkingDayService.list_days(db)
        active = [r for r in rows if r.is_active]
        minutes = [
            scheduled_minutes(r.start_time, r.end_time, r.break_start, r.break_end)
            for r in active
        ]
        return WorkingDayStatistics(
            configured_days=len(rows),
            active_days=len(active),
            inactive_days=len(rows) - len(active),
            total_weekly_minutes=sum(minutes),
            average_daily_minutes=sum(minutes) // len(minutes) if minutes else 0,
        )

    # ── Schedule lookups ────────────────────────────────────────────

    @staticmethod
    async def _week_rows(db: AsyncSession) -> dict[Weekday, WorkingDay]:
        return {Weekday(r.day): r for r in await WorkingDayService.list_days(db)}

    @staticmethod
    def _day_entry(
        day: date,
        rows: dict[Weekday, WorkingDay],
        holiday_name: Optional[str],
    ) -> ScheduleDay:
        weekday = weekday_of(day)
        row = rows.get(weekday)
        if rows:
            scheduled = row is not None and row.is_active
        else:
            scheduled = weekday in DEFAULT_WORKING_WEEKDAYS
        entry = ScheduleDay(
            day=weekday,
            date=day,
            is_working_day=scheduled and holiday_name is None,
            is_holiday=holiday_name is not None,
            holiday_name=holiday_name,
        )
        if scheduled and row is not None:
            entry.start_time = row.start_time
            entry.end_time = row.end_time
            entry.working_minutes = scheduled_minutes(
                row.start_time, row.end_time, row.break_start, row.break_end,
            )
        return entry

    @staticmethod
    async def day_schedule(db: AsyncSession, day: date) -> ScheduleDay:
        """Whether *day* is worked, and the hours configured for it."""
        holiday = await HolidayService.find_on(db, day)
        rows = await WorkingDayService._week_rows(db)
        return WorkingDayService._day_entry(day, rows, holiday.name if holiday else None)

    @staticmethod
    async def is_working_day(db: AsyncSession, day: date) -> bool:
        return (await WorkingDayService.day_schedule(db, day)).is_working_day

    @staticmethod
    async def weekly_schedule(
        db: AsyncSession,
        day: Optional[date] = None,
    ) -> WeeklyScheduleResponse:
        """Monday-to-Sunday week containing *day* (default: today)."""
        day = day or local_today()
        week_start = day - timedelta(days=day.weekday())
        week_end = week_start + timedelta(days=6)
        rows = await WorkingDayService._week_rows(db)
        holidays = await HolidayService.holidays_between(db, week_start, week_end)

        days = [
            WorkingDayService._day_entry(d, rows, holidays.get(d))
            for d in (week_start + timedelta(days=i) for i in range(7))
        ]
        return WeeklyScheduleResponse(
            week_start=week_start,
            days=days,
            active_days=sum(1 for d in days if d.is_working_day),
            total_weekly_minutes=sum(d.working_minutes for d in days if d.is_working_day),
            configured=bool(rows),
        )

    @staticmethod
    async def today_status(db: AsyncSession) -> ScheduleDay:
        return await WorkingDayService.day_schedule(db, local_today())
