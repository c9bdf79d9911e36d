"""Holiday service — calendar queries, recurring projection, admin CRUD."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.audit import create_audit_entry
from hrms.common.constants import NotificationType
from hrms.common.exceptions import ConflictError, NotFoundException
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.holidays.models import Holiday
from hrms.holidays.schemas import (
    HolidayCreate,
    HolidayResponse,
    HolidayStatistics,
    HolidayUpdate,
    TodayHolidayStatus,
)
from hrms.notifications.service import NotificationService, active_user_ids

logger = logging.getLogger(__name__)


def occurrence_in_year(holiday: Holiday, year: int) -> Optional[date]:
    """Date the holiday falls on in *year*, or None when it does not occur.

    Recurring holidays repeat from the year they were first stored onwards.
    """
    if not holiday.is_recurring:
        return holiday.date if holiday.date.year == year else None
    if year < holiday.date.year:
        return None
    try:
        return holiday.date.replace(year=year)
    except ValueError:
        # 29 February in a non-leap year
        return date(year, 2, 28)


def _response(holiday: Holiday, occurrence: Optional[date]) -> HolidayResponse:
    return HolidayResponse.model_validate(holiday).model_copy(
        update={"occurrence_date": occurrence}
    )


class HolidayService:
    """Async holiday operations."""

    @staticmethod
    async def get_holiday(db: AsyncSession, holiday_id: uuid.UUID) -> Holiday:
        result = await db.execute(select(Holiday).where(Holiday.id == holiday_id))
        holiday = result.scalars().first()
        if holiday is None:
            raise NotFoundException("Holiday", holiday_id)
        return holiday

    @staticmethod
    async def list_holidays(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        is_recurring: Optional[bool] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        """Stored holiday rows, newest date first."""
        query = select(Holiday).order_by(Holiday.date.desc())
        query = apply_filters(
            query,
            Holiday,
            {"is_recurring": is_recurring, "date__from": date_from, "date__to": date_to},
        )
        query = apply_search(query, Holiday, search, ["name", "description"])
        return await paginate(db, query, pagination, model=Holiday, schema=HolidayResponse)

    @staticmethod
    async def list_for_year(
        db: AsyncSession,
        year: int,
        month: Optional[int] = None,
    ) -> list[HolidayResponse]:
        """Holidays occurring in *year* (optionally one month), by occurrence date."""
        holidays = (await db.execute(select(Holiday))).scalars().all()
        items: list[tuple[date, Holiday]] = []
        for holiday in holidays:
            occurrence = occurrence_in_year(holiday, year)
            if occurrence is None or (month is not None and occurrence.month != month):
                continue
            items.append((occurrence, holiday))
        items.sort(key=lambda pair: (pair[0], pair[1].name))
        return [_response(h, occ) for occ, h in items]

    @staticmethod
    async def find_on(db: AsyncSession, day: date) -> Optional[HolidayResponse]:
        """The holiday occurring on *day*, if any."""
        for item in await HolidayService.list_for_year(db, day.year, day.month):
            if item.occurrence_date == day:
                return item
        return None

    @staticmethod
    async def holidays_between(db: AsyncSession, start: date, end: date) -> dict[date, str]:
        """Holiday names keyed by occurrence date, *start* to *end* inclusive."""
        found: dict[date, str] = {}
        for year in range(start.year, end.year + 1):
            for item in await HolidayService.list_for_year(db, year):
                if item.occurrence_date and start <= item.occurrence_date <= end:
                    found.setdefault(item.occurrence_date, item.name)
        return found

    @staticmethod
    async def upcoming(
        db: AsyncSession,
        today: date,
        limit: int = 5,
    ) -> list[HolidayResponse]:
        items = [
            h
            for year in (today.year, today.year + 1)
            for h in await HolidayService.list_for_year(db, year)
            if h.occurrence_date and h.occurrence_date >= today
        ]
        items.sort(key=lambda h: h.occurrence_date)
        return items[:limit]

    @staticmethod
    async def today_status(db: AsyncSession, today: date) -> TodayHolidayStatus:
        holiday = await HolidayService.find_on(db, today)
        return TodayHolidayStatus(date=today, is_holiday=holiday is not None, holiday=holiday)

    @staticmethod
    async def statistics(db: AsyncSession, year: int, today: date) -> HolidayStatistics:
        items = await HolidayService.list_for_year(db, year)
        by_month = {m: 0 for m in range(1, 13)}
        for item in items:
            by_month[item.occurrence_date.month] += 1
        upcoming = sum(1 for h in items if h.occurrence_date >= today)
        return HolidayStatistics(
            year=year,
            total=len(items),
            recurring=sum(1 for h in items if h.is_recurring),
            upcoming=upcoming,
            past=len(items) - upcoming,
            by_month=by_month,
        )

    # ── Admin CRUD ──────────────────────────────────────────────────

    @staticmethod
    async def _ensure_free(
        db: AsyncSession,
        day: date,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Holiday.id).where(Holiday.date == day)
        if exclude_id is not None:
            query = query.where(Holiday.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("date", day.isoformat())

    @staticmethod
    async def create_holiday(
        db: AsyncSession,
        data: HolidayCreate,
        actor_id: uuid.UUID,
    ) -> Holiday:
        await HolidayService._ensure_free(db, data.date)
        holiday = Holiday(**data.model_dump())
        db.add(holiday)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="holiday",
            entity_id=holiday.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        recipients = await active_user_ids(db)
        await NotificationService.create_bulk(
            db,
            recipients,
            title="New Holiday",
            message=f"{holiday.name} on {holiday.date.isoformat()} has been added to the calendar.",
            type=NotificationType.holiday,
            related_id=holiday.id,
        )
        logger.info("Holiday %s added for %s", holiday.name, holiday.date)
        return holiday

    @staticmethod
    async def update_holiday(
        db: AsyncSession,
        holiday_id: uuid.UUID,
        data: HolidayUpdate,
        actor_id: uuid.UUID,
    ) -> Holiday:
        holiday = await HolidayService.get_holiday(db, holiday_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "date" in changes and changes["date"] != holiday.date:
            await HolidayService._ensure_free(db, changes["date"], exclude_id=holiday.id)

        old_values = {k: str(getattr(holiday, k)) for k in changes}
        for field, value in changes.items():
            setattr(holiday, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="holiday",
            entity_id=holiday.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={k: str(v) for k, v in changes.items()},
        )
        return holiday

    @staticmethod
    async def delete_holiday(
        db: AsyncSession,
        holiday_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        holiday = await HolidayService.get_holiday(db, holiday_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="holiday",
            entity_id=holiday.id,
            actor_id=actor_id,
            old_values={"name": holiday.name, "date": holiday.date.isoformat()},
        )
        await db.delete(holiday)
        await db.flush()
