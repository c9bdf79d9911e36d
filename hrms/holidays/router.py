"""Holiday endpoints.

Routes (mounted in main.py):
    /api/admin/holidays              — list, CRUD + statistics
    /api/shared/holidays             — calendar, upcoming, today
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.common.constants import UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.common.timeutils import local_today
from hrms.database import get_db
from hrms.holidays.schemas import (
    HolidayCreate,
    HolidayResponse,
    HolidayStatistics,
    HolidayUpdate,
    TodayHolidayStatus,
)
from hrms.holidays.service import HolidayService
from hrms.users.models import User

admin_router = APIRouter(prefix="", tags=["admin: holidays"])
shared_router = APIRouter(prefix="", tags=["holidays"])


# ═════════════════════════════════════════════════════════════════════
# Admin
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("", response_model=PaginatedResponse[HolidayResponse])
async def list_holidays(
    is_recurring: Optional[bool] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await HolidayService.list_holidays(
        db, pagination, is_recurring=is_recurring, date_from=date_from, date_to=date_to, search=search,
    )


@admin_router.get("/statistics", response_model=HolidayStatistics)
async def holiday_statistics(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    today = local_today()
    return await HolidayService.statistics(db, year or today.year, today)


@admin_router.get("/{holiday_id}", response_model=HolidayResponse)
async def get_holiday(
    holiday_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    holiday = await HolidayService.get_holiday(db, holiday_id)
    return HolidayResponse.model_validate(holiday)


@admin_router.post("", response_model=HolidayResponse, status_code=201)
async def create_holiday(
    body: HolidayCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    holiday = await HolidayService.create_holiday(db, body, actor_id=admin.id)
    await db.commit()
    return HolidayResponse.model_validate(holiday)


@admin_router.put("/{holiday_id}", response_model=HolidayResponse)
async def update_holiday(
    holiday_id: uuid.UUID,
    body: HolidayUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    holiday = await HolidayService.update_holiday(db, holiday_id, body, actor_id=admin.id)
    await db.commit()
    return HolidayResponse.model_validate(holiday)


@admin_router.delete("/{holiday_id}", status_code=204)
async def delete_holiday(
    holiday_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await HolidayService.delete_holiday(db, holiday_id, actor_id=admin.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Shared (any authenticated user)
# ═════════════════════════════════════════════════════════════════════


@shared_router.get("", response_model=list[HolidayResponse])
async def list_holidays(
    year: Optional[int] = Query(None, ge=1970, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await HolidayService.list_for_year(db, year or local_today().year, month)


@shared_router.get("/upcoming", response_model=list[HolidayResponse])
async def upcoming_holidays(
    limit: int = Query(5, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await HolidayService.upcoming(db, local_today(), limit)


@shared_router.get("/today", response_model=TodayHolidayStatus)
async def today_status(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await HolidayService.today_status(db, local_today())
