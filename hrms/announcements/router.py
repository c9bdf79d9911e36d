"""Announcement endpoints.

Routes (mounted in main.py):
    /api/admin/announcements         — CRUD + active toggle
    /api/manager/announcements       — own department: publish and list
    /api/shared/announcements        — announcements addressed to me, mark read
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.announcements.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    MyAnnouncementResponse,
)
from hrms.announcements.service import AnnouncementService
from hrms.auth.dependencies import get_current_user, require_department, require_role
from hrms.common.constants import UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db
from hrms.users.models import User

admin_router = APIRouter(prefix="", tags=["admin: announcements"])
manager_router = APIRouter(prefix="", tags=["manager: announcements"])
shared_router = APIRouter(prefix="", tags=["announcements"])


# ═════════════════════════════════════════════════════════════════════
# Admin
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("", response_model=PaginatedResponse[AnnouncementResponse])
async def list_announcements(
    department_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.list_announcements(
        db, pagination, department_id=department_id, is_active=is_active, search=search,
    )


@admin_router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.get_announcement(db, announcement_id)
    return AnnouncementResponse.model_validate(announcement)


@admin_router.post("", response_model=AnnouncementResponse, status_code=201)
async def create_announcement(
    body: AnnouncementCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Publish company-wide, or to one department when ``department_id`` is set."""
    announcement = await AnnouncementService.create_announcement(
        db, body, admin, department_id=body.department_id,
    )
    await db.commit()
    return AnnouncementResponse.model_validate(announcement)


@admin_router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: uuid.UUID,
    body: AnnouncementUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.update_announcement(
        db, announcement_id, body, actor_id=admin.id,
    )
    await db.commit()
    return AnnouncementResponse.model_validate(announcement)


@admin_router.put("/{announcement_id}/toggle", response_model=AnnouncementResponse)
async def toggle_announcement(
    announcement_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.toggle_active(db, announcement_id, actor_id=admin.id)
    await db.commit()
    return AnnouncementResponse.model_validate(announcement)


@admin_router.delete("/{announcement_id}", status_code=204)
async def delete_announcement(
    announcement_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await AnnouncementService.delete_announcement(db, announcement_id, actor_id=admin.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_router.post("", response_model=AnnouncementResponse, status_code=201)
async def create_department_announcement(
    body: AnnouncementCreate,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.create_announcement(
        db, body, manager, department_id=require_department(manager),
    )
    await db.commit()
    return AnnouncementResponse.model_validate(announcement)


@manager_router.get("", response_model=PaginatedResponse[AnnouncementResponse])
async def list_department_announcements(
    is_active: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.list_announcements(
        db, pagination, department_id=require_department(manager), is_active=is_active,
    )


# ═════════════════════════════════════════════════════════════════════
# Shared: recipients
# ═════════════════════════════════════════════════════════════════════


@shared_router.get("", response_model=PaginatedResponse[MyAnnouncementResponse])
async def my_announcements(
    is_read: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AnnouncementService.list_mine(db, user.id, pagination, is_read=is_read)


@shared_router.put("/{announcement_id}/read", response_model=MyAnnouncementResponse)
async def mark_announcement_read(
    announcement_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await AnnouncementService.mark_read(db, announcement_id, user.id)
    await db.commit()
    return result
