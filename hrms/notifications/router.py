"""Notification endpoints — send, list, mark read, unread count, delete."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, is_admin, require_department, require_role
from hrms.common.constants import NotificationType, UserRole
from hrms.common.exceptions import ForbiddenException
from hrms.common.pagination import PaginationParams
from hrms.database import get_db
from hrms.notifications.schemas import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)
from hrms.notifications.service import NotificationService
from hrms.users.models import User
from hrms.users.service import UserService

router = APIRouter(prefix="", tags=["notifications"])


# ── POST /: send a notification (admin, or manager to own department) ──

@router.post("", response_model=NotificationResponse, status_code=201)
async def send_notification(
    body: NotificationCreate,
    request: Request,
    sender: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    recipient = await UserService.get_user(db, body.user_id)
    if not is_admin(request) and recipient.department_id != require_department(sender):
        raise ForbiddenException("Managers can only notify members of their own department.")

    notification = await NotificationService.create_notification(
        db,
        user_id=recipient.id,
        title=body.title,
        message=body.message,
        type=body.type,
        related_id=body.related_id,
    )
    await db.commit()
    return NotificationResponse.model_validate(notification)


# ── GET /: list current user's notifications ───────────────────────

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: Optional[bool] = Query(default=None, description="Filter by read status"),
    type: Optional[NotificationType] = Query(
        default=None, alias="type", description="Filter by notification type"
    ),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List notifications for the authenticated user (paginated)."""
    return await NotificationService.get_notifications(
        db,
        user_id=user.id,
        pagination=pagination,
        is_read=is_read,
        notification_type=type,
    )


# ── GET /unread-count: badge count ─────────────────────────────────
# NOTE: registered before /{notification_id} routes so the literal path wins.

@router.get("/unread-count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the number of unread notifications (for header badge)."""
    count = await NotificationService.get_unread_count(db, user.id)
    return {"data": {"count": count}}


# ── PUT /read-all: bulk mark all as read ───────────────────────────

@router.put("/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark all unread notifications as read for the authenticated user."""
    count = await NotificationService.mark_all_read(db, user.id)
    await db.commit()
    return {"message": "All notifications marked as read", "data": {"count": count}}


# ── PUT /{notification_id}/read: mark single as read ───────────────

@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a single notification as read."""
    notification = await NotificationService.mark_read(db, notification_id, user.id)
    await db.commit()
    return {
        "message": "Notification marked as read",
        "data": NotificationResponse.model_validate(notification),
    }


# ── DELETE /{notification_id} ───────────────────────────────────────

@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService.delete_notification(db, notification_id, user.id)
    await db.commit()
