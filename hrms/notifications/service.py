"""Notification service — CRUD operations and fan-out helpers used by every module."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import NotificationType, UserRole
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.common.pagination import PaginationParams, build_meta
from hrms.notifications.models import Notification
from hrms.notifications.schemas import (
    NotificationListMeta,
    NotificationListResponse,
    NotificationResponse,
)
from hrms.users.models import User

logger = logging.getLogger(__name__)


# ── Core service ────────────────────────────────────────────────────


class NotificationService:
    """Async notification operations."""

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.info,
        related_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Create a new notification and flush to DB."""
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            related_id=related_id,
        )
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def create_bulk(
        db: AsyncSession,
        user_ids: Iterable[uuid.UUID],
        *,
        title: str,
        message: str,
        type: NotificationType = NotificationType.info,
        related_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Create the same notification for many users. Returns count created."""
        count = 0
        for user_id in dict.fromkeys(user_ids):
            db.add(
                Notification(
                    user_id=user_id,
                    type=NotificationType(type).value,
                    title=title,
                    message=message,
                    related_id=related_id,
                )
            )
            count += 1
        await db.flush()
        return count

    @staticmethod
    async def get_notifications(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        is_read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        """Return paginated notifications for a user, newest first."""
        query = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )

        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if notification_type is not None:
            query = query.where(Notification.type == notification_type.value)

        count_q = select(func.count()).select_from(query.order_by(None).subquery())
        total: int = (await db.execute(count_q)).scalar_one()

        rows = (
            await db.execute(
                query.offset(pagination.offset).limit(pagination.page_size)
            )
        ).scalars().all()

        # Unread count (always unfiltered: for the badge)
        unread = await NotificationService.get_unread_count(db, user_id)
        meta = build_meta(total, pagination.page, pagination.page_size)

        return NotificationListResponse(
            data=[NotificationResponse.model_validate(n) for n in rows],
            meta=NotificationListMeta(**meta.model_dump(), unread=unread),
        )

    @staticmethod
    async def _get_own(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        result = await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        notification = result.scalars().first()
        if notification is None:
            raise NotFoundException("Notification", notification_id)
        if notification.user_id != user_id:
            raise ForbiddenException("You can only access your own notifications.")
        return notification

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Notification:
        """Mark a single notification as read. Verifies ownership."""
        notification = await NotificationService._get_own(db, notification_id, user_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    @staticmethod
    async def mark_all_read(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Bulk-mark all unread notifications as read. Returns count updated."""
        result = await db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def delete_notification(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        notification = await NotificationService._get_own(db, notification_id, user_id)
        await db.execute(delete(Notification).where(Notification.id == notification.id))
        await db.flush()

    @staticmethod
    async def get_unread_count(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> int:
        """Return the number of unread notifications for a user."""
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()


# ── Recipient lookups ───────────────────────────────────────────────


async def department_manager_ids(
    db: AsyncSession,
    department_id: Optional[uuid.UUID],
) -> list[uuid.UUID]:
    """Active managers of a department (empty when there is no department)."""
    if department_id is None:
        return []
    result = await db.execute(
        select(User.id).where(
            User.department_id == department_id,
            User.role == UserRole.manager.value,
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def admin_ids(db: AsyncSession) -> list[uuid.UUID]:
    result = await db.execute(
        select(User.id).where(
            User.role == UserRole.admin.value,
            User.is_active.is_(True),
        )
    )
    return list(result.scalars().all())


async def active_user_ids(
    db: AsyncSession,
    department_id: Optional[uuid.UUID] = None,
) -> list[uuid.UUID]:
    """All active users, or only those of *department_id* when given."""
    query = select(User.id).where(User.is_active.is_(True))
    if department_id is not None:
        query = query.where(User.department_id == department_id)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Cross-module helper dispatchers ─────────────────────────────────


async def notify_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: NotificationType = NotificationType.info,
    related_id: Optional[uuid.UUID] = None,
) -> Notification:
    return await NotificationService.create_notification(
        db,
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_id=related_id,
    )


async def notify_department_managers(
    db: AsyncSession,
    department_id: Optional[uuid.UUID],
    title: str,
    message: str,
    type: NotificationType = NotificationType.info,
    related_id: Optional[uuid.UUID] = None,
    *,
    exclude: Optional[uuid.UUID] = None,
) -> int:
    """Notify a department's managers; falls back to admins when it has none."""
    recipients = await department_manager_ids(db, department_id)
    if not recipients:
        recipients = await admin_ids(db)
    recipients = [r for r in recipients if r != exclude]
    if not recipients:
        logger.warning("No recipients for '%s' (department %s)", title, department_id)
        return 0
    return await NotificationService.create_bulk(
        db, recipients, title=title, message=message, type=type, related_id=related_id,
    )


async def notify_admins(
    db: AsyncSession,
    title: str,
    message: str,
    type: NotificationType = NotificationType.info,
    related_id: Optional[uuid.UUID] = None,
) -> int:
    return await NotificationService.create_bulk(
        db, await admin_ids(db), title=title, message=message, type=type, related_id=related_id,
    )
