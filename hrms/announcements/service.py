"""Announcement service — authoring, recipient fan-out and read tracking."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.announcements.models import Announcement, AnnouncementRecipient
from hrms.announcements.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    MyAnnouncementResponse,
)
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import NotificationType
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import local_today, now_utc
from hrms.notifications.service import NotificationService, active_user_ids
from hrms.users.models import User
from hrms.users.service import DepartmentService

logger = logging.getLogger(__name__)


def _mine(row: AnnouncementRecipient) -> MyAnnouncementResponse:
    data = AnnouncementResponse.model_validate(row.announcement).model_dump()
    return MyAnnouncementResponse(**data, is_read=row.is_read, read_at=row.read_at)


class AnnouncementService:
    """Async announcement operations."""

    @staticmethod
    async def get_announcement(db: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
        result = await db.execute(select(Announcement).where(Announcement.id == announcement_id))
        announcement = result.scalars().first()
        if announcement is None:
            raise NotFoundException("Announcement", announcement_id)
        return announcement

    @staticmethod
    async def list_announcements(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        department_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(Announcement).order_by(
            Announcement.date.desc(), Announcement.created_at.desc(),
        )
        query = apply_filters(
            query,
            Announcement,
            {
                "department_id": department_id,
                "is_active": is_active,
                "title__ilike": search,
            },
        )
        return await paginate(
            db, query, pagination, model=Announcement, schema=AnnouncementResponse,
        )

    @staticmethod
    async def create_announcement(
        db: AsyncSession,
        data: AnnouncementCreate,
        author: User,
        department_id: Optional[uuid.UUID] = None,
    ) -> Announcement:
        """Create and deliver to the department's active users, or everyone when company-wide."""
        if department_id is not None:
            await DepartmentService.get_department(db, department_id)

        announcement = Announcement(
            title=data.title,
            description=data.description,
            department_id=department_id,
            created_by=author.id,
            is_active=True,
            date=data.date or local_today(),
        )
        db.add(announcement)
        await db.flush()

        recipients = await active_user_ids(db, department_id)
        db.add_all(
            AnnouncementRecipient(announcement_id=announcement.id, user_id=uid)
            for uid in recipients
        )
        await NotificationService.create_bulk(
            db,
            [uid for uid in recipients if uid != author.id],
            title=f"Announcement: {announcement.title}",
            message=announcement.description[:200],
            type=NotificationType.announcement,
            related_id=announcement.id,
        )
        await db.flush()
        await db.refresh(announcement, attribute_names=["department", "author"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="announcement",
            entity_id=announcement.id,
            actor_id=author.id,
            new_values=jsonable({**data.model_dump(), "department_id": department_id}),
        )
        logger.info(
            "Announcement %r published to %d recipient(s)", announcement.title, len(recipients),
        )
        return announcement

    @staticmethod
    async def update_announcement(
        db: AsyncSession,
        announcement_id: uuid.UUID,
        data: AnnouncementUpdate,
        actor_id: uuid.UUID,
    ) -> Announcement:
        announcement = await AnnouncementService.get_announcement(db, announcement_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        old_values = {k: getattr(announcement, k) for k in changes}
        for field, value in changes.items():
            setattr(announcement, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="announcement",
            entity_id=announcement.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return announcement

    @staticmethod
    async def toggle_active(
        db: AsyncSession,
        announcement_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> Announcement:
        announcement = await AnnouncementService.get_announcement(db, announcement_id)
        announcement.is_active = not announcement.is_active
        await db.flush()
        await create_audit_entry(
            db,
            action="activate" if announcement.is_active else "deactivate",
            entity_type="announcement",
            entity_id=announcement.id,
            actor_id=actor_id,
            new_values={"is_active": announcement.is_active},
        )
        return announcement

    @staticmethod
    async def delete_announcement(
        db: AsyncSession,
        announcement_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        announcement = await AnnouncementService.get_announcement(db, announcement_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="announcement",
            entity_id=announcement.id,
            actor_id=actor_id,
            old_values={"title": announcement.title},
        )
        await db.delete(announcement)
        await db.flush()

    # ── Recipient views ──────────────────────────────────────────────

    @staticmethod
    async def list_mine(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        is_read: Optional[bool] = None,
    ) -> PaginatedResponse[MyAnnouncementResponse]:
        """Active announcements delivered to *user_id*, newest first."""
        query = (
            select(AnnouncementRecipient)
            .join(Announcement, AnnouncementRecipient.announcement_id == Announcement.id)
            .where(
                AnnouncementRecipient.user_id == user_id,
                Announcement.is_active.is_(True),
            )
            .order_by(Announcement.date.desc(), Announcement.created_at.desc())
        )
        if is_read is not None:
            query = query.where(AnnouncementRecipient.is_read.is_(is_read))
        page = await paginate(db, query, pagination)
        return PaginatedResponse[MyAnnouncementResponse](
            data=[_mine(row) for row in page.data], meta=page.meta,
        )

    @staticmethod
    async def mark_read(
        db: AsyncSession,
        announcement_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> MyAnnouncementResponse:
        await AnnouncementService.get_announcement(db, announcement_id)
        result = await db.execute(
            select(AnnouncementRecipient).where(
                AnnouncementRecipient.announcement_id == announcement_id,
                AnnouncementRecipient.user_id == user_id,
            )
        )
        row = result.scalars().first()
        if row is None:
            raise ForbiddenException("This announcement was not addressed to you.")
        if not row.is_read:
            row.is_read = True
            row.read_at = now_utc()
            await db.flush()
        return _mine(row)
