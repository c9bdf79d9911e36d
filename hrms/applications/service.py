"""Application service — submission, ownership rules and the approval workflow.

Status moves are limited to ``APPROVAL_TRANSITIONS``: an application leaves
``pending`` exactly once, to ``approved`` or ``rejected``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.applications.models import Application
from hrms.applications.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
)
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import (
    APPROVAL_TRANSITIONS,
    ApplicationType,
    ApprovalStatus,
    NotificationType,
)
from hrms.common.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import now_utc
from hrms.notifications.service import notify_department_managers, notify_user
from hrms.users.models import User

logger = logging.getLogger(__name__)


def _validate_dates(start_date: date, end_date: date) -> None:
    if start_date >= end_date:
        raise ValidationException({"end_date": ["start_date must be before end_date."]})


class ApplicationService:
    """Async application operations."""

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_application(db: AsyncSession, application_id: uuid.UUID) -> Application:
        result = await db.execute(select(Application).where(Application.id == application_id))
        application = result.scalars().first()
        if application is None:
            raise NotFoundException("Application", application_id)
        return application

    @staticmethod
    async def get_own(
        db: AsyncSession,
        application_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Application:
        application = await ApplicationService.get_application(db, application_id)
        if application.user_id != user_id:
            raise ForbiddenException("You can only access your own applications.")
        return application

    @staticmethod
    async def get_in_department(
        db: AsyncSession,
        application_id: uuid.UUID,
        department_id: uuid.UUID,
    ) -> Application:
        application = await ApplicationService.get_application(db, application_id)
        if application.department_id != department_id:
            raise ForbiddenException("This application is not from your department.")
        return application

    @staticmethod
    async def list_applications(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[ApprovalStatus] = None,
        application_type: Optional[ApplicationType] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(Application).order_by(Application.created_at.desc())
        query = apply_filters(
            query,
            Application,
            {
                "user_id": user_id,
                "department_id": department_id,
                "status": status.value if status else None,
                "application_type": application_type.value if application_type else None,
                "start_date__from": from_date,
                "start_date__to": to_date,
            },
        )
        query = apply_search(query, Application, search, ["title", "reason"])
        return await paginate(
            db, query, pagination, model=Application, schema=ApplicationResponse,
        )

    # ── Employee writes ─────────────────────────────────────────────

    @staticmethod
    async def submit(
        db: AsyncSession,
        user: User,
        data: ApplicationCreate,
    ) -> Application:
        _validate_dates(data.start_date, data.end_date)
        application = Application(
            user_id=user.id,
            department_id=user.department_id,
            title=data.title,
            reason=data.reason,
            application_type=data.application_type.value,
            priority=data.priority.value,
            start_date=data.start_date,
            end_date=data.end_date,
            status=ApprovalStatus.pending.value,
        )
        db.add(application)
        await db.flush()
        await db.refresh(application, attribute_names=["user"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="application",
            entity_id=application.id,
            actor_id=user.id,
            new_values=jsonable(data.model_dump()),
        )
        await notify_user(
            db,
            user.id,
            "Application Submitted",
            f"Your application '{application.title}' was submitted and is pending review.",
            NotificationType.application,
            application.id,
        )
        await notify_department_managers(
            db,
            user.department_id,
            "New Application",
            f"{user.full_name} submitted '{application.title}' "
            f"({application.start_date.isoformat()} to {application.end_date.isoformat()}).",
            NotificationType.application,
            application.id,
            exclude=user.id,
        )
        logger.info("Application %s submitted by %s", application.id, user.username)
        return application

    @staticmethod
    def _ensure_pending(application: Application, action: str) -> None:
        if application.status != ApprovalStatus.pending.value:
            raise ForbiddenException(
                f"Only pending applications can be {action}; this one is {application.status}."
            )

    @staticmethod
    async def update_own(
        db: AsyncSession,
        application_id: uuid.UUID,
        user: User,
        data: ApplicationUpdate,
    ) -> Application:
        application = await ApplicationService.get_own(db, application_id, user.id)
        ApplicationService._ensure_pending(application, "updated")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        _validate_dates(
            changes.get("start_date", application.start_date),
            changes.get("end_date", application.end_date),
        )
        old_values = {k: getattr(application, k) for k in changes}
        for field, value in changes.items():
            setattr(application, field, getattr(value, "value", value))
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="application",
            entity_id=application.id,
            actor_id=user.id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return application

    @staticmethod
    async def delete_own(
        db: AsyncSession,
        application_id: uuid.UUID,
        user: User,
    ) -> None:
        application = await ApplicationService.get_own(db, application_id, user.id)
        ApplicationService._ensure_pending(application, "deleted")
        await ApplicationService._delete(db, application, user.id)

    @staticmethod
    async def delete_application(
        db: AsyncSession,
        application_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        application = await ApplicationService.get_application(db, application_id)
        await ApplicationService._delete(db, application, actor_id)

    @staticmethod
    async def _delete(db: AsyncSession, application: Application, actor_id: uuid.UUID) -> None:
        await create_audit_entry(
            db,
            action="delete",
            entity_type="application",
            entity_id=application.id,
            actor_id=actor_id,
            old_values={"title": application.title, "status": application.status},
        )
        await db.delete(application)
        await db.flush()

    # ── Review ──────────────────────────────────────────────────────

    @staticmethod
    async def decide(
        db: AsyncSession,
        application: Application,
        reviewer: User,
        target: ApprovalStatus,
        rejection_reason: Optional[str] = None,
    ) -> Application:
        """Move a pending application to *target* and notify the applicant."""
        current = ApprovalStatus(application.status)
        if target not in APPROVAL_TRANSITIONS[current]:
            raise InvalidTransitionException("application", current.value, target.value)
        if application.user_id == reviewer.id:
            raise ForbiddenException("You cannot review your own application.")

        now = now_utc()
        application.status = target.value
        if target == ApprovalStatus.approved:
            application.approved_by = reviewer.id
            application.approved_at = now
        else:
            application.rejected_by = reviewer.id
            application.rejected_at = now
            application.rejection_reason = rejection_reason
        await db.flush()

        await create_audit_entry(
            db,
            action="approve" if target == ApprovalStatus.approved else "reject",
            entity_type="application",
            entity_id=application.id,
            actor_id=reviewer.id,
            old_values={"status": current.value},
            new_values={"status": target.value, "rejection_reason": rejection_reason},
        )

        message = f"Your application '{application.title}' was {target.value}."
        if rejection_reason:
            message += f" Reason: {rejection_reason}"
        await notify_user(
            db,
            application.user_id,
            f"Application {target.value.title()}",
            message,
            NotificationType.application,
            application.id,
        )
        logger.info("Application %s %s by %s", application.id, target.value, reviewer.username)
        return application
