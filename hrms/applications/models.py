"""Application ORM model — employee requests routed through department approval."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import ApplicationPriority, ApplicationType, ApprovalStatus
from hrms.database import Base
from hrms.users.models import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        sa.Index("ix_applications_user_id", "user_id"),
        sa.Index("ix_applications_department_status", "department_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id", ondelete="SET NULL")
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    application_type: Mapped[str] = mapped_column(
        sa.String(30), nullable=False, default=ApplicationType.leave_request.value
    )
    priority: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ApplicationPriority.medium.value
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ApprovalStatus.pending.value
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejected_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    rejected_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")

    @property
    def applicant_name(self) -> Optional[str]:
        return self.user.full_name if self.user else None

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1
