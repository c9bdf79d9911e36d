"""Announcements ORM models: Announcement, AnnouncementRecipient."""

import datetime as dt
import uuid
from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.database import Base
from hrms.users.models import Department, User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Announcement(Base):
    """A notice for one department, or company-wide when ``department_id`` is null."""

    __tablename__ = "announcements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("departments.id", ondelete="CASCADE"),
        index=True,
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)

    # Relationships
    department: Mapped[Optional[Department]] = relationship(lazy="joined")
    author: Mapped[Optional[User]] = relationship(foreign_keys=[created_by], lazy="joined")

    @property
    def department_name(self) -> Optional[str]:
        return self.department.name if self.department else None

    @property
    def author_name(self) -> Optional[str]:
        return self.author.full_name if self.author else None

    def __repr__(self) -> str:
        return f"<Announcement {self.title!r} {self.date}>"


class AnnouncementRecipient(Base):
    """Per-user delivery row carrying read state."""

    __tablename__ = "announcement_recipients"
    __table_args__ = (
        sa.UniqueConstraint("announcement_id", "user_id", name="uq_announcement_recipient"),
        sa.Index("ix_announcement_recipients_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    announcement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    is_read: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    announcement: Mapped[Announcement] = relationship(lazy="joined")
