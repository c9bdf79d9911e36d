"""Attendance ORM models: WorkShift, WorkingDay, AttendanceRecord,
AttendanceCorrection, AttendanceSummary."""

# Annotations are evaluated eagerly here: several tables have a column
# literally named ``date``, which would shadow the type in deferred evaluation.

import datetime as dt
import uuid
from datetime import datetime, time, timezone
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import INET, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import ApprovalStatus, AttendanceStatus
from hrms.database import Base
from hrms.users.models import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkShift(Base):
    __tablename__ = "work_shifts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    grace_period_minutes: Mapped[int] = mapped_column(sa.Integer, default=15)
    is_default: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class WorkingDay(Base):
    """Configured hours for one weekday. Weekdays without a row are not worked."""

    __tablename__ = "working_days"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    day: Mapped[str] = mapped_column(sa.String(10), unique=True, nullable=False)
    start_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    end_time: Mapped[Optional[time]] = mapped_column(sa.Time)
    break_start: Mapped[Optional[time]] = mapped_column(sa.Time)
    break_end: Mapped[Optional[time]] = mapped_column(sa.Time)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class AttendanceRecord(Base):
    """One row per user per day."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
        sa.Index("ix_attendance_records_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    check_in: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    check_out: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    working_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=AttendanceStatus.present.value
    )
    is_late: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    late_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    is_early_departure: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    early_departure_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    overtime_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    location: Mapped[Optional[str]] = mapped_column(sa.String(255))
    ip_address: Mapped[Optional[str]] = mapped_column(INET)
    is_manual_entry: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")

    @property
    def employee_name(self) -> Optional[str]:
        return self.user.full_name if self.user else None


class AttendanceCorrection(Base):
    """Employee request to amend a day's check-in / check-out."""

    __tablename__ = "attendance_corrections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    attendance_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("attendance_records.id", ondelete="SET NULL")
    )
    request_type: Mapped[str] = mapped_column(sa.String(30), nullable=False)
    original_check_in: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    original_check_out: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    requested_check_in: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    requested_check_out: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ApprovalStatus.pending.value
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    review_notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")

    @property
    def employee_name(self) -> Optional[str]:
        return self.user.full_name if self.user else None


class AttendanceSummary(Base):
    """Per-user monthly roll-up, regenerated on demand."""

    __tablename__ = "attendance_summaries"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "month", "year", name="uq_attendance_summary_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_working_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    present_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    absent_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    late_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    leave_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_working_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_late_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_overtime_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    generated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
