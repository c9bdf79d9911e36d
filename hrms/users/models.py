"""Users ORM models: Department, User.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Enum-valued columns are stored as plain strings; the allowed values live
in ``hrms.common.constants``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import UserRole
from hrms.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base):
    """Organisational department."""

    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    users: Mapped[list[User]] = relationship(back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# User
# ═════════════════════════════════════════════════════════════════════


class User(Base):
    """Login account and employee record in one row."""

    __tablename__ = "users"

    # ── Primary key ─────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Credentials ─────────────────────────────────────────────────
    username: Mapped[str] = mapped_column(
        sa.String(100), unique=True, nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=UserRole.employee.value,
    )
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)

    # ── Identity ────────────────────────────────────────────────────
    full_name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    employee_code: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )
    email: Mapped[str] = mapped_column(
        sa.String(255), unique=True, nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(sa.String(30))
    address: Mapped[Optional[str]] = mapped_column(sa.Text)

    # ── Employment ──────────────────────────────────────────────────
    job_title: Mapped[Optional[str]] = mapped_column(sa.String(150))
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("departments.id", ondelete="SET NULL"),
    )
    base_salary: Mapped[Decimal] = mapped_column(
        sa.Numeric(12, 2), nullable=False, default=Decimal("0"),
    )
    start_date: Mapped[Optional[date]] = mapped_column(sa.Date)

    # ── Timestamps ──────────────────────────────────────────────────
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # ── Relationships ───────────────────────────────────────────────
    department: Mapped[Optional[Department]] = relationship(
        back_populates="users", lazy="joined",
    )

    __table_args__ = (
        sa.Index("ix_users_department_id", "department_id"),
        sa.Index("ix_users_role", "role"),
    )

    @property
    def department_name(self) -> Optional[str]:
        return self.department.name if self.department else None

    def __repr__(self) -> str:
        return f"<User {self.employee_code} {self.username!r} ({self.role})>"
