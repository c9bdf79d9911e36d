"""Expenses ORM model: Expense.

SQLAlchemy 2.0 async-compatible models.
"""

# Annotations are evaluated eagerly: the table has a column named ``date``.

import datetime as dt
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import ExpenseStatus
from hrms.database import Base
from hrms.users.models import Department, User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Expense(Base):
    """Department expense moving through pending → approved/rejected → paid."""

    __tablename__ = "expenses"
    __table_args__ = (
        sa.Index("ix_expenses_department_status", "department_id", "status"),
        sa.Index("ix_expenses_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id", ondelete="SET NULL"),
    )
    item_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=ExpenseStatus.pending.value,
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejected_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    rejected_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    paid_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)

    # Relationships
    submitter: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")
    department: Mapped[Optional[Department]] = relationship(lazy="joined")

    @property
    def submitter_name(self) -> Optional[str]:
        return self.submitter.full_name if self.submitter else None

    @property
    def department_name(self) -> Optional[str]:
        return self.department.name if self.department else None

    def __repr__(self) -> str:
        return f"<Expense '{self.item_name[:30]}' {self.amount} {self.status}>"
