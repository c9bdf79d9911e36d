"""Salary ORM models: SalaryComponent, EmployeeSalaryComponent, SalaryAdjustment,
MonthlySalary, SalaryConfiguration.

SQLAlchemy 2.0 async-compatible models.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import SalaryStatus
from hrms.database import Base
from hrms.users.models import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(**kwargs):
    return mapped_column(sa.Numeric(12, 2), nullable=False, default=Decimal("0"), **kwargs)


class SalaryComponent(Base):
    """Reusable bonus / allowance / deduction definition."""

    __tablename__ = "salary_components"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    component_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    is_percentage: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    default_amount: Mapped[Decimal] = _money()
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<SalaryComponent {self.name!r} {self.component_type}>"


class EmployeeSalaryComponent(Base):
    """A component assigned to one user for an effective date range."""

    __tablename__ = "employee_salary_components"
    __table_args__ = (
        sa.Index("ix_employee_salary_components_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    component_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("salary_components.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = _money()
    effective_from: Mapped[date] = mapped_column(sa.Date, nullable=False)
    effective_to: Mapped[Optional[date]] = mapped_column(sa.Date)
    is_recurring: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    component: Mapped[SalaryComponent] = relationship(lazy="joined")

    @property
    def component_name(self) -> Optional[str]:
        return self.component.name if self.component else None

    @property
    def component_type(self) -> Optional[str]:
        return self.component.component_type if self.component else None

    @property
    def is_percentage(self) -> bool:
        return bool(self.component and self.component.is_percentage)


class SalaryAdjustment(Base):
    """One-time bonus, deduction or overtime line for a user-month."""

    __tablename__ = "salary_adjustments"
    __table_args__ = (
        sa.Index("ix_salary_adjustments_period", "user_id", "year", "month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    monthly_salary_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("monthly_salaries.id", ondelete="SET NULL"),
    )
    adjustment_type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    hours: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(6, 2))
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    is_applied: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    applied_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")

    @property
    def employee_name(self) -> Optional[str]:
        return self.user.full_name if self.user else None


class MonthlySalary(Base):
    """Calculated payroll record for one user-month."""

    __tablename__ = "monthly_salaries"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "month", "year", name="uq_monthly_salary_period"),
        sa.Index("ix_monthly_salaries_period", "year", "month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    base_salary: Mapped[Decimal] = _money()
    total_bonuses: Mapped[Decimal] = _money()
    total_allowances: Mapped[Decimal] = _money()
    overtime_pay: Mapped[Decimal] = _money()
    absence_deductions: Mapped[Decimal] = _money()
    lateness_deductions: Mapped[Decimal] = _money()
    tax_deduction: Mapped[Decimal] = _money()
    other_deductions: Mapped[Decimal] = _money()
    total_deductions: Mapped[Decimal] = _money()
    gross_salary: Mapped[Decimal] = _money()
    net_salary: Mapped[Decimal] = _money()
    working_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    present_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    absent_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    late_days: Mapped[int] = mapped_column(sa.Integer, default=0)
    total_late_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    overtime_minutes: Mapped[int] = mapped_column(sa.Integer, default=0)
    status: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=SalaryStatus.calculated.value,
    )
    calculated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    paid_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    payment_method: Mapped[Optional[str]] = mapped_column(sa.String(50))
    payment_reference: Mapped[Optional[str]] = mapped_column(sa.String(100))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )

    # Relationships
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="joined")

    @property
    def employee_name(self) -> Optional[str]:
        return self.user.full_name if self.user else None

    @property
    def department_id(self) -> Optional[uuid.UUID]:
        return self.user.department_id if self.user else None

    def __repr__(self) -> str:
        return f"<MonthlySalary {self.user_id} {self.month:02d}/{self.year} {self.status}>"


class SalaryConfiguration(Base):
    """Key/value payroll settings; missing keys fall back to the defaults."""

    __tablename__ = "salary_configuration"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    config_key: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    config_value: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    updated_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow,
    )
