"""Salary Pydantic v2 schemas — configuration, payroll records, adjustments,
components."""


import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import AdjustmentType, ComponentType, SalaryStatus


# ═════════════════════════════════════════════════════════════════════
# Configuration
# ═════════════════════════════════════════════════════════════════════


class SalaryConfigResponse(BaseModel):
    tax_rate: Decimal
    absence_deduction_per_day: Decimal
    latency_deduction_per_minute: Decimal
    overtime_rate_multiplier: Decimal
    working_days_per_month: int
    grace_period_minutes: int


class SalaryConfigUpdate(BaseModel):
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    absence_deduction_per_day: Optional[Decimal] = Field(None, ge=0)
    latency_deduction_per_minute: Optional[Decimal] = Field(None, ge=0)
    overtime_rate_multiplier: Optional[Decimal] = Field(None, ge=0)
    working_days_per_month: Optional[int] = Field(None, ge=1, le=31)
    grace_period_minutes: Optional[int] = Field(None, ge=0, le=240)


# ═════════════════════════════════════════════════════════════════════
# Monthly salary records
# ═════════════════════════════════════════════════════════════════════


class SalaryPeriod(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class CalculateForUserRequest(SalaryPeriod):
    user_id: uuid.UUID


class PaySalaryRequest(BaseModel):
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)


class MonthlySalaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    employee_name: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    month: int
    year: int
    base_salary: Decimal
    total_bonuses: Decimal
    total_allowances: Decimal
    overtime_pay: Decimal
    absence_deductions: Decimal
    lateness_deductions: Decimal
    tax_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    gross_salary: Decimal
    net_salary: Decimal
    working_days: int
    present_days: int
    absent_days: int
    late_days: int
    total_late_minutes: int
    overtime_minutes: int
    status: SalaryStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    paid_by: Optional[uuid.UUID] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class CalculationResult(BaseModel):
    month: int
    year: int
    calculated: int
    skipped: int
    records: list[MonthlySalaryResponse]


class DepartmentSalaryOverview(BaseModel):
    """Manager view of a department's payroll for one month."""

    department_id: uuid.UUID
    month: int
    year: int
    employees: int
    calculated: int
    total_base: Decimal
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    records: list[MonthlySalaryResponse]


# ═════════════════════════════════════════════════════════════════════
# Adjustments
# ═════════════════════════════════════════════════════════════════════


class AdjustmentCreate(SalaryPeriod):
    user_id: uuid.UUID
    adjustment_type: AdjustmentType
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    hours: Optional[Decimal] = Field(None, ge=0, max_digits=6, decimal_places=2)
    reason: str = Field(..., min_length=1, max_length=2000)


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    employee_name: Optional[str] = None
    monthly_salary_id: Optional[uuid.UUID] = None
    adjustment_type: AdjustmentType
    amount: Decimal
    hours: Optional[Decimal] = None
    reason: str
    month: int
    year: int
    is_applied: bool
    applied_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Components
# ═════════════════════════════════════════════════════════════════════


class ComponentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    component_type: ComponentType
    is_percentage: bool = False
    default_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=2000)


class ComponentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    component_type: Optional[ComponentType] = None
    is_percentage: Optional[bool] = None
    default_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=2000)
    is_active: Optional[bool] = None


class ComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    component_type: ComponentType
    is_percentage: bool
    default_amount: Decimal
    description: Optional[str] = None
    is_active: bool


class ComponentAssign(BaseModel):
    """Assign a component to a user; ``amount`` defaults to the component's."""

    user_id: uuid.UUID
    component_id: uuid.UUID
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    effective_from: date
    effective_to: Optional[date] = None
    is_recurring: bool = True


class EmployeeComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    component_id: uuid.UUID
    component_name: Optional[str] = None
    component_type: Optional[ComponentType] = None
    is_percentage: bool = False
    amount: Decimal
    effective_from: date
    effective_to: Optional[date] = None
    is_recurring: bool
    is_active: bool
