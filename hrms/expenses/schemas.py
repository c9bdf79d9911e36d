"""Expense Pydantic v2 schemas."""


import datetime as dt
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import ExpenseStatus


class ExpenseCreate(BaseModel):
    """New expense. ``department_id`` is honoured for admins only; managers
    always book against their own department."""

    item_name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=2000)
    department_id: Optional[uuid.UUID] = None
    date: date


class ExpenseUpdate(BaseModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    reason: Optional[str] = Field(None, max_length=2000)
    date: Optional[dt.date] = None


class ExpenseReject(BaseModel):
    rejection_reason: str = Field(..., min_length=1, max_length=2000)


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    submitter_name: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    department_name: Optional[str] = None
    item_name: str
    amount: Decimal
    reason: Optional[str] = None
    date: date
    status: ExpenseStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[uuid.UUID] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_by: Optional[uuid.UUID] = None
    paid_at: Optional[datetime] = None
    created_at: datetime


# ── Analytics ───────────────────────────────────────────────────────


class ExpenseTotals(BaseModel):
    count: int = 0
    amount: Decimal = Decimal("0.00")


class ExpenseMonthTotals(ExpenseTotals):
    month: int


class ExpenseAnalytics(BaseModel):
    """Totals for a calendar year, overall, per status and per month."""

    year: int
    total: ExpenseTotals
    by_status: dict[str, ExpenseTotals]
    by_month: list[ExpenseMonthTotals]
