"""Expenses service layer — CRUD + approval workflow for department expenses."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import EXPENSE_TRANSITIONS, ExpenseStatus, NotificationType
from hrms.common.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import now_utc
from hrms.expenses.models import Expense
from hrms.expenses.schemas import (
    ExpenseAnalytics,
    ExpenseCreate,
    ExpenseMonthTotals,
    ExpenseResponse,
    ExpenseTotals,
    ExpenseUpdate,
)
from hrms.notifications.service import notify_admins, notify_user
from hrms.users.models import User
from hrms.users.service import DepartmentService

logger = logging.getLogger(__name__)

# Audit action per target status
_ACTIONS = {
    ExpenseStatus.approved: "approve",
    ExpenseStatus.rejected: "reject",
    ExpenseStatus.paid: "pay",
}


class ExpenseService:
    """Business logic for expense operations."""

    # ── Create ────────────────────────────────────────────────────────

    @staticmethod
    async def create_expense(
        db: AsyncSession,
        submitter: User,
        data: ExpenseCreate,
        department_id: Optional[uuid.UUID],
    ) -> Expense:
        """Create a pending expense attributed to *department_id*."""
        if department_id is not None:
            await DepartmentService.get_department(db, department_id)

        expense = Expense(
            user_id=submitter.id,
            department_id=department_id,
            item_name=data.item_name,
            amount=data.amount,
            reason=data.reason,
            date=data.date,
            status=ExpenseStatus.pending.value,
        )
        db.add(expense)
        await db.flush()
        await db.refresh(expense, attribute_names=["submitter", "department"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="expense",
            entity_id=expense.id,
            actor_id=submitter.id,
            new_values=jsonable(data.model_dump() | {"department_id": department_id}),
        )
        await notify_admins(
            db,
            "New Expense",
            f"{submitter.full_name} recorded '{expense.item_name}' for {expense.amount}.",
            NotificationType.expense,
            expense.id,
        )
        logger.info("Expense %s created by %s", expense.id, submitter.username)
        return expense

    # ── Read ──────────────────────────────────────────────────────────

    @staticmethod
    async def get_expense(db: AsyncSession, expense_id: uuid.UUID) -> Expense:
        result = await db.execute(select(Expense).where(Expense.id == expense_id))
        expense = result.scalars().first()
        if expense is None:
            raise NotFoundException("Expense", expense_id)
        return expense

    @staticmethod
    async def get_in_department(
        db: AsyncSession,
        expense_id: uuid.UUID,
        department_id: uuid.UUID,
    ) -> Expense:
        expense = await ExpenseService.get_expense(db, expense_id)
        if expense.department_id != department_id:
            raise ForbiddenException("This expense does not belong to your department.")
        return expense

    @staticmethod
    async def list_expenses(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        department_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        status: Optional[ExpenseStatus] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(Expense).order_by(Expense.date.desc(), Expense.created_at.desc())
        query = apply_filters(
            query,
            Expense,
            {
                "department_id": department_id,
                "user_id": user_id,
                "status": status.value if status else None,
                "date__from": date(year, 1, 1) if year else None,
                "date__to": date(year, 12, 31) if year else None,
            },
        )
        query = apply_search(query, Expense, search, ["item_name", "reason"])
        return await paginate(db, query, pagination, model=Expense, schema=ExpenseResponse)

    # ── Update / delete (pending only) ────────────────────────────────

    @staticmethod
    def _ensure_pending(expense: Expense, action: str) -> None:
        if expense.status != ExpenseStatus.pending.value:
            raise ValidationException(
                {"status": [f"Cannot {action} an expense with status '{expense.status}'."]}
            )

    @staticmethod
    async def update_expense(
        db: AsyncSession,
        expense: Expense,
        data: ExpenseUpdate,
        actor_id: uuid.UUID,
    ) -> Expense:
        ExpenseService._ensure_pending(expense, "update")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        old_values = {k: getattr(expense, k) for k in changes}
        for field, value in changes.items():
            setattr(expense, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="expense",
            entity_id=expense.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return expense

    @staticmethod
    async def delete_expense(
        db: AsyncSession,
        expense: Expense,
        actor_id: uuid.UUID,
    ) -> None:
        ExpenseService._ensure_pending(expense, "delete")
        await create_audit_entry(
            db,
            action="delete",
            entity_type="expense",
            entity_id=expense.id,
            actor_id=actor_id,
            old_values={"item_name": expense.item_name, "amount": str(expense.amount)},
        )
        await db.delete(expense)
        await db.flush()

    # ── Approval flow ─────────────────────────────────────────────────

    @staticmethod
    async def transition(
        db: AsyncSession,
        expense_id: uuid.UUID,
        actor: User,
        target: ExpenseStatus,
        rejection_reason: Optional[str] = None,
    ) -> Expense:
        """Move an expense along ``EXPENSE_TRANSITIONS`` and notify the submitter."""
        expense = await ExpenseService.get_expense(db, expense_id)
        current = ExpenseStatus(expense.status)
        if target not in EXPENSE_TRANSITIONS[current]:
            raise InvalidTransitionException("expense", current.value, target.value)

        now = now_utc()
        expense.status = target.value
        if target == ExpenseStatus.approved:
            expense.approved_by = actor.id
            expense.approved_at = now
        elif target == ExpenseStatus.rejected:
            expense.rejected_by = actor.id
            expense.rejected_at = now
            expense.rejection_reason = rejection_reason
        else:
            expense.paid_by = actor.id
            expense.paid_at = now
        await db.flush()

        await create_audit_entry(
            db,
            action=_ACTIONS[target],
            entity_type="expense",
            entity_id=expense.id,
            actor_id=actor.id,
            old_values={"status": current.value},
            new_values={"status": target.value, "rejection_reason": rejection_reason},
        )

        message = f"Your expense '{expense.item_name}' ({expense.amount}) was marked {target.value}."
        if rejection_reason:
            message += f" Reason: {rejection_reason}"
        await notify_user(
            db,
            expense.user_id,
            f"Expense {target.value.title()}",
            message,
            NotificationType.expense,
            expense.id,
        )
        logger.info("Expense %s %s -> %s by %s", expense.id, current.value, target.value, actor.username)
        return expense

    # ── Analytics ─────────────────────────────────────────────────────

    @staticmethod
    async def analytics(
        db: AsyncSession,
        year: int,
        department_id: Optional[uuid.UUID] = None,
    ) -> ExpenseAnalytics:
        query = select(Expense.date, Expense.amount, Expense.status).where(
            Expense.date >= date(year, 1, 1),
            Expense.date <= date(year, 12, 31),
        )
        if department_id is not None:
            query = query.where(Expense.department_id == department_id)
        rows = (await db.execute(query)).all()

        total = ExpenseTotals()
        by_status = {s.value: ExpenseTotals() for s in ExpenseStatus}
        by_month = [ExpenseMonthTotals(month=m) for m in range(1, 13)]
        for day, amount, status in rows:
            amount = Decimal(amount)
            for bucket in (total, by_status[status], by_month[day.month - 1]):
                bucket.count += 1
                bucket.amount += amount
        return ExpenseAnalytics(year=year, total=total, by_status=by_status, by_month=by_month)
