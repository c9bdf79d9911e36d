"""Expense endpoints.

Routes (mounted in main.py):
    /api/manager/expenses            — department expenses: create, list, edit while pending
    /api/admin/expenses              — all expenses, approval workflow, analytics
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_department, require_role
from hrms.common.constants import ExpenseStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.common.timeutils import local_today
from hrms.database import get_db
from hrms.expenses.schemas import (
    ExpenseAnalytics,
    ExpenseCreate,
    ExpenseReject,
    ExpenseResponse,
    ExpenseUpdate,
)
from hrms.expenses.service import ExpenseService
from hrms.users.models import User

manager_router = APIRouter(prefix="", tags=["manager: expenses"])
admin_router = APIRouter(prefix="", tags=["admin: expenses"])


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_router.post("", response_model=ExpenseResponse, status_code=201)
async def create_department_expense(
    body: ExpenseCreate,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.create_expense(
        db, manager, body, department_id=require_department(manager),
    )
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@manager_router.get("", response_model=PaginatedResponse[ExpenseResponse])
async def list_department_expenses(
    status: Optional[ExpenseStatus] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    pagination: PaginationParams = Depends(),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.list_expenses(
        db,
        pagination,
        department_id=require_department(manager),
        status=status,
        year=year,
    )


@manager_router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_department_expense(
    expense_id: uuid.UUID,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.get_in_department(db, expense_id, require_department(manager))
    return ExpenseResponse.model_validate(expense)


@manager_router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_department_expense(
    expense_id: uuid.UUID,
    body: ExpenseUpdate,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.get_in_department(db, expense_id, require_department(manager))
    expense = await ExpenseService.update_expense(db, expense, body, actor_id=manager.id)
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@manager_router.delete("/{expense_id}", status_code=204)
async def delete_department_expense(
    expense_id: uuid.UUID,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.get_in_department(db, expense_id, require_department(manager))
    await ExpenseService.delete_expense(db, expense, actor_id=manager.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Admin
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("", response_model=PaginatedResponse[ExpenseResponse])
async def list_expenses(
    status: Optional[ExpenseStatus] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.list_expenses(
        db,
        pagination,
        department_id=department_id,
        user_id=user_id,
        status=status,
        year=year,
        search=search,
    )


@admin_router.get("/analytics", response_model=ExpenseAnalytics)
async def expense_analytics(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    department_id: Optional[uuid.UUID] = Query(None),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.analytics(db, year or local_today().year, department_id)


@admin_router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return ExpenseResponse.model_validate(await ExpenseService.get_expense(db, expense_id))


@admin_router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    body: ExpenseCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.create_expense(
        db, admin, body, department_id=body.department_id,
    )
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@admin_router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: uuid.UUID,
    body: ExpenseUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.get_expense(db, expense_id)
    expense = await ExpenseService.update_expense(db, expense, body, actor_id=admin.id)
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@admin_router.delete("/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.get_expense(db, expense_id)
    await ExpenseService.delete_expense(db, expense, actor_id=admin.id)
    await db.commit()


@admin_router.put("/{expense_id}/approve", response_model=ExpenseResponse)
async def approve_expense(
    expense_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.transition(db, expense_id, admin, ExpenseStatus.approved)
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@admin_router.put("/{expense_id}/reject", response_model=ExpenseResponse)
async def reject_expense(
    expense_id: uuid.UUID,
    body: ExpenseReject,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.transition(
        db, expense_id, admin, ExpenseStatus.rejected, body.rejection_reason,
    )
    await db.commit()
    return ExpenseResponse.model_validate(expense)


@admin_router.put("/{expense_id}/pay", response_model=ExpenseResponse)
async def pay_expense(
    expense_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    expense = await ExpenseService.transition(db, expense_id, admin, ExpenseStatus.paid)
    await db.commit()
    return ExpenseResponse.model_validate(expense)
