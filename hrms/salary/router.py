"""Salary router — payroll configuration, calculation, approval and payment.

Routes (mounted in main.py):
    /api/admin/salary       — configuration, calculation, records, adjustments, components
    /api/manager/salary     — department overview and adjustments
    /api/employee/salary    — own salary records and adjustments
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_department, require_role
from hrms.common.constants import AdjustmentType, SalaryStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.common.timeutils import local_today
from hrms.database import get_db
from hrms.salary.schemas import (
    AdjustmentCreate,
    AdjustmentResponse,
    CalculateForUserRequest,
    CalculationResult,
    ComponentAssign,
    ComponentCreate,
    ComponentResponse,
    ComponentUpdate,
    DepartmentSalaryOverview,
    EmployeeComponentResponse,
    MonthlySalaryResponse,
    PaySalaryRequest,
    SalaryConfigResponse,
    SalaryConfigUpdate,
    SalaryPeriod,
)
from hrms.salary.service import SalaryService
from hrms.users.models import User

admin_router = APIRouter(prefix="", tags=["admin: salary"])
manager_router = APIRouter(prefix="", tags=["manager: salary"])
employee_router = APIRouter(prefix="", tags=["employee: salary"])


# ═════════════════════════════════════════════════════════════════════
# Admin: configuration
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("/config", response_model=SalaryConfigResponse)
async def get_config(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return SalaryService.config_response(await SalaryService.get_config(db))


@admin_router.put("/config", response_model=SalaryConfigResponse)
async def update_config(
    body: SalaryConfigUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    config = await SalaryService.update_config(db, body, actor_id=admin.id)
    await db.commit()
    return SalaryService.config_response(config)


# ═════════════════════════════════════════════════════════════════════
# Admin: calculation and records
# ═════════════════════════════════════════════════════════════════════


@admin_router.post("/calculate", response_model=CalculationResult)
async def calculate_month(
    body: SalaryPeriod,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Calculate salaries for every active user lacking a record for the month."""
    result = await SalaryService.calculate_month(db, body.year, body.month, actor_id=admin.id)
    await db.commit()
    return result


@admin_router.post("/calculate-user", response_model=MonthlySalaryResponse, status_code=201)
async def calculate_for_user(
    body: CalculateForUserRequest,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    salary = await SalaryService.calculate_for_user(
        db, body.user_id, body.year, body.month, actor_id=admin.id,
    )
    await db.commit()
    return MonthlySalaryResponse.model_validate(salary)


@admin_router.get("", response_model=PaginatedResponse[MonthlySalaryResponse])
async def list_salaries(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    status: Optional[SalaryStatus] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.list_salaries(
        db,
        pagination,
        user_id=user_id,
        department_id=department_id,
        month=month,
        year=year,
        status=status,
    )


# ── Adjustments ──────────────────────────────────────────────────────


@admin_router.post("/adjustments", response_model=AdjustmentResponse, status_code=201)
async def add_adjustment(
    body: AdjustmentCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    adjustment = await SalaryService.add_adjustment(db, body, admin)
    await db.commit()
    return AdjustmentResponse.model_validate(adjustment)


@admin_router.get("/adjustments", response_model=PaginatedResponse[AdjustmentResponse])
async def list_adjustments(
    user_id: Optional[uuid.UUID] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    is_applied: Optional[bool] = Query(None),
    adjustment_type: Optional[AdjustmentType] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.list_adjustments(
        db,
        pagination,
        user_id=user_id,
        month=month,
        year=year,
        is_applied=is_applied,
        adjustment_type=adjustment_type,
    )


@admin_router.delete("/adjustments/{adjustment_id}", status_code=204)
async def delete_adjustment(
    adjustment_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await SalaryService.delete_adjustment(db, adjustment_id, actor_id=admin.id)
    await db.commit()


# ── Components ───────────────────────────────────────────────────────


@admin_router.get("/components", response_model=list[ComponentResponse])
async def list_components(
    is_active: Optional[bool] = Query(None),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    components = await SalaryService.list_components(db, is_active=is_active)
    return [ComponentResponse.model_validate(c) for c in components]


@admin_router.post("/components", response_model=ComponentResponse, status_code=201)
async def create_component(
    body: ComponentCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    component = await SalaryService.create_component(db, body, actor_id=admin.id)
    await db.commit()
    return ComponentResponse.model_validate(component)


@admin_router.post("/components/assign", response_model=EmployeeComponentResponse, status_code=201)
async def assign_component(
    body: ComponentAssign,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    assignment = await SalaryService.assign_component(db, body, actor_id=admin.id)
    await db.commit()
    return EmployeeComponentResponse.model_validate(assignment)


@admin_router.delete("/components/assignments/{assignment_id}", status_code=204)
async def remove_assignment(
    assignment_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await SalaryService.remove_assignment(db, assignment_id, actor_id=admin.id)
    await db.commit()


@admin_router.put("/components/{component_id}", response_model=ComponentResponse)
async def update_component(
    component_id: uuid.UUID,
    body: ComponentUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    component = await SalaryService.update_component(db, component_id, body, actor_id=admin.id)
    await db.commit()
    return ComponentResponse.model_validate(component)


@admin_router.delete("/components/{component_id}", status_code=204)
async def delete_component(
    component_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await SalaryService.delete_component(db, component_id, actor_id=admin.id)
    await db.commit()


# ── Per-user ─────────────────────────────────────────────────────────


@admin_router.get("/users/{user_id}", response_model=PaginatedResponse[MonthlySalaryResponse])
async def user_salary_history(
    user_id: uuid.UUID,
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.list_salaries(db, pagination, user_id=user_id)


@admin_router.get("/users/{user_id}/components", response_model=list[EmployeeComponentResponse])
async def user_components(
    user_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    assignments = await SalaryService.user_components(db, user_id)
    return [EmployeeComponentResponse.model_validate(a) for a in assignments]


# ── Single record ────────────────────────────────────────────────────


@admin_router.get("/{salary_id}", response_model=MonthlySalaryResponse)
async def get_salary(
    salary_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return MonthlySalaryResponse.model_validate(await SalaryService.get_salary(db, salary_id))


@admin_router.put("/{salary_id}/recalculate", response_model=MonthlySalaryResponse)
async def recalculate_salary(
    salary_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    salary = await SalaryService.recalculate(db, salary_id, actor_id=admin.id)
    await db.commit()
    return MonthlySalaryResponse.model_validate(salary)


@admin_router.put("/{salary_id}/approve", response_model=MonthlySalaryResponse)
async def approve_salary(
    salary_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    salary = await SalaryService.transition(db, salary_id, admin.id, SalaryStatus.approved)
    await db.commit()
    return MonthlySalaryResponse.model_validate(salary)


@admin_router.put("/{salary_id}/pay", response_model=MonthlySalaryResponse)
async def pay_salary(
    salary_id: uuid.UUID,
    body: PaySalaryRequest,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    salary = await SalaryService.transition(
        db, salary_id, admin.id, SalaryStatus.paid, payment=body,
    )
    await db.commit()
    return MonthlySalaryResponse.model_validate(salary)


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_router.get("/overview", response_model=DepartmentSalaryOverview)
async def department_overview(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    today = local_today()
    return await SalaryService.department_overview(
        db, require_department(manager), year or today.year, month or today.month,
    )


@manager_router.post("/adjustments", response_model=AdjustmentResponse, status_code=201)
async def add_department_adjustment(
    body: AdjustmentCreate,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    adjustment = await SalaryService.add_adjustment(
        db, body, manager, department_id=require_department(manager),
    )
    await db.commit()
    return AdjustmentResponse.model_validate(adjustment)


# ═════════════════════════════════════════════════════════════════════
# Employee: own records
# ═════════════════════════════════════════════════════════════════════


@employee_router.get("", response_model=PaginatedResponse[MonthlySalaryResponse])
async def my_salaries(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_role(UserRole.employee)),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.list_salaries(db, pagination, user_id=user.id, year=year)


@employee_router.get("/adjustments", response_model=PaginatedResponse[AdjustmentResponse])
async def my_adjustments(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_role(UserRole.employee)),
    db: AsyncSession = Depends(get_db),
):
    return await SalaryService.list_adjustments(db, pagination, user_id=user.id, year=year)
