"""Dashboard router — read-only aggregate views, one per role.

Routes (mounted in main.py):
    /api/admin/dashboard
    /api/manager/dashboard
    /api/employee/dashboard
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_department, require_role
from hrms.common.constants import UserRole
from hrms.dashboard.schemas import (
    AdminDashboardResponse,
    EmployeeDashboardResponse,
    ManagerDashboardResponse,
)
from hrms.dashboard.service import DashboardService
from hrms.database import get_db
from hrms.users.models import User

admin_router = APIRouter(prefix="", tags=["admin: dashboard"])
manager_router = APIRouter(prefix="", tags=["manager: dashboard"])
employee_router = APIRouter(prefix="", tags=["employee: dashboard"])


@admin_router.get("", response_model=AdminDashboardResponse)
async def admin_dashboard(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Company-wide headcount, pending work, today's attendance and payroll."""
    return await DashboardService.admin_dashboard(db)


@manager_router.get("", response_model=ManagerDashboardResponse)
async def manager_dashboard(
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.manager_dashboard(db, manager, require_department(manager))


@employee_router.get("", response_model=EmployeeDashboardResponse)
async def employee_dashboard(
    user: User = Depends(require_role(UserRole.employee)),
    db: AsyncSession = Depends(get_db),
):
    return await DashboardService.employee_dashboard(db, user)
