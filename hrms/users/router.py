"""Users router — user, department, profile and audit endpoints.

Routes (mounted in main.py):
    /api/admin/users                 — List, create users; statistics
    /api/admin/users/{id}            — Get, update, deactivate user
    /api/admin/departments           — List, create departments; statistics
    /api/admin/departments/{id}      — Get, update, delete department
    /api/admin/audit                 — Audit trail
    /api/manager/employees           — Members of the manager's department
    /api/shared/profile              — Own profile (read / update)
    /api/shared/departments          — Active departments
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import (
    get_current_user,
    require_department,
    require_permission,
    require_role,
)
from hrms.common.audit import AuditTrail
from hrms.common.constants import UserRole
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.database import get_db
from hrms.users.models import User
from hrms.users.schemas import (
    AuditEntryResponse,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentStatistics,
    DepartmentUpdate,
    ProfileUpdate,
    UserCreate,
    UserResponse,
    UserStatistics,
    UserUpdate,
)
from hrms.users.service import DepartmentService, UserService


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

admin_users_router = APIRouter(prefix="", tags=["admin: users"])
admin_departments_router = APIRouter(prefix="", tags=["admin: departments"])
admin_audit_router = APIRouter(prefix="", tags=["admin: audit"])
manager_employees_router = APIRouter(prefix="", tags=["manager: employees"])
profile_router = APIRouter(prefix="", tags=["profile"])
shared_departments_router = APIRouter(prefix="", tags=["departments"])


# ═════════════════════════════════════════════════════════════════════
# Admin: users
# ═════════════════════════════════════════════════════════════════════


@admin_users_router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Name, username, email or code"),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(
        db,
        pagination,
        role=role,
        department_id=department_id,
        is_active=is_active,
        search=search,
    )


@admin_users_router.get("/statistics", response_model=UserStatistics)
async def user_statistics(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_statistics(db)


@admin_users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return UserResponse.model_validate(await UserService.get_user(db, user_id))


@admin_users_router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.create_user(db, body, actor_id=admin.id)
    await db.commit()
    return UserResponse.model_validate(user)


@admin_users_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.update_user(db, user_id, body, actor_id=admin.id)
    await db.commit()
    return UserResponse.model_validate(user)


@admin_users_router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the account is deactivated and its sessions revoked."""
    user = await UserService.deactivate_user(db, user_id, actor_id=admin.id)
    await db.commit()
    return UserResponse.model_validate(user)


# ═════════════════════════════════════════════════════════════════════
# Admin: departments
# ═════════════════════════════════════════════════════════════════════


@admin_departments_router.get("", response_model=list[DepartmentResponse])
async def list_departments(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await DepartmentService.list_departments(db)


@admin_departments_router.get("/statistics", response_model=list[DepartmentStatistics])
async def department_statistics(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await DepartmentService.get_statistics(db)


@admin_departments_router.get("/{department_id}", response_model=DepartmentResponse)
async def get_department(
    department_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.get_department(db, department_id)
    return await DepartmentService.to_response(db, department)


@admin_departments_router.post("", response_model=DepartmentResponse, status_code=201)
async def create_department(
    body: DepartmentCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.create_department(db, body, actor_id=admin.id)
    await db.commit()
    return DepartmentResponse.model_validate(department)


@admin_departments_router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: uuid.UUID,
    body: DepartmentUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    department = await DepartmentService.update_department(
        db, department_id, body, actor_id=admin.id,
    )
    await db.commit()
    return await DepartmentService.to_response(db, department)


@admin_departments_router.delete("/{department_id}", status_code=204)
async def delete_department(
    department_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await DepartmentService.delete_department(db, department_id, actor_id=admin.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Admin: audit trail
# ═════════════════════════════════════════════════════════════════════


@admin_audit_router.get("", response_model=PaginatedResponse[AuditEntryResponse])
async def list_audit_entries(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[uuid.UUID] = Query(None),
    actor_id: Optional[uuid.UUID] = Query(None),
    action: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_permission("audit:read")),
    db: AsyncSession = Depends(get_db),
):
    query = apply_filters(
        select(AuditTrail).order_by(AuditTrail.created_at.desc()),
        AuditTrail,
        {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "actor_id": actor_id,
            "action": action,
        },
    )
    return await paginate(db, query, pagination, model=AuditTrail, schema=AuditEntryResponse)


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_employees_router.get("", response_model=PaginatedResponse[UserResponse])
async def list_team(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(True),
    pagination: PaginationParams = Depends(),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(
        db,
        pagination,
        department_id=require_department(manager),
        is_active=is_active,
        search=search,
    )


@manager_employees_router.get("/{user_id}", response_model=UserResponse)
async def get_team_member(
    user_id: uuid.UUID,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.get_department_member(db, user_id, require_department(manager))
    return UserResponse.model_validate(user)


# ═════════════════════════════════════════════════════════════════════
# Shared: profile + departments
# ═════════════════════════════════════════════════════════════════════


@profile_router.get("", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@profile_router.put("", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.update_profile(db, user, body)
    await db.commit()
    return UserResponse.model_validate(user)


@shared_departments_router.get("", response_model=list[DepartmentResponse])
async def list_active_departments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await DepartmentService.list_departments(db, active_only=True)
