"""Application endpoints.

Routes (mounted in main.py):
    /api/employee/applications       — submit, list, get, update, delete own
    /api/manager/applications        — department applications and review
    /api/admin/applications          — all applications, review, delete
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.applications.schemas import (
    ApplicationCreate,
    ApplicationReject,
    ApplicationResponse,
    ApplicationUpdate,
)
from hrms.applications.service import ApplicationService
from hrms.auth.dependencies import get_current_user, require_department, require_role
from hrms.common.constants import ApplicationType, ApprovalStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db
from hrms.users.models import User

employee_router = APIRouter(prefix="", tags=["employee: applications"])
manager_router = APIRouter(prefix="", tags=["manager: applications"])
admin_router = APIRouter(prefix="", tags=["admin: applications"])


# ═════════════════════════════════════════════════════════════════════
# Employee: own applications
# ═════════════════════════════════════════════════════════════════════


@employee_router.post("", response_model=ApplicationResponse, status_code=201)
async def submit_application(
    body: ApplicationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.submit(db, user, body)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@employee_router.get("", response_model=PaginatedResponse[ApplicationResponse])
async def my_applications(
    status: Optional[ApprovalStatus] = Query(None),
    application_type: Optional[ApplicationType] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.list_applications(
        db, pagination, user_id=user.id, status=status, application_type=application_type,
    )


@employee_router.get("/{application_id}", response_model=ApplicationResponse)
async def get_my_application(
    application_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_own(db, application_id, user.id)
    return ApplicationResponse.model_validate(application)


@employee_router.put("/{application_id}", response_model=ApplicationResponse)
async def update_my_application(
    application_id: uuid.UUID,
    body: ApplicationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.update_own(db, application_id, user, body)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@employee_router.delete("/{application_id}", status_code=204)
async def delete_my_application(
    application_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ApplicationService.delete_own(db, application_id, user)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_router.get("", response_model=PaginatedResponse[ApplicationResponse])
async def department_applications(
    status: Optional[ApprovalStatus] = Query(None),
    application_type: Optional[ApplicationType] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.list_applications(
        db,
        pagination,
        department_id=require_department(manager),
        status=status,
        application_type=application_type,
        search=search,
    )


@manager_router.get("/{application_id}", response_model=ApplicationResponse)
async def get_department_application(
    application_id: uuid.UUID,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_in_department(
        db, application_id, require_department(manager),
    )
    return ApplicationResponse.model_validate(application)


@manager_router.put("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_department_application(
    application_id: uuid.UUID,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_in_department(
        db, application_id, require_department(manager),
    )
    application = await ApplicationService.decide(db, application, manager, ApprovalStatus.approved)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@manager_router.put("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_department_application(
    application_id: uuid.UUID,
    body: ApplicationReject,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_in_department(
        db, application_id, require_department(manager),
    )
    application = await ApplicationService.decide(
        db, application, manager, ApprovalStatus.rejected, body.rejection_reason,
    )
    await db.commit()
    return ApplicationResponse.model_validate(application)


# ═════════════════════════════════════════════════════════════════════
# Admin: all applications
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("", response_model=PaginatedResponse[ApplicationResponse])
async def list_applications(
    status: Optional[ApprovalStatus] = Query(None),
    application_type: Optional[ApplicationType] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.list_applications(
        db,
        pagination,
        user_id=user_id,
        department_id=department_id,
        status=status,
        application_type=application_type,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )


@admin_router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_application(db, application_id)
    return ApplicationResponse.model_validate(application)


@admin_router.put("/{application_id}/approve", response_model=ApplicationResponse)
async def approve_application(
    application_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_application(db, application_id)
    application = await ApplicationService.decide(db, application, admin, ApprovalStatus.approved)
    await db.commit()
    return ApplicationResponse.model_validate(application)


@admin_router.put("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: uuid.UUID,
    body: ApplicationReject,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationService.get_application(db, application_id)
    application = await ApplicationService.decide(
        db, application, admin, ApprovalStatus.rejected, body.rejection_reason,
    )
    await db.commit()
    return ApplicationResponse.model_validate(application)


@admin_router.delete("/{application_id}", status_code=204)
async def delete_application(
    application_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await ApplicationService.delete_application(db, application_id, actor_id=admin.id)
    await db.commit()
