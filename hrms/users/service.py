"""Users service layer — user and department business logic.

All methods are async and accept an ``AsyncSession`` as first argument.
Mutations are flushed and audited; the router owns the commit.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.service import hash_password, revoke_all_user_sessions, verify_password
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import EMPLOYEE_CODE_PREFIX, UserRole
from hrms.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.users.models import Department, User
from hrms.users.schemas import (
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

logger = logging.getLogger(__name__)

_NOT_NULL_FIELDS = {"full_name", "email", "role", "is_active", "base_salary"}


# ═════════════════════════════════════════════════════════════════════
# UserService
# ═════════════════════════════════════════════════════════════════════


class UserService:
    """Async user operations."""

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalars().first()
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        role: Optional[UserRole] = None,
        department_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(User).order_by(User.full_name.asc())
        query = apply_filters(
            query,
            User,
            {
                "role": role.value if role else None,
                "department_id": department_id,
                "is_active": is_active,
            },
        )
        query = apply_search(
            query, User, search, ["full_name", "username", "email", "employee_code"],
        )
        return await paginate(db, query, pagination, model=User, schema=UserResponse)

    @staticmethod
    async def get_department_member(
        db: AsyncSession,
        user_id: uuid.UUID,
        department_id: uuid.UUID,
    ) -> User:
        """Return *user_id* if it belongs to *department_id*, else 403."""
        user = await UserService.get_user(db, user_id)
        if user.department_id != department_id:
            raise ForbiddenException("This user is not in your department.")
        return user

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def _generate_employee_code(db: AsyncSession, role: UserRole) -> str:
        prefix = EMPLOYEE_CODE_PREFIX[role]
        count = (
            await db.execute(
                select(func.count()).select_from(User).where(
                    User.employee_code.like(f"{prefix}-%"),
                )
            )
        ).scalar_one()
        number = count + 1
        while True:
            code = f"{prefix}-{number:04d}"
            taken = (
                await db.execute(select(User.id).where(User.employee_code == code))
            ).first()
            if taken is None:
                return code
            number += 1

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession,
        field: str,
        value: Any,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        column = getattr(User, field)
        query = select(User.id).where(column == value)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(field, value)

    @staticmethod
    async def _ensure_department(db: AsyncSession, department_id: Optional[uuid.UUID]) -> None:
        if department_id is not None:
            await DepartmentService.get_department(db, department_id)

    @staticmethod
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        await UserService._ensure_unique(db, "username", data.username)
        await UserService._ensure_unique(db, "email", data.email)
        if data.employee_code:
            await UserService._ensure_unique(db, "employee_code", data.employee_code)
        await UserService._ensure_department(db, data.department_id)

        code = data.employee_code or await UserService._generate_employee_code(db, data.role)
        user = User(
            username=data.username,
            password_hash=hash_password(data.password),
            full_name=data.full_name,
            employee_code=code,
            email=data.email,
            role=data.role.value,
            phone=data.phone,
            address=data.address,
            job_title=data.job_title,
            department_id=data.department_id,
            base_salary=data.base_salary,
            start_date=data.start_date,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user, attribute_names=["department"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump(exclude={"password"})),
        )
        logger.info("Created user %s (%s)", user.username, user.role)
        return user

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        user = await UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email") and changes["email"] != user.email:
            await UserService._ensure_unique(db, "email", changes["email"], exclude_id=user.id)
        if "department_id" in changes:
            await UserService._ensure_department(db, changes["department_id"])

        password = changes.pop("password", None)
        old_values: dict[str, Any] = {}
        for field, value in changes.items():
            if value is None and field in _NOT_NULL_FIELDS:
                continue
            if isinstance(value, UserRole):
                value = value.value
            old_values[field] = getattr(user, field)
            setattr(user, field, value)

        if password:
            user.password_hash = hash_password(password)
            await revoke_all_user_sessions(db, user.id)
        if changes.get("is_active") is False:
            await revoke_all_user_sessions(db, user.id)

        await db.flush()
        await db.refresh(user, attribute_names=["department"])

        await create_audit_entry(
            db,
            action="update",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable({**changes, **({"password": "***"} if password else {})}),
        )
        return user

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        user: User,
        data: ProfileUpdate,
    ) -> User:
        """Self-service edit of contact fields and password."""
        changes = data.model_dump(exclude_unset=True)
        current_password = changes.pop("current_password", None)
        new_password = changes.pop("new_password", None)

        if new_password:
            if not current_password or not verify_password(current_password, user.password_hash):
                raise ValidationException(
                    {"current_password": ["Current password is incorrect."]}
                )
            user.password_hash = hash_password(new_password)

        if changes.get("email") and changes["email"] != user.email:
            await UserService._ensure_unique(db, "email", changes["email"], exclude_id=user.id)

        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)

        await db.flush()
        await create_audit_entry(
            db,
            action="update_profile",
            entity_type="user",
            entity_id=user.id,
            actor_id=user.id,
            new_values=jsonable({**changes, **({"password": "***"} if new_password else {})}),
        )
        return user

    # ── Delete (soft) ───────────────────────────────────────────────

    @staticmethod
    async def deactivate_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> User:
        if user_id == actor_id:
            raise ValidationException({"id": ["You cannot deactivate your own account."]})
        user = await UserService.get_user(db, user_id)
        user.is_active = False
        await revoke_all_user_sessions(db, user.id)
        await db.flush()
        await create_audit_entry(
            db,
            action="deactivate",
            entity_type="user",
            entity_id=user.id,
            actor_id=actor_id,
            old_values={"is_active": True},
            new_values={"is_active": False},
        )
        logger.info("Deactivated user %s", user.id)
        return user

    # ── Statistics ──────────────────────────────────────────────────

    @staticmethod
    async def get_statistics(db: AsyncSession) -> UserStatistics:
        totals = (
            await db.execute(
                select(
                    func.count(User.id),
                    func.sum(case((User.is_active.is_(True), 1), else_=0)),
                )
            )
        ).one()
        total, active = totals[0] or 0, int(totals[1] or 0)

        by_role_rows = await db.execute(
            select(User.role, func.count(User.id))
            .where(User.is_active.is_(True))
            .group_by(User.role)
        )
        by_role = {role.value: 0 for role in UserRole}
        by_role.update({role: count for role, count in by_role_rows.all()})

        by_dept_rows = await db.execute(
            select(Department.name, func.count(User.id))
            .join(User, User.department_id == Department.id)
            .where(User.is_active.is_(True))
            .group_by(Department.name)
        )

        return UserStatistics(
            total=total,
            active=active,
            inactive=total - active,
            by_role=by_role,
            by_department={name: count for name, count in by_dept_rows.all()},
        )


# ═════════════════════════════════════════════════════════════════════
# DepartmentService
# ═════════════════════════════════════════════════════════════════════


class DepartmentService:
    """Async department operations."""

    @staticmethod
    async def get_department(db: AsyncSession, department_id: uuid.UUID) -> Department:
        result = await db.execute(select(Department).where(Department.id == department_id))
        department = result.scalars().first()
        if department is None:
            raise NotFoundException("Department", department_id)
        return department

    @staticmethod
    async def _active_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
        rows = await db.execute(
            select(User.department_id, func.count(User.id))
            .where(User.is_active.is_(True), User.department_id.is_not(None))
            .group_by(User.department_id)
        )
        return {dept_id: count for dept_id, count in rows.all()}

    @staticmethod
    async def list_departments(
        db: AsyncSession,
        *,
        active_only: bool = False,
    ) -> list[DepartmentResponse]:
        query = select(Department).order_by(Department.name.asc())
        if active_only:
            query = query.where(Department.is_active.is_(True))
        departments = (await db.execute(query)).scalars().all()
        counts = await DepartmentService._active_counts(db)
        return [
            DepartmentResponse.model_validate(d).model_copy(
                update={"employee_count": counts.get(d.id, 0)}
            )
            for d in departments
        ]

    @staticmethod
    async def to_response(db: AsyncSession, department: Department) -> DepartmentResponse:
        counts = await DepartmentService._active_counts(db)
        return DepartmentResponse.model_validate(department).model_copy(
            update={"employee_count": counts.get(department.id, 0)}
        )

    @staticmethod
    async def _ensure_unique_name(
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Department.id).where(func.lower(Department.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Department.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def create_department(
        db: AsyncSession,
        data: DepartmentCreate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Department:
        await DepartmentService._ensure_unique_name(db, data.name)
        department = Department(**data.model_dump())
        db.add(department)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        return department

    @staticmethod
    async def update_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        data: DepartmentUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Department:
        department = await DepartmentService.get_department(db, department_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            await DepartmentService._ensure_unique_name(db, changes["name"], exclude_id=department.id)

        old_values = {field: getattr(department, field) for field in changes}
        for field, value in changes.items():
            setattr(department, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return department

    @staticmethod
    async def delete_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        department = await DepartmentService.get_department(db, department_id)
        counts = await DepartmentService._active_counts(db)
        if counts.get(department.id, 0):
            raise ValidationException(
                {"department": [
                    f"Department still has {counts[department.id]} active user(s); reassign them first."
                ]}
            )
        await create_audit_entry(
            db,
            action="delete",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
            old_values={"name": department.name},
        )
        await db.delete(department)
        await db.flush()

    @staticmethod
    async def get_statistics(db: AsyncSession) -> list[DepartmentStatistics]:
        rows = await db.execute(
            select(
                Department.id,
                Department.name,
                Department.is_active,
                func.count(User.id),
                func.sum(case((User.is_active.is_(True), 1), else_=0)),
                func.sum(case((User.role == UserRole.manager.value, 1), else_=0)),
                func.sum(case((User.role == UserRole.employee.value, 1), else_=0)),
                func.coalesce(func.sum(User.base_salary), 0),
            )
            .outerjoin(User, User.department_id == Department.id)
            .group_by(Department.id, Department.name, Department.is_active)
            .order_by(Department.name)
        )
        return [
            DepartmentStatistics(
                id=dept_id,
                name=name,
                is_active=bool(is_active),
                total_users=total or 0,
                active_users=int(active or 0),
                managers=int(managers or 0),
                employees=int(employees or 0),
                total_base_salary=Decimal(str(salary or 0)),
            )
            for dept_id, name, is_active, total, active, managers, employees, salary in rows.all()
        ]
