"""Salary service layer — payroll configuration, monthly calculation, approval
and payment, adjustments and components.

Attendance for the month is read from ``AttendanceRecord`` rows; the money
arithmetic itself lives in :mod:`hrms.salary.calculator`.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.service import AttendanceService, summarize
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import (
    SALARY_CONFIG_DEFAULTS,
    SALARY_TRANSITIONS,
    AdjustmentType,
    ComponentType,
    NotificationType,
    SalaryStatus,
)
from hrms.common.exceptions import (
    ConflictError,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import month_bounds, now_utc
from hrms.notifications.service import notify_user
from hrms.salary.calculator import (
    AdjustmentLine,
    ComponentLine,
    SalaryConfig,
    SalaryInputs,
    calculate_salary,
)
from hrms.salary.models import (
    EmployeeSalaryComponent,
    MonthlySalary,
    SalaryAdjustment,
    SalaryComponent,
    SalaryConfiguration,
)
from hrms.salary.schemas import (
    AdjustmentCreate,
    AdjustmentResponse,
    CalculationResult,
    ComponentAssign,
    ComponentCreate,
    ComponentUpdate,
    DepartmentSalaryOverview,
    MonthlySalaryResponse,
    PaySalaryRequest,
    SalaryConfigResponse,
    SalaryConfigUpdate,
)
from hrms.users.models import User
from hrms.users.service import UserService

logger = logging.getLogger(__name__)


class SalaryService:
    """Business logic for payroll operations."""

    # ── Configuration ─────────────────────────────────────────────────

    @staticmethod
    async def get_config(db: AsyncSession) -> SalaryConfig:
        rows = (await db.execute(select(SalaryConfiguration))).scalars().all()
        return SalaryConfig.from_mapping({r.config_key: r.config_value for r in rows})

    @staticmethod
    def config_response(config: SalaryConfig) -> SalaryConfigResponse:
        return SalaryConfigResponse(**{k: getattr(config, k) for k in SALARY_CONFIG_DEFAULTS})

    @staticmethod
    async def update_config(
        db: AsyncSession,
        data: SalaryConfigUpdate,
        actor_id: uuid.UUID,
    ) -> SalaryConfig:
        changes = data.model_dump(exclude_none=True)
        existing = {
            r.config_key: r
            for r in (await db.execute(select(SalaryConfiguration))).scalars().all()
        }
        old_values: dict[str, Optional[str]] = {}
        for key, value in changes.items():
            row = existing.get(key)
            old_values[key] = row.config_value if row else SALARY_CONFIG_DEFAULTS[key]
            if row is None:
                row = SalaryConfiguration(config_key=key, config_value=str(value))
                db.add(row)
            row.config_value = str(value)
            row.updated_by = actor_id
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="salary_configuration",
            entity_id=uuid.UUID(int=0),
            actor_id=actor_id,
            old_values=old_values,
            new_values=jsonable(changes),
        )
        return await SalaryService.get_config(db)

    # ── Calculation ───────────────────────────────────────────────────

    @staticmethod
    async def _find_salary(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        month: int,
    ) -> Optional[MonthlySalary]:
        result = await db.execute(
            select(MonthlySalary).where(
                MonthlySalary.user_id == user_id,
                MonthlySalary.month == month,
                MonthlySalary.year == year,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def _components_for(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        month: int,
    ) -> list[EmployeeSalaryComponent]:
        """Active recurring assignments whose effective range overlaps the month."""
        first, last = month_bounds(year, month)
        result = await db.execute(
            select(EmployeeSalaryComponent)
            .join(SalaryComponent, EmployeeSalaryComponent.component_id == SalaryComponent.id)
            .where(
                EmployeeSalaryComponent.user_id == user_id,
                EmployeeSalaryComponent.is_active.is_(True),
                EmployeeSalaryComponent.is_recurring.is_(True),
                SalaryComponent.is_active.is_(True),
                EmployeeSalaryComponent.effective_from <= last,
                or_(
                    EmployeeSalaryComponent.effective_to.is_(None),
                    EmployeeSalaryComponent.effective_to >= first,
                ),
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def _adjustments_for(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        month: int,
        salary_id: Optional[uuid.UUID] = None,
    ) -> list[SalaryAdjustment]:
        """Unapplied adjustments of the month, plus those already folded into *salary_id*."""
        pending = SalaryAdjustment.is_applied.is_(False)
        condition = or_(pending, SalaryAdjustment.monthly_salary_id == salary_id) if salary_id else pending
        result = await db.execute(
            select(SalaryAdjustment).where(
                SalaryAdjustment.user_id == user_id,
                SalaryAdjustment.month == month,
                SalaryAdjustment.year == year,
                condition,
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def _compute(
        db: AsyncSession,
        user: User,
        year: int,
        month: int,
        config: SalaryConfig,
        salary: Optional[MonthlySalary],
        actor_id: uuid.UUID,
    ) -> MonthlySalary:
        """Fill (or refill) *salary* for the user-month and mark adjustments applied."""
        grouped = await AttendanceService._month_records(db, [user.id], year, month)
        records = grouped[user.id]
        stats = summarize(records, user.id, month, year)
        components = await SalaryService._components_for(db, user.id, year, month)
        adjustments = await SalaryService._adjustments_for(
            db, user.id, year, month, salary.id if salary else None,
        )

        breakdown = calculate_salary(
            SalaryInputs(
                base_salary=Decimal(user.base_salary or 0),
                absent_days=stats.absent_days,
                late_minutes=[r.late_minutes or 0 for r in records if r.is_late],
                overtime_minutes=stats.total_overtime_minutes,
                components=[
                    ComponentLine(
                        component_type=ComponentType(c.component_type),
                        amount=Decimal(c.amount),
                        is_percentage=c.is_percentage,
                    )
                    for c in components
                ],
                adjustments=[
                    AdjustmentLine(AdjustmentType(a.adjustment_type), Decimal(a.amount))
                    for a in adjustments
                ],
            ),
            config,
        )

        if salary is None:
            salary = MonthlySalary(user_id=user.id, month=month, year=year)
            db.add(salary)
        salary.base_salary = breakdown.base_salary
        salary.total_bonuses = breakdown.total_bonuses
        salary.total_allowances = breakdown.total_allowances
        salary.overtime_pay = breakdown.overtime_pay
        salary.absence_deductions = breakdown.absence_deductions
        salary.lateness_deductions = breakdown.lateness_deductions
        salary.tax_deduction = breakdown.tax_deduction
        salary.other_deductions = breakdown.other_deductions
        salary.total_deductions = breakdown.total_deductions
        salary.gross_salary = breakdown.gross_salary
        salary.net_salary = breakdown.net_salary
        salary.working_days = config.working_days_per_month
        salary.present_days = stats.present_days
        salary.absent_days = stats.absent_days
        salary.late_days = stats.late_days
        salary.total_late_minutes = breakdown.deductible_late_minutes
        salary.overtime_minutes = stats.total_overtime_minutes
        salary.status = SalaryStatus.calculated.value
        salary.calculated_by = actor_id
        await db.flush()

        now = now_utc()
        for adjustment in adjustments:
            adjustment.is_applied = True
            adjustment.applied_at = adjustment.applied_at or now
            adjustment.monthly_salary_id = salary.id
        await db.flush()
        await db.refresh(salary, attribute_names=["user"])

        await notify_user(
            db,
            user.id,
            "Salary Calculated",
            f"Your salary for {month:02d}/{year} has been calculated. "
            f"Net salary: {salary.net_salary}.",
            NotificationType.salary,
            salary.id,
        )
        logger.info(
            "Calculated salary for %s %02d/%d: gross=%s net=%s",
            user.username, month, year, salary.gross_salary, salary.net_salary,
        )
        return salary

    @staticmethod
    async def calculate_for_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        year: int,
        month: int,
        actor_id: uuid.UUID,
    ) -> MonthlySalary:
        user = await UserService.get_user(db, user_id)
        if await SalaryService._find_salary(db, user.id, year, month) is not None:
            raise ConflictError("period", f"{user.username} {month:02d}/{year}")
        config = await SalaryService.get_config(db)
        salary = await SalaryService._compute(db, user, year, month, config, None, actor_id)
        await create_audit_entry(
            db,
            action="calculate",
            entity_type="monthly_salary",
            entity_id=salary.id,
            actor_id=actor_id,
            new_values={"month": month, "year": year, "net_salary": str(salary.net_salary)},
        )
        return salary

    @staticmethod
    async def calculate_month(
        db: AsyncSession,
        year: int,
        month: int,
        actor_id: uuid.UUID,
    ) -> CalculationResult:
        """Calculate every active user without a record for the month."""
        users = (
            await db.execute(
                select(User).where(User.is_active.is_(True)).order_by(User.full_name.asc())
            )
        ).scalars().all()
        existing = set(
            (
                await db.execute(
                    select(MonthlySalary.user_id).where(
                        MonthlySalary.month == month,
                        MonthlySalary.year == year,
                    )
                )
            ).scalars().all()
        )
        config = await SalaryService.get_config(db)

        created: list[MonthlySalary] = []
        for user in users:
            if user.id in existing:
                continue
            created.append(
                await SalaryService._compute(db, user, year, month, config, None, actor_id)
            )

        await create_audit_entry(
            db,
            action="calculate",
            entity_type="monthly_salary",
            entity_id=uuid.UUID(int=0),
            actor_id=actor_id,
            new_values={
                "month": month,
                "year": year,
                "calculated": len(created),
                "skipped": len(users) - len(created),
            },
        )
        logger.info(
            "Payroll %02d/%d: %d calculated, %d skipped",
            month, year, len(created), len(users) - len(created),
        )
        return CalculationResult(
            month=month,
            year=year,
            calculated=len(created),
            skipped=len(users) - len(created),
            records=[MonthlySalaryResponse.model_validate(s) for s in created],
        )

    @staticmethod
    async def recalculate(
        db: AsyncSession,
        salary_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> MonthlySalary:
        salary = await SalaryService.get_salary(db, salary_id)
        if salary.status != SalaryStatus.calculated.value:
            raise ValidationException(
                {"status": [f"Only calculated salaries can be recalculated; this one is {salary.status}."]}
            )
        user = await UserService.get_user(db, salary.user_id)
        old_net = str(salary.net_salary)
        config = await SalaryService.get_config(db)
        salary = await SalaryService._compute(
            db, user, salary.year, salary.month, config, salary, actor_id,
        )
        await create_audit_entry(
            db,
            action="recalculate",
            entity_type="monthly_salary",
            entity_id=salary.id,
            actor_id=actor_id,
            old_values={"net_salary": old_net},
            new_values={"net_salary": str(salary.net_salary)},
        )
        return salary

    # ── Records ───────────────────────────────────────────────────────

    @staticmethod
    async def get_salary(db: AsyncSession, salary_id: uuid.UUID) -> MonthlySalary:
        result = await db.execute(select(MonthlySalary).where(MonthlySalary.id == salary_id))
        salary = result.scalars().first()
        if salary is None:
            raise NotFoundException("MonthlySalary", salary_id)
        return salary

    @staticmethod
    async def list_salaries(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[SalaryStatus] = None,
    ) -> PaginatedResponse:
        query = select(MonthlySalary).order_by(
            MonthlySalary.year.desc(), MonthlySalary.month.desc(), MonthlySalary.created_at.asc()
        )
        if department_id is not None:
            query = query.where(
                MonthlySalary.user_id.in_(select(User.id).where(User.department_id == department_id))
            )
        query = apply_filters(
            query,
            MonthlySalary,
            {
                "user_id": user_id,
                "month": month,
                "year": year,
                "status": status.value if status else None,
            },
        )
        return await paginate(
            db, query, pagination, model=MonthlySalary, schema=MonthlySalaryResponse,
        )

    @staticmethod
    async def transition(
        db: AsyncSession,
        salary_id: uuid.UUID,
        actor_id: uuid.UUID,
        target: SalaryStatus,
        payment: Optional[PaySalaryRequest] = None,
    ) -> MonthlySalary:
        """Approve (from calculated) or pay (from approved) and notify the employee."""
        salary = await SalaryService.get_salary(db, salary_id)
        current = SalaryStatus(salary.status)
        if target not in SALARY_TRANSITIONS[current]:
            raise InvalidTransitionException("salary", current.value, target.value)

        now = now_utc()
        salary.status = target.value
        if target == SalaryStatus.approved:
            salary.approved_by = actor_id
            salary.approved_at = now
        else:
            salary.paid_by = actor_id
            salary.paid_at = now
            if payment is not None:
                salary.payment_method = payment.payment_method
                salary.payment_reference = payment.payment_reference
                if payment.notes:
                    salary.notes = payment.notes
        await db.flush()

        await create_audit_entry(
            db,
            action="approve" if target == SalaryStatus.approved else "pay",
            entity_type="monthly_salary",
            entity_id=salary.id,
            actor_id=actor_id,
            old_values={"status": current.value},
            new_values={"status": target.value},
        )
        await notify_user(
            db,
            salary.user_id,
            f"Salary {target.value.title()}",
            f"Your salary for {salary.month:02d}/{salary.year} has been {target.value}. "
            f"Net salary: {salary.net_salary}.",
            NotificationType.salary,
            salary.id,
        )
        logger.info("Salary %s %s -> %s", salary.id, current.value, target.value)
        return salary

    @staticmethod
    async def department_overview(
        db: AsyncSession,
        department_id: uuid.UUID,
        year: int,
        month: int,
    ) -> DepartmentSalaryOverview:
        members = (
            await db.execute(
                select(User.id).where(
                    User.department_id == department_id, User.is_active.is_(True),
                )
            )
        ).scalars().all()
        records = (
            await db.execute(
                select(MonthlySalary)
                .where(
                    MonthlySalary.user_id.in_(
                        select(User.id).where(User.department_id == department_id)
                    ),
                    MonthlySalary.month == month,
                    MonthlySalary.year == year,
                )
                .order_by(MonthlySalary.net_salary.desc())
            )
        ).scalars().all()
        zero = Decimal("0.00")
        return DepartmentSalaryOverview(
            department_id=department_id,
            month=month,
            year=year,
            employees=len(members),
            calculated=len(records),
            total_base=sum((r.base_salary for r in records), zero),
            total_gross=sum((r.gross_salary for r in records), zero),
            total_deductions=sum((r.total_deductions for r in records), zero),
            total_net=sum((r.net_salary for r in records), zero),
            records=[MonthlySalaryResponse.model_validate(r) for r in records],
        )

    # ── Adjustments ───────────────────────────────────────────────────

    @staticmethod
    async def add_adjustment(
        db: AsyncSession,
        data: AdjustmentCreate,
        actor: User,
        department_id: Optional[uuid.UUID] = None,
    ) -> SalaryAdjustment:
        """Record a one-time adjustment. With *department_id* the target must be a member."""
        target = await UserService.get_user(db, data.user_id)
        if department_id is not None and target.department_id != department_id:
            raise ForbiddenException("You can only adjust salaries in your own department.")

        adjustment = SalaryAdjustment(
            user_id=target.id,
            adjustment_type=data.adjustment_type.value,
            amount=data.amount,
            hours=data.hours,
            reason=data.reason,
            month=data.month,
            year=data.year,
            is_applied=False,
            created_by=actor.id,
        )
        db.add(adjustment)
        await db.flush()
        await db.refresh(adjustment, attribute_names=["user"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="salary_adjustment",
            entity_id=adjustment.id,
            actor_id=actor.id,
            new_values=jsonable(data.model_dump()),
        )
        await notify_user(
            db,
            target.id,
            f"Salary {data.adjustment_type.value.title()} Added",
            f"A {data.adjustment_type.value} of {data.amount} was added to your "
            f"{data.month:02d}/{data.year} salary: {data.reason}",
            NotificationType.salary,
            adjustment.id,
        )
        logger.info(
            "%s adjustment of %s for %s by %s",
            data.adjustment_type.value, data.amount, target.username, actor.username,
        )
        return adjustment

    @staticmethod
    async def list_adjustments(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        is_applied: Optional[bool] = None,
        adjustment_type: Optional[AdjustmentType] = None,
    ) -> PaginatedResponse:
        query = select(SalaryAdjustment).order_by(SalaryAdjustment.created_at.desc())
        query = apply_filters(
            query,
            SalaryAdjustment,
            {
                "user_id": user_id,
                "month": month,
                "year": year,
                "is_applied": is_applied,
                "adjustment_type": adjustment_type.value if adjustment_type else None,
            },
        )
        return await paginate(
            db, query, pagination, model=SalaryAdjustment, schema=AdjustmentResponse,
        )

    @staticmethod
    async def delete_adjustment(
        db: AsyncSession,
        adjustment_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        result = await db.execute(
            select(SalaryAdjustment).where(SalaryAdjustment.id == adjustment_id)
        )
        adjustment = result.scalars().first()
        if adjustment is None:
            raise NotFoundException("SalaryAdjustment", adjustment_id)
        if adjustment.is_applied:
            raise ValidationException(
                {"is_applied": ["Adjustments already applied to a salary cannot be deleted."]}
            )
        await create_audit_entry(
            db,
            action="delete",
            entity_type="salary_adjustment",
            entity_id=adjustment.id,
            actor_id=actor_id,
            old_values={
                "adjustment_type": adjustment.adjustment_type,
                "amount": str(adjustment.amount),
            },
        )
        await db.delete(adjustment)
        await db.flush()

    # ── Components ────────────────────────────────────────────────────

    @staticmethod
    async def list_components(
        db: AsyncSession,
        is_active: Optional[bool] = None,
    ) -> list[SalaryComponent]:
        stmt = select(SalaryComponent).order_by(SalaryComponent.name)
        if is_active is not None:
            stmt = stmt.where(SalaryComponent.is_active.is_(is_active))
        return list((await db.execute(stmt)).scalars().all())

    @staticmethod
    async def get_component(db: AsyncSession, component_id: uuid.UUID) -> SalaryComponent:
        result = await db.execute(select(SalaryComponent).where(SalaryComponent.id == component_id))
        component = result.scalars().first()
        if component is None:
            raise NotFoundException("SalaryComponent", component_id)
        return component

    @staticmethod
    async def _ensure_component_name(
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(SalaryComponent.id).where(SalaryComponent.name == name)
        if exclude_id is not None:
            query = query.where(SalaryComponent.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def create_component(
        db: AsyncSession,
        data: ComponentCreate,
        actor_id: uuid.UUID,
    ) -> SalaryComponent:
        await SalaryService._ensure_component_name(db, data.name)
        component = SalaryComponent(
            name=data.name,
            component_type=data.component_type.value,
            is_percentage=data.is_percentage,
            default_amount=data.default_amount,
            description=data.description,
            is_active=True,
        )
        db.add(component)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="salary_component",
            entity_id=component.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        return component

    @staticmethod
    async def update_component(
        db: AsyncSession,
        component_id: uuid.UUID,
        data: ComponentUpdate,
        actor_id: uuid.UUID,
    ) -> SalaryComponent:
        component = await SalaryService.get_component(db, component_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"] != component.name:
            await SalaryService._ensure_component_name(db, changes["name"], component.id)
        old_values = {k: getattr(component, k) for k in changes}
        for field, value in changes.items():
            setattr(component, field, getattr(value, "value", value))
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="salary_component",
            entity_id=component.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return component

    @staticmethod
    async def delete_component(
        db: AsyncSession,
        component_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        component = await SalaryService.get_component(db, component_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="salary_component",
            entity_id=component.id,
            actor_id=actor_id,
            old_values={"name": component.name},
        )
        await db.delete(component)
        await db.flush()

    @staticmethod
    async def assign_component(
        db: AsyncSession,
        data: ComponentAssign,
        actor_id: uuid.UUID,
    ) -> EmployeeSalaryComponent:
        await UserService.get_user(db, data.user_id)
        component = await SalaryService.get_component(db, data.component_id)
        if data.effective_to is not None and data.effective_to < data.effective_from:
            raise ValidationException(
                {"effective_to": ["effective_to must not be before effective_from."]}
            )
        assignment = EmployeeSalaryComponent(
            user_id=data.user_id,
            component_id=component.id,
            amount=data.amount if data.amount is not None else component.default_amount,
            effective_from=data.effective_from,
            effective_to=data.effective_to,
            is_recurring=data.is_recurring,
            is_active=True,
            created_by=actor_id,
        )
        db.add(assignment)
        await db.flush()
        await db.refresh(assignment, attribute_names=["component"])
        await create_audit_entry(
            db,
            action="assign",
            entity_type="employee_salary_component",
            entity_id=assignment.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        return assignment

    @staticmethod
    async def user_components(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> list[EmployeeSalaryComponent]:
        result = await db.execute(
            select(EmployeeSalaryComponent)
            .where(EmployeeSalaryComponent.user_id == user_id)
            .order_by(EmployeeSalaryComponent.effective_from.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def remove_assignment(
        db: AsyncSession,
        assignment_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        result = await db.execute(
            select(EmployeeSalaryComponent).where(EmployeeSalaryComponent.id == assignment_id)
        )
        assignment = result.scalars().first()
        if assignment is None:
            raise NotFoundException("EmployeeSalaryComponent", assignment_id)
        await create_audit_entry(
            db,
            action="unassign",
            entity_type="employee_salary_component",
            entity_id=assignment.id,
            actor_id=actor_id,
            old_values={"user_id": str(assignment.user_id), "component_id": str(assignment.component_id)},
        )
        await db.delete(assignment)
        await db.flush()
