"""Dashboard service — read-only aggregation queries across HR modules.

All methods are static async, following the project convention.
Counts are done at DB level with COUNT/GROUP BY, no N+1.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hrms.announcements.models import Announcement, AnnouncementRecipient
from hrms.applications.models import Application
from hrms.attendance.models import AttendanceCorrection, AttendanceRecord
from hrms.attendance.service import AttendanceService, summarize
from hrms.common.audit import AuditTrail
from hrms.common.constants import (
    ApprovalStatus,
    AttendanceStatus,
    ExpenseStatus,
    SalaryStatus,
    UserRole,
)
from hrms.common.timeutils import local_today
from hrms.dashboard.schemas import (
    AdminDashboardResponse,
    DailyAttendanceCounts,
    DepartmentBreakdownItem,
    EmployeeDashboardResponse,
    ManagerDashboardResponse,
    PayrollTotals,
    RecentActivityItem,
    RoleCount,
)
from hrms.expenses.models import Expense
from hrms.holidays.service import HolidayService
from hrms.notifications.service import NotificationService
from hrms.salary.models import MonthlySalary
from hrms.salary.schemas import MonthlySalaryResponse
from hrms.users.models import Department, User

_TRACKED_ROLES = (UserRole.employee.value, UserRole.manager.value)
_CHECKED_IN_STATUSES = (
    AttendanceStatus.present.value,
    AttendanceStatus.late.value,
    AttendanceStatus.half_day.value,
)


class DashboardService:
    """Async dashboard aggregation queries."""

    # ═════════════════════════════════════════════════════════════════
    # Shared pieces
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def attendance_counts(
        db: AsyncSession,
        day: date,
        department_id: Optional[uuid.UUID] = None,
    ) -> DailyAttendanceCounts:
        """Per-status counts of tracked users' records for *day*."""
        members = select(User.id).where(
            User.is_active.is_(True), User.role.in_(_TRACKED_ROLES),
        )
        if department_id is not None:
            members = members.where(User.department_id == department_id)

        expected = (
            await db.execute(select(func.count()).select_from(members.subquery()))
        ).scalar_one()

        rows = (
            await db.execute(
                select(AttendanceRecord.status, func.count(AttendanceRecord.id))
                .where(AttendanceRecord.date == day, AttendanceRecord.user_id.in_(members))
                .group_by(AttendanceRecord.status)
            )
        ).all()
        by_status = {status: count for status, count in rows}

        late = (
            await db.execute(
                select(func.count(AttendanceRecord.id)).where(
                    AttendanceRecord.date == day,
                    AttendanceRecord.user_id.in_(members),
                    AttendanceRecord.is_late.is_(True),
                )
            )
        ).scalar_one()

        return DailyAttendanceCounts(
            date=day,
            expected=expected,
            present=sum(by_status.get(s, 0) for s in _CHECKED_IN_STATUSES),
            late=late,
            absent=by_status.get(AttendanceStatus.absent.value, 0),
            on_leave=by_status.get(AttendanceStatus.on_leave.value, 0),
            not_checked_in=max(0, expected - sum(by_status.values())),
        )

    @staticmethod
    async def _pending_counts(
        db: AsyncSession,
        department_id: Optional[uuid.UUID] = None,
    ) -> tuple[int, int, int]:
        """Pending applications, expenses and attendance corrections."""
        applications = select(func.count(Application.id)).where(
            Application.status == ApprovalStatus.pending.value,
        )
        expenses = select(func.count(Expense.id)).where(
            Expense.status == ExpenseStatus.pending.value,
        )
        corrections = select(func.count(AttendanceCorrection.id)).where(
            AttendanceCorrection.status == ApprovalStatus.pending.value,
        )
        if department_id is not None:
            applications = applications.where(Application.department_id == department_id)
            expenses = expenses.where(Expense.department_id == department_id)
            corrections = corrections.where(
                AttendanceCorrection.user_id.in_(
                    select(User.id).where(User.department_id == department_id)
                )
            )
        results = await _multi_scalar(db, applications, expenses, corrections)
        return results[0] or 0, results[1] or 0, results[2] or 0

    # ═════════════════════════════════════════════════════════════════
    # Admin
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def payroll_totals(db: AsyncSession, year: int, month: int) -> PayrollTotals:
        rows = (
            await db.execute(
                select(
                    MonthlySalary.status,
                    func.count(MonthlySalary.id),
                    func.coalesce(func.sum(MonthlySalary.gross_salary), 0),
                    func.coalesce(func.sum(MonthlySalary.net_salary), 0),
                )
                .where(MonthlySalary.year == year, MonthlySalary.month == month)
                .group_by(MonthlySalary.status)
            )
        ).all()
        counts = {status: count for status, count, _, _ in rows}
        return PayrollTotals(
            month=month,
            year=year,
            records=sum(counts.values()),
            calculated=counts.get(SalaryStatus.calculated.value, 0),
            approved=counts.get(SalaryStatus.approved.value, 0),
            paid=counts.get(SalaryStatus.paid.value, 0),
            total_gross=sum((Decimal(str(gross)) for _, _, gross, _ in rows), Decimal("0")),
            total_net=sum((Decimal(str(net)) for _, _, _, net in rows), Decimal("0")),
        )

    @staticmethod
    async def recent_activities(db: AsyncSession, limit: int = 10) -> list[RecentActivityItem]:
        """Most recent audit trail entries with human-readable descriptions."""
        Actor = aliased(User, flat=True)
        stmt = (
            select(
                AuditTrail.id,
                AuditTrail.action,
                AuditTrail.entity_type,
                AuditTrail.entity_id,
                AuditTrail.actor_id,
                AuditTrail.created_at,
                Actor.full_name.label("actor_name"),
            )
            .outerjoin(Actor, AuditTrail.actor_id == Actor.id)
            .order_by(AuditTrail.created_at.desc())
            .limit(limit)
        )
        rows = (await db.execute(stmt)).all()
        return [
            RecentActivityItem(
                id=row.id,
                action=row.action,
                entity_type=row.entity_type,
                entity_id=row.entity_id,
                actor_id=row.actor_id,
                actor_name=row.actor_name,
                description=_build_activity_description(row.action, row.entity_type, row.actor_name),
                created_at=row.created_at,
            )
            for row in rows
        ]

    @staticmethod
    async def admin_dashboard(db: AsyncSession) -> AdminDashboardResponse:
        today = local_today()

        role_rows = (
            await db.execute(
                select(User.role, func.count(User.id))
                .where(User.is_active.is_(True))
                .group_by(User.role)
            )
        ).all()
        by_role = {role: count for role, count in role_rows}

        dept_rows = (
            await db.execute(
                select(Department.id, Department.name, func.count(User.id))
                .outerjoin(
                    User,
                    (User.department_id == Department.id) & User.is_active.is_(True),
                )
                .where(Department.is_active.is_(True))
                .group_by(Department.id, Department.name)
                .order_by(Department.name)
            )
        ).all()

        applications, expenses, corrections = await DashboardService._pending_counts(db)

        return AdminDashboardResponse(
            total_users=sum(by_role.values()),
            headcount_by_role=[RoleCount(role=r.value, count=by_role.get(r.value, 0)) for r in UserRole],
            department_breakdown=[
                DepartmentBreakdownItem(department_id=d_id, department_name=name, count=count)
                for d_id, name, count in dept_rows
            ],
            pending_applications=applications,
            pending_expenses=expenses,
            pending_corrections=corrections,
            attendance_today=await DashboardService.attendance_counts(db, today),
            payroll=await DashboardService.payroll_totals(db, today.year, today.month),
            upcoming_holidays=await HolidayService.upcoming(db, today, limit=3),
            recent_activities=await DashboardService.recent_activities(db),
        )

    # ═════════════════════════════════════════════════════════════════
    # Manager
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def manager_dashboard(
        db: AsyncSession,
        manager: User,
        department_id: uuid.UUID,
    ) -> ManagerDashboardResponse:
        today = local_today()
        team_size = (
            await db.execute(
                select(func.count(User.id)).where(
                    User.department_id == department_id, User.is_active.is_(True),
                )
            )
        ).scalar_one()
        applications, expenses, corrections = await DashboardService._pending_counts(
            db, department_id,
        )
        return ManagerDashboardResponse(
            department_id=department_id,
            department_name=manager.department_name,
            team_size=team_size,
            attendance_today=await DashboardService.attendance_counts(db, today, department_id),
            pending_applications=applications,
            pending_corrections=corrections,
            pending_expenses=expenses,
            unread_notifications=await NotificationService.get_unread_count(db, manager.id),
        )

    # ═════════════════════════════════════════════════════════════════
    # Employee
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def employee_dashboard(db: AsyncSession, user: User) -> EmployeeDashboardResponse:
        today = local_today()
        grouped = await AttendanceService._month_records(db, [user.id], today.year, today.month)

        pending_q = select(func.count(Application.id)).where(
            Application.user_id == user.id,
            Application.status == ApprovalStatus.pending.value,
        )
        unread_announcements_q = (
            select(func.count(AnnouncementRecipient.id))
            .join(Announcement, AnnouncementRecipient.announcement_id == Announcement.id)
            .where(
                AnnouncementRecipient.user_id == user.id,
                AnnouncementRecipient.is_read.is_(False),
                Announcement.is_active.is_(True),
            )
        )
        pending, unread_announcements = await _multi_scalar(db, pending_q, unread_announcements_q)

        latest = (
            await db.execute(
                select(MonthlySalary)
                .where(MonthlySalary.user_id == user.id)
                .order_by(MonthlySalary.year.desc(), MonthlySalary.month.desc())
                .limit(1)
            )
        ).scalars().first()
        upcoming = await HolidayService.upcoming(db, today, limit=1)

        return EmployeeDashboardResponse(
            today=await AttendanceService.today(db, user),
            month_summary=summarize(
                grouped[user.id], user.id, today.month, today.year, user.full_name,
            ),
            pending_applications=pending or 0,
            unread_notifications=await NotificationService.get_unread_count(db, user.id),
            unread_announcements=unread_announcements or 0,
            next_holiday=upcoming[0] if upcoming else None,
            latest_salary=MonthlySalaryResponse.model_validate(latest) if latest else None,
        )


# ── Helpers ─────────────────────────────────────────────────────────


async def _multi_scalar(db: AsyncSession, *stmts) -> list:
    """Execute multiple scalar queries and return their results in order."""
    results = []
    for stmt in stmts:
        result = await db.execute(stmt)
        results.append(result.scalar())
    return results


# Human-readable descriptions for audit trail actions
_ACTION_DESCRIPTIONS: dict[str, dict[str, str]] = {
    "create": {
        "user": "added a new user",
        "department": "created a department",
        "application": "submitted an application",
        "attendance_correction": "requested an attendance correction",
        "attendance_record": "entered an attendance record",
        "expense": "recorded an expense",
        "holiday": "added a holiday",
        "announcement": "published an announcement",
        "salary_adjustment": "added a salary adjustment",
    },
    "update": {
        "user": "updated user details",
        "department": "updated department details",
        "salary_configuration": "changed payroll settings",
    },
    "approve": {
        "application": "approved an application",
        "attendance_correction": "approved an attendance correction",
        "expense": "approved an expense",
        "monthly_salary": "approved a salary",
    },
    "reject": {
        "application": "rejected an application",
        "attendance_correction": "rejected an attendance correction",
        "expense": "rejected an expense",
    },
    "pay": {
        "expense": "paid an expense",
        "monthly_salary": "paid a salary",
    },
    "calculate": {
        "monthly_salary": "calculated salaries",
    },
    "check_in": {
        "attendance_record": "checked in",
    },
    "check_out": {
        "attendance_record": "checked out",
    },
    "deactivate": {
        "user": "deactivated a user",
    },
}


def _build_activity_description(
    action: str,
    entity_type: str,
    actor_name: Optional[str] = None,
) -> str:
    """Build a human-readable description for an audit trail entry."""
    actor = actor_name or "System"
    verb = _ACTION_DESCRIPTIONS.get(action, {}).get(entity_type)
    if verb:
        return f"{actor} {verb}"

    entity_label = entity_type.replace("_", " ")
    return f"{actor} performed '{action}' on {entity_label}"
