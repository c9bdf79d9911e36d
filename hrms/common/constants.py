"""Enums and constants for the HRMS portal — stored as plain strings in PostgreSQL."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    admin = "admin"


# Prefix for auto-generated employee codes (EMP-0001, MGR-0002, ...)
EMPLOYEE_CODE_PREFIX: dict[UserRole, str] = {
    UserRole.employee: "EMP",
    UserRole.manager: "MGR",
    UserRole.admin: "ADM",
}


# ── Approval workflows ──────────────────────────────────────────────

class ApprovalStatus(str, enum.Enum):
    """Shared by applications and attendance corrections."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Applications and corrections only ever leave pending.
APPROVAL_TRANSITIONS: dict[ApprovalStatus, set[ApprovalStatus]] = {
    ApprovalStatus.pending: {ApprovalStatus.approved, ApprovalStatus.rejected},
    ApprovalStatus.approved: set(),
    ApprovalStatus.rejected: set(),
}


class ExpenseStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    paid = "paid"


# Allowed moves: nothing ever returns to pending.
EXPENSE_TRANSITIONS: dict[ExpenseStatus, set[ExpenseStatus]] = {
    ExpenseStatus.pending: {ExpenseStatus.approved, ExpenseStatus.rejected},
    ExpenseStatus.approved: {ExpenseStatus.paid},
    ExpenseStatus.rejected: set(),
    ExpenseStatus.paid: set(),
}


# ── Applications ────────────────────────────────────────────────────

class ApplicationType(str, enum.Enum):
    leave_request = "leave_request"
    transfer = "transfer"
    remote_work = "remote_work"
    other = "other"


class ApplicationPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    late = "late"
    absent = "absent"
    half_day = "half_day"
    on_leave = "on_leave"
    holiday = "holiday"


class CorrectionType(str, enum.Enum):
    missed_checkin = "missed_checkin"
    missed_checkout = "missed_checkout"
    wrong_time = "wrong_time"
    forgot_punch = "forgot_punch"


# ── Salary ──────────────────────────────────────────────────────────

class SalaryStatus(str, enum.Enum):
    calculated = "calculated"
    approved = "approved"
    paid = "paid"


# Payroll records only move forward.
SALARY_TRANSITIONS: dict[SalaryStatus, set[SalaryStatus]] = {
    SalaryStatus.calculated: {SalaryStatus.approved},
    SalaryStatus.approved: {SalaryStatus.paid},
    SalaryStatus.paid: set(),
}


class ComponentType(str, enum.Enum):
    bonus = "bonus"
    allowance = "allowance"
    deduction = "deduction"


class AdjustmentType(str, enum.Enum):
    bonus = "bonus"
    deduction = "deduction"
    overtime = "overtime"
    correction = "correction"


# Salary configuration keys and their defaults
SALARY_CONFIG_DEFAULTS: dict[str, str] = {
    "tax_rate": "10",
    "absence_deduction_per_day": "0",
    "latency_deduction_per_minute": "1",
    "overtime_rate_multiplier": "1.5",
    "working_days_per_month": "22",
    "grace_period_minutes": "15",
}


# ── Working week ────────────────────────────────────────────────────

class Weekday(str, enum.Enum):
    """Declared in `date.weekday()` order."""

    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


# Worked weekdays until an admin configures the schedule
DEFAULT_WORKING_WEEKDAYS: frozenset[Weekday] = frozenset(
    {Weekday.monday, Weekday.tuesday, Weekday.wednesday, Weekday.thursday, Weekday.friday}
)


# ── Notifications ───────────────────────────────────────────────────

class NotificationType(str, enum.Enum):
    info = "info"
    application = "application"
    expense = "expense"
    attendance = "attendance"
    salary = "salary"
    announcement = "announcement"
    holiday = "holiday"
    system = "system"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read_own",
        "profile:update_own",
        "attendance:check_in",
        "attendance:read_own",
        "attendance:request_correction",
        "application:submit",
        "application:read_own",
        "salary:read_own",
        "notification:read_own",
        "message:send",
        "message:read_own",
        "schedule:read",
        "announcement:read",
        "holiday:read",
    ],
    UserRole.manager: [
        "profile:read_own",
        "profile:update_own",
        "profile:read_team",
        "attendance:check_in",
        "attendance:read_own",
        "attendance:read_team",
        "attendance:correction_review",
        "application:submit",
        "application:read_own",
        "application:review_team",
        "expense:create",
        "expense:read_team",
        "salary:read_own",
        "salary:read_team",
        "salary:adjust_team",
        "notification:read_own",
        "notification:send_team",
        "message:send",
        "message:read_own",
        "schedule:read",
        "announcement:read",
        "announcement:create_team",
        "holiday:read",
        "dashboard:team",
    ],
    UserRole.admin: [
        "profile:read_all",
        "profile:create",
        "profile:update",
        "profile:delete",
        "department:manage",
        "attendance:read_all",
        "attendance:manage",
        "attendance:correction_review",
        "application:read_all",
        "application:review_all",
        "expense:manage",
        "salary:manage",
        "notification:send",
        "announcement:manage",
        "holiday:manage",
        "schedule:manage",
        "message:send",
        "message:read_own",
        "dashboard:admin",
        "audit:read",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%Y-%m-%d"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
MAX_DATE_RANGE_DAYS = 90
