"""Dashboard Pydantic v2 schemas — response models for the three role dashboards."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from hrms.attendance.schemas import AttendanceSummaryResponse, TodayAttendanceResponse
from hrms.holidays.schemas import HolidayResponse
from hrms.salary.schemas import MonthlySalaryResponse


# ═════════════════════════════════════════════════════════════════════
# Shared building blocks
# ═════════════════════════════════════════════════════════════════════


class RoleCount(BaseModel):
    role: str
    count: int = 0


class DepartmentBreakdownItem(BaseModel):
    """Active user count for a single department."""

    department_id: uuid.UUID
    department_name: str
    count: int = 0


class DailyAttendanceCounts(BaseModel):
    """Attendance state of tracked users for one day."""

    date: date
    expected: int = Field(0, description="Active employees and managers")
    present: int = 0
    late: int = 0
    absent: int = 0
    on_leave: int = 0
    not_checked_in: int = 0


class PayrollTotals(BaseModel):
    month: int
    year: int
    records: int = 0
    calculated: int = 0
    approved: int = 0
    paid: int = 0
    total_gross: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")


class RecentActivityItem(BaseModel):
    """A single recent activity entry."""

    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    actor_name: Optional[str] = None
    description: str = Field(..., description="Human-readable activity description")
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Role dashboards
# ═════════════════════════════════════════════════════════════════════


class AdminDashboardResponse(BaseModel):
    total_users: int
    headcount_by_role: list[RoleCount]
    department_breakdown: list[DepartmentBreakdownItem]
    pending_applications: int
    pending_expenses: int
    pending_corrections: int
    attendance_today: DailyAttendanceCounts
    payroll: PayrollTotals
    upcoming_holidays: list[HolidayResponse] = Field(default_factory=list)
    recent_activities: list[RecentActivityItem] = Field(default_factory=list)


class ManagerDashboardResponse(BaseModel):
    department_id: uuid.UUID
    department_name: Optional[str] = None
    team_size: int
    attendance_today: DailyAttendanceCounts
    pending_applications: int
    pending_corrections: int
    pending_expenses: int
    unread_notifications: int = 0


class EmployeeDashboardResponse(BaseModel):
    today: TodayAttendanceResponse
    month_summary: AttendanceSummaryResponse
    pending_applications: int
    unread_notifications: int
    unread_announcements: int
    next_holiday: Optional[HolidayResponse] = None
    latest_salary: Optional[MonthlySalaryResponse] = None
