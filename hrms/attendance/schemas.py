"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Response           → response bodies (read)
  - *Summary / *Item    → compact read representations

Classes with a field literally named ``date`` declare it without a
default, so later annotations still resolve to ``datetime.date``.
"""


import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import ApprovalStatus, AttendanceStatus, CorrectionType, Weekday


# ═════════════════════════════════════════════════════════════════════
# Check in / out
# ═════════════════════════════════════════════════════════════════════


class CheckInRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)
    location: Optional[str] = Field(None, max_length=255)


class CheckOutRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


# ═════════════════════════════════════════════════════════════════════
# Attendance record
# ═════════════════════════════════════════════════════════════════════


class AttendanceResponse(BaseModel):
    """Single attendance record for a day."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    employee_name: Optional[str] = None
    date: date
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    working_minutes: int = 0
    status: AttendanceStatus
    is_late: bool = False
    late_minutes: int = 0
    is_early_departure: bool = False
    early_departure_minutes: int = 0
    overtime_minutes: int = 0
    notes: Optional[str] = None
    location: Optional[str] = None
    is_manual_entry: bool = False
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    created_at: datetime


class TodayAttendanceResponse(BaseModel):
    """The caller's state for the current office day."""

    date: date
    is_holiday: bool = False
    holiday_name: Optional[str] = None
    is_working_day: bool = True
    checked_in: bool = False
    checked_out: bool = False
    record: Optional[AttendanceResponse] = None


class ManualAttendanceCreate(BaseModel):
    """Admin-entered record; minutes are derived from the times given."""

    user_id: uuid.UUID
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)
    date: date


class ManualAttendanceUpdate(BaseModel):
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)


# ═════════════════════════════════════════════════════════════════════
# Corrections
# ═════════════════════════════════════════════════════════════════════


class CorrectionCreate(BaseModel):
    request_type: CorrectionType
    requested_check_in: Optional[datetime] = None
    requested_check_out: Optional[datetime] = None
    reason: str = Field(..., min_length=1, max_length=2000)
    date: date


class CorrectionDecision(BaseModel):
    """Body for approve / reject; rejection requires ``review_notes``."""

    review_notes: Optional[str] = Field(None, max_length=2000)


class CorrectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    employee_name: Optional[str] = None
    attendance_id: Optional[uuid.UUID] = None
    date: date
    request_type: CorrectionType
    original_check_in: Optional[datetime] = None
    original_check_out: Optional[datetime] = None
    requested_check_in: Optional[datetime] = None
    requested_check_out: Optional[datetime] = None
    reason: str
    status: ApprovalStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Summaries and reports
# ═════════════════════════════════════════════════════════════════════


class AttendanceSummaryResponse(BaseModel):
    """Monthly roll-up; built from stored summaries or computed on the fly."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    employee_name: Optional[str] = None
    month: int
    year: int
    total_working_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    leave_days: int = 0
    total_working_minutes: int = 0
    total_late_minutes: int = 0
    total_overtime_minutes: int = 0


class MonthlyReportResponse(BaseModel):
    month: int
    year: int
    employees: int
    totals: AttendanceSummaryResponse
    rows: list[AttendanceSummaryResponse]


class TeamBoardItem(BaseModel):
    user_id: uuid.UUID
    employee_name: str
    employee_code: Optional[str] = None
    state: str
    record: Optional[AttendanceResponse] = None


class TeamBoardResponse(BaseModel):
    """Per-member attendance state for one day."""

    date: date
    total: int
    present: int
    late: int
    absent: int
    not_checked_in: int
    items: list[TeamBoardItem]


class SummaryGenerateRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class SummaryGenerateResult(BaseModel):
    month: int
    year: int
    generated: int


class MarkAbsentRequest(BaseModel):
    date: date


class MarkAbsentResult(BaseModel):
    date: date
    marked: int
    skipped_holiday: bool = False
    skipped_non_working_day: bool = False


class LeaveCheckResponse(BaseModel):
    user_id: uuid.UUID
    date: date
    on_leave: bool
    application_id: Optional[uuid.UUID] = None
    application_title: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Work shifts
# ═════════════════════════════════════════════════════════════════════


class WorkShiftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    start_time: time
    end_time: time
    grace_period_minutes: int = Field(15, ge=0, le=240)
    is_default: bool = False
    is_active: bool = True


class WorkShiftUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    grace_period_minutes: Optional[int] = Field(None, ge=0, le=240)
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class WorkShiftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    start_time: time
    end_time: time
    grace_period_minutes: int
    is_default: bool
    is_active: bool


# ═════════════════════════════════════════════════════════════════════
# Working week
# ═════════════════════════════════════════════════════════════════════


class WorkingDayCreate(BaseModel):
    day: Weekday
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_active: bool = True


class WorkingDayUpdate(BaseModel):
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_active: Optional[bool] = None


class WorkingDayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    day: Weekday
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    is_active: bool
    working_minutes: int = 0


class ScheduleDay(BaseModel):
    """One calendar day of the working week as the employee sees it."""

    day: Weekday
    date: date
    is_working_day: bool
    is_holiday: bool = False
    holiday_name: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    working_minutes: int = 0


class WeeklyScheduleResponse(BaseModel):
    week_start: date
    days: list[ScheduleDay]
    active_days: int
    total_weekly_minutes: int
    configured: bool


class WorkingDayStatistics(BaseModel):
    configured_days: int
    active_days: int
    inactive_days: int
    total_weekly_minutes: int
    average_daily_minutes: int
