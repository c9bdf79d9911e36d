"""Attendance router — check in/out, records, corrections, summaries, shifts.

Routes (mounted in main.py):
    /api/employee/attendance         — own check in/out, today, history, corrections
    /api/manager/attendance          — team views and correction review
    /api/admin/attendance            — all records, manual entries, reports
    /api/admin/work-shifts           — shift management
    /api/admin/working-days          — working week configuration
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.schemas import (
    AttendanceResponse,
    AttendanceSummaryResponse,
    CheckInRequest,
    CheckOutRequest,
    CorrectionCreate,
    CorrectionDecision,
    CorrectionResponse,
    LeaveCheckResponse,
    ManualAttendanceCreate,
    ManualAttendanceUpdate,
    MarkAbsentRequest,
    MarkAbsentResult,
    MonthlyReportResponse,
    ScheduleDay,
    SummaryGenerateRequest,
    SummaryGenerateResult,
    TeamBoardResponse,
    TodayAttendanceResponse,
    WeeklyScheduleResponse,
    WorkingDayCreate,
    WorkingDayResponse,
    WorkingDayStatistics,
    WorkingDayUpdate,
    WorkShiftCreate,
    WorkShiftResponse,
    WorkShiftUpdate,
)
from hrms.attendance.schedule import WorkingDayService, to_response
from hrms.attendance.service import AttendanceService
from hrms.auth.dependencies import get_current_user, require_department, require_role
from hrms.common.constants import ApprovalStatus, AttendanceStatus, UserRole
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.common.timeutils import local_today
from hrms.database import get_db
from hrms.users.models import User

employee_router = APIRouter(prefix="", tags=["employee: attendance"])
manager_router = APIRouter(prefix="", tags=["manager: attendance"])
admin_router = APIRouter(prefix="", tags=["admin: attendance"])
shifts_router = APIRouter(prefix="", tags=["admin: work shifts"])
working_days_router = APIRouter(prefix="", tags=["admin: working days"])


def _month_params(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> tuple[int, int]:
    today = local_today()
    return year or today.year, month or today.month


# ═════════════════════════════════════════════════════════════════════
# Employee: own attendance
# ═════════════════════════════════════════════════════════════════════


@employee_router.post("/check-in", response_model=AttendanceResponse, status_code=201)
async def check_in(
    body: CheckInRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record today's arrival for the current user."""
    ip = request.client.host if request.client else None
    record = await AttendanceService.check_in(
        db, user, notes=body.notes, location=body.location, ip_address=ip,
    )
    await db.commit()
    return AttendanceResponse.model_validate(record)


@employee_router.post("/check-out", response_model=AttendanceResponse)
async def check_out(
    body: CheckOutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService.check_out(db, user, notes=body.notes)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@employee_router.get("/today", response_model=TodayAttendanceResponse)
async def today(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.today(db, user)


@employee_router.get("/schedule", response_model=WeeklyScheduleResponse)
async def weekly_schedule(
    day: Optional[date] = Query(None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Working week containing *date* (default: this week), holidays included."""
    return await WorkingDayService.weekly_schedule(db, day)


@employee_router.get("/schedule/today", response_model=ScheduleDay)
async def schedule_today(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await WorkingDayService.today_status(db)


@employee_router.get("/history", response_model=PaginatedResponse[AttendanceResponse])
async def history(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.history(
        db, user.id, pagination, from_date=from_date, to_date=to_date,
    )


@employee_router.get("/summary", response_model=AttendanceSummaryResponse)
async def my_summary(
    period: tuple[int, int] = Depends(_month_params),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    year, month = period
    return await AttendanceService.monthly_summary(db, user, year, month)


@employee_router.post("/corrections", response_model=CorrectionResponse, status_code=201)
async def request_correction(
    body: CorrectionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    correction = await AttendanceService.request_correction(db, user, body)
    await db.commit()
    return CorrectionResponse.model_validate(correction)


@employee_router.get("/corrections", response_model=PaginatedResponse[CorrectionResponse])
async def my_corrections(
    status: Optional[ApprovalStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_corrections(
        db, pagination, user_id=user.id, status=status,
    )


# ═════════════════════════════════════════════════════════════════════
# Manager: own department
# ═════════════════════════════════════════════════════════════════════


@manager_router.get("/team", response_model=list[AttendanceResponse])
async def team_attendance(
    day: Optional[date] = Query(None, alias="date"),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    records = await AttendanceService.team_for_date(
        db, require_department(manager), day or local_today(),
    )
    return [AttendanceResponse.model_validate(r) for r in records]


@manager_router.get("/team/today", response_model=TeamBoardResponse)
async def team_today(
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.team_board(db, require_department(manager), local_today())


@manager_router.get("/team/summary", response_model=list[AttendanceSummaryResponse])
async def team_summary(
    period: tuple[int, int] = Depends(_month_params),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    year, month = period
    return await AttendanceService.team_summary(db, require_department(manager), year, month)


@manager_router.get("/corrections", response_model=PaginatedResponse[CorrectionResponse])
async def team_corrections(
    status: Optional[ApprovalStatus] = Query(ApprovalStatus.pending),
    pagination: PaginationParams = Depends(),
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_corrections(
        db, pagination, department_id=require_department(manager), status=status,
    )


@manager_router.put("/corrections/{correction_id}/approve", response_model=CorrectionResponse)
async def approve_team_correction(
    correction_id: uuid.UUID,
    body: CorrectionDecision,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    correction = await AttendanceService.decide_correction(
        db,
        correction_id,
        manager,
        approve=True,
        review_notes=body.review_notes,
        department_id=require_department(manager),
    )
    await db.commit()
    return CorrectionResponse.model_validate(correction)


@manager_router.put("/corrections/{correction_id}/reject", response_model=CorrectionResponse)
async def reject_team_correction(
    correction_id: uuid.UUID,
    body: CorrectionDecision,
    manager: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    correction = await AttendanceService.decide_correction(
        db,
        correction_id,
        manager,
        approve=False,
        review_notes=body.review_notes,
        department_id=require_department(manager),
    )
    await db.commit()
    return CorrectionResponse.model_validate(correction)


# ═════════════════════════════════════════════════════════════════════
# Admin: all records
# ═════════════════════════════════════════════════════════════════════


@admin_router.get("", response_model=PaginatedResponse[AttendanceResponse])
async def list_records(
    user_id: Optional[uuid.UUID] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    status: Optional[AttendanceStatus] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_records(
        db,
        pagination,
        user_id=user_id,
        department_id=department_id,
        status=status,
        from_date=from_date,
        to_date=to_date,
    )


@admin_router.post("", response_model=AttendanceResponse, status_code=201)
async def create_record(
    body: ManualAttendanceCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService.create_manual(db, body, actor_id=admin.id)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@admin_router.get("/corrections", response_model=PaginatedResponse[CorrectionResponse])
async def all_corrections(
    status: Optional[ApprovalStatus] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    department_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.list_corrections(
        db, pagination, user_id=user_id, department_id=department_id, status=status,
    )


@admin_router.put("/corrections/{correction_id}/approve", response_model=CorrectionResponse)
async def approve_correction(
    correction_id: uuid.UUID,
    body: CorrectionDecision,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    correction = await AttendanceService.decide_correction(
        db, correction_id, admin, approve=True, review_notes=body.review_notes,
    )
    await db.commit()
    return CorrectionResponse.model_validate(correction)


@admin_router.put("/corrections/{correction_id}/reject", response_model=CorrectionResponse)
async def reject_correction(
    correction_id: uuid.UUID,
    body: CorrectionDecision,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    correction = await AttendanceService.decide_correction(
        db, correction_id, admin, approve=False, review_notes=body.review_notes,
    )
    await db.commit()
    return CorrectionResponse.model_validate(correction)


@admin_router.post("/mark-absent", response_model=MarkAbsentResult)
async def mark_absent(
    body: MarkAbsentRequest,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    result = await AttendanceService.mark_absent(db, body.date, actor_id=admin.id)
    await db.commit()
    return result


@admin_router.post("/summaries", response_model=SummaryGenerateResult)
async def generate_summaries(
    body: SummaryGenerateRequest,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    result = await AttendanceService.generate_summaries(db, body.year, body.month)
    await db.commit()
    return result


@admin_router.get("/report", response_model=MonthlyReportResponse)
async def monthly_report(
    department_id: Optional[uuid.UUID] = Query(None),
    period: tuple[int, int] = Depends(_month_params),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    year, month = period
    return await AttendanceService.monthly_report(db, year, month, department_id)


@admin_router.get("/leave-check/{user_id}", response_model=LeaveCheckResponse)
async def leave_check(
    user_id: uuid.UUID,
    day: Optional[date] = Query(None, alias="date"),
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await AttendanceService.check_leave(db, user_id, day or local_today())


@admin_router.get("/{record_id}", response_model=AttendanceResponse)
async def get_record(
    record_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return AttendanceResponse.model_validate(await AttendanceService.get_record(db, record_id))


@admin_router.put("/{record_id}", response_model=AttendanceResponse)
async def update_record(
    record_id: uuid.UUID,
    body: ManualAttendanceUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService.update_manual(db, record_id, body, actor_id=admin.id)
    await db.commit()
    return AttendanceResponse.model_validate(record)


@admin_router.delete("/{record_id}", status_code=204)
async def delete_record(
    record_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService.delete_record(db, record_id, actor_id=admin.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Admin: work shifts
# ═════════════════════════════════════════════════════════════════════


@shifts_router.get("", response_model=list[WorkShiftResponse])
async def list_shifts(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return [WorkShiftResponse.model_validate(s) for s in await AttendanceService.list_shifts(db)]


@shifts_router.post("", response_model=WorkShiftResponse, status_code=201)
async def create_shift(
    body: WorkShiftCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    shift = await AttendanceService.create_shift(db, body, actor_id=admin.id)
    await db.commit()
    return WorkShiftResponse.model_validate(shift)


@shifts_router.put("/{shift_id}", response_model=WorkShiftResponse)
async def update_shift(
    shift_id: uuid.UUID,
    body: WorkShiftUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    shift = await AttendanceService.update_shift(db, shift_id, body, actor_id=admin.id)
    await db.commit()
    return WorkShiftResponse.model_validate(shift)


@shifts_router.delete("/{shift_id}", status_code=204)
async def delete_shift(
    shift_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService.delete_shift(db, shift_id, actor_id=admin.id)
    await db.commit()


# ═════════════════════════════════════════════════════════════════════
# Admin: working week
# ═════════════════════════════════════════════════════════════════════


@working_days_router.get("", response_model=list[WorkingDayResponse])
async def list_working_days(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return [to_response(row) for row in await WorkingDayService.list_days(db)]


@working_days_router.get("/statistics", response_model=WorkingDayStatistics)
async def working_day_statistics(
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await WorkingDayService.statistics(db)


@working_days_router.post("", response_model=WorkingDayResponse, status_code=201)
async def create_working_day(
    body: WorkingDayCreate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    row = await WorkingDayService.create_day(db, body, actor_id=admin.id)
    await db.commit()
    return to_response(row)


@working_days_router.put("/{working_day_id}", response_model=WorkingDayResponse)
async def update_working_day(
    working_day_id: uuid.UUID,
    body: WorkingDayUpdate,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    row = await WorkingDayService.update_day(db, working_day_id, body, actor_id=admin.id)
    await db.commit()
    return to_response(row)


@working_days_router.delete("/{working_day_id}", status_code=204)
async def delete_working_day(
    working_day_id: uuid.UUID,
    admin: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await WorkingDayService.delete_day(db, working_day_id, actor_id=admin.id)
    await db.commit()
