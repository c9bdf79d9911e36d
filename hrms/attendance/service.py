"""Attendance service layer — check in/out, corrections, summaries, shifts.

Business logic:
  - Check in/out against the default work shift (or the configured fallback)
  - Correction workflow (submit → approve/reject) scoped to the department
  - Monthly summaries, team boards and admin reports
  - Admin manual records, absence marking and work-shift management
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.applications.models import Application
from hrms.attendance.models import (
    AttendanceCorrection,
    AttendanceRecord,
    AttendanceSummary,
    WorkShift,
)
from hrms.attendance.schemas import (
    AttendanceResponse,
    AttendanceSummaryResponse,
    CorrectionCreate,
    CorrectionResponse,
    LeaveCheckResponse,
    ManualAttendanceCreate,
    ManualAttendanceUpdate,
    MarkAbsentResult,
    MonthlyReportResponse,
    SummaryGenerateResult,
    TeamBoardItem,
    TeamBoardResponse,
    TodayAttendanceResponse,
    WorkShiftCreate,
    WorkShiftUpdate,
)
from hrms.attendance.schedule import WorkingDayService
from hrms.attendance.timecalc import (
    as_utc,
    compute_arrival,
    compute_departure,
    parse_hhmm,
    scheduled_at,
)
from hrms.common.audit import create_audit_entry, jsonable
from hrms.common.constants import (
    MAX_DATE_RANGE_DAYS,
    SALARY_CONFIG_DEFAULTS,
    ApprovalStatus,
    AttendanceStatus,
    NotificationType,
    UserRole,
)
from hrms.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from hrms.common.filters import apply_filters
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import local_today, month_bounds, now_utc, office_tz
from hrms.config import settings
from hrms.holidays.service import HolidayService
from hrms.notifications.service import notify_department_managers, notify_user
from hrms.users.models import User
from hrms.users.service import UserService

logger = logging.getLogger(__name__)

# Roles that are expected to record attendance
_TRACKED_ROLES = (UserRole.employee.value, UserRole.manager.value)
_PRESENT_STATUSES = {
    AttendanceStatus.present.value,
    AttendanceStatus.late.value,
    AttendanceStatus.half_day.value,
}
_SUMMARY_FIELDS = (
    "total_working_days",
    "present_days",
    "absent_days",
    "late_days",
    "leave_days",
    "total_working_minutes",
    "total_late_minutes",
    "total_overtime_minutes",
)


@dataclass(frozen=True)
class ShiftWindow:
    """Resolved schedule for a day: start, end, payroll grace and whether it is worked."""

    start: time
    end: time
    grace_period_minutes: int
    is_working_day: bool = True


def summarize(
    records: Sequence[AttendanceRecord],
    user_id: uuid.UUID,
    month: int,
    year: int,
    employee_name: Optional[str] = None,
) -> AttendanceSummaryResponse:
    """Roll a month of records up into counts and minute totals."""
    return AttendanceSummaryResponse(
        user_id=user_id,
        employee_name=employee_name,
        month=month,
        year=year,
        total_working_days=len(records),
        present_days=sum(1 for r in records if r.status in _PRESENT_STATUSES),
        absent_days=sum(1 for r in records if r.status == AttendanceStatus.absent.value),
        late_days=sum(1 for r in records if r.is_late),
        leave_days=sum(1 for r in records if r.status == AttendanceStatus.on_leave.value),
        total_working_minutes=sum(r.working_minutes or 0 for r in records),
        total_late_minutes=sum(r.late_minutes or 0 for r in records),
        total_overtime_minutes=sum(r.overtime_minutes or 0 for r in records),
    )


class AttendanceService:
    """Async attendance operations."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def resolve_shift(db: AsyncSession, day: Optional[date] = None) -> ShiftWindow:
        """Shift hours for *day*.

        The default active shift applies, else any active shift, else the
        settings fallback. Hours configured on the day's working-week entry
        take precedence, and days off are flagged as not worked.
        """
        result = await db.execute(
            select(WorkShift)
            .where(WorkShift.is_active.is_(True))
            .order_by(WorkShift.is_default.desc(), WorkShift.created_at.asc())
        )
        shift = result.scalars().first()
        if shift is not None:
            window = ShiftWindow(shift.start_time, shift.end_time, shift.grace_period_minutes)
        else:
            window = ShiftWindow(
                start=parse_hhmm(settings.DEFAULT_SHIFT_START),
                end=parse_hhmm(settings.DEFAULT_SHIFT_END),
                grace_period_minutes=int(SALARY_CONFIG_DEFAULTS["grace_period_minutes"]),
            )
        if day is None:
            return window

        schedule = await WorkingDayService.day_schedule(db, day)
        return ShiftWindow(
            start=schedule.start_time or window.start,
            end=schedule.end_time or window.end,
            grace_period_minutes=window.grace_period_minutes,
            is_working_day=schedule.is_working_day,
        )

    @staticmethod
    def apply_times(record: AttendanceRecord, shift: ShiftWindow) -> None:
        """Recompute lateness, departure and worked minutes from the stored times.

        On a day off nobody is late or leaves early; every worked minute is overtime.
        """
        tz = office_tz()
        start = scheduled_at(record.date, shift.start, tz)
        end = scheduled_at(record.date, shift.end, tz)

        if record.check_in is not None and shift.is_working_day:
            arrival = compute_arrival(record.check_in, start)
            record.is_late = arrival.is_late
            record.late_minutes = arrival.late_minutes
        else:
            record.is_late = False
            record.late_minutes = 0

        if record.check_in is not None and record.check_out is not None:
            departure = compute_departure(record.check_in, record.check_out, end)
            record.working_minutes = departure.working_minutes
            if shift.is_working_day:
                record.is_early_departure = departure.is_early_departure
                record.early_departure_minutes = departure.early_departure_minutes
                record.overtime_minutes = departure.overtime_minutes
            else:
                record.is_early_departure = False
                record.early_departure_minutes = 0
                record.overtime_minutes = departure.working_minutes
        else:
            record.working_minutes = 0
            record.is_early_departure = False
            record.early_departure_minutes = 0
            record.overtime_minutes = 0

    @staticmethod
    def _ensure_ordered(
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        field: str = "check_out",
    ) -> None:
        if check_in is not None and check_out is not None and as_utc(check_out) <= as_utc(check_in):
            raise ValidationException({field: ["Check-out must be after check-in."]})

    @staticmethod
    def _status_from_times(record: AttendanceRecord) -> str:
        if record.check_in is None:
            return AttendanceStatus.absent.value
        return AttendanceStatus.late.value if record.is_late else AttendanceStatus.present.value

    @staticmethod
    def _validate_date_range(from_date: date, to_date: date) -> None:
        if from_date > to_date:
            raise ValidationException(
                {"date_range": ["from_date must be before or equal to to_date."]}
            )
        if (to_date - from_date).days > MAX_DATE_RANGE_DAYS:
            raise ValidationException(
                {"date_range": [f"Date range cannot exceed {MAX_DATE_RANGE_DAYS} days."]}
            )

    @staticmethod
    async def _find_record(
        db: AsyncSession,
        user_id: uuid.UUID,
        day: date,
    ) -> Optional[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.user_id == user_id,
                AttendanceRecord.date == day,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def get_record(db: AsyncSession, record_id: uuid.UUID) -> AttendanceRecord:
        result = await db.execute(
            select(AttendanceRecord).where(AttendanceRecord.id == record_id)
        )
        record = result.scalars().first()
        if record is None:
            raise NotFoundException("AttendanceRecord", record_id)
        return record

    @staticmethod
    async def _month_records(
        db: AsyncSession,
        user_ids: Sequence[uuid.UUID],
        year: int,
        month: int,
    ) -> dict[uuid.UUID, list[AttendanceRecord]]:
        first, last = month_bounds(year, month)
        grouped: dict[uuid.UUID, list[AttendanceRecord]] = {uid: [] for uid in user_ids}
        if not user_ids:
            return grouped
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.user_id.in_(list(user_ids)),
                AttendanceRecord.date >= first,
                AttendanceRecord.date <= last,
            )
        )
        for record in result.scalars().all():
            grouped[record.user_id].append(record)
        return grouped

    @staticmethod
    async def _tracked_users(
        db: AsyncSession,
        department_id: Optional[uuid.UUID] = None,
    ) -> list[User]:
        query = (
            select(User)
            .where(User.is_active.is_(True), User.role.in_(_TRACKED_ROLES))
            .order_by(User.full_name.asc())
        )
        if department_id is not None:
            query = query.where(User.department_id == department_id)
        return list((await db.execute(query)).scalars().all())

    # ── Check in / out ──────────────────────────────────────────────

    @staticmethod
    async def check_in(
        db: AsyncSession,
        user: User,
        *,
        notes: Optional[str] = None,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> AttendanceRecord:
        """Record today's arrival. A second check-in on the same day is refused."""
        now = now_utc()
        today = local_today()

        record = await AttendanceService._find_record(db, user.id, today)
        if record is not None and record.check_in is not None:
            raise ValidationException({"check_in": ["Already checked in today."]})

        if record is None:
            record = AttendanceRecord(user_id=user.id, date=today)
            db.add(record)

        record.check_in = now
        record.notes = notes
        record.location = location
        record.ip_address = ip_address
        AttendanceService.apply_times(record, await AttendanceService.resolve_shift(db, record.date))
        record.status = AttendanceService._status_from_times(record)
        await db.flush()
        await db.refresh(record, attribute_names=["user"])

        await create_audit_entry(
            db,
            action="check_in",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user.id,
            new_values={
                "timestamp": now.isoformat(),
                "is_late": record.is_late,
                "late_minutes": record.late_minutes,
            },
            ip_address=ip_address,
        )
        logger.info(
            "User %s checked in (late=%s, %d min)", user.username, record.is_late, record.late_minutes,
        )
        return record

    @staticmethod
    async def check_out(
        db: AsyncSession,
        user: User,
        *,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        now = now_utc()
        record = await AttendanceService._find_record(db, user.id, local_today())
        if record is None or record.check_in is None:
            raise ValidationException({"check_out": ["You have not checked in today."]})
        if record.check_out is not None:
            raise ValidationException({"check_out": ["Already checked out today."]})

        record.check_out = now
        if notes:
            record.notes = notes
        AttendanceService.apply_times(record, await AttendanceService.resolve_shift(db, record.date))
        await db.flush()

        await create_audit_entry(
            db,
            action="check_out",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user.id,
            new_values={
                "timestamp": now.isoformat(),
                "working_minutes": record.working_minutes,
                "overtime_minutes": record.overtime_minutes,
            },
        )
        logger.info("User %s checked out after %d min", user.username, record.working_minutes)
        return record

    # ── Employee reads ──────────────────────────────────────────────

    @staticmethod
    async def today(db: AsyncSession, user: User) -> TodayAttendanceResponse:
        today = local_today()
        record = await AttendanceService._find_record(db, user.id, today)
        schedule = await WorkingDayService.day_schedule(db, today)
        return TodayAttendanceResponse(
            date=today,
            is_holiday=schedule.is_holiday,
            holiday_name=schedule.holiday_name,
            is_working_day=schedule.is_working_day,
            checked_in=bool(record and record.check_in),
            checked_out=bool(record and record.check_out),
            record=AttendanceResponse.model_validate(record) if record else None,
        )

    @staticmethod
    async def history(
        db: AsyncSession,
        user_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse:
        """Own records for a date range (default: the last 30 days)."""
        to_date = to_date or local_today()
        from_date = from_date or to_date - timedelta(days=30)
        AttendanceService._validate_date_range(from_date, to_date)

        query = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.user_id == user_id,
                AttendanceRecord.date >= from_date,
                AttendanceRecord.date <= to_date,
            )
            .order_by(AttendanceRecord.date.desc())
        )
        return await paginate(
            db, query, pagination, model=AttendanceRecord, schema=AttendanceResponse,
        )

    @staticmethod
    async def monthly_summary(
        db: AsyncSession,
        user: User,
        year: int,
        month: int,
    ) -> AttendanceSummaryResponse:
        grouped = await AttendanceService._month_records(db, [user.id], year, month)
        return summarize(grouped[user.id], user.id, month, year, user.full_name)

    # ── Corrections ─────────────────────────────────────────────────

    @staticmethod
    async def request_correction(
        db: AsyncSession,
        user: User,
        data: CorrectionCreate,
    ) -> AttendanceCorrection:
        if data.date > local_today():
            raise ValidationException({"date": ["Corrections cannot be requested for future dates."]})
        if data.requested_check_in is None and data.requested_check_out is None:
            raise ValidationException(
                {"requested_check_in": ["Provide a requested check-in or check-out time."]}
            )

        record = await AttendanceService._find_record(db, user.id, data.date)
        AttendanceService._ensure_ordered(
            data.requested_check_in or (record.check_in if record else None),
            data.requested_check_out or (record.check_out if record else None),
            field="requested_check_out",
        )

        pending = await db.execute(
            select(AttendanceCorrection.id).where(
                AttendanceCorrection.user_id == user.id,
                AttendanceCorrection.date == data.date,
                AttendanceCorrection.status == ApprovalStatus.pending.value,
            )
        )
        if pending.first() is not None:
            raise ConflictError("date", data.date.isoformat())

        correction = AttendanceCorrection(
            user_id=user.id,
            attendance_id=record.id if record else None,
            date=data.date,
            request_type=data.request_type.value,
            original_check_in=record.check_in if record else None,
            original_check_out=record.check_out if record else None,
            requested_check_in=data.requested_check_in,
            requested_check_out=data.requested_check_out,
            reason=data.reason,
            status=ApprovalStatus.pending.value,
        )
        db.add(correction)
        await db.flush()
        await db.refresh(correction, attribute_names=["user"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="attendance_correction",
            entity_id=correction.id,
            actor_id=user.id,
            new_values=jsonable(data.model_dump()),
        )
        await notify_department_managers(
            db,
            user.department_id,
            "Attendance Correction Request",
            f"{user.full_name} requested a correction for {data.date.isoformat()}.",
            NotificationType.attendance,
            correction.id,
            exclude=user.id,
        )
        return correction

    @staticmethod
    async def get_correction(db: AsyncSession, correction_id: uuid.UUID) -> AttendanceCorrection:
        result = await db.execute(
            select(AttendanceCorrection).where(AttendanceCorrection.id == correction_id)
        )
        correction = result.scalars().first()
        if correction is None:
            raise NotFoundException("AttendanceCorrection", correction_id)
        return correction

    @staticmethod
    async def list_corrections(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[ApprovalStatus] = None,
    ) -> PaginatedResponse:
        query = select(AttendanceCorrection).order_by(AttendanceCorrection.created_at.desc())
        if department_id is not None:
            query = query.where(
                AttendanceCorrection.user_id.in_(
                    select(User.id).where(User.department_id == department_id)
                )
            )
        query = apply_filters(
            query,
            AttendanceCorrection,
            {"user_id": user_id, "status": status.value if status else None},
        )
        return await paginate(
            db, query, pagination, model=AttendanceCorrection, schema=CorrectionResponse,
        )

    @staticmethod
    async def decide_correction(
        db: AsyncSession,
        correction_id: uuid.UUID,
        reviewer: User,
        *,
        approve: bool,
        review_notes: Optional[str] = None,
        department_id: Optional[uuid.UUID] = None,
    ) -> AttendanceCorrection:
        """Approve or reject a pending correction.

        When *department_id* is given the requester must belong to it (manager
        scope). Approval writes the requested times into the day's record,
        creating a manual record when none exists, and recomputes its minutes.
        """
        correction = await AttendanceService.get_correction(db, correction_id)
        if department_id is not None and correction.user.department_id != department_id:
            raise ForbiddenException("This correction request is not from your department.")
        target = ApprovalStatus.approved if approve else ApprovalStatus.rejected
        if correction.status != ApprovalStatus.pending.value:
            raise ValidationException(
                {"status": [f"Correction request is already {correction.status}."]}
            )
        if not approve and not (review_notes and review_notes.strip()):
            raise ValidationException({"review_notes": ["A reason is required to reject."]})

        record = None
        if approve:
            record = await AttendanceService._find_record(db, correction.user_id, correction.date)
            AttendanceService._ensure_ordered(
                correction.requested_check_in or (record.check_in if record else None),
                correction.requested_check_out or (record.check_out if record else None),
                field="requested_check_out",
            )

        now = now_utc()
        correction.status = target.value
        correction.reviewed_by = reviewer.id
        correction.reviewed_at = now
        correction.review_notes = review_notes

        if approve:
            if record is None:
                record = AttendanceRecord(user_id=correction.user_id, date=correction.date)
                db.add(record)
            if correction.requested_check_in is not None:
                record.check_in = correction.requested_check_in
            if correction.requested_check_out is not None:
                record.check_out = correction.requested_check_out
            AttendanceService.apply_times(record, await AttendanceService.resolve_shift(db, record.date))
            record.status = AttendanceService._status_from_times(record)
            record.is_manual_entry = True
            record.approved_by = reviewer.id
            record.approved_at = now
            await db.flush()
            correction.attendance_id = record.id

        await db.flush()
        await create_audit_entry(
            db,
            action="approve" if approve else "reject",
            entity_type="attendance_correction",
            entity_id=correction.id,
            actor_id=reviewer.id,
            old_values={"status": ApprovalStatus.pending.value},
            new_values={"status": target.value, "review_notes": review_notes},
        )

        message = f"Your attendance correction for {correction.date.isoformat()} was {target.value}."
        if not approve:
            message += f" Notes: {review_notes}"
        await notify_user(
            db,
            correction.user_id,
            f"Correction {target.value.title()}",
            message,
            NotificationType.attendance,
            correction.id,
        )
        logger.info(
            "Correction %s %s by %s", correction.id, target.value, reviewer.username,
        )
        return correction

    # ── Manager / team views ────────────────────────────────────────

    @staticmethod
    async def team_for_date(
        db: AsyncSession,
        department_id: uuid.UUID,
        day: date,
    ) -> list[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord)
            .join(User, AttendanceRecord.user_id == User.id)
            .where(User.department_id == department_id, AttendanceRecord.date == day)
            .order_by(AttendanceRecord.check_in.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def team_board(
        db: AsyncSession,
        department_id: uuid.UUID,
        day: date,
    ) -> TeamBoardResponse:
        """Every active member of the department with their state for *day*."""
        members = await AttendanceService._tracked_users(db, department_id)
        records = {r.user_id: r for r in await AttendanceService.team_for_date(db, department_id, day)}

        items: list[TeamBoardItem] = []
        for member in members:
            record = records.get(member.id)
            items.append(
                TeamBoardItem(
                    user_id=member.id,
                    employee_name=member.full_name,
                    employee_code=member.employee_code,
                    state=record.status if record else "not_checked_in",
                    record=AttendanceResponse.model_validate(record) if record else None,
                )
            )

        def count(state: str) -> int:
            return sum(1 for item in items if item.state == state)

        return TeamBoardResponse(
            date=day,
            total=len(items),
            present=count(AttendanceStatus.present.value),
            late=count(AttendanceStatus.late.value),
            absent=count(AttendanceStatus.absent.value),
            not_checked_in=count("not_checked_in"),
            items=items,
        )

    @staticmethod
    async def team_summary(
        db: AsyncSession,
        department_id: Optional[uuid.UUID],
        year: int,
        month: int,
    ) -> list[AttendanceSummaryResponse]:
        members = await AttendanceService._tracked_users(db, department_id)
        grouped = await AttendanceService._month_records(db, [m.id for m in members], year, month)
        return [summarize(grouped[m.id], m.id, month, year, m.full_name) for m in members]

    # ── Admin: records ──────────────────────────────────────────────

    @staticmethod
    async def list_records(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        user_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[AttendanceStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(AttendanceRecord).order_by(
            AttendanceRecord.date.desc(), AttendanceRecord.check_in.asc()
        )
        if department_id is not None:
            query = query.where(
                AttendanceRecord.user_id.in_(
                    select(User.id).where(User.department_id == department_id)
                )
            )
        query = apply_filters(
            query,
            AttendanceRecord,
            {
                "user_id": user_id,
                "status": status.value if status else None,
                "date__from": from_date,
                "date__to": to_date,
            },
        )
        return await paginate(
            db, query, pagination, model=AttendanceRecord, schema=AttendanceResponse,
        )

    @staticmethod
    async def create_manual(
        db: AsyncSession,
        data: ManualAttendanceCreate,
        actor_id: uuid.UUID,
    ) -> AttendanceRecord:
        await UserService.get_user(db, data.user_id)
        if await AttendanceService._find_record(db, data.user_id, data.date) is not None:
            raise ConflictError("date", data.date.isoformat())
        AttendanceService._ensure_ordered(data.check_in, data.check_out)

        record = AttendanceRecord(
            user_id=data.user_id,
            date=data.date,
            check_in=data.check_in,
            check_out=data.check_out,
            notes=data.notes,
            is_manual_entry=True,
            approved_by=actor_id,
            approved_at=now_utc(),
        )
        AttendanceService.apply_times(record, await AttendanceService.resolve_shift(db, record.date))
        record.status = (
            data.status.value if data.status else AttendanceService._status_from_times(record)
        )
        db.add(record)
        await db.flush()
        await db.refresh(record, attribute_names=["user"])

        await create_audit_entry(
            db,
            action="create",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        return record

    @staticmethod
    async def update_manual(
        db: AsyncSession,
        record_id: uuid.UUID,
        data: ManualAttendanceUpdate,
        actor_id: uuid.UUID,
    ) -> AttendanceRecord:
        record = await AttendanceService.get_record(db, record_id)
        changes = data.model_dump(exclude_unset=True)
        old_values = {k: getattr(record, k) for k in changes}

        if "check_in" in changes:
            record.check_in = changes["check_in"]
        if "check_out" in changes:
            record.check_out = changes["check_out"]
        if "notes" in changes:
            record.notes = changes["notes"]
        AttendanceService._ensure_ordered(record.check_in, record.check_out)

        AttendanceService.apply_times(record, await AttendanceService.resolve_shift(db, record.date))
        if changes.get("status") is not None:
            record.status = changes["status"].value
        elif "check_in" in changes:
            record.status = AttendanceService._status_from_times(record)
        record.is_manual_entry = True
        record.approved_by = actor_id
        record.approved_at = now_utc()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return record

    @staticmethod
    async def delete_record(
        db: AsyncSession,
        record_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        record = await AttendanceService.get_record(db, record_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values={"user_id": str(record.user_id), "date": record.date.isoformat()},
        )
        await db.delete(record)
        await db.flush()

    @staticmethod
    async def mark_absent(
        db: AsyncSession,
        day: date,
        actor_id: uuid.UUID,
    ) -> MarkAbsentResult:
        """Create an absent record for every tracked user without one on *day*.

        Holidays and days off in the working week are skipped entirely; users
        on approved leave get ``on_leave``.
        """
        if await HolidayService.find_on(db, day) is not None:
            return MarkAbsentResult(date=day, marked=0, skipped_holiday=True)
        if not await WorkingDayService.is_working_day(db, day):
            logger.info("%s is not a working day; nobody marked absent", day)
            return MarkAbsentResult(date=day, marked=0, skipped_non_working_day=True)

        users = await AttendanceService._tracked_users(db)
        existing = set(
            (
                await db.execute(
                    select(AttendanceRecord.user_id).where(AttendanceRecord.date == day)
                )
            ).scalars().all()
        )
        marked = 0
        for user in users:
            if user.id in existing:
                continue
            leave = await AttendanceService.check_leave(db, user.id, day)
            db.add(
                AttendanceRecord(
                    user_id=user.id,
                    date=day,
                    status=(
                        AttendanceStatus.on_leave.value
                        if leave.on_leave
                        else AttendanceStatus.absent.value
                    ),
                    is_manual_entry=True,
                    approved_by=actor_id,
                    approved_at=now_utc(),
                )
            )
            if not leave.on_leave:
                marked += 1
        await db.flush()
        logger.info("Marked %d user(s) absent for %s", marked, day)
        return MarkAbsentResult(date=day, marked=marked)

    # ── Admin: summaries and reports ────────────────────────────────

    @staticmethod
    async def generate_summaries(
        db: AsyncSession,
        year: int,
        month: int,
    ) -> SummaryGenerateResult:
        """Upsert one stored summary per tracked user for the month."""
        rows = await AttendanceService.team_summary(db, None, year, month)
        existing = {
            s.user_id: s
            for s in (
                await db.execute(
                    select(AttendanceSummary).where(
                        AttendanceSummary.month == month,
                        AttendanceSummary.year == year,
                    )
                )
            ).scalars().all()
        }
        for row in rows:
            summary = existing.get(row.user_id)
            if summary is None:
                summary = AttendanceSummary(user_id=row.user_id, month=month, year=year)
                db.add(summary)
            for field in _SUMMARY_FIELDS:
                setattr(summary, field, getattr(row, field))
            summary.generated_at = now_utc()
        await db.flush()
        logger.info("Generated %d attendance summaries for %02d/%d", len(rows), month, year)
        return SummaryGenerateResult(month=month, year=year, generated=len(rows))

    @staticmethod
    async def monthly_report(
        db: AsyncSession,
        year: int,
        month: int,
        department_id: Optional[uuid.UUID] = None,
    ) -> MonthlyReportResponse:
        rows = await AttendanceService.team_summary(db, department_id, year, month)
        totals = AttendanceSummaryResponse(
            user_id=uuid.UUID(int=0),
            employee_name="All employees",
            month=month,
            year=year,
        )
        for row in rows:
            for field in _SUMMARY_FIELDS:
                setattr(totals, field, getattr(totals, field) + getattr(row, field))
        return MonthlyReportResponse(
            month=month, year=year, employees=len(rows), totals=totals, rows=rows,
        )

    @staticmethod
    async def check_leave(
        db: AsyncSession,
        user_id: uuid.UUID,
        day: date,
    ) -> LeaveCheckResponse:
        """Whether an approved application covers *day* for the user."""
        result = await db.execute(
            select(Application).where(
                Application.user_id == user_id,
                Application.status == ApprovalStatus.approved.value,
                Application.start_date <= day,
                Application.end_date >= day,
            )
        )
        application = result.scalars().first()
        return LeaveCheckResponse(
            user_id=user_id,
            date=day,
            on_leave=application is not None,
            application_id=application.id if application else None,
            application_title=application.title if application else None,
        )

    # ── Admin: work shifts ──────────────────────────────────────────

    @staticmethod
    async def list_shifts(db: AsyncSession) -> list[WorkShift]:
        result = await db.execute(select(WorkShift).order_by(WorkShift.name.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_shift(db: AsyncSession, shift_id: uuid.UUID) -> WorkShift:
        result = await db.execute(select(WorkShift).where(WorkShift.id == shift_id))
        shift = result.scalars().first()
        if shift is None:
            raise NotFoundException("WorkShift", shift_id)
        return shift

    @staticmethod
    async def _clear_default(db: AsyncSession, keep_id: Optional[uuid.UUID] = None) -> None:
        for shift in await AttendanceService.list_shifts(db):
            if shift.is_default and shift.id != keep_id:
                shift.is_default = False

    @staticmethod
    async def _ensure_unique_shift_name(
        db: AsyncSession,
        name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(WorkShift.id).where(WorkShift.name == name)
        if exclude_id is not None:
            query = query.where(WorkShift.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def create_shift(
        db: AsyncSession,
        data: WorkShiftCreate,
        actor_id: uuid.UUID,
    ) -> WorkShift:
        if data.end_time <= data.start_time:
            raise ValidationException({"end_time": ["Shift must end after it starts."]})
        await AttendanceService._ensure_unique_shift_name(db, data.name)
        if data.is_default:
            await AttendanceService._clear_default(db)
        shift = WorkShift(**data.model_dump())
        db.add(shift)
        await db.flush()
        await create_audit_entry(
            db,
            action="create",
            entity_type="work_shift",
            entity_id=shift.id,
            actor_id=actor_id,
            new_values=jsonable(data.model_dump()),
        )
        return shift

    @staticmethod
    async def update_shift(
        db: AsyncSession,
        shift_id: uuid.UUID,
        data: WorkShiftUpdate,
        actor_id: uuid.UUID,
    ) -> WorkShift:
        shift = await AttendanceService.get_shift(db, shift_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"] != shift.name:
            await AttendanceService._ensure_unique_shift_name(db, changes["name"], shift.id)
        start = changes.get("start_time", shift.start_time)
        end = changes.get("end_time", shift.end_time)
        if end <= start:
            raise ValidationException({"end_time": ["Shift must end after it starts."]})
        if changes.get("is_default"):
            await AttendanceService._clear_default(db, keep_id=shift.id)

        old_values = {k: getattr(shift, k) for k in changes}
        for field, value in changes.items():
            setattr(shift, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="update",
            entity_type="work_shift",
            entity_id=shift.id,
            actor_id=actor_id,
            old_values=jsonable(old_values),
            new_values=jsonable(changes),
        )
        return shift

    @staticmethod
    async def delete_shift(
        db: AsyncSession,
        shift_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        shift = await AttendanceService.get_shift(db, shift_id)
        await create_audit_entry(
            db,
            action="delete",
            entity_type="work_shift",
            entity_id=shift.id,
            actor_id=actor_id,
            old_values={"name": shift.name},
        )
        await db.delete(shift)
        await db.flush()
