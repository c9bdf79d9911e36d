"""Pure attendance arithmetic — no database, no clock.

All minute counts are whole minutes, truncated toward zero
(``floor(delta_seconds / 60)`` for non-negative deltas). Naive datetimes
are interpreted as UTC so stored values and fresh timestamps compare safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo


@dataclass(frozen=True)
class ArrivalResult:
    is_late: bool
    late_minutes: int


@dataclass(frozen=True)
class DepartureResult:
    working_minutes: int
    is_early_departure: bool
    early_departure_minutes: int
    overtime_minutes: int


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes from *start* to *end*; 0 when *end* is not after *start*."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def scheduled_at(day: date, at: time, tz: tzinfo) -> datetime:
    """The instant a shift boundary occurs on *day* in the office timezone."""
    return datetime.combine(day, at, tzinfo=tz)


def compute_arrival(check_in: datetime, scheduled_start: datetime) -> ArrivalResult:
    """Late when the check-in is strictly after the scheduled start."""
    is_late = as_utc(check_in) > as_utc(scheduled_start)
    return ArrivalResult(
        is_late=is_late,
        late_minutes=whole_minutes(scheduled_start, check_in) if is_late else 0,
    )


def compute_departure(
    check_in: datetime,
    check_out: datetime,
    scheduled_end: datetime,
) -> DepartureResult:
    is_early = as_utc(check_out) < as_utc(scheduled_end)
    return DepartureResult(
        working_minutes=whole_minutes(check_in, check_out),
        is_early_departure=is_early,
        early_departure_minutes=whole_minutes(check_out, scheduled_end) if is_early else 0,
        overtime_minutes=whole_minutes(scheduled_end, check_out),
    )


def effective_late_minutes(late_minutes: int, grace_minutes: int) -> int:
    """Late minutes that count toward payroll deductions."""
    return max(0, late_minutes - grace_minutes)


def parse_hhmm(value: str) -> time:
    """Parse ``"08:00"`` style settings into a ``time``."""
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes or 0))

