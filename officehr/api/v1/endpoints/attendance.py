"""
Attendance endpoints: employee clock-in / clock-out / history and the
admin daily sheet.

Rows are keyed by (user, date). Leave approval and the scheduler write
the same rows; a clock-in takes over a row that has no check-in yet.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import (Identity, get_db, require_admin,
                                  require_employee)
from officehr.core.clock import local_now
from officehr.core.config import settings
from officehr.core.exceptions import ConflictError, NotFoundError
from officehr.models.attendance import Attendance, AttendanceStatus
from officehr.models.holiday import Holiday
from officehr.models.user import ADMIN_ROLES, STATUS_ACTIVE, User
from officehr.schemas.attendance import (AttendanceHistoryResponse,
                                         AttendanceRead, AttendanceStats,
                                         ClockResponse,
                                         DailyAttendanceItem,
                                         DailyAttendanceResponse,
                                         HolidayStatus)
from officehr.services.scheduler import hours_between

employee_router = APIRouter(prefix="/employee/attendance", tags=["attendance"])
admin_router = APIRouter(prefix="/admin/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def _now() -> datetime:
    return local_now()


async def _today_row(db: AsyncSession, user_id: int, today: date) -> Attendance | None:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.user_id == user_id, Attendance.date == today)
        .with_for_update()
    )
    return result.scalar_one_or_none()


# ── Employee ────────────────────────────────────────────────────────
@employee_router.post("/clock-in", response_model=ClockResponse)
async def clock_in(
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> ClockResponse:
    now = _now()
    today, check_in = now.date(), now.time()

    record = await _today_row(db, identity.subject_id, today)
    if record is not None and record.check_in_time is not None:
        raise ConflictError("Already clocked in today")

    if record is None:
        record = Attendance(user_id=identity.subject_id, date=today)
        db.add(record)
    record.status = AttendanceStatus.PRESENT.value
    record.check_in_time = check_in
    record.remarks = None

    try:
        await db.commit()
    except IntegrityError as exc:
        # A concurrent request created today's row first.
        await db.rollback()
        raise ConflictError("Already clocked in today") from exc
    await db.refresh(record)

    logger.info("User %d clocked in at %s", identity.subject_id, check_in)
    return ClockResponse(
        message="Clocked in successfully",
        attendance=AttendanceRead.model_validate(record),
    )


@employee_router.post("/clock-out", response_model=ClockResponse)
async def clock_out(
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> ClockResponse:
    """Close today's record; under the half-day threshold it is marked Half Day."""
    now = _now()
    record = await _today_row(db, identity.subject_id, now.date())
    if record is None or record.check_in_time is None:
        raise NotFoundError("No clock-in record found for today")
    if record.check_out_time is not None:
        raise ConflictError("Already clocked out today")

    check_out = now.time()
    record.check_out_time = check_out
    record.work_hours = hours_between(record.check_in_time, check_out)
    record.status = (
        AttendanceStatus.HALF_DAY.value
        if record.work_hours < settings.HALF_DAY_THRESHOLD_HOURS
        else AttendanceStatus.PRESENT.value
    )
    await db.commit()
    await db.refresh(record)

    logger.info(
        "User %d clocked out at %s (%.2fh, %s)",
        identity.subject_id, check_out, record.work_hours, record.status,
    )
    return ClockResponse(
        message="Clocked out successfully",
        attendance=AttendanceRead.model_validate(record),
    )


@employee_router.get("/history", response_model=AttendanceHistoryResponse)
async def attendance_history(
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> AttendanceHistoryResponse:
    rows = await db.execute(
        select(Attendance)
        .where(Attendance.user_id == identity.subject_id)
        .order_by(Attendance.date.desc())
        .limit(HISTORY_LIMIT)
    )
    history = rows.scalars().all()

    today = _now().date()
    month_start = today.replace(day=1)
    counts_result = await db.execute(
        select(Attendance.status, func.count(Attendance.id))
        .where(
            Attendance.user_id == identity.subject_id,
            Attendance.date >= month_start,
            Attendance.date <= today,
        )
        .group_by(Attendance.status)
    )
    counts = {status: int(n) for status, n in counts_result.all()}

    stats = AttendanceStats(
        total_days=sum(counts.values()),
        present_days=counts.get(AttendanceStatus.PRESENT.value, 0)
        + counts.get(AttendanceStatus.HALF_DAY.value, 0),
        leave_days=counts.get(AttendanceStatus.ON_LEAVE.value, 0),
        absent_days=counts.get(AttendanceStatus.ABSENT.value, 0),
    )
    return AttendanceHistoryResponse(
        history=[AttendanceRead.model_validate(r) for r in history],
        stats=stats,
    )


# ── Admin ───────────────────────────────────────────────────────────
@admin_router.get("/daily", response_model=DailyAttendanceResponse)
async def daily_attendance(
    day: date | None = Query(None, alias="date"),
    _admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DailyAttendanceResponse:
    """Every active non-admin user with their row for *day*; no row reads as Absent."""
    day = day or _now().date()

    result = await db.execute(
        select(User, Attendance)
        .outerjoin(
            Attendance,
            and_(Attendance.user_id == User.id, Attendance.date == day),
        )
        .where(User.status == STATUS_ACTIVE, User.role.not_in(ADMIN_ROLES))
        .order_by(User.name)
    )
    items = [
        DailyAttendanceItem(
            user_id=user.id,
            name=user.name,
            designation=user.designation,
            attendance_id=record.id if record else None,
            status=record.status if record else AttendanceStatus.ABSENT.value,
            check_in_time=record.check_in_time if record else None,
            check_out_time=record.check_out_time if record else None,
            work_hours=record.work_hours if record else None,
        )
        for user, record in result.all()
    ]

    holiday = await db.execute(select(Holiday.name).where(Holiday.date == day).limit(1))
    holiday_name = holiday.scalar_one_or_none()
    return DailyAttendanceResponse(
        date=day,
        attendance=items,
        holiday_status=HolidayStatus(
            is_holiday=holiday_name is not None,
            name=holiday_name,
            is_rest_day=day.weekday() == settings.REST_WEEKDAY,
        ),
    )
