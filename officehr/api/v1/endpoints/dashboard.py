"""
Admin dashboard: head-count, attendance rate and the actionable lists.

Only active ``employee`` accounts count as staff. Attendance is the share
of staff with a Present or Half Day row for the office-local day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import Identity, get_db, require_admin
from officehr.core.clock import local_today
from officehr.models.attendance import Attendance, AttendanceStatus
from officehr.models.holiday import Holiday
from officehr.models.leave import Leave, LeaveStatus
from officehr.models.user import ROLE_EMPLOYEE, STATUS_ACTIVE, User
from officehr.schemas.dashboard import DashboardStats, PendingLeaveItem
from officehr.schemas.holiday import HolidayRead

router = APIRouter(prefix="/admin/dashboard", tags=["dashboard"])

GROWTH_WINDOW_DAYS = 30
PENDING_LEAVES_LIMIT = 5
UPCOMING_HOLIDAYS_LIMIT = 4
PRESENT_STATUSES = (AttendanceStatus.PRESENT.value, AttendanceStatus.HALF_DAY.value)


async def _present_on(db: AsyncSession, day: date) -> int:
    result = await db.execute(
        select(func.count(Attendance.id))
        .join(User, Attendance.user_id == User.id)
        .where(
            Attendance.date == day,
            Attendance.status.in_(PRESENT_STATUSES),
            User.role == ROLE_EMPLOYEE,
            User.status == STATUS_ACTIVE,
        )
    )
    return int(result.scalar_one())


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    _admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DashboardStats:
    today = local_today()
    staff = (User.role == ROLE_EMPLOYEE, User.status == STATUS_ACTIVE)

    total = int((await db.execute(select(func.count(User.id)).where(*staff))).scalar_one())
    cutoff = datetime.now(timezone.utc) - timedelta(days=GROWTH_WINDOW_DAYS)
    new = int(
        (
            await db.execute(
                select(func.count(User.id)).where(*staff, User.created_at >= cutoff)
            )
        ).scalar_one()
    )
    growth = new / (total - new or 1) * 100 if total else 0.0

    present_today = _percent(await _present_on(db, today), total)
    present_yesterday = _percent(await _present_on(db, today - timedelta(days=1)), total)

    pending = await db.execute(
        select(Leave, User.name, User.designation)
        .join(User, Leave.user_id == User.id)
        .where(Leave.status == LeaveStatus.PENDING.value)
        .order_by(Leave.created_at.desc(), Leave.id.desc())
        .limit(PENDING_LEAVES_LIMIT)
    )
    holidays = await db.execute(
        select(Holiday)
        .where(Holiday.date >= today)
        .order_by(Holiday.date)
        .limit(UPCOMING_HOLIDAYS_LIMIT)
    )

    return DashboardStats(
        total_employees=total,
        new_employees=new,
        employee_growth=f"{'+' if new > 0 else ''}{growth:.1f}%",
        attendance_percentage=present_today,
        attendance_change=present_today - present_yesterday,
        pending_leaves=[
            PendingLeaveItem(
                id=leave.id,
                name=name,
                designation=designation,
                type=leave.type,
                start_date=leave.start_date,
                end_date=leave.end_date,
                reason=leave.reason,
            )
            for leave, name, designation in pending.all()
        ],
        upcoming_holidays=[HolidayRead.model_validate(h) for h in holidays.scalars().all()],
    )
