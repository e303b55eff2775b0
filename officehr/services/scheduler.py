"""
Attendance reconciliation jobs and their cron registration.

Three independent jobs run on the application's event loop:

- ``auto_clock_out``     23:30 daily, closes check-ins left open.
- ``auto_mark_absent``   00:00 daily, marks everyone without a record Absent
                         (skipped on the rest day and on holidays).
- ``purge_audit_logs``   hourly, drops audit entries past the retention window.

Triggers fire in ``SCHEDULER_TIMEZONE`` and each job takes "today" from the
same office-local clock (``officehr.core.clock``).

Every job is idempotent for a given day and runs behind its own error
boundary: a failure is logged and the next trigger fires as usual.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import delete, select, update

from officehr.core.clock import local_today
from officehr.core.config import settings
from officehr.db.session import Database, dialect_insert
from officehr.models.attendance import Attendance, AttendanceStatus
from officehr.models.audit_log import AuditLog
from officehr.models.holiday import Holiday
from officehr.models.user import ADMIN_ROLES, STATUS_ACTIVE, User

logger = logging.getLogger(__name__)


def hours_between(start: time, end: time) -> float:
    """Hours from *start* to *end* on the same day, rounded to 2 places."""
    seconds = (
        (end.hour * 3600 + end.minute * 60 + end.second)
        - (start.hour * 3600 + start.minute * 60 + start.second)
    )
    return round(max(0, seconds) / 3600, 2)


class AttendanceReconciler:
    def __init__(self, database: Database) -> None:
        self._database = database

    # ── Jobs ────────────────────────────────────────────────────────
    async def auto_clock_out(self, today: date | None = None) -> int:
        today = today or local_today()
        end_of_day = settings.AUTO_CLOCK_OUT_TIME
        remark = settings.AUTO_CLOCK_OUT_REMARK

        async with self._database.transaction() as db:
            result = await db.execute(
                select(Attendance)
                .join(User, Attendance.user_id == User.id)
                .where(
                    Attendance.date == today,
                    Attendance.check_in_time.is_not(None),
                    Attendance.check_out_time.is_(None),
                    User.role.not_in(ADMIN_ROLES),
                )
                .with_for_update(of=Attendance)
            )
            records = list(result.scalars().all())

            for record in records:
                record.check_out_time = end_of_day
                record.work_hours = hours_between(record.check_in_time, end_of_day)
                record.remarks = f"{record.remarks} | {remark}" if record.remarks else remark

            user_ids = {record.user_id for record in records}
            if user_ids:
                await db.execute(
                    update(User)
                    .where(User.id.in_(sorted(user_ids)))
                    .values(current_session_id=None)
                )

        logger.info("Auto clock-out completed for %s: %d users clocked out", today, len(records))
        return len(records)

    async def auto_mark_absent(self, today: date | None = None) -> int:
        today = today or local_today()
        if today.weekday() == settings.REST_WEEKDAY:
            logger.info("Skipping auto-absent for %s: rest day", today)
            return 0

        async with self._database.transaction() as db:
            holiday = await db.execute(select(Holiday.name).where(Holiday.date == today).limit(1))
            holiday_name = holiday.scalar_one_or_none()
            if holiday_name is not None:
                logger.info("Skipping auto-absent for %s: holiday (%s)", today, holiday_name)
                return 0

            user_ids = (
                await db.execute(
                    select(User.id).where(
                        User.status == STATUS_ACTIVE,
                        User.role.not_in(ADMIN_ROLES),
                    )
                )
            ).scalars().all()
            if not user_ids:
                return 0

            stmt = dialect_insert(db, Attendance).values(
                [
                    {
                        "user_id": user_id,
                        "date": today,
                        "status": AttendanceStatus.ABSENT.value,
                        "remarks": settings.AUTO_ABSENT_REMARK,
                    }
                    for user_id in user_ids
                ]
            )
            result = await db.execute(
                stmt.on_conflict_do_nothing(index_elements=["user_id", "date"])
            )
            inserted = max(result.rowcount or 0, 0)

        logger.info("Auto-absent completed for %s: %d rows inserted", today, inserted)
        return inserted

    async def purge_audit_logs(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=settings.AUDIT_RETENTION_HOURS)

        async with self._database.transaction() as db:
            result = await db.execute(
                delete(AuditLog)
                .where(AuditLog.created_at < cutoff)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount or 0

        logger.info("Audit log cleanup completed: %d rows deleted", deleted)
        return deleted

    # ── Scheduled entry points ──────────────────────────────────────
    async def run_auto_clock_out(self) -> None:
        await self._guarded("auto clock-out", self.auto_clock_out)

    async def run_auto_mark_absent(self) -> None:
        await self._guarded("auto-absent", self.auto_mark_absent)

    async def run_audit_retention(self) -> None:
        await self._guarded("audit log cleanup", self.purge_audit_logs)

    @staticmethod
    async def _guarded(name: str, job: Callable[[], Awaitable[int]]) -> None:
        logger.info("Running %s job", name)
        try:
            await job()
        except Exception:
            logger.exception("Error running %s job", name)


def build_scheduler(reconciler: AttendanceReconciler) -> AsyncIOScheduler:
    """Register the reconciliation jobs; the caller starts and stops it."""
    tz = settings.SCHEDULER_TIMEZONE
    end_of_day = settings.AUTO_CLOCK_OUT_TIME
    scheduler = AsyncIOScheduler(timezone=tz)
    job_defaults = {"coalesce": True, "max_instances": 1, "replace_existing": True}

    scheduler.add_job(
        reconciler.run_auto_clock_out,
        CronTrigger(hour=end_of_day.hour, minute=end_of_day.minute, timezone=tz),
        id="auto_clock_out",
        **job_defaults,
    )
    scheduler.add_job(
        reconciler.run_auto_mark_absent,
        CronTrigger(hour=0, minute=0, timezone=tz),
        id="auto_mark_absent",
        **job_defaults,
    )
    scheduler.add_job(
        reconciler.run_audit_retention,
        CronTrigger(minute=0, timezone=tz),
        id="audit_retention",
        **job_defaults,
    )
    return scheduler
