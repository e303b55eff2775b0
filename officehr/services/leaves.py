"""
Leave workflow.

A request is created Pending by its employee and decided once by an
admin. Approval writes an "On Leave" attendance row for every day of the
range; rejection clears the range again. Status change and attendance
fan-out share one transaction, so callers never observe one without the
other.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.core.config import settings
from officehr.core.exceptions import (AppError, ConflictError, InternalError,
                                      NotFoundError, ValidationError)
from officehr.db.session import Database, dialect_insert
from officehr.models.attendance import Attendance, AttendanceStatus
from officehr.models.leave import (LEAVE_CATEGORIES, LEAVE_LABELS, Leave,
                                   LeaveStatus, LeaveType, category_key)
from officehr.models.user import User
from officehr.services.audit import AuditRecorder

logger = logging.getLogger(__name__)


def resolve_category(category: str) -> LeaveType:
    """Map user input onto the stored leave type, case-insensitively."""
    leave_type = LEAVE_CATEGORIES.get(category.strip().lower())
    if leave_type is None:
        raise ValidationError(
            f"Invalid leave type. Expected one of: {', '.join(LEAVE_CATEGORIES)}"
        )
    return leave_type


def _as_date(value: date | str, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}, expected YYYY-MM-DD") from exc


def leave_dates(start: date, end: date) -> list[date]:
    """Every calendar day from *start* to *end*, inclusive."""
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


class LeaveWorkflow:
    def __init__(self, database: Database, audit: AuditRecorder) -> None:
        self._database = database
        self._audit = audit

    # ── Submit ──────────────────────────────────────────────────────
    async def submit(
        self,
        requester_id: int,
        category: str | None,
        start_date: date | str | None,
        end_date: date | str | None,
        reason: str | None,
    ) -> Leave:
        if not category or not start_date or not end_date or not (reason or "").strip():
            raise ValidationError("All fields are required.")

        leave_type = resolve_category(category)
        start = _as_date(start_date, "start_date")
        end = _as_date(end_date, "end_date")
        if start > end:
            raise ValidationError("Start date must not be after end date.")

        leave = Leave(
            user_id=requester_id,
            type=leave_type.value,
            start_date=start,
            end_date=end,
            days=(end - start).days + 1,
            reason=reason.strip(),  # type: ignore[union-attr]
            status=LeaveStatus.PENDING.value,
        )
        async with self._database.session() as db:
            db.add(leave)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise ConflictError("Leave request already exists for these dates.") from exc
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Error applying for leave (user %s): %s", requester_id, exc)
                raise InternalError("Failed to apply for leave.") from exc
            await db.refresh(leave)

        logger.info(
            "Leave %d submitted by user %d (%s, %s..%s)",
            leave.id, requester_id, leave.type, start, end,
        )
        return leave

    # ── Approve / Reject ────────────────────────────────────────────
    async def approve(
        self,
        leave_id: int,
        approver_id: int | None,
        origin: dict[str, str | None] | None = None,
    ) -> Leave:
        async with self._database.session() as db:
            try:
                leave = await self._lock_for_decision(db, leave_id, (LeaveStatus.PENDING,))
                leave.status = LeaveStatus.APPROVED.value
                await self._mark_on_leave(db, leave)
                await db.commit()
            except AppError:
                await db.rollback()
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Error approving leave %s: %s", leave_id, exc)
                raise InternalError("Failed to approve leave. Please try again later.") from exc

        logger.info("Leave %d approved by %s (%d days)", leave.id, approver_id, leave.days)
        await self._audit.record(
            approver_id,
            "LEAVE_APPROVED",
            "leaves",
            leave.id,
            {"user_id": leave.user_id, "status": leave.status},
            origin,
        )
        return leave

    async def reject(
        self,
        leave_id: int,
        approver_id: int | None = None,
        origin: dict[str, str | None] | None = None,
    ) -> Leave:
        # Approved requests can still be rejected to correct a decision.
        async with self._database.session() as db:
            try:
                leave = await self._lock_for_decision(
                    db, leave_id, (LeaveStatus.PENDING, LeaveStatus.APPROVED)
                )
                leave.status = LeaveStatus.REJECTED.value
                await db.execute(
                    delete(Attendance).where(
                        Attendance.user_id == leave.user_id,
                        Attendance.date >= leave.start_date,
                        Attendance.date <= leave.end_date,
                    )
                )
                await db.commit()
            except AppError:
                await db.rollback()
                raise
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Error rejecting leave %s: %s", leave_id, exc)
                raise InternalError("Failed to reject leave. Please try again later.") from exc

        logger.info("Leave %d rejected by %s", leave.id, approver_id)
        await self._audit.record(
            approver_id,
            "LEAVE_REJECTED",
            "leaves",
            leave.id,
            {"user_id": leave.user_id, "status": leave.status},
            origin,
        )
        return leave

    async def _lock_for_decision(
        self,
        db: AsyncSession,
        leave_id: int,
        allowed: tuple[LeaveStatus, ...],
    ) -> Leave:
        result = await db.execute(
            select(Leave)
            .join(User, Leave.user_id == User.id)
            .where(
                Leave.id == leave_id,
                Leave.status.in_([status.value for status in allowed]),
            )
            .with_for_update(of=Leave)
        )
        leave = result.scalar_one_or_none()
        if leave is None:
            raise NotFoundError("Leave request not found or already resolved.")
        return leave

    async def _mark_on_leave(self, db: AsyncSession, leave: Leave) -> None:
        """Upsert an On Leave row per day; check-in/out times are left untouched."""
        rows = [
            {
                "user_id": leave.user_id,
                "date": day,
                "status": AttendanceStatus.ON_LEAVE.value,
            }
            for day in leave_dates(leave.start_date, leave.end_date)
        ]
        stmt = dialect_insert(db, Attendance).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "date"],
            set_={"status": AttendanceStatus.ON_LEAVE.value},
        )
        await db.execute(stmt)

    # ── Queries ─────────────────────────────────────────────────────
    async def summary(self, subject_id: int, year: int) -> dict[str, dict[str, Any]]:
        """Per-category balance of approved leave days for one calendar year."""
        try:
            async with self._database.session() as db:
                result = await db.execute(
                    select(Leave.type, func.coalesce(func.sum(Leave.days), 0))
                    .where(
                        Leave.user_id == subject_id,
                        Leave.status == LeaveStatus.APPROVED.value,
                        Leave.start_date >= date(year, 1, 1),
                        Leave.start_date <= date(year, 12, 31),
                    )
                    .group_by(Leave.type)
                )
                rows = result.all()
        except SQLAlchemyError as exc:
            logger.error("Error fetching leave summary (user %s): %s", subject_id, exc)
            raise InternalError("Failed to fetch leave summary") from exc

        used = {category_key(leave_type): int(total) for leave_type, total in rows}
        return {
            key: {
                "label": LEAVE_LABELS.get(key, key.title()),
                "total": total,
                "used": used.get(key, 0),
                "available": total - used.get(key, 0),
            }
            for key, total in settings.LEAVE_ENTITLEMENTS.items()
        }

    async def list_requests(self, subject_id: int | None = None) -> list[dict[str, Any]]:
        """Requests newest first; all of them when *subject_id* is None."""
        stmt = (
            select(Leave, User.name)
            .join(User, Leave.user_id == User.id)
            .order_by(Leave.created_at.desc(), Leave.id.desc())
        )
        if subject_id is not None:
            stmt = stmt.where(Leave.user_id == subject_id)
        async with self._database.session() as db:
            result = await db.execute(stmt)
            rows = result.all()
        return [
            {
                "id": leave.id,
                "user_id": leave.user_id,
                "name": name,
                "type": leave.type,
                "start_date": leave.start_date,
                "end_date": leave.end_date,
                "days": leave.days,
                "reason": leave.reason,
                "status": leave.status,
                "created_at": leave.created_at,
            }
            for leave, name in rows
        ]
