"""
Notification dispatcher: fans one message out to many recipients.

Each recipient's row is its own short write, so one failing insert does
not undo the others. The first failure is still reported to the caller.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select

from officehr.core.config import settings
from officehr.core.exceptions import InternalError, ValidationError
from officehr.db.session import Database
from officehr.models.notification import Notification
from officehr.models.user import ROLE_EMPLOYEE, STATUS_ACTIVE, User
from officehr.services.audit import AuditRecorder

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "info"


class NotificationDispatcher:
    def __init__(
        self,
        database: Database,
        audit: AuditRecorder,
        concurrency: int | None = None,
    ) -> None:
        self._database = database
        self._audit = audit
        self._concurrency = max(1, concurrency or settings.NOTIFICATION_CONCURRENCY)

    async def send(
        self,
        *,
        title: str | None,
        message: str | None,
        category: str | None = None,
        recipients: list[int] | None = None,
        send_to_all: bool = False,
        actor_id: int | None = None,
        origin: dict[str, str | None] | None = None,
    ) -> int:
        title = (title or "").strip()
        message = (message or "").strip()
        if not title or not message:
            raise ValidationError("Title and Message are required.")

        if send_to_all:
            targets = await self._active_employee_ids()
        else:
            targets = list(dict.fromkeys(recipients or []))
            await self._check_known(targets)
        if not targets:
            raise ValidationError("No users selected.")

        category = (category or "").strip() or DEFAULT_CATEGORY
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _deliver(user_id: int) -> None:
            async with semaphore:
                async with self._database.session() as db:
                    db.add(
                        Notification(
                            user_id=user_id,
                            title=title,
                            message=message,
                            type=category,
                        )
                    )
                    try:
                        await db.commit()
                    except Exception:
                        await db.rollback()
                        raise

        results = await asyncio.gather(
            *(_deliver(user_id) for user_id in targets),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, Exception)]
        if failures:
            logger.error(
                "Failed to deliver %d of %d notifications: %s",
                len(failures),
                len(targets),
                failures[0],
            )
            raise InternalError("Failed to send notifications.") from failures[0]

        logger.info("Sent notification '%s' to %d users", title, len(targets))
        await self._audit.record(
            actor_id,
            "NOTIFICATION_SENT",
            "notifications",
            None,
            {
                "title": title,
                "type": category,
                "recipients_count": len(targets),
                "send_to_all": send_to_all,
            },
            origin,
        )
        return len(targets)

    async def _active_employee_ids(self) -> list[int]:
        async with self._database.session() as db:
            result = await db.execute(
                select(User.id)
                .where(User.role == ROLE_EMPLOYEE, User.status == STATUS_ACTIVE)
                .order_by(User.id)
            )
            return list(result.scalars().all())

    async def _check_known(self, user_ids: list[int]) -> None:
        if not user_ids:
            return
        async with self._database.session() as db:
            result = await db.execute(select(User.id).where(User.id.in_(user_ids)))
            known = set(result.scalars().all())
        unknown = [user_id for user_id in user_ids if user_id not in known]
        if unknown:
            raise ValidationError(
                f"Unknown user ids: {', '.join(str(user_id) for user_id in unknown)}"
            )
