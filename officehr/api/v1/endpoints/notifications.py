"""
Notification endpoints: admin broadcast and the employee inbox.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import (Identity, get_db,
                                  get_notification_dispatcher, require_admin,
                                  require_employee)
from officehr.core.exceptions import NotFoundError
from officehr.models.notification import Notification
from officehr.schemas.common import DeleteResponse, MessageResponse
from officehr.schemas.notification import (NotificationList,
                                           NotificationRead,
                                           NotificationSend,
                                           NotificationSendResponse)
from officehr.services.audit import request_origin
from officehr.services.notifications import NotificationDispatcher

admin_router = APIRouter(prefix="/admin/notifications", tags=["notifications"])
employee_router = APIRouter(prefix="/employee/notifications", tags=["notifications"])


@admin_router.post("/send", response_model=NotificationSendResponse)
async def send_notification(
    body: NotificationSend,
    request: Request,
    admin: Identity = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationSendResponse:
    count = await dispatcher.send(
        title=body.title,
        message=body.message,
        category=body.type,
        recipients=body.user_ids,
        send_to_all=body.send_to_all,
        actor_id=admin.subject_id,
        origin=request_origin(request),
    )
    return NotificationSendResponse(message="Notification sent successfully", count=count)


# ── Inbox ───────────────────────────────────────────────────────────
async def _owned(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


@employee_router.get("/all", response_model=NotificationList)
async def my_notifications(
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> NotificationList:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == identity.subject_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return NotificationList(
        notifications=[NotificationRead.model_validate(n) for n in result.scalars().all()]
    )


# Declared before /mark-read/{notification_id} so "all" is not parsed as an id.
@employee_router.patch("/mark-read/all", response_model=MessageResponse)
async def mark_all_read(
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await db.execute(
        update(Notification)
        .where(Notification.user_id == identity.subject_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return MessageResponse(message="All notifications marked as read")


@employee_router.patch("/mark-read/{notification_id}", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> Notification:
    notification = await _owned(db, notification_id, identity.subject_id)
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


@employee_router.delete("/delete/{notification_id}", response_model=DeleteResponse)
async def delete_notification(
    notification_id: int,
    identity: Identity = Depends(require_employee),
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    notification = await _owned(db, notification_id, identity.subject_id)
    await db.delete(notification)
    await db.commit()
    return DeleteResponse(success=True, message="Notification deleted")
