"""
Holiday calendar CRUD.

- GET requires any authenticated user.
- POST / PUT / DELETE require an admin.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import (Identity, get_audit_recorder, get_db,
                                  get_identity, require_admin)
from officehr.core.exceptions import ConflictError, NotFoundError
from officehr.models.holiday import Holiday
from officehr.schemas.common import DeleteResponse
from officehr.schemas.holiday import HolidayRead, HolidayWrite
from officehr.services.audit import AuditRecorder, request_origin

router = APIRouter(prefix="/admin/holidays", tags=["holidays"])
logger = logging.getLogger(__name__)

DUPLICATE_DETAIL = "A holiday already exists on this date"


async def _get_or_404(db: AsyncSession, holiday_id: int) -> Holiday:
    holiday = await db.get(Holiday, holiday_id)
    if holiday is None:
        raise NotFoundError("Holiday not found")
    return holiday


@router.get("", response_model=list[HolidayRead])
async def list_holidays(
    db: AsyncSession = Depends(get_db),
    _user: Identity = Depends(get_identity),
) -> list[Holiday]:
    result = await db.execute(select(Holiday).order_by(Holiday.date))
    return list(result.scalars().all())


@router.post("", response_model=HolidayRead, status_code=201)
async def add_holiday(
    body: HolidayWrite,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> Holiday:
    holiday = Holiday(
        name=body.name,
        date=body.date,
        day=body.date.strftime("%A"),
        type=body.type,
    )
    db.add(holiday)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(DUPLICATE_DETAIL) from exc
    await db.refresh(holiday)

    logger.info("Holiday %s added for %s", holiday.name, holiday.date)
    await audit.record(
        admin.subject_id,
        "HOLIDAY_ADDED",
        "holidays",
        holiday.id,
        {"name": holiday.name, "date": holiday.date.isoformat(), "type": holiday.type},
        request_origin(request),
    )
    return holiday


@router.put("/{holiday_id}", response_model=HolidayRead)
async def update_holiday(
    holiday_id: int,
    body: HolidayWrite,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> Holiday:
    holiday = await _get_or_404(db, holiday_id)
    holiday.name = body.name
    holiday.date = body.date
    holiday.day = body.date.strftime("%A")
    holiday.type = body.type
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(DUPLICATE_DETAIL) from exc
    await db.refresh(holiday)

    await audit.record(
        admin.subject_id,
        "HOLIDAY_UPDATED",
        "holidays",
        holiday.id,
        {"name": holiday.name, "date": holiday.date.isoformat(), "type": holiday.type},
        request_origin(request),
    )
    return holiday


@router.delete("/{holiday_id}", response_model=DeleteResponse)
async def remove_holiday(
    holiday_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> DeleteResponse:
    holiday = await _get_or_404(db, holiday_id)
    details = {"name": holiday.name, "date": holiday.date.isoformat()}
    await db.delete(holiday)
    await db.commit()

    logger.info("Holiday %d removed", holiday_id)
    await audit.record(
        admin.subject_id,
        "HOLIDAY_REMOVED",
        "holidays",
        holiday_id,
        details,
        request_origin(request),
    )
    return DeleteResponse(success=True, message="Holiday removed")
