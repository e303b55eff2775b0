"""
Employee administration (admin only).

- Listing and lookup only return active accounts.
- Deactivation is soft: the row stays, its status flips to Inactive and
  its current session is revoked.
- Only a super admin may grant or hold the admin / super_admin roles.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import (Identity, get_audit_recorder, get_db,
                                  require_admin)
from officehr.core.exceptions import ConflictError, Forbidden, NotFoundError
from officehr.core.security import get_password_hash
from officehr.models.user import (ADMIN_ROLES, ROLE_SUPER_ADMIN,
                                  STATUS_ACTIVE, STATUS_INACTIVE, User)
from officehr.schemas.common import DeleteResponse
from officehr.schemas.user import EmployeeCreate, EmployeeUpdate, UserRead
from officehr.services.audit import AuditRecorder, request_origin

router = APIRouter(prefix="/admin/employees", tags=["employees"])
logger = logging.getLogger(__name__)


def _check_role_grant(admin: Identity, role: str | None) -> None:
    if role in ADMIN_ROLES and admin.role != ROLE_SUPER_ADMIN:
        raise Forbidden("Only a super admin can assign admin roles")


async def _get_active_or_404(db: AsyncSession, employee_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == employee_id, User.status == STATUS_ACTIVE)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("Employee not found")
    return user


@router.get("", response_model=list[UserRead])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin),
) -> list[User]:
    result = await db.execute(
        select(User).where(User.status == STATUS_ACTIVE).order_by(User.name)
    )
    return list(result.scalars().all())


@router.post("", response_model=UserRead, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> User:
    _check_role_grant(admin, body.role)
    existing = await db.execute(select(User.id).where(User.email == body.email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Email already registered")

    user = User(
        name=body.name,
        email=body.email,
        hashed_password=get_password_hash(body.password),
        role=body.role,
        designation=body.designation,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Email already registered") from exc
    await db.refresh(user)

    logger.info("Created employee %s (%s)", user.email, user.role)
    await audit.record(
        admin.subject_id,
        "EMPLOYEE_CREATED",
        "users",
        user.id,
        {"email": user.email, "role": user.role},
        request_origin(request),
    )
    return user


@router.get("/{employee_id}", response_model=UserRead)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: Identity = Depends(require_admin),
) -> User:
    return await _get_active_or_404(db, employee_id)


@router.put("/{employee_id}", response_model=UserRead)
async def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> User:
    user = await _get_active_or_404(db, employee_id)
    changes = body.model_dump(exclude_unset=True)
    _check_role_grant(admin, changes.get("role"))
    if user.role in ADMIN_ROLES:
        _check_role_grant(admin, user.role)

    for field, value in changes.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    logger.info("Updated employee %d", employee_id)
    await audit.record(
        admin.subject_id,
        "EMPLOYEE_UPDATED",
        "users",
        user.id,
        {"changes": changes},
        request_origin(request),
    )
    return user


@router.delete("/{employee_id}", response_model=DeleteResponse)
async def deactivate_employee(
    employee_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(require_admin),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> DeleteResponse:
    user = await _get_active_or_404(db, employee_id)
    if user.id == admin.subject_id:
        raise Forbidden("You cannot deactivate your own account")
    _check_role_grant(admin, user.role)

    user.status = STATUS_INACTIVE
    user.current_session_id = None
    await db.commit()

    logger.info("Deactivated employee %d", employee_id)
    await audit.record(
        admin.subject_id,
        "EMPLOYEE_DEACTIVATED",
        "users",
        user.id,
        {"email": user.email},
        request_origin(request),
    )
    return DeleteResponse(success=True, message="Employee deactivated")
