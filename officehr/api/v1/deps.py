"""
FastAPI dependencies: persistence gateway, identity & role guard, services.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Cookie, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.core.exceptions import Forbidden, Unauthorized
from officehr.core.security import decode_access_token
from officehr.db.session import Database
from officehr.models.user import (ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_SUPER_ADMIN,
                                  User)
from officehr.services.audit import AuditRecorder
from officehr.services.leaves import LeaveWorkflow
from officehr.services.notifications import NotificationDispatcher
from officehr.services.passwords import ResetLinkSender

# We use auto_error=False so we can manually check for the cookie if header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Persistence gateway ─────────────────────────────────────────────
def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


# ── Services ────────────────────────────────────────────────────────
def get_audit_recorder(database: Database = Depends(get_database)) -> AuditRecorder:
    return AuditRecorder(database)


def get_leave_workflow(
    database: Database = Depends(get_database),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> LeaveWorkflow:
    return LeaveWorkflow(database, audit)


def get_notification_dispatcher(
    database: Database = Depends(get_database),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> NotificationDispatcher:
    return NotificationDispatcher(database, audit)


def get_reset_link_sender() -> ResetLinkSender:
    return ResetLinkSender()


# ── Identity ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Identity:
    subject_id: int
    role: str
    flags: dict[str, Any] = field(default_factory=dict)


def _extract_token(header_token: str | None, cookie_token: str | None) -> str | None:
    # Priority: Header > Cookie ("Bearer <token>" or just "<token>")
    if header_token:
        return header_token
    if cookie_token:
        if cookie_token.startswith("Bearer "):
            return cookie_token.split(" ", 1)[1]
        return cookie_token
    return None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> tuple[User, dict[str, Any]]:
    """Decode the JWT from header or cookie and re-read its user."""
    final_token = _extract_token(token, access_token)
    if not final_token:
        raise Unauthorized("Authentication failed: Token is missing")

    payload = decode_access_token(final_token)
    if payload is None:
        raise Unauthorized("Authentication failed: Invalid or expired token")

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise Unauthorized()

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("User account is inactive")
    if user.current_session_id != payload.get("sid"):
        raise Unauthorized("Session expired. Please log in again.")
    return user, payload


async def get_identity(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
) -> Identity:
    user, payload = current
    return Identity(
        subject_id=user.id,
        role=user.role,
        flags={
            "two_factor_enabled": bool(user.two_factor_enabled),
            "two_factor_verified": bool(payload.get("tfa")),
        },
    )


# ── Role guard ──────────────────────────────────────────────────────
def require_roles(
    *roles: str, enforce_2fa: bool = False
) -> Callable[..., Awaitable[Identity]]:
    """Build a dependency admitting only callers whose role is in *roles*."""
    allowed = frozenset(roles)

    async def _guard(identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role not in allowed:
            raise Forbidden(
                f"Authentication failed: Forbidden access ({', '.join(sorted(allowed))} only)"
            )
        if (
            enforce_2fa
            and identity.flags.get("two_factor_enabled")
            and not identity.flags.get("two_factor_verified")
        ):
            raise Forbidden("2FA verification required")
        return identity

    return _guard


require_employee = require_roles(ROLE_EMPLOYEE)
require_admin = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN, enforce_2fa=True)
require_super_admin = require_roles(ROLE_SUPER_ADMIN, enforce_2fa=True)
# For the 2FA step itself, which a not-yet-verified admin must reach.
require_admin_pending_2fa = require_roles(ROLE_ADMIN, ROLE_SUPER_ADMIN)
