"""
Auth endpoints: login (OAuth2 password flow), the admin 2FA step, logout,
profile and password management.

A successful login rotates the user's session id; tokens minted for any
previous session stop working immediately. Admins with 2FA enabled get an
unverified token at login and exchange it at ``/auth/2fa/verify``.
"""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import (Identity, get_audit_recorder,
                                  get_current_user, get_db,
                                  get_reset_link_sender,
                                  require_admin_pending_2fa)
from officehr.core.config import settings
from officehr.core.exceptions import Forbidden, Unauthorized, ValidationError
from officehr.core.security import (create_access_token,
                                    create_password_reset_token,
                                    decode_password_reset_token,
                                    get_password_hash, new_session_id,
                                    reset_token_matches, verify_password)
from officehr.models.user import STATUS_ACTIVE, User
from officehr.schemas.common import MessageResponse
from officehr.schemas.token import (Token, TwoFactorSetup, TwoFactorStatus,
                                    TwoFactorVerify)
from officehr.schemas.user import (ForgotPasswordRequest, PasswordChange,
                                   PasswordResetConfirm, ProfileUpdate,
                                   UserRead)
from officehr.services.audit import AuditRecorder, request_origin
from officehr.services.passwords import ResetLinkSender

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _issue_token(response: Response, user: User, two_factor_verified: bool = False) -> Token:
    """Mint a token for the user's current session and mirror it in the cookie."""
    access_token = create_access_token(
        user.id,
        user.role,
        session_id=user.current_session_id,
        two_factor_verified=two_factor_verified,
    )
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return Token(access_token=access_token)


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Returns the token and sets an HttpOnly cookie."""
    result = await db.execute(
        select(User).where(User.email == form_data.username.lower().strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        raise Unauthorized("Incorrect email or password")
    if not user.is_active:
        raise Forbidden("User account is inactive")

    user.current_session_id = new_session_id()
    await db.commit()

    logger.info("User %d logged in", user.id)
    return _issue_token(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """End the current session and clear the auth cookie."""
    user, _payload = current
    user.current_session_id = None
    await db.commit()
    response.delete_cookie("access_token")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def read_current_user(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
) -> User:
    return current[0]


# ── Two-factor step (admins) ────────────────────────────────────────
@router.get("/2fa", response_model=TwoFactorStatus)
async def two_factor_status(
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    _admin: Identity = Depends(require_admin_pending_2fa),
) -> TwoFactorStatus:
    return TwoFactorStatus(two_factor_enabled=bool(current[0].two_factor_enabled))


@router.post("/2fa/verify", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def verify_two_factor(
    request: Request,
    response: Response,
    body: TwoFactorVerify,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    _admin: Identity = Depends(require_admin_pending_2fa),
) -> Token:
    """Exchange a login token for a 2FA-verified one on the same session."""
    user, _payload = current
    if not user.two_factor_enabled or not user.two_factor_secret:
        raise ValidationError("2FA is not enabled for this account")
    if not verify_password(body.code, user.two_factor_secret):
        raise Unauthorized("Invalid 2FA code")

    logger.info("User %d passed 2FA", user.id)
    return _issue_token(response, user, two_factor_verified=True)


@router.put("/2fa", response_model=Token)
async def configure_two_factor(
    request: Request,
    response: Response,
    body: TwoFactorSetup,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    _admin: Identity = Depends(require_admin_pending_2fa),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> Token:
    """Turn 2FA on with a new code, or off with the current one.

    The returned token is verified when 2FA ends up enabled, so the caller
    keeps access to admin routes.
    """
    user, _payload = current
    if not verify_password(body.password, user.hashed_password):
        raise Unauthorized("Incorrect password")

    if body.enabled:
        if not body.code:
            raise ValidationError("A 2FA code is required to enable 2FA")
        user.two_factor_secret = get_password_hash(body.code)
        user.two_factor_enabled = True
        action = "TWO_FACTOR_ENABLED"
    else:
        if user.two_factor_enabled and (
            not body.code
            or not user.two_factor_secret
            or not verify_password(body.code, user.two_factor_secret)
        ):
            raise Unauthorized("Invalid 2FA code")
        user.two_factor_secret = None
        user.two_factor_enabled = False
        action = "TWO_FACTOR_DISABLED"
    await db.commit()

    await audit.record(user.id, action, "users", user.id, None, request_origin(request))
    return _issue_token(response, user, two_factor_verified=body.enabled)


# ── Profile & password ──────────────────────────────────────────────
@router.put("/profile", response_model=UserRead)
async def update_profile(
    request: Request,
    body: ProfileUpdate,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> User:
    user, _payload = current
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)

    await audit.record(
        user.id,
        "PROFILE_UPDATED",
        "users",
        user.id,
        {"updated_fields": sorted(changes)},
        request_origin(request),
    )
    return user


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: Request,
    body: PasswordChange,
    current: tuple[User, dict[str, Any]] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> MessageResponse:
    user, _payload = current
    if not verify_password(body.old_password, user.hashed_password):
        raise Unauthorized("Incorrect current password")

    user.hashed_password = get_password_hash(body.new_password)
    await db.commit()

    logger.info("User %d changed their password", user.id)
    await audit.record(
        user.id,
        "PASSWORD_CHANGED",
        "users",
        user.id,
        {"event": "Password changed successfully"},
        request_origin(request),
    )
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    sender: ResetLinkSender = Depends(get_reset_link_sender),
) -> MessageResponse:
    """Queue a reset link; the reply is the same whether or not the email exists."""
    result = await db.execute(
        select(User).where(User.email == body.email, User.status == STATUS_ACTIVE)
    )
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Password reset requested for unknown email")
    else:
        token = create_password_reset_token(user.id, user.hashed_password)
        background_tasks.add_task(sender.send, user.email, token)
    return MessageResponse(message="If the email exists, a reset link will be sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: Request,
    body: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> MessageResponse:
    """Set a new password from a reset link and end any live session."""
    payload = decode_password_reset_token(body.token)
    user_id = payload.get("sub") if payload else None
    user = None
    if user_id is not None and str(user_id).isdigit():
        user = await db.get(User, int(user_id))
    if (
        user is None
        or not user.is_active
        or not reset_token_matches(payload, user.hashed_password)
    ):
        raise ValidationError("Invalid or expired token")

    user.hashed_password = get_password_hash(body.password)
    user.current_session_id = None
    await db.commit()

    logger.info("User %d reset their password", user.id)
    await audit.record(
        user.id, "PASSWORD_RESET", "users", user.id, None, request_origin(request)
    )
    return MessageResponse(message="Password reset successfully")
