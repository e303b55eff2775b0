"""Tests for login/logout, session rotation and the role guard."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from officehr.api.v1.deps import get_reset_link_sender
from officehr.core.security import create_access_token
from officehr.models.audit_log import AuditLog
from officehr.models.user import ROLE_ADMIN, STATUS_INACTIVE, User

TEST_PASSWORD = "secret123"


async def _login(client: AsyncClient, email: str, password: str = TEST_PASSWORD):
    return await client.post(
        "/api/v1/auth/login", data={"username": email, "password": password}
    )


async def test_login_sets_token_and_cookie(async_client: AsyncClient, employee):
    resp = await _login(async_client, employee.email)
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"
    assert resp.cookies.get("access_token", "").strip('"').startswith("Bearer ")


async def test_login_is_case_insensitive_on_email(async_client: AsyncClient, employee):
    resp = await _login(async_client, f"  {employee.email.upper()} ")
    assert resp.status_code == 200


async def test_login_wrong_password(async_client: AsyncClient, employee):
    resp = await _login(async_client, employee.email, "wrong-password")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Incorrect email or password", "success": False}


async def test_login_inactive_user(async_client: AsyncClient, make_user):
    user = await make_user(status=STATUS_INACTIVE)
    resp = await _login(async_client, user.email)
    assert resp.status_code == 403


async def test_me_with_bearer_header(async_client: AsyncClient, employee):
    token = (await _login(async_client, employee.email)).json()["access_token"]
    async_client.cookies.clear()
    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 200
    assert resp.json()["email"] == employee.email


async def test_me_with_cookie(async_client: AsyncClient, employee):
    await _login(async_client, employee.email)
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["id"] == employee.id


async def test_new_login_expires_previous_session(async_client: AsyncClient, employee):
    first = (await _login(async_client, employee.email)).json()["access_token"]
    await _login(async_client, employee.email)
    async_client.cookies.clear()

    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {first}"}
    )
    assert resp.status_code == 401
    assert "Session expired" in resp.json()["detail"]


async def test_logout_revokes_session(async_client: AsyncClient, employee):
    token = (await _login(async_client, employee.email)).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    resp = await async_client.post("/api/v1/auth/logout", headers=headers)
    assert resp.status_code == 200

    async_client.cookies.clear()
    resp = await async_client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401


async def test_missing_token(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_expired_token(async_client: AsyncClient, employee):
    token = create_access_token(
        employee.id,
        employee.role,
        session_id=employee.current_session_id,
        expires_delta=timedelta(minutes=-1),
    )
    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert resp.status_code == 401


async def test_garbage_token(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401


async def test_deactivated_user_is_locked_out(async_client: AsyncClient, make_user, auth_headers, database):
    user = await make_user()
    headers = auth_headers(user)
    async with database.session() as session:
        stored = await session.get(User, user.id)
        stored.status = STATUS_INACTIVE
        await session.commit()

    resp = await async_client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401


# ── Role guard ──────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "path",
    ["/api/v1/admin/leaves/all", "/api/v1/admin/employees", "/api/v1/admin/attendance/daily"],
)
async def test_admin_routes_reject_employees(async_client: AsyncClient, employee_headers, path):
    resp = await async_client.get(path, headers=employee_headers)
    assert resp.status_code == 403


async def test_super_admin_passes_admin_guard(async_client: AsyncClient, super_admin_headers):
    resp = await async_client.get("/api/v1/admin/leaves/all", headers=super_admin_headers)
    assert resp.status_code == 200


async def test_admin_with_2fa_needs_verified_token(async_client: AsyncClient, make_user, auth_headers):
    user = await make_user(role=ROLE_ADMIN, two_factor_enabled=True)

    resp = await async_client.get("/api/v1/admin/leaves/all", headers=auth_headers(user))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "2FA verification required"

    resp = await async_client.get(
        "/api/v1/admin/leaves/all", headers=auth_headers(user, two_factor_verified=True)
    )
    assert resp.status_code == 200


async def test_audit_logs_are_super_admin_only(async_client: AsyncClient, admin_headers):
    resp = await async_client.get("/api/v1/superadmin/audit-logs", headers=admin_headers)
    assert resp.status_code == 403


# ── Two-factor step ─────────────────────────────────────────────────
TWO_FACTOR_CODE = "246810"


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _login_token(client: AsyncClient, email: str) -> str:
    token = (await _login(client, email)).json()["access_token"]
    client.cookies.clear()
    return token


async def test_two_factor_enable_login_verify_disable(async_client: AsyncClient, admin):
    token = await _login_token(async_client, admin.email)
    resp = await async_client.put(
        "/api/v1/auth/2fa",
        json={"enabled": True, "password": TEST_PASSWORD, "code": TWO_FACTOR_CODE},
        headers=_bearer(token),
    )
    assert resp.status_code == 200
    verified = resp.json()["access_token"]
    async_client.cookies.clear()
    resp = await async_client.get("/api/v1/admin/leaves/all", headers=_bearer(verified))
    assert resp.status_code == 200

    # A fresh login is unverified until the code is presented.
    token = await _login_token(async_client, admin.email)
    resp = await async_client.get("/api/v1/admin/leaves/all", headers=_bearer(token))
    assert resp.status_code == 403

    resp = await async_client.post(
        "/api/v1/auth/2fa/verify", json={"code": "000000"}, headers=_bearer(token)
    )
    assert resp.status_code == 401

    resp = await async_client.post(
        "/api/v1/auth/2fa/verify", json={"code": TWO_FACTOR_CODE}, headers=_bearer(token)
    )
    assert resp.status_code == 200
    verified = resp.json()["access_token"]
    async_client.cookies.clear()
    resp = await async_client.get("/api/v1/admin/leaves/all", headers=_bearer(verified))
    assert resp.status_code == 200

    resp = await async_client.put(
        "/api/v1/auth/2fa",
        json={"enabled": False, "password": TEST_PASSWORD, "code": TWO_FACTOR_CODE},
        headers=_bearer(verified),
    )
    assert resp.status_code == 200

    token = await _login_token(async_client, admin.email)
    resp = await async_client.get("/api/v1/admin/leaves/all", headers=_bearer(token))
    assert resp.status_code == 200


async def test_two_factor_enable_requires_password_and_code(
    async_client: AsyncClient, admin, admin_headers
):
    resp = await async_client.put(
        "/api/v1/auth/2fa",
        json={"enabled": True, "password": "wrong-password", "code": TWO_FACTOR_CODE},
        headers=admin_headers,
    )
    assert resp.status_code == 401

    resp = await async_client.put(
        "/api/v1/auth/2fa",
        json={"enabled": True, "password": TEST_PASSWORD},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await async_client.get("/api/v1/auth/2fa", headers=admin_headers)
    assert resp.json() == {"two_factor_enabled": False}


async def test_two_factor_verify_without_enrolment(async_client: AsyncClient, admin_headers):
    resp = await async_client.post(
        "/api/v1/auth/2fa/verify", json={"code": TWO_FACTOR_CODE}, headers=admin_headers
    )
    assert resp.status_code == 400


async def test_two_factor_is_admin_only(async_client: AsyncClient, employee_headers):
    resp = await async_client.post(
        "/api/v1/auth/2fa/verify", json={"code": TWO_FACTOR_CODE}, headers=employee_headers
    )
    assert resp.status_code == 403


# ── Profile & password ──────────────────────────────────────────────
async def test_update_profile(async_client: AsyncClient, employee, employee_headers, database):
    resp = await async_client.put(
        "/api/v1/auth/profile",
        json={"name": "Alice Cooper", "designation": "Designer"},
        headers=employee_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice Cooper"
    assert resp.json()["designation"] == "Designer"

    async with database.session() as session:
        entry = (
            await session.execute(select(AuditLog).where(AuditLog.action == "PROFILE_UPDATED"))
        ).scalar_one()
    assert entry.details == {"updated_fields": ["designation", "name"]}


async def test_change_password(async_client: AsyncClient, employee, employee_headers):
    resp = await async_client.post(
        "/api/v1/auth/change-password",
        json={"old_password": "wrong-password", "new_password": "brand-new-pass"},
        headers=employee_headers,
    )
    assert resp.status_code == 401

    resp = await async_client.post(
        "/api/v1/auth/change-password",
        json={"old_password": TEST_PASSWORD, "new_password": "brand-new-pass"},
        headers=employee_headers,
    )
    assert resp.status_code == 200

    assert (await _login(async_client, employee.email)).status_code == 401
    assert (await _login(async_client, employee.email, "brand-new-pass")).status_code == 200


class _CapturingSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send(self, email: str, token: str) -> None:
        self.sent.append((email, token))


@pytest.fixture
def reset_sender(app) -> _CapturingSender:
    sender = _CapturingSender()
    app.dependency_overrides[get_reset_link_sender] = lambda: sender
    return sender


async def test_forgot_and_reset_password(
    async_client: AsyncClient, employee, employee_headers, reset_sender
):
    resp = await async_client.post(
        "/api/v1/auth/forgot-password", json={"email": employee.email.upper()}
    )
    assert resp.status_code == 200
    [(email, token)] = reset_sender.sent
    assert email == employee.email

    resp = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": token, "password": "reset-pass-1"}
    )
    assert resp.status_code == 200
    # The reset ends the live session.
    resp = await async_client.get("/api/v1/auth/me", headers=employee_headers)
    assert resp.status_code == 401
    assert (await _login(async_client, employee.email, "reset-pass-1")).status_code == 200

    # The link works only once.
    resp = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": token, "password": "reset-pass-2"}
    )
    assert resp.status_code == 400


async def test_forgot_password_unknown_email_reveals_nothing(
    async_client: AsyncClient, reset_sender
):
    resp = await async_client.post(
        "/api/v1/auth/forgot-password", json={"email": "nobody@office.test"}
    )
    assert resp.status_code == 200
    assert reset_sender.sent == []


async def test_reset_password_rejects_access_tokens(async_client: AsyncClient, employee_headers):
    access_token = employee_headers["Authorization"].split(" ", 1)[1]
    resp = await async_client.post(
        "/api/v1/auth/reset-password", json={"token": access_token, "password": "reset-pass-1"}
    )
    assert resp.status_code == 400
