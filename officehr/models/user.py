"""
User model: authentication, role-based access control and the
"current session" marker checked on every authenticated request.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from officehr.db.base import Base

ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ROLE_MANAGER = "manager"
ROLE_HR = "hr"

ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)
VALID_ROLES = {ROLE_EMPLOYEE, ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_MANAGER, ROLE_HR}

STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=ROLE_EMPLOYEE,
        server_default=ROLE_EMPLOYEE,
    )  # employee | admin | super_admin | manager | hr
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=STATUS_ACTIVE,
        server_default=STATUS_ACTIVE,
    )  # Active | Inactive
    designation: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    two_factor_enabled: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    two_factor_secret: str | None = Column(String(128), nullable=True)  # type: ignore[assignment]  # bcrypt hash of the 2FA code
    current_session_id: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE
