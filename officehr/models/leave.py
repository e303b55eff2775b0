"""
Leave request model.

``type`` holds the storage spelling of the category. Privilege leave is
persisted under its legacy spelling ``Previlage``; callers only ever see
the canonical keys through ``LEAVE_CATEGORIES``.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Index, Integer,
                        String, UniqueConstraint)

from officehr.db.base import Base


class LeaveType(str, enum.Enum):
    SICK = "Sick"
    CASUAL = "Casual"
    PRIVILEGE = "Previlage"


class LeaveStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


# canonical input key -> stored value
LEAVE_CATEGORIES: dict[str, LeaveType] = {
    "sick": LeaveType.SICK,
    "casual": LeaveType.CASUAL,
    "privilege": LeaveType.PRIVILEGE,
}

LEAVE_LABELS: dict[str, str] = {
    "sick": "Sick Leave",
    "casual": "Casual Leave",
    "privilege": "Privilege Leave",
}


def category_key(stored: str) -> str:
    """Map a stored leave type back to its canonical key."""
    for key, leave_type in LEAVE_CATEGORIES.items():
        if leave_type.value == stored:
            return key
    return stored.lower()


class Leave(Base):
    __tablename__ = "leaves"
    __table_args__ = (
        UniqueConstraint("user_id", "start_date", "end_date", name="uq_leave_user_range"),
        Index("ix_leaves_user_status", "user_id", "status"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)  # type: ignore[assignment]
    type: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    start_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    end_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    days: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    reason: str = Column(String(1000), nullable=False)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=LeaveStatus.PENDING.value,
        server_default=LeaveStatus.PENDING.value,
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

