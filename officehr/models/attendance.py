"""
Attendance model: one row per (user, date).

Three writers touch these rows: the employee clock-in/out endpoints,
the leave workflow and the reconciliation scheduler. Last writer wins.
"""

from __future__ import annotations

import enum
from datetime import date, time

from sqlalchemy import (Column, Date, Float, ForeignKey, Integer, String,
                        Time, UniqueConstraint)

from officehr.db.base import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    ON_LEAVE = "On Leave"
    HALF_DAY = "Half Day"


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    check_in_time: time | None = Column(Time, nullable=True)  # type: ignore[assignment]
    check_out_time: time | None = Column(Time, nullable=True)  # type: ignore[assignment]
    remarks: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    work_hours: float | None = Column(Float, nullable=True)  # type: ignore[assignment]
