"""Pydantic schemas for the admin dashboard."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from officehr.schemas.holiday import HolidayRead


class PendingLeaveItem(BaseModel):
    id: int
    name: str
    designation: str | None
    type: str
    start_date: date
    end_date: date
    reason: str


class DashboardStats(BaseModel):
    total_employees: int
    new_employees: int
    employee_growth: str
    attendance_percentage: int
    attendance_change: int
    pending_leaves: list[PendingLeaveItem]
    upcoming_holidays: list[HolidayRead]
