"""Pydantic schemas for attendance records."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel


class AttendanceRead(BaseModel):
    id: int
    user_id: int
    date: dt.date
    status: str
    check_in_time: dt.time | None
    check_out_time: dt.time | None
    remarks: str | None = None
    work_hours: float | None = None

    model_config = {"from_attributes": True}


class ClockResponse(BaseModel):
    message: str
    attendance: AttendanceRead


class AttendanceStats(BaseModel):
    total_days: int
    present_days: int
    leave_days: int
    absent_days: int


class AttendanceHistoryResponse(BaseModel):
    history: list[AttendanceRead]
    stats: AttendanceStats


class DailyAttendanceItem(BaseModel):
    user_id: int
    name: str
    designation: str | None
    attendance_id: int | None
    status: str
    check_in_time: dt.time | None
    check_out_time: dt.time | None
    work_hours: float | None


class HolidayStatus(BaseModel):
    is_holiday: bool
    name: str | None
    is_rest_day: bool


class DailyAttendanceResponse(BaseModel):
    date: dt.date
    attendance: list[DailyAttendanceItem]
    holiday_status: HolidayStatus
