"""Pydantic schemas for leave requests and balances."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class LeaveApply(BaseModel):
    # Presence is checked by the workflow so missing fields surface as
    # a single "All fields are required." error.
    type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None


class LeaveRead(BaseModel):
    id: int
    user_id: int
    type: str
    start_date: date
    end_date: date
    days: int
    reason: str
    status: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class LeaveListItem(LeaveRead):
    name: str


class LeaveActionResponse(BaseModel):
    message: str
    leave: LeaveRead


class LeaveBalance(BaseModel):
    label: str
    total: int
    used: int
    available: int
