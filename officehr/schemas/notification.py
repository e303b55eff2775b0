"""Pydantic schemas for notifications."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationSend(BaseModel):
    title: str | None = None
    message: str | None = None
    type: str | None = None
    user_ids: list[int] | None = None
    send_to_all: bool = False


class NotificationSendResponse(BaseModel):
    message: str
    count: int


class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class NotificationList(BaseModel):
    notifications: list[NotificationRead]
