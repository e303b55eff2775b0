"""Pydantic schemas for the audit log viewer."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AuditLogRead(BaseModel):
    id: int
    user_id: int | None
    action: str
    entity_name: str
    entity_id: int | None
    details: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime | None
    actor_name: str
    actor_email: str
    actor_role: str


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class AuditLogPage(BaseModel):
    logs: list[AuditLogRead]
    pagination: Pagination
