"""
Audit recorder.

Writes one ``audit_logs`` row per call in its own session. Recording is
best-effort: failures are logged and swallowed so the triggering action
never fails because of its audit trail.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request

from officehr.db.session import Database
from officehr.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def request_origin(request: Request | None) -> dict[str, str | None]:
    """Extract the caller's network origin for the audit trail."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("user-agent"),
    }


class AuditRecorder:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def record(
        self,
        actor_id: int | None,
        action: str,
        entity_name: str,
        entity_id: int | None,
        details: dict[str, Any] | None = None,
        origin: dict[str, str | None] | None = None,
    ) -> None:
        origin = origin or {}
        try:
            async with self._database.session() as session:
                session.add(
                    AuditLog(
                        user_id=actor_id,
                        action=action,
                        entity_name=entity_name,
                        entity_id=entity_id,
                        details=details or {},
                        ip_address=origin.get("ip_address"),
                        user_agent=origin.get("user_agent"),
                    )
                )
                await session.commit()
        except Exception:
            logger.exception(
                "Audit log write failed: %s on %s/%s by %s",
                action,
                entity_name,
                entity_id,
                actor_id,
            )
