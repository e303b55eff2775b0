"""
Audit log model: append-only, pruned by age.

``user_id`` and ``entity_id`` are deliberately not foreign keys: an entry
must survive the deletion of the actor or entity it mentions.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from officehr.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int | None = Column(Integer, nullable=True, index=True)  # type: ignore[assignment]
    action: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    entity_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    entity_id: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    details: dict | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    ip_address: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
