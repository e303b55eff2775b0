"""
Audit log viewer (super admin only), newest first, paginated.
"""

from __future__ import annotations

import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from officehr.api.v1.deps import Identity, get_db, require_super_admin
from officehr.models.audit_log import AuditLog
from officehr.models.user import User
from officehr.schemas.audit import AuditLogPage, AuditLogRead, Pagination

router = APIRouter(prefix="/superadmin/audit-logs", tags=["audit"])

SYSTEM_ACTOR = "System"


@router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _super: Identity = Depends(require_super_admin),
) -> AuditLogPage:
    total = (await db.execute(select(func.count(AuditLog.id)))).scalar_one()

    # Actor rows may be gone; entries then read as "System".
    result = await db.execute(
        select(AuditLog, User.name, User.email, User.role)
        .outerjoin(User, AuditLog.user_id == User.id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    logs = [
        AuditLogRead(
            id=log.id,
            user_id=log.user_id,
            action=log.action,
            entity_name=log.entity_name,
            entity_id=log.entity_id,
            details=log.details,
            ip_address=log.ip_address,
            user_agent=log.user_agent,
            created_at=log.created_at,
            actor_name=name or SYSTEM_ACTOR,
            actor_email=email or SYSTEM_ACTOR,
            actor_role=role or SYSTEM_ACTOR,
        )
        for log, name, email, role in result.all()
    ]
    return AuditLogPage(
        logs=logs,
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )
