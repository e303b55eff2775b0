"""
Leave endpoints.

- Employees apply for leave and read their own requests and balances.
- Admins list every request and approve / reject them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from officehr.api.v1.deps import (Identity, get_leave_workflow, require_admin,
                                  require_employee)
from officehr.core.clock import local_today
from officehr.schemas.leave import (LeaveActionResponse, LeaveApply,
                                    LeaveBalance, LeaveListItem, LeaveRead)
from officehr.services.audit import request_origin
from officehr.services.leaves import LeaveWorkflow

employee_router = APIRouter(prefix="/employee/leaves", tags=["leaves"])
admin_router = APIRouter(prefix="/admin/leaves", tags=["leaves"])


# ── Employee ────────────────────────────────────────────────────────
@employee_router.post("/apply", response_model=LeaveActionResponse, status_code=201)
async def apply_leave(
    body: LeaveApply,
    identity: Identity = Depends(require_employee),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> LeaveActionResponse:
    leave = await workflow.submit(
        identity.subject_id,
        body.type,
        body.start_date,
        body.end_date,
        body.reason,
    )
    return LeaveActionResponse(
        message="Leave applied successfully",
        leave=LeaveRead.model_validate(leave),
    )


@employee_router.get("/summary", response_model=dict[str, LeaveBalance])
async def leave_summary(
    year: int | None = Query(None, ge=1900, le=9999),
    identity: Identity = Depends(require_employee),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> dict:
    """Per-category balance; defaults to the current year."""
    year = year or local_today().year
    return await workflow.summary(identity.subject_id, year)


@employee_router.get("/all", response_model=list[LeaveListItem])
async def my_leaves(
    identity: Identity = Depends(require_employee),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> list[dict]:
    return await workflow.list_requests(identity.subject_id)


# ── Admin ───────────────────────────────────────────────────────────
@admin_router.get("/all", response_model=list[LeaveListItem])
async def all_leaves(
    _admin: Identity = Depends(require_admin),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> list[dict]:
    return await workflow.list_requests()


@admin_router.put("/approve/{leave_id}", response_model=LeaveActionResponse)
async def approve_leave(
    leave_id: int,
    request: Request,
    admin: Identity = Depends(require_admin),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> LeaveActionResponse:
    leave = await workflow.approve(leave_id, admin.subject_id, request_origin(request))
    return LeaveActionResponse(
        message="Leave approved successfully",
        leave=LeaveRead.model_validate(leave),
    )


@admin_router.put("/reject/{leave_id}", response_model=LeaveActionResponse)
async def reject_leave(
    leave_id: int,
    request: Request,
    admin: Identity = Depends(require_admin),
    workflow: LeaveWorkflow = Depends(get_leave_workflow),
) -> LeaveActionResponse:
    leave = await workflow.reject(leave_id, admin.subject_id, request_origin(request))
    return LeaveActionResponse(
        message="Leave rejected successfully",
        leave=LeaveRead.model_validate(leave),
    )
