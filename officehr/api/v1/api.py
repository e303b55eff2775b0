"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from officehr.api.v1.endpoints import (attendance, audit_logs, auth,
                                       dashboard, employees, holidays,
                                       leaves, notifications)

api_router = APIRouter()

# Login, logout, profile
api_router.include_router(auth.router)

# Leave requests
api_router.include_router(leaves.employee_router)
api_router.include_router(leaves.admin_router)

# Clock-in / clock-out, daily sheet
api_router.include_router(attendance.employee_router)
api_router.include_router(attendance.admin_router)

# Holiday calendar
api_router.include_router(holidays.router)

# Broadcasts and inbox
api_router.include_router(notifications.admin_router)
api_router.include_router(notifications.employee_router)

# Head-count and attendance overview
api_router.include_router(dashboard.router)

# Employee administration, audit trail
api_router.include_router(employees.router)
api_router.include_router(audit_logs.router)
