"""
Office-local clock.

The business day (clock-in date, auto-absence date, the 23:30 auto
clock-out) is reckoned in ``settings.SCHEDULER_TIMEZONE``, the same zone
the cron triggers fire in. Audit timestamps stay in UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from officehr.core.config import settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def office_tz() -> ZoneInfo:
    return ZoneInfo(settings.SCHEDULER_TIMEZONE)


def local_now() -> datetime:
    """Current office-local time, truncated to whole seconds."""
    return _utcnow().astimezone(office_tz()).replace(microsecond=0)


def local_today() -> date:
    return local_now().date()
