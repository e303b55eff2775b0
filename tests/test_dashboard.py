"""Tests for the admin dashboard stats."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient

from officehr.core.clock import local_today
from officehr.models.attendance import Attendance
from officehr.models.holiday import Holiday
from officehr.models.leave import Leave
from officehr.models.user import ROLE_ADMIN, STATUS_INACTIVE, User

STATS = "/api/v1/admin/dashboard/stats"


async def _add(database, *objects):
    async with database.session() as session:
        session.add_all(objects)
        await session.commit()


async def test_stats(async_client: AsyncClient, database, admin_headers, make_user):
    today = local_today()
    yesterday = today - timedelta(days=1)
    veterans = [await make_user(name=f"Veteran {n}") for n in range(3)]
    newcomer = await make_user(name="Newcomer")
    await make_user(role=ROLE_ADMIN)
    await make_user(status=STATUS_INACTIVE)

    async with database.session() as session:
        for veteran in veterans:
            user = await session.get(User, veteran.id)
            user.created_at = datetime.now(timezone.utc) - timedelta(days=90)
        await session.commit()

    await _add(
        database,
        Attendance(user_id=veterans[0].id, date=today, status="Present"),
        Attendance(user_id=veterans[1].id, date=today, status="Half Day"),
        Attendance(user_id=veterans[2].id, date=today, status="Absent"),
        Attendance(user_id=veterans[0].id, date=yesterday, status="Present"),
        Leave(
            user_id=newcomer.id,
            type="Sick",
            start_date=today + timedelta(days=2),
            end_date=today + timedelta(days=3),
            days=2,
            reason="Flu",
        ),
        Holiday(name="Past", date=today - timedelta(days=10), day="x", type="Public"),
        Holiday(name="Soon", date=today + timedelta(days=5), day="x", type="Public"),
    )

    resp = await async_client.get(STATS, headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_employees"] == 4
    assert body["new_employees"] == 1
    assert body["employee_growth"] == "+33.3%"
    assert body["attendance_percentage"] == 50
    assert body["attendance_change"] == 25
    assert [leave["name"] for leave in body["pending_leaves"]] == ["Newcomer"]
    assert [holiday["name"] for holiday in body["upcoming_holidays"]] == ["Soon"]


async def test_stats_on_empty_office(async_client: AsyncClient, admin_headers):
    body = (await async_client.get(STATS, headers=admin_headers)).json()
    assert body["total_employees"] == 0
    assert body["employee_growth"] == "0.0%"
    assert body["attendance_percentage"] == 0


async def test_stats_are_admin_only(async_client: AsyncClient, employee_headers):
    resp = await async_client.get(STATS, headers=employee_headers)
    assert resp.status_code == 403
