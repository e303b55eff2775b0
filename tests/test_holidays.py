"""Tests for the holiday calendar endpoints."""

from httpx import AsyncClient
from sqlalchemy import select

from officehr.models.audit_log import AuditLog

HOLIDAYS = "/api/v1/admin/holidays"


async def _create(client: AsyncClient, headers, **overrides):
    body = {"name": "Founders Day", "date": "2026-10-19", "type": "Public"}
    body.update(overrides)
    return await client.post(HOLIDAYS, json=body, headers=headers)


async def test_add_holiday_derives_weekday(async_client: AsyncClient, admin_headers):
    resp = await _create(async_client, admin_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["day"] == "Monday"
    assert data["name"] == "Founders Day"


async def test_duplicate_date_conflicts(async_client: AsyncClient, admin_headers):
    await _create(async_client, admin_headers)
    resp = await _create(async_client, admin_headers, name="Other")
    assert resp.status_code == 409


async def test_blank_name_rejected(async_client: AsyncClient, admin_headers):
    resp = await _create(async_client, admin_headers, name="   ")
    assert resp.status_code == 400


async def test_employee_can_list_but_not_add(
    async_client: AsyncClient, admin_headers, employee_headers
):
    await _create(async_client, admin_headers)

    resp = await async_client.get(HOLIDAYS, headers=employee_headers)
    assert resp.status_code == 200
    assert len(resp.json()) == 1

    resp = await _create(async_client, employee_headers, date="2026-12-25")
    assert resp.status_code == 403


async def test_update_and_remove(async_client: AsyncClient, admin_headers):
    holiday_id = (await _create(async_client, admin_headers)).json()["id"]

    resp = await async_client.put(
        f"{HOLIDAYS}/{holiday_id}",
        json={"name": "Founders Day (moved)", "date": "2026-10-20", "type": "Public"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["day"] == "Tuesday"

    resp = await async_client.delete(f"{HOLIDAYS}/{holiday_id}", headers=admin_headers)
    assert resp.status_code == 200

    resp = await async_client.delete(f"{HOLIDAYS}/{holiday_id}", headers=admin_headers)
    assert resp.status_code == 404


async def test_update_missing_holiday(async_client: AsyncClient, admin_headers):
    resp = await async_client.put(
        f"{HOLIDAYS}/999",
        json={"name": "X", "date": "2026-10-20", "type": "Public"},
        headers=admin_headers,
    )
    assert resp.status_code == 404


async def test_changes_are_audited(async_client: AsyncClient, admin_headers, admin, database):
    holiday_id = (await _create(async_client, admin_headers)).json()["id"]
    await async_client.delete(f"{HOLIDAYS}/{holiday_id}", headers=admin_headers)

    async with database.session() as session:
        rows = (
            await session.execute(select(AuditLog).order_by(AuditLog.id))
        ).scalars().all()
    assert [r.action for r in rows] == ["HOLIDAY_ADDED", "HOLIDAY_REMOVED"]
    assert all(r.user_id == admin.id and r.entity_id == holiday_id for r in rows)
    assert rows[0].ip_address is not None
