"""Tests for owner-scoped records and the audited admin override."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.audit_log import ModificationLog
from app.models.record import Record

SHIFT = {
    "date": "2024-05-01",
    "startTime": "08:00",
    "endTime": "16:30",
    "totalHours": 8.5,
    "location": "North Beach",
    "notes": "calm day",
}


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    resp = await client.post("/api/records", headers=headers, json={**SHIFT, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _modification_logs(session_factory) -> list[ModificationLog]:
    async with session_factory() as session:
        result = await session.execute(select(ModificationLog).order_by(ModificationLog.id))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_and_list_own_records(async_client: AsyncClient, make_user, login):
    owner = await make_user("maria")
    headers = await login("maria")

    created = await _create(async_client, headers)
    assert created["totalHours"] == 8.5
    assert created["location"] == "North Beach"
    assert created["ownerId"] == owner.id

    await _create(async_client, headers, date="2024-05-03")
    resp = await async_client.get("/api/records", headers=headers)
    assert resp.status_code == 200
    assert [r["date"] for r in resp.json()] == ["2024-05-03", "2024-05-01"]


@pytest.mark.asyncio
async def test_negative_hours_rejected(async_client: AsyncClient, make_user, login):
    await make_user("maria")
    headers = await login("maria")
    resp = await async_client.post("/api/records", headers=headers, json={**SHIFT, "totalHours": -1})
    assert resp.status_code == 400
    assert resp.json()["error"]


@pytest.mark.asyncio
async def test_malformed_time_rejected(async_client: AsyncClient, make_user, login):
    await make_user("maria")
    headers = await login("maria")
    resp = await async_client.post("/api/records", headers=headers, json={**SHIFT, "startTime": "25:00"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_owner_updates_and_deletes(async_client: AsyncClient, make_user, login):
    await make_user("maria")
    headers = await login("maria")
    record = await _create(async_client, headers)

    resp = await async_client.put(
        f"/api/records/{record['id']}", headers=headers, json={"notes": "windy", "totalHours": 7}
    )
    assert resp.status_code == 200
    assert resp.json()["notes"] == "windy"
    assert resp.json()["totalHours"] == 7
    assert resp.json()["location"] == "North Beach"

    resp = await async_client.delete(f"/api/records/{record['id']}", headers=headers)
    assert resp.status_code == 200
    resp = await async_client.get(f"/api/records/{record['id']}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_other_users_records_are_invisible(async_client: AsyncClient, make_user, login):
    await make_user("alice")
    await make_user("bob")
    alice = await login("alice")
    bob = await login("bob")
    record = await _create(async_client, alice)

    assert (await async_client.get("/api/records", headers=bob)).json() == []
    assert (await async_client.get(f"/api/records/{record['id']}", headers=bob)).status_code == 404
    resp = await async_client.put(f"/api/records/{record['id']}", headers=bob, json={"notes": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cross_user_delete_then_audited_admin_delete(
    async_client: AsyncClient, make_user, login, session_factory
):
    await make_user("alice")
    await make_user("bob")
    await make_user("carol", role="admin")
    alice = await login("alice")
    bob = await login("bob")
    carol = await login("carol")
    record = await _create(async_client, alice)

    # Bob's delete is scoped to his own records, so the record simply is not there
    resp = await async_client.delete(f"/api/records/{record['id']}", headers=bob)
    assert resp.status_code == 404

    resp = await async_client.request(
        "DELETE",
        f"/api/records/{record['id']}/admin-delete",
        headers=carol,
        json={"reason": "dup"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True

    logs = await _modification_logs(session_factory)
    assert len(logs) == 1
    entry = logs[0]
    assert entry.id == data["logId"]
    assert entry.action == "delete"
    assert entry.admin_username == "carol"
    assert entry.target_username == "alice"
    assert entry.record_id == record["id"]
    assert entry.reason == "dup"
    assert entry.changes["deleted"]["location"] == "North Beach"
    assert entry.changes["deleted"]["total_hours"] == 8.5

    async with session_factory() as session:
        assert await session.get(Record, record["id"]) is None


@pytest.mark.asyncio
async def test_admin_edit_logs_before_and_after(
    async_client: AsyncClient, make_user, login, session_factory
):
    await make_user("alice")
    await make_user("sup", role="supervisor")
    alice = await login("alice")
    sup = await login("sup")
    record = await _create(async_client, alice)

    resp = await async_client.put(
        f"/api/records/{record['id']}/admin-edit",
        headers=sup,
        json={"totalHours": 6, "endTime": "14:00", "reason": "clocked out early"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["record"]["totalHours"] == 6
    assert data["record"]["endTime"] == "14:00"
    assert data["record"]["ownerId"] == record["ownerId"]

    (entry,) = await _modification_logs(session_factory)
    assert entry.id == data["logId"]
    assert entry.action == "edit"
    assert entry.target_username == "alice"
    assert entry.reason == "clocked out early"
    assert entry.changes["before"]["total_hours"] == 8.5
    assert entry.changes["before"]["end_time"] == "16:30"
    assert entry.changes["after"]["total_hours"] == 6
    assert entry.changes["after"]["end_time"] == "14:00"
    assert entry.changes["after"]["location"] == "North Beach"

    # Owner sees the edited record
    resp = await async_client.get(f"/api/records/{record['id']}", headers=alice)
    assert resp.json()["totalHours"] == 6


@pytest.mark.asyncio
async def test_plain_user_cannot_use_admin_override(
    async_client: AsyncClient, make_user, login, session_factory
):
    await make_user("alice")
    await make_user("bob")
    alice = await login("alice")
    bob = await login("bob")
    record = await _create(async_client, alice)

    resp = await async_client.put(
        f"/api/records/{record['id']}/admin-edit", headers=bob, json={"notes": "mine now"}
    )
    assert resp.status_code == 403
    resp = await async_client.delete(f"/api/records/{record['id']}/admin-delete", headers=bob)
    assert resp.status_code == 403
    assert await _modification_logs(session_factory) == []


@pytest.mark.asyncio
async def test_admin_override_missing_record(async_client: AsyncClient, root_headers, session_factory):
    resp = await async_client.delete("/api/records/9999/admin-delete", headers=root_headers)
    assert resp.status_code == 404
    assert await _modification_logs(session_factory) == []


@pytest.mark.asyncio
async def test_admin_reads_user_records(async_client: AsyncClient, make_user, login, root_headers):
    owner = await make_user("alice")
    alice = await login("alice")
    await _create(async_client, alice)

    resp = await async_client.get(f"/api/users/{owner.id}/records", headers=root_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["username"] == "alice"
    assert len(data["records"]) == 1

    resp = await async_client.get(f"/api/users/{owner.id}/records", headers=alice)
    assert resp.status_code == 403
