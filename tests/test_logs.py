"""Tests for the audit log endpoints and the audit writer."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.auth_session import AuthSession
from app.services import audit

from conftest import DEFAULT_PASSWORD


@pytest.mark.asyncio
async def test_logs_are_admin_only(async_client: AsyncClient, make_user, login):
    await make_user("maria")
    headers = await login("maria")
    assert (await async_client.get("/api/logs/access", headers=headers)).status_code == 403
    assert (await async_client.get("/api/logs/modifications", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_access_log_newest_first_and_filtered(async_client: AsyncClient, make_user, login):
    await make_user("sup", role="supervisor")
    await make_user("maria")
    await async_client.post("/api/auth/login", json={"username": "maria", "password": "Bad12345"})
    maria = await login("maria")
    await async_client.post("/api/auth/logout", headers=maria)
    sup = await login("sup")

    resp = await async_client.get("/api/logs/access?username=maria", headers=sup)
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert [entry["action"] for entry in data["logs"]] == ["logout", "login", "failed_login"]
    first = data["logs"][0]
    assert first["username"] == "maria"
    assert "ipAddress" in first and "userAgent" in first

    resp = await async_client.get("/api/logs/access", headers=sup)
    assert resp.json()["total"] == 4


@pytest.mark.asyncio
async def test_access_log_pagination(async_client: AsyncClient, make_user, login):
    await make_user("sup", role="supervisor")
    for _ in range(5):
        await async_client.post("/api/auth/login", json={"username": "ghost", "password": "x"})
    sup = await login("sup")

    resp = await async_client.get("/api/logs/access?username=ghost&limit=2&offset=1", headers=sup)
    data = resp.json()
    assert data["total"] == 5
    assert len(data["logs"]) == 2

    resp = await async_client.get("/api/logs/access?limit=0", headers=sup)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_modification_log_filter(async_client: AsyncClient, make_user, login, root_headers):
    await make_user("alice")
    await make_user("sup", role="supervisor")
    alice = await login("alice")
    sup = await login("sup")

    ids = []
    for day in ("2024-01-01", "2024-01-02"):
        resp = await async_client.post(
            "/api/records",
            headers=alice,
            json={
                "date": day,
                "startTime": "09:00",
                "endTime": "10:00",
                "totalHours": 1,
                "location": "Pier",
            },
        )
        ids.append(resp.json()["id"])

    await async_client.put(f"/api/records/{ids[0]}/admin-edit", headers=sup, json={"notes": "n"})
    await async_client.request(
        "DELETE", f"/api/records/{ids[1]}/admin-delete", headers=root_headers, json={"reason": "r"}
    )

    resp = await async_client.get("/api/logs/modifications", headers=sup)
    data = resp.json()
    assert data["total"] == 2
    assert [entry["action"] for entry in data["logs"]] == ["delete", "edit"]

    resp = await async_client.get("/api/logs/modifications?adminUsername=sup", headers=root_headers)
    data = resp.json()
    assert data["total"] == 1
    entry = data["logs"][0]
    assert entry["adminUsername"] == "sup"
    assert entry["targetUsername"] == "alice"
    assert entry["recordId"] == ids[0]
    assert entry["changes"]["after"]["notes"] == "n"


@pytest.mark.asyncio
async def test_access_log_write_failure_is_swallowed(db_session, monkeypatch):
    async def _broken_commit(self):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(AsyncSession, "commit", _broken_commit)
    assert await audit.record_access(db_session, "maria", audit.ACCESS_LOGIN) is None


@pytest.mark.asyncio
async def test_query_access_service(db_session):
    for action in (audit.ACCESS_LOGIN, audit.ACCESS_LOGOUT):
        await audit.record_access(db_session, "maria", action, "10.0.0.1", "pytest")
    await audit.record_access(db_session, "pedro", audit.ACCESS_FAILED_LOGIN)

    entries, total = await audit.query_access(db_session, username="MARIA", limit=1)
    assert total == 2
    assert [e.action for e in entries] == ["logout"]
    assert entries[0].ip_address == "10.0.0.1"


# ── Audit storage failures over the API ─────────────────────────────
async def _drop_table(session_factory, name: str) -> None:
    async with session_factory() as session:
        await session.execute(text(f"DROP TABLE {name}"))
        await session.commit()


@pytest.mark.asyncio
async def test_login_succeeds_when_access_log_is_unavailable(
    async_client: AsyncClient, make_user, session_factory
):
    await make_user("maria")
    await _drop_table(session_factory, "access_logs")

    resp = await async_client.post(
        "/api/auth/login", json={"username": "maria", "password": DEFAULT_PASSWORD}
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["username"] == "maria"
    token = resp.cookies.get("session")
    assert token
    async_client.cookies.clear()

    me = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["loginCount"] == 1


@pytest.mark.asyncio
async def test_logout_succeeds_when_access_log_is_unavailable(
    async_client: AsyncClient, make_user, login, session_factory
):
    await make_user("maria")
    headers = await login("maria")
    await _drop_table(session_factory, "access_logs")

    resp = await async_client.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["success"] is True

    async with session_factory() as session:
        assert (await session.execute(select(AuthSession))).scalars().all() == []
    assert (await async_client.get("/api/auth/me", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_admin_override_fails_without_modification_log(
    async_client: AsyncClient, make_user, login, session_factory
):
    await make_user("alice")
    await make_user("sup", role="supervisor")
    alice = await login("alice")
    sup = await login("sup")
    resp = await async_client.post(
        "/api/records",
        headers=alice,
        json={
            "date": "2024-01-01",
            "startTime": "09:00",
            "endTime": "17:00",
            "totalHours": 8,
            "location": "Pier",
        },
    )
    record_id = resp.json()["id"]
    await _drop_table(session_factory, "modification_logs")

    resp = await async_client.put(
        f"/api/records/{record_id}/admin-edit", headers=sup, json={"totalHours": 2}
    )
    assert resp.status_code >= 500
    assert resp.json()["success"] is False

    resp = await async_client.request(
        "DELETE", f"/api/records/{record_id}/admin-delete", headers=sup, json={"reason": "dup"}
    )
    assert resp.status_code >= 500

    resp = await async_client.get(f"/api/records/{record_id}", headers=alice)
    assert resp.status_code == 200
    assert resp.json()["totalHours"] == 8
