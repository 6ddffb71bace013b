"""Integration tests for the request audit trail."""

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from libs.common import audit
from libs.db.audit import AuditLog, AuditSeverity
from services.sessions_service.services import session_service
from sqlalchemy import select
from tests.factories import CheckInTokenFactory, MemberFactory, SessionFactory


async def _audit_rows(db_session):
    result = await db_session.execute(select(AuditLog).order_by(AuditLog.created_at))
    return result.scalars().all()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_scan_is_audited_as_check_in(client, db_session, staff_headers):
    member = MemberFactory.create()
    session = SessionFactory.create()
    db_session.add_all([member, session])
    await db_session.flush()
    token = CheckInTokenFactory.create(member_id=member.id)
    db_session.add(token)
    await db_session.commit()

    response = await client.post(
        "/api/attendance/scan",
        json={"token": token.token, "sessionId": str(session.id)},
        headers={**staff_headers, "X-Request-ID": "kiosk-req-1", "User-Agent": "kiosk/1.0"},
    )

    assert response.status_code == 201
    rows = await _audit_rows(db_session)
    assert len(rows) == 1
    entry = rows[0]
    assert entry.action == "CHECK_IN"
    assert entry.entity_type == "ATTENDANCE"
    assert entry.user_id == "user-leader"
    assert entry.user_role == "LEADER"
    assert entry.status_code == 201
    assert entry.severity == AuditSeverity.INFO
    assert entry.request_id == "kiosk-req-1"
    assert entry.user_agent == "kiosk/1.0"
    assert entry.ip_address


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_writes_carry_entity_id(client, db_session, staff_headers):
    created = await client.post(
        "/api/members",
        json={"first_name": "Ada", "last_name": "Obi"},
        headers=staff_headers,
    )
    member_id = created.json()["data"]["id"]
    updated = await client.put(
        f"/api/members/{member_id}", json={"city": "Lagos"}, headers=staff_headers
    )

    assert updated.status_code == 200
    rows = await _audit_rows(db_session)
    assert [(r.action, r.entity_type) for r in rows] == [
        ("CREATE", "MEMBER"),
        ("UPDATE", "MEMBER"),
    ]
    assert rows[0].entity_id is None
    assert rows[1].entity_id == member_id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_client_errors_and_health_are_not_audited(client, db_session, staff_headers):
    missing = await client.get(f"/api/members/{uuid.uuid4()}", headers=staff_headers)
    unauthenticated = await client.get("/api/members")
    health = await client.get("/health")

    assert missing.status_code == 404
    assert unauthenticated.status_code == 401
    assert health.status_code == 200
    assert await _audit_rows(db_session) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_server_error_is_audited(app, db_session, staff_headers, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(session_service, "list_sessions", broken)

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        response = await ac.get("/api/sessions", headers=staff_headers)

    assert response.status_code == 500
    rows = await _audit_rows(db_session)
    assert len(rows) == 1
    assert rows[0].action == "READ"
    assert rows[0].entity_type == "SESSION"
    assert rows[0].status_code == 500
    assert rows[0].severity == AuditSeverity.ERROR


@pytest.mark.asyncio
@pytest.mark.integration
async def test_failed_audit_write_does_not_fail_request(
    client, db_session, staff_headers, monkeypatch
):
    async def unavailable(db, entry):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(audit, "write_entry", unavailable)

    response = await client.post(
        "/api/members",
        json={"first_name": "Ben", "last_name": "Eze"},
        headers=staff_headers,
    )

    assert response.status_code == 201
    assert response.json()["success"] is True
    assert await _audit_rows(db_session) == []
