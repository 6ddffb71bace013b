"""Integration tests for member and cell endpoints."""

import uuid

import pytest
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from services.members_service.models import Gender, MembershipStatus
from tests.factories import (
    AttendanceRecordFactory,
    CellFactory,
    MemberFactory,
    SessionFactory,
)


def _series() -> str:
    return f"{get_settings().MEMBERSHIP_ID_PREFIX}{utc_now().year}"


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_member_generates_membership_id(client, staff_headers):
    first = await client.post(
        "/api/members",
        json={"first_name": "Ada", "last_name": "Obi", "email": "Ada.Obi@Church.org"},
        headers=staff_headers,
    )
    second = await client.post(
        "/api/members",
        json={"first_name": "Ben", "last_name": "Eze"},
        headers=staff_headers,
    )

    assert first.status_code == 201
    assert first.json()["message"] == "Member created successfully"
    data = first.json()["data"]
    assert data["membership_id"] == f"{_series()}0001"
    assert data["email"] == "ada.obi@church.org"
    assert data["membership_status"] == "ACTIVE"
    assert second.json()["data"]["membership_id"] == f"{_series()}0002"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_member_duplicate_email(client, db_session, staff_headers):
    db_session.add(MemberFactory.create(email="ada@church.org"))
    await db_session.commit()

    response = await client.post(
        "/api/members",
        json={"first_name": "Ada", "last_name": "Obi", "email": "ADA@church.org"},
        headers=staff_headers,
    )

    assert response.status_code == 409
    assert response.json()["message"] == "User already exists with this email"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_member_validation(client, staff_headers):
    response = await client.post(
        "/api/members",
        json={"first_name": "", "last_name": "Obi", "email": "not-an-email"},
        headers=staff_headers,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert {d["field"] for d in body["details"]} >= {"first_name", "email"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_member_requires_staff(client, member_headers_for):
    response = await client.post(
        "/api/members",
        json={"first_name": "Ada", "last_name": "Obi"},
        headers=member_headers_for(uuid.uuid4()),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_members_search_filter_and_counts(client, db_session, staff_headers):
    cell = CellFactory.create(name="Grace Cell")
    db_session.add(cell)
    await db_session.flush()
    ada = MemberFactory.create(
        first_name="Ada", last_name="Obi", email="ada@church.org", cell_id=cell.id
    )
    adaeze = MemberFactory.create(
        first_name="Adaeze", last_name="Nwosu", email="nwosu@church.org", gender=Gender.FEMALE
    )
    ben = MemberFactory.create(
        first_name="Ben",
        last_name="Eze",
        email="ben@church.org",
        membership_status=MembershipStatus.INACTIVE,
    )
    session = SessionFactory.create()
    db_session.add_all([ada, adaeze, ben, session])
    await db_session.flush()
    db_session.add(AttendanceRecordFactory.create(session_id=session.id, member_id=ada.id))
    await db_session.commit()

    response = await client.get(
        "/api/members", params={"search": "ada"}, headers=staff_headers
    )
    assert response.status_code == 200
    items = response.json()["data"]["items"]
    assert [i["first_name"] for i in items] == ["Ada", "Adaeze"]
    assert items[0]["attendance_count"] == 1
    assert items[0]["cell"]["name"] == "Grace Cell"
    assert items[1]["attendance_count"] == 0

    response = await client.get(
        "/api/members", params={"status": "INACTIVE"}, headers=staff_headers
    )
    assert [i["first_name"] for i in response.json()["data"]["items"]] == ["Ben"]

    response = await client.get(
        "/api/members", params={"cell_id": str(cell.id)}, headers=staff_headers
    )
    assert [i["first_name"] for i in response.json()["data"]["items"]] == ["Ada"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_members_pagination_and_sort(client, db_session, staff_headers):
    db_session.add_all(
        [MemberFactory.create(first_name=name) for name in ("Chidi", "Ada", "Bola")]
    )
    await db_session.commit()

    response = await client.get(
        "/api/members",
        params={"page": 1, "limit": 2, "sort_by": "first_name", "sort_order": "desc"},
        headers=staff_headers,
    )

    data = response.json()["data"]
    assert [i["first_name"] for i in data["items"]] == ["Chidi", "Bola"]
    assert data["pagination"] == {
        "current_page": 1,
        "total_pages": 2,
        "total_records": 3,
        "has_next_page": True,
        "has_previous_page": False,
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_members_rejects_unknown_sort(client, staff_headers):
    response = await client.get(
        "/api/members", params={"sort_by": "password"}, headers=staff_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_member_with_recent_attendance(client, db_session, staff_headers):
    member = MemberFactory.create()
    session = SessionFactory.create(name="Bible Study")
    db_session.add_all([member, session])
    await db_session.flush()
    db_session.add(AttendanceRecordFactory.create(session_id=session.id, member_id=member.id))
    await db_session.commit()

    response = await client.get(f"/api/members/{member.id}", headers=staff_headers)

    assert response.status_code == 200
    recent = response.json()["data"]["recent_attendance"]
    assert len(recent) == 1
    assert recent[0]["session_name"] == "Bible Study"
    assert recent[0]["status"] == "PRESENT"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_unknown_member(client, staff_headers):
    response = await client.get(f"/api/members/{uuid.uuid4()}", headers=staff_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Member not found"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_member(client, db_session, staff_headers):
    taken = MemberFactory.create(email="taken@church.org")
    member = MemberFactory.create()
    db_session.add_all([taken, member])
    await db_session.commit()

    response = await client.put(
        f"/api/members/{member.id}", json={"phone": "+2348000000000"}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["phone"] == "+2348000000000"

    response = await client.put(
        f"/api/members/{member.id}", json={"email": "taken@church.org"}, headers=staff_headers
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Email already exists"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_deactivate_member_is_soft(client, db_session, admin_headers, staff_headers):
    member = MemberFactory.create()
    db_session.add(member)
    await db_session.commit()

    forbidden = await client.delete(f"/api/members/{member.id}", headers=staff_headers)
    assert forbidden.status_code == 403

    response = await client.delete(f"/api/members/{member.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Member deactivated successfully"

    fetched = await client.get(f"/api/members/{member.id}", headers=staff_headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["membership_status"] == "INACTIVE"


# ---------------------------------------------------------------------------
# Cells
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cell_lifecycle(client, db_session, staff_headers):
    leader = MemberFactory.create(first_name="Ada")
    member = MemberFactory.create(first_name="Ben")
    db_session.add_all([leader, member])
    await db_session.commit()

    created = await client.post(
        "/api/cells",
        json={"name": "Grace Cell", "leader_id": str(leader.id), "meeting_day": "Friday"},
        headers=staff_headers,
    )
    assert created.status_code == 201
    cell_id = created.json()["data"]["id"]

    duplicate = await client.post(
        "/api/cells", json={"name": "Grace Cell"}, headers=staff_headers
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Cell name already exists"

    assigned = await client.post(
        f"/api/cells/{cell_id}/members",
        json={"member_id": str(member.id)},
        headers=staff_headers,
    )
    assert assigned.status_code == 200

    detail = await client.get(f"/api/cells/{cell_id}", headers=staff_headers)
    data = detail.json()["data"]
    assert data["leader"]["id"] == str(leader.id)
    assert [m["id"] for m in data["members"]] == [str(member.id)]

    listed = await client.get("/api/cells", headers=staff_headers)
    assert listed.json()["data"][0]["member_count"] == 1

    updated = await client.put(
        f"/api/cells/{cell_id}", json={"location": "Room 2"}, headers=staff_headers
    )
    assert updated.json()["data"]["location"] == "Room 2"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_member_in_unknown_cell(client, staff_headers):
    response = await client.post(
        "/api/members",
        json={"first_name": "Ada", "last_name": "Obi", "cell_id": str(uuid.uuid4())},
        headers=staff_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Cell not found"
