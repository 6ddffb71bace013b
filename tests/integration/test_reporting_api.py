"""Integration tests for dashboard and export endpoints."""

import io
import json
import uuid
from datetime import timedelta

import pytest
from libs.common.datetime_utils import utc_now
from openpyxl import load_workbook
from services.attendance_service.models import AttendanceStatus
from services.members_service.models import MembershipStatus
from tests.factories import (
    AttendanceRecordFactory,
    CellFactory,
    CheckInTokenFactory,
    MemberFactory,
    SessionFactory,
)


async def _seed(db_session):
    leader = MemberFactory.create(first_name="Grace", last_name="Leader")
    db_session.add(leader)
    await db_session.flush()
    cell = CellFactory.create(name="Grace Cell", leader_id=leader.id)
    db_session.add(cell)
    await db_session.flush()

    ada = MemberFactory.create(first_name="Ada", last_name="Obi", cell_id=cell.id)
    ben = MemberFactory.create(first_name="Ben", last_name="Eze")
    gone = MemberFactory.create(membership_status=MembershipStatus.INACTIVE)
    session = SessionFactory.create(name="Sunday Service")
    db_session.add_all([ada, ben, gone, session])
    await db_session.flush()

    db_session.add_all(
        [
            AttendanceRecordFactory.create(session_id=session.id, member_id=ada.id),
            AttendanceRecordFactory.create(
                session_id=session.id, member_id=ben.id, status=AttendanceStatus.LATE
            ),
            CheckInTokenFactory.create(member_id=ada.id, used_at=utc_now()),
        ]
    )
    await db_session.commit()
    return {"leader": leader, "cell": cell, "ada": ada, "ben": ben, "session": session}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard_summary(client, db_session, staff_headers):
    await _seed(db_session)

    response = await client.get("/api/dashboard/summary", headers=staff_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    overview = data["overview"]
    assert overview["total_members"] == 4
    assert overview["active_members"] == 3
    assert overview["inactive_members"] == 1
    assert overview["total_sessions"] == 1
    assert overview["total_attendance_this_period"] == 2
    assert len(data["attendance_by_day"]) == 7
    assert data["attendance_by_day"][-1]["count"] == 2
    assert data["recent_sessions"][0]["attendance_count"] == 2
    assert data["qr_stats"]["total_used"] == 1
    assert {row["name"] for row in data["top_attendees"]} == {"Ada Obi", "Ben Eze"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard_requires_staff(client, member_headers_for):
    response = await client.get(
        "/api/dashboard/summary", headers=member_headers_for(uuid.uuid4())
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard_analytics(client, db_session, staff_headers):
    seeded = await _seed(db_session)

    response = await client.get("/api/dashboard/analytics", headers=staff_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert sum(day["count"] for day in data["attendance_trends"]) == 2
    cells = {c["name"]: c for c in data["cell_analytics"]}
    assert cells["Grace Cell"]["member_count"] == 1
    assert cells["Grace Cell"]["attendance_count"] == 1
    assert data["session_analytics"][0]["session_count"] == 1
    assert str(seeded["cell"].id) == cells["Grace Cell"]["cell_id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_dashboard_analytics_rejects_inverted_range(client, staff_headers):
    now = utc_now()
    response = await client.get(
        "/api/dashboard/analytics",
        params={
            "start_date": now.isoformat(),
            "end_date": (now - timedelta(days=2)).isoformat(),
        },
        headers=staff_headers,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_dashboard_self_access(client, db_session, member_headers_for):
    seeded = await _seed(db_session)
    ada = seeded["ada"]

    own = await client.get(
        f"/api/dashboard/member/{ada.id}", headers=member_headers_for(ada.id)
    )
    assert own.status_code == 200
    assert own.json()["data"]["total_attendance"] == 1
    assert own.json()["data"]["member"]["name"] == "Ada Obi"

    other = await client.get(
        f"/api/dashboard/member/{seeded['ben'].id}", headers=member_headers_for(ada.id)
    )
    assert other.status_code == 403


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


def _today() -> str:
    return utc_now().date().isoformat()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_scan_log_csv(client, db_session, staff_headers):
    await _seed(db_session)

    response = await client.get(
        "/api/export",
        params={"from": _today(), "to": _today(), "format": "csv"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == (
        f'attachment; filename="attendance_{_today()}.csv"'
    )
    lines = response.content.decode("utf-8-sig").splitlines()
    assert lines[0].startswith("# export_date,")
    assert lines[1] == "# exported_by,leader@church.org"
    assert "# total_records,2" in lines
    header_at = lines.index("scanned_at,member_name,cell_name,team,leader_name,session_name")
    rows = lines[header_at + 1:]
    assert any(
        row.endswith("Ada Obi,Grace Cell,N/A,Grace Leader,Sunday Service") for row in rows
    )
    assert any(row.endswith("Ben Eze,N/A,N/A,N/A,Sunday Service") for row in rows)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_scan_log_excel_and_pdf(client, db_session, staff_headers):
    await _seed(db_session)
    params = {"from": _today(), "to": _today()}

    excel = await client.get(
        "/api/export", params={**params, "format": "excel"}, headers=staff_headers
    )
    assert excel.status_code == 200
    assert excel.headers["content-disposition"].endswith('.xlsx"')
    sheet = load_workbook(io.BytesIO(excel.content)).active
    values = [cell for row in sheet.iter_rows(values_only=True) for cell in row]
    assert "Ada Obi" in values

    pdf = await client.get(
        "/api/export", params={**params, "format": "pdf"}, headers=staff_headers
    )
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_scan_log_empty_range_still_exports(client, staff_headers):
    response = await client.get(
        "/api/export",
        params={"from": "2020-01-01", "to": "2020-01-31"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    assert "# total_records,0" in response.content.decode("utf-8-sig").splitlines()


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "params,message",
    [
        ({"from": "2026-01-01"}, "Both from and to dates are required"),
        ({"from": "01/01/2026", "to": "2026-01-31"}, "Invalid date format. Use YYYY-MM-DD"),
        ({"from": "2026-02-01", "to": "2026-01-01"}, "From date cannot be after to date"),
        ({"from": "2026-01-01", "to": "2026-01-31", "format": "xml"}, "Invalid format. Supported: csv, excel, pdf"),
    ],
)
async def test_scan_log_bad_requests(client, staff_headers, params, message):
    response = await client.get("/api/export", params=params, headers=staff_headers)

    assert response.status_code == 400
    assert response.json()["message"] == message


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_members_json(client, db_session, staff_headers):
    await _seed(db_session)

    response = await client.get(
        "/api/export/members",
        params={"format": "json", "status": "ACTIVE"},
        headers=staff_headers,
    )

    assert response.status_code == 200
    document = json.loads(response.content)
    assert document["title"] == "Members Report"
    assert len(document["data"]) == 3
    assert {row["membership_status"] for row in document["data"]} == {"ACTIVE"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_with_no_rows(client, staff_headers):
    response = await client.get("/api/export/attendance", headers=staff_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "No data to export"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_attendance_and_sessions(client, db_session, staff_headers):
    seeded = await _seed(db_session)

    attendance = await client.get(
        "/api/export/attendance",
        params={"session_id": str(seeded["session"].id)},
        headers=staff_headers,
    )
    assert attendance.status_code == 200
    lines = attendance.content.decode("utf-8-sig").splitlines()
    assert lines[0].startswith("Membership ID,Member,Cell,Session")
    assert len(lines) == 3

    sessions = await client.get(
        "/api/export/sessions", params={"format": "excel"}, headers=staff_headers
    )
    assert sessions.status_code == 200


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_report(client, db_session, staff_headers):
    await _seed(db_session)

    pdf = await client.get("/api/export/report", headers=staff_headers)
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")

    report = await client.get(
        "/api/export/report", params={"format": "json"}, headers=staff_headers
    )
    document = json.loads(report.content)
    metrics = {row["metric"]: row["value"] for row in document["data"]}
    assert metrics["Total Members"] == 4
    assert metrics["Attendance Rate (%)"] == 100.0
    assert len(document["top_attendees"]) == 2

    csv = await client.get(
        "/api/export/report", params={"format": "csv"}, headers=staff_headers
    )
    assert csv.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_exports_require_staff(client, member_headers_for):
    response = await client.get(
        "/api/export/members", headers=member_headers_for(uuid.uuid4())
    )

    assert response.status_code == 403
