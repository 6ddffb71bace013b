#!/usr/bin/env python3
"""
Seed a local database with demo cells, members and sessions.

Creates:
1. Two cell groups with a leader each
2. A handful of active members spread across the cells
3. Upcoming Sunday service, prayer meeting and Bible study sessions

Runs through the service layer so membership IDs follow the normal sequence.
Safe to re-run: members and cells that already exist are skipped.
"""

import asyncio
import os
import sys
from datetime import timedelta

# Add project root to path
project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)
sys.path.insert(0, project_root)

from dotenv import load_dotenv

# Must run before anything calls get_settings()
load_dotenv(os.path.join(project_root, os.environ.get("ENV_FILE", ".env")), override=True)

from libs.common.datetime_utils import utc_now
from libs.db.config import Database
from services.members_service.models import Cell, Member
from services.members_service.schemas import CellCreate, MemberCreate
from services.members_service.services import cell_service, member_service
from services.sessions_service.models import SessionType
from services.sessions_service.schemas import SessionCreate
from services.sessions_service.services import session_service
from sqlalchemy import select

CELLS = [
    {"name": "Grace Cell", "meeting_day": "Wednesday", "location": "Room 1"},
    {"name": "Hope Cell", "meeting_day": "Friday", "location": "Room 2"},
]

MEMBERS = [
    ("Sarah", "Johnson", "sarah.johnson@example.org", "Grace Cell"),
    ("Michael", "Brown", "michael.brown@example.org", "Grace Cell"),
    ("David", "Wilson", "david.wilson@example.org", "Hope Cell"),
    ("Ruth", "Adeyemi", "ruth.adeyemi@example.org", "Hope Cell"),
    ("Samuel", "Okafor", "samuel.okafor@example.org", None),
]


async def seed_demo_data():
    database = Database.from_settings()
    database.open()
    try:
        async with database.session() as db:
            cells = {}
            for cell_data in CELLS:
                existing = (
                    await db.execute(select(Cell).where(Cell.name == cell_data["name"]))
                ).scalar_one_or_none()
                if existing:
                    print(f"  Cell '{cell_data['name']}' already exists, skipping...")
                    cells[existing.name] = existing
                    continue
                cell = await cell_service.create_cell(db, data=CellCreate(**cell_data))
                cells[cell.name] = cell
                print(f"  Created cell: {cell.name}")

            for first_name, last_name, email, cell_name in MEMBERS:
                existing = (
                    await db.execute(select(Member).where(Member.email == email))
                ).scalar_one_or_none()
                if existing:
                    print(f"  Member '{email}' already exists, skipping...")
                    continue
                member = await member_service.create_member(
                    db,
                    data=MemberCreate(
                        first_name=first_name,
                        last_name=last_name,
                        email=email,
                        cell_id=cells[cell_name].id if cell_name else None,
                    ),
                    created_by="seed",
                )
                print(f"  Created member: {member.membership_id} {member.full_name}")

            now = utc_now().replace(minute=0, second=0, microsecond=0)
            sessions = [
                ("Sunday Morning Service", SessionType.SUNDAY_SERVICE, 3, 10, 2, 200),
                ("Midweek Prayer Meeting", SessionType.PRAYER_MEETING, 1, 19, 1.5, 100),
                ("Youth Bible Study", SessionType.BIBLE_STUDY, 5, 18, 1.5, 50),
            ]
            for name, session_type, days_ahead, hour, hours, capacity in sessions:
                start = (now + timedelta(days=days_ahead)).replace(hour=hour)
                session = await session_service.create_session(
                    db,
                    data=SessionCreate(
                        name=name,
                        session_type=session_type,
                        start_time=start,
                        end_time=start + timedelta(hours=hours),
                        capacity=capacity,
                    ),
                    created_by="seed",
                )
                print(f"  Created session: {session.name} at {session.start_time:%Y-%m-%d %H:%M}")

        print("\n✓ Demo data seeded successfully!")
    finally:
        await database.close()


if __name__ == "__main__":
    print("Seeding demo cells, members and sessions...")
    asyncio.run(seed_demo_data())
