"""Cell group management."""

import uuid
from typing import List, Optional, Tuple

from libs.common.errors import ConflictError, NotFoundError
from libs.common.logging import get_logger
from services.members_service.models import Cell, Member
from services.members_service.schemas import CellCreate, CellUpdate
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_cell(db: AsyncSession, cell_id: uuid.UUID) -> Cell:
    cell = await db.get(Cell, cell_id)
    if not cell:
        raise NotFoundError("Cell not found")
    return cell


async def _name_taken(
    db: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None
) -> bool:
    query = select(Cell.id).where(func.lower(Cell.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Cell.id != exclude_id)
    return (await db.execute(query.limit(1))).scalar_one_or_none() is not None


async def _ensure_leader(db: AsyncSession, leader_id: Optional[uuid.UUID]) -> None:
    if leader_id and not await db.get(Member, leader_id):
        raise NotFoundError("Leader not found")


async def create_cell(db: AsyncSession, *, data: CellCreate) -> Cell:
    if await _name_taken(db, data.name):
        raise ConflictError("Cell name already exists")
    await _ensure_leader(db, data.leader_id)

    cell = Cell(**data.model_dump())
    db.add(cell)
    await db.commit()
    logger.info("Created cell %s (%s)", cell.name, cell.id)
    return cell


async def update_cell(db: AsyncSession, *, cell_id: uuid.UUID, data: CellUpdate) -> Cell:
    cell = await get_cell(db, cell_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") and await _name_taken(db, changes["name"], exclude_id=cell_id):
        raise ConflictError("Cell name already exists")
    await _ensure_leader(db, changes.get("leader_id"))

    for field, value in changes.items():
        setattr(cell, field, value)
    await db.commit()
    return cell


async def list_cells(db: AsyncSession) -> List[Tuple[Cell, int]]:
    counts = (
        select(Member.cell_id, func.count(Member.id).label("member_count"))
        .where(Member.cell_id.is_not(None))
        .group_by(Member.cell_id)
        .subquery()
    )
    result = await db.execute(
        select(Cell, func.coalesce(counts.c.member_count, 0))
        .outerjoin(counts, counts.c.cell_id == Cell.id)
        .order_by(Cell.name)
    )
    return [(cell, count) for cell, count in result.all()]


async def get_cell_detail(
    db: AsyncSession, cell_id: uuid.UUID
) -> Tuple[Cell, Optional[Member], List[Member]]:
    cell = await get_cell(db, cell_id)
    members = (
        await db.execute(
            select(Member)
            .where(Member.cell_id == cell_id)
            .order_by(Member.first_name, Member.last_name)
        )
    ).scalars().all()
    leader = await db.get(Member, cell.leader_id) if cell.leader_id else None
    return cell, leader, list(members)


async def assign_member(
    db: AsyncSession, *, cell_id: uuid.UUID, member_id: uuid.UUID
) -> Member:
    await get_cell(db, cell_id)
    member = await db.get(Member, member_id)
    if not member:
        raise NotFoundError("Member not found")
    member.cell_id = cell_id
    await db.commit()
    logger.info("Assigned member %s to cell %s", member_id, cell_id)
    return member
