"""Cell group router."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import AuthUser
from libs.common.schemas import ApiResponse
from libs.db.session import get_async_db
from services.members_service.routers._helpers import to_brief, to_briefs
from services.members_service.schemas import (
    CellAssignment,
    CellCreate,
    CellDetail,
    CellListItem,
    CellResponse,
    CellUpdate,
    MemberBrief,
)
from services.members_service.services import cell_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cells", tags=["cells"])


@router.post(
    "", response_model=ApiResponse[CellResponse], status_code=status.HTTP_201_CREATED
)
async def create_cell(
    cell_in: CellCreate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    cell = await cell_service.create_cell(db, data=cell_in)
    return ApiResponse(message="Cell created successfully", data=CellResponse.model_validate(cell))


@router.get("", response_model=ApiResponse[List[CellListItem]])
async def list_cells(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    rows = await cell_service.list_cells(db)
    items = []
    for cell, count in rows:
        item = CellListItem.model_validate(cell)
        item.member_count = count
        items.append(item)
    return ApiResponse(data=items)


@router.get("/{cell_id}", response_model=ApiResponse[CellDetail])
async def get_cell(
    cell_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    cell, leader, members = await cell_service.get_cell_detail(db, cell_id)
    detail = CellDetail.model_validate(cell)
    detail.leader = to_brief(leader)
    detail.members = to_briefs(members)
    return ApiResponse(data=detail)


@router.put("/{cell_id}", response_model=ApiResponse[CellResponse])
async def update_cell(
    cell_id: uuid.UUID,
    cell_in: CellUpdate,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    cell = await cell_service.update_cell(db, cell_id=cell_id, data=cell_in)
    return ApiResponse(message="Cell updated successfully", data=CellResponse.model_validate(cell))


@router.post("/{cell_id}/members", response_model=ApiResponse[MemberBrief])
async def assign_member_to_cell(
    cell_id: uuid.UUID,
    assignment: CellAssignment,
    current_user: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    member = await cell_service.assign_member(
        db, cell_id=cell_id, member_id=assignment.member_id
    )
    return ApiResponse(message="Member assigned to cell", data=MemberBrief.model_validate(member))
