"""Shared helper functions for members service routers."""

from typing import List, Optional

from libs.db.query import PageRequest, SortOrder, SortSpec
from services.members_service.models import Member
from services.members_service.schemas import MemberBrief, MemberListItem


def page_request(page: int, limit: int) -> PageRequest:
    return PageRequest(page=page, limit=limit)


def sort_spec(sort_by: str, sort_order: SortOrder) -> SortSpec:
    return SortSpec(field=sort_by, order=sort_order)


def to_list_item(member: Member, attendance_count: int) -> MemberListItem:
    item = MemberListItem.model_validate(member)
    item.attendance_count = attendance_count
    return item


def to_briefs(members: List[Member]) -> List[MemberBrief]:
    return [MemberBrief.model_validate(m) for m in members]


def to_brief(member: Optional[Member]) -> Optional[MemberBrief]:
    return MemberBrief.model_validate(member) if member else None
