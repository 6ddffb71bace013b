"""Unit tests for list filters, sorting and pagination."""

import uuid
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest
from libs.common.errors import BadRequestError
from libs.db.query import PageRequest, SortOrder, SortSpec
from services.attendance_service.filters import build_attendance_filters
from services.attendance_service.models import AttendanceStatus
from services.members_service.filters import (
    MEMBER_SORT_COLUMNS,
    CellFilter,
    SearchFilter,
    StatusFilter,
    build_member_filters,
)
from services.members_service.models import MembershipStatus


class TestPageRequest:
    def test_offset(self):
        assert PageRequest(page=3, limit=20).offset == 40

    def test_meta_for_middle_page(self):
        meta = PageRequest(page=2, limit=10).meta(35)
        assert meta == {
            "current_page": 2,
            "total_pages": 4,
            "total_records": 35,
            "has_next_page": True,
            "has_previous_page": True,
        }

    def test_meta_for_empty_result(self):
        meta = PageRequest().meta(0)
        assert meta["total_pages"] == 0
        assert meta["has_next_page"] is False
        assert meta["has_previous_page"] is False

    @pytest.mark.parametrize("page,limit", [(0, 20), (1, 0), (1, 101)])
    def test_rejects_out_of_range(self, page, limit):
        with pytest.raises(BadRequestError):
            PageRequest(page=page, limit=limit)


class TestSortSpec:
    def test_resolves_whitelisted_column(self):
        clause = SortSpec("last_name", SortOrder.ASC).resolve(MEMBER_SORT_COLUMNS)
        assert "last_name" in str(clause)

    def test_unknown_field_is_rejected(self):
        with pytest.raises(BadRequestError) as exc_info:
            SortSpec("password", SortOrder.ASC).resolve(MEMBER_SORT_COLUMNS)
        assert "Cannot sort by 'password'" in exc_info.value.message


class TestMemberFilters:
    def test_empty_inputs_build_no_filters(self):
        assert build_member_filters(search="   ") == []

    def test_each_input_maps_to_a_tagged_filter(self):
        cell_id = uuid.uuid4()
        filters = build_member_filters(
            search="grace", status=MembershipStatus.ACTIVE, cell_id=cell_id
        )
        assert [f.kind for f in filters] == ["search", "status", "cell"]
        assert filters[0] == SearchFilter("grace")
        assert filters[1] == StatusFilter(MembershipStatus.ACTIVE)
        assert filters[2] == CellFilter(cell_id)

    def test_filters_are_immutable(self):
        f = SearchFilter("grace")
        with pytest.raises(FrozenInstanceError):
            f.term = "other"


def test_attendance_filters_only_for_given_inputs():
    filters = build_attendance_filters(status=AttendanceStatus.LATE)
    assert [f.kind for f in filters] == ["status"]


def test_attendance_date_bounds_collapse_into_one_filter():
    filters = build_attendance_filters(
        start_date=datetime(2026, 1, 1, tzinfo=timezone.utc)
    )
    assert [f.kind for f in filters] == ["recorded_between"]
