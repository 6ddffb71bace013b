"""Typed building blocks for list endpoints: filters, sorting and pagination.

Each filter is a small frozen dataclass tagged with a ``kind`` and able to
produce its own SQL clause, so list queries are composed from known variants
instead of free-form dictionaries.
"""

import enum
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, TypeVar

from sqlalchemy import Select
from sqlalchemy.sql.elements import ColumnElement

from libs.common.errors import BadRequestError

S = TypeVar("S", bound=Select)


class QueryFilter(Protocol):
    kind: str

    def clause(self) -> ColumnElement[bool]: ...


def apply_filters(stmt: S, filters: Iterable[QueryFilter]) -> S:
    for f in filters:
        stmt = stmt.where(f.clause())
    return stmt


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    field: str
    order: SortOrder = SortOrder.DESC

    def resolve(self, columns: Mapping[str, Any]) -> ColumnElement:
        """Map the requested field onto a whitelisted column expression."""
        column = columns.get(self.field)
        if column is None:
            allowed = ", ".join(sorted(columns))
            raise BadRequestError(f"Cannot sort by '{self.field}'. Allowed: {allowed}")
        return column.asc() if self.order == SortOrder.ASC else column.desc()


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise BadRequestError("page must be >= 1")
        if not 1 <= self.limit <= 100:
            raise BadRequestError("limit must be between 1 and 100")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def apply(self, stmt: S) -> S:
        return stmt.offset(self.offset).limit(self.limit)

    def meta(self, total: int) -> dict[str, Any]:
        total_pages = math.ceil(total / self.limit) if total else 0
        return {
            "current_page": self.page,
            "total_pages": total_pages,
            "total_records": total,
            "has_next_page": self.page < total_pages,
            "has_previous_page": self.page > 1,
        }
