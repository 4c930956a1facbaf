"""
repobridge.query

Query shaping shared by every backend.

Responsibilities:
- Normalize the "archived" option into a soft-delete filter clause.
- Derive offset/limit and page metadata from a pagination request.
- Normalize sort specifications and apply the default ordering.

Nothing in this module talks to storage; the repository feeds it request values
and backend results, so the arithmetic is identical for SQL and documents.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from repobridge.errors import UnsupportedQueryError

T = TypeVar("T")

SortOrder = int | str
Sort = Mapping[str, SortOrder]

DEFAULT_LIMIT = 20
# Largest offset or limit the backends accept (signed 64-bit).
MAX_OFFSET = 2**63 - 1
# Creation time descending; the id breaks ties between rows created in the same tick.
DEFAULT_SORT: dict[str, int] = {"created_at": -1, "id": -1}

_SORT_ORDERS: dict[Any, int] = {
    1: 1,
    -1: -1,
    "1": 1,
    "-1": -1,
    "asc": 1,
    "ascending": 1,
    "desc": -1,
    "descending": -1,
}


class ArchivedMode(enum.StrEnum):
    exclude_deleted = "exclude_deleted"
    only_deleted = "only_deleted"
    include_all = "include_all"


def resolve_archived(archived: Any) -> bool:
    """
    Interpret a loosely-typed archived flag (often a raw query-string value).

    `None`, `False` and the literal string "false" mean "not archived"; anything
    else, including "true" and arbitrary strings, means "archived".
    """

    if archived is None or archived is False:
        return False
    return not (isinstance(archived, str) and archived == "false")


def archived_mode(archived: Any) -> ArchivedMode:
    if isinstance(archived, ArchivedMode):
        return archived
    if isinstance(archived, str) and archived in {m.value for m in ArchivedMode}:
        return ArchivedMode(archived)
    # A legacy truthy flag widens reads to deleted and live records alike.
    return ArchivedMode.include_all if resolve_archived(archived) else ArchivedMode.exclude_deleted


def archived_filter(mode: ArchivedMode, deleted_field: str) -> dict[str, Any]:
    if mode is ArchivedMode.exclude_deleted:
        return {deleted_field: None}
    if mode is ArchivedMode.only_deleted:
        return {deleted_field: {"$ne": None}}
    return {}


def merge_filter(query: Mapping[str, Any] | None, extra: Mapping[str, Any]) -> dict[str, Any]:
    base = dict(query or {})
    if not extra:
        return base
    if base.keys() & extra.keys():
        # Caller already constrains the same field; require both instead of overwriting.
        return {"$and": [base, dict(extra)]}
    return {**base, **extra}


def to_number(value: Any) -> float | None:
    """
    Coerce request input to a finite number, or None when it is not numeric.

    Mirrors what query-string consumers expect: "3" -> 3.0, "" -> 0.0,
    "abc" -> None, True -> 1.0.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def normalize_sort(sort: Sort | None, default: Sort | None = None) -> dict[str, int]:
    requested = sort or default or {}
    normalized: dict[str, int] = {}
    for key, order in requested.items():
        lookup = order.lower() if isinstance(order, str) else order
        if isinstance(lookup, bool) or lookup not in _SORT_ORDERS:
            raise UnsupportedQueryError(f"invalid sort order {order!r} for field {key!r}")
        normalized[key] = _SORT_ORDERS[lookup]
    return normalized


@dataclass(frozen=True)
class PaginationRequest:
    query: Mapping[str, Any] = field(default_factory=dict)
    page: Any = None
    limit: Any = None
    skip: Any = None


@dataclass(frozen=True)
class PageWindow:
    # 0-based page index.
    index: int
    limit: int
    offset: int

    @classmethod
    def from_request(
        cls, request: PaginationRequest, default_limit: int = DEFAULT_LIMIT
    ) -> PageWindow:
        limit_number = to_number(request.limit)
        if limit_number is not None and limit_number >= 1:
            limit = min(int(limit_number), MAX_OFFSET)
        else:
            limit = default_limit

        page_number = to_number(request.page)
        if request.page is None and request.skip is not None:
            skip_number = to_number(request.skip)
            offset = min(max(0, int(skip_number)), MAX_OFFSET) if skip_number is not None else 0
            return cls(index=offset // limit, limit=limit, offset=offset)

        index = max(0, int(page_number) - 1) if page_number is not None else 0
        # Past-the-end pages stay past the end, just not beyond what storage can express.
        index = min(index, MAX_OFFSET // limit)
        return cls(index=index, limit=limit, offset=index * limit)


@dataclass(frozen=True)
class PageInfo:
    current: int
    next: int | None
    prev: int | None


def page_info(window: PageWindow, total: int, returned: int) -> PageInfo:
    current = window.index + 1
    return PageInfo(
        current=current,
        prev=current - 1 if window.index > 0 else None,
        # Derived from the total, so an exactly-full last page reports no next page.
        next=current + 1 if window.offset + returned < total else None,
    )


@dataclass
class Paginated(Generic[T]):
    data: list[T]
    total: int
    limit: int
    offset: int
    pages: int
    page: PageInfo
    sort: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "pages": self.pages,
            "page": {"current": self.page.current, "next": self.page.next, "prev": self.page.prev},
            "sort": self.sort,
        }


# --- Module Notes -----------------------------------------------------------
# Filters use the small Mongo-style dialect documented in `repobridge.backends.base`;
# `archived_filter` only ever emits `{field: None}` and `{field: {"$ne": None}}`.
