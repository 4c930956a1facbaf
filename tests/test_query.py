"""
tests.test_query

Archival normalization, pagination arithmetic and sort normalization.
"""

from __future__ import annotations

import pytest

from repobridge.errors import UnsupportedQueryError
from repobridge.query import (
    DEFAULT_LIMIT,
    MAX_OFFSET,
    ArchivedMode,
    PageWindow,
    PaginationRequest,
    archived_filter,
    archived_mode,
    merge_filter,
    normalize_sort,
    page_count,
    page_info,
    resolve_archived,
    to_number,
)


@pytest.mark.parametrize("value", [None, False, "false"])
def test_resolve_archived_not_archived(value) -> None:
    assert resolve_archived(value) is False
    assert archived_mode(value) is ArchivedMode.exclude_deleted


@pytest.mark.parametrize("value", [True, "true", "yes", "False", "0", 0, ""])
def test_resolve_archived_anything_else_is_archived(value) -> None:
    assert resolve_archived(value) is True
    assert archived_mode(value) is ArchivedMode.include_all


def test_archived_mode_accepts_named_modes() -> None:
    assert archived_mode(ArchivedMode.only_deleted) is ArchivedMode.only_deleted
    assert archived_mode("only_deleted") is ArchivedMode.only_deleted
    assert archived_mode("include_all") is ArchivedMode.include_all


def test_archived_filter_clauses() -> None:
    assert archived_filter(ArchivedMode.exclude_deleted, "deleted_at") == {"deleted_at": None}
    assert archived_filter(ArchivedMode.only_deleted, "deleted_at") == {
        "deleted_at": {"$ne": None}
    }
    assert archived_filter(ArchivedMode.include_all, "deleted_at") == {}


def test_merge_filter_keeps_caller_clause_on_conflict() -> None:
    assert merge_filter({"name": "a"}, {"deleted_at": None}) == {"name": "a", "deleted_at": None}
    assert merge_filter(None, {}) == {}
    merged = merge_filter({"deleted_at": {"$gt": 1}}, {"deleted_at": None})
    assert merged == {"$and": [{"deleted_at": {"$gt": 1}}, {"deleted_at": None}]}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        ("3", 3.0),
        (" 4 ", 4.0),
        ("", 0.0),
        ("abc", None),
        (True, 1.0),
        (2.5, 2.5),
        ("inf", None),
        ([1], None),
    ],
)
def test_to_number(value, expected) -> None:
    assert to_number(value) == expected


def test_page_window_defaults() -> None:
    window = PageWindow.from_request(PaginationRequest())
    assert window == PageWindow(index=0, limit=DEFAULT_LIMIT, offset=0)


@pytest.mark.parametrize("limit", [None, "abc", 0, "0", -5])
def test_page_window_limit_falls_back_to_default(limit) -> None:
    assert PageWindow.from_request(PaginationRequest(limit=limit)).limit == 20


@pytest.mark.parametrize("page", [1, 2, 3, 7])
@pytest.mark.parametrize("limit", [1, 10, 20])
def test_offset_follows_page(page: int, limit: int) -> None:
    window = PageWindow.from_request(PaginationRequest(page=page, limit=limit))
    assert window.offset == (page - 1) * limit
    assert page_info(window, total=1000, returned=limit).current == page


@pytest.mark.parametrize("page", [0, -3, "zero", ""])
def test_page_window_clamps_to_first_page(page) -> None:
    window = PageWindow.from_request(PaginationRequest(page=page, limit=10))
    assert window.index == 0
    assert window.offset == 0


def test_page_window_string_inputs() -> None:
    window = PageWindow.from_request(PaginationRequest(page="3", limit="15"))
    assert window == PageWindow(index=2, limit=15, offset=30)


def test_skip_only_applies_without_page() -> None:
    window = PageWindow.from_request(PaginationRequest(skip=25, limit=10))
    assert window == PageWindow(index=2, limit=10, offset=25)

    window = PageWindow.from_request(PaginationRequest(page=1, skip=25, limit=10))
    assert window.offset == 0


def test_page_window_uses_configured_default_limit() -> None:
    assert PageWindow.from_request(PaginationRequest(), default_limit=50).limit == 50


@pytest.mark.parametrize(
    ("total", "limit", "pages"),
    [(0, 20, 0), (1, 20, 1), (20, 20, 1), (21, 20, 2), (45, 20, 3), (100, 7, 15)],
)
def test_page_count(total: int, limit: int, pages: int) -> None:
    assert page_count(total, limit) == pages


def test_page_info_first_middle_last() -> None:
    first = page_info(PageWindow(index=0, limit=20, offset=0), total=45, returned=20)
    assert (first.current, first.prev, first.next) == (1, None, 2)

    middle = page_info(PageWindow(index=1, limit=20, offset=20), total=45, returned=20)
    assert (middle.current, middle.prev, middle.next) == (2, 1, 3)

    last = page_info(PageWindow(index=2, limit=20, offset=40), total=45, returned=5)
    assert (last.current, last.prev, last.next) == (3, 2, None)


def test_page_info_exactly_full_last_page_has_no_next() -> None:
    info = page_info(PageWindow(index=1, limit=20, offset=20), total=40, returned=20)
    assert info.next is None


def test_page_info_past_the_end() -> None:
    info = page_info(PageWindow(index=9, limit=20, offset=180), total=45, returned=0)
    assert info.current == 10
    assert info.prev == 9
    assert info.next is None


def test_normalize_sort() -> None:
    assert normalize_sort({"name": "asc", "created_at": "DESC"}) == {"name": 1, "created_at": -1}
    assert normalize_sort({"a": "ascending", "b": "descending", "c": -1}) == {
        "a": 1,
        "b": -1,
        "c": -1,
    }
    assert normalize_sort(None, {"created_at": -1}) == {"created_at": -1}
    assert normalize_sort({}, {"created_at": -1}) == {"created_at": -1}


@pytest.mark.parametrize("order", ["sideways", 2, True, None])
def test_normalize_sort_rejects_unknown_orders(order) -> None:
    with pytest.raises(UnsupportedQueryError):
        normalize_sort({"name": order})


@pytest.mark.parametrize("page", ["1e20", 1e20, 10**30])
def test_huge_page_is_capped_to_storage_range(page) -> None:
    window = PageWindow.from_request(PaginationRequest(page=page, limit=20))
    assert window.offset <= MAX_OFFSET
    assert window.offset == window.index * 20
    assert window.index == MAX_OFFSET // 20


def test_huge_skip_and_limit_are_capped() -> None:
    window = PageWindow.from_request(PaginationRequest(skip="1e25", limit="1e25"))
    assert window.offset == MAX_OFFSET
    assert window.limit == MAX_OFFSET
    assert window.index == 1
