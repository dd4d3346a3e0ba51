"""Pagination metadata."""

from donatehub.reporting.pagination import paginated, pagination_meta
from donatehub.reporting.query import PageRequest


class TestPaginationMeta:
    def test_middle_page(self):
        meta = pagination_meta(PageRequest(page=2, limit=10), 25)
        assert meta == {
            "current_page": 2,
            "total_pages": 3,
            "total_items": 25,
            "items_per_page": 10,
            "has_next": True,
            "has_prev": True,
            "next_page": 3,
            "prev_page": 1,
        }

    def test_last_page(self):
        meta = pagination_meta(PageRequest(page=3, limit=10), 25)
        assert meta["has_next"] is False
        assert meta["next_page"] is None

    def test_exact_multiple(self):
        assert pagination_meta(PageRequest(page=1, limit=5), 20)["total_pages"] == 4

    def test_empty(self):
        meta = pagination_meta(PageRequest(), 0)
        assert meta["total_pages"] == 0
        assert meta["has_next"] is False
        assert meta["has_prev"] is False

    def test_page_beyond_end(self):
        meta = pagination_meta(PageRequest(page=9, limit=10), 25)
        assert meta["has_next"] is False
        assert meta["has_prev"] is True

    def test_paginated_carries_extras(self):
        body = paginated(["a"], PageRequest(), 1, stats={"total": 1})
        assert body["items"] == ["a"]
        assert body["stats"] == {"total": 1}
        assert body["pagination"]["total_items"] == 1
