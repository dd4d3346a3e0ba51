"""Listing query builders: fallbacks, clamping and filter construction."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from donatehub.reporting.query import (
    MAX_OFFSET,
    ListQuery,
    Op,
    PageRequest,
    amount_range_filters,
    category_filter,
    date_range_filters,
    search_filter,
    sort_spec,
    status_filter,
)


class TestPageRequest:
    def test_defaults(self):
        page = PageRequest.parse()
        assert (page.page, page.limit, page.skip) == (1, 10, 0)

    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [
            ("2", "10", (2, 10)),
            ("0", "0", (1, 1)),
            ("-3", "500", (1, 100)),
            ("abc", "xyz", (1, 10)),
            ("", None, (1, 10)),
        ],
    )
    def test_clamping_and_fallbacks(self, page, limit, expected):
        parsed = PageRequest.parse(page, limit)
        assert (parsed.page, parsed.limit) == expected

    def test_skip(self):
        assert PageRequest.parse(3, 20).skip == 40

    @pytest.mark.parametrize("limit", ["1", "10", "100"])
    def test_huge_page_keeps_offset_in_range(self, limit):
        parsed = PageRequest.parse("99999999999999999999", limit)
        assert parsed.page > 1
        assert 0 < parsed.skip <= MAX_OFFSET


class TestStatusFilter:
    def test_missing_status_defaults_to_active(self):
        flt = status_filter(None)
        assert flt is not None
        assert (flt.field, flt.op, flt.value) == ("status", Op.EQ, "active")

    def test_unknown_status_falls_back_to_active(self):
        assert status_filter("archived").value == "active"

    def test_all_disables_filter(self):
        assert status_filter("all") is None

    def test_closed(self):
        assert status_filter("closed").value == "closed"

    def test_no_default(self):
        assert status_filter(None, default=None) is None
        assert status_filter("bogus", default=None) is None


class TestCategoryAndSearch:
    def test_known_category(self):
        assert category_filter("health").value == "health"

    @pytest.mark.parametrize("category", [None, "", "all", "sports"])
    def test_ignored_categories(self, category):
        assert category_filter(category) is None

    def test_search_is_trimmed_and_multi_field(self):
        flt = search_filter("  water ", ("title", "description"))
        assert flt.op is Op.SEARCH
        assert flt.value == "water"
        assert flt.fields == ("title", "description")

    def test_blank_search_ignored(self):
        assert search_filter("   ", ("title",)) is None


class TestRanges:
    def test_amount_bounds(self):
        low, high = amount_range_filters("goal_amount", "100", "5000.50")
        assert (low.op, low.value) == (Op.GTE, Decimal("100"))
        assert (high.op, high.value) == (Op.LTE, Decimal("5000.50"))

    def test_invalid_amount_bounds_ignored(self):
        assert amount_range_filters("goal_amount", "abc", "-5") == ()

    def test_date_only_end_covers_whole_day(self):
        start, end = date_range_filters("created_at", "2026-01-01", "2026-01-31")
        assert start.value == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert end.value == datetime(2026, 1, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_explicit_midnight_end_is_kept(self):
        (end,) = date_range_filters("created_at", None, "2026-01-31T00:00:00")
        assert end.value == datetime(2026, 1, 31, tzinfo=timezone.utc)

    def test_date_object_end_covers_whole_day(self):
        (end,) = date_range_filters("created_at", None, date(2026, 1, 31))
        assert end.value == datetime(2026, 1, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_unparseable_dates_ignored(self):
        assert date_range_filters("created_at", "yesterday", "not-a-date") == ()


class TestSortAndComposition:
    def test_unknown_sort_field_falls_back(self):
        sort = sort_spec("password_hash", "asc", ("created_at", "title"), "created_at")
        assert sort.field == "created_at"
        assert sort.descending is False

    def test_anything_but_asc_is_descending(self):
        assert sort_spec("title", "sideways", ("title",), "title").descending is True

    def test_where_drops_none_and_is_immutable(self):
        base = ListQuery()
        query = base.where(None, category_filter("education"), None)
        assert base.filters == ()
        assert len(query.filters) == 1
        assert query.filters[0].value == "education"
