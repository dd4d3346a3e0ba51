"""Storage-agnostic listing queries.

A ``ListQuery`` is a plain value: filters, one sort key and a page request.
Builders here turn raw request parameters into that value, applying the
platform's fallback rules (unknown category ignored, unknown status falls back
to ``active``, unknown sort field falls back to the default...). Translating
it into an actual query is the job of an adapter, see ``reporting.sql``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from donatehub.config import get_settings
from donatehub.db.models import CAMPAIGN_STATUSES, CATEGORIES
from donatehub.validation import RawAmount

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# OFFSET is a signed 64-bit integer in both SQLite and PostgreSQL.
MAX_OFFSET = 2**63 - 1

RawNumber = str | int | None
RawDate = str | date | None


class Op(str, Enum):
    EQ = "eq"
    IN = "in"
    GTE = "gte"
    LTE = "lte"
    SEARCH = "search"  # case-insensitive substring over several fields


@dataclass(frozen=True)
class Filter:
    """One predicate. ``SEARCH`` filters match ``value`` against each of ``fields``."""

    field: str
    op: Op
    value: Any
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class Sort:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class PageRequest:
    """Clamped page/limit pair: ``limit`` in [1, max], ``page`` >= 1 and small enough for a valid OFFSET."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def parse(
        cls,
        page: RawNumber = None,
        limit: RawNumber = None,
        *,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ) -> PageRequest:
        """Build from raw request values; missing or non-numeric values use the defaults.

        Limits default to the configured page sizes.
        """
        settings = get_settings()
        default_limit = default_limit or settings.page_size_default
        max_limit = max_limit or settings.page_size_max
        page_number = _to_int(page, 1)
        limit_number = _to_int(limit, default_limit)
        limit_number = max(1, min(max_limit, limit_number))
        page_number = max(1, min(page_number, MAX_OFFSET // limit_number))
        return cls(page=page_number, limit=limit_number)


@dataclass(frozen=True)
class ListQuery:
    filters: tuple[Filter, ...] = ()
    sort: Sort | None = None
    page: PageRequest = field(default_factory=PageRequest)

    def where(self, *filters: Filter | None) -> ListQuery:
        """Copy with extra filters; ``None`` entries (filters that did not apply) are dropped."""
        extra = tuple(f for f in filters if f is not None)
        return replace(self, filters=self.filters + extra)

    def sorted_by(self, sort: Sort) -> ListQuery:
        return replace(self, sort=sort)

    def paged(self, page: PageRequest) -> ListQuery:
        return replace(self, page=page)


def _to_int(value: RawNumber, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_decimal(value: RawAmount) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _to_datetime(value: RawDate) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_date_only(value: RawDate) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    try:
        date.fromisoformat(str(value).strip())
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def search_filter(term: str | None, fields: tuple[str, ...]) -> Filter | None:
    if not term or not term.strip():
        return None
    return Filter(field=fields[0], op=Op.SEARCH, value=term.strip(), fields=fields)


def category_filter(category: str | None, field_name: str = "category") -> Filter | None:
    """``all``, empty and unknown categories do not filter."""
    if not category or category not in CATEGORIES:
        return None
    return Filter(field=field_name, op=Op.EQ, value=category)


def status_filter(status: str | None, field_name: str = "status", default: str | None = "active") -> Filter | None:
    """``all`` disables the filter; a missing or unknown status falls back to ``default``."""
    if status == "all":
        return None
    if status in CAMPAIGN_STATUSES:
        return Filter(field=field_name, op=Op.EQ, value=status)
    if default is None:
        return None
    return Filter(field=field_name, op=Op.EQ, value=default)


def equals(field_name: str, value: str) -> Filter:
    return Filter(field=field_name, op=Op.EQ, value=value)


def amount_range_filters(
    field_name: str, minimum: RawAmount = None, maximum: RawAmount = None
) -> tuple[Filter, ...]:
    """Inclusive bounds; negative or non-numeric bounds are ignored."""
    filters = []
    low = _to_decimal(minimum)
    high = _to_decimal(maximum)
    if low is not None and low >= 0:
        filters.append(Filter(field=field_name, op=Op.GTE, value=low))
    if high is not None and high >= 0:
        filters.append(Filter(field=field_name, op=Op.LTE, value=high))
    return tuple(filters)


def date_range_filters(field_name: str, start: RawDate = None, end: RawDate = None) -> tuple[Filter, ...]:
    """Inclusive date range.

    A date-only end bound (``2026-01-31``) covers that whole day; an end bound
    with a time part, midnight included, is taken as given.
    """
    filters = []
    start_at = _to_datetime(start)
    end_at = _to_datetime(end)
    if start_at is not None:
        filters.append(Filter(field=field_name, op=Op.GTE, value=start_at))
    if end_at is not None:
        if _is_date_only(end):
            end_at = end_at.replace(hour=23, minute=59, second=59, microsecond=999999)
        filters.append(Filter(field=field_name, op=Op.LTE, value=end_at))
    return tuple(filters)


def sort_spec(
    sort_by: str | None,
    sort_order: str | None,
    allowed: tuple[str, ...],
    default: str,
) -> Sort:
    """Unknown sort fields fall back to ``default``; anything but ``asc`` sorts descending."""
    return Sort(field=sort_by if sort_by in allowed else default, descending=sort_order != "asc")
