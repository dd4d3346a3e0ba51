"""SQLAlchemy adapter for ``ListQuery``.

Each caller passes the mapping from logical field names to SQL expressions,
so the same query value can target a plain table, a join, or a grouped
subquery.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from donatehub.reporting.query import Filter, ListQuery, Op

Columns = Mapping[str, ColumnElement[Any]]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_filter(flt: Filter, columns: Columns) -> ColumnElement[bool]:
    """Translate one filter; unknown field names are programming errors (KeyError)."""
    if flt.op is Op.SEARCH:
        pattern = f"%{_escape_like(str(flt.value))}%"
        return or_(*(columns[name].ilike(pattern, escape="\\") for name in flt.fields))

    column = columns[flt.field]
    if flt.op is Op.EQ:
        return column == flt.value
    if flt.op is Op.IN:
        return column.in_(list(flt.value))
    if flt.op is Op.GTE:
        return column >= flt.value
    if flt.op is Op.LTE:
        return column <= flt.value
    msg = f"Unsupported filter operator: {flt.op}"
    raise ValueError(msg)


def where_clause(filters: Sequence[Filter], columns: Columns) -> ColumnElement[bool] | None:
    if not filters:
        return None
    return and_(*(compile_filter(f, columns) for f in filters))


def apply_filters(stmt: Select[Any], query: ListQuery, columns: Columns) -> Select[Any]:
    clause = where_clause(query.filters, columns)
    return stmt if clause is None else stmt.where(clause)


def apply_order_and_page(
    stmt: Select[Any],
    query: ListQuery,
    columns: Columns,
    tiebreaker: ColumnElement[Any],
) -> Select[Any]:
    """ORDER BY the sort key plus a unique tiebreaker (stable pages), then OFFSET/LIMIT."""
    if query.sort is not None:
        column = columns[query.sort.field]
        stmt = stmt.order_by(column.desc() if query.sort.descending else column.asc())
    stmt = stmt.order_by(tiebreaker.desc() if query.sort is None or query.sort.descending else tiebreaker.asc())
    return stmt.offset(query.page.skip).limit(query.page.limit)


def count_of(stmt: Select[Any], key: ColumnElement[Any]) -> Select[Any]:
    """Row count of an (unpaged) statement, keeping its joins but selecting only ``key``."""
    return select(func.count()).select_from(stmt.order_by(None).with_only_columns(key).subquery())


async def fetch_page(
    db: AsyncSession,
    stmt: Select[Any],
    query: ListQuery,
    columns: Columns,
    tiebreaker: ColumnElement[Any],
) -> tuple[list[Any], int]:
    """Run the filtered statement twice: once paged for rows, once for the total."""
    filtered = apply_filters(stmt, query, columns)
    total = (await db.execute(count_of(filtered, tiebreaker))).scalar_one()
    rows = (await db.execute(apply_order_and_page(filtered, query, columns, tiebreaker))).all()
    return list(rows), int(total)
