"""Offset pagination metadata."""

from __future__ import annotations

import math
from typing import Any

from donatehub.reporting.query import PageRequest


def pagination_meta(page: PageRequest, total_items: int) -> dict[str, Any]:
    """Pagination block; ``total_pages = ceil(total_items / limit)``."""
    total_pages = math.ceil(total_items / page.limit) if total_items else 0
    has_next = page.page < total_pages
    has_prev = page.page > 1
    return {
        "current_page": page.page,
        "total_pages": total_pages,
        "total_items": total_items,
        "items_per_page": page.limit,
        "has_next": has_next,
        "has_prev": has_prev,
        "next_page": page.page + 1 if has_next else None,
        "prev_page": page.page - 1 if has_prev else None,
    }


def paginated(items: list[Any], page: PageRequest, total_items: int, **extra: Any) -> dict[str, Any]:
    """``{items, pagination, **extra}``."""
    return {"items": items, "pagination": pagination_meta(page, total_items), **extra}
