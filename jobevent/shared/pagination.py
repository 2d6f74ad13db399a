"""Page/limit pagination shared by list endpoints"""

import math
from typing import Any

from sqlalchemy.orm import Query

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def normalize(page: int, limit: int) -> tuple[int, int]:
    page = max(1, page or 1)
    limit = max(1, min(limit or DEFAULT_LIMIT, MAX_LIMIT))
    return page, limit


def paginate_query(query: Query, page: int, limit: int) -> tuple[list, int]:
    """Run a count plus an offset/limit fetch. Returns (items, total)."""
    page, limit = normalize(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def paginate_list(items: list, page: int, limit: int) -> tuple[list, int]:
    """Slice an already-materialized list. Returns (page_items, total)."""
    page, limit = normalize(page, limit)
    start = (page - 1) * limit
    return items[start : start + limit], len(items)


def page_envelope(data: list, total: int, page: int, limit: int, **extra: Any) -> dict:
    """{success, count, total, page, pages, data} response body"""
    page, limit = normalize(page, limit)
    body = {
        "success": True,
        "count": len(data),
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit) if total else 0,
        "data": data,
    }
    body.update(extra)
    return body
