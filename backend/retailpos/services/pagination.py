# Overview: Page/limit pagination shared by the list endpoints.

from __future__ import annotations

from flask import current_app


def clamp_page(page: int | None, limit: int | None) -> tuple[int, int]:
    default = current_app.config.get("DEFAULT_PAGE_SIZE", 50)
    ceiling = current_app.config.get("MAX_PAGE_SIZE", 200)
    page = max(page or 1, 1)
    limit = max(1, min(limit or default, ceiling))
    return page, limit


def paginate(query, page: int | None, limit: int | None) -> tuple[list, dict]:
    """
    Apply offset pagination to an ordered query.

    Returns (rows, pagination) where pagination is {page, limit, total, pages}.
    pages is at least 1 so clients can always render "page 1 of N".
    """
    page, limit = clamp_page(page, limit)

    total = query.order_by(None).count()
    pages = (total + limit - 1) // limit if total > 0 else 1
    rows = query.offset((page - 1) * limit).limit(limit).all()

    return rows, {"page": page, "limit": limit, "total": total, "pages": pages}
