# Overview: Shared paging/ordering for list endpoints.
from __future__ import annotations

from ..validation import ListParams


def paginate(query, model, params: ListParams, key: str) -> dict:
    """
    Apply orderBy/order/page/limit to a query.

    `params.order_by` has already been checked against the resource's column
    allowlist. Ties are broken by primary key so pages never overlap.

    Returns {key: [...], "total", "page", "limit"} where total is the unpaged count.
    """
    total = query.order_by(None).count()

    column = getattr(model, params.order_by)
    ordering = column.desc() if params.order == "desc" else column.asc()
    pk = model.__mapper__.primary_key[0]
    tie_break = pk.desc() if params.order == "desc" else pk.asc()

    rows = (
        query.order_by(ordering, tie_break)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )

    return {
        key: [r.to_dict() for r in rows],
        "total": total,
        "page": params.page,
        "limit": params.limit,
    }
