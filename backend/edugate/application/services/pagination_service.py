from collections.abc import Sequence
from math import ceil
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from edugate.interfaces.api.v1.schemas.pagination import PaginationMeta, PaginationParams


def apply_search_filter(query: Select, search: str | None, search_columns: list[Any]) -> Select:
    if search is None or not search_columns:
        return query
    pattern = f"%{search}%"
    return query.where(or_(*[column.ilike(pattern) for column in search_columns]))


def build_pagination_meta(*, offset: int, limit: int, total: int, filtered_total: int) -> PaginationMeta:
    return PaginationMeta(
        offset=offset,
        limit=limit,
        total=total,
        filtered_total=filtered_total,
        total_pages=ceil(total / limit) if total > 0 else 0,
        filtered_total_pages=ceil(filtered_total / limit) if filtered_total > 0 else 0,
        current_page=(offset // limit) + 1 if filtered_total > 0 else 0,
        has_next=(offset + limit) < filtered_total,
        has_prev=offset > 0,
    )


def paginate_scalars(
    db: Session,
    base_query: Select,
    params: PaginationParams,
    search_columns: list[Any],
) -> tuple[list[Any], PaginationMeta]:
    filtered_query = apply_search_filter(base_query, params.search, search_columns)

    total = db.execute(select(func.count()).select_from(base_query.order_by(None).subquery())).scalar_one()
    filtered_total = db.execute(select(func.count()).select_from(filtered_query.order_by(None).subquery())).scalar_one()
    items = list(db.execute(filtered_query.offset(params.offset).limit(params.limit)).scalars().all())

    meta = build_pagination_meta(offset=params.offset, limit=params.limit, total=total, filtered_total=filtered_total)
    return items, meta


def paginate_sequence(
    items: Sequence[Any],
    params: PaginationParams,
    *,
    total: int | None = None,
) -> tuple[list[Any], PaginationMeta]:
    """Slice rows that were already filtered in Python."""
    page = list(items[params.offset : params.offset + params.limit])
    meta = build_pagination_meta(
        offset=params.offset,
        limit=params.limit,
        total=total if total is not None else len(items),
        filtered_total=len(items),
    )
    return page, meta
