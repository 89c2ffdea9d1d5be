from fastapi import Query

from edugate.interfaces.api.v1.schemas.pagination import MAX_PAGE_SIZE, PaginationParams


def get_pagination_params(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None, description="Case-insensitive match on the entity's search columns"),
) -> PaginationParams:
    # Cache keys include the search term, so "  x " and "x" share one entry.
    return PaginationParams(offset=offset, limit=limit, search=search)
