"""
Standardized pagination and list parameters for all routers.

Usage:
    from menu_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/restaurants")
    def list_restaurants(
        pagination: Pagination = Depends(get_pagination),
        db: Session = Depends(get_db),
    ):
        filters = pagination.to_filters(is_active=is_active)
        return success_response(RestaurantService(db).list_page(filters))
"""

from dataclasses import dataclass
from typing import Any, Literal

from fastapi import Query

from menu_api.repositories import ListFilters
from menu_shared.config.constants import Limits
from menu_shared.utils.exceptions import ValidationError


@dataclass
class Pagination:
    """
    Page based pagination plus the shared search and sort parameters.

    Attributes:
        page: 1-indexed page number
        limit: Items per page (1 to max_limit)
    """

    page: int = 1
    limit: int = Limits.DEFAULT_PAGE_SIZE
    search: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        self.page = max(1, self.page)
        self.limit = min(max(1, self.limit), self.max_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_filters(self, **criteria: Any) -> ListFilters:
        """
        Build repository filters. ``None`` criteria are dropped so that
        omitted query parameters do not filter.
        """
        return ListFilters(
            page=self.page,
            limit=self.limit,
            search=self.search,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            criteria={key: value for key, value in criteria.items() if value is not None},
        )


def get_pagination(
    page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Items per page",
    ),
    search: str | None = Query(
        default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH, description="Free text search"
    ),
    sort_by: str | None = Query(default=None, description="Column to sort by"),
    sort_order: Literal["asc", "desc"] | None = Query(default=None, description="Sort direction"),
) -> Pagination:
    """
    FastAPI dependency for list endpoints.

    Usage:
        @router.get("/items")
        def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(
        page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order
    )


def get_table_pagination(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=Limits.DEFAULT_TABLE_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    search: str | None = Query(default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH),
    sort_by: str | None = Query(default=None),
    sort_order: Literal["asc", "desc"] | None = Query(default=None),
) -> Pagination:
    """
    Pagination dependency with a larger default page.
    Restaurants usually list all their tables at once.
    """
    return Pagination(
        page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order
    )


def get_order_pagination(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=Limits.DEFAULT_ORDER_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
    search: str | None = Query(default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH),
    sort_by: str | None = Query(default=None),
    sort_order: Literal["asc", "desc"] | None = Query(default=None),
) -> Pagination:
    """Pagination dependency for orders (search matches order number and customer)."""
    return Pagination(
        page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order
    )


def get_search_term(
    q: str | None = Query(default=None, max_length=Limits.MAX_SEARCH_TERM_LENGTH, description="Search term"),
) -> str:
    """Required ``q`` parameter of the /search endpoints."""
    if q is None or not q.strip():
        raise ValidationError("Parâmetro de busca é obrigatório", field="q")
    return q.strip()
