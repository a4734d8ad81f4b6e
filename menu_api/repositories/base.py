"""
Base Repository implementation.
Provides the common list / lookup / paginate patterns shared by all entities.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from menu_shared.config.constants import Limits
from menu_shared.utils.validators import escape_like

ModelT = TypeVar("ModelT")


@dataclass
class ListFilters:
    """
    Filters for list queries.

    ``criteria`` holds entity specific filters (``restaurant_id``,
    ``is_active`` ...); each repository decides how to apply them.
    """

    page: int = 1
    limit: int = Limits.DEFAULT_PAGE_SIZE
    search: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    criteria: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.page = max(1, self.page)
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        if self.search:
            self.search = self.search.strip()[:Limits.MAX_SEARCH_TERM_LENGTH] or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def get(self, key: str, default: Any = None) -> Any:
        value = self.criteria.get(key, default)
        return default if value is None else value


class BaseRepository(Generic[ModelT]):
    """
    Repository with common query helpers.

    Subclasses set:
    - model: the SQLAlchemy model class
    - search_columns: columns matched case-insensitively by ``search``
    - sort_columns: whitelist of sortable column names
    - default_sort / default_direction
    and override ``_apply_filters`` / ``_base_query`` when needed.
    """

    model: type[ModelT]
    search_columns: tuple[str, ...] = ("name",)
    sort_columns: tuple[str, ...] = ("created_at",)
    default_sort: str = "created_at"
    default_direction: str = "desc"

    def __init__(self, db: Session):
        self._db = db

    @property
    def db(self) -> Session:
        return self._db

    def _base_query(self) -> Select:
        """Plain select of the model. Override to add joins used by filters."""
        return select(self.model)

    def _load_options(self) -> list[Any]:
        """Eager loading applied when rows are fetched, never when counting."""
        return []

    def _rows(self, query: Select) -> Sequence[ModelT]:
        options = self._load_options()
        if options:
            query = query.options(*options)
        return self._db.execute(query).scalars().unique().all()

    def _one(self, query: Select) -> ModelT | None:
        rows = self._rows(query.limit(1))
        return rows[0] if rows else None

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        """Apply entity-specific criteria. Override per entity."""
        return query

    def _apply_search(self, query: Select, search: str | None) -> Select:
        if not search:
            return query
        pattern = f"%{escape_like(search)}%"
        clauses = [
            getattr(self.model, column).ilike(pattern, escape="\\")
            for column in self.search_columns
        ]
        return query.where(or_(*clauses))

    def _apply_sort(self, query: Select, filters: ListFilters) -> Select:
        sort_by = filters.sort_by if filters.sort_by in self.sort_columns else self.default_sort
        direction = filters.sort_order or self.default_direction
        column = getattr(self.model, sort_by)
        ordered = column.asc() if direction == "asc" else column.desc()
        tie_breaker = self.model.id.asc() if direction == "asc" else self.model.id.desc()
        return query.order_by(ordered, tie_breaker)

    def _filtered(self, query: Select, filters: ListFilters) -> Select:
        query = self._apply_filters(query, filters)
        return self._apply_search(query, filters.search)

    # =========================================================================
    # Queries
    # =========================================================================

    def find_page(self, filters: ListFilters) -> tuple[Sequence[ModelT], int]:
        """
        One page of entities and the total count matching the filters.
        """
        query = self._filtered(self._base_query(), filters)
        total = self.count_query(query)

        query = self._apply_sort(query, filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._rows(query), total

    def find_all(self, filters: ListFilters | None = None) -> Sequence[ModelT]:
        """Every entity matching the filters, without pagination."""
        filters = filters or ListFilters()
        query = self._apply_sort(self._filtered(self._base_query(), filters), filters)
        return self._rows(query)

    def count_query(self, query: Select) -> int:
        count_stmt = select(func.count()).select_from(
            query.order_by(None).subquery()
        )
        return self._db.scalar(count_stmt) or 0

    def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        return self._db.scalar(stmt) or 0

    def find_by_id(self, entity_id: int) -> ModelT | None:
        return self._one(self._base_query().where(self.model.id == entity_id))

    def find_by_uuid(self, uuid: str) -> ModelT | None:
        return self._one(self._base_query().where(self.model.uuid == uuid))

    def find_by_ids(self, entity_ids: list[int]) -> Sequence[ModelT]:
        if not entity_ids:
            return []
        return self._rows(self._base_query().where(self.model.id.in_(entity_ids)))

    def exists(self, entity_id: int) -> bool:
        return self.count(self.model.id == entity_id) > 0

    def max_value(self, column: str, *criteria: Any) -> int | None:
        stmt = select(func.max(getattr(self.model, column)))
        if criteria:
            stmt = stmt.where(*criteria)
        return self._db.scalar(stmt)

    # =========================================================================
    # Writes (flush only, services own the transaction)
    # =========================================================================

    def add(self, entity: ModelT) -> ModelT:
        self._db.add(entity)
        self._db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self._db.delete(entity)
        self._db.flush()
