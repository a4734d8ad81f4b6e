"""
Table Repository - Data access for restaurant tables.
"""

from typing import Sequence

from sqlalchemy import Select, select

from menu_api.models import Table
from .base import BaseRepository, ListFilters


class TableRepository(BaseRepository[Table]):
    """
    Repository for Table entities.

    Criteria: ``restaurant_id``, ``is_active``, ``qr_code_generated``.
    """

    model = Table
    search_columns = ("name", "location")
    sort_columns = ("table_number", "name", "capacity", "created_at", "updated_at")
    default_sort = "table_number"
    default_direction = "asc"

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        restaurant_id = filters.get("restaurant_id")
        if restaurant_id:
            query = query.where(Table.restaurant_id == restaurant_id)

        is_active = filters.get("is_active")
        if is_active is not None:
            query = query.where(Table.is_active.is_(is_active))

        qr_code_generated = filters.get("qr_code_generated")
        if qr_code_generated is not None:
            query = query.where(Table.qr_code_generated.is_(qr_code_generated))

        return query

    def find_by_number(
        self, restaurant_id: int, table_number: int, active_only: bool = False
    ) -> Table | None:
        query = self._base_query().where(
            Table.restaurant_id == restaurant_id,
            Table.table_number == table_number,
        )
        if active_only:
            query = query.where(Table.is_active.is_(True))
        return self._one(query)

    def find_by_numbers(
        self, restaurant_id: int, numbers: list[int] | None = None, active_only: bool = True
    ) -> Sequence[Table]:
        """Tables of a restaurant ordered by number, optionally restricted to ``numbers``."""
        query = self._base_query().where(Table.restaurant_id == restaurant_id)
        if numbers:
            query = query.where(Table.table_number.in_(numbers))
        if active_only:
            query = query.where(Table.is_active.is_(True))
        return self._rows(query.order_by(Table.table_number.asc()))

    def existing_numbers(self, restaurant_id: int, numbers: list[int]) -> set[int]:
        """Subset of ``numbers`` already taken in the restaurant, active or not."""
        if not numbers:
            return set()
        rows = self._db.execute(
            select(Table.table_number).where(
                Table.restaurant_id == restaurant_id,
                Table.table_number.in_(numbers),
            )
        ).scalars()
        return set(rows)

    def stats(self, restaurant_id: int | None = None) -> dict[str, int]:
        scope = [Table.restaurant_id == restaurant_id] if restaurant_id else []
        total = self.count(*scope)
        active = self.count(*scope, Table.is_active.is_(True))
        with_qr = self.count(*scope, Table.qr_code_generated.is_(True))
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "with_qr_code": with_qr,
        }
