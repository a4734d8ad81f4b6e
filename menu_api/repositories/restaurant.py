"""
Restaurant Repository - Data access for restaurants.
"""

from typing import Sequence

from sqlalchemy import Select

from menu_api.models import Restaurant
from menu_shared.utils.validators import escape_like
from .base import BaseRepository, ListFilters


class RestaurantRepository(BaseRepository[Restaurant]):
    """
    Repository for Restaurant entities.

    Criteria: ``is_active``, ``city`` (case-insensitive contains).
    """

    model = Restaurant
    search_columns = ("name", "description")
    sort_columns = ("name", "city", "created_at", "updated_at")
    default_sort = "created_at"
    default_direction = "desc"

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        restaurant_id = filters.get("id")
        if restaurant_id is not None:
            query = query.where(Restaurant.id == restaurant_id)

        is_active = filters.get("is_active")
        if is_active is not None:
            query = query.where(Restaurant.is_active.is_(is_active))

        city = filters.get("city")
        if city:
            query = query.where(Restaurant.city.ilike(f"%{escape_like(city)}%", escape="\\"))

        return query

    def find_active(self, restaurant_id: int) -> Restaurant | None:
        return self._one(
            self._base_query().where(
                Restaurant.id == restaurant_id,
                Restaurant.is_active.is_(True),
            )
        )

    def find_active_by_uuid(self, uuid: str) -> Restaurant | None:
        return self._one(
            self._base_query().where(
                Restaurant.uuid == uuid,
                Restaurant.is_active.is_(True),
            )
        )

    def find_by_city(self, city: str, filters: ListFilters) -> tuple[Sequence[Restaurant], int]:
        filters.criteria["city"] = city
        return self.find_page(filters)

    def stats(self) -> dict[str, int]:
        total = self.count()
        active = self.count(Restaurant.is_active.is_(True))
        return {"total": total, "active": active, "inactive": total - active}
