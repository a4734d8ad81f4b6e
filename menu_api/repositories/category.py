"""
Category Repository - Data access for menu categories.
"""

from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.orm import joinedload, selectinload, with_loader_criteria

from menu_api.models import Category, Product
from .base import BaseRepository, ListFilters


class CategoryRepository(BaseRepository[Category]):
    """
    Repository for Category entities.

    Criteria: ``restaurant_id``, ``is_active``.
    Rows are returned with their restaurant loaded.
    """

    model = Category
    search_columns = ("name", "description")
    sort_columns = ("name", "sort_order", "created_at", "updated_at")
    default_sort = "sort_order"
    default_direction = "asc"

    def _load_options(self) -> list[Any]:
        return [joinedload(Category.restaurant)]

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        restaurant_id = filters.get("restaurant_id")
        if restaurant_id:
            query = query.where(Category.restaurant_id == restaurant_id)

        is_active = filters.get("is_active")
        if is_active is not None:
            query = query.where(Category.is_active.is_(is_active))

        return query

    def next_sort_order(self, restaurant_id: int) -> int:
        current = self.max_value("sort_order", Category.restaurant_id == restaurant_id)
        return (current or 0) + 1

    def products_count_map(self, category_ids: list[int]) -> dict[int, int]:
        """Number of products (any availability) per category id."""
        if not category_ids:
            return {}
        rows = self._db.execute(
            select(Product.category_id, func.count(Product.id))
            .where(Product.category_id.in_(category_ids))
            .group_by(Product.category_id)
        ).all()
        counts = {category_id: 0 for category_id in category_ids}
        counts.update({category_id: total for category_id, total in rows})
        return counts

    def find_in_restaurant(self, restaurant_id: int, category_ids: list[int]) -> Sequence[Category]:
        if not category_ids:
            return []
        return self._rows(
            self._base_query().where(
                Category.restaurant_id == restaurant_id,
                Category.id.in_(category_ids),
            )
        )

    def find_for_menu(
        self,
        restaurant_id: int,
        include_inactive: bool = False,
        include_unavailable: bool = False,
        category_id: int | None = None,
    ) -> Sequence[Category]:
        """
        Categories of a restaurant with their products, both in sort order.

        Unavailable products are left out of ``Category.products`` unless
        ``include_unavailable`` is set.
        """
        query = select(Category).where(Category.restaurant_id == restaurant_id)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        if category_id:
            query = query.where(Category.id == category_id)

        query = query.options(selectinload(Category.products))
        if not include_unavailable:
            query = query.options(
                with_loader_criteria(Product, Product.is_available.is_(True))
            )

        query = query.order_by(Category.sort_order.asc(), Category.id.asc()).execution_options(
            populate_existing=True
        )
        return self._db.execute(query).scalars().unique().all()

    def stats(self, restaurant_id: int | None = None) -> dict[str, int]:
        scope = [Category.restaurant_id == restaurant_id] if restaurant_id else []
        total = self.count(*scope)
        active = self.count(*scope, Category.is_active.is_(True))
        return {"total": total, "active": active, "inactive": total - active}
