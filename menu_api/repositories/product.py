"""
Product Repository - Data access for products.

Products reach their restaurant through their category, so every query
joins ``categories`` to support restaurant scoped filters.
"""

from typing import Any, Sequence

from sqlalchemy import Select, case, func, select
from sqlalchemy.orm import contains_eager

from menu_api.models import Category, Product
from .base import BaseRepository, ListFilters


class ProductRepository(BaseRepository[Product]):
    """
    Repository for Product entities.

    Criteria: ``category_id``, ``restaurant_id``, ``is_available``,
    ``is_on_promotion``, ``min_price`` and ``max_price`` (on current_price).
    """

    model = Product
    search_columns = ("name", "description")
    sort_columns = (
        "name",
        "current_price",
        "regular_price",
        "sort_order",
        "created_at",
        "updated_at",
    )
    default_sort = "sort_order"
    default_direction = "asc"

    def _base_query(self) -> Select:
        return select(Product).join(Product.category)

    def _load_options(self) -> list[Any]:
        return [contains_eager(Product.category)]

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        category_id = filters.get("category_id")
        if category_id:
            query = query.where(Product.category_id == category_id)

        restaurant_id = filters.get("restaurant_id")
        if restaurant_id:
            query = query.where(Category.restaurant_id == restaurant_id)

        is_available = filters.get("is_available")
        if is_available is not None:
            query = query.where(Product.is_available.is_(is_available))

        is_on_promotion = filters.get("is_on_promotion")
        if is_on_promotion is not None:
            query = query.where(Product.is_on_promotion.is_(is_on_promotion))

        min_price = filters.get("min_price")
        if min_price is not None:
            query = query.where(Product.current_price >= min_price)

        max_price = filters.get("max_price")
        if max_price is not None:
            query = query.where(Product.current_price <= max_price)

        return query

    def find_in_restaurant(self, restaurant_id: int, product_ref: int | str) -> Product | None:
        """Product by id or uuid, only when it belongs to the restaurant."""
        query = self._base_query().where(Category.restaurant_id == restaurant_id)
        if isinstance(product_ref, str):
            query = query.where(Product.uuid == product_ref)
        else:
            query = query.where(Product.id == product_ref)
        return self._one(query)

    def find_in_category(self, category_id: int, product_ids: list[int]) -> Sequence[Product]:
        if not product_ids:
            return []
        return self._rows(
            self._base_query().where(
                Product.category_id == category_id,
                Product.id.in_(product_ids),
            )
        )

    def find_promotions(self, restaurant_id: int) -> Sequence[Product]:
        """Available products on promotion, newest first."""
        query = (
            self._base_query()
            .where(
                Category.restaurant_id == restaurant_id,
                Product.is_available.is_(True),
                Product.is_on_promotion.is_(True),
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
        )
        return self._rows(query)

    def next_sort_order(self, category_id: int) -> int:
        current = self.max_value("sort_order", Product.category_id == category_id)
        return (current or 0) + 1

    def stats(
        self, category_id: int | None = None, restaurant_id: int | None = None
    ) -> dict[str, Any]:
        """
        Aggregates over the products of a category or a restaurant.

        ``on_promotion`` counts available products only. ``average_price``
        averages the current price of every product, 0 when there are none.
        """
        available = Product.is_available.is_(True)
        stmt = select(
            func.count(Product.id),
            func.sum(case((available, 1), else_=0)),
            func.sum(case((available & Product.is_on_promotion.is_(True), 1), else_=0)),
            func.avg(Product.current_price),
        ).select_from(Product).join(Product.category)

        if category_id:
            stmt = stmt.where(Product.category_id == category_id)
        if restaurant_id:
            stmt = stmt.where(Category.restaurant_id == restaurant_id)

        total, available_count, promotions, average = self._db.execute(stmt).one()
        total = total or 0
        available_count = int(available_count or 0)
        return {
            "total": total,
            "available": available_count,
            "unavailable": total - available_count,
            "on_promotion": int(promotions or 0),
            "average_price": float(average) if average is not None else 0,
        }
