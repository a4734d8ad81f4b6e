"""
Category Service - menu categories of a restaurant.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.orm import Session

from menu_api.models import Category
from menu_api.repositories import CategoryRepository, ListFilters, RestaurantRepository
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.permissions import ensure_restaurant_access
from menu_shared.utils.resource_schemas import CategoryOutput
from menu_shared.config.logging import get_logger
from menu_shared.utils.exceptions import NotFoundError, ValidationError
from menu_shared.utils.responses import paginated

logger = get_logger(__name__)


class CategoryService(BaseCRUDService[Category, CategoryOutput]):
    """
    Service for category management.

    ``sort_order`` defaults to the next free position in the restaurant.
    """

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=CategoryRepository(db),
            output_schema=CategoryOutput,
            entity_name="Category",
            not_found_message="Categoria não encontrada",
            user=user,
        )
        self._restaurants = RestaurantRepository(db)

    @property
    def repo(self) -> CategoryRepository:
        return self._repo

    def _with_counts(self, rows: Sequence[Category]) -> list[CategoryOutput]:
        items = self.to_outputs(rows)
        counts = self.repo.products_count_map([row.id for row in rows])
        for item in items:
            item.products_count = counts.get(item.id, 0)
        return items

    def list_page(self, filters: ListFilters, with_counts: bool = False) -> dict[str, Any]:
        rows, total = self.repo.find_page(filters)
        items = self._with_counts(rows) if with_counts else self.to_outputs(rows)
        return paginated(items, filters.page, filters.limit, total)

    def list_all(self, filters: ListFilters, with_counts: bool = False) -> list[CategoryOutput]:
        rows = self.repo.find_all(filters)
        return self._with_counts(rows) if with_counts else self.to_outputs(rows)

    def _validate_create(self, data: dict[str, Any]) -> None:
        restaurant_id = data.get("restaurant_id")
        if not restaurant_id:
            raise ValidationError("ID do restaurante é obrigatório", field="restaurant_id")

        self.require_restaurant(restaurant_id)

        if data.get("sort_order") is None:
            data["sort_order"] = self.repo.next_sort_order(restaurant_id)

    def reorder(self, restaurant_id: int, items: list[dict[str, int]]) -> list[CategoryOutput]:
        """
        Overwrite ``sort_order`` for the given categories of a restaurant.

        Every id must belong to the restaurant; the whole batch is applied in
        one transaction.
        """
        self.require_restaurant(restaurant_id)

        ids = [item["id"] for item in items]
        categories = {c.id: c for c in self.repo.find_in_restaurant(restaurant_id, ids)}
        missing = [category_id for category_id in ids if category_id not in categories]
        if missing:
            raise ValidationError(
                "Categorias não pertencem a este restaurante",
                field="categories",
                missing_ids=missing,
            )

        for item in items:
            categories[item["id"]].sort_order = item["sort_order"]
        self.commit(action="reorder", restaurant_id=restaurant_id)

        logger.info("Categories reordered", restaurant_id=restaurant_id, count=len(items))
        ordered = self.repo.find_all(
            ListFilters(sort_by="sort_order", sort_order="asc", criteria={"restaurant_id": restaurant_id})
        )
        return self.to_outputs(ordered)

    def require_restaurant(self, restaurant_id: int) -> None:
        ensure_restaurant_access(self.user, restaurant_id)
        if not self._restaurants.exists(restaurant_id):
            raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)

    def stats(self, restaurant_id: int | None = None) -> dict[str, Any]:
        if restaurant_id:
            self.require_restaurant(restaurant_id)
        return {**self.repo.stats(restaurant_id), "restaurant_id": restaurant_id}
