"""
Product Service - products, prices and promotions.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from menu_api.models import Category, Product
from menu_api.repositories import CategoryRepository, ListFilters, ProductRepository
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.permissions import ensure_restaurant_access
from menu_shared.utils.resource_schemas import PROMOTION_PRICE_MESSAGE, ProductOutput
from menu_shared.config.logging import get_logger
from menu_shared.utils.exceptions import NotFoundError, ValidationError

logger = get_logger(__name__)


class ProductService(BaseCRUDService[Product, ProductOutput]):
    """
    Service for product management.

    A product belongs to a restaurant through its category. ``current_price``
    defaults to ``regular_price`` and must stay below it while the product is
    on promotion.
    """

    active_field = "is_available"
    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=ProductRepository(db),
            output_schema=ProductOutput,
            entity_name="Product",
            not_found_message="Produto não encontrado",
            user=user,
        )
        self._categories = CategoryRepository(db)

    @property
    def repo(self) -> ProductRepository:
        return self._repo

    def restaurant_id_of(self, entity: Product) -> int | None:
        return entity.category.restaurant_id if entity.category else None

    def require_category(self, category_id: int) -> Category:
        """Existing category the caller may reach."""
        category = self._categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError("Categoria não encontrada", category_id=category_id)
        ensure_restaurant_access(self.user, category.restaurant_id)
        return category

    # =========================================================================
    # Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        category_id = data.get("category_id")
        if not category_id:
            raise ValidationError("ID da categoria é obrigatório", field="category_id")
        self.require_category(category_id)

        if data.get("current_price") is None:
            data["current_price"] = data["regular_price"]
        self._check_promotion(
            data.get("is_on_promotion", False), data["current_price"], data["regular_price"]
        )

        if data.get("sort_order") is None:
            data["sort_order"] = self.repo.next_sort_order(category_id)

    def _validate_update(self, entity: Product, data: dict[str, Any]) -> None:
        category_id = data.get("category_id")
        if category_id and category_id != entity.category_id:
            self.require_category(category_id)

        self._check_promotion(
            data.get("is_on_promotion", entity.is_on_promotion),
            data.get("current_price", entity.current_price),
            data.get("regular_price", entity.regular_price),
        )

    @staticmethod
    def _check_promotion(
        is_on_promotion: bool, current_price: Decimal | None, regular_price: Decimal | None
    ) -> None:
        if is_on_promotion and current_price is not None and regular_price is not None:
            if Decimal(str(current_price)) >= Decimal(str(regular_price)):
                raise ValidationError(
                    PROMOTION_PRICE_MESSAGE,
                    field="current_price",
                    error_type="custom.promotionPrice",
                )

    # =========================================================================
    # Domain operations
    # =========================================================================

    def set_promotion(self, product_id: int, promotion_price: Decimal | None) -> ProductOutput:
        """
        Apply a promotional price, or end the promotion with ``None``.

        Ending a promotion restores ``current_price`` to ``regular_price``.
        """
        product = self.get_entity(product_id)
        if promotion_price is not None:
            if promotion_price >= product.regular_price:
                raise ValidationError(
                    PROMOTION_PRICE_MESSAGE,
                    field="promotion_price",
                    error_type="custom.promotionPrice",
                )
            product.is_on_promotion = True
            product.current_price = promotion_price
        else:
            product.is_on_promotion = False
            product.current_price = product.regular_price

        self.commit(action="promotion", entity_id=product_id)
        self._db.refresh(product)
        logger.info(
            "Product promotion changed",
            product_id=product_id,
            on_promotion=product.is_on_promotion,
        )
        return self.to_output(product)

    def duplicate(self, entity_id: int, overrides: dict[str, Any]) -> ProductOutput:
        source = self.get_entity(entity_id)
        regular_price = overrides.get("regular_price")
        if regular_price is not None and not source.is_on_promotion:
            overrides = {**overrides, "current_price": regular_price}
        return super().duplicate(entity_id, overrides)

    def move(self, product_id: int, category_id: int) -> ProductOutput:
        """Move a product to the end of another category."""
        product = self.get_entity(product_id)
        self.require_category(category_id)

        product.category_id = category_id
        product.sort_order = self.repo.next_sort_order(category_id)
        self.commit(action="move", entity_id=product_id, category_id=category_id)

        self._db.expire(product, ["category"])
        self._db.refresh(product)
        return self.to_output(product)

    def reorder(self, category_id: int, items: list[dict[str, int]]) -> list[ProductOutput]:
        """Overwrite ``sort_order`` for products of one category in one transaction."""
        self.require_category(category_id)

        ids = [item["id"] for item in items]
        products = {p.id: p for p in self.repo.find_in_category(category_id, ids)}
        missing = [product_id for product_id in ids if product_id not in products]
        if missing:
            raise ValidationError(
                "Produtos não pertencem a esta categoria",
                field="products",
                missing_ids=missing,
            )

        for item in items:
            products[item["id"]].sort_order = item["sort_order"]
        self.commit(action="reorder", category_id=category_id)

        ordered = self.repo.find_all(
            ListFilters(sort_by="sort_order", sort_order="asc", criteria={"category_id": category_id})
        )
        return self.to_outputs(ordered)

    def promotions_page(self, filters: ListFilters) -> dict[str, Any]:
        filters.criteria.update({"is_available": True, "is_on_promotion": True})
        filters.sort_by = filters.sort_by or "created_at"
        filters.sort_order = filters.sort_order or "desc"
        return self.list_page(filters)

    def stats(
        self, category_id: int | None = None, restaurant_id: int | None = None
    ) -> dict[str, Any]:
        if category_id:
            self.require_category(category_id)
        if restaurant_id:
            ensure_restaurant_access(self.user, restaurant_id)
        return {
            **self.repo.stats(category_id=category_id, restaurant_id=restaurant_id),
            "category_id": category_id,
            "restaurant_id": restaurant_id,
        }
