"""
Menu Service - public, read-only views of a restaurant's catalog.

The complete menu is consumed by the mobile app; its field names are a
fixed contract:

    {"success": true,
     "restaurant": {"id", "uuid", "name", "logo", "address", "city", "phone"},
     "menu": [{"category_id", "uuid", "category_name", "image_url",
               "products": [{"id", "uuid", "name", "description",
                             "regular_price", "current_price",
                             "is_on_promotion", "image_url"}]}]}

Missing images are replaced by the placeholder image.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from menu_api.models import Category, Product, Restaurant
from menu_api.repositories import CategoryRepository, ListFilters, ProductRepository
from menu_api.services.domain.restaurant_service import RestaurantService
from menu_shared.config.constants import MENU_PLACEHOLDER_IMAGE
from menu_shared.utils.exceptions import NotFoundError
from menu_shared.utils.validators import is_uuid_identifier, parse_numeric_id, round_money


def restaurant_view(restaurant: Restaurant) -> dict[str, Any]:
    return {
        "id": restaurant.id,
        "uuid": restaurant.uuid,
        "name": restaurant.name,
        "logo": restaurant.logo,
        "address": restaurant.address,
        "city": restaurant.city,
        "phone": restaurant.phone,
    }


def product_view(product: Product) -> dict[str, Any]:
    return {
        "id": product.id,
        "uuid": product.uuid,
        "name": product.name,
        "description": product.description or "",
        "regular_price": float(product.regular_price),
        "current_price": float(product.current_price),
        "is_on_promotion": product.is_on_promotion,
        "image_url": product.image_url or MENU_PLACEHOLDER_IMAGE,
    }


def category_view(category: Category, products: list[Product]) -> dict[str, Any]:
    return {
        "category_id": category.id,
        "uuid": category.uuid,
        "category_name": category.name,
        "image_url": category.image_url or MENU_PLACEHOLDER_IMAGE,
        "products": [product_view(product) for product in products],
    }


class MenuService:
    """Builds the public menu views. No authentication involved."""

    def __init__(self, db: Session):
        self._db = db
        self._restaurants = RestaurantService(db)
        self._categories = CategoryRepository(db)
        self._products = ProductRepository(db)

    def complete_menu(
        self,
        restaurant_identifier: str | int,
        include_inactive: bool = False,
        include_unavailable: bool = False,
        category_id: int | None = None,
    ) -> dict[str, Any]:
        restaurant = self._restaurants.resolve_public(restaurant_identifier)
        categories = self._categories.find_for_menu(
            restaurant.id,
            include_inactive=include_inactive,
            include_unavailable=include_unavailable,
            category_id=category_id,
        )
        return {
            "success": True,
            "restaurant": restaurant_view(restaurant),
            "menu": [category_view(category, category.products) for category in categories],
        }

    def categories(self, restaurant_identifier: str | int) -> dict[str, Any]:
        menu = self.complete_menu(restaurant_identifier)
        return {
            "restaurant": menu["restaurant"],
            "categories": [
                {
                    "category_id": entry["category_id"],
                    "uuid": entry["uuid"],
                    "category_name": entry["category_name"],
                    "image_url": entry["image_url"],
                    "products_count": len(entry["products"]),
                }
                for entry in menu["menu"]
            ],
        }

    def category_products(self, restaurant_identifier: str | int, category_id: int) -> dict[str, Any]:
        menu = self.complete_menu(restaurant_identifier, category_id=category_id)
        if not menu["menu"]:
            raise NotFoundError("Categoria não encontrada ou sem produtos", category_id=category_id)
        entry = menu["menu"][0]
        return {
            "restaurant": menu["restaurant"],
            "category": {
                "category_id": entry["category_id"],
                "category_name": entry["category_name"],
                "image_url": entry["image_url"],
            },
            "products": entry["products"],
        }

    def promotions(self, restaurant_identifier: str | int) -> list[dict[str, Any]]:
        """Available products on promotion grouped by category, newest first."""
        restaurant = self._restaurants.resolve_public(restaurant_identifier)
        groups: dict[int, dict[str, Any]] = {}
        for product in self._products.find_promotions(restaurant.id):
            group = groups.setdefault(
                product.category_id,
                {
                    "category_id": product.category.id,
                    "category_name": product.category.name,
                    "products": [],
                },
            )
            group["products"].append(product_view(product))
        return list(groups.values())

    def item(self, restaurant_identifier: str | int, product_identifier: str) -> dict[str, Any]:
        """One product of the restaurant by id or uuid, whatever its availability."""
        restaurant = self._restaurants.resolve_public(restaurant_identifier)

        product = None
        if is_uuid_identifier(product_identifier):
            product = self._products.find_in_restaurant(restaurant.id, product_identifier)
        else:
            product_id = parse_numeric_id(product_identifier)
            if product_id:
                product = self._products.find_in_restaurant(restaurant.id, product_id)
        if product is None:
            raise NotFoundError("Item do menu não encontrado", product=str(product_identifier))

        return {
            "success": True,
            "restaurant": restaurant_view(restaurant),
            "category": {"id": product.category.id, "name": product.category.name},
            "product": product_view(product),
        }

    def stats(self, restaurant_identifier: str | int) -> dict[str, Any]:
        """Counts over active categories and available products."""
        restaurant = self._restaurants.resolve_public(restaurant_identifier)

        total_categories = self._categories.count(
            Category.restaurant_id == restaurant.id, Category.is_active.is_(True)
        )
        products = self._products.find_all(
            ListFilters(criteria={"restaurant_id": restaurant.id, "is_available": True})
        )
        total_products = len(products)
        average = (
            sum(product.current_price for product in products) / total_products
            if total_products
            else 0
        )

        return {
            "success": True,
            "restaurant_id": restaurant.id,
            "restaurant_name": restaurant.name,
            "stats": {
                "total_categories": total_categories,
                "total_products": total_products,
                "total_promotions": sum(1 for product in products if product.is_on_promotion),
                "average_price": float(round_money(average)),
            },
        }
