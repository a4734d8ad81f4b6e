"""
Repository Pattern implementation.
Centralizes data access: filters, search, sorting, pagination and eager loading.

Usage:
    from menu_api.repositories import ProductRepository, ListFilters

    repo = ProductRepository(db)
    products, total = repo.find_page(ListFilters(page=2, criteria={"restaurant_id": 1}))
    product = repo.find_by_id(123)
"""

from .base import BaseRepository, ListFilters
from .restaurant import RestaurantRepository
from .category import CategoryRepository
from .product import ProductRepository
from .table import TableRepository
from .order import OrderRepository
from .user import ActivityRepository, AuthTokenRepository, UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "ListFilters",
    # Catalog
    "RestaurantRepository",
    "CategoryRepository",
    "ProductRepository",
    # Tables and orders
    "TableRepository",
    "OrderRepository",
    # Users
    "UserRepository",
    "AuthTokenRepository",
    "ActivityRepository",
]
