"""
Domain Services.

Services contain the business rules and own the transaction. They use
repositories for data access and return output schemas.

    Router (thin controller)
        ↓
    Service (business logic)
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from menu_api.services.domain import TableService

    service = TableService(db, user)
    result = service.create_batch(restaurant_id, [1, 2, 3], capacity=4)
"""

from .restaurant_service import RestaurantService
from .category_service import CategoryService
from .product_service import ProductService
from .table_service import TableService
from .order_service import OrderService
from .menu_service import MenuService
from .qr_service import QrCodeService
from .activity_service import ActivityService
from .user_service import UserService
from .auth_service import AuthService

__all__ = [
    # Catalog
    "RestaurantService",
    "CategoryService",
    "ProductService",
    "MenuService",
    # Tables, orders and QR codes
    "TableService",
    "OrderService",
    "QrCodeService",
    # Users and authentication
    "UserService",
    "AuthService",
    "ActivityService",
]
