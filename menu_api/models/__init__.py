"""
SQLAlchemy ORM models.

Import from here so every table is registered on ``Base.metadata``:

    from menu_api.models import Base, Restaurant, Category, Product
"""

from .base import Base, PublicIdMixin, TimestampMixin, as_aware, utcnow
from .restaurant import Restaurant
from .catalog import Category, Product
from .table import Table
from .order import Order, OrderItem
from .user import User, AuthToken
from .audit import ActivityLog

__all__ = [
    "Base",
    "PublicIdMixin",
    "TimestampMixin",
    "utcnow",
    "as_aware",
    "Restaurant",
    "Category",
    "Product",
    "Table",
    "Order",
    "OrderItem",
    "User",
    "AuthToken",
    "ActivityLog",
]
