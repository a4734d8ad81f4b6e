"""
Services module for business logic.

- domain/: application services, one per resource
- base_service: generic CRUD service the domain services build on
- permissions: restaurant scoping rules
"""

from .base_service import BaseCRUDService
from .permissions import (
    can_access_restaurant,
    ensure_restaurant_access,
    is_restaurant_user,
    is_super_admin,
    scoped_restaurant_id,
)

__all__ = [
    "BaseCRUDService",
    "can_access_restaurant",
    "ensure_restaurant_access",
    "is_restaurant_user",
    "is_super_admin",
    "scoped_restaurant_id",
]
