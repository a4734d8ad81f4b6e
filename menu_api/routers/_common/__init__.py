"""
Common utilities shared across routers.
"""

from .deps import (
    get_client_ip,
    get_current_user,
    get_optional_user,
    get_user_agent,
    require_restaurant_access,
    require_roles,
    require_self_or_admin,
    require_super_admin,
    require_user_management,
)
from .pagination import (
    Pagination,
    get_order_pagination,
    get_pagination,
    get_search_term,
    get_table_pagination,
)

__all__ = [
    # Authentication
    "get_current_user",
    "get_optional_user",
    "require_roles",
    "require_super_admin",
    "require_user_management",
    "require_restaurant_access",
    "require_self_or_admin",
    # Request metadata
    "get_client_ip",
    "get_user_agent",
    # Pagination
    "Pagination",
    "get_pagination",
    "get_table_pagination",
    "get_order_pagination",
    "get_search_term",
]
