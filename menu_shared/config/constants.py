"""
Centralized constants for the backend application.

Usage:
    from menu_shared.config.constants import Roles, OrderStatus

    if user["role"] == Roles.SUPER_ADMIN:
        ...

    if order.status == OrderStatus.PENDING:
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPER_ADMIN: Final[str] = "super_admin"
    RESTAURANT_USER: Final[str] = "restaurant_user"

    ALL: Final[list[str]] = [SUPER_ADMIN, RESTAURANT_USER]


# =============================================================================
# Order Status
# =============================================================================


class OrderStatus:
    """Order status constants."""

    PENDING: Final[str] = "pending"
    CONFIRMED: Final[str] = "confirmed"
    PREPARING: Final[str] = "preparing"
    READY: Final[str] = "ready"
    DELIVERED: Final[str] = "delivered"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[list[str]] = [PENDING, CONFIRMED, PREPARING, READY, DELIVERED, CANCELLED]
    KITCHEN_VISIBLE: Final[list[str]] = [CONFIRMED, PREPARING]


# Timestamp column stamped when an order enters the given status
ORDER_STATUS_TIMESTAMPS: Final[dict[str, str]] = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.READY: "ready_at",
    OrderStatus.DELIVERED: "delivered_at",
}


# =============================================================================
# Auth Tokens
# =============================================================================


class TokenType:
    """Persisted auth token kinds."""

    ACCESS: Final[str] = "access"
    REFRESH: Final[str] = "refresh"
    RESET_PASSWORD: Final[str] = "reset_password"

    ALL: Final[list[str]] = [ACCESS, REFRESH, RESET_PASSWORD]


# =============================================================================
# Defaults
# =============================================================================


DEFAULT_RESTAURANT_LOGO: Final[str] = "logo_default.png"
DEFAULT_CATEGORY_IMAGE: Final[str] = "category_default.png"
DEFAULT_PRODUCT_IMAGE: Final[str] = "product_default.png"

# Image served to menu clients when a category or product has none
MENU_PLACEHOLDER_IMAGE: Final[str] = (
    "https://mannauniverse-aybw3.kinsta.app/assets/images/category_default.png"
)

DUPLICATE_SUFFIX: Final[str] = " (Cópia)"


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 10
    MAX_PAGE_SIZE: Final[int] = 100
    DEFAULT_TABLE_PAGE_SIZE: Final[int] = 50
    DEFAULT_ORDER_PAGE_SIZE: Final[int] = 20

    # String lengths
    MAX_NAME_LENGTH: Final[int] = 255
    MAX_DESCRIPTION_LENGTH: Final[int] = 2000
    MAX_ADDRESS_LENGTH: Final[int] = 1000
    MAX_CITY_LENGTH: Final[int] = 100
    MAX_PHONE_LENGTH: Final[int] = 20
    MAX_URL_LENGTH: Final[int] = 500
    MAX_SEARCH_TERM_LENGTH: Final[int] = 255

    # Tables
    MIN_TABLE_NUMBER: Final[int] = 1
    MAX_TABLE_NUMBER: Final[int] = 9999
    MIN_TABLE_CAPACITY: Final[int] = 1
    MAX_TABLE_CAPACITY: Final[int] = 50
    DEFAULT_TABLE_CAPACITY: Final[int] = 4
    MAX_TABLE_BATCH: Final[int] = 100

    # Orders
    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 999
    KITCHEN_QUEUE_SIZE: Final[int] = 50
    ORDER_NUMBER_RETRIES: Final[int] = 3

    # QR codes
    MAX_QR_BATCH: Final[int] = 50
    MIN_QR_SIZE: Final[int] = 100
    MAX_QR_SIZE: Final[int] = 500
    DEFAULT_QR_SIZE: Final[int] = 200

    # Users
    MIN_PASSWORD_LENGTH: Final[int] = 6
    USER_ACTIVITY_HISTORY: Final[int] = 50
