"""
Configuration module: Settings, logging, constants.
"""

from menu_shared.config.settings import settings, get_settings, DATABASE_URL
from menu_shared.config.logging import get_logger, setup_logging
from menu_shared.config.constants import (
    Roles,
    OrderStatus,
    TokenType,
    Limits,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Roles",
    "OrderStatus",
    "TokenType",
    "Limits",
]
