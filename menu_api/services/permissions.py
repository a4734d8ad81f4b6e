"""
Restaurant scoping rules shared by services and routers.

The authenticated user is the dict built by ``get_current_user``:
``{"user_id", "email", "role", "restaurant_id", "name"}``. Anonymous
callers on public routes are represented by ``None``.
"""

from typing import Any

from menu_shared.config.constants import Roles
from menu_shared.utils.exceptions import RestaurantAccessError


def is_super_admin(user: dict[str, Any] | None) -> bool:
    return bool(user) and user.get("role") == Roles.SUPER_ADMIN


def is_restaurant_user(user: dict[str, Any] | None) -> bool:
    return bool(user) and user.get("role") == Roles.RESTAURANT_USER


def can_access_restaurant(user: dict[str, Any] | None, restaurant_id: int | None) -> bool:
    """
    Super admins and anonymous callers of public routes are not scoped.
    Restaurant users reach only their own restaurant.
    """
    if not is_restaurant_user(user):
        return True
    return restaurant_id is not None and user.get("restaurant_id") == restaurant_id


def ensure_restaurant_access(user: dict[str, Any] | None, restaurant_id: int | None) -> None:
    if not can_access_restaurant(user, restaurant_id):
        raise RestaurantAccessError(
            restaurant_id=restaurant_id,
            user_id=user.get("user_id") if user else None,
        )


def scoped_restaurant_id(user: dict[str, Any] | None, requested: int | None) -> int | None:
    """
    Restaurant filter for list queries.

    Restaurant users are pinned to their own restaurant; asking for another
    one is an access error. Everyone else gets what they asked for.
    """
    if is_restaurant_user(user):
        if requested is not None and requested != user.get("restaurant_id"):
            raise RestaurantAccessError(restaurant_id=requested, user_id=user.get("user_id"))
        return user.get("restaurant_id")
    return requested
