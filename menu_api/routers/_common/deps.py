"""
Authentication and authorization dependencies for routers.

The authenticated caller is a plain dict:

    {"user_id": 1, "email": "...", "role": "super_admin", "restaurant_id": None, "name": "..."}

Usage:
    @router.get("/tables")
    def list_tables(user: dict = Depends(get_current_user)):
        ...

    @router.delete("/restaurants/{id}/hard", dependencies=[Depends(require_super_admin)])
    def hard_delete(...):
        ...
"""

from typing import Any, Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from menu_api.models import User
from menu_shared.config.constants import Roles
from menu_shared.config.logging import auth_logger
from menu_shared.infrastructure.db import get_db, set_rls_context
from menu_shared.security.auth import get_token_from_request, verify_access_token
from menu_shared.utils.exceptions import (
    InsufficientRoleError,
    RestaurantAccessError,
    UnauthorizedError,
    ValidationError,
)


def _user_context(user: User) -> dict[str, Any]:
    return {
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
        "restaurant_id": user.restaurant_id,
        "name": user.name,
    }


def _load_user(db: Session, token: str) -> User:
    payload = verify_access_token(token)
    user = db.get(User, payload["userId"])
    if user is None:
        raise UnauthorizedError("Token inválido", user_id=payload["userId"])
    if not user.is_active:
        raise UnauthorizedError("Usuário inativo", user_id=user.id)
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> dict[str, Any]:
    """
    Authenticate the request from the Bearer header or the access_token cookie.

    The user is reloaded on every request so deactivation takes effect
    immediately, even for unexpired tokens.
    """
    token = get_token_from_request(request)
    if not token:
        raise UnauthorizedError("Token de acesso não fornecido", path=request.url.path)

    ctx = _user_context(_load_user(db, token))
    request.state.user = ctx
    set_rls_context(db, ctx)
    return ctx


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> dict[str, Any] | None:
    """Like get_current_user, but any authentication problem means anonymous."""
    token = get_token_from_request(request)
    if not token:
        return None
    try:
        user = _load_user(db, token)
    except UnauthorizedError:
        auth_logger.debug("Ignoring invalid credentials on public route", path=request.url.path)
        return None

    ctx = _user_context(user)
    request.state.user = ctx
    set_rls_context(db, ctx)
    return ctx


def require_roles(*roles: str, message: str | None = None) -> Callable[..., dict[str, Any]]:
    """
    Dependency factory: the caller must have one of ``roles``.

    Without ``message`` the error lists the allowed roles.
    """

    def dependency(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
        if user["role"] in roles:
            return user
        if message:
            raise UnauthorizedError(message, user_id=user["user_id"], role=user["role"])
        raise InsufficientRoleError(list(roles), user_id=user["user_id"])

    return dependency


require_super_admin = require_roles(
    Roles.SUPER_ADMIN, message="Acesso negado. Apenas super administradores."
)
require_user_management = require_roles(
    Roles.SUPER_ADMIN,
    message="Acesso negado. Apenas super administradores podem gerenciar usuários.",
)


def require_restaurant_access(param: str = "restaurant_id") -> Callable[..., dict[str, Any]]:
    """
    Dependency factory for routes with a restaurant id in the path.

    Restaurant users may only reach their own restaurant.
    """

    def dependency(
        request: Request, user: dict[str, Any] = Depends(get_current_user)
    ) -> dict[str, Any]:
        raw = request.path_params.get(param)
        if raw is None:
            raise ValidationError("ID do restaurante não fornecido", field=param)
        if user["role"] == Roles.SUPER_ADMIN:
            return user
        if user["role"] == Roles.RESTAURANT_USER:
            try:
                restaurant_id = int(raw)
            except (TypeError, ValueError):
                raise ValidationError("ID do restaurante inválido", field=param)
            if user["restaurant_id"] != restaurant_id:
                raise RestaurantAccessError(restaurant_id=restaurant_id, user_id=user["user_id"])
            return user
        raise UnauthorizedError("Role de usuário não reconhecido", role=user["role"])

    return dependency


def require_self_or_admin(
    request: Request, user: dict[str, Any] = Depends(get_current_user)
) -> dict[str, Any]:
    """Super admins reach any user; everyone else only their own record."""
    if user["role"] == Roles.SUPER_ADMIN:
        return user
    raw = request.path_params.get("id") or request.path_params.get("user_id")
    if raw is not None and str(user["user_id"]) == str(raw):
        return user
    raise UnauthorizedError(
        "Acesso negado. Você só pode acessar seus próprios dados.", user_id=user["user_id"]
    )


# =============================================================================
# Request metadata
# =============================================================================


def get_client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> str | None:
    return request.headers.get("User-Agent")
