"""
User management endpoints.

Super admins manage every account. Other users may read and edit their
own record (without touching role, restaurant or status) and list the
users of their restaurant.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    Pagination,
    get_current_user,
    get_pagination,
    get_search_term,
    require_restaurant_access,
    require_self_or_admin,
    require_super_admin,
    require_user_management,
)
from menu_api.services import scoped_restaurant_id
from menu_api.services.domain import UserService
from menu_shared.config.constants import Roles
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.responses import success_response
from menu_shared.utils.schemas import (
    ProfileUpdate,
    RestaurantUserCreate,
    Role,
    UserCreate,
    UserUpdate,
)

router = APIRouter(tags=["users"])

UserId = Annotated[int, Path(gt=0)]
RestaurantId = Annotated[int, Path(gt=0)]

# Fields a non-admin may not change on their own account
SELF_PROTECTED_FIELDS = ("role", "restaurant_id", "is_active", "email_verified")


@router.get("/users/stats")
def user_stats(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_super_admin),
) -> dict[str, Any]:
    return success_response(UserService(db, user).stats(), "Estatísticas obtidas com sucesso")


@router.get("/users/search")
def search_users(
    q: str = Depends(get_search_term),
    is_active: bool = Query(default=True),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Search by name or email. Restaurant users only search their own restaurant."""
    pagination.search = q
    filters = pagination.to_filters(
        is_active=is_active, restaurant_id=scoped_restaurant_id(user, None)
    )
    result = UserService(db, user).list_users(filters)
    return success_response(result, f'Usuários encontrados para "{q}"')


@router.get("/users/me")
def get_my_profile(
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(
        UserService(db, user).get_by_id(user["user_id"]), "Perfil obtido com sucesso"
    )


@router.put("/users/me")
def update_my_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    profile = UserService(db, user).update(user["user_id"], body.model_dump(exclude_unset=True))
    return success_response(profile, "Perfil atualizado com sucesso")


@router.get("/users/{id}/activities")
def list_user_activities(
    id: UserId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_self_or_admin),
) -> dict[str, Any]:
    """The 50 most recent audit entries of a user, newest first."""
    return success_response(
        UserService(db, user).activities(id), "Atividades listadas com sucesso"
    )


@router.get("/users")
def list_users(
    role: Role | None = Query(default=None),
    restaurant_id: int | None = Query(default=None, gt=0),
    is_active: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_super_admin),
) -> dict[str, Any]:
    filters = pagination.to_filters(role=role, restaurant_id=restaurant_id, is_active=is_active)
    return success_response(
        UserService(db, user).list_users(filters), "Usuários listados com sucesso"
    )


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_user_management),
) -> dict[str, Any]:
    created = UserService(db, user).create(body.model_dump())
    return success_response(created, "Usuário criado com sucesso")


@router.head("/users/{id}")
def user_exists(
    id: UserId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> Response:
    found = UserService(db, user).exists(id)
    return Response(status_code=status.HTTP_200_OK if found else status.HTTP_404_NOT_FOUND)


@router.get("/users/{id}")
def get_user(
    id: UserId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_self_or_admin),
) -> dict[str, Any]:
    return success_response(UserService(db, user).get_by_id(id), "Usuário encontrado com sucesso")


@router.put("/users/{id}")
def update_user(
    id: UserId,
    body: UserUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_self_or_admin),
) -> dict[str, Any]:
    data = body.model_dump(exclude_unset=True)
    if user["role"] != Roles.SUPER_ADMIN:
        for field in SELF_PROTECTED_FIELDS:
            data.pop(field, None)
    updated = UserService(db, user).update(id, data)
    return success_response(updated, "Usuário atualizado com sucesso")


@router.delete("/users/{id}")
def deactivate_user(
    id: UserId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_user_management),
) -> dict[str, Any]:
    """Deactivate a user and revoke their sessions. Users are never hard deleted."""
    return success_response(UserService(db, user).deactivate(id), "Usuário inativado com sucesso")


@router.patch("/users/{id}/reactivate")
def reactivate_user(
    id: UserId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_user_management),
) -> dict[str, Any]:
    return success_response(UserService(db, user).reactivate(id), "Usuário reativado com sucesso")


# =============================================================================
# /restaurants/{restaurant_id}/users
# =============================================================================


@router.get("/restaurants/{restaurant_id}/users")
def list_restaurant_users(
    restaurant_id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    service = UserService(db, user)
    service.ensure_restaurant(restaurant_id)
    filters = Pagination(sort_by="name", sort_order="asc").to_filters(restaurant_id=restaurant_id)
    return success_response(service.list_all(filters), "Usuários do restaurante listados com sucesso")


@router.post("/restaurants/{restaurant_id}/users", status_code=status.HTTP_201_CREATED)
def create_restaurant_user(
    restaurant_id: RestaurantId,
    body: RestaurantUserCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_user_management),
) -> dict[str, Any]:
    data = {**body.model_dump(), "role": Roles.RESTAURANT_USER, "restaurant_id": restaurant_id}
    created = UserService(db, user).create(data)
    return success_response(created, "Usuário criado com sucesso para o restaurante")
