"""
Restaurant management endpoints.

Reads and writes accept anonymous callers; authenticated restaurant users
are confined to their own restaurant. Permanent deletion is reserved to
super admins.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    Pagination,
    get_optional_user,
    get_pagination,
    get_search_term,
    require_super_admin,
)
from menu_api.services import scoped_restaurant_id
from menu_api.services.domain import RestaurantService
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.resource_schemas import RestaurantCreate, RestaurantUpdate
from menu_shared.utils.responses import success_response

router = APIRouter(prefix="/restaurants", tags=["restaurants"])

RestaurantId = Annotated[int, Path(gt=0)]


@router.get("/stats")
def restaurant_stats(
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        RestaurantService(db, user).stats(), "Estatísticas obtidas com sucesso"
    )


@router.get("/search")
def search_restaurants(
    q: str = Depends(get_search_term),
    is_active: bool = Query(default=True),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    filters = pagination.to_filters(is_active=is_active, id=scoped_restaurant_id(user, None))
    result = RestaurantService(db, user).search(q, filters)
    return success_response(result, f'Restaurantes encontrados para "{q}"')


@router.get("/city/{city}")
def restaurants_by_city(
    city: Annotated[str, Path(min_length=1, max_length=100)],
    is_active: bool = Query(default=True),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    filters = pagination.to_filters(is_active=is_active, id=scoped_restaurant_id(user, None))
    result = RestaurantService(db, user).find_by_city(city, filters)
    return success_response(result, f"Restaurantes encontrados em {city}")


@router.get("/uuid/{uuid}")
def get_restaurant_by_uuid(
    uuid: Annotated[str, Path(min_length=36, max_length=36)],
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        RestaurantService(db, user).get_by_uuid(uuid), "Restaurante encontrado com sucesso"
    )


@router.get("")
def list_restaurants(
    is_active: bool | None = Query(default=None),
    city: str | None = Query(default=None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """
    List restaurants with pagination.

    Filters: is_active, city (substring), search (name or description).
    Restaurant users only see their own restaurant.
    """
    filters = pagination.to_filters(
        is_active=is_active, city=city, id=scoped_restaurant_id(user, None)
    )
    return success_response(
        RestaurantService(db, user).list_page(filters), "Restaurantes listados com sucesso"
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_restaurant(
    body: RestaurantCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    restaurant = RestaurantService(db, user).create(body.model_dump())
    return success_response(restaurant, "Restaurante criado com sucesso")


@router.get("/{id}")
def get_restaurant(
    id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        RestaurantService(db, user).get_by_id(id), "Restaurante encontrado com sucesso"
    )


@router.put("/{id}")
def update_restaurant(
    id: RestaurantId,
    body: RestaurantUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    restaurant = RestaurantService(db, user).update(id, body.model_dump(exclude_unset=True))
    return success_response(restaurant, "Restaurante atualizado com sucesso")


@router.delete("/{id}")
def deactivate_restaurant(
    id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        RestaurantService(db, user).soft_delete(id), "Restaurante inativado com sucesso"
    )


@router.delete("/{id}/hard")
def hard_delete_restaurant(
    id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_super_admin),
) -> dict[str, Any]:
    """Delete a restaurant and, by cascade, everything it owns. Irreversible."""
    RestaurantService(db, user).hard_delete(id)
    return success_response(None, "Restaurante deletado permanentemente")


@router.patch("/{id}/reactivate")
def reactivate_restaurant(
    id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        RestaurantService(db, user).reactivate(id), "Restaurante reativado com sucesso"
    )
