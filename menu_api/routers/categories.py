"""
Category endpoints, top level and nested under restaurants.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    Pagination,
    get_current_user,
    get_optional_user,
    get_pagination,
    get_search_term,
)
from menu_api.services import scoped_restaurant_id
from menu_api.services.domain import CategoryService
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.resource_schemas import (
    CategoryCreate,
    CategoryDuplicate,
    CategoryReorder,
    CategoryUpdate,
)
from menu_shared.utils.responses import success_response

router = APIRouter(tags=["categories"])

CategoryId = Annotated[int, Path(gt=0)]
RestaurantId = Annotated[int, Path(gt=0)]


# =============================================================================
# /categories
# =============================================================================


@router.get("/categories/stats")
def category_stats(
    restaurant_id: int | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    restaurant_id = scoped_restaurant_id(user, restaurant_id)
    return success_response(
        CategoryService(db, user).stats(restaurant_id), "Estatísticas obtidas com sucesso"
    )


@router.get("/categories/search")
def search_categories(
    q: str = Depends(get_search_term),
    restaurant_id: int | None = Query(default=None, gt=0),
    is_active: bool = Query(default=True),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    pagination.search = q
    filters = pagination.to_filters(
        restaurant_id=scoped_restaurant_id(user, restaurant_id), is_active=is_active
    )
    result = CategoryService(db, user).list_page(filters)
    return success_response(result, f'Categorias encontradas para "{q}"')


@router.get("/categories/uuid/{uuid}")
def get_category_by_uuid(
    uuid: Annotated[str, Path(min_length=36, max_length=36)],
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        CategoryService(db, user).get_by_uuid(uuid), "Categoria encontrada com sucesso"
    )


@router.get("/categories")
def list_categories(
    restaurant_id: int | None = Query(default=None, gt=0),
    is_active: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    filters = pagination.to_filters(
        restaurant_id=scoped_restaurant_id(user, restaurant_id), is_active=is_active
    )
    return success_response(
        CategoryService(db, user).list_page(filters), "Categorias listadas com sucesso"
    )


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    category = CategoryService(db, user).create(body.model_dump())
    return success_response(category, "Categoria criada com sucesso")


@router.head("/categories/{id}")
def category_exists(
    id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> Response:
    found = CategoryService(db, user).exists(id)
    return Response(status_code=status.HTTP_200_OK if found else status.HTTP_404_NOT_FOUND)


@router.get("/categories/{id}")
def get_category(
    id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        CategoryService(db, user).get_by_id(id), "Categoria encontrada com sucesso"
    )


@router.put("/categories/{id}")
def update_category(
    id: CategoryId,
    body: CategoryUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    category = CategoryService(db, user).update(id, body.model_dump(exclude_unset=True))
    return success_response(category, "Categoria atualizada com sucesso")


@router.delete("/categories/{id}")
def deactivate_category(
    id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        CategoryService(db, user).soft_delete(id), "Categoria inativada com sucesso"
    )


@router.delete("/categories/{id}/hard")
def hard_delete_category(
    id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Delete a category and its products. Irreversible."""
    CategoryService(db, user).hard_delete(id)
    return success_response(None, "Categoria deletada permanentemente")


@router.patch("/categories/{id}/reactivate")
def reactivate_category(
    id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        CategoryService(db, user).reactivate(id), "Categoria reativada com sucesso"
    )


@router.post("/categories/{id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_category(
    id: CategoryId,
    body: CategoryDuplicate | None = None,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Copy a category (without its products). The copy is named "<name> (Cópia)" by default."""
    overrides = body.model_dump(exclude_unset=True) if body else {}
    category = CategoryService(db, user).duplicate(id, overrides)
    return success_response(category, "Categoria duplicada com sucesso")


# =============================================================================
# /restaurants/{restaurant_id}/categories
# =============================================================================


@router.get("/restaurants/{restaurant_id}/categories/stats")
def restaurant_category_stats(
    restaurant_id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        CategoryService(db, user).stats(restaurant_id),
        "Estatísticas das categorias do restaurante obtidas com sucesso",
    )


@router.get("/restaurants/{restaurant_id}/categories/search")
def search_restaurant_categories(
    restaurant_id: RestaurantId,
    q: str = Depends(get_search_term),
    is_active: bool = Query(default=True),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    service = CategoryService(db, user)
    service.require_restaurant(restaurant_id)

    pagination.search = q
    filters = pagination.to_filters(restaurant_id=restaurant_id, is_active=is_active)
    return success_response(
        service.list_page(filters), f'Categorias do restaurante encontradas para "{q}"'
    )


@router.put("/restaurants/{restaurant_id}/categories/reorder")
def reorder_categories(
    restaurant_id: RestaurantId,
    body: CategoryReorder,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    items = [item.model_dump() for item in body.categories]
    categories = CategoryService(db, user).reorder(restaurant_id, items)
    return success_response(categories, "Categorias reordenadas com sucesso")


@router.get("/restaurants/{restaurant_id}/categories")
def list_restaurant_categories(
    restaurant_id: RestaurantId,
    is_active: bool | None = Query(default=None),
    include_product_count: bool = Query(default=False),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """All categories of a restaurant ordered by sort_order, without pagination."""
    service = CategoryService(db, user)
    service.require_restaurant(restaurant_id)

    filters = Pagination(sort_by="sort_order", sort_order="asc").to_filters(
        restaurant_id=restaurant_id, is_active=is_active
    )
    categories = service.list_all(filters, with_counts=include_product_count)
    return success_response(categories, "Categorias do restaurante listadas com sucesso")


@router.post("/restaurants/{restaurant_id}/categories", status_code=status.HTTP_201_CREATED)
def create_restaurant_category(
    restaurant_id: RestaurantId,
    body: CategoryCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    data = {**body.model_dump(), "restaurant_id": restaurant_id}
    category = CategoryService(db, user).create(data)
    return success_response(category, "Categoria criada com sucesso")
