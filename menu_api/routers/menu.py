"""
Public menu endpoints.

No authentication. The restaurant is addressed by numeric id or uuid.
The ``/menu/restaurant/...`` routes and the complete menu return the bare
menu document consumed by the mobile app, without the response envelope.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from menu_api.services.domain import MenuService
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.responses import success_response

router = APIRouter(prefix="/menu", tags=["menu"])

RestaurantRef = Annotated[str, Path(min_length=1, max_length=64, description="Restaurant id or uuid")]
ProductRef = Annotated[str, Path(min_length=1, max_length=64, description="Product id or uuid")]
CategoryId = Annotated[int, Path(gt=0)]


@router.get("/restaurant/{restaurant_id}")
def get_app_menu(restaurant_id: RestaurantRef, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Complete menu for the mobile app: active categories, available products."""
    return MenuService(db).complete_menu(restaurant_id)


@router.get("/restaurant/{restaurant_id}/item/{product_id}")
def get_app_menu_item(
    restaurant_id: RestaurantRef,
    product_id: ProductRef,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return MenuService(db).item(restaurant_id, product_id)


@router.get("/{restaurant_id}/stats")
def get_menu_stats(restaurant_id: RestaurantRef, db: Session = Depends(get_db)) -> dict[str, Any]:
    return MenuService(db).stats(restaurant_id)


@router.get("/{restaurant_id}/promotions")
def get_menu_promotions(
    restaurant_id: RestaurantRef, db: Session = Depends(get_db)
) -> dict[str, Any]:
    return success_response(
        MenuService(db).promotions(restaurant_id),
        "Produtos em promoção listados com sucesso",
    )


@router.get("/{restaurant_id}/categories")
def get_menu_categories(
    restaurant_id: RestaurantRef, db: Session = Depends(get_db)
) -> dict[str, Any]:
    """Menu categories with their product counts, without the products."""
    return success_response(
        MenuService(db).categories(restaurant_id),
        "Categorias do menu listadas com sucesso",
    )


@router.get("/{restaurant_id}/categories/{category_id}/products")
def get_menu_category_products(
    restaurant_id: RestaurantRef,
    category_id: CategoryId,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return success_response(
        MenuService(db).category_products(restaurant_id, category_id),
        "Produtos da categoria listados com sucesso",
    )


@router.get("/{restaurant_id}/category/{category_id}")
def get_menu_by_category(
    restaurant_id: RestaurantRef,
    category_id: CategoryId,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return MenuService(db).complete_menu(restaurant_id, category_id=category_id)


@router.get("/{restaurant_id}/item/{product_id}")
def get_menu_item(
    restaurant_id: RestaurantRef,
    product_id: ProductRef,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return MenuService(db).item(restaurant_id, product_id)


@router.get("/{restaurant_id}")
def get_complete_menu(
    restaurant_id: RestaurantRef,
    include_inactive: bool = Query(default=False, description="Include inactive categories"),
    include_unavailable: bool = Query(default=False, description="Include unavailable products"),
    category_id: int | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return MenuService(db).complete_menu(
        restaurant_id,
        include_inactive=include_inactive,
        include_unavailable=include_unavailable,
        category_id=category_id,
    )
