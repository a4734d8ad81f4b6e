"""
Product endpoints, top level and nested under categories and restaurants.
"""

from decimal import Decimal
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
from menu_api.services.domain import CategoryService, ProductService
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.resource_schemas import (
    MoveProductRequest,
    ProductCreate,
    ProductDuplicate,
    ProductReorder,
    ProductUpdate,
    PromotionRequest,
)
from menu_shared.utils.responses import success_response

router = APIRouter(tags=["products"])

ProductId = Annotated[int, Path(gt=0)]
CategoryId = Annotated[int, Path(gt=0)]
RestaurantId = Annotated[int, Path(gt=0)]


def _product_criteria(
    category_id: int | None = Query(default=None, gt=0),
    restaurant_id: int | None = Query(default=None, gt=0),
    is_available: bool | None = Query(default=None),
    is_on_promotion: bool | None = Query(default=None),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
) -> dict[str, Any]:
    return {
        "category_id": category_id,
        "restaurant_id": restaurant_id,
        "is_available": is_available,
        "is_on_promotion": is_on_promotion,
        "min_price": min_price,
        "max_price": max_price,
    }


# =============================================================================
# /products
# =============================================================================


@router.get("/products/promotions")
def list_promotions(
    restaurant_id: int | None = Query(default=None, gt=0),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    restaurant_id = scoped_restaurant_id(user, restaurant_id)
    if restaurant_id:
        CategoryService(db, user).require_restaurant(restaurant_id)

    filters = pagination.to_filters(restaurant_id=restaurant_id)
    return success_response(
        ProductService(db, user).promotions_page(filters),
        "Produtos em promoção listados com sucesso",
    )


@router.get("/products/stats")
def product_stats(
    category_id: int | None = Query(default=None, gt=0),
    restaurant_id: int | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    restaurant_id = scoped_restaurant_id(user, restaurant_id)
    if restaurant_id:
        CategoryService(db, user).require_restaurant(restaurant_id)
    stats = ProductService(db, user).stats(category_id=category_id, restaurant_id=restaurant_id)
    return success_response(stats, "Estatísticas obtidas com sucesso")


@router.get("/products/search")
def search_products(
    q: str = Depends(get_search_term),
    criteria: dict[str, Any] = Depends(_product_criteria),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    if criteria["is_available"] is None:
        criteria["is_available"] = True
    criteria["restaurant_id"] = scoped_restaurant_id(user, criteria["restaurant_id"])

    pagination.search = q
    result = ProductService(db, user).list_page(pagination.to_filters(**criteria))
    return success_response(result, f'Produtos encontrados para "{q}"')


@router.get("/products/uuid/{uuid}")
def get_product_by_uuid(
    uuid: Annotated[str, Path(min_length=36, max_length=36)],
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        ProductService(db, user).get_by_uuid(uuid), "Produto encontrado com sucesso"
    )


@router.get("/products")
def list_products(
    criteria: dict[str, Any] = Depends(_product_criteria),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """
    List products with pagination.

    Filters: category_id, restaurant_id, is_available, is_on_promotion,
    min_price / max_price (on current_price) and search.
    """
    criteria["restaurant_id"] = scoped_restaurant_id(user, criteria["restaurant_id"])
    result = ProductService(db, user).list_page(pagination.to_filters(**criteria))
    return success_response(result, "Produtos listados com sucesso")


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    product = ProductService(db, user).create(body.model_dump())
    return success_response(product, "Produto criado com sucesso")


@router.head("/products/{id}")
def product_exists(
    id: ProductId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> Response:
    found = ProductService(db, user).exists(id)
    return Response(status_code=status.HTTP_200_OK if found else status.HTTP_404_NOT_FOUND)


@router.get("/products/{id}")
def get_product(
    id: ProductId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(ProductService(db, user).get_by_id(id), "Produto encontrado com sucesso")


@router.put("/products/{id}")
def update_product(
    id: ProductId,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    product = ProductService(db, user).update(id, body.model_dump(exclude_unset=True))
    return success_response(product, "Produto atualizado com sucesso")


@router.delete("/products/{id}")
def deactivate_product(
    id: ProductId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Soft delete: the product becomes unavailable."""
    return success_response(
        ProductService(db, user).soft_delete(id), "Produto indisponibilizado com sucesso"
    )


@router.delete("/products/{id}/hard")
def hard_delete_product(
    id: ProductId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    ProductService(db, user).hard_delete(id)
    return success_response(None, "Produto deletado permanentemente")


@router.patch("/products/{id}/reactivate")
def reactivate_product(
    id: ProductId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(ProductService(db, user).reactivate(id), "Produto reativado com sucesso")


@router.patch("/products/{id}/promotion")
def toggle_promotion(
    id: ProductId,
    body: PromotionRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Apply ``promotion_price`` as the current price, or end the promotion when it is null."""
    product = ProductService(db, user).set_promotion(id, body.promotion_price)
    message = (
        "Promoção aplicada com sucesso" if body.promotion_price else "Promoção removida com sucesso"
    )
    return success_response(product, message)


@router.post("/products/{id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_product(
    id: ProductId,
    body: ProductDuplicate | None = None,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    overrides = body.model_dump(exclude_unset=True) if body else {}
    product = ProductService(db, user).duplicate(id, overrides)
    return success_response(product, "Produto duplicado com sucesso")


@router.patch("/products/{id}/move")
def move_product(
    id: ProductId,
    body: MoveProductRequest,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    product = ProductService(db, user).move(id, body.category_id)
    return success_response(product, "Produto movido para nova categoria com sucesso")


# =============================================================================
# /categories/{category_id}/products
# =============================================================================


@router.get("/categories/{category_id}/products/stats")
def category_product_stats(
    category_id: CategoryId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    return success_response(
        ProductService(db, user).stats(category_id=category_id),
        "Estatísticas dos produtos da categoria obtidas com sucesso",
    )


@router.put("/categories/{category_id}/products/reorder")
def reorder_products(
    category_id: CategoryId,
    body: ProductReorder,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    items = [item.model_dump() for item in body.products]
    products = ProductService(db, user).reorder(category_id, items)
    return success_response(products, "Produtos reordenados com sucesso")


@router.get("/categories/{category_id}/products")
def list_category_products(
    category_id: CategoryId,
    is_available: bool | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    """Every product of a category, ordered by sort_order unless asked otherwise."""
    service = ProductService(db, user)
    service.require_category(category_id)

    filters = Pagination(
        sort_by=sort_by or "sort_order", sort_order=sort_order or "asc"
    ).to_filters(category_id=category_id, is_available=is_available)
    return success_response(service.list_all(filters), "Produtos da categoria listados com sucesso")


@router.post("/categories/{category_id}/products", status_code=status.HTTP_201_CREATED)
def create_category_product(
    category_id: CategoryId,
    body: ProductCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    data = {**body.model_dump(), "category_id": category_id}
    product = ProductService(db, user).create(data)
    return success_response(product, "Produto criado com sucesso")


# =============================================================================
# /restaurants/{restaurant_id}/products
# =============================================================================


@router.get("/restaurants/{restaurant_id}/products/promotions")
def list_restaurant_promotions(
    restaurant_id: RestaurantId,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    CategoryService(db, user).require_restaurant(restaurant_id)
    filters = pagination.to_filters(restaurant_id=restaurant_id)
    return success_response(
        ProductService(db, user).promotions_page(filters),
        "Produtos em promoção do restaurante listados com sucesso",
    )


@router.get("/restaurants/{restaurant_id}/products/stats")
def restaurant_product_stats(
    restaurant_id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    CategoryService(db, user).require_restaurant(restaurant_id)
    return success_response(
        ProductService(db, user).stats(restaurant_id=restaurant_id),
        "Estatísticas dos produtos do restaurante obtidas com sucesso",
    )


@router.get("/restaurants/{restaurant_id}/products")
def list_restaurant_products(
    restaurant_id: RestaurantId,
    category_id: int | None = Query(default=None, gt=0),
    is_available: bool | None = Query(default=None),
    is_on_promotion: bool | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None, pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    user: dict[str, Any] | None = Depends(get_optional_user),
) -> dict[str, Any]:
    CategoryService(db, user).require_restaurant(restaurant_id)

    filters = Pagination(
        sort_by=sort_by or "sort_order", sort_order=sort_order or "asc"
    ).to_filters(
        restaurant_id=restaurant_id,
        category_id=category_id,
        is_available=is_available,
        is_on_promotion=is_on_promotion,
    )
    products = ProductService(db, user).list_all(filters)
    return success_response(products, "Produtos do restaurante listados com sucesso")
