"""
Table endpoints, top level and nested under restaurants. All require authentication.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    Pagination,
    get_current_user,
    get_table_pagination,
    require_restaurant_access,
)
from menu_api.services import scoped_restaurant_id
from menu_api.services.domain import TableService
from menu_shared.config.constants import Limits
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.resource_schemas import (
    TableBatchCreate,
    TableCreate,
    TableRangeCreate,
    TableUpdate,
)
from menu_shared.utils.responses import success_response

router = APIRouter(tags=["tables"])

TableId = Annotated[int, Path(gt=0)]
RestaurantId = Annotated[int, Path(gt=0)]


# =============================================================================
# /tables
# =============================================================================


@router.get("/tables/stats")
def table_stats(
    restaurant_id: int | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    restaurant_id = scoped_restaurant_id(user, restaurant_id)
    return success_response(
        TableService(db, user).stats(restaurant_id), "Estatísticas obtidas com sucesso"
    )


@router.get("/tables")
def list_tables(
    restaurant_id: int | None = Query(default=None, gt=0),
    is_active: bool | None = Query(default=None),
    qr_code_generated: bool | None = Query(default=None),
    pagination: Pagination = Depends(get_table_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    filters = pagination.to_filters(
        restaurant_id=scoped_restaurant_id(user, restaurant_id),
        is_active=is_active,
        qr_code_generated=qr_code_generated,
    )
    return success_response(TableService(db, user).list_page(filters), "Mesas listadas com sucesso")


@router.post("/tables", status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    data = body.model_dump()
    if data["restaurant_id"] is None:
        data["restaurant_id"] = user["restaurant_id"]
    return success_response(TableService(db, user).create(data), "Mesa criada com sucesso")


@router.head("/tables/{id}")
def table_exists(
    id: TableId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> Response:
    found = TableService(db, user).exists(id)
    return Response(status_code=status.HTTP_200_OK if found else status.HTTP_404_NOT_FOUND)


@router.get("/tables/{id}")
def get_table(
    id: TableId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(TableService(db, user).get_by_id(id), "Mesa encontrada com sucesso")


@router.put("/tables/{id}")
def update_table(
    id: TableId,
    body: TableUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    table = TableService(db, user).update(id, body.model_dump(exclude_unset=True))
    return success_response(table, "Mesa atualizada com sucesso")


@router.delete("/tables/{id}")
def deactivate_table(
    id: TableId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(TableService(db, user).soft_delete(id), "Mesa inativada com sucesso")


@router.delete("/tables/{id}/hard")
def hard_delete_table(
    id: TableId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    TableService(db, user).hard_delete(id)
    return success_response(None, "Mesa deletada permanentemente")


@router.patch("/tables/{id}/reactivate")
def reactivate_table(
    id: TableId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(TableService(db, user).reactivate(id), "Mesa reativada com sucesso")


# =============================================================================
# /restaurants/{restaurant_id}/tables
# =============================================================================


@router.get("/restaurants/{restaurant_id}/tables/stats")
def restaurant_table_stats(
    restaurant_id: RestaurantId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    return success_response(
        TableService(db, user).stats(restaurant_id),
        "Estatísticas das mesas do restaurante obtidas com sucesso",
    )


@router.post("/restaurants/{restaurant_id}/tables/batch", status_code=status.HTTP_201_CREATED)
def create_tables_batch(
    restaurant_id: RestaurantId,
    body: TableBatchCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    """
    Create several tables at once.

    Numbers already in use are skipped; the request fails with 409 only
    when every number is taken.
    """
    result = TableService(db, user).create_batch(restaurant_id, body.table_numbers, body.capacity)
    return success_response(result, f"{result['total_created']} mesas criadas com sucesso")


@router.post("/restaurants/{restaurant_id}/tables/generate", status_code=status.HTTP_201_CREATED)
def generate_table_range(
    restaurant_id: RestaurantId,
    body: TableRangeCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    result = TableService(db, user).generate_range(
        restaurant_id, body.start_number, body.end_number, body.capacity
    )
    return success_response(
        result, f"Mesas {body.start_number}-{body.end_number} processadas com sucesso"
    )


@router.get("/restaurants/{restaurant_id}/tables/number/{table_number}")
def get_table_by_number(
    restaurant_id: RestaurantId,
    table_number: Annotated[int, Path(ge=Limits.MIN_TABLE_NUMBER, le=Limits.MAX_TABLE_NUMBER)],
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    table = TableService(db, user).get_by_number(restaurant_id, table_number)
    return success_response(table, "Mesa encontrada com sucesso")


@router.get("/restaurants/{restaurant_id}/tables")
def list_restaurant_tables(
    restaurant_id: RestaurantId,
    is_active: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    """Every table of the restaurant ordered by number."""
    service = TableService(db, user)
    service.require_restaurant(restaurant_id)

    filters = Pagination(sort_by="table_number", sort_order="asc").to_filters(
        restaurant_id=restaurant_id, is_active=is_active
    )
    return success_response(service.list_all(filters), "Mesas do restaurante listadas com sucesso")


@router.post("/restaurants/{restaurant_id}/tables", status_code=status.HTTP_201_CREATED)
def create_restaurant_table(
    restaurant_id: RestaurantId,
    body: TableCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    data = {**body.model_dump(), "restaurant_id": restaurant_id}
    return success_response(TableService(db, user).create(data), "Mesa criada com sucesso")
