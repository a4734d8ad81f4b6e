"""
Order endpoints. Every route requires authentication; restaurant users
only see and create orders of their own restaurant.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from menu_api.routers._common import (
    Pagination,
    get_current_user,
    get_order_pagination,
    require_restaurant_access,
)
from menu_api.services.domain import OrderService
from menu_shared.infrastructure.db import get_db
from menu_shared.utils.resource_schemas import OrderCreate, OrderStatusUpdate, StatsPeriod
from menu_shared.utils.responses import success_response

router = APIRouter(tags=["orders"])

OrderId = Annotated[int, Path(gt=0)]
RestaurantId = Annotated[int, Path(gt=0)]


def _order_filters(
    table_id: int | None = Query(default=None, gt=0),
    status: str | None = Query(default=None, max_length=20),
    start_date: datetime | None = Query(default=None, description="Created at or after"),
    end_date: datetime | None = Query(default=None, description="Created before"),
) -> dict[str, Any]:
    return {
        "table_id": table_id,
        "status": status,
        "start_date": start_date,
        "end_date": end_date,
    }


@router.get("/orders")
def list_orders(
    restaurant_id: int | None = Query(default=None, gt=0),
    criteria: dict[str, Any] = Depends(_order_filters),
    pagination: Pagination = Depends(get_order_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    result = OrderService(db, user).list_orders(
        pagination.to_filters(restaurant_id=restaurant_id, **criteria)
    )
    return success_response(result, "Pedidos listados com sucesso")


@router.get("/orders/stats")
def order_stats(
    restaurant_id: int | None = Query(default=None, gt=0),
    period: StatsPeriod = Query(default="today"),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Order counts by status and delivered revenue since the start of ``period``."""
    return success_response(
        OrderService(db, user).stats(restaurant_id, period), "Estatísticas obtidas"
    )


@router.get("/orders/kitchen")
def kitchen_orders(
    restaurant_id: int | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(
        OrderService(db, user).kitchen_queue(restaurant_id), "Pedidos da cozinha"
    )


@router.get("/orders/{id}")
def get_order(
    id: OrderId,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return success_response(OrderService(db, user).get_by_id(id), "Pedido encontrado")


@router.post("/orders", status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    data = body.model_dump()
    if data["restaurant_id"] is None:
        data["restaurant_id"] = user["restaurant_id"]
    return success_response(OrderService(db, user).create_order(data), "Pedido criado com sucesso")


@router.patch("/orders/{id}/status")
def update_order_status(
    id: OrderId,
    body: OrderStatusUpdate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    order = OrderService(db, user).update_status(id, body.status)
    return success_response(order, "Status atualizado com sucesso")


# =============================================================================
# /restaurants/{restaurant_id}/orders
# =============================================================================


@router.get("/restaurants/{restaurant_id}/orders")
def list_restaurant_orders(
    restaurant_id: RestaurantId,
    criteria: dict[str, Any] = Depends(_order_filters),
    pagination: Pagination = Depends(get_order_pagination),
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    filters = pagination.to_filters(restaurant_id=restaurant_id, **criteria)
    result = OrderService(db, user).list_orders(filters)
    return success_response(result, "Pedidos listados com sucesso")


@router.post("/restaurants/{restaurant_id}/orders", status_code=status.HTTP_201_CREATED)
def create_restaurant_order(
    restaurant_id: RestaurantId,
    body: OrderCreate,
    db: Session = Depends(get_db),
    user: dict[str, Any] = Depends(require_restaurant_access()),
) -> dict[str, Any]:
    data = {**body.model_dump(), "restaurant_id": restaurant_id}
    return success_response(OrderService(db, user).create_order(data), "Pedido criado com sucesso")
