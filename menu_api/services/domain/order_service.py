"""
Order Service - order creation and status lifecycle.

Statuses: pending, confirmed, preparing, ready, delivered, cancelled.
Any of them can be set from any other.

Order numbers are ``{restaurant_id}-{YYYYMMDD}-{NNN}``: the highest
sequence of the day plus one. The unique constraint on
``(restaurant_id, order_number)`` rejects duplicates from concurrent
requests and creation is retried with a fresh number.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from menu_api.models import Order, OrderItem, utcnow
from menu_api.repositories import (
    ListFilters,
    OrderRepository,
    ProductRepository,
    RestaurantRepository,
    TableRepository,
)
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.permissions import ensure_restaurant_access, scoped_restaurant_id
from menu_shared.utils.resource_schemas import OrderOutput
from menu_shared.config.constants import (
    Limits,
    ORDER_STATUS_TIMESTAMPS,
    OrderStatus,
)
from menu_shared.config.logging import order_logger as logger
from menu_shared.utils.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    is_unique_violation,
    translate_db_error,
)
from menu_shared.utils.validators import round_money


def period_start(period: str, now: datetime | None = None) -> datetime:
    """Start of a stats window: today (UTC midnight), last 7 days or last 30 days."""
    now = now or utcnow()
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return now - timedelta(days=30)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def order_number_prefix(restaurant_id: int, day: datetime) -> str:
    return f"{restaurant_id}-{day.strftime('%Y%m%d')}-"


class OrderService(BaseCRUDService[Order, OrderOutput]):
    """Service for orders. Every operation requires an authenticated caller."""

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=OrderRepository(db),
            output_schema=OrderOutput,
            entity_name="Order",
            not_found_message="Pedido não encontrado",
            user=user,
        )
        self._restaurants = RestaurantRepository(db)
        self._tables = TableRepository(db)
        self._products = ProductRepository(db)

    @property
    def repo(self) -> OrderRepository:
        return self._repo

    def check_access(self, entity: Order) -> None:
        if not self.can_access(entity):
            raise UnauthorizedError("Sem permissão para ver este pedido", order_id=entity.id)

    # =========================================================================
    # Queries
    # =========================================================================

    def list_orders(self, filters: ListFilters) -> dict[str, Any]:
        filters.criteria["restaurant_id"] = scoped_restaurant_id(
            self.user, filters.get("restaurant_id")
        )
        return self.list_page(filters)

    def kitchen_queue(self, restaurant_id: int | None) -> list[OrderOutput]:
        restaurant_id = scoped_restaurant_id(self.user, restaurant_id)
        if not restaurant_id:
            raise ValidationError("Restaurant ID é obrigatório", field="restaurant_id")
        return self.to_outputs(self.repo.find_kitchen_queue(restaurant_id))

    def stats(self, restaurant_id: int | None, period: str = "today") -> dict[str, Any]:
        restaurant_id = scoped_restaurant_id(self.user, restaurant_id)
        result = self.repo.stats(restaurant_id, period_start(period))
        result["total_revenue"] = float(round_money(result["total_revenue"]))
        return result

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(self, data: dict[str, Any]) -> OrderOutput:
        """
        Create an order with its items in one transaction.

        ``subtotal`` and ``total_amount`` are the sum of quantity x unit_price.
        Items without ``unit_price`` are charged the product's current price.
        """
        restaurant_id = data.get("restaurant_id")
        if not restaurant_id:
            raise ValidationError("ID do restaurante é obrigatório", field="restaurant_id")
        ensure_restaurant_access(self.user, restaurant_id)
        if not self._restaurants.exists(restaurant_id):
            raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)

        items = data.get("items") or []
        if not items:
            raise ValidationError("Pedido deve ter pelo menos um item", field="items")

        table_id = data.get("table_id")
        if table_id:
            table = self._tables.find_by_id(table_id)
            if table is None or table.restaurant_id != restaurant_id:
                raise NotFoundError("Mesa não encontrada", table_id=table_id)

        lines = self._price_items(restaurant_id, items)
        subtotal = round_money(sum((line["total_price"] for line in lines), Decimal("0")))

        header = {
            "restaurant_id": restaurant_id,
            "table_id": table_id,
            "customer_name": data.get("customer_name"),
            "customer_phone": data.get("customer_phone"),
            "notes": data.get("notes"),
        }

        for attempt in range(1, Limits.ORDER_NUMBER_RETRIES + 1):
            order = Order(
                **header,
                order_number=self._next_order_number(restaurant_id),
                status=OrderStatus.PENDING,
                subtotal=subtotal,
                total_amount=subtotal,
                items=[OrderItem(**line) for line in lines],
            )
            self._db.add(order)
            try:
                self._db.commit()
            except IntegrityError as exc:
                self._db.rollback()
                if is_unique_violation(exc) and attempt < Limits.ORDER_NUMBER_RETRIES:
                    logger.warning(
                        "Order number taken, retrying",
                        restaurant_id=restaurant_id,
                        order_number=order.order_number,
                        attempt=attempt,
                    )
                    continue
                raise translate_db_error(exc, entity=self._entity_name, action="create")

            logger.info(
                "Order created",
                order_id=order.id,
                order_number=order.order_number,
                restaurant_id=restaurant_id,
                items=len(lines),
            )
            return self.get_by_id(order.id)

        raise ConflictError("Não foi possível gerar o número do pedido", restaurant_id=restaurant_id)

    def _price_items(self, restaurant_id: int, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        lines = []
        for index, item in enumerate(items):
            product = self._products.find_in_restaurant(restaurant_id, item["product_id"])
            if product is None:
                raise ValidationError(
                    f"Produto {item['product_id']} não encontrado neste restaurante",
                    field=f"items.{index}.product_id",
                )
            if not product.is_available:
                raise ValidationError(
                    f"Produto {product.name} indisponível",
                    field=f"items.{index}.product_id",
                )

            unit_price = item.get("unit_price")
            unit_price = round_money(product.current_price if unit_price is None else unit_price)
            quantity = item["quantity"]
            lines.append(
                {
                    "product_id": product.id,
                    "quantity": quantity,
                    "unit_price": unit_price,
                    "total_price": round_money(unit_price * quantity),
                    "notes": item.get("notes"),
                }
            )
        return lines

    def _next_order_number(self, restaurant_id: int) -> str:
        prefix = order_number_prefix(restaurant_id, datetime.now(timezone.utc))
        sequence = self.repo.last_sequence(restaurant_id, prefix) + 1
        return f"{prefix}{sequence:03d}"

    # =========================================================================
    # Status
    # =========================================================================

    def update_status(self, order_id: int, status: str) -> OrderOutput:
        """
        Set the order status. Any status in OrderStatus.ALL is accepted.

        Setting confirmed, ready or delivered stamps the matching timestamp,
        also when the order already had that status.
        """
        if status not in OrderStatus.ALL:
            raise ValidationError("Status inválido", field="status", error_type="any.only")

        order = self.get_entity(order_id)
        previous = order.status
        order.status = status
        timestamp_field = ORDER_STATUS_TIMESTAMPS.get(status)
        if timestamp_field:
            setattr(order, timestamp_field, utcnow())
        self.commit(action="update_status", entity_id=order_id)
        logger.info(
            "Order status changed",
            order_id=order_id,
            from_status=previous,
            to_status=status,
            user_id=self.user.get("user_id") if self.user else None,
        )

        return self.get_by_id(order_id)
