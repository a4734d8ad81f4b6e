"""
Order Repository - Data access for orders and their items.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy import Select, case, func, select
from sqlalchemy.orm import joinedload, selectinload

from menu_api.models import Order, OrderItem
from menu_shared.config.constants import Limits, OrderStatus
from .base import BaseRepository, ListFilters


class OrderRepository(BaseRepository[Order]):
    """
    Repository for Order entities.

    Guarantees eager loading of:
    - items -> product
    - table, restaurant

    Criteria: ``restaurant_id``, ``table_id``, ``status`` (single value),
    ``statuses`` (list), ``start_date`` / ``end_date`` (created_at range,
    end exclusive).
    """

    model = Order
    search_columns = ("order_number", "customer_name")
    sort_columns = ("created_at", "updated_at", "total_amount", "status", "order_number")
    default_sort = "created_at"
    default_direction = "desc"

    def _load_options(self) -> list[Any]:
        return [
            selectinload(Order.items).joinedload(OrderItem.product),
            joinedload(Order.table),
            joinedload(Order.restaurant),
        ]

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        restaurant_id = filters.get("restaurant_id")
        if restaurant_id:
            query = query.where(Order.restaurant_id == restaurant_id)

        table_id = filters.get("table_id")
        if table_id:
            query = query.where(Order.table_id == table_id)

        status = filters.get("status")
        statuses = filters.get("statuses")
        if status:
            query = query.where(Order.status == status)
        elif statuses:
            query = query.where(Order.status.in_(statuses))

        start_date = filters.get("start_date")
        if start_date is not None:
            query = query.where(Order.created_at >= start_date)

        end_date = filters.get("end_date")
        if end_date is not None:
            query = query.where(Order.created_at < end_date)

        return query

    def find_kitchen_queue(self, restaurant_id: int) -> Sequence[Order]:
        """Confirmed and preparing orders, oldest first."""
        query = (
            self._base_query()
            .where(
                Order.restaurant_id == restaurant_id,
                Order.status.in_(OrderStatus.KITCHEN_VISIBLE),
            )
            .order_by(Order.created_at.asc(), Order.id.asc())
            .limit(Limits.KITCHEN_QUEUE_SIZE)
        )
        return self._rows(query)

    def last_sequence(self, restaurant_id: int, prefix: str) -> int:
        """
        Highest ``NNN`` among order numbers ``{prefix}NNN`` of the restaurant.

        Parsed in Python because the sequence may outgrow its zero padding.
        """
        numbers = self._db.execute(
            select(Order.order_number).where(
                Order.restaurant_id == restaurant_id,
                Order.order_number.like(f"{prefix}%"),
            )
        ).scalars()

        highest = 0
        for number in numbers:
            suffix = number[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest

    def stats(self, restaurant_id: int | None, since: datetime | None) -> dict[str, Any]:
        """Order count per status plus revenue of delivered orders."""
        columns = [func.count(Order.id)]
        for status in OrderStatus.ALL:
            columns.append(func.sum(case((Order.status == status, 1), else_=0)))
        columns.append(
            func.sum(
                case((Order.status == OrderStatus.DELIVERED, Order.total_amount), else_=0)
            )
        )

        stmt = select(*columns).select_from(Order)
        if restaurant_id:
            stmt = stmt.where(Order.restaurant_id == restaurant_id)
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)

        row = self._db.execute(stmt).one()
        result: dict[str, Any] = {"total_orders": row[0] or 0}
        for index, status in enumerate(OrderStatus.ALL, start=1):
            result[status] = int(row[index] or 0)
        result["total_revenue"] = Decimal(str(row[-1] or 0))
        return result
