"""
Table Service - physical tables of a restaurant.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from menu_api.models import Table
from menu_api.repositories import RestaurantRepository, TableRepository
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.permissions import ensure_restaurant_access
from menu_shared.utils.resource_schemas import TableOutput
from menu_shared.config.logging import get_logger
from menu_shared.utils.exceptions import ConflictError, NotFoundError, ValidationError

logger = get_logger(__name__)


class TableService(BaseCRUDService[Table, TableOutput]):
    """
    Service for table management.

    Table numbers are unique per restaurant. The check runs before the insert
    for a readable message; the unique constraint settles races.
    """

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=TableRepository(db),
            output_schema=TableOutput,
            entity_name="Table",
            not_found_message="Mesa não encontrada",
            user=user,
        )
        self._restaurants = RestaurantRepository(db)

    @property
    def repo(self) -> TableRepository:
        return self._repo

    def require_restaurant(self, restaurant_id: int) -> None:
        ensure_restaurant_access(self.user, restaurant_id)
        if not self._restaurants.exists(restaurant_id):
            raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)

    def _validate_create(self, data: dict[str, Any]) -> None:
        restaurant_id = data.get("restaurant_id")
        if not restaurant_id:
            raise ValidationError("ID do restaurante é obrigatório", field="restaurant_id")
        self.require_restaurant(restaurant_id)
        self._ensure_number_free(restaurant_id, data["table_number"])

    def _validate_update(self, entity: Table, data: dict[str, Any]) -> None:
        number = data.get("table_number")
        if number is not None and number != entity.table_number:
            self._ensure_number_free(entity.restaurant_id, number)

    def _ensure_number_free(self, restaurant_id: int, table_number: int) -> None:
        if self.repo.find_by_number(restaurant_id, table_number) is not None:
            raise ConflictError(
                f"Mesa {table_number} já existe neste restaurante",
                restaurant_id=restaurant_id,
                table_number=table_number,
            )

    def get_by_number(self, restaurant_id: int, table_number: int) -> TableOutput:
        ensure_restaurant_access(self.user, restaurant_id)
        table = self.repo.find_by_number(restaurant_id, table_number)
        if table is None:
            raise NotFoundError("Mesa não encontrada", restaurant_id=restaurant_id, table_number=table_number)
        return self.to_output(table)

    def create_batch(
        self, restaurant_id: int, table_numbers: list[int], capacity: int
    ) -> dict[str, Any]:
        """
        Create the tables whose numbers are still free.

        Numbers already taken (active or not) are reported as ``skipped``.
        Fails with a conflict only when every number is taken.
        """
        self.require_restaurant(restaurant_id)

        existing = self.repo.existing_numbers(restaurant_id, table_numbers)
        new_numbers = [number for number in table_numbers if number not in existing]
        if not new_numbers:
            raise ConflictError("Todas as mesas especificadas já existem", restaurant_id=restaurant_id)

        tables = [
            Table(
                restaurant_id=restaurant_id,
                table_number=number,
                capacity=capacity,
                is_active=True,
            )
            for number in new_numbers
        ]
        self._db.add_all(tables)
        self.commit(action="create_batch", restaurant_id=restaurant_id)
        for table in tables:
            self._db.refresh(table)

        logger.info(
            "Tables created in batch",
            restaurant_id=restaurant_id,
            created=len(tables),
            skipped=len(existing),
        )
        return {
            "created": self.to_outputs(tables),
            "skipped": sorted(number for number in table_numbers if number in existing),
            "total_created": len(tables),
            "total_skipped": len(table_numbers) - len(tables),
        }

    def generate_range(
        self, restaurant_id: int, start_number: int, end_number: int, capacity: int
    ) -> dict[str, Any]:
        result = self.create_batch(
            restaurant_id, list(range(start_number, end_number + 1)), capacity
        )
        return {
            **result,
            "range": f"{start_number}-{end_number}",
            "capacity_per_table": capacity,
        }

    def stats(self, restaurant_id: int | None = None) -> dict[str, Any]:
        if restaurant_id:
            self.require_restaurant(restaurant_id)
        return {**self.repo.stats(restaurant_id), "restaurant_id": restaurant_id}
