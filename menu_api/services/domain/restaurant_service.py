"""
Restaurant Service - restaurants and their lifecycle.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from menu_api.models import Restaurant
from menu_api.repositories import ListFilters, RestaurantRepository
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.permissions import is_restaurant_user
from menu_shared.utils.resource_schemas import RestaurantOutput
from menu_shared.utils.exceptions import NotFoundError, UnauthorizedError
from menu_shared.utils.validators import is_uuid_identifier, parse_numeric_id


class RestaurantService(BaseCRUDService[Restaurant, RestaurantOutput]):
    """Service for restaurant management."""

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=RestaurantRepository(db),
            output_schema=RestaurantOutput,
            entity_name="Restaurant",
            not_found_message="Restaurante não encontrado",
            user=user,
        )

    @property
    def repo(self) -> RestaurantRepository:
        return self._repo

    def restaurant_id_of(self, entity: Restaurant) -> int | None:
        return entity.id

    def _validate_create(self, data: dict[str, Any]) -> None:
        if is_restaurant_user(self.user):
            raise UnauthorizedError(
                "Acesso negado. Apenas super administradores.",
                user_id=self.user.get("user_id"),
            )

    def require(self, restaurant_id: int) -> Restaurant:
        """Existing restaurant the caller may reach, active or not."""
        return self.get_entity(restaurant_id)

    def resolve_public(self, identifier: str | int) -> Restaurant:
        """
        Active restaurant by numeric id or uuid.

        Identifiers containing a hyphen are uuids.
        """
        if is_uuid_identifier(identifier):
            restaurant = self.repo.find_active_by_uuid(str(identifier))
        else:
            restaurant_id = parse_numeric_id(identifier)
            restaurant = self.repo.find_active(restaurant_id) if restaurant_id else None
        if restaurant is None:
            raise NotFoundError("Restaurante não encontrado", identifier=str(identifier))
        return restaurant

    def search(self, term: str, filters: ListFilters) -> dict[str, Any]:
        filters.search = term
        return self.list_page(filters)

    def find_by_city(self, city: str, filters: ListFilters) -> dict[str, Any]:
        filters.criteria["city"] = city
        filters.criteria.setdefault("is_active", True)
        return self.list_page(filters)

    def stats(self) -> dict[str, int]:
        return self.repo.stats()
