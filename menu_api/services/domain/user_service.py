"""
User Service - staff accounts.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from menu_api.models import User, utcnow
from menu_api.repositories import (
    AuthTokenRepository,
    ListFilters,
    RestaurantRepository,
    UserRepository,
)
from menu_api.services.base_service import BaseCRUDService
from menu_api.services.domain.activity_service import ActivityService
from menu_api.services.permissions import scoped_restaurant_id
from menu_shared.config.constants import Roles
from menu_shared.config.logging import get_logger
from menu_shared.security.password import hash_password
from menu_shared.utils.exceptions import ConflictError, NotFoundError, ValidationError
from menu_shared.utils.schemas import ActivityOutput, UserOutput

logger = get_logger(__name__)


class UserService(BaseCRUDService[User, UserOutput]):
    """
    Service for user management.

    A super_admin never has a restaurant; a restaurant_user always has one.
    Passwords are stored as bcrypt hashes only.
    """

    def __init__(self, db: Session, user: dict[str, Any] | None = None):
        super().__init__(
            db=db,
            repo=UserRepository(db),
            output_schema=UserOutput,
            entity_name="User",
            not_found_message="Usuário não encontrado",
            user=user,
        )
        self._restaurants = RestaurantRepository(db)
        self._tokens = AuthTokenRepository(db)
        self._activity = ActivityService(db)

    @property
    def repo(self) -> UserRepository:
        return self._repo

    @property
    def actor_id(self) -> int | None:
        return self.user.get("user_id") if self.user else None

    def to_output(self, entity: User) -> UserOutput:
        output = UserOutput.model_validate(entity)
        if entity.restaurant is not None:
            output.restaurant_name = entity.restaurant.name
            output.restaurant_city = entity.restaurant.city
        if entity.creator is not None:
            output.created_by_name = entity.creator.name
        return output

    # =========================================================================
    # Queries
    # =========================================================================

    def list_users(self, filters: ListFilters) -> dict[str, Any]:
        filters.criteria["restaurant_id"] = scoped_restaurant_id(
            self.user, filters.get("restaurant_id")
        )
        return self.list_page(filters)

    def stats(self) -> dict[str, int]:
        return self.repo.stats()

    def activities(self, user_id: int) -> list[ActivityOutput]:
        self.get_entity(user_id)
        return self._activity.recent_for_user(user_id)

    # =========================================================================
    # Hooks
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        if self.repo.email_taken(data["email"]):
            raise ConflictError("Email já está em uso", email_domain=data["email"].split("@")[-1])

        self._check_role_restaurant(data.get("role"), data.get("restaurant_id"))
        self.ensure_restaurant(data.get("restaurant_id"))

        data["password_hash"] = hash_password(data.pop("password"))
        data["created_by"] = self.actor_id

    def _validate_update(self, entity: User, data: dict[str, Any]) -> None:
        email = data.get("email")
        if email and email != entity.email and self.repo.email_taken(email, exclude_user_id=entity.id):
            raise ConflictError("Email já está em uso", user_id=entity.id)

        if "role" in data or "restaurant_id" in data:
            role = data.get("role", entity.role)
            if role == Roles.SUPER_ADMIN and "restaurant_id" not in data:
                data["restaurant_id"] = None
            restaurant_id = data.get("restaurant_id", entity.restaurant_id)
            self._check_role_restaurant(role, restaurant_id)
            self.ensure_restaurant(restaurant_id)

        if data.get("is_active") is False:
            self._check_can_deactivate(entity)

        password = data.pop("password", None)
        if password:
            data["password_hash"] = hash_password(password)

    @staticmethod
    def _check_role_restaurant(role: str | None, restaurant_id: int | None) -> None:
        if role == Roles.SUPER_ADMIN and restaurant_id is not None:
            raise ValidationError(
                "Super admin não pode ter restaurante associado",
                field="restaurant_id",
                error_type="any.unknown",
            )
        if role == Roles.RESTAURANT_USER and restaurant_id is None:
            raise ValidationError(
                "ID do restaurante é obrigatório para usuários de restaurante",
                field="restaurant_id",
                error_type="any.required",
            )

    def ensure_restaurant(self, restaurant_id: int | None) -> None:
        if restaurant_id is not None and not self._restaurants.exists(restaurant_id):
            raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)

    def _check_can_deactivate(self, entity: User) -> None:
        if entity.id == self.actor_id:
            raise ValidationError("Não é possível inativar o próprio usuário", field="id")
        if (
            entity.role == Roles.SUPER_ADMIN
            and entity.is_active
            and self.repo.count_active_super_admins() <= 1
        ):
            raise ValidationError("Não é possível inativar o último super administrador", field="id")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def update(self, entity_id: int, data: dict[str, Any]) -> UserOutput:
        output = super().update(entity_id, data)
        if data.get("is_active") is False:
            self._revoke_tokens(entity_id)
        return output

    def deactivate(self, user_id: int) -> UserOutput:
        """Soft delete a user and revoke every token they hold."""
        entity = self.get_entity(user_id)
        self._check_can_deactivate(entity)

        entity.is_active = False
        self.commit(action="deactivate", entity_id=user_id)
        self._revoke_tokens(user_id)

        logger.info("User deactivated", user_id=user_id, by=self.actor_id)
        self._db.refresh(entity)
        return self.to_output(entity)

    def _revoke_tokens(self, user_id: int) -> None:
        revoked = self._tokens.revoke_for_user(user_id, utcnow())
        self.commit(action="revoke_tokens", entity_id=user_id)
        logger.info("User tokens revoked", user_id=user_id, count=revoked)
