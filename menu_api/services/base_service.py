"""
Base Service Classes.

Architecture:
    Router (thin) -> Service (business logic) -> Repository (data access) -> Model

Services are built per request from the injected session and the caller:

    service = TableService(db, user)
    table = service.create({"restaurant_id": 1, "table_number": 7})

They own the transaction (repositories only flush), translate database
integrity errors into the exception taxonomy and turn entities into output
schemas.
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from menu_api.models import Base
from menu_api.repositories import BaseRepository, ListFilters
from menu_api.services.permissions import can_access_restaurant, ensure_restaurant_access
from menu_shared.config.constants import DUPLICATE_SUFFIX
from menu_shared.config.logging import get_logger
from menu_shared.infrastructure.db import safe_commit
from menu_shared.utils.exceptions import NotFoundError, translate_db_error
from menu_shared.utils.responses import paginated

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)

# Never copied by duplicate()
IDENTITY_FIELDS = frozenset({"id", "uuid", "created_at", "updated_at"})


class BaseCRUDService(Generic[ModelT, OutputT]):
    """
    Base service for entities with CRUD operations.

    Subclasses provide the repository, output schema and messages, and
    override the hooks for business rules:

    - ``_validate_create(data)`` / ``_validate_update(entity, data)``
    - ``_after_create(entity)``
    - ``restaurant_id_of(entity)`` for restaurant scoping
    """

    #: Column toggled by soft delete / reactivate
    active_field: str = "is_active"

    def __init__(
        self,
        db: Session,
        repo: BaseRepository[ModelT],
        output_schema: type[OutputT],
        entity_name: str,
        not_found_message: str,
        user: dict[str, Any] | None = None,
    ):
        self._db = db
        self._repo = repo
        self._output_schema = output_schema
        self._entity_name = entity_name
        self._not_found_message = not_found_message
        self._user = user

    @property
    def db(self) -> Session:
        return self._db

    @property
    def repo(self) -> BaseRepository[ModelT]:
        return self._repo

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_entity(self, entity_id: int) -> ModelT:
        """Raw entity, scoped to the caller's restaurant."""
        entity = self._repo.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self._not_found_message, entity=self._entity_name, entity_id=entity_id)
        self.check_access(entity)
        return entity

    def get_by_id(self, entity_id: int) -> OutputT:
        return self.to_output(self.get_entity(entity_id))

    def get_by_uuid(self, uuid: str) -> OutputT:
        entity = self._repo.find_by_uuid(uuid)
        if entity is None:
            raise NotFoundError(self._not_found_message, entity=self._entity_name, uuid=uuid)
        self.check_access(entity)
        return self.to_output(entity)

    def exists(self, entity_id: int) -> bool:
        entity = self._repo.find_by_id(entity_id)
        return entity is not None and self.can_access(entity)

    def list_page(self, filters: ListFilters) -> dict[str, Any]:
        """Paginated list payload: ``{"data": [...], "pagination": {...}}``."""
        rows, total = self._repo.find_page(filters)
        return paginated(self.to_outputs(rows), filters.page, filters.limit, total)

    def list_all(self, filters: ListFilters) -> list[OutputT]:
        """Unpaginated list, for nested collections that are small by nature."""
        return self.to_outputs(self._repo.find_all(filters))

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(self, data: dict[str, Any]) -> OutputT:
        self._validate_create(data)

        entity = self._repo.model(**data)
        self._repo.add(entity)
        self.commit(action="create")
        self._db.refresh(entity)

        self._after_create(entity)
        logger.info(f"{self._entity_name} created", entity_id=entity.id)
        return self.to_output(entity)

    def update(self, entity_id: int, data: dict[str, Any]) -> OutputT:
        entity = self.get_entity(entity_id)
        self._validate_update(entity, data)

        for field_name, value in data.items():
            if hasattr(entity, field_name):
                setattr(entity, field_name, value)

        self.commit(action="update", entity_id=entity_id)
        self._db.refresh(entity)
        return self.to_output(entity)

    def soft_delete(self, entity_id: int) -> OutputT:
        return self._set_active(entity_id, False)

    def reactivate(self, entity_id: int) -> OutputT:
        return self._set_active(entity_id, True)

    def hard_delete(self, entity_id: int) -> None:
        """Permanent removal. Irreversible."""
        entity = self.get_entity(entity_id)
        self._db.delete(entity)
        self.commit(action="hard_delete", entity_id=entity_id)
        logger.info(f"{self._entity_name} permanently deleted", entity_id=entity_id)

    def duplicate(self, entity_id: int, overrides: dict[str, Any]) -> OutputT:
        """
        Clone an entity without its identity and timestamps.

        Every other column, ``sort_order`` included, is copied. The copy is
        named "<name> (Cópia)" unless ``overrides`` names it.
        """
        source = self.get_entity(entity_id)
        data = {
            column.key: getattr(source, column.key)
            for column in source.__table__.columns
            if column.key not in IDENTITY_FIELDS
        }
        data["name"] = f"{source.name}{DUPLICATE_SUFFIX}"
        data.update({key: value for key, value in overrides.items() if value is not None})
        return self.create(data)

    def _set_active(self, entity_id: int, value: bool) -> OutputT:
        entity = self.get_entity(entity_id)
        setattr(entity, self.active_field, value)
        self.commit(action="activate" if value else "deactivate", entity_id=entity_id)
        self._db.refresh(entity)
        return self.to_output(entity)

    def commit(self, **log_context: Any) -> None:
        """Commit, turning integrity failures into API errors."""
        try:
            safe_commit(self._db)
        except IntegrityError as exc:
            raise translate_db_error(exc, entity=self._entity_name, **log_context)

    # =========================================================================
    # Scoping
    # =========================================================================

    def restaurant_id_of(self, entity: ModelT) -> int | None:
        """Restaurant owning the entity. Override when it is not a column."""
        return getattr(entity, "restaurant_id", None)

    def can_access(self, entity: ModelT) -> bool:
        return can_access_restaurant(self._user, self.restaurant_id_of(entity))

    def check_access(self, entity: ModelT) -> None:
        ensure_restaurant_access(self._user, self.restaurant_id_of(entity))

    # =========================================================================
    # Transformation
    # =========================================================================

    def to_output(self, entity: ModelT) -> OutputT:
        """Override for custom transformation logic."""
        return self._output_schema.model_validate(entity)

    def to_outputs(self, entities: Sequence[ModelT]) -> list[OutputT]:
        return [self.to_output(entity) for entity in entities]

    # =========================================================================
    # Hooks (override in subclasses)
    # =========================================================================

    def _validate_create(self, data: dict[str, Any]) -> None:
        """Validate and complete data before insert."""
        pass

    def _validate_update(self, entity: ModelT, data: dict[str, Any]) -> None:
        pass

    def _after_create(self, entity: ModelT) -> None:
        pass
