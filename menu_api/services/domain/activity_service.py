"""
Activity Service - append-only audit trail in ``activity_logs``.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menu_api.models import ActivityLog
from menu_api.repositories import ActivityRepository
from menu_shared.config.logging import get_logger
from menu_shared.utils.schemas import ActivityOutput

logger = get_logger(__name__)


class ActivityService:
    """
    Records user activity.

    Writing the log never breaks the operation being logged: failures are
    logged and rolled back.
    """

    def __init__(self, db: Session):
        self._db = db
        self._repo = ActivityRepository(db)

    def record(
        self,
        action: str,
        user_id: int | None = None,
        restaurant_id: int | None = None,
        entity_type: str | None = None,
        entity_id: int | str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        entry = ActivityLog(
            user_id=user_id,
            restaurant_id=restaurant_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            self._db.add(entry)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Failed to record activity", action=action, user_id=user_id, error=str(exc))

    def recent_for_user(self, user_id: int) -> list[ActivityOutput]:
        return [ActivityOutput.model_validate(row) for row in self._repo.recent_for_user(user_id)]
