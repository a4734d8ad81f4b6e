"""
User Repository - Data access for staff accounts, their tokens and activity.
"""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Select, select, update
from sqlalchemy.orm import joinedload

from menu_api.models import ActivityLog, AuthToken, User
from menu_shared.config.constants import Limits, Roles
from .base import BaseRepository, ListFilters


class UserRepository(BaseRepository[User]):
    """
    Repository for User entities.

    Rows come with restaurant and creator loaded for the output schema.
    Criteria: ``role``, ``restaurant_id``, ``is_active``.
    """

    model = User
    search_columns = ("name", "email")
    sort_columns = ("name", "email", "role", "created_at", "updated_at", "last_login")
    default_sort = "created_at"
    default_direction = "desc"

    def _load_options(self) -> list[Any]:
        return [joinedload(User.restaurant), joinedload(User.creator)]

    def _apply_filters(self, query: Select, filters: ListFilters) -> Select:
        role = filters.get("role")
        if role:
            query = query.where(User.role == role)

        restaurant_id = filters.get("restaurant_id")
        if restaurant_id:
            query = query.where(User.restaurant_id == restaurant_id)

        is_active = filters.get("is_active")
        if is_active is not None:
            query = query.where(User.is_active.is_(is_active))

        return query

    def find_by_email(self, email: str) -> User | None:
        return self._one(self._base_query().where(User.email == email.strip().lower()))

    def email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        criteria = [User.email == email.strip().lower()]
        if exclude_user_id is not None:
            criteria.append(User.id != exclude_user_id)
        return self.count(*criteria) > 0

    def count_active_super_admins(self) -> int:
        return self.count(User.role == Roles.SUPER_ADMIN, User.is_active.is_(True))

    def stats(self) -> dict[str, int]:
        total = self.count()
        active = self.count(User.is_active.is_(True))
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "super_admins": self.count(User.role == Roles.SUPER_ADMIN),
            "restaurant_users": self.count(User.role == Roles.RESTAURANT_USER),
            "email_verified": self.count(User.email_verified.is_(True)),
        }


class AuthTokenRepository(BaseRepository[AuthToken]):
    """Stored refresh and reset tokens, looked up by SHA-256 hash."""

    model = AuthToken
    search_columns = ()

    def find_usable(self, token_hash: str, token_type: str) -> AuthToken | None:
        """Token that is neither revoked nor superseded. Expiry is checked by the caller."""
        return self._one(
            self._base_query().where(
                AuthToken.token_hash == token_hash,
                AuthToken.token_type == token_type,
                AuthToken.is_revoked.is_(False),
            )
        )

    def revoke_for_user(
        self, user_id: int, revoked_at: datetime, token_type: str | None = None
    ) -> int:
        """Revoke every live token of a user, optionally of one type. Returns the count."""
        stmt = (
            update(AuthToken)
            .where(AuthToken.user_id == user_id, AuthToken.is_revoked.is_(False))
            .values(is_revoked=True, revoked_at=revoked_at)
            .execution_options(synchronize_session="fetch")
        )
        if token_type:
            stmt = stmt.where(AuthToken.token_type == token_type)
        result = self._db.execute(stmt)
        return result.rowcount or 0


class ActivityRepository(BaseRepository[ActivityLog]):
    """Append-only activity log."""

    model = ActivityLog
    search_columns = ("action",)

    def recent_for_user(
        self, user_id: int, limit: int = Limits.USER_ACTIVITY_HISTORY
    ) -> Sequence[ActivityLog]:
        query = (
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        return self._rows(query)
