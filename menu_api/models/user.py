"""
User and AuthToken models.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menu_shared.config.constants import Roles
from .base import Base, BigIntPK, PublicIdMixin, TimestampMixin, utcnow

if TYPE_CHECKING:
    from .restaurant import Restaurant


class User(PublicIdMixin, TimestampMixin, Base):
    """
    Staff account.

    A super_admin has no restaurant; a restaurant_user belongs to exactly one.
    Email is stored lowercase and is unique.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), default=Roles.RESTAURANT_USER, nullable=False, index=True
    )
    restaurant_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("restaurants.id", ondelete="CASCADE"), index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL")
    )

    restaurant: Mapped[Optional["Restaurant"]] = relationship()
    creator: Mapped[Optional["User"]] = relationship(remote_side="User.id")

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'restaurant_user')",
            name="ck_users_role",
        ),
        CheckConstraint(
            "role != 'super_admin' OR restaurant_id IS NULL",
            name="ck_users_super_admin_no_restaurant",
        ),
        CheckConstraint(
            "role != 'restaurant_user' OR restaurant_id IS NOT NULL",
            name="ck_users_restaurant_user_has_restaurant",
        ),
    )

    @property
    def is_super_admin(self) -> bool:
        return self.role == Roles.SUPER_ADMIN


class AuthToken(Base):
    """
    Server-side record of an issued refresh or reset token.
    Only the SHA-256 hash of the raw token is stored.
    """

    __tablename__ = "auth_tokens"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    token_type: Mapped[str] = mapped_column(String(20), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "token_type IN ('access', 'refresh', 'reset_password')",
            name="ck_auth_tokens_type",
        ),
    )
