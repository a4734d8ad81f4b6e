"""
Restaurant model: root aggregate owning categories, tables, users and orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menu_shared.config.constants import DEFAULT_RESTAURANT_LOGO
from .base import Base, PublicIdMixin, TimestampMixin

if TYPE_CHECKING:
    from .catalog import Category
    from .table import Table


class Restaurant(PublicIdMixin, TimestampMixin, Base):
    """
    A restaurant. Soft deleted through ``is_active``.
    """

    __tablename__ = "restaurants"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    logo: Mapped[Optional[str]] = mapped_column(String(500), default=DEFAULT_RESTAURANT_LOGO)
    address: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    categories: Mapped[list["Category"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tables: Mapped[list["Table"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
