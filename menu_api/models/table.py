"""
Table model: physical tables of a restaurant, targets of table QR codes.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menu_shared.config.constants import Limits
from .base import Base, PublicIdMixin, TimestampMixin

if TYPE_CHECKING:
    from .restaurant import Restaurant


class Table(PublicIdMixin, TimestampMixin, Base):
    __tablename__ = "tables"

    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100))
    capacity: Mapped[int] = mapped_column(
        Integer, default=Limits.DEFAULT_TABLE_CAPACITY, nullable=False
    )
    location: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    qr_code_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_qr_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    restaurant: Mapped["Restaurant"] = relationship(back_populates="tables")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "table_number", name="uq_tables_restaurant_number"),
    )
