"""
Catalog models: Category, Product.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from menu_shared.config.constants import DEFAULT_CATEGORY_IMAGE, DEFAULT_PRODUCT_IMAGE
from .base import Base, PublicIdMixin, TimestampMixin

if TYPE_CHECKING:
    from .restaurant import Restaurant


class Category(PublicIdMixin, TimestampMixin, Base):
    """
    Menu category of a restaurant.
    ``sort_order`` orders categories inside the restaurant.
    """

    __tablename__ = "categories"

    restaurant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), default=DEFAULT_CATEGORY_IMAGE)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="categories")
    products: Mapped[list["Product"]] = relationship(
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Product.sort_order",
    )

    __table_args__ = (
        Index("ix_categories_restaurant_sort", "restaurant_id", "sort_order"),
    )


class Product(PublicIdMixin, TimestampMixin, Base):
    """
    Product sold by a restaurant, inside one category.

    ``current_price`` is the price charged; it is below ``regular_price``
    while ``is_on_promotion`` is set.
    """

    __tablename__ = "products"

    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    regular_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    current_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_on_promotion: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), default=DEFAULT_PRODUCT_IMAGE)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    category: Mapped["Category"] = relationship(back_populates="products")

    __table_args__ = (
        Index("ix_products_category_sort", "category_id", "sort_order"),
    )
