"""
Pydantic schemas for the restaurant, catalog, table and order endpoints.
Centralized to avoid circular imports between routers and services.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_core import PydanticCustomError

from menu_shared.config.constants import Limits
from menu_shared.utils.schemas import InputModel, NormalizedEmail, RestaurantSummary
from menu_shared.utils.validators import PHONE_PATTERN

Price = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]

PROMOTION_PRICE_MESSAGE = "Preço promocional deve ser menor que o preço regular"


def check_promotion_price(
    is_on_promotion: bool | None,
    current_price: Decimal | None,
    regular_price: Decimal | None,
) -> None:
    """A product on promotion must cost less than its regular price."""
    if is_on_promotion and current_price is not None and regular_price is not None:
        if current_price >= regular_price:
            raise PydanticCustomError(
                "custom.promotionPrice",
                PROMOTION_PRICE_MESSAGE,
                {"field": "current_price"},
            )


# =============================================================================
# Restaurant Schemas
# =============================================================================


class RestaurantOutput(BaseModel):
    id: int
    uuid: str
    name: str
    logo: str | None = None
    address: str | None = None
    city: str | None = None
    phone: str | None = None
    email: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class RestaurantCreate(InputModel):
    name: str = Field(min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    logo: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    address: str | None = Field(default=None, max_length=Limits.MAX_ADDRESS_LENGTH)
    city: str | None = Field(default=None, max_length=Limits.MAX_CITY_LENGTH)
    phone: str | None = Field(
        default=None, max_length=Limits.MAX_PHONE_LENGTH, pattern=PHONE_PATTERN
    )
    email: NormalizedEmail | None = None
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    is_active: bool = True


class RestaurantUpdate(InputModel):
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    logo: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    address: str | None = Field(default=None, max_length=Limits.MAX_ADDRESS_LENGTH)
    city: str | None = Field(default=None, max_length=Limits.MAX_CITY_LENGTH)
    phone: str | None = Field(
        default=None, max_length=Limits.MAX_PHONE_LENGTH, pattern=PHONE_PATTERN
    )
    email: NormalizedEmail | None = None
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    is_active: bool = None


# =============================================================================
# Category Schemas
# =============================================================================


class CategoryOutput(BaseModel):
    id: int
    uuid: str
    restaurant_id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    sort_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None
    restaurant: RestaurantSummary | None = None
    products_count: int | None = None

    class Config:
        from_attributes = True


class CategoryCreate(InputModel):
    # Taken from the path on nested routes
    restaurant_id: int | None = Field(default=None, gt=0)
    name: str = Field(min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    image_url: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    sort_order: int | None = Field(default=None, ge=0)
    is_active: bool = True


class CategoryUpdate(InputModel):
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    image_url: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    sort_order: int = Field(default=None, ge=0)
    is_active: bool = None


class CategoryDuplicate(InputModel):
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    image_url: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    sort_order: int = Field(default=None, ge=0)


class SortOrderItem(BaseModel):
    id: int = Field(gt=0)
    sort_order: int = Field(ge=0)


class CategoryReorder(InputModel):
    categories: list[SortOrderItem] = Field(min_length=1)


# =============================================================================
# Product Schemas
# =============================================================================


class CategorySummary(BaseModel):
    id: int
    name: str
    restaurant_id: int

    class Config:
        from_attributes = True


class ProductOutput(BaseModel):
    id: int
    uuid: str
    category_id: int
    name: str
    description: str | None = None
    regular_price: float
    current_price: float
    is_on_promotion: bool
    image_url: str | None = None
    is_available: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime | None = None
    category: CategorySummary | None = None

    class Config:
        from_attributes = True


class ProductCreate(InputModel):
    # Taken from the path on nested routes
    category_id: int | None = Field(default=None, gt=0)
    name: str = Field(min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    regular_price: Price
    current_price: Price | None = None
    is_on_promotion: bool = False
    image_url: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    is_available: bool = True
    sort_order: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def promotion_below_regular_price(self) -> "ProductCreate":
        check_promotion_price(self.is_on_promotion, self.current_price, self.regular_price)
        return self


class ProductUpdate(InputModel):
    category_id: int = Field(default=None, gt=0)
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    regular_price: Price = None
    current_price: Price = None
    is_on_promotion: bool = None
    image_url: str | None = Field(default=None, max_length=Limits.MAX_URL_LENGTH)
    is_available: bool = None
    sort_order: int = Field(default=None, ge=0)

    @model_validator(mode="after")
    def promotion_below_regular_price(self) -> "ProductUpdate":
        check_promotion_price(self.is_on_promotion, self.current_price, self.regular_price)
        return self


class ProductDuplicate(InputModel):
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=Limits.MAX_DESCRIPTION_LENGTH)
    regular_price: Price = None
    category_id: int = Field(default=None, gt=0)
    sort_order: int = Field(default=None, ge=0)


class PromotionRequest(InputModel):
    """``promotion_price: null`` ends the promotion."""

    promotion_price: Price | None = None


class MoveProductRequest(InputModel):
    category_id: int = Field(gt=0)


class ProductReorder(InputModel):
    products: list[SortOrderItem] = Field(min_length=1)


# =============================================================================
# Table Schemas
# =============================================================================


class TableOutput(BaseModel):
    id: int
    uuid: str
    restaurant_id: int
    table_number: int
    name: str | None = None
    capacity: int
    location: str | None = None
    is_active: bool
    qr_code_generated: bool
    last_qr_generated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    restaurant: RestaurantSummary | None = None

    class Config:
        from_attributes = True


TableNumber = Annotated[int, Field(ge=Limits.MIN_TABLE_NUMBER, le=Limits.MAX_TABLE_NUMBER)]
Capacity = Annotated[int, Field(ge=Limits.MIN_TABLE_CAPACITY, le=Limits.MAX_TABLE_CAPACITY)]


class TableCreate(InputModel):
    restaurant_id: int | None = Field(default=None, gt=0)
    table_number: TableNumber
    name: str | None = Field(default=None, max_length=100)
    capacity: Capacity = Limits.DEFAULT_TABLE_CAPACITY
    location: str | None = Field(default=None, max_length=255)
    is_active: bool = True


class TableUpdate(InputModel):
    table_number: TableNumber = None
    name: str | None = Field(default=None, max_length=100)
    capacity: Capacity = None
    location: str | None = Field(default=None, max_length=255)
    is_active: bool = None


class TableBatchCreate(InputModel):
    table_numbers: list[TableNumber] = Field(min_length=1, max_length=Limits.MAX_TABLE_BATCH)
    capacity: Capacity = Limits.DEFAULT_TABLE_CAPACITY

    @model_validator(mode="after")
    def unique_numbers(self) -> "TableBatchCreate":
        if len(set(self.table_numbers)) != len(self.table_numbers):
            raise PydanticCustomError(
                "array.unique",
                "Números de mesa não podem se repetir",
                {"field": "table_numbers"},
            )
        return self


class TableRangeCreate(InputModel):
    start_number: TableNumber
    end_number: TableNumber
    capacity: Capacity = Limits.DEFAULT_TABLE_CAPACITY

    @model_validator(mode="after")
    def end_after_start(self) -> "TableRangeCreate":
        if self.end_number < self.start_number:
            raise PydanticCustomError(
                "number.min",
                "Número final deve ser maior ou igual ao inicial",
                {"field": "end_number"},
            )
        if self.end_number - self.start_number > Limits.MAX_TABLE_BATCH:
            raise PydanticCustomError(
                "number.max",
                f"Máximo de {Limits.MAX_TABLE_BATCH} mesas por vez",
                {"field": "end_number"},
            )
        return self


# =============================================================================
# Order Schemas
# =============================================================================


class ProductBrief(BaseModel):
    id: int
    name: str
    image_url: str | None = None

    class Config:
        from_attributes = True


class TableBrief(BaseModel):
    id: int
    table_number: int
    name: str | None = None

    class Config:
        from_attributes = True


class RestaurantBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class OrderItemOutput(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: float
    total_price: float
    notes: str | None = None
    product: ProductBrief | None = None

    class Config:
        from_attributes = True


class OrderOutput(BaseModel):
    id: int
    uuid: str
    restaurant_id: int
    table_id: int | None = None
    order_number: str
    status: str
    subtotal: float
    total_amount: float
    customer_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None
    confirmed_at: datetime | None = None
    ready_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    restaurant: RestaurantBrief | None = None
    table: TableBrief | None = None
    items: list[OrderItemOutput] = []

    class Config:
        from_attributes = True


class OrderItemCreate(InputModel):
    product_id: int = Field(gt=0)
    quantity: int = Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    # Defaults to the product's current price
    unit_price: Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)] | None = None
    notes: str | None = Field(default=None, max_length=500)


class OrderCreate(InputModel):
    restaurant_id: int | None = Field(default=None, gt=0)
    table_id: int | None = Field(default=None, gt=0)
    customer_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    customer_phone: str | None = Field(
        default=None, max_length=Limits.MAX_PHONE_LENGTH, pattern=PHONE_PATTERN
    )
    notes: str | None = Field(default=None, max_length=1000)
    items: list[OrderItemCreate] = Field(default_factory=list)


class OrderStatusUpdate(InputModel):
    # Any string is accepted here; the service reports unknown values
    status: str


StatsPeriod = Literal["today", "week", "month"]


# =============================================================================
# QR Code Schemas
# =============================================================================


QrFormat = Literal["png", "svg", "json"]


class QrBatchRequest(InputModel):
    table_numbers: list[TableNumber] = Field(default_factory=list)
    format: Literal["json", "svg", "png"] = "json"
