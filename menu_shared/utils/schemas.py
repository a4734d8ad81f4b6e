"""
Shared Pydantic schemas: common types, authentication and users.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, get_args

from pydantic import BaseModel, BeforeValidator, EmailStr, Field, model_validator
from pydantic_core import PydanticCustomError

from menu_shared.config.constants import Limits, Roles


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["super_admin", "restaurant_user"]
SortDirection = Literal["asc", "desc"]
OrderStatusValue = Literal["pending", "confirmed", "preparing", "ready", "delivered", "cancelled"]


def blank_to_none(value: Any) -> Any:
    """Optional text fields accept "" as "not provided"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def lower_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# Emails are compared and stored lowercase
NormalizedEmail = Annotated[EmailStr, BeforeValidator(lower_email)]


def _accepts_none(annotation: Any) -> bool:
    return annotation is None or type(None) in get_args(annotation)


class InputModel(BaseModel):
    """
    Base for request bodies.

    Blank strings sent for nullable fields are read as null, so clients can
    clear a field with "" as well as with null.
    """

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_as_none(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for name, field in cls.model_fields.items():
            if name in cleaned and _accepts_none(field.annotation):
                cleaned[name] = blank_to_none(cleaned[name])
        return cleaned


class RestaurantSummary(BaseModel):
    id: int
    name: str
    city: str | None = None

    class Config:
        from_attributes = True


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(InputModel):
    """Login request body."""

    email: NormalizedEmail
    password: str = Field(min_length=1)


class RefreshTokenRequest(InputModel):
    refresh_token: str = Field(min_length=1)


class LogoutRequest(InputModel):
    refresh_token: str | None = None


class ForgotPasswordRequest(InputModel):
    email: NormalizedEmail


class ResetPasswordRequest(InputModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)


class ChangePasswordRequest(InputModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


# =============================================================================
# User Schemas
# =============================================================================


class UserOutput(BaseModel):
    """Public view of a user. Never carries the password hash."""

    id: int
    uuid: str
    name: str
    email: str
    role: str
    restaurant_id: int | None = None
    is_active: bool
    email_verified: bool
    last_login: datetime | None = None
    created_by: int | None = None
    created_at: datetime
    updated_at: datetime | None = None
    restaurant_name: str | None = None
    restaurant_city: str | None = None
    created_by_name: str | None = None

    class Config:
        from_attributes = True


def _check_role_restaurant(role: str | None, restaurant_id: int | None) -> None:
    if role == Roles.SUPER_ADMIN and restaurant_id is not None:
        raise PydanticCustomError(
            "any.unknown",
            "Super admin não pode ter restaurante associado",
            {"field": "restaurant_id"},
        )
    if role == Roles.RESTAURANT_USER and restaurant_id is None:
        raise PydanticCustomError(
            "any.required",
            "ID do restaurante é obrigatório para usuários de restaurante",
            {"field": "restaurant_id"},
        )


class UserCreate(InputModel):
    name: str = Field(min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    email: NormalizedEmail
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    role: Role
    restaurant_id: int | None = Field(default=None, gt=0)
    is_active: bool = True
    email_verified: bool = False

    @model_validator(mode="after")
    def role_matches_restaurant(self) -> "UserCreate":
        _check_role_restaurant(self.role, self.restaurant_id)
        return self


class UserUpdate(InputModel):
    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    email: NormalizedEmail = None
    password: str = Field(default=None, min_length=Limits.MIN_PASSWORD_LENGTH)
    role: Role = None
    restaurant_id: int | None = Field(default=None, gt=0)
    is_active: bool = None
    email_verified: bool = None

    @model_validator(mode="after")
    def role_matches_restaurant(self) -> "UserUpdate":
        # Only checkable when both sides are part of the payload
        if "role" in self.model_fields_set and "restaurant_id" in self.model_fields_set:
            _check_role_restaurant(self.role, self.restaurant_id)
        return self


class ProfileUpdate(InputModel):
    """Fields a user may change on their own profile."""

    name: str = Field(default=None, min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    email: NormalizedEmail = None
    password: str = Field(default=None, min_length=Limits.MIN_PASSWORD_LENGTH)


class RestaurantUserCreate(InputModel):
    """User created under /restaurants/{id}/users; role and restaurant are implied."""

    name: str = Field(min_length=2, max_length=Limits.MAX_NAME_LENGTH)
    email: NormalizedEmail
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    is_active: bool = True
    email_verified: bool = False


class ActivityOutput(BaseModel):
    id: int
    user_id: int | None = None
    restaurant_id: int | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True
