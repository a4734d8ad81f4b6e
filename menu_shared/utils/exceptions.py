"""
Centralized HTTP exceptions for consistent error handling.

Every exception renders as the standard error envelope (see
menu_api.core.exception_handlers) and logs itself when raised.

Usage:
    from menu_shared.utils.exceptions import NotFoundError, ConflictError, ValidationError

    raise NotFoundError("Restaurante não encontrado", restaurant_id=restaurant_id)
    raise ConflictError(f"Mesa {number} já existe neste restaurante")
    raise ValidationError("Status inválido", field="status")
"""

from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import DBAPIError, IntegrityError

from menu_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    Carries an optional list of field errors rendered as ``errors`` in the
    response envelope.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        errors: list[dict[str, Any]] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.errors = errors


# =============================================================================
# 422 Validation Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (422).

    Usage:
        raise ValidationError("Status inválido", field="status")
        raise ValidationError(
            "Preço promocional deve ser menor que o preço regular",
            field="current_price",
            error_type="custom.promotionPrice",
        )
    """

    def __init__(
        self,
        detail: str,
        field: str | None = None,
        error_type: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **log_context: Any,
    ):
        if errors is None and field is not None:
            entry: dict[str, Any] = {"field": field, "message": detail}
            if error_type:
                entry["type"] = error_type
            errors = [entry]

        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            log_level="warning",
            errors=errors,
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Produto não encontrado", product_id=12)
    """

    def __init__(self, detail: str = "Recurso não encontrado", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Email já está em uso")
    """

    def __init__(self, detail: str = "Recurso já existe", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 401 / 403 Authorization Errors
# =============================================================================


class UnauthorizedError(AppException):
    """
    Authentication or authorization failure (401).

    Role and ownership mismatches are reported with this status too.
    """

    def __init__(self, detail: str = "Não autorizado", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InsufficientRoleError(UnauthorizedError):
    """User doesn't have one of the required roles."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(required_roles)
        super().__init__(
            f"Acesso negado. Roles permitidos: {roles_str}",
            required_roles=required_roles,
            **log_context,
        )


class RestaurantAccessError(UnauthorizedError):
    """Restaurant user tried to reach another restaurant's resources."""

    def __init__(self, restaurant_id: int | None = None, **log_context: Any):
        super().__init__(
            "Acesso negado a este restaurante",
            restaurant_id=restaurant_id,
            **log_context,
        )


class ForbiddenError(AppException):
    """Permission error (403). Used by server-rendered pages."""

    def __init__(self, detail: str = "Acesso negado", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """Internal server error (500)."""

    def __init__(self, detail: str = "Erro interno do servidor", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed. ``code`` keeps the SQLSTATE when known."""

    def __init__(
        self,
        detail: str = "Erro de banco de dados",
        code: str | None = None,
        **log_context: Any,
    ):
        super().__init__(detail, db_code=code, **log_context)
        self.code = code


# =============================================================================
# Database error translation
# =============================================================================


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
INSUFFICIENT_PRIVILEGE = "42501"

# SQLite reports constraint failures as text only
_SQLITE_MESSAGES = {
    "UNIQUE constraint failed": UNIQUE_VIOLATION,
    "FOREIGN KEY constraint failed": FOREIGN_KEY_VIOLATION,
    "NOT NULL constraint failed": NOT_NULL_VIOLATION,
}


def _db_error_code(exc: DBAPIError) -> str | None:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code
    message = str(orig) if orig is not None else str(exc)
    for fragment, sqlstate in _SQLITE_MESSAGES.items():
        if fragment in message:
            return sqlstate
    return None


def translate_db_error(exc: DBAPIError, **log_context: Any) -> AppException:
    """
    Map a SQLAlchemy/DBAPI error to the exception taxonomy.

    Usage:
        try:
            safe_commit(db)
        except IntegrityError as exc:
            raise translate_db_error(exc, entity="Table")
    """
    code = _db_error_code(exc)

    if code == UNIQUE_VIOLATION:
        return ConflictError("Recurso já existe com estes dados", db_code=code, **log_context)
    if code == FOREIGN_KEY_VIOLATION:
        return ValidationError(
            "Referência inválida - recurso relacionado não existe", db_code=code, **log_context
        )
    if code == NOT_NULL_VIOLATION:
        return ValidationError("Campo obrigatório não informado", db_code=code, **log_context)
    if code == INSUFFICIENT_PRIVILEGE:
        return UnauthorizedError(
            "Permissão insuficiente para esta operação", db_code=code, **log_context
        )

    return DatabaseError(code=code, error=str(getattr(exc, "orig", exc)), **log_context)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the integrity error comes from a unique constraint."""
    return _db_error_code(exc) == UNIQUE_VIOLATION
