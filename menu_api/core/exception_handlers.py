"""
Exception handlers rendering every error as the response envelope.
"""

import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from menu_shared.config.logging import api_logger as logger
from menu_shared.config.settings import settings
from menu_shared.security.rate_limit import rate_limit_exceeded_handler
from menu_shared.utils.exceptions import AppException, translate_db_error
from menu_shared.utils.responses import error_response


def _field_name(loc: tuple[Any, ...]) -> str:
    # ("body", "items", 0, "quantity") -> "items.0.quantity"
    if not loc:
        return ""
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts) or str(loc[-1])


def validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """One ``{field, message, type}`` entry per invalid field."""
    return [
        {
            "field": _field_name(tuple(error.get("loc", ()))),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


async def app_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and not isinstance(exc, AppException):
        # Unmatched route
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_response("Rota não encontrada", path=request.url.path),
        )

    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response("Método não permitido", path=request.url.path),
            headers=getattr(exc, "headers", None),
        )

    errors = getattr(exc, "errors", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail), errors),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_response("JSON inválido na requisição"),
        )

    errors = validation_errors(exc)
    logger.info("Request validation failed", path=request.url.path, fields=[e["field"] for e in errors])
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response("Erro de validação", errors),
    )


async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Database errors that escaped the services are translated here."""
    translated = translate_db_error(exc, path=request.url.path)
    return await app_exception_handler(request, translated)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    extra: dict[str, Any] = {}
    if settings.is_development:
        extra["type"] = type(exc).__name__
        extra["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response("Erro interno do servidor", **extra),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(DBAPIError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
