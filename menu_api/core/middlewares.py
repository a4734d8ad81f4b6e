"""
HTTP middlewares: security headers and the activity log of mutating requests.
"""

import json
from typing import Any

from fastapi import FastAPI, Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from menu_api.routers._common import get_client_ip, get_user_agent
from menu_api.services.domain import ActivityService
from menu_shared.config.logging import api_logger as logger
from menu_shared.config.settings import settings
from menu_shared.infrastructure.db import get_db

API_PREFIX = "/api/v1"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    - Content-Security-Policy (relaxed for the docs UI and the QR print page)
    - Strict-Transport-Security in production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "0"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        path = request.url.path
        # The docs pull assets from a CDN and the print sheet uses inline styles and images
        if not (path.startswith("/api/docs") or path.endswith("/print")):
            csp_directives = [
                "default-src 'self'",
                "img-src 'self' data: https:",
                "style-src 'self' 'unsafe-inline'",
                "frame-ancestors 'none'",
                "base-uri 'self'",
                "form-action 'self'",
            ]
            response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


# =============================================================================
# Activity log
# =============================================================================


MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
# DELETE on a resource is a soft delete everywhere; permanent removal goes through /hard
METHOD_VERBS = {"POST": "create", "PUT": "update", "PATCH": "update", "DELETE": "deactivate"}
SEGMENT_ACTIONS = {"hard": "hard_delete", "status": "update_status"}
COLLECTIONS = {"restaurants", "categories", "products", "tables", "orders", "users", "qr", "auth"}
ENTITY_PARAMS = ("id", "restaurant_id", "category_id", "product_id")


def _singular(segment: str) -> str:
    if segment.endswith("ies"):
        return segment[:-3] + "y"
    if segment.endswith("s"):
        return segment[:-1]
    return segment


def describe_action(method: str, path: str) -> tuple[str, str | None]:
    """
    Name a request for the activity log, as ``(action, entity_type)``.

        PUT    /api/v1/tables/3                 -> update_table
        POST   /api/v1/restaurants/1/tables     -> create_table
        POST   /api/v1/restaurants/1/tables/batch -> batch_table
        DELETE /api/v1/users/4                  -> deactivate_user
        DELETE /api/v1/products/7/hard          -> hard_delete_product
        PUT    /api/v1/users/me                 -> update_profile
        POST   /api/v1/auth/login               -> login
    """
    segments = [s for s in path.removeprefix(API_PREFIX).split("/") if s]
    names = [s for s in segments if not s.isdigit()]
    verb = METHOD_VERBS.get(method, method.lower())
    if not names:
        return verb, None

    last = names[-1]
    if names == ["users", "me"]:
        return f"{verb}_profile", "user"
    if segments[-1].isdigit() or last in COLLECTIONS or len(names) == 1:
        entity = _singular(last)
        action = verb
    else:
        entity = _singular(names[-2])
        action = SEGMENT_ACTIONS.get(last, last.replace("-", "_"))

    if entity == "auth":
        return action, "user"
    return f"{action}_{entity}", entity


async def _read_body_keys(request: Request) -> list[str]:
    if "application/json" not in request.headers.get("content-type", ""):
        return []
    try:
        payload = json.loads(await request.body() or b"null")
    except ValueError:
        return []
    return sorted(payload) if isinstance(payload, dict) else []


class ActivityLogMiddleware(BaseHTTPMiddleware):
    """
    Record successful mutating requests made by an authenticated user.

    The user is read from ``request.state.user``, set by the auth
    dependencies. Failures to write the log never affect the response.
    """

    async def dispatch(self, request: Request, call_next):
        if request.method not in MUTATING_METHODS or not request.url.path.startswith(API_PREFIX):
            return await call_next(request)

        body_keys = await _read_body_keys(request)
        response = await call_next(request)

        user = getattr(request.state, "user", None)
        if user and 200 <= response.status_code < 300:
            await run_in_threadpool(self._record, request, user, body_keys)
        return response

    @staticmethod
    def _record(request: Request, user: dict[str, Any], body_keys: list[str]) -> None:
        action, entity_type = describe_action(request.method, request.url.path)
        entity_id = next(
            (request.path_params[p] for p in ENTITY_PARAMS if p in request.path_params), None
        )

        # Honour test overrides of the session dependency
        session_factory = request.app.dependency_overrides.get(get_db, get_db)
        sessions = session_factory()
        db = next(sessions)
        try:
            ActivityService(db).record(
                action,
                user_id=user["user_id"],
                restaurant_id=user["restaurant_id"],
                entity_type=entity_type,
                entity_id=entity_id,
                details={
                    "method": request.method,
                    "path": request.url.path,
                    "query": dict(request.query_params),
                    "body_keys": body_keys,
                },
                ip_address=get_client_ip(request),
                user_agent=get_user_agent(request),
            )
        finally:
            sessions.close()
        logger.debug("Activity recorded", action=action, user_id=user["user_id"])


def register_middlewares(app: FastAPI) -> None:
    """
    Register the HTTP middlewares.

    Middlewares run in reverse order of registration: the activity log sees
    the request after the security headers middleware.
    """
    app.add_middleware(ActivityLogMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
