"""
JWT utilities for staff authentication.

Access tokens carry the claims the API needs to authorize a request without
a join: ``userId``, ``email``, ``role`` and ``restaurantId``. Refresh tokens
carry only ``userId``, are signed with a separate secret and are also stored
(hashed) server side so they can be revoked and rotated.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Request

from menu_shared.config.settings import settings
from menu_shared.config.logging import get_logger
from menu_shared.config.constants import TokenType
from menu_shared.utils.exceptions import UnauthorizedError

logger = get_logger(__name__)

ALGORITHM = "HS256"
ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
USER_INFO_COOKIE = "user_info"


def access_token_ttl() -> int:
    """Access token lifetime in seconds."""
    return settings.jwt_access_token_expire_hours * 60 * 60


def refresh_token_ttl() -> int:
    """Refresh token lifetime in seconds."""
    return settings.jwt_refresh_token_expire_days * 24 * 60 * 60


def _encode(payload: dict[str, Any], secret: str, ttl_seconds: int, token_type: str) -> str:
    now = int(time.time())
    data = {
        **payload,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, secret, algorithm=ALGORITHM)


def _decode(token: str, secret: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expirado")
    except jwt.InvalidTokenError as e:
        # Log the actual error, return a generic message
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError("Token inválido")


def sign_access_token(
    user_id: int,
    email: str,
    role: str,
    restaurant_id: int | None,
    ttl_seconds: int | None = None,
) -> str:
    """
    Sign an access token.

    Args:
        ttl_seconds: Token lifetime in seconds. Defaults to the configured 24h.
    """
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "restaurantId": restaurant_id,
    }
    return _encode(
        payload,
        settings.jwt_secret,
        access_token_ttl() if ttl_seconds is None else ttl_seconds,
        TokenType.ACCESS,
    )


def sign_refresh_token(user_id: int, ttl_seconds: int | None = None) -> str:
    """Sign a refresh token (7 days by default)."""
    return _encode(
        {"userId": user_id},
        settings.jwt_refresh_secret,
        refresh_token_ttl() if ttl_seconds is None else ttl_seconds,
        TokenType.REFRESH,
    )


def verify_access_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        UnauthorizedError: If the token is invalid, expired or not an access token.
    """
    payload = _decode(token, settings.jwt_secret)

    if payload.get("type") != TokenType.ACCESS:
        raise UnauthorizedError("Token inválido")

    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        logger.warning("JWT missing userId claim")
        raise UnauthorizedError("Token inválido")

    return payload


def verify_refresh_token(token: str) -> dict[str, Any]:
    """
    Verify the signature of a refresh token.

    Revocation is checked separately against the stored token hashes.
    """
    payload = _decode(token, settings.jwt_refresh_secret)
    if payload.get("type") != TokenType.REFRESH or not isinstance(payload.get("userId"), int):
        raise UnauthorizedError("Token inválido")
    return payload


def get_token_from_request(request: Request) -> str | None:
    """
    Extract the access token from ``Authorization: Bearer`` or the
    ``access_token`` cookie.
    """
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token
    return request.cookies.get(ACCESS_COOKIE) or None


def is_browser_request(request: Request) -> bool:
    """Browsers get cookie sessions in addition to the JSON tokens."""
    accept = request.headers.get("Accept", "")
    user_agent = request.headers.get("User-Agent", "")
    return "text/html" in accept or "Mozilla" in user_agent
