"""
Security module: JWT, password hashing, opaque tokens, rate limiting.
"""

from menu_shared.security.auth import (
    sign_access_token,
    sign_refresh_token,
    verify_access_token,
    verify_refresh_token,
    get_token_from_request,
)
from menu_shared.security.password import hash_password, verify_password
from menu_shared.security.tokens import hash_token, generate_reset_token

__all__ = [
    "sign_access_token",
    "sign_refresh_token",
    "verify_access_token",
    "verify_refresh_token",
    "get_token_from_request",
    "hash_password",
    "verify_password",
    "hash_token",
    "generate_reset_token",
]
