"""
Opaque token helpers.

Only SHA-256 digests of issued tokens are persisted, so a database leak does
not expose usable refresh or reset tokens.
"""

import hashlib
import secrets


def hash_token(token: str) -> str:
    """Hex SHA-256 digest of a raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)
