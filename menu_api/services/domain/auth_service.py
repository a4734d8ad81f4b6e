"""
Auth Service - login, token rotation and password flows.

Access tokens are stateless JWTs. Refresh and reset tokens are persisted as
SHA-256 hashes in ``auth_tokens`` so they can be revoked; a refresh token is
single use and every refresh rotates it.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from menu_api.models import AuthToken, User, as_aware, utcnow
from menu_api.repositories import AuthTokenRepository, UserRepository
from menu_api.services.domain.activity_service import ActivityService
from menu_shared.config.constants import TokenType
from menu_shared.config.logging import audit_auth_event, auth_logger as logger, mask_email, mask_token
from menu_shared.config.settings import settings
from menu_shared.infrastructure.db import safe_commit
from menu_shared.security.auth import (
    access_token_ttl,
    refresh_token_ttl,
    sign_access_token,
    sign_refresh_token,
    verify_refresh_token,
)
from menu_shared.security.password import hash_password, verify_password
from menu_shared.security.tokens import generate_reset_token, hash_token
from menu_shared.utils.exceptions import UnauthorizedError, ValidationError
from menu_shared.utils.schemas import TokenPair, UserOutput

INVALID_CREDENTIALS = "Email ou senha inválidos"
INVALID_REFRESH = "Refresh token inválido ou expirado"
INVALID_RESET = "Token de reset inválido ou expirado"


class AuthService:
    """Authentication flows. Built per request like every other service."""

    def __init__(self, db: Session, ip_address: str | None = None, user_agent: str | None = None):
        self._db = db
        self._users = UserRepository(db)
        self._tokens = AuthTokenRepository(db)
        self._activity = ActivityService(db)
        self._ip_address = ip_address
        self._user_agent = user_agent

    # =========================================================================
    # Session
    # =========================================================================

    def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Check credentials and open a session.

        Unknown email and wrong password produce the same error.
        """
        user = self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            audit_auth_event(
                "LOGIN_FAILED",
                user_id=user.id if user else None,
                email=email,
                success=False,
                reason="invalid_credentials",
                ip_address=self._ip_address,
            )
            raise UnauthorizedError(INVALID_CREDENTIALS, email=mask_email(email))

        if not user.is_active:
            audit_auth_event(
                "LOGIN_FAILED",
                user_id=user.id,
                email=email,
                success=False,
                reason="inactive",
                ip_address=self._ip_address,
            )
            raise UnauthorizedError("Usuário inativo", user_id=user.id)

        user.last_login = utcnow()
        tokens = self._issue_tokens(user)
        safe_commit(self._db)

        self._activity.record(
            "login",
            user_id=user.id,
            restaurant_id=user.restaurant_id,
            entity_type="user",
            entity_id=user.id,
            ip_address=self._ip_address,
            user_agent=self._user_agent,
        )
        audit_auth_event("LOGIN", user_id=user.id, email=user.email, ip_address=self._ip_address)

        return {"user": self.user_output(user), "tokens": tokens}

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        """
        Exchange a refresh token for a new pair, revoking the old one.

        Any failure is reported with one generic message.
        """
        try:
            payload = verify_refresh_token(refresh_token)
        except UnauthorizedError:
            raise UnauthorizedError(INVALID_REFRESH)

        stored = self._tokens.find_usable(hash_token(refresh_token), TokenType.REFRESH)
        if stored is None or stored.user_id != payload["userId"] or self._expired(stored):
            audit_auth_event(
                "TOKEN_REFRESH",
                user_id=payload["userId"],
                success=False,
                reason="revoked_or_unknown",
                ip_address=self._ip_address,
            )
            raise UnauthorizedError(INVALID_REFRESH)

        user = self._users.find_by_id(stored.user_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("Usuário inativo", user_id=stored.user_id)

        now = utcnow()
        stored.is_revoked = True
        stored.revoked_at = now
        stored.last_used_at = now
        tokens = self._issue_tokens(user)
        safe_commit(self._db)

        audit_auth_event("TOKEN_REFRESH", user_id=user.id, email=user.email, ip_address=self._ip_address)
        return {"user": self.user_output(user), "tokens": tokens}

    def logout(self, refresh_token: str | None, user_id: int | None = None) -> None:
        """Best-effort revoke of the presented refresh token. Never fails."""
        if refresh_token:
            try:
                stored = self._tokens.find_usable(hash_token(refresh_token), TokenType.REFRESH)
                if stored is not None:
                    stored.is_revoked = True
                    stored.revoked_at = utcnow()
                    safe_commit(self._db)
            except SQLAlchemyError as exc:
                logger.warning(
                    "Refresh token revoke failed during logout",
                    token=mask_token(hash_token(refresh_token)),
                    error=str(exc),
                )

        audit_auth_event("LOGOUT", user_id=user_id, ip_address=self._ip_address)

    def logout_all(self, user_id: int) -> int:
        revoked = self._tokens.revoke_for_user(user_id, utcnow())
        safe_commit(self._db)
        audit_auth_event("LOGOUT_ALL", user_id=user_id, ip_address=self._ip_address, revoked=revoked)
        return revoked

    # =========================================================================
    # Passwords
    # =========================================================================

    def forgot_password(self, email: str) -> str | None:
        """
        Issue a reset token for an active account.

        Returns the raw token, or None when there is no such account. Callers
        must answer identically in both cases.
        """
        user = self._users.find_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown email", email=mask_email(email))
            return None

        raw_token = generate_reset_token()
        self._tokens.add(
            AuthToken(
                user_id=user.id,
                token_hash=hash_token(raw_token),
                token_type=TokenType.RESET_PASSWORD,
                expires_at=utcnow() + timedelta(minutes=settings.reset_token_expire_minutes),
                ip_address=self._ip_address,
                user_agent=self._user_agent,
            )
        )
        safe_commit(self._db)
        audit_auth_event("PASSWORD_RESET_REQUESTED", user_id=user.id, email=email, ip_address=self._ip_address)
        return raw_token

    def reset_password(self, token: str, new_password: str) -> None:
        stored = self._tokens.find_usable(hash_token(token), TokenType.RESET_PASSWORD)
        if stored is None or self._expired(stored):
            raise ValidationError(INVALID_RESET, field="token")

        user = self._users.find_by_id(stored.user_id)
        if user is None or not user.is_active:
            raise ValidationError(INVALID_RESET, field="token")

        user.password_hash = hash_password(new_password)
        self._tokens.revoke_for_user(user.id, utcnow())
        safe_commit(self._db)
        audit_auth_event("PASSWORD_RESET", user_id=user.id, email=user.email, ip_address=self._ip_address)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """Change the password and end every session of the user."""
        user = self._users.find_by_id(user_id)
        if user is None:
            raise UnauthorizedError("Usuário não autenticado")
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Senha atual incorreta", field="current_password")

        user.password_hash = hash_password(new_password)
        self._tokens.revoke_for_user(user.id, utcnow())
        safe_commit(self._db)
        audit_auth_event("PASSWORD_CHANGE", user_id=user.id, email=user.email, ip_address=self._ip_address)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _issue_tokens(self, user: User) -> TokenPair:
        """Sign a new pair and persist the refresh token hash. Caller commits."""
        access_token = sign_access_token(user.id, user.email, user.role, user.restaurant_id)
        refresh_token = sign_refresh_token(user.id)
        self._tokens.add(
            AuthToken(
                user_id=user.id,
                token_hash=hash_token(refresh_token),
                token_type=TokenType.REFRESH,
                expires_at=utcnow() + timedelta(seconds=refresh_token_ttl()),
                ip_address=self._ip_address,
                user_agent=self._user_agent,
            )
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=access_token_ttl(),
        )

    @staticmethod
    def _expired(token: AuthToken) -> bool:
        return as_aware(token.expires_at) <= utcnow()

    @staticmethod
    def user_output(user: User) -> UserOutput:
        output = UserOutput.model_validate(user)
        if user.restaurant is not None:
            output.restaurant_name = user.restaurant.name
            output.restaurant_city = user.restaurant.city
        return output
