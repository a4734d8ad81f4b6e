"""
Tests for authentication: password hashing, JWT helpers and the auth endpoints.
"""

from datetime import datetime, timedelta, timezone

import pytest

from menu_api.models import AuthToken
from menu_api.routers._common import require_roles
from menu_api.services.domain import AuthService
from menu_shared.config.constants import Roles, TokenType
from menu_shared.security.auth import (
    REFRESH_COOKIE,
    sign_access_token,
    sign_refresh_token,
    verify_access_token,
    verify_refresh_token,
)
from menu_shared.security.password import hash_password, verify_password
from menu_shared.security.tokens import generate_reset_token, hash_token
from menu_shared.utils.exceptions import InsufficientRoleError, UnauthorizedError

PASSWORD = "senha123"
BROWSER_HEADERS = {"User-Agent": "Mozilla/5.0 (X11; Linux x86_64)"}


def login(client, email="staff@test.com", password=PASSWORD, **kwargs):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password}, **kwargs)


class TestPasswordHashing:
    """Test password hashing utilities."""

    def test_hash_password_returns_bcrypt_hash(self):
        """Hash should return bcrypt format with 12 rounds."""
        hashed = hash_password("mypassword")
        assert hashed.startswith("$2b$12$")

    def test_verify_password_correct(self):
        hashed = hash_password("mypassword")
        assert verify_password("mypassword", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("mypassword")
        assert verify_password("wrongpassword", hashed) is False

    def test_plain_text_never_verifies(self):
        """Stored values that are not bcrypt hashes are rejected."""
        assert verify_password("plaintext", "plaintext") is False
        assert verify_password("anything", None) is False


class TestTokenHelpers:
    """Test JWT signing and verification."""

    def test_access_token_claims(self):
        token = sign_access_token(7, "staff@test.com", "restaurant_user", 3)
        payload = verify_access_token(token)
        assert payload["userId"] == 7
        assert payload["email"] == "staff@test.com"
        assert payload["role"] == "restaurant_user"
        assert payload["restaurantId"] == 3
        assert payload["type"] == TokenType.ACCESS

    def test_expired_access_token(self):
        token = sign_access_token(7, "staff@test.com", "restaurant_user", 3, ttl_seconds=-10)
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_access_token(token)
        assert exc_info.value.detail == "Token expirado"

    def test_expired_refresh_token(self):
        token = sign_refresh_token(7, ttl_seconds=-1)
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_refresh_token(token)
        assert exc_info.value.detail == "Token expirado"

    def test_refresh_token_is_not_an_access_token(self):
        """Refresh tokens use their own secret and type."""
        refresh = sign_refresh_token(7)
        assert verify_refresh_token(refresh)["userId"] == 7
        with pytest.raises(UnauthorizedError):
            verify_access_token(refresh)

    def test_tampered_token_rejected(self):
        token = sign_access_token(7, "staff@test.com", "restaurant_user", 3)
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_access_token(token[:-2] + "xx")
        assert exc_info.value.detail == "Token inválido"

    def test_tokens_are_unique(self):
        """Two tokens signed in the same second still differ."""
        assert sign_refresh_token(7) != sign_refresh_token(7)

    def test_reset_token_hashing(self):
        raw = generate_reset_token()
        assert len(raw) == 64
        assert hash_token(raw) == hash_token(raw)
        assert hash_token(raw) != raw


class TestLogin:
    """Test the login endpoint."""

    def test_login_success(self, client, staff_user):
        """Valid credentials should return the user and a token pair."""
        response = login(client)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] == "staff@test.com"
        assert data["user"]["restaurant_name"] == "Cantina Bella"
        assert "password_hash" not in data["user"]
        tokens = data["tokens"]
        assert tokens["token_type"] == "Bearer"
        assert tokens["expires_in"] == 24 * 60 * 60
        assert tokens["access_token"] and tokens["refresh_token"]

    def test_login_is_case_insensitive_on_email(self, client, staff_user):
        response = login(client, email="STAFF@Test.com")
        assert response.status_code == 200

    def test_login_invalid_email(self, client, staff_user):
        response = login(client, email="nobody@test.com")
        assert response.status_code == 401
        assert response.json()["message"] == "Email ou senha inválidos"

    def test_login_invalid_password(self, client, staff_user):
        """Wrong password gets the same message as an unknown email."""
        response = login(client, password="wrongpass")
        assert response.status_code == 401
        assert response.json()["message"] == "Email ou senha inválidos"

    def test_login_inactive_user(self, client, db_session, staff_user):
        staff_user.is_active = False
        db_session.commit()

        response = login(client)
        assert response.status_code == 401
        assert response.json()["message"] == "Usuário inativo"

    def test_login_stores_refresh_token_hash(self, client, db_session, staff_user):
        response = login(client)
        refresh_token = response.json()["data"]["tokens"]["refresh_token"]

        stored = db_session.query(AuthToken).filter_by(user_id=staff_user.id).one()
        assert stored.token_type == TokenType.REFRESH
        assert stored.token_hash == hash_token(refresh_token)
        assert stored.is_revoked is False

    def test_login_updates_last_login(self, client, db_session, staff_user):
        assert staff_user.last_login is None
        login(client)
        db_session.refresh(staff_user)
        assert staff_user.last_login is not None

    def test_api_client_gets_no_cookies(self, client, staff_user):
        response = login(client)
        assert "access_token" not in response.cookies

    def test_browser_gets_session_cookies(self, client, staff_user):
        response = login(client, headers=BROWSER_HEADERS)
        assert response.status_code == 200
        assert "access_token" in response.cookies
        assert "refresh_token" in response.cookies
        assert "user_info" in response.cookies


class TestCurrentUser:
    """Test /auth/me and token validation on protected routes."""

    def test_me_authenticated(self, client, staff_headers):
        response = client.get("/api/v1/auth/me", headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["data"]["email"] == "staff@test.com"

    def test_me_without_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Token de acesso não fornecido"

    def test_me_with_invalid_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Token inválido"

    def test_me_with_expired_token(self, client, staff_user):
        token = sign_access_token(
            staff_user.id, staff_user.email, staff_user.role, staff_user.restaurant_id, ttl_seconds=-5
        )
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Token expirado"

    def test_deactivated_user_token_rejected(self, client, db_session, staff_user, make_auth_headers):
        """Deactivation takes effect even for unexpired tokens."""
        headers = make_auth_headers(staff_user)
        staff_user.is_active = False
        db_session.commit()

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Usuário inativo"

    def test_cookie_session(self, client, staff_user):
        """Browsers authenticate with the access_token cookie alone."""
        login(client, headers=BROWSER_HEADERS)
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == staff_user.id


class TestSessionStatus:
    """Test /auth/status."""

    def test_anonymous(self, client):
        body = client.get("/api/v1/auth/status").json()
        assert body["data"] == {"authenticated": False}
        assert body["message"] == "Não autenticado"

    def test_invalid_token(self, client):
        body = client.get(
            "/api/v1/auth/status", headers={"Authorization": "Bearer garbage"}
        ).json()
        assert body["data"]["authenticated"] is False
        assert body["message"] == "Token inválido"

    def test_authenticated(self, client, staff_user, staff_headers):
        body = client.get("/api/v1/auth/status", headers=staff_headers).json()
        assert body["data"]["authenticated"] is True
        assert body["data"]["user"]["id"] == staff_user.id
        assert body["data"]["user"]["role"] == "restaurant_user"


class TestRefreshAndLogout:
    """Test refresh token rotation and logout."""

    def _tokens(self, client):
        return login(client).json()["data"]["tokens"]

    def test_refresh_rotates_tokens(self, client, staff_user):
        tokens = self._tokens(client)
        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200
        new_tokens = response.json()["data"]["tokens"]
        assert new_tokens["refresh_token"] != tokens["refresh_token"]
        assert verify_access_token(new_tokens["access_token"])["userId"] == staff_user.id

    def test_refresh_token_is_single_use(self, client, staff_user):
        tokens = self._tokens(client)
        client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token inválido ou expirado"

    def test_refresh_with_garbage(self, client):
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token inválido ou expirado"

    def test_refresh_requires_token(self, client):
        response = client.post("/api/v1/auth/refresh")
        assert response.status_code == 422
        assert response.json()["message"] == "Refresh token é obrigatório"

    def test_refresh_unknown_but_signed_token(self, client, staff_user):
        """A validly signed token that was never issued is rejected."""
        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": sign_refresh_token(staff_user.id)}
        )
        assert response.status_code == 401

    def test_refresh_with_expired_stored_token(self, client, db_session, staff_user):
        tokens = self._tokens(client)
        stored = (
            db_session.query(AuthToken)
            .filter_by(token_hash=hash_token(tokens["refresh_token"]), token_type=TokenType.REFRESH)
            .one()
        )
        stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()

        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token inválido ou expirado"

    def test_refresh_with_expired_signature(self, client, staff_user):
        token = sign_refresh_token(staff_user.id, ttl_seconds=-1)
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token inválido ou expirado"

    def test_refresh_from_cookie(self, client, staff_user):
        login(client, headers=BROWSER_HEADERS)
        response = client.post("/api/v1/auth/refresh", headers=BROWSER_HEADERS)
        assert response.status_code == 200

    def test_logout_revokes_refresh_token(self, client, staff_user):
        tokens = self._tokens(client)
        response = client.post(
            "/api/v1/auth/logout", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 200

        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401

    def test_logout_always_succeeds(self, client):
        assert client.post("/api/v1/auth/logout").status_code == 200
        response = client.post(
            "/api/v1/auth/logout",
            json={"refresh_token": "garbage"},
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.status_code == 200

    @pytest.mark.parametrize("raw", [b"{not json", b"null", b'{"refresh_token": 5}'])
    def test_logout_ignores_bad_body(self, client, raw):
        response = client.post(
            "/api/v1/auth/logout", content=raw, headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Logout realizado com sucesso"

    def test_logout_revokes_cookie_token_when_body_is_bad(self, client, staff_user):
        refresh_token = login(client, headers=BROWSER_HEADERS).cookies[REFRESH_COOKIE]
        response = client.post(
            "/api/v1/auth/logout",
            content=b"{not json",
            headers={**BROWSER_HEADERS, "Content-Type": "application/json"},
        )
        assert response.status_code == 200

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 401

    def test_logout_all_revokes_every_session(self, client, staff_user, staff_headers):
        first = self._tokens(client)
        second = self._tokens(client)

        response = client.post("/api/v1/auth/logout-all", headers=staff_headers)
        assert response.status_code == 200

        for tokens in (first, second):
            response = client.post(
                "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
            )
            assert response.status_code == 401

    def test_logout_all_requires_auth(self, client):
        assert client.post("/api/v1/auth/logout-all").status_code == 401


class TestPasswordFlows:
    """Test forgot, reset and change password."""

    def test_forgot_password_same_answer_for_unknown_email(self, client, staff_user):
        known = client.post("/api/v1/auth/forgot-password", json={"email": "staff@test.com"})
        unknown = client.post("/api/v1/auth/forgot-password", json={"email": "x@test.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json()["message"] == unknown.json()["message"]
        # The raw token is only exposed in development
        assert known.json()["data"] is None

    def test_forgot_password_unknown_email_issues_nothing(self, db_session, staff_user):
        assert AuthService(db_session).forgot_password("nobody@test.com") is None

    def test_reset_password(self, client, db_session, staff_user):
        token = AuthService(db_session).forgot_password("staff@test.com")

        response = client.post(
            "/api/v1/auth/reset-password", json={"token": token, "new_password": "nova-senha"}
        )
        assert response.status_code == 200
        assert login(client, password="nova-senha").status_code == 200
        assert login(client).status_code == 401

    def test_reset_token_is_single_use(self, client, db_session, staff_user):
        token = AuthService(db_session).forgot_password("staff@test.com")
        client.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "nova-senha"})

        response = client.post(
            "/api/v1/auth/reset-password", json={"token": token, "new_password": "outra-senha"}
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Token de reset inválido ou expirado"

    def test_reset_password_short_password(self, client):
        response = client.post(
            "/api/v1/auth/reset-password", json={"token": "abc", "new_password": "123"}
        )
        assert response.status_code == 422

    def test_change_password(self, client, staff_user, staff_headers):
        response = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "nova-senha"},
            headers=staff_headers,
        )
        assert response.status_code == 200
        assert login(client, password="nova-senha").status_code == 200

    def test_change_password_wrong_current(self, client, staff_headers):
        response = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "errada", "new_password": "nova-senha"},
            headers=staff_headers,
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Senha atual incorreta"

    def test_change_password_ends_sessions(self, client, staff_user, staff_headers):
        tokens = login(client).json()["data"]["tokens"]
        client.post(
            "/api/v1/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "nova-senha"},
            headers=staff_headers,
        )
        response = client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert response.status_code == 401


class TestRoleGuards:
    """Role guards run after authentication and report failures as 401."""

    def test_allowed_role_passes(self):
        guard = require_roles(Roles.SUPER_ADMIN, Roles.RESTAURANT_USER)
        user = {"user_id": 3, "role": Roles.RESTAURANT_USER}
        assert guard(user=user) is user

    def test_default_message_lists_roles(self):
        guard = require_roles(Roles.SUPER_ADMIN)
        with pytest.raises(InsufficientRoleError) as exc_info:
            guard(user={"user_id": 3, "role": Roles.RESTAURANT_USER})
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Acesso negado. Roles permitidos: super_admin"

    def test_custom_message(self):
        guard = require_roles(Roles.SUPER_ADMIN, message="Somente administradores")
        with pytest.raises(UnauthorizedError) as exc_info:
            guard(user={"user_id": 3, "role": Roles.RESTAURANT_USER})
        assert exc_info.value.detail == "Somente administradores"
