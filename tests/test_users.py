"""
Tests for user management.
"""

import pytest

from menu_api.models import AuthToken, User
from menu_api.services.domain import UserService
from menu_shared.config.constants import Roles
from menu_shared.security.password import verify_password
from menu_shared.utils.exceptions import ValidationError

NEW_USER = {
    "name": "Cozinheiro",
    "email": "Chef@Cantina.com",
    "password": "segredo1",
    "role": "restaurant_user",
}


class TestUserCreate:
    def test_admin_creates_restaurant_user(self, client, db_session, restaurant, super_admin, admin_headers):
        response = client.post(
            "/api/v1/users", json={**NEW_USER, "restaurant_id": restaurant.id}, headers=admin_headers
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "chef@cantina.com"
        assert data["restaurant_name"] == "Cantina Bella"
        assert data["created_by"] == super_admin.id
        assert data["created_by_name"] == "Admin Teste"
        assert "password_hash" not in data

        user = db_session.get(User, data["id"])
        assert verify_password("segredo1", user.password_hash)

    def test_duplicate_email(self, client, restaurant, staff_user, admin_headers):
        response = client.post(
            "/api/v1/users",
            json={**NEW_USER, "email": "STAFF@test.com", "restaurant_id": restaurant.id},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Email já está em uso"

    def test_restaurant_user_needs_restaurant(self, client, admin_headers):
        response = client.post("/api/v1/users", json=NEW_USER, headers=admin_headers)
        assert response.status_code == 422
        messages = [error["message"] for error in response.json()["errors"]]
        assert "ID do restaurante é obrigatório para usuários de restaurante" in messages

    def test_super_admin_cannot_have_restaurant(self, client, restaurant, admin_headers):
        response = client.post(
            "/api/v1/users",
            json={**NEW_USER, "role": "super_admin", "restaurant_id": restaurant.id},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_unknown_restaurant(self, client, admin_headers):
        response = client.post(
            "/api/v1/users", json={**NEW_USER, "restaurant_id": 999}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_only_super_admin_manages_users(self, client, restaurant, staff_headers):
        response = client.post(
            "/api/v1/users", json={**NEW_USER, "restaurant_id": restaurant.id}, headers=staff_headers
        )
        assert response.status_code == 401
        assert (
            response.json()["message"]
            == "Acesso negado. Apenas super administradores podem gerenciar usuários."
        )

    def test_nested_create(self, client, restaurant, admin_headers):
        payload = {key: value for key, value in NEW_USER.items() if key != "role"}
        response = client.post(
            f"/api/v1/restaurants/{restaurant.id}/users", json=payload, headers=admin_headers
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == Roles.RESTAURANT_USER
        assert data["restaurant_id"] == restaurant.id


class TestUserQueries:
    def test_list_requires_super_admin(self, client, staff_headers):
        response = client.get("/api/v1/users", headers=staff_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado. Apenas super administradores."

    def test_list_filters_by_role(self, client, super_admin, staff_user, other_staff_user, admin_headers):
        response = client.get(
            "/api/v1/users", params={"role": "restaurant_user"}, headers=admin_headers
        )
        emails = {u["email"] for u in response.json()["data"]["data"]}
        assert emails == {"staff@test.com", "other@test.com"}

    def test_stats(self, client, super_admin, staff_user, other_staff_user, admin_headers):
        response = client.get("/api/v1/users/stats", headers=admin_headers)
        assert response.json()["data"] == {
            "total": 3,
            "active": 3,
            "inactive": 0,
            "super_admins": 1,
            "restaurant_users": 2,
            "email_verified": 1,
        }

    def test_search_is_scoped(self, client, staff_user, other_staff_user, staff_headers):
        response = client.get("/api/v1/users/search", params={"q": "test.com"}, headers=staff_headers)
        emails = [u["email"] for u in response.json()["data"]["data"]]
        assert emails == ["staff@test.com"]

    def test_self_access(self, client, staff_user, super_admin, staff_headers):
        response = client.get(f"/api/v1/users/{staff_user.id}", headers=staff_headers)
        assert response.status_code == 200

        response = client.get(f"/api/v1/users/{super_admin.id}", headers=staff_headers)
        assert response.status_code == 401
        assert (
            response.json()["message"]
            == "Acesso negado. Você só pode acessar seus próprios dados."
        )

    def test_admin_reads_anyone(self, client, staff_user, admin_headers):
        response = client.get(f"/api/v1/users/{staff_user.id}", headers=admin_headers)
        assert response.json()["data"]["restaurant_city"] == "São Paulo"

    def test_head(self, client, staff_user, admin_headers):
        assert client.head(f"/api/v1/users/{staff_user.id}", headers=admin_headers).status_code == 200
        assert client.head("/api/v1/users/999", headers=admin_headers).status_code == 404

    def test_restaurant_users(self, client, restaurant, staff_user, other_staff_user, staff_headers):
        response = client.get(f"/api/v1/restaurants/{restaurant.id}/users", headers=staff_headers)
        assert [u["id"] for u in response.json()["data"]] == [staff_user.id]

    def test_me(self, client, staff_user, staff_headers):
        response = client.get("/api/v1/users/me", headers=staff_headers)
        assert response.json()["data"]["email"] == "staff@test.com"


class TestUserUpdate:
    def test_self_update_ignores_protected_fields(self, client, db_session, staff_user, staff_headers):
        response = client.put(
            f"/api/v1/users/{staff_user.id}",
            json={"name": "Garçom Chefe", "role": "super_admin", "is_active": False},
            headers=staff_headers,
        )
        assert response.status_code == 200
        db_session.refresh(staff_user)
        assert staff_user.name == "Garçom Chefe"
        assert staff_user.role == Roles.RESTAURANT_USER
        assert staff_user.is_active is True

    def test_profile_update_changes_password(self, client, db_session, staff_user, staff_headers):
        response = client.put(
            "/api/v1/users/me", json={"password": "novasenha"}, headers=staff_headers
        )
        assert response.status_code == 200
        db_session.refresh(staff_user)
        assert verify_password("novasenha", staff_user.password_hash)

    def test_email_conflict(self, client, staff_user, other_staff_user, staff_headers):
        response = client.put(
            "/api/v1/users/me", json={"email": "other@test.com"}, headers=staff_headers
        )
        assert response.status_code == 409

    def test_admin_promotes_user(self, client, db_session, staff_user, admin_headers):
        response = client.put(
            f"/api/v1/users/{staff_user.id}", json={"role": "super_admin"}, headers=admin_headers
        )
        assert response.status_code == 200
        db_session.refresh(staff_user)
        assert staff_user.role == Roles.SUPER_ADMIN
        assert staff_user.restaurant_id is None


class TestUserDeactivation:
    def test_deactivate_revokes_sessions(self, client, db_session, staff_user, admin_headers):
        login = client.post(
            "/api/v1/auth/login", json={"email": "staff@test.com", "password": "senha123"}
        )
        refresh_token = login.json()["data"]["tokens"]["refresh_token"]

        response = client.delete(f"/api/v1/users/{staff_user.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False

        db_session.expire_all()
        tokens = db_session.query(AuthToken).filter_by(user_id=staff_user.id).all()
        assert tokens and all(token.is_revoked for token in tokens)

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert response.status_code == 401

    def test_cannot_deactivate_self(self, client, super_admin, admin_headers):
        response = client.delete(f"/api/v1/users/{super_admin.id}", headers=admin_headers)
        assert response.status_code == 422
        assert response.json()["message"] == "Não é possível inativar o próprio usuário"

    def test_last_super_admin_is_kept(self, db_session, super_admin):
        with pytest.raises(ValidationError) as exc_info:
            UserService(db_session).deactivate(super_admin.id)
        assert exc_info.value.detail == "Não é possível inativar o último super administrador"

    def test_reactivate(self, client, db_session, staff_user, admin_headers):
        client.delete(f"/api/v1/users/{staff_user.id}", headers=admin_headers)
        response = client.patch(f"/api/v1/users/{staff_user.id}/reactivate", headers=admin_headers)
        assert response.status_code == 200
        db_session.refresh(staff_user)
        assert staff_user.is_active is True


class TestUserActivities:
    def test_activities_follow_mutations(self, client, restaurant, super_admin, admin_headers):
        client.put(
            f"/api/v1/restaurants/{restaurant.id}", json={"city": "Campinas"}, headers=admin_headers
        )

        response = client.get(f"/api/v1/users/{super_admin.id}/activities", headers=admin_headers)
        assert response.status_code == 200
        (activity,) = response.json()["data"]
        assert activity["action"] == "update_restaurant"
        assert activity["entity_id"] == str(restaurant.id)

    def test_other_users_activities_are_private(self, client, super_admin, staff_headers):
        response = client.get(f"/api/v1/users/{super_admin.id}/activities", headers=staff_headers)
        assert response.status_code == 401
