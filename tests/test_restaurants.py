"""
Tests for the restaurant endpoints.
"""

import re

from menu_api.models import Category, Product, Restaurant, Table

BASE = "/api/v1/restaurants"
UUID4_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


class TestRestaurantQueries:
    """Listing, search and lookups."""

    def test_list_is_paginated(self, client, restaurant, other_restaurant):
        response = client.get(BASE, params={"limit": 1})
        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["data"]) == 1
        assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}

    def test_list_filters_by_city_substring(self, client, restaurant, other_restaurant):
        response = client.get(BASE, params={"city": "janeiro"})
        names = [r["name"] for r in response.json()["data"]["data"]]
        assert names == ["Sushi Zen"]

    def test_list_filters_by_active_flag(self, client, db_session, restaurant, other_restaurant):
        other_restaurant.is_active = False
        db_session.commit()

        response = client.get(BASE, params={"is_active": "false"})
        names = [r["name"] for r in response.json()["data"]["data"]]
        assert names == ["Sushi Zen"]

    def test_restaurant_user_only_sees_own_restaurant(
        self, client, staff_headers, restaurant, other_restaurant
    ):
        response = client.get(BASE, headers=staff_headers)
        data = response.json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["data"][0]["id"] == restaurant.id

    def test_search_by_name(self, client, restaurant, other_restaurant):
        response = client.get(f"{BASE}/search", params={"q": "cantina"})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == 'Restaurantes encontrados para "cantina"'
        assert [r["id"] for r in body["data"]["data"]] == [restaurant.id]

    def test_search_requires_term(self, client):
        response = client.get(f"{BASE}/search")
        assert response.status_code == 422
        assert response.json()["message"] == "Parâmetro de busca é obrigatório"

    def test_by_city(self, client, restaurant, other_restaurant):
        response = client.get(f"{BASE}/city/Rio")
        assert response.status_code == 200
        assert [r["name"] for r in response.json()["data"]["data"]] == ["Sushi Zen"]

    def test_get_by_id(self, client, restaurant):
        response = client.get(f"{BASE}/{restaurant.id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Cantina Bella"
        assert data["uuid"] == restaurant.uuid
        assert data["is_active"] is True

    def test_get_by_uuid(self, client, restaurant):
        response = client.get(f"{BASE}/uuid/{restaurant.uuid}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == restaurant.id

    def test_get_unknown_returns_404(self, client):
        response = client.get(f"{BASE}/999")
        assert response.status_code == 404
        assert response.json()["message"] == "Restaurante não encontrado"

    def test_invalid_id_is_rejected(self, client):
        response = client.get(f"{BASE}/0")
        assert response.status_code == 422

    def test_restaurant_user_cannot_read_other_restaurant(
        self, client, staff_headers, other_restaurant
    ):
        response = client.get(f"{BASE}/{other_restaurant.id}", headers=staff_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado a este restaurante"

    def test_stats(self, client, db_session, restaurant, other_restaurant):
        other_restaurant.is_active = False
        db_session.commit()

        response = client.get(f"{BASE}/stats")
        assert response.status_code == 200
        assert response.json()["data"] == {"total": 2, "active": 1, "inactive": 1}


class TestRestaurantWrites:
    """Create, update and lifecycle."""

    def test_create(self, client, admin_headers):
        response = client.post(
            BASE,
            json={
                "name": "Padaria Central",
                "city": "Curitiba",
                "phone": "+55 (41) 9999-0000",
                "email": "Contato@Padaria.com",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Restaurante criado com sucesso"
        assert body["data"]["name"] == "Padaria Central"
        assert body["data"]["email"] == "contato@padaria.com"
        assert UUID4_PATTERN.match(body["data"]["uuid"])

    def test_create_with_name_only(self, client, admin_headers):
        response = client.post(BASE, json={"name": "Bistro"}, headers=admin_headers)
        assert response.status_code == 201
        data = response.json()["data"]
        assert isinstance(data["id"], int)
        assert data["id"] > 0
        assert UUID4_PATTERN.match(data["uuid"])
        assert data["is_active"] is True
        assert data["name"] == "Bistro"

    def test_create_validates_fields(self, client, admin_headers):
        response = client.post(
            BASE, json={"name": "A", "phone": "abc"}, headers=admin_headers
        )
        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"name", "phone"} <= fields

    def test_restaurant_user_cannot_create(self, client, staff_headers):
        response = client.post(BASE, json={"name": "Filial"}, headers=staff_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado. Apenas super administradores."

    def test_update(self, client, db_session, restaurant, admin_headers):
        response = client.put(
            f"{BASE}/{restaurant.id}",
            json={"name": "Cantina Nova", "city": "Campinas"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Cantina Nova"

        db_session.refresh(restaurant)
        assert restaurant.city == "Campinas"
        assert restaurant.description == "Cozinha italiana"

    def test_soft_delete_and_reactivate(self, client, db_session, restaurant, admin_headers):
        response = client.delete(f"{BASE}/{restaurant.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False

        # Still reachable by id while inactive
        assert client.get(f"{BASE}/{restaurant.id}").status_code == 200

        response = client.patch(f"{BASE}/{restaurant.id}/reactivate", headers=admin_headers)
        assert response.status_code == 200
        db_session.refresh(restaurant)
        assert restaurant.is_active is True


class TestRestaurantHardDelete:
    """Permanent deletion is reserved to super admins."""

    def test_requires_authentication(self, client, restaurant):
        response = client.delete(f"{BASE}/{restaurant.id}/hard")
        assert response.status_code == 401

    def test_restaurant_user_is_rejected(self, client, restaurant, staff_headers):
        response = client.delete(f"{BASE}/{restaurant.id}/hard", headers=staff_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado. Apenas super administradores."

    def test_cascades_to_owned_records(
        self, client, db_session, restaurant, product, table, admin_headers
    ):
        restaurant_id = restaurant.id
        response = client.delete(f"{BASE}/{restaurant_id}/hard", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"] is None

        db_session.expire_all()
        assert db_session.query(Restaurant).filter_by(id=restaurant_id).count() == 0
        assert db_session.query(Category).filter_by(restaurant_id=restaurant_id).count() == 0
        assert db_session.query(Product).count() == 0
        assert db_session.query(Table).filter_by(restaurant_id=restaurant_id).count() == 0
