"""
Tests for the category endpoints, flat and nested under a restaurant.
"""

import pytest

from menu_api.models import Category, Product


@pytest.fixture
def drinks(db_session, restaurant):
    category = Category(restaurant_id=restaurant.id, name="Bebidas", sort_order=2)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


class TestCategoryCreate:
    """Creation through both route families."""

    def test_nested_create_appends_to_end(self, client, restaurant, category):
        response = client.post(
            f"/api/v1/restaurants/{restaurant.id}/categories",
            json={"name": "Sobremesas", "description": "Doces da casa"},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["restaurant_id"] == restaurant.id
        assert data["sort_order"] == 2
        assert data["is_active"] is True

    def test_first_category_starts_at_one(self, client, restaurant):
        response = client.post(
            f"/api/v1/restaurants/{restaurant.id}/categories", json={"name": "Entradas"}
        )
        assert response.json()["data"]["sort_order"] == 1

    def test_flat_create_requires_restaurant(self, client):
        response = client.post("/api/v1/categories", json={"name": "Entradas"})
        assert response.status_code == 422
        assert response.json()["message"] == "ID do restaurante é obrigatório"

    def test_unknown_restaurant(self, client):
        response = client.post(
            "/api/v1/categories", json={"name": "Entradas", "restaurant_id": 999}
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Restaurante não encontrado"

    def test_restaurant_user_cannot_create_elsewhere(
        self, client, other_restaurant, staff_headers
    ):
        response = client.post(
            f"/api/v1/restaurants/{other_restaurant.id}/categories",
            json={"name": "Entradas"},
            headers=staff_headers,
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado a este restaurante"


class TestCategoryQueries:
    def test_nested_list_is_ordered_and_unpaginated(self, client, restaurant, category, drinks):
        client.put(f"/api/v1/categories/{drinks.id}", json={"sort_order": 0})

        response = client.get(f"/api/v1/restaurants/{restaurant.id}/categories")
        assert response.status_code == 200
        data = response.json()["data"]
        assert [c["name"] for c in data] == ["Bebidas", "Massas"]
        assert data[0]["products_count"] is None

    def test_nested_list_with_product_counts(self, client, restaurant, category, drinks, product):
        response = client.get(
            f"/api/v1/restaurants/{restaurant.id}/categories",
            params={"include_product_count": "true"},
        )
        counts = {c["name"]: c["products_count"] for c in response.json()["data"]}
        assert counts == {"Massas": 1, "Bebidas": 0}

    def test_flat_list_filters_by_restaurant(self, client, restaurant, category, other_category):
        response = client.get("/api/v1/categories", params={"restaurant_id": restaurant.id})
        data = response.json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["data"][0]["name"] == "Massas"

    def test_search(self, client, category, drinks):
        response = client.get("/api/v1/categories/search", params={"q": "beb"})
        assert [c["name"] for c in response.json()["data"]["data"]] == ["Bebidas"]

    def test_get_by_uuid(self, client, category):
        response = client.get(f"/api/v1/categories/uuid/{category.uuid}")
        assert response.status_code == 200
        assert response.json()["data"]["id"] == category.id

    def test_head_reports_existence(self, client, category):
        assert client.head(f"/api/v1/categories/{category.id}").status_code == 200
        assert client.head("/api/v1/categories/999").status_code == 404

    def test_get_unknown(self, client):
        response = client.get("/api/v1/categories/999")
        assert response.status_code == 404
        assert response.json()["message"] == "Categoria não encontrada"

    def test_stats(self, client, db_session, restaurant, category, drinks):
        drinks.is_active = False
        db_session.commit()

        response = client.get(f"/api/v1/restaurants/{restaurant.id}/categories/stats")
        assert response.json()["data"] == {
            "total": 2,
            "active": 1,
            "inactive": 1,
            "restaurant_id": restaurant.id,
        }

    def test_restaurant_user_is_scoped(self, client, category, other_category, staff_headers):
        response = client.get("/api/v1/categories", headers=staff_headers)
        names = [c["name"] for c in response.json()["data"]["data"]]
        assert names == ["Massas"]

        response = client.get(f"/api/v1/categories/{other_category.id}", headers=staff_headers)
        assert response.status_code == 401


class TestCategoryReorder:
    def test_reorder(self, client, restaurant, category, drinks):
        response = client.put(
            f"/api/v1/restaurants/{restaurant.id}/categories/reorder",
            json={
                "categories": [
                    {"id": drinks.id, "sort_order": 1},
                    {"id": category.id, "sort_order": 2},
                ]
            },
        )
        assert response.status_code == 200
        assert [c["id"] for c in response.json()["data"]] == [drinks.id, category.id]

    def test_rejects_foreign_categories(self, client, db_session, restaurant, category, other_category):
        response = client.put(
            f"/api/v1/restaurants/{restaurant.id}/categories/reorder",
            json={
                "categories": [
                    {"id": category.id, "sort_order": 5},
                    {"id": other_category.id, "sort_order": 1},
                ]
            },
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Categorias não pertencem a este restaurante"

        db_session.refresh(category)
        assert category.sort_order == 1

    def test_requires_items(self, client, restaurant):
        response = client.put(
            f"/api/v1/restaurants/{restaurant.id}/categories/reorder", json={"categories": []}
        )
        assert response.status_code == 422


class TestCategoryLifecycle:
    def test_update(self, client, category):
        response = client.put(
            f"/api/v1/categories/{category.id}", json={"name": "Massas Frescas"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Massas Frescas"

    def test_soft_delete_and_reactivate(self, client, db_session, category):
        response = client.delete(f"/api/v1/categories/{category.id}")
        assert response.status_code == 200
        assert response.json()["message"] == "Categoria inativada com sucesso"
        db_session.refresh(category)
        assert category.is_active is False

        client.patch(f"/api/v1/categories/{category.id}/reactivate")
        db_session.refresh(category)
        assert category.is_active is True

    def test_duplicate(self, client, category, drinks, product):
        response = client.post(f"/api/v1/categories/{category.id}/duplicate")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Massas (Cópia)"
        assert data["id"] != category.id
        assert data["uuid"] != category.uuid
        assert data["sort_order"] == category.sort_order
        assert data["restaurant_id"] == category.restaurant_id

    def test_duplicate_keeps_sort_order_past_siblings(self, client, db_session, restaurant, category):
        db_session.add(Category(restaurant_id=restaurant.id, name="Vinhos", sort_order=7))
        db_session.commit()

        response = client.post(f"/api/v1/categories/{category.id}/duplicate")
        assert response.json()["data"]["sort_order"] == 1

        response = client.post(
            f"/api/v1/categories/{category.id}/duplicate", json={"sort_order": 9}
        )
        assert response.json()["data"]["sort_order"] == 9

    def test_duplicate_with_name(self, client, category):
        response = client.post(
            f"/api/v1/categories/{category.id}/duplicate", json={"name": "Massas do Chef"}
        )
        assert response.json()["data"]["name"] == "Massas do Chef"

    def test_hard_delete_requires_authentication(self, client, category):
        response = client.delete(f"/api/v1/categories/{category.id}/hard")
        assert response.status_code == 401

    def test_hard_delete_removes_products(self, client, db_session, category, product, staff_headers):
        category_id = category.id
        response = client.delete(f"/api/v1/categories/{category_id}/hard", headers=staff_headers)
        assert response.status_code == 200

        db_session.expire_all()
        assert db_session.query(Category).filter_by(id=category_id).count() == 0
        assert db_session.query(Product).filter_by(category_id=category_id).count() == 0
