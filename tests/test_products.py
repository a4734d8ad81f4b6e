"""
Tests for the product endpoints: catalog CRUD, pricing and promotions.
"""

from decimal import Decimal

import pytest

from menu_api.models import Category, Product
from menu_shared.utils.resource_schemas import PROMOTION_PRICE_MESSAGE


@pytest.fixture
def desserts(db_session, restaurant):
    category = Category(restaurant_id=restaurant.id, name="Sobremesas", sort_order=2)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


class TestProductCreate:
    def test_current_price_defaults_to_regular(self, client, category, product):
        response = client.post(
            f"/api/v1/categories/{category.id}/products",
            json={"name": "Pizza Margherita", "regular_price": "39.90"},
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["category_id"] == category.id
        assert data["regular_price"] == 39.9
        assert data["current_price"] == 39.9
        assert data["is_on_promotion"] is False
        assert data["sort_order"] == 2

    def test_flat_create_requires_category(self, client):
        response = client.post("/api/v1/products", json={"name": "Pizza", "regular_price": "10"})
        assert response.status_code == 422
        assert response.json()["message"] == "ID da categoria é obrigatório"

    def test_unknown_category(self, client):
        response = client.post(
            "/api/v1/products", json={"name": "Pizza", "regular_price": "10", "category_id": 999}
        )
        assert response.status_code == 404
        assert response.json()["message"] == "Categoria não encontrada"

    def test_promotion_price_must_be_lower(self, client, category):
        response = client.post(
            f"/api/v1/categories/{category.id}/products",
            json={
                "name": "Pizza",
                "regular_price": "30.00",
                "current_price": "30.00",
                "is_on_promotion": True,
            },
        )
        assert response.status_code == 422
        messages = [error["message"] for error in response.json()["errors"]]
        assert PROMOTION_PRICE_MESSAGE in messages

    def test_price_must_be_positive(self, client, category):
        response = client.post(
            f"/api/v1/categories/{category.id}/products",
            json={"name": "Pizza", "regular_price": "0"},
        )
        assert response.status_code == 422
        assert "regular_price" in {error["field"] for error in response.json()["errors"]}

    def test_restaurant_user_cannot_use_foreign_category(
        self, client, other_category, staff_headers
    ):
        response = client.post(
            f"/api/v1/categories/{other_category.id}/products",
            json={"name": "Temaki", "regular_price": "25"},
            headers=staff_headers,
        )
        assert response.status_code == 401


class TestProductQueries:
    def test_get_includes_category(self, client, product, category):
        response = client.get(f"/api/v1/products/{product.id}")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Espaguete à Bolonhesa"
        assert data["current_price"] == 45.9
        assert data["category"] == {
            "id": category.id,
            "name": "Massas",
            "restaurant_id": category.restaurant_id,
        }

    def test_get_by_uuid(self, client, product):
        response = client.get(f"/api/v1/products/uuid/{product.uuid}")
        assert response.json()["data"]["id"] == product.id

    def test_head(self, client, product):
        assert client.head(f"/api/v1/products/{product.id}").status_code == 200
        assert client.head("/api/v1/products/999").status_code == 404

    def test_list_filters(self, client, restaurant, product, promo_product, other_product):
        response = client.get(
            "/api/v1/products", params={"restaurant_id": restaurant.id, "is_on_promotion": "true"}
        )
        names = [p["name"] for p in response.json()["data"]["data"]]
        assert names == ["Lasanha"]

    def test_list_price_range(self, client, product, promo_product, other_product):
        response = client.get("/api/v1/products", params={"min_price": "42", "max_price": "60"})
        names = [p["name"] for p in response.json()["data"]["data"]]
        assert names == ["Espaguete à Bolonhesa"]

    def test_search_hides_unavailable_by_default(self, client, db_session, product, promo_product):
        promo_product.is_available = False
        db_session.commit()

        response = client.get("/api/v1/products/search", params={"q": "lasanha"})
        assert response.json()["data"]["pagination"]["total"] == 0

        response = client.get(
            "/api/v1/products/search", params={"q": "lasanha", "is_available": "false"}
        )
        assert response.json()["data"]["pagination"]["total"] == 1

    def test_category_products_are_ordered(self, client, category, product, promo_product):
        response = client.get(f"/api/v1/categories/{category.id}/products")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [product.id, promo_product.id]

    def test_restaurant_products(self, client, restaurant, product, promo_product, other_product):
        response = client.get(f"/api/v1/restaurants/{restaurant.id}/products")
        assert len(response.json()["data"]) == 2

    def test_promotions(self, client, restaurant, product, promo_product, other_product):
        response = client.get("/api/v1/products/promotions", params={"restaurant_id": restaurant.id})
        data = response.json()["data"]
        assert [p["id"] for p in data["data"]] == [promo_product.id]

        response = client.get(f"/api/v1/restaurants/{restaurant.id}/products/promotions")
        assert response.json()["data"]["pagination"]["total"] == 1

    def test_category_stats(self, client, category, product, promo_product):
        response = client.get(f"/api/v1/categories/{category.id}/products/stats")
        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total"] == 2
        assert stats["available"] == 2
        assert stats["unavailable"] == 0
        assert stats["on_promotion"] == 1
        assert stats["average_price"] == pytest.approx(42.95)
        assert stats["category_id"] == category.id

    def test_restaurant_stats_without_products(self, client, restaurant):
        response = client.get(f"/api/v1/restaurants/{restaurant.id}/products/stats")
        stats = response.json()["data"]
        assert stats["total"] == 0
        assert stats["average_price"] == 0

    def test_restaurant_user_cannot_read_foreign_product(
        self, client, other_product, staff_headers
    ):
        response = client.get(f"/api/v1/products/{other_product.id}", headers=staff_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Acesso negado a este restaurante"


class TestProductPricing:
    def test_update_rejects_promotion_at_regular_price(self, client, promo_product):
        response = client.put(
            f"/api/v1/products/{promo_product.id}", json={"current_price": "60.00"}
        )
        assert response.status_code == 422
        assert response.json()["message"] == PROMOTION_PRICE_MESSAGE

    def test_update_price(self, client, product):
        response = client.put(
            f"/api/v1/products/{product.id}",
            json={"regular_price": "49.90", "current_price": "49.90"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["current_price"] == 49.9

    def test_apply_promotion(self, client, product):
        response = client.patch(
            f"/api/v1/products/{product.id}/promotion", json={"promotion_price": "35.00"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Promoção aplicada com sucesso"
        assert body["data"]["is_on_promotion"] is True
        assert body["data"]["current_price"] == 35.0
        assert body["data"]["regular_price"] == 45.9

    def test_end_promotion_restores_regular_price(self, client, promo_product):
        response = client.patch(
            f"/api/v1/products/{promo_product.id}/promotion", json={"promotion_price": None}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Promoção removida com sucesso"
        assert body["data"]["is_on_promotion"] is False
        assert body["data"]["current_price"] == 50.0

    def test_promotion_above_regular_price(self, client, product):
        response = client.patch(
            f"/api/v1/products/{product.id}/promotion", json={"promotion_price": "50.00"}
        )
        assert response.status_code == 422
        assert response.json()["message"] == PROMOTION_PRICE_MESSAGE


class TestProductLifecycle:
    def test_soft_delete_makes_unavailable(self, client, db_session, product):
        response = client.delete(f"/api/v1/products/{product.id}")
        assert response.status_code == 200
        assert response.json()["message"] == "Produto indisponibilizado com sucesso"
        db_session.refresh(product)
        assert product.is_available is False

        client.patch(f"/api/v1/products/{product.id}/reactivate")
        db_session.refresh(product)
        assert product.is_available is True

    def test_duplicate(self, client, category, product, promo_product):
        response = client.post(f"/api/v1/products/{product.id}/duplicate")
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Espaguete à Bolonhesa (Cópia)"
        assert data["category_id"] == category.id
        assert data["sort_order"] == product.sort_order
        assert data["current_price"] == 45.9
        assert data["uuid"] != product.uuid

    def test_duplicate_sort_order_override(self, client, product):
        response = client.post(f"/api/v1/products/{product.id}/duplicate", json={"sort_order": 6})
        assert response.status_code == 201
        assert response.json()["data"]["sort_order"] == 6

    def test_duplicate_with_new_price(self, client, product):
        response = client.post(
            f"/api/v1/products/{product.id}/duplicate",
            json={"name": "Espaguete Grande", "regular_price": "55.00"},
        )
        data = response.json()["data"]
        assert data["regular_price"] == 55.0
        assert data["current_price"] == 55.0

    def test_move_to_end_of_category(self, client, db_session, desserts, product):
        db_session.add(
            Product(
                category_id=desserts.id,
                name="Tiramisu",
                regular_price=Decimal("22.00"),
                current_price=Decimal("22.00"),
                sort_order=4,
            )
        )
        db_session.commit()

        response = client.patch(
            f"/api/v1/products/{product.id}/move", json={"category_id": desserts.id}
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["category_id"] == desserts.id
        assert data["sort_order"] == 5
        assert data["category"]["name"] == "Sobremesas"

    def test_move_to_unknown_category(self, client, product):
        response = client.patch(f"/api/v1/products/{product.id}/move", json={"category_id": 999})
        assert response.status_code == 404

    def test_reorder(self, client, category, product, promo_product):
        response = client.put(
            f"/api/v1/categories/{category.id}/products/reorder",
            json={
                "products": [
                    {"id": promo_product.id, "sort_order": 1},
                    {"id": product.id, "sort_order": 2},
                ]
            },
        )
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [promo_product.id, product.id]

    def test_reorder_rejects_foreign_products(self, client, category, product, other_product):
        response = client.put(
            f"/api/v1/categories/{category.id}/products/reorder",
            json={"products": [{"id": other_product.id, "sort_order": 1}]},
        )
        assert response.status_code == 422
        assert response.json()["message"] == "Produtos não pertencem a esta categoria"

    def test_hard_delete(self, client, db_session, product, staff_headers):
        product_id = product.id
        assert client.delete(f"/api/v1/products/{product_id}/hard").status_code == 401

        response = client.delete(f"/api/v1/products/{product_id}/hard", headers=staff_headers)
        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(Product).filter_by(id=product_id).count() == 0
