"""
Tests for the public menu endpoints.
"""

from decimal import Decimal

import pytest

from menu_api.models import Category, Product
from menu_shared.config.constants import MENU_PLACEHOLDER_IMAGE


@pytest.fixture
def hidden_category(db_session, restaurant):
    category = Category(
        restaurant_id=restaurant.id, name="Especiais", sort_order=5, is_active=False
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def sold_out(db_session, category):
    product = Product(
        category_id=category.id,
        name="Nhoque",
        regular_price=Decimal("38.00"),
        current_price=Decimal("38.00"),
        is_available=False,
        sort_order=3,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


class TestCompleteMenu:
    """The complete menu is a bare document, without the envelope."""

    def test_menu_document(self, client, restaurant, category, product, promo_product, sold_out):
        response = client.get(f"/api/v1/menu/{restaurant.id}")
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"success", "restaurant", "menu"}
        assert body["success"] is True
        assert body["restaurant"] == {
            "id": restaurant.id,
            "uuid": restaurant.uuid,
            "name": "Cantina Bella",
            "logo": restaurant.logo,
            "address": "Rua das Flores, 100",
            "city": "São Paulo",
            "phone": "(11) 3333-4444",
        }

        (entry,) = body["menu"]
        assert entry["category_id"] == category.id
        assert entry["category_name"] == "Massas"
        names = [p["name"] for p in entry["products"]]
        assert names == ["Espaguete à Bolonhesa", "Lasanha"]

        lasanha = entry["products"][1]
        assert lasanha["regular_price"] == 50.0
        assert lasanha["current_price"] == 40.0
        assert lasanha["is_on_promotion"] is True
        assert lasanha["description"] == ""

    def test_app_route_and_uuid(self, client, restaurant, product):
        response = client.get(f"/api/v1/menu/restaurant/{restaurant.uuid}")
        assert response.status_code == 200
        assert response.json()["restaurant"]["id"] == restaurant.id

    def test_inactive_categories_are_hidden(self, client, restaurant, product, hidden_category):
        response = client.get(f"/api/v1/menu/{restaurant.id}")
        assert [c["category_name"] for c in response.json()["menu"]] == ["Massas"]

        response = client.get(f"/api/v1/menu/{restaurant.id}", params={"include_inactive": "true"})
        assert [c["category_name"] for c in response.json()["menu"]] == ["Massas", "Especiais"]

    def test_include_unavailable(self, client, restaurant, product, sold_out):
        response = client.get(
            f"/api/v1/menu/{restaurant.id}", params={"include_unavailable": "true"}
        )
        names = [p["name"] for p in response.json()["menu"][0]["products"]]
        assert "Nhoque" in names

    def test_missing_images_use_placeholder(self, client, db_session, restaurant, category, product):
        category.image_url = None
        product.image_url = None
        db_session.commit()

        entry = client.get(f"/api/v1/menu/{restaurant.id}").json()["menu"][0]
        assert entry["image_url"] == MENU_PLACEHOLDER_IMAGE
        assert entry["products"][0]["image_url"] == MENU_PLACEHOLDER_IMAGE

    def test_single_category(self, client, db_session, restaurant, category, product):
        other = Category(restaurant_id=restaurant.id, name="Pizzas", sort_order=2)
        db_session.add(other)
        db_session.commit()

        response = client.get(f"/api/v1/menu/{restaurant.id}/category/{category.id}")
        assert [c["category_id"] for c in response.json()["menu"]] == [category.id]

    @pytest.mark.parametrize("identifier", ["999", "abc", "00000000-0000-0000-0000-000000000000"])
    def test_unknown_restaurant(self, client, identifier):
        response = client.get(f"/api/v1/menu/{identifier}")
        assert response.status_code == 404
        assert response.json()["message"] == "Restaurante não encontrado"

    def test_inactive_restaurant_is_not_public(self, client, db_session, restaurant, product):
        restaurant.is_active = False
        db_session.commit()

        response = client.get(f"/api/v1/menu/{restaurant.id}")
        assert response.status_code == 404


class TestMenuViews:
    def test_categories_with_counts(self, client, restaurant, category, product, promo_product):
        response = client.get(f"/api/v1/menu/{restaurant.id}/categories")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["restaurant"]["name"] == "Cantina Bella"
        assert data["categories"][0]["products_count"] == 2

    def test_category_products(self, client, restaurant, category, product):
        response = client.get(
            f"/api/v1/menu/{restaurant.id}/categories/{category.id}/products"
        )
        data = response.json()["data"]
        assert data["category"]["category_name"] == "Massas"
        assert [p["id"] for p in data["products"]] == [product.id]

    def test_category_products_unknown_category(self, client, restaurant, category):
        response = client.get(f"/api/v1/menu/{restaurant.id}/categories/999/products")
        assert response.status_code == 404

    def test_promotions_grouped_by_category(self, client, restaurant, category, product, promo_product):
        response = client.get(f"/api/v1/menu/{restaurant.id}/promotions")
        groups = response.json()["data"]
        assert len(groups) == 1
        assert groups[0]["category_name"] == "Massas"
        assert [p["name"] for p in groups[0]["products"]] == ["Lasanha"]

    def test_item(self, client, restaurant, category, product):
        response = client.get(f"/api/v1/menu/{restaurant.id}/item/{product.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["category"] == {"id": category.id, "name": "Massas"}
        assert body["product"]["name"] == "Espaguete à Bolonhesa"

        response = client.get(f"/api/v1/menu/restaurant/{restaurant.uuid}/item/{product.uuid}")
        assert response.json()["product"]["id"] == product.id

    def test_item_of_other_restaurant(self, client, restaurant, product, other_product):
        response = client.get(f"/api/v1/menu/{restaurant.id}/item/{other_product.id}")
        assert response.status_code == 404
        assert response.json()["message"] == "Item do menu não encontrado"

    def test_stats(self, client, restaurant, category, product, promo_product, sold_out):
        response = client.get(f"/api/v1/menu/{restaurant.id}/stats")
        body = response.json()
        assert body["restaurant_name"] == "Cantina Bella"
        assert body["stats"] == {
            "total_categories": 1,
            "total_products": 2,
            "total_promotions": 1,
            "average_price": 42.95,
        }
