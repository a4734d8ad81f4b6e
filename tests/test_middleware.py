"""
Tests for the activity log middleware.
"""

import pytest

from menu_api.core.middlewares import describe_action
from menu_api.models import ActivityLog


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("PUT", "/api/v1/tables/3", ("update_table", "table")),
        ("POST", "/api/v1/restaurants/1/tables", ("create_table", "table")),
        ("POST", "/api/v1/restaurants/1/tables/batch", ("batch_table", "table")),
        ("DELETE", "/api/v1/users/4", ("deactivate_user", "user")),
        ("DELETE", "/api/v1/products/7/hard", ("hard_delete_product", "product")),
        ("PUT", "/api/v1/users/me", ("update_profile", "user")),
        ("POST", "/api/v1/auth/login", ("login", "user")),
        ("PATCH", "/api/v1/users/4/reactivate", ("reactivate_user", "user")),
        ("POST", "/api/v1/categories/2/duplicate", ("duplicate_category", "category")),
        ("PUT", "/api/v1/restaurants/1/categories/reorder", ("reorder_category", "category")),
        ("PATCH", "/api/v1/orders/5/status", ("update_status_order", "order")),
    ],
)
def test_describe_action(method, path, expected):
    assert describe_action(method, path) == expected


class TestActivityRecording:
    """Only successful mutations by an authenticated user are recorded."""

    def test_records_authenticated_mutation(self, client, db_session, restaurant, super_admin, admin_headers):
        response = client.put(
            f"/api/v1/restaurants/{restaurant.id}",
            json={"name": "Cantina Nova"},
            headers={**admin_headers, "User-Agent": "pytest-agent"},
        )
        assert response.status_code == 200

        (entry,) = db_session.query(ActivityLog).all()
        assert entry.user_id == super_admin.id
        assert entry.action == "update_restaurant"
        assert entry.entity_type == "restaurant"
        assert entry.entity_id == str(restaurant.id)
        assert entry.user_agent == "pytest-agent"
        assert entry.details["method"] == "PUT"
        assert entry.details["path"] == f"/api/v1/restaurants/{restaurant.id}"
        assert entry.details["body_keys"] == ["name"]

    def test_records_restaurant_of_staff(self, client, db_session, restaurant, table, staff_user, staff_headers):
        client.delete(f"/api/v1/tables/{table.id}", headers=staff_headers)

        (entry,) = db_session.query(ActivityLog).all()
        assert entry.action == "deactivate_table"
        assert entry.restaurant_id == restaurant.id

    def test_reads_are_not_recorded(self, client, db_session, restaurant, admin_headers):
        client.get(f"/api/v1/restaurants/{restaurant.id}", headers=admin_headers)
        assert db_session.query(ActivityLog).count() == 0

    def test_anonymous_requests_are_not_recorded(self, client, db_session, restaurant):
        client.post("/api/v1/auth/login", json={"email": "ninguem@test.com", "password": "senha123"})
        assert db_session.query(ActivityLog).count() == 0

    def test_failed_requests_are_not_recorded(self, client, db_session, admin_headers):
        response = client.put("/api/v1/restaurants/999", json={"name": "Nada"}, headers=admin_headers)
        assert response.status_code == 404
        assert db_session.query(ActivityLog).count() == 0
