"""
Pytest configuration and fixtures for API tests.
"""

import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from menu_api.main import app
from menu_api.models import Base, Category, Product, Restaurant, Table, User
from menu_shared.config.constants import Roles
from menu_shared.infrastructure.db import enable_sqlite_foreign_keys, get_db
from menu_shared.security.auth import sign_access_token
from menu_shared.security.password import hash_password


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)

PASSWORD = "senha123"
# Hashed once, bcrypt is slow on purpose
PASSWORD_HASH = hash_password(PASSWORD)


def auth_headers_for(user: User) -> dict[str, str]:
    """Bearer header with a freshly signed access token for ``user``."""
    token = sign_access_token(user.id, user.email, user.role, user.restaurant_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Restaurants and catalog
# =============================================================================


@pytest.fixture
def restaurant(db_session):
    restaurant = Restaurant(
        name="Cantina Bella",
        address="Rua das Flores, 100",
        city="São Paulo",
        phone="(11) 3333-4444",
        email="contato@cantinabella.com",
        description="Cozinha italiana",
    )
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def other_restaurant(db_session):
    restaurant = Restaurant(name="Sushi Zen", city="Rio de Janeiro")
    db_session.add(restaurant)
    db_session.commit()
    db_session.refresh(restaurant)
    return restaurant


@pytest.fixture
def category(db_session, restaurant):
    category = Category(restaurant_id=restaurant.id, name="Massas", sort_order=1)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def other_category(db_session, other_restaurant):
    category = Category(restaurant_id=other_restaurant.id, name="Sushis", sort_order=1)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def product(db_session, category):
    product = Product(
        category_id=category.id,
        name="Espaguete à Bolonhesa",
        description="Molho de tomate e carne",
        regular_price=Decimal("45.90"),
        current_price=Decimal("45.90"),
        sort_order=1,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def promo_product(db_session, category):
    product = Product(
        category_id=category.id,
        name="Lasanha",
        regular_price=Decimal("50.00"),
        current_price=Decimal("40.00"),
        is_on_promotion=True,
        sort_order=2,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def other_product(db_session, other_category):
    product = Product(
        category_id=other_category.id,
        name="Combinado Salmão",
        regular_price=Decimal("80.00"),
        current_price=Decimal("80.00"),
        sort_order=1,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def table(db_session, restaurant):
    table = Table(restaurant_id=restaurant.id, table_number=1, name="Varanda", capacity=4)
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


@pytest.fixture
def other_table(db_session, other_restaurant):
    table = Table(restaurant_id=other_restaurant.id, table_number=1, capacity=2)
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


# =============================================================================
# Users and authentication
# =============================================================================


@pytest.fixture
def super_admin(db_session):
    user = User(
        name="Admin Teste",
        email="admin@test.com",
        password_hash=PASSWORD_HASH,
        role=Roles.SUPER_ADMIN,
        email_verified=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def staff_user(db_session, restaurant):
    user = User(
        name="Garçom Teste",
        email="staff@test.com",
        password_hash=PASSWORD_HASH,
        role=Roles.RESTAURANT_USER,
        restaurant_id=restaurant.id,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_staff_user(db_session, other_restaurant):
    user = User(
        name="Outro Garçom",
        email="other@test.com",
        password_hash=PASSWORD_HASH,
        role=Roles.RESTAURANT_USER,
        restaurant_id=other_restaurant.id,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_auth_headers():
    """Factory for users created inside a test."""
    return auth_headers_for


@pytest.fixture
def admin_headers(super_admin):
    return auth_headers_for(super_admin)


@pytest.fixture
def staff_headers(staff_user):
    return auth_headers_for(staff_user)


@pytest.fixture
def other_staff_headers(other_staff_user):
    return auth_headers_for(other_staff_user)
