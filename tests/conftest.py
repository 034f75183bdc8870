"""
Shared fixtures.

Every test gets its own application bound to a fresh in-memory SQLite
database, populated by the development seed.
"""
import pytest

from modishcarts.app import create_app
from modishcarts.core.config import Config
from modishcarts.db import get_database
from modishcarts.seed import seed

TEST_ENV = {
    "ENVIRONMENT": "test",
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
    "PASSWORD_HASH_ROUNDS": "4",
    "LOG_LEVEL": "WARNING",
}

ADMIN = ("admin@modishcarts.com", "admin123")
CUSTOMER = ("test@modishcarts.com", "test123")
INACTIVE = ("inactive@modishcarts.com", "test123")


@pytest.fixture
def config() -> Config:
    return Config(TEST_ENV)


@pytest.fixture
def app(config):
    app = create_app(config)
    with app.app_context():
        database = get_database()
        database.create_all()
        yield app
        database.drop_all()
        database.dispose()


@pytest.fixture
def seeded(app, config):
    """Seed the database; returns the ids tests refer to."""
    with get_database().session_scope() as session:
        data = seed(session, config)
        ids = {
            "admin": data["users"][ADMIN[0]].id,
            "customer": data["users"][CUSTOMER[0]].id,
            "inactive": data["users"][INACTIVE[0]].id,
            "categories": {slug: c.id for slug, c in data["categories"].items()},
            "products": {sku: p.id for sku, p in data["products"].items()},
        }
    return ids


@pytest.fixture
def client(app, seeded):
    return app.test_client()


def login(client, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(client):
    return bearer(login(client, *CUSTOMER)["token"])


@pytest.fixture
def admin_headers(client):
    return bearer(login(client, *ADMIN)["token"])
