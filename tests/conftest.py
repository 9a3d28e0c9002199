# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

Every test gets a fresh InMemoryStore seeded with two organizations, one
administrator each, a super admin, two owner accounts, one building and a
few apartments.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from core.config import settings
from core.rate_limiter import reset_rate_limits
from core.store import InMemoryStore
from dependencies.auth import create_session_token
from main import create_app


ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"

ADMIN_USER_ID = "admin-user"
ADMIN_ID = "ADM1"
OTHER_ADMIN_USER_ID = "other-admin-user"
OTHER_ADMIN_ID = "ADM2"
SUPER_ADMIN_USER_ID = "super-admin-user"
OWNER_USER_ID = "USER1"
SECOND_OWNER_USER_ID = "USER2"

BUILDING_ID = "building-1"
APARTMENT_ID = "A1"
TOP_FLOOR_APARTMENT_ID = "A5"


def _user(user_id, email, role, organization_id=None, **extra):
    return {
        "id": user_id,
        "email": email,
        "password_hash": "not-a-real-hash",
        "first_name": extra.pop("first_name", "Test"),
        "last_name": extra.pop("last_name", "User"),
        "phone": None,
        "role": role,
        "organization_id": organization_id,
        "permissions": extra.pop("permissions", []),
    }


def seed_tables() -> dict:
    return {
        "organizations": [
            {"id": ORG_ID, "name": "Asociatia Florilor"},
            {"id": OTHER_ORG_ID, "name": "Asociatia Lalelelor"},
        ],
        "users": [
            _user(ADMIN_USER_ID, "admin@example.com", "ADMINISTRATOR", ORG_ID),
            _user(OTHER_ADMIN_USER_ID, "other-admin@example.com", "ADMINISTRATOR", OTHER_ORG_ID),
            _user(SUPER_ADMIN_USER_ID, "root@example.com", "SUPER_ADMIN"),
            _user(OWNER_USER_ID, "ana@example.com", "OWNER", first_name="Ana", last_name="Pop"),
            _user(SECOND_OWNER_USER_ID, "ion@example.com", "OWNER", first_name="Ion", last_name="Rus"),
        ],
        "administrators": [
            {"id": ADMIN_ID, "user_id": ADMIN_USER_ID, "organization_id": ORG_ID},
            {"id": OTHER_ADMIN_ID, "user_id": OTHER_ADMIN_USER_ID, "organization_id": OTHER_ORG_ID},
        ],
        "buildings": [
            {
                "id": BUILDING_ID,
                "organization_id": ORG_ID,
                "administrator_id": ADMIN_ID,
                "code": "BLDA0001",
                "name": "Bloc A1",
                "address": "Strada Florilor 12",
                "city": "Cluj-Napoca",
                "postal_code": "400001",
                "reading_deadline": 25,
                "floors": 5,
                "total_apartments": 20,
                "year_built": 1985,
                "description": None,
                "has_elevator": True,
                "has_parking": False,
                "has_garden": False,
                "deleted_at": None,
            },
        ],
        "apartments": [
            {
                "id": APARTMENT_ID,
                "building_id": BUILDING_ID,
                "number": "1",
                "floor": 1,
                "rooms": 2,
                "surface": 54.5,
                "owner_id": None,
                "deleted_at": None,
            },
            {
                "id": TOP_FLOOR_APARTMENT_ID,
                "building_id": BUILDING_ID,
                "number": "15",
                "floor": 5,
                "rooms": 3,
                "surface": 72.0,
                "owner_id": None,
                "deleted_at": None,
            },
        ],
    }


@pytest.fixture(scope="function")
def store() -> InMemoryStore:
    """Fresh seeded in-memory store."""
    return InMemoryStore(seed_tables())


@pytest.fixture(scope="function")
def app(store):
    """Create a test FastAPI application instance bound to the seeded store."""
    return create_app(store=store)


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user_id: str) -> dict:
    """Bearer header carrying the same signed token as the session cookie."""
    return {"Authorization": f"Bearer {create_session_token(user_id)}"}


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_USER_ID)


@pytest.fixture
def other_admin_headers():
    return auth_headers(OTHER_ADMIN_USER_ID)


@pytest.fixture
def owner_headers():
    return auth_headers(OWNER_USER_ID)


@pytest.fixture
def super_admin_headers():
    return auth_headers(SUPER_ADMIN_USER_ID)


@pytest.fixture
def session_cookie_name():
    return settings.SESSION_COOKIE_NAME


@pytest.fixture(autouse=True)
def reset_limits():
    """Reset rate limits before each test."""
    reset_rate_limits()
    yield
    reset_rate_limits()
