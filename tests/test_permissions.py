# tests/test_permissions.py

"""
Tests for permission evaluation and the route guard.
"""

import itertools

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from core.permission_helpers import (
    evaluate_access,
    evaluate_permissions,
    guard_state,
    has_permission,
    parse_permission,
    requires_permissions,
)
from core.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS
from core.store import InMemoryStore
from dependencies.store import get_store
from models.session import AuthenticatedSession, UnauthenticatedSession
from models.user import UserRead
from services.permission_service import build_session, get_user_permissions
from tests.conftest import (
    ADMIN_USER_ID,
    OWNER_USER_ID,
    auth_headers,
    seed_tables,
)


def _session(permissions):
    user = UserRead(id="u1", email="u1@example.com", permissions=list(permissions))
    return AuthenticatedSession(user=user, permissions=list(permissions))


# ============================================================
# Evaluator
# ============================================================
UNIVERSE = ["BUILDINGS:READ", "BUILDINGS:CREATE", "APARTMENTS:READ"]


def _subsets(values):
    for size in range(len(values) + 1):
        for combo in itertools.combinations(values, size):
            yield list(combo)


@pytest.mark.parametrize("held", list(_subsets(UNIVERSE)))
def test_evaluator_matches_or_and_formula(held):
    """(any_of empty or one held) and (all_of empty or all held), for every pair of sets."""
    for any_of in _subsets(UNIVERSE):
        for all_of in _subsets(UNIVERSE):
            expected = (not any_of or any(p in held for p in any_of)) and (
                not all_of or all(p in held for p in all_of)
            )
            assert evaluate_permissions(held, any_of, all_of) is expected
            assert evaluate_access(_session(held), any_of, all_of) is expected


@pytest.mark.parametrize("any_of,all_of", [
    (None, None),
    ([], []),
    (["BUILDINGS:READ"], None),
    (None, ["BUILDINGS:READ"]),
])
def test_unauthenticated_is_always_denied(any_of, all_of):
    assert evaluate_access(UnauthenticatedSession(), any_of, all_of) is False
    assert evaluate_access(UnauthenticatedSession(loading=True), any_of, all_of) is False


def test_no_requirement_grants_authenticated_session():
    assert evaluate_access(_session([]), None, None) is True
    assert evaluate_access(_session([]), [], []) is True


@pytest.mark.parametrize("value", ["BUILDINGS", "BUILDINGS:", ":READ", "A:B:C", "", None, 42])
def test_malformed_permission_never_raises(value):
    assert parse_permission(value) is None
    assert has_permission(["BUILDINGS:READ"], value) is False


def test_malformed_entry_is_not_satisfied():
    held = ["BUILDINGS:READ"]
    assert evaluate_permissions(held, any_of=["BUILDINGSREAD", "BUILDINGS:READ"]) is True
    assert evaluate_permissions(held, any_of=["BUILDINGSREAD"]) is False
    assert evaluate_permissions(held, all_of=["BUILDINGS:READ", "BUILDINGSREAD"]) is False


def test_parse_permission_splits_resource_and_action():
    assert parse_permission("WATER_METERS:CREATE") == ("WATER_METERS", "CREATE")


def test_guard_state():
    assert guard_state(_session(["BUILDINGS:READ"]), ["BUILDINGS:READ"]) == "granted"
    assert guard_state(_session([]), ["BUILDINGS:READ"]) == "denied"
    assert guard_state(UnauthenticatedSession(loading=True), ["BUILDINGS:READ"]) == "loading"
    assert guard_state(UnauthenticatedSession(), None) == "denied"


# ============================================================
# Role map / session building
# ============================================================
def test_super_admin_holds_every_permission():
    assert set(ROLE_PERMISSIONS["SUPER_ADMIN"]) == set(ALL_PERMISSIONS)


def test_user_permissions_merge_role_and_valid_grants():
    user = {"role": "OWNER", "permissions": ["ROLES:READ", "broken", 7]}
    permissions = get_user_permissions(InMemoryStore(), user)

    assert "ROLES:READ" in permissions
    assert "APARTMENTS:READ" in permissions
    assert "broken" not in permissions
    assert permissions == sorted(permissions)


def test_build_session_for_known_and_unknown_users():
    store = InMemoryStore(seed_tables())

    session = build_session(store, ADMIN_USER_ID)
    assert isinstance(session, AuthenticatedSession)
    assert session.administrator_id == "ADM1"
    assert "INVITE_CODES:CREATE" in session.permissions

    assert isinstance(build_session(store, "nobody"), UnauthenticatedSession)
    assert isinstance(build_session(store, None), UnauthenticatedSession)


# ============================================================
# Routes
# ============================================================
def test_check_endpoint_never_401(client: TestClient):
    response = client.get("/permissions/check", params={"any_of": ["BUILDINGS:READ"]})

    assert response.status_code == 200
    assert response.json()["data"] == {"allowed": False, "state": "denied"}


def test_check_endpoint_for_administrator(client: TestClient, admin_headers):
    response = client.get(
        "/permissions/check",
        params={"any_of": ["ROLES:READ", "BUILDINGS:READ"], "all_of": ["INVITE_CODES:CREATE"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"allowed": True, "state": "granted"}


def test_roles_endpoint_requires_roles_read(client: TestClient, admin_headers, super_admin_headers):
    assert client.get("/permissions/roles").status_code == 401
    assert client.get("/permissions/roles", headers=admin_headers).status_code == 403

    response = client.get("/permissions/roles", headers=super_admin_headers)
    assert response.status_code == 200
    names = {role["name"] for role in response.json()["data"]}
    assert names == {"SUPER_ADMIN", "ADMINISTRATOR", "OWNER"}


def test_owner_cannot_create_buildings(client: TestClient, owner_headers):
    response = client.post("/buildings", json={}, headers=owner_headers)

    assert response.status_code == 403
    assert "BUILDINGS:CREATE" in response.json()["error"]


def test_guard_redirects_when_configured():
    app = FastAPI()
    app.state.store = InMemoryStore(seed_tables())

    @app.get("/dashboard")
    def dashboard(_=Depends(requires_permissions(any_of=["BUILDINGS:READ"], redirect_to="/login"))):
        return {"ok": True}

    with TestClient(app) as client:
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

        response = client.get("/dashboard", headers=auth_headers(OWNER_USER_ID), follow_redirects=False)
        assert response.status_code == 303

        response = client.get("/dashboard", headers=auth_headers(ADMIN_USER_ID))
        assert response.status_code == 200


def test_store_dependency_reads_app_state():
    app = FastAPI()
    store = InMemoryStore()
    app.state.store = store

    @app.get("/which")
    def which(current=Depends(get_store)):
        return {"same": current is store}

    with TestClient(app) as client:
        assert client.get("/which").json() == {"same": True}
