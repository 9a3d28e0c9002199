# tests/test_roles.py

"""
Tests for custom roles and role assignment.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from core.errors import StoreError
from core.store import InMemoryStore
from services import permission_service
from tests.conftest import (
    ADMIN_USER_ID,
    OWNER_USER_ID,
    SECOND_OWNER_USER_ID,
    SUPER_ADMIN_USER_ID,
    auth_headers,
    seed_tables,
)


AUDITOR = {
    "name": "water auditor",
    "description": "Reads meters and readings",
    "permissions": ["WATER_METERS:READ", "WATER_READINGS:READ"],
}


# ============================================================
# Roles
# ============================================================
def test_list_roles_system_first_with_user_counts(store):
    result = permission_service.list_roles(store)

    assert result.success
    names = [r.name for r in result.data]
    assert names[:3] == ["SUPER_ADMIN", "ADMINISTRATOR", "OWNER"]

    counts = {r.name: r.user_count for r in result.data}
    assert counts == {"SUPER_ADMIN": 1, "ADMINISTRATOR": 2, "OWNER": 2}
    assert all(r.is_system for r in result.data)


def test_create_role_normalizes_name(store):
    result = permission_service.create_role(store, AUDITOR, created_by=SUPER_ADMIN_USER_ID)

    assert result.success
    assert result.data.name == "WATER_AUDITOR"
    assert result.data.is_system is False

    names = [r.name for r in permission_service.list_roles(store).data]
    assert names[-1] == "WATER_AUDITOR"


@pytest.mark.parametrize("name", ["owner", "WATER_AUDITOR"])
def test_create_role_name_taken(store, name):
    assert permission_service.create_role(store, AUDITOR).success

    result = permission_service.create_role(store, {**AUDITOR, "name": name})

    assert result.code == "ROLE_ALREADY_EXISTS"


def test_create_role_rejects_unknown_permissions(store):
    result = permission_service.create_role(
        store, {**AUDITOR, "permissions": ["WATER_READINGS:READ", "POOLS:READ", "BUILDINGS:FLY"]}
    )

    assert result.code == "INVALID_PERMISSIONS"
    assert result.details == {"invalid": ["BUILDINGS:FLY", "POOLS:READ"]}
    assert store.select("roles") == []


def test_custom_role_permissions_reach_the_session(store):
    permission_service.create_role(store, AUDITOR)
    store.update("users", {"id": SECOND_OWNER_USER_ID}, {"role": "WATER_AUDITOR"})

    session = permission_service.build_session(store, SECOND_OWNER_USER_ID)

    assert session.permissions == ["WATER_METERS:READ", "WATER_READINGS:READ"]


def test_role_without_definition_grants_nothing():
    store = InMemoryStore(seed_tables())

    permissions = permission_service.get_user_permissions(store, {"role": "GHOST", "permissions": []})

    assert permissions == []


# ============================================================
# Users and assignment
# ============================================================
def test_list_users_with_roles(store):
    store.insert("owners", {"id": "OWN1", "user_id": OWNER_USER_ID})
    store.update("apartments", {"id": "A1"}, {"owner_id": "OWN1"})

    result = permission_service.list_users_with_roles(store)

    assert result.success
    users = {u.id: u for u in result.data}
    assert len(users) == 5
    assert users[ADMIN_USER_ID].role.name == "ADMINISTRATOR"
    assert users[ADMIN_USER_ID].administrator_id == "ADM1"
    assert [(a.number, a.building_name) for a in users[OWNER_USER_ID].apartments] == [("1", "Bloc A1")]
    assert users[SECOND_OWNER_USER_ID].apartments == []


def test_assign_administrator_creates_profile(store):
    result = permission_service.assign_role(store, {"user_id": SECOND_OWNER_USER_ID, "role": "administrator"})

    assert result.success
    assert result.data.role == "ADMINISTRATOR"
    assert result.data.administrator_id is not None
    assert "BUILDINGS:CREATE" in result.data.permissions


@pytest.mark.parametrize("payload,code", [
    ({"user_id": "nobody", "role": "OWNER"}, "USER_NOT_FOUND"),
    ({"user_id": OWNER_USER_ID, "role": "JANITOR"}, "ROLE_NOT_FOUND"),
    ({"user_id": OWNER_USER_ID, "role": ""}, "VALIDATION_FAILED"),
])
def test_assign_role_failures(store, payload, code):
    assert permission_service.assign_role(store, payload).code == code


def test_failed_assignment_removes_new_profile(store):
    with patch.object(store, "update", side_effect=StoreError("connection reset by peer")):
        result = permission_service.assign_role(store, {"user_id": OWNER_USER_ID, "role": "ADMINISTRATOR"})

    assert result.code == "INTERNAL_ERROR"
    assert store.select_one("administrators", {"user_id": OWNER_USER_ID}) is None
    assert store.select_one("users", {"id": OWNER_USER_ID})["role"] == "OWNER"


# ============================================================
# Routes
# ============================================================
def test_role_routes_for_super_admin(client: TestClient, super_admin_headers):
    response = client.post("/permissions/roles", json=AUDITOR, headers=super_admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["name"] == "WATER_AUDITOR"

    response = client.post("/permissions/roles", json=AUDITOR, headers=super_admin_headers)
    assert response.status_code == 409

    response = client.patch(
        "/permissions/users",
        json={"user_id": OWNER_USER_ID, "role": "WATER_AUDITOR"},
        headers=super_admin_headers,
    )
    assert response.status_code == 200

    response = client.get("/auth/me", headers=auth_headers(OWNER_USER_ID))
    assert response.json()["data"]["permissions"] == ["WATER_METERS:READ", "WATER_READINGS:READ"]

    response = client.get("/permissions/users", headers=super_admin_headers)
    assert response.status_code == 200
    roles = {u["id"]: u["role"]["name"] for u in response.json()["data"]}
    assert roles[OWNER_USER_ID] == "WATER_AUDITOR"


def test_role_routes_require_permissions(client: TestClient, admin_headers):
    assert client.get("/permissions/roles", headers=admin_headers).status_code == 403
    assert client.post("/permissions/roles", json=AUDITOR, headers=admin_headers).status_code == 403
    assert client.get("/permissions/users", headers=admin_headers).status_code == 403

    response = client.patch(
        "/permissions/users",
        json={"user_id": OWNER_USER_ID, "role": "ADMINISTRATOR"},
        headers=admin_headers,
    )
    assert response.status_code == 403


def test_assign_role_route_unknown_role(client: TestClient, super_admin_headers):
    response = client.patch(
        "/permissions/users",
        json={"user_id": OWNER_USER_ID, "role": "JANITOR"},
        headers=super_admin_headers,
    )

    assert response.status_code == 404
    assert response.json()["code"] == "ROLE_NOT_FOUND"
