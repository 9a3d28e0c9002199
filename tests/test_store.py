# tests/test_store.py

"""
Tests for the in-memory store, the store-backed health check and the
Supabase adapter (mocked client).
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from core.errors import StoreError
from core.store import InMemoryStore
from core.supabase_store import SupabaseStore


# ============================================================
# InMemoryStore
# ============================================================
def test_none_filter_means_is_null():
    store = InMemoryStore({"apartments": [
        {"id": "a", "deleted_at": None},
        {"id": "b", "deleted_at": datetime(2024, 1, 1, tzinfo=timezone.utc)},
    ]})

    assert [r["id"] for r in store.select("apartments", {"deleted_at": None})] == ["a"]


def test_rows_are_copies():
    store = InMemoryStore({"users": [{"id": "u", "email": "u@example.com"}]})

    row = store.select_one("users", {"id": "u"})
    row["email"] = "changed@example.com"

    assert store.select_one("users", {"id": "u"})["email"] == "u@example.com"


def test_unique_keys_are_enforced():
    store = InMemoryStore()
    store.insert("invite_codes", {"code": "ABCD1234"})

    with pytest.raises(StoreError):
        store.insert("invite_codes", {"code": "ABCD1234"})

    store.insert("buildings", {"organization_id": "o1", "code": "X1"})
    store.insert("buildings", {"organization_id": "o2", "code": "X1"})
    with pytest.raises(StoreError):
        store.insert("buildings", {"organization_id": "o1", "code": "X1"})


def test_update_that_breaks_a_unique_key_changes_nothing():
    store = InMemoryStore({"users": [
        {"id": "u1", "email": "a@example.com"},
        {"id": "u2", "email": "b@example.com"},
    ]})

    with pytest.raises(StoreError):
        store.update("users", {"id": "u2"}, {"email": "a@example.com"})

    assert store.select_one("users", {"id": "u2"})["email"] == "b@example.com"


def test_order_and_limit():
    store = InMemoryStore()
    for code in ("C", "A", "B"):
        store.insert("invite_codes", {"code": code})

    assert [r["code"] for r in store.select("invite_codes", order_by="created_at", descending=True)] == ["B", "A", "C"]
    assert [r["code"] for r in store.select("invite_codes", order_by="code", limit=2)] == ["A", "B"]


def test_redeem_requires_active_code_and_free_apartment():
    store = InMemoryStore({
        "invite_codes": [{"id": "c1", "code": "ABCD1234", "status": "USED"}],
        "apartments": [{"id": "a1", "owner_id": None, "deleted_at": None}],
    })

    with pytest.raises(StoreError):
        store.redeem_invite_code("c1", "u1", "a1", datetime.now(timezone.utc))

    assert store.select("owners") == []
    assert store.select_one("apartments", {"id": "a1"})["owner_id"] is None


def test_replace_active_invite_code_cancels_previous():
    store = InMemoryStore({"invite_codes": [
        {"id": "c1", "code": "OLD11111", "apartment_id": "a1", "status": "ACTIVE"},
        {"id": "c2", "code": "OTHER111", "apartment_id": "a2", "status": "ACTIVE"},
    ]})

    row = store.replace_active_invite_code("a1", {"code": "NEW11111"})

    assert row["status"] == "ACTIVE"
    assert store.select_one("invite_codes", {"id": "c1"})["status"] == "CANCELLED"
    assert store.select_one("invite_codes", {"id": "c2"})["status"] == "ACTIVE"


def test_replace_active_invite_code_rolls_back_on_duplicate():
    store = InMemoryStore({"invite_codes": [
        {"id": "c1", "code": "OLD11111", "apartment_id": "a1", "status": "ACTIVE"},
    ]})

    with pytest.raises(StoreError):
        store.replace_active_invite_code("a1", {"code": "OLD11111"})

    assert store.select_one("invite_codes", {"id": "c1"})["status"] == "ACTIVE"
    assert len(store.select("invite_codes")) == 1


def test_hard_delete():
    store = InMemoryStore({"owners": [{"id": "o1", "user_id": "u1"}]})

    assert store.delete("owners", {"user_id": "u1"}) == 1
    assert store.select("owners") == []


# ============================================================
# SupabaseStore (mocked client)
# ============================================================
def _chain(data):
    query = Mock()
    for name in ("select", "eq", "is_", "in_", "order", "limit", "insert", "update", "delete"):
        getattr(query, name).return_value = query
    query.execute.return_value = Mock(data=data)
    return query


def test_supabase_select_applies_filters():
    client = Mock()
    query = _chain([{"id": "a"}])
    client.table.return_value = query

    rows = SupabaseStore(client).select(
        "apartments", {"building_id": "b1", "deleted_at": None}, order_by="number", limit=5
    )

    assert rows == [{"id": "a"}]
    query.eq.assert_called_once_with("building_id", "b1")
    query.is_.assert_called_once_with("deleted_at", "null")
    query.order.assert_called_once_with("number", desc=False)
    query.limit.assert_called_once_with(5)


def test_supabase_insert_serializes_datetimes():
    client = Mock()
    query = _chain([{"id": "new"}])
    client.table.return_value = query
    when = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    SupabaseStore(client).insert("invite_codes", {"code": "ABCD1234", "expires_at": when})

    payload = query.insert.call_args[0][0]
    assert payload["expires_at"] == when.isoformat()


def test_supabase_errors_become_store_errors():
    client = Mock()
    query = _chain([])
    query.execute.side_effect = Exception("relation does not exist")
    client.table.return_value = query

    with pytest.raises(StoreError, match="relation does not exist"):
        SupabaseStore(client).select("buildings")


def test_supabase_redeem_uses_rpc():
    client = Mock()
    client.rpc.return_value.execute.return_value = Mock(data=[{"id": "c1", "status": "USED"}])

    row = SupabaseStore(client).redeem_invite_code("c1", "u1", "a1", datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert row["status"] == "USED"
    name, params = client.rpc.call_args[0]
    assert name == "redeem_invite_code"
    assert params["p_code_id"] == "c1"
    assert params["p_used_at"].startswith("2025-01-01")


def test_supabase_delete_counts_removed_rows():
    client = Mock()
    query = _chain([{"id": "o1"}, {"id": "o2"}])
    client.table.return_value = query

    assert SupabaseStore(client).delete("owners", {"user_id": "u1"}) == 2
    query.eq.assert_called_once_with("user_id", "u1")


def test_supabase_replace_invite_code_uses_rpc():
    client = Mock()
    client.rpc.return_value.execute.return_value = Mock(data=[{"id": "c2", "status": "ACTIVE"}])
    expires = datetime(2025, 1, 8, tzinfo=timezone.utc)

    row = SupabaseStore(client).replace_active_invite_code(
        "a1", {"code": "ABCD1234", "created_by": "u1", "expires_at": expires}
    )

    assert row["id"] == "c2"
    name, params = client.rpc.call_args[0]
    assert name == "replace_active_invite_code"
    assert params == {
        "p_apartment_id": "a1",
        "p_code": "ABCD1234",
        "p_created_by": "u1",
        "p_expires_at": expires.isoformat(),
    }


def test_supabase_rpc_without_rows_is_an_error():
    client = Mock()
    client.rpc.return_value.execute.return_value = Mock(data=[])

    with pytest.raises(StoreError, match="no data"):
        SupabaseStore(client).replace_active_invite_code("a1", {"code": "X", "created_by": None})


# ============================================================
# Health
# ============================================================
def test_health_routes(client: TestClient):
    assert client.get("/health/app").json()["status"] == "ok"

    response = client.get("/health/db")
    assert response.status_code == 200
    body = response.json()
    assert body["service"] == "InMemoryStore"
    assert body["details"]["tables"]["buildings"]["rows_found"] == 1
