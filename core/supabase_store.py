# core/supabase_store.py

from typing import List, Optional

from supabase import Client

from core.errors import StoreError, extract_store_error
from core.logging_config import logger
from core.store import Store
from core.utils import to_json_value


def _serialize(data: dict) -> dict:
    return {k: to_json_value(v) for k, v in data.items()}


class SupabaseStore(Store):
    """
    Store backed by Supabase / PostgREST.

    Always built with a SERVICE ROLE client (full read/write on all tables).
    Multi-write operations go through Postgres functions so they share one
    transaction (see supabase/migrations).
    """

    def __init__(self, client: Client):
        self.client = client

    # -----------------------------------------------------
    # Query helpers
    # -----------------------------------------------------
    @staticmethod
    def _apply_filters(query, filters: Optional[dict]):
        for key, val in (filters or {}).items():
            if val is None:
                query = query.is_(key, "null")
            else:
                query = query.eq(key, to_json_value(val))
        return query

    def _execute(self, query, operation: str):
        try:
            return query.execute()
        except Exception as e:
            detail = extract_store_error(e)
            logger.error(f"{operation}: {detail}")
            raise StoreError(detail) from e

    # -----------------------------------------------------
    # Reads
    # -----------------------------------------------------
    def select(self, table, filters=None, *, order_by=None, descending=False, limit=None):
        query = self._apply_filters(self.client.table(table).select("*"), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)

        result = self._execute(query, f"Failed to fetch from {table}")
        return result.data or []

    def select_in(self, table, column, values, filters=None):
        if not values:
            return []
        query = self._apply_filters(self.client.table(table).select("*"), filters)
        query = query.in_(column, list(values))
        result = self._execute(query, f"Failed to fetch from {table}")
        return result.data or []

    # -----------------------------------------------------
    # Writes
    # -----------------------------------------------------
    def insert(self, table, data):
        query = self.client.table(table).insert(_serialize(data), returning="representation")
        result = self._execute(query, f"Failed to insert into {table}")
        if not result.data:
            raise StoreError(f"Insert into {table} returned no data")
        return result.data[0]

    def update(self, table, filters, data):
        query = self.client.table(table).update(_serialize(data), returning="representation")
        query = self._apply_filters(query, filters)
        result = self._execute(query, f"Failed to update {table}")
        return result.data or []

    def delete(self, table, filters):
        query = self._apply_filters(self.client.table(table).delete(), filters)
        result = self._execute(query, f"Failed to delete from {table}")
        return len(result.data or [])

    # -----------------------------------------------------
    # Multi-write operations (Postgres functions)
    # -----------------------------------------------------
    @staticmethod
    def _single_row(data, function: str) -> dict:
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise StoreError(f"{function} returned no data")
        return data

    def replace_active_invite_code(self, apartment_id, data):
        query = self.client.rpc(
            "replace_active_invite_code",
            {
                "p_apartment_id": apartment_id,
                "p_code": data["code"],
                "p_created_by": data["created_by"],
                "p_expires_at": to_json_value(data.get("expires_at")),
            },
        )
        result = self._execute(query, "Failed to replace invite code")
        return self._single_row(result.data, "replace_active_invite_code")

    def redeem_invite_code(self, code_id, user_id, apartment_id, used_at):
        query = self.client.rpc(
            "redeem_invite_code",
            {
                "p_code_id": code_id,
                "p_user_id": user_id,
                "p_apartment_id": apartment_id,
                "p_used_at": to_json_value(used_at),
            },
        )
        result = self._execute(query, "Failed to redeem invite code")
        return self._single_row(result.data, "redeem_invite_code")

    # -----------------------------------------------------
    # Health
    # -----------------------------------------------------
    def ping(self):
        tables = ["buildings", "apartments", "invite_codes", "water_meters"]
        results = {}

        for t in tables:
            try:
                res = self.client.table(t).select("id").limit(1).execute()
                results[t] = {"status": "ok", "rows_found": len(res.data or [])}
            except Exception as err:
                results[t] = {"status": "error", "detail": str(err)}

        status = "ok" if all(r["status"] == "ok" for r in results.values()) else "degraded"
        return {"service": "Supabase", "status": status, "tables": results}
