# core/store.py

"""
Persistence handle passed explicitly into every service.

Two backends implement the same interface:
    • SupabaseStore (core.supabase_store) — production, PostgREST tables
    • InMemoryStore (this module)         — tests and local development

Rows are plain dicts. Filters are equality matches; a filter value of None
means "IS NULL" (used for soft-delete filtering on `deleted_at`).
"""

import copy
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple

from core.errors import StoreError
from core.utils import utcnow


# Unique keys enforced by every backend (mirrors the database constraints)
UNIQUE_KEYS: Dict[str, List[Tuple[str, ...]]] = {
    "users": [("email",)],
    "administrators": [("user_id",)],
    "owners": [("user_id",)],
    "organizations": [("code",)],
    "roles": [("name",)],
    "buildings": [("organization_id", "code")],
    "invite_codes": [("code",)],
}


class Store(ABC):

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[dict]:
        ...

    def select_one(self, table: str, filters: dict) -> Optional[dict]:
        rows = self.select(table, filters, limit=1)
        return rows[0] if rows else None

    def select_in(self, table: str, column: str, values: List[Any], filters: Optional[dict] = None) -> List[dict]:
        """Rows whose `column` is one of `values` (plus equality filters)."""
        if not values:
            return []
        wanted = set(values)
        return [row for row in self.select(table, filters) if row.get(column) in wanted]

    @abstractmethod
    def insert(self, table: str, data: dict) -> dict:
        ...

    @abstractmethod
    def update(self, table: str, filters: dict, data: dict) -> List[dict]:
        ...

    @abstractmethod
    def delete(self, table: str, filters: dict) -> int:
        """Hard delete. Only used to undo rows written earlier in the same operation."""

    @abstractmethod
    def replace_active_invite_code(self, apartment_id: str, data: dict) -> dict:
        """
        Cancel the ACTIVE code of `apartment_id` (if any) and insert `data` as
        the new ACTIVE code, all-or-nothing. Returns the inserted row.
        """

    @abstractmethod
    def redeem_invite_code(
        self,
        code_id: str,
        user_id: str,
        apartment_id: str,
        used_at: datetime,
    ) -> dict:
        """
        Mark the code USED and link the apartment to the user's owner record
        (created when missing) as one all-or-nothing operation.
        Returns the updated invite code row.
        """

    @abstractmethod
    def ping(self) -> dict:
        ...


# ============================================================
# In-memory backend
# ============================================================

def _matches(row: dict, filters: Optional[dict]) -> bool:
    if not filters:
        return True
    for key, val in filters.items():
        if val is None:
            if row.get(key) is not None:
                return False
        elif row.get(key) != val:
            return False
    return True


def _sort_key(value):
    # None sorts first
    return (value is not None, value if value is not None else 0)


class InMemoryStore(Store):
    """
    Dict-of-tables store with the same unique keys as the database.

    Thread-safe for concurrent access.
    """

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self._tables: Dict[str, List[dict]] = {}
        self._lock = RLock()
        self._last_ts: Optional[datetime] = None
        for table, rows in (tables or {}).items():
            for row in rows:
                self.insert(table, row)

    # -----------------------------------------------------
    # Reads
    # -----------------------------------------------------
    def select(self, table, filters=None, *, order_by=None, descending=False, limit=None):
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._tables.get(table, []) if _matches(r, filters)]

        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    # -----------------------------------------------------
    # Writes
    # -----------------------------------------------------
    def _check_unique(self, table: str, candidate: dict, ignore_id: Optional[str] = None):
        for key in UNIQUE_KEYS.get(table, []):
            values = tuple(candidate.get(col) for col in key)
            if any(v is None for v in values):
                continue
            for row in self._tables.get(table, []):
                if row.get("id") == ignore_id:
                    continue
                if tuple(row.get(col) for col in key) == values:
                    raise StoreError(
                        f"duplicate key value violates unique constraint on {table}({', '.join(key)})"
                    )

    def _now(self) -> datetime:
        # Strictly increasing so created_at ordering is deterministic
        now = utcnow()
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + timedelta(microseconds=1)
        self._last_ts = now
        return now

    def insert(self, table, data):
        with self._lock:
            now = self._now()
        row = copy.deepcopy(data)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)

        with self._lock:
            self._check_unique(table, row)
            self._tables.setdefault(table, []).append(row)
            return copy.deepcopy(row)

    def update(self, table, filters, data):
        now = utcnow()
        updated = []

        with self._lock:
            targets = [r for r in self._tables.get(table, []) if _matches(r, filters)]
            for row in targets:
                merged = {**row, **copy.deepcopy(data), "updated_at": now}
                self._check_unique(table, merged, ignore_id=row.get("id"))
            for row in targets:
                row.update(copy.deepcopy(data))
                row["updated_at"] = now
                updated.append(copy.deepcopy(row))

        return updated

    def delete(self, table: str, filters: dict) -> int:
        """Hard delete; returns the number of removed rows."""
        with self._lock:
            rows = self._tables.get(table, [])
            keep = [r for r in rows if not _matches(r, filters)]
            self._tables[table] = keep
            return len(rows) - len(keep)

    # -----------------------------------------------------
    # Multi-write operations
    # -----------------------------------------------------
    @contextmanager
    def _transaction(self, *tables: str):
        """Restore `tables` to their prior rows if the block raises."""
        with self._lock:
            snapshot = {name: copy.deepcopy(self._tables.get(name, [])) for name in tables}
            try:
                yield
            except Exception:
                self._tables.update(snapshot)
                raise

    def replace_active_invite_code(self, apartment_id, data):
        with self._transaction("invite_codes"):
            self.update(
                "invite_codes",
                {"apartment_id": apartment_id, "status": "ACTIVE"},
                {"status": "CANCELLED"},
            )
            return self.insert("invite_codes", {**data, "apartment_id": apartment_id, "status": "ACTIVE"})

    def redeem_invite_code(self, code_id, user_id, apartment_id, used_at):
        with self._transaction("invite_codes", "owners", "apartments"):
            codes = self.update(
                "invite_codes",
                {"id": code_id, "status": "ACTIVE"},
                {"status": "USED", "used_by": user_id, "used_at": used_at},
            )
            if not codes:
                raise StoreError(f"invite code {code_id} is not active")

            owner = self.select_one("owners", {"user_id": user_id})
            if owner is None:
                owner = self.insert("owners", {"user_id": user_id})

            apartments = self.update(
                "apartments",
                {"id": apartment_id, "owner_id": None, "deleted_at": None},
                {"owner_id": owner["id"]},
            )
            if not apartments:
                raise StoreError(f"apartment {apartment_id} cannot be claimed")

            return codes[0]

    def ping(self):
        with self._lock:
            return {
                "service": "InMemoryStore",
                "status": "ok",
                "tables": {name: {"status": "ok", "rows_found": len(rows)} for name, rows in self._tables.items()},
            }
