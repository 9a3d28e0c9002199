# services/building_service.py

"""
Buildings of an administrator.

Every read filters soft-deleted rows (`deleted_at IS NULL`). Building codes
are 8 random alphanumerics, unique within an organization.
"""

import math
from typing import List, Optional

from pydantic import ValidationError

from core.config import settings
from core.errors import (
    ErrorCode,
    ServiceResult,
    StoreError,
    internal_failure,
    validation_failure,
)
from core.logging_config import logger
from core.store import Store
from core.unique_codes import CodeGenerationError, generate_unique, random_code
from core.utils import sanitize, utcnow
from models.apartment import ApartmentRead
from models.building import (
    BuildingCreate,
    BuildingList,
    BuildingQuery,
    BuildingRead,
    BuildingUpdate,
    Pagination,
)
from models.enums import InviteCodeStatus


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def _validate(model, data):
    return data if isinstance(data, model) else model.model_validate(data)


def _live_apartments(store: Store, building_id: str) -> List[dict]:
    return store.select(
        "apartments",
        {"building_id": building_id, "deleted_at": None},
        order_by="number",
    )


def _visible_building(store: Store, building_id: str, administrator_id: str) -> Optional[dict]:
    return store.select_one(
        "buildings",
        {"id": building_id, "administrator_id": administrator_id, "deleted_at": None},
    )


def _to_read(store: Store, row: dict) -> BuildingRead:
    return BuildingRead(**row, apartment_count=len(_live_apartments(store, row["id"])))


def _duplicate_exists(
    store: Store,
    administrator_id: str,
    name: str,
    address: str,
    exclude_id: Optional[str] = None,
) -> bool:
    rows = store.select(
        "buildings",
        {"administrator_id": administrator_id, "name": name, "address": address, "deleted_at": None},
    )
    return any(r["id"] != exclude_id for r in rows)


def floor_conflicts(apartments: List[dict], floors: int) -> List[int]:
    """Sorted, distinct floors of apartments that sit above `floors`."""
    return sorted({
        a["floor"] for a in apartments
        if a.get("floor") is not None and a["floor"] > floors
    })


# -----------------------------------------------------
# Building codes
# -----------------------------------------------------
def building_code_exists(store: Store, organization_id: str, code: str) -> bool:
    # Soft-deleted buildings keep their code
    return store.select_one("buildings", {"organization_id": organization_id, "code": code}) is not None


def generate_building_code(store: Store, organization_id: str) -> str:
    """Raises CodeGenerationError once the attempts are exhausted."""
    return generate_unique(
        organization_id,
        settings.BUILDING_CODE_MAX_ATTEMPTS,
        lambda: random_code(settings.BUILDING_CODE_LENGTH, settings.BUILDING_CODE_ALPHABET),
        lambda scope, code: building_code_exists(store, scope, code),
    )


# -----------------------------------------------------
# Create
# -----------------------------------------------------
def create_building(store: Store, data, administrator_id: str) -> ServiceResult:
    try:
        payload = _validate(BuildingCreate, data)
    except ValidationError as e:
        return validation_failure(e)

    try:
        administrator = store.select_one("administrators", {"id": administrator_id})
        organization_id = administrator.get("organization_id") if administrator else None
        organization_id = organization_id or administrator_id

        if _duplicate_exists(store, administrator_id, payload.name, payload.address):
            return ServiceResult.fail(ErrorCode.BUILDING_ALREADY_EXISTS)

        try:
            code = generate_building_code(store, organization_id)
        except CodeGenerationError as e:
            logger.warning(str(e))
            return ServiceResult.fail(ErrorCode.CODE_GENERATION_FAILED)

        row = store.insert(
            "buildings",
            {
                **sanitize(payload.model_dump()),
                "code": code,
                "organization_id": organization_id,
                "administrator_id": administrator_id,
                "deleted_at": None,
            },
        )
        logger.info(f"Building {row['id']} created with code {code}")
        return ServiceResult.ok(_to_read(store, row))

    except StoreError as e:
        return internal_failure(e, "Failed to create building")


# -----------------------------------------------------
# Read
# -----------------------------------------------------
def list_buildings(store: Store, administrator_id: str, query=None) -> ServiceResult:
    try:
        params = _validate(BuildingQuery, query or {})
    except ValidationError as e:
        return validation_failure(e)

    try:
        rows = store.select(
            "buildings",
            {"administrator_id": administrator_id, "deleted_at": None},
            order_by="name",
        )
    except StoreError as e:
        return internal_failure(e, "Failed to fetch buildings")

    if params.search:
        needle = params.search.strip().lower()
        rows = [
            r for r in rows
            if any(needle in (r.get(field) or "").lower() for field in ("name", "address", "city"))
        ]

    total = len(rows)
    total_pages = math.ceil(total / params.limit) if total else 0
    start = (params.page - 1) * params.limit
    page_rows = rows[start:start + params.limit]

    try:
        buildings = [_to_read(store, r) for r in page_rows]
    except StoreError as e:
        return internal_failure(e, "Failed to fetch buildings")

    return ServiceResult.ok(
        BuildingList(
            buildings=buildings,
            pagination=Pagination(
                page=params.page,
                limit=params.limit,
                total=total,
                total_pages=total_pages,
                has_next=params.page < total_pages,
                has_prev=params.page > 1,
            ),
        )
    )


def get_building(store: Store, building_id: str, administrator_id: str) -> ServiceResult:
    try:
        row = _visible_building(store, building_id, administrator_id)
        if row is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        apartments = [ApartmentRead(**a) for a in _live_apartments(store, building_id)]
    except StoreError as e:
        return internal_failure(e, "Failed to fetch building")

    building = BuildingRead(**row, apartment_count=len(apartments))
    return ServiceResult.ok({**building.model_dump(), "apartments": [a.model_dump() for a in apartments]})


def get_building_by_code(store: Store, organization_id: str, code: str) -> ServiceResult:
    try:
        row = store.select_one(
            "buildings",
            {"organization_id": organization_id, "code": (code or "").strip().upper(), "deleted_at": None},
        )
        if row is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)
        return ServiceResult.ok(_to_read(store, row))
    except StoreError as e:
        return internal_failure(e, "Failed to fetch building")


def find_building_by_code(store: Store, administrator_id: str, code: str) -> ServiceResult:
    """Building code lookup inside the caller's organization."""
    try:
        administrator = store.select_one("administrators", {"id": administrator_id})
    except StoreError as e:
        return internal_failure(e, "Failed to fetch building")
    if administrator is None or not administrator.get("organization_id"):
        return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)
    return get_building_by_code(store, administrator["organization_id"], code)


# -----------------------------------------------------
# Update
# -----------------------------------------------------
def update_building(store: Store, building_id: str, data, administrator_id: str) -> ServiceResult:
    try:
        payload = _validate(BuildingUpdate, data)
    except ValidationError as e:
        return validation_failure(e)

    changes = sanitize(payload.model_dump(exclude_unset=True))
    # Required columns cannot be cleared
    for field in ("name", "address", "city", "reading_deadline", "has_elevator", "has_parking", "has_garden"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    try:
        existing = _visible_building(store, building_id, administrator_id)
        if existing is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        if "name" in changes or "address" in changes:
            if _duplicate_exists(
                store,
                administrator_id,
                changes.get("name", existing["name"]),
                changes.get("address", existing["address"]),
                exclude_id=building_id,
            ):
                return ServiceResult.fail(ErrorCode.BUILDING_ALREADY_EXISTS)

        new_floors = changes.get("floors")
        current_floors = existing.get("floors")
        if new_floors is not None and (current_floors is None or new_floors < current_floors):
            conflicts = floor_conflicts(_live_apartments(store, building_id), new_floors)
            if conflicts:
                floors_text = ", ".join(str(f) for f in conflicts)
                logger.info(f"Rejected floor reduction of building {building_id} to {new_floors}: floors {floors_text}")
                return ServiceResult.fail(
                    ErrorCode.FLOOR_CONFLICT,
                    error=f"Cannot reduce floors to {new_floors}: apartments exist on floor(s) {floors_text}",
                    details={"floors": conflicts, "requested_floors": new_floors},
                )

        if not changes:
            return ServiceResult.ok(_to_read(store, existing))

        rows = store.update("buildings", {"id": building_id}, changes)
        if not rows:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)
        return ServiceResult.ok(_to_read(store, rows[0]))

    except StoreError as e:
        return internal_failure(e, "Failed to update building")


# -----------------------------------------------------
# Delete (soft)
# -----------------------------------------------------
def delete_building(store: Store, building_id: str, administrator_id: str) -> ServiceResult:
    """
    Sets deleted_at on the building and its apartments and cancels any
    active invite codes of those apartments.
    """
    try:
        existing = _visible_building(store, building_id, administrator_id)
        if existing is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        now = utcnow()
        apartments = _live_apartments(store, building_id)
        if apartments:
            logger.warning(f"Deleting building {building_id} with {len(apartments)} apartments")

        for apartment in apartments:
            store.update(
                "invite_codes",
                {"apartment_id": apartment["id"], "status": InviteCodeStatus.ACTIVE.value},
                {"status": InviteCodeStatus.CANCELLED.value},
            )
            store.update("apartments", {"id": apartment["id"]}, {"deleted_at": now})

        store.update("buildings", {"id": building_id}, {"deleted_at": now})
        return ServiceResult.ok({"id": building_id, "deleted_at": now})

    except StoreError as e:
        return internal_failure(e, "Failed to delete building")


# -----------------------------------------------------
# Stats
# -----------------------------------------------------
def get_building_stats(store: Store, administrator_id: str) -> ServiceResult:
    try:
        buildings = store.select("buildings", {"administrator_id": administrator_id, "deleted_at": None})
        ids = [b["id"] for b in buildings]
        apartments = store.select_in("apartments", "building_id", ids, {"deleted_at": None})
    except StoreError as e:
        return internal_failure(e, "Failed to fetch building stats")

    return ServiceResult.ok({
        "total_buildings": len(buildings),
        "total_apartments": len(apartments),
        "owned_apartments": sum(1 for a in apartments if a.get("owner_id")),
    })
