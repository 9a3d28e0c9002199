# services/apartment_service.py

from typing import Optional

from pydantic import ValidationError

from core.errors import (
    ErrorCode,
    ServiceResult,
    StoreError,
    internal_failure,
    validation_failure,
)
from core.store import Store
from core.utils import sanitize, utcnow
from models.apartment import (
    ApartmentCreate,
    ApartmentRead,
    ApartmentUpdate,
    ApartmentWithBuilding,
)
from models.building import BuildingSummary
from models.enums import InviteCodeStatus


def _visible_building(store: Store, building_id: str, administrator_id: str) -> Optional[dict]:
    return store.select_one(
        "buildings",
        {"id": building_id, "administrator_id": administrator_id, "deleted_at": None},
    )


def _visible_apartment(store: Store, apartment_id: str, administrator_id: str):
    """(apartment, building) when the apartment is live and administered by the caller."""
    apartment = store.select_one("apartments", {"id": apartment_id, "deleted_at": None})
    if apartment is None:
        return None, None
    building = _visible_building(store, apartment["building_id"], administrator_id)
    if building is None:
        return None, None
    return apartment, building


def _floor_fits(building: dict, floor: Optional[int]) -> bool:
    floors = building.get("floors")
    return floor is None or floors is None or floor <= floors


def _number_taken(store: Store, building_id: str, number: str, exclude_id: Optional[str] = None) -> bool:
    rows = store.select("apartments", {"building_id": building_id, "number": number, "deleted_at": None})
    return any(r["id"] != exclude_id for r in rows)


def with_building(apartment: dict, building: Optional[dict]) -> ApartmentWithBuilding:
    summary = None
    if building:
        summary = BuildingSummary(id=building["id"], name=building["name"], address=building.get("address"))
    return ApartmentWithBuilding(**apartment, building=summary)


# -------------------------------------------------------------
# CREATE
# -------------------------------------------------------------
def create_apartment(store: Store, building_id: str, data, administrator_id: str) -> ServiceResult:
    try:
        payload = data if isinstance(data, ApartmentCreate) else ApartmentCreate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    try:
        building = _visible_building(store, building_id, administrator_id)
        if building is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        if not _floor_fits(building, payload.floor):
            return ServiceResult.fail(ErrorCode.FLOOR_OUT_OF_RANGE)

        if _number_taken(store, building_id, payload.number):
            return ServiceResult.fail(ErrorCode.APARTMENT_ALREADY_EXISTS)

        row = store.insert(
            "apartments",
            {
                **sanitize(payload.model_dump()),
                "building_id": building_id,
                "owner_id": None,
                "deleted_at": None,
            },
        )
        return ServiceResult.ok(ApartmentRead(**row))

    except StoreError as e:
        return internal_failure(e, "Failed to create apartment")


# -------------------------------------------------------------
# READ
# -------------------------------------------------------------
def list_apartments(store: Store, building_id: str, administrator_id: str) -> ServiceResult:
    try:
        if _visible_building(store, building_id, administrator_id) is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        rows = store.select(
            "apartments",
            {"building_id": building_id, "deleted_at": None},
            order_by="number",
        )
        return ServiceResult.ok([ApartmentRead(**r) for r in rows])

    except StoreError as e:
        return internal_failure(e, "Failed to fetch apartments")


def list_owner_apartments(store: Store, user_id: str) -> ServiceResult:
    try:
        owner = store.select_one("owners", {"user_id": user_id})
        if owner is None:
            return ServiceResult.ok([])

        rows = store.select("apartments", {"owner_id": owner["id"], "deleted_at": None}, order_by="number")
        buildings = {
            b["id"]: b
            for b in store.select_in("buildings", "id", [r["building_id"] for r in rows])
        }
        return ServiceResult.ok([with_building(r, buildings.get(r["building_id"])) for r in rows])

    except StoreError as e:
        return internal_failure(e, "Failed to fetch apartments")


def get_apartment(store: Store, apartment_id: str, administrator_id: str) -> ServiceResult:
    try:
        apartment, building = _visible_apartment(store, apartment_id, administrator_id)
    except StoreError as e:
        return internal_failure(e, "Failed to fetch apartment")

    if apartment is None:
        return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)
    return ServiceResult.ok(with_building(apartment, building))


# -------------------------------------------------------------
# UPDATE
# -------------------------------------------------------------
def update_apartment(store: Store, apartment_id: str, data, administrator_id: str) -> ServiceResult:
    try:
        payload = data if isinstance(data, ApartmentUpdate) else ApartmentUpdate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    changes = sanitize(payload.model_dump(exclude_unset=True))
    if "number" in changes and changes["number"] is None:
        changes.pop("number")

    try:
        apartment, building = _visible_apartment(store, apartment_id, administrator_id)
        if apartment is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)

        if "floor" in changes and not _floor_fits(building, changes["floor"]):
            return ServiceResult.fail(ErrorCode.FLOOR_OUT_OF_RANGE)

        if "number" in changes and _number_taken(store, building["id"], changes["number"], exclude_id=apartment_id):
            return ServiceResult.fail(ErrorCode.APARTMENT_ALREADY_EXISTS)

        if not changes:
            return ServiceResult.ok(ApartmentRead(**apartment))

        rows = store.update("apartments", {"id": apartment_id}, changes)
        return ServiceResult.ok(ApartmentRead(**rows[0]))

    except StoreError as e:
        return internal_failure(e, "Failed to update apartment")


# -------------------------------------------------------------
# DELETE (soft)
# -------------------------------------------------------------
def delete_apartment(store: Store, apartment_id: str, administrator_id: str) -> ServiceResult:
    try:
        apartment, _ = _visible_apartment(store, apartment_id, administrator_id)
        if apartment is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)

        now = utcnow()
        store.update(
            "invite_codes",
            {"apartment_id": apartment_id, "status": InviteCodeStatus.ACTIVE.value},
            {"status": InviteCodeStatus.CANCELLED.value},
        )
        store.update("apartments", {"id": apartment_id}, {"deleted_at": now})
        return ServiceResult.ok({"id": apartment_id, "deleted_at": now})

    except StoreError as e:
        return internal_failure(e, "Failed to delete apartment")
