# services/water_meter_service.py

"""
Water meters of an apartment.

Serial numbers are unique within an organization among meters that are not
soft-deleted. Readers are scoped either as the administrator of the
building or as the owner of the apartment; internal callers pass neither.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from core.errors import (
    ErrorCode,
    ServiceResult,
    StoreError,
    internal_failure,
    validation_failure,
)
from core.logging_config import logger
from core.store import Store
from core.utils import sanitize, utcnow
from models.water_meter import (
    LatestReading,
    WaterMeterCreate,
    WaterMeterDetail,
    WaterMeterRead,
    WaterMeterUpdate,
    WaterReadingRead,
)


# -----------------------------------------------------
# Scope helpers
# -----------------------------------------------------
def _apartment_in_scope(
    store: Store,
    apartment_id: str,
    administrator_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> Tuple[Optional[dict], Optional[dict]]:
    apartment = store.select_one("apartments", {"id": apartment_id, "deleted_at": None})
    if apartment is None:
        return None, None

    building = store.select_one("buildings", {"id": apartment["building_id"], "deleted_at": None})
    if building is None:
        return None, None

    if administrator_id is not None and building.get("administrator_id") != administrator_id:
        return None, None
    if owner_id is not None and administrator_id is None and apartment.get("owner_id") != owner_id:
        return None, None

    return apartment, building


def _meter_in_scope(store: Store, meter_id: str, administrator_id=None, owner_id=None):
    meter = store.select_one("water_meters", {"id": meter_id, "deleted_at": None})
    if meter is None:
        return None, None
    apartment, building = _apartment_in_scope(store, meter["apartment_id"], administrator_id, owner_id)
    if apartment is None:
        return None, None
    return meter, building


def serial_number_taken(
    store: Store,
    organization_id: str,
    serial_number: str,
    exclude_id: Optional[str] = None,
) -> bool:
    meters = store.select("water_meters", {"serial_number": serial_number, "deleted_at": None})
    meters = [m for m in meters if m["id"] != exclude_id]
    if not meters:
        return False

    apartments = store.select_in("apartments", "id", [m["apartment_id"] for m in meters])
    building_ids = [a["building_id"] for a in apartments]
    buildings = store.select_in("buildings", "id", building_ids)
    return any(b.get("organization_id") == organization_id for b in buildings)


# -----------------------------------------------------
# Readings
# -----------------------------------------------------
def _readings(store: Store, meter_ids: List[str]) -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {mid: [] for mid in meter_ids}
    for reading in store.select_in("water_readings", "water_meter_id", meter_ids, {"deleted_at": None}):
        grouped.setdefault(reading["water_meter_id"], []).append(reading)
    for rows in grouped.values():
        rows.sort(key=lambda r: r["reading_date"], reverse=True)
    return grouped


def _to_read(meter: dict, readings: List[dict]) -> WaterMeterRead:
    latest = None
    if readings:
        newest = readings[0]
        latest = LatestReading(
            value=newest["value"],
            reading_date=newest["reading_date"],
            is_approved=newest.get("is_approved", False),
        )
    return WaterMeterRead(**meter, reading_count=len(readings), latest_reading=latest)


# -----------------------------------------------------
# List / get
# -----------------------------------------------------
def list_water_meters(
    store: Store,
    apartment_id: str,
    administrator_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> ServiceResult:
    """Active meters first, then oldest first."""
    try:
        apartment, _ = _apartment_in_scope(store, apartment_id, administrator_id, owner_id)
        if apartment is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)

        meters = store.select(
            "water_meters",
            {"apartment_id": apartment_id, "deleted_at": None},
            order_by="created_at",
        )
        # Stable sort keeps created_at order inside each group
        meters.sort(key=lambda m: not m.get("is_active", True))

        readings = _readings(store, [m["id"] for m in meters])
        return ServiceResult.ok([_to_read(m, readings.get(m["id"], [])) for m in meters])

    except StoreError as e:
        return internal_failure(e, "Failed to fetch water meters")


def get_water_meter(
    store: Store,
    meter_id: str,
    administrator_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> ServiceResult:
    try:
        meter, _ = _meter_in_scope(store, meter_id, administrator_id, owner_id)
        if meter is None:
            return ServiceResult.fail(ErrorCode.WATER_METER_NOT_FOUND)

        readings = _readings(store, [meter["id"]])[meter["id"]]
    except StoreError as e:
        return internal_failure(e, "Failed to fetch water meter")

    summary = _to_read(meter, readings)
    return ServiceResult.ok(
        WaterMeterDetail(
            **summary.model_dump(),
            readings=[WaterReadingRead(**r) for r in readings],
        )
    )


# -----------------------------------------------------
# Create
# -----------------------------------------------------
def create_water_meter(
    store: Store,
    data,
    user_id: Optional[str] = None,
    administrator_id: Optional[str] = None,
) -> ServiceResult:
    """
    The initial reading is stored pre-approved, and only when a positive
    value and a submitting user are both known.
    """
    try:
        payload = data if isinstance(data, WaterMeterCreate) else WaterMeterCreate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    try:
        apartment, building = _apartment_in_scope(store, payload.apartment_id, administrator_id)
        if apartment is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)

        if serial_number_taken(store, building["organization_id"], payload.serial_number):
            return ServiceResult.fail(ErrorCode.SERIAL_NUMBER_TAKEN)

        fields = sanitize(payload.model_dump(exclude={"initial_value"}))
        meter = store.insert("water_meters", {**fields, "deleted_at": None})
        logger.info(f"Water meter {meter['id']} created for apartment {apartment['id']}")

        readings = []
        if payload.initial_value and payload.initial_value > 0 and user_id:
            readings.append(
                store.insert(
                    "water_readings",
                    {
                        "water_meter_id": meter["id"],
                        "value": payload.initial_value,
                        "reading_date": utcnow(),
                        "notes": "Initial reading",
                        "is_approved": True,
                        "submitted_by_id": user_id,
                        "approved_by_id": user_id,
                        "deleted_at": None,
                    },
                )
            )

        return ServiceResult.ok(_to_read(meter, readings))

    except StoreError as e:
        return internal_failure(e, "Failed to create water meter")


# -----------------------------------------------------
# Update
# -----------------------------------------------------
def update_water_meter(
    store: Store,
    meter_id: str,
    data,
    administrator_id: Optional[str] = None,
) -> ServiceResult:
    try:
        payload = data if isinstance(data, WaterMeterUpdate) else WaterMeterUpdate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    changes = sanitize(payload.model_dump(exclude_unset=True))
    for field in ("serial_number", "is_active"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    try:
        meter, building = _meter_in_scope(store, meter_id, administrator_id)
        if meter is None:
            return ServiceResult.fail(ErrorCode.WATER_METER_NOT_FOUND)

        serial = changes.get("serial_number")
        if serial and serial != meter["serial_number"]:
            if serial_number_taken(store, building["organization_id"], serial, exclude_id=meter_id):
                return ServiceResult.fail(ErrorCode.SERIAL_NUMBER_TAKEN)

        if changes:
            meter = store.update("water_meters", {"id": meter_id}, changes)[0]

        readings = _readings(store, [meter_id])[meter_id]
        return ServiceResult.ok(_to_read(meter, readings))

    except StoreError as e:
        return internal_failure(e, "Failed to update water meter")


# -----------------------------------------------------
# Delete (soft)
# -----------------------------------------------------
def delete_water_meter(store: Store, meter_id: str, administrator_id: Optional[str] = None) -> ServiceResult:
    try:
        meter, _ = _meter_in_scope(store, meter_id, administrator_id)
        if meter is None:
            return ServiceResult.fail(ErrorCode.WATER_METER_NOT_FOUND)

        now = utcnow()
        store.update("water_meters", {"id": meter_id}, {"deleted_at": now})
        return ServiceResult.ok({"id": meter_id, "deleted_at": now})

    except StoreError as e:
        return internal_failure(e, "Failed to delete water meter")
