# services/dashboard_service.py

"""
Dashboard counters and water consumption.

Consumption is derived from meter readings: each reading consumes its value
minus the previous reading of the same meter (never negative). A meter's
first reading has no consumption. Consumption is attributed to the calendar
month of the later reading.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from core.errors import ErrorCode, ServiceResult, StoreError, internal_failure
from core.store import Store
from core.utils import parse_timestamp, utcnow
from models.dashboard import (
    ActivityItem,
    AdminDashboardStats,
    BuildingOccupancy,
    BuildingWaterConsumption,
    LastReading,
    MonthConsumption,
    MonthlyBreakdownItem,
    OwnerDashboardStats,
    PeriodConsumption,
)
from models.enums import InviteCodeStatus


RECENT_ACTIVITY_LIMIT = 10
CONSUMPTION_MONTHS = 6


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def reading_consumptions(readings: List[dict]) -> List[Tuple[dict, float]]:
    """(reading, consumption) for every reading that follows an earlier one on the same meter."""
    by_meter: Dict[str, List[dict]] = {}
    for reading in readings:
        by_meter.setdefault(reading["water_meter_id"], []).append(reading)

    result = []
    for rows in by_meter.values():
        rows.sort(key=lambda r: parse_timestamp(r["reading_date"]))
        for previous, current in zip(rows, rows[1:]):
            delta = float(current["value"]) - float(previous["value"])
            result.append((current, max(delta, 0.0)))
    return result


def _month_totals(readings: List[dict]) -> Dict[Tuple[int, int], Tuple[float, int]]:
    totals: Dict[Tuple[int, int], Tuple[float, int]] = {}
    for reading, consumption in reading_consumptions(readings):
        when = parse_timestamp(reading["reading_date"])
        total, count = totals.get((when.year, when.month), (0.0, 0))
        totals[(when.year, when.month)] = (total + consumption, count + 1)
    return totals


def _live_readings(store: Store, meter_ids: List[str]) -> List[dict]:
    return store.select_in("water_readings", "water_meter_id", meter_ids, {"deleted_at": None})


def _is_active_code(invite: dict, now: datetime) -> bool:
    if invite.get("status") != InviteCodeStatus.ACTIVE.value:
        return False
    expires_at = parse_timestamp(invite.get("expires_at"))
    return expires_at is None or expires_at > now


# -----------------------------------------------------
# Administrator dashboard
# -----------------------------------------------------
def _recent_activity(buildings, apartments, readings, invites) -> List[ActivityItem]:
    numbers = {a["id"]: a["number"] for a in apartments}
    items = []

    for building in buildings:
        if building.get("created_at"):
            items.append(ActivityItem(
                id=building["id"],
                type="building_created",
                description=f"Building {building['name']} created",
                timestamp=parse_timestamp(building["created_at"]),
            ))

    for reading in readings:
        items.append(ActivityItem(
            id=reading["id"],
            type="reading_submitted",
            description=f"Reading of {reading['value']} submitted",
            timestamp=parse_timestamp(reading.get("created_at") or reading["reading_date"]),
        ))

    for invite in invites:
        if invite.get("status") == InviteCodeStatus.USED.value and invite.get("used_at"):
            items.append(ActivityItem(
                id=invite["id"],
                type="invite_redeemed",
                description=f"Apartment {numbers.get(invite['apartment_id'], '?')} claimed by its owner",
                timestamp=parse_timestamp(invite["used_at"]),
            ))

    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items[:RECENT_ACTIVITY_LIMIT]


def get_admin_stats(store: Store, administrator_id: str, now: Optional[datetime] = None) -> ServiceResult:
    now = now or utcnow()
    try:
        buildings = store.select("buildings", {"administrator_id": administrator_id, "deleted_at": None})
        apartments = store.select_in("apartments", "building_id", [b["id"] for b in buildings], {"deleted_at": None})
        apartment_ids = [a["id"] for a in apartments]

        meters = store.select_in("water_meters", "apartment_id", apartment_ids, {"deleted_at": None})
        readings = _live_readings(store, [m["id"] for m in meters])
        invites = store.select_in("invite_codes", "apartment_id", apartment_ids)
    except StoreError as e:
        return internal_failure(e, "Failed to fetch dashboard stats")

    return ServiceResult.ok(AdminDashboardStats(
        total_buildings=len(buildings),
        total_apartments=len(apartments),
        owned_apartments=sum(1 for a in apartments if a.get("owner_id")),
        total_users=len({a["owner_id"] for a in apartments if a.get("owner_id")}),
        total_water_meters=len(meters),
        total_readings=len(readings),
        pending_readings=sum(1 for r in readings if not r.get("is_approved")),
        active_invite_codes=sum(1 for i in invites if _is_active_code(i, now)),
        recent_activity=_recent_activity(buildings, apartments, readings, invites),
    ))


# -----------------------------------------------------
# Owner dashboard
# -----------------------------------------------------
def get_owner_stats(store: Store, user_id: str, now: Optional[datetime] = None) -> ServiceResult:
    """Counters over the caller's apartments; all zero when the caller owns nothing."""
    now = now or utcnow()
    try:
        owner = store.select_one("owners", {"user_id": user_id})
        if owner is None:
            return ServiceResult.ok(OwnerDashboardStats())

        apartments = store.select("apartments", {"owner_id": owner["id"], "deleted_at": None})
        meters = store.select_in("water_meters", "apartment_id", [a["id"] for a in apartments], {"deleted_at": None})
        readings = _live_readings(store, [m["id"] for m in meters])
    except StoreError as e:
        return internal_failure(e, "Failed to fetch dashboard stats")

    last_reading = None
    if readings:
        numbers = {a["id"]: a["number"] for a in apartments}
        meter_apartment = {m["id"]: m["apartment_id"] for m in meters}
        newest = max(readings, key=lambda r: parse_timestamp(r["reading_date"]))
        last_reading = LastReading(
            date=parse_timestamp(newest["reading_date"]),
            value=float(newest["value"]),
            apartment=numbers[meter_apartment[newest["water_meter_id"]]],
        )

    monthly, _ = _month_totals(readings).get((now.year, now.month), (0.0, 0))

    return ServiceResult.ok(OwnerDashboardStats(
        total_apartments=len(apartments),
        total_water_meters=len(meters),
        pending_readings=sum(1 for r in readings if not r.get("is_approved")),
        last_reading=last_reading,
        monthly_consumption=round(monthly, 2),
    ))


# -----------------------------------------------------
# Building water consumption
# -----------------------------------------------------
def get_building_water_consumption(
    store: Store,
    building_id: str,
    administrator_id: str,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """
    Consumption of the previous calendar month and of the six calendar
    months ending with the current one. Averages are per occupied apartment.
    """
    now = now or utcnow()
    try:
        building = store.select_one(
            "buildings",
            {"id": building_id, "administrator_id": administrator_id, "deleted_at": None},
        )
        if building is None:
            return ServiceResult.fail(ErrorCode.BUILDING_NOT_FOUND)

        apartments = store.select("apartments", {"building_id": building_id, "deleted_at": None})
        meters = store.select_in("water_meters", "apartment_id", [a["id"] for a in apartments], {"deleted_at": None})
        readings = _live_readings(store, [m["id"] for m in meters])
    except StoreError as e:
        return internal_failure(e, "Failed to fetch water consumption")

    occupied = sum(1 for a in apartments if a.get("owner_id"))
    totals = _month_totals(readings)

    last_year, last_month = _shift_month(now.year, now.month, -1)
    last_total, last_count = totals.get((last_year, last_month), (0.0, 0))

    window = [_shift_month(now.year, now.month, -i) for i in reversed(range(CONSUMPTION_MONTHS))]
    breakdown = [
        MonthlyBreakdownItem(month=month, year=year, consumption=round(totals[(year, month)][0], 2),
                             readings_count=totals[(year, month)][1])
        for year, month in window
        if (year, month) in totals
    ]
    period_total = sum(totals[key][0] for key in window if key in totals)
    period_count = sum(totals[key][1] for key in window if key in totals)

    return ServiceResult.ok(BuildingWaterConsumption(
        last_month=MonthConsumption(
            month=last_month,
            year=last_year,
            total=round(last_total, 2),
            readings_count=last_count,
            average=round(last_total / occupied, 2) if occupied else 0,
        ),
        six_months=PeriodConsumption(
            total=round(period_total, 2),
            readings_count=period_count,
            average=round(period_total / occupied / CONSUMPTION_MONTHS, 2) if occupied else 0,
            monthly_average=round(period_total / len(breakdown), 2) if breakdown else 0,
        ),
        monthly_breakdown=breakdown,
        building_info=BuildingOccupancy(total_apartments=len(apartments), occupied_apartments=occupied),
    ))
