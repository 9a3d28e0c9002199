# tests/test_water_meters.py

"""
Tests for water meters.
"""

from fastapi.testclient import TestClient

from services import apartment_service, building_service, invite_code_service, water_meter_service
from tests.conftest import (
    ADMIN_ID,
    ADMIN_USER_ID,
    APARTMENT_ID,
    OTHER_ADMIN_ID,
    OWNER_USER_ID,
    TOP_FLOOR_APARTMENT_ID,
)


def _meter(store, serial="WM-0001", apartment_id=APARTMENT_ID, **extra):
    result = water_meter_service.create_water_meter(
        store, {"apartment_id": apartment_id, "serial_number": serial, **extra}, user_id=ADMIN_USER_ID
    )
    assert result.success, result
    return result.data


def test_create_with_initial_reading(store):
    meter = _meter(store, initial_value=123.4, location="Baie")

    assert meter.reading_count == 1
    assert meter.latest_reading.value == 123.4
    assert meter.latest_reading.is_approved is True


def test_create_without_initial_value_or_user(store):
    assert _meter(store, "WM-A").reading_count == 0

    result = water_meter_service.create_water_meter(
        store, {"apartment_id": APARTMENT_ID, "serial_number": "WM-B", "initial_value": 10}
    )
    assert result.data.reading_count == 0


def test_serial_number_unique_per_organization(store):
    _meter(store, "WM-0001")

    result = water_meter_service.create_water_meter(
        store, {"apartment_id": TOP_FLOOR_APARTMENT_ID, "serial_number": "WM-0001"}
    )
    assert result.code == "SERIAL_NUMBER_TAKEN"

    # Another organization may use the same serial
    other = building_service.create_building(
        store,
        {"name": "Bloc C3", "address": "Strada Morii 3", "city": "Sibiu", "floors": 2},
        OTHER_ADMIN_ID,
    ).data
    apartment = apartment_service.create_apartment(store, other.id, {"number": "1", "floor": 1}, OTHER_ADMIN_ID).data
    assert water_meter_service.create_water_meter(
        store, {"apartment_id": apartment.id, "serial_number": "WM-0001"}
    ).success


def test_serial_number_of_deleted_meter_can_be_reused(store):
    meter = _meter(store, "WM-0001")
    assert water_meter_service.delete_water_meter(store, meter.id, ADMIN_ID).success

    assert _meter(store, "WM-0001").serial_number == "WM-0001"


def test_list_active_first_then_oldest(store):
    first = _meter(store, "WM-1")
    inactive = _meter(store, "WM-2", is_active=False)
    third = _meter(store, "WM-3")

    meters = water_meter_service.list_water_meters(store, APARTMENT_ID).data

    assert [m.id for m in meters] == [first.id, third.id, inactive.id]


def test_get_meter_with_readings_newest_first(store):
    meter = _meter(store, initial_value=5)
    store.insert("water_readings", {
        "water_meter_id": meter.id,
        "value": 9.5,
        "reading_date": store.select("water_readings")[0]["reading_date"].replace(year=2099),
        "is_approved": False,
        "deleted_at": None,
    })

    detail = water_meter_service.get_water_meter(store, meter.id).data

    assert [r.value for r in detail.readings] == [9.5, 5]
    assert detail.latest_reading.value == 9.5
    assert detail.reading_count == 2


def test_update_meter(store):
    meter = _meter(store, "WM-1")
    _meter(store, "WM-2")

    assert water_meter_service.update_water_meter(store, meter.id, {"serial_number": "WM-2"}).code == "SERIAL_NUMBER_TAKEN"

    result = water_meter_service.update_water_meter(store, meter.id, {"location": "Bucatarie", "is_active": False})
    assert result.data.location == "Bucatarie"
    assert result.data.is_active is False


def test_scope_checks(store):
    meter = _meter(store)

    assert water_meter_service.get_water_meter(store, meter.id, administrator_id=OTHER_ADMIN_ID).code == "WATER_METER_NOT_FOUND"
    assert water_meter_service.list_water_meters(store, APARTMENT_ID, owner_id="someone").code == "APARTMENT_NOT_FOUND"
    assert water_meter_service.delete_water_meter(store, meter.id, OTHER_ADMIN_ID).code == "WATER_METER_NOT_FOUND"


# ============================================================
# Routes
# ============================================================
def test_water_meter_routes(client: TestClient, store, admin_headers, owner_headers):
    response = client.post(
        "/water-meters",
        json={"apartment_id": APARTMENT_ID, "serial_number": "WM-9000", "initial_value": 42},
        headers=admin_headers,
    )
    assert response.status_code == 201
    meter_id = response.json()["data"]["id"]

    response = client.get("/water-meters", params={"apartment_id": APARTMENT_ID}, headers=admin_headers)
    assert [m["id"] for m in response.json()["data"]] == [meter_id]

    # Owner sees nothing until the apartment is theirs
    response = client.get("/water-meters", params={"apartment_id": APARTMENT_ID}, headers=owner_headers)
    assert response.status_code == 404

    invite = invite_code_service.create_invite_code(store, {"apartment_id": APARTMENT_ID}, ADMIN_ID).data
    invite_code_service.redeem_invite_code(store, {"code": invite.code, "user_id": OWNER_USER_ID})

    response = client.get(f"/water-meters/{meter_id}", headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["data"]["readings"][0]["value"] == 42

    response = client.delete(f"/water-meters/{meter_id}", headers=owner_headers)
    assert response.status_code == 403

    response = client.delete(f"/water-meters/{meter_id}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/water-meters/{meter_id}", headers=admin_headers).status_code == 404
