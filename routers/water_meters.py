# routers/water_meters.py

from fastapi import APIRouter, Depends, Query

from core.errors import ErrorCode, ServiceResult, result_to_response, unwrap
from core.permission_helpers import requires_permission
from core.store import Store
from dependencies.auth import get_administrator_id
from dependencies.store import get_store
from models.session import AuthenticatedSession
from models.water_meter import WaterMeterCreate, WaterMeterUpdate
from services import water_meter_service


router = APIRouter(
    prefix="/water-meters",
    tags=["Water Meters"],
)


def _reader_scope(session: AuthenticatedSession, missing: ErrorCode) -> dict:
    """Administrators see their buildings' meters, owners their own apartments'."""
    if session.administrator_id:
        return {"administrator_id": session.administrator_id}
    if session.user.owner_id:
        return {"owner_id": session.user.owner_id}
    raise result_to_response(ServiceResult.fail(missing))


# ============================================================
# LIST / GET
# ============================================================
@router.get("", summary="Water meters of an apartment")
def list_water_meters(
    apartment_id: str = Query(..., min_length=1),
    session: AuthenticatedSession = Depends(requires_permission("WATER_METERS:READ")),
    store: Store = Depends(get_store),
):
    scope = _reader_scope(session, ErrorCode.APARTMENT_NOT_FOUND)
    return {"success": True, "data": unwrap(water_meter_service.list_water_meters(store, apartment_id, **scope))}


@router.get("/{meter_id}", summary="Water meter with readings")
def get_water_meter(
    meter_id: str,
    session: AuthenticatedSession = Depends(requires_permission("WATER_METERS:READ")),
    store: Store = Depends(get_store),
):
    scope = _reader_scope(session, ErrorCode.WATER_METER_NOT_FOUND)
    return {"success": True, "data": unwrap(water_meter_service.get_water_meter(store, meter_id, **scope))}


# ============================================================
# CREATE / UPDATE / DELETE (administrators)
# ============================================================
@router.post("", status_code=201, summary="Create water meter")
def create_water_meter(
    payload: WaterMeterCreate,
    session: AuthenticatedSession = Depends(requires_permission("WATER_METERS:CREATE")),
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = water_meter_service.create_water_meter(
        store,
        payload,
        user_id=session.user_id,
        administrator_id=administrator_id,
    )
    return {"success": True, "data": unwrap(result)}


@router.put(
    "/{meter_id}",
    summary="Update water meter",
    dependencies=[Depends(requires_permission("WATER_METERS:UPDATE"))],
)
def update_water_meter(
    meter_id: str,
    payload: WaterMeterUpdate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = water_meter_service.update_water_meter(store, meter_id, payload, administrator_id)
    return {"success": True, "data": unwrap(result)}


@router.delete(
    "/{meter_id}",
    summary="Delete water meter",
    dependencies=[Depends(requires_permission("WATER_METERS:DELETE"))],
)
def delete_water_meter(
    meter_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(water_meter_service.delete_water_meter(store, meter_id, administrator_id))}
