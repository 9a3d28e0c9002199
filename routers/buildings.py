# routers/buildings.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import unwrap
from core.permission_helpers import requires_permission
from core.store import Store
from dependencies.auth import get_administrator_id
from dependencies.store import get_store
from models.apartment import ApartmentCreate
from models.building import BuildingCreate, BuildingQuery, BuildingUpdate
from services import apartment_service, building_service, dashboard_service


router = APIRouter(
    prefix="/buildings",
    tags=["Buildings"]
)


# ============================================================
# LIST BUILDINGS
# ============================================================
@router.get(
    "",
    summary="List Buildings",
    description="""
    Buildings administered by the caller, sorted by name.

    **Permissions:** Requires `BUILDINGS:READ`.

    **Query Parameters:**
    - `page`: 1-based page number (default: 1)
    - `limit`: Page size (1-100, default: 10)
    - `search`: Case-insensitive match on name, address or city
    """,
    dependencies=[Depends(requires_permission("BUILDINGS:READ"))],
)
def list_buildings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    query = BuildingQuery(page=page, limit=limit, search=search)
    return {"success": True, "data": unwrap(building_service.list_buildings(store, administrator_id, query))}


# ============================================================
# STATS (declared before /{building_id})
# ============================================================
@router.get(
    "/stats",
    summary="Building Stats",
    dependencies=[Depends(requires_permission("BUILDINGS:READ"))],
)
def building_stats(
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(building_service.get_building_stats(store, administrator_id))}


# ============================================================
# LOOKUP BY CODE (declared before /{building_id})
# ============================================================
@router.get(
    "/by-code/{code}",
    summary="Find a building of the caller's organization by its code",
    dependencies=[Depends(requires_permission("BUILDINGS:READ"))],
)
def get_building_by_code(
    code: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(building_service.find_building_by_code(store, administrator_id, code))}


# ============================================================
# CREATE BUILDING
# ============================================================
@router.post(
    "",
    status_code=201,
    summary="Create Building",
    dependencies=[Depends(requires_permission("BUILDINGS:CREATE"))],
)
def create_building(
    payload: BuildingCreate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(building_service.create_building(store, payload, administrator_id))}


# ============================================================
# GET BUILDING (with apartments)
# ============================================================
@router.get(
    "/{building_id}",
    summary="Get Building",
    dependencies=[Depends(requires_permission("BUILDINGS:READ"))],
)
def get_building(
    building_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(building_service.get_building(store, building_id, administrator_id))}


# ============================================================
# UPDATE BUILDING
# ============================================================
@router.put(
    "/{building_id}",
    summary="Update Building",
    description="""
    Partial update. Reducing `floors` fails with `FLOOR_CONFLICT` (409) while
    apartments exist on the removed floors; the building is left unchanged.
    """,
    dependencies=[Depends(requires_permission("BUILDINGS:UPDATE"))],
)
def update_building(
    building_id: str,
    payload: BuildingUpdate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = building_service.update_building(store, building_id, payload, administrator_id)
    return {"success": True, "data": unwrap(result)}


# ============================================================
# DELETE BUILDING (soft)
# ============================================================
@router.delete(
    "/{building_id}",
    summary="Delete Building",
    dependencies=[Depends(requires_permission("BUILDINGS:DELETE"))],
)
def delete_building(
    building_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(building_service.delete_building(store, building_id, administrator_id))}


# ============================================================
# APARTMENTS OF A BUILDING
# ============================================================
@router.get(
    "/{building_id}/apartments",
    summary="List apartments of a building",
    dependencies=[Depends(requires_permission("APARTMENTS:READ"))],
)
def list_building_apartments(
    building_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = apartment_service.list_apartments(store, building_id, administrator_id)
    return {"success": True, "data": unwrap(result)}


@router.post(
    "/{building_id}/apartments",
    status_code=201,
    summary="Create apartment in a building",
    dependencies=[Depends(requires_permission("APARTMENTS:CREATE"))],
)
def create_building_apartment(
    building_id: str,
    payload: ApartmentCreate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = apartment_service.create_apartment(store, building_id, payload, administrator_id)
    return {"success": True, "data": unwrap(result)}


# ============================================================
# WATER CONSUMPTION OF A BUILDING
# ============================================================
@router.get(
    "/{building_id}/water-consumption",
    summary="Water consumption of a building",
    description="""
    Previous calendar month and the six calendar months ending with the
    current one. Averages are per occupied apartment.

    **Permissions:** Requires `WATER_READINGS:READ`.
    """,
    dependencies=[Depends(requires_permission("WATER_READINGS:READ"))],
)
def building_water_consumption(
    building_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = dashboard_service.get_building_water_consumption(store, building_id, administrator_id)
    return {"success": True, "data": unwrap(result)}
