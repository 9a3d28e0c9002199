# routers/apartments.py

from fastapi import APIRouter, Depends

from core.errors import unwrap
from core.permission_helpers import requires_permission
from core.store import Store
from dependencies.auth import get_administrator_id
from dependencies.store import get_store
from models.apartment import ApartmentUpdate
from models.session import AuthenticatedSession
from services import apartment_service


router = APIRouter(
    prefix="/apartments",
    tags=["Apartments"],
)


# -----------------------------------------------------
# Owner view
# -----------------------------------------------------
@router.get("/mine", summary="Apartments owned by the caller")
def my_apartments(
    session: AuthenticatedSession = Depends(requires_permission("APARTMENTS:READ")),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(apartment_service.list_owner_apartments(store, session.user_id))}


# -----------------------------------------------------
# Administrator views
# -----------------------------------------------------
@router.get(
    "/{apartment_id}",
    summary="Get apartment",
    dependencies=[Depends(requires_permission("APARTMENTS:READ"))],
)
def get_apartment(
    apartment_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(apartment_service.get_apartment(store, apartment_id, administrator_id))}


@router.put(
    "/{apartment_id}",
    summary="Update apartment",
    dependencies=[Depends(requires_permission("APARTMENTS:UPDATE"))],
)
def update_apartment(
    apartment_id: str,
    payload: ApartmentUpdate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    result = apartment_service.update_apartment(store, apartment_id, payload, administrator_id)
    return {"success": True, "data": unwrap(result)}


@router.delete(
    "/{apartment_id}",
    summary="Delete apartment",
    dependencies=[Depends(requires_permission("APARTMENTS:DELETE"))],
)
def delete_apartment(
    apartment_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(apartment_service.delete_apartment(store, apartment_id, administrator_id))}
