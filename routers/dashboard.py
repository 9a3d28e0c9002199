# routers/dashboard.py

from fastapi import APIRouter, Depends

from core.errors import unwrap
from core.permission_helpers import requires_permission
from core.store import Store
from dependencies.auth import get_administrator_id
from dependencies.store import get_store
from models.session import AuthenticatedSession
from services import dashboard_service


router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


@router.get(
    "/admin/stats",
    summary="Administrator dashboard counters and recent activity",
    dependencies=[Depends(requires_permission("BUILDINGS:READ"))],
)
def admin_stats(
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(dashboard_service.get_admin_stats(store, administrator_id))}


@router.get("/owner/stats", summary="Owner dashboard counters")
def owner_stats(
    session: AuthenticatedSession = Depends(requires_permission("APARTMENTS:READ")),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(dashboard_service.get_owner_stats(store, session.user_id))}
