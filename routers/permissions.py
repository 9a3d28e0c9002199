from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.errors import unwrap
from core.permission_helpers import evaluate_access, guard_state, requires_permission, requires_permissions
from core.store import Store
from dependencies.auth import get_session
from dependencies.store import get_store
from models.role import RoleAssign, RoleCreate
from models.session import AuthenticatedSession, Session
from services.permission_service import assign_role, create_role, list_roles, list_users_with_roles


router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
)


# -----------------------------------------------------
# GET /permissions/check
# Evaluates a requirement for the caller. Never 401.
# -----------------------------------------------------
@router.get("/check", summary="Evaluate a permission requirement for the caller")
def check_permissions(
    any_of: Optional[List[str]] = Query(None),
    all_of: Optional[List[str]] = Query(None),
    session: Session = Depends(get_session),
):
    return {
        "success": True,
        "data": {
            "allowed": evaluate_access(session, any_of, all_of),
            "state": guard_state(session, any_of, all_of),
        },
    }


# -----------------------------------------------------
# GET /permissions/roles
# -----------------------------------------------------
@router.get(
    "/roles",
    summary="System and custom roles with their permissions",
    dependencies=[Depends(requires_permission("ROLES:READ"))],
)
def get_roles(store: Store = Depends(get_store)):
    return {"success": True, "data": unwrap(list_roles(store))}


# -----------------------------------------------------
# POST /permissions/roles
# -----------------------------------------------------
@router.post("/roles", status_code=201, summary="Create a custom role")
def post_role(
    payload: RoleCreate,
    session: AuthenticatedSession = Depends(requires_permission("ROLES:CREATE")),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(create_role(store, payload, created_by=session.user_id))}


# -----------------------------------------------------
# GET /permissions/users
# -----------------------------------------------------
@router.get(
    "/users",
    summary="Every user with role and owned apartments",
    dependencies=[Depends(requires_permissions(all_of=["USERS:READ", "ROLES:READ"]))],
)
def get_users(store: Store = Depends(get_store)):
    return {"success": True, "data": unwrap(list_users_with_roles(store))}


# -----------------------------------------------------
# PATCH /permissions/users
# -----------------------------------------------------
@router.patch(
    "/users",
    summary="Assign a role to a user",
    dependencies=[Depends(requires_permission("ADMIN_GRANT:CREATE"))],
)
def patch_user_role(
    payload: RoleAssign,
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(assign_role(store, payload))}
