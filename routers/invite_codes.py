# routers/invite_codes.py

from fastapi import APIRouter, Depends, Request

from core.config import settings
from core.errors import unwrap
from core.permission_helpers import requires_permission
from core.rate_limiter import get_rate_limit_identifier, require_rate_limit
from core.store import Store
from dependencies.auth import get_administrator_id
from dependencies.store import get_store
from models.invite_code import InviteCodeCreate, RedeemRequest
from models.session import AuthenticatedSession
from services import invite_code_service


router = APIRouter(
    prefix="/invite-codes",
    tags=["Invite Codes"],
)


# ============================================================
# LIST (newest first)
# ============================================================
@router.get(
    "",
    summary="Invite codes issued by the caller",
    dependencies=[Depends(requires_permission("INVITE_CODES:READ"))],
)
def list_invite_codes(
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(invite_code_service.list_invite_codes(store, administrator_id))}


# ============================================================
# CREATE
# ============================================================
@router.post(
    "",
    status_code=201,
    summary="Issue an invite code for an apartment",
    description="""
    Replaces any active code of the apartment. `expires_at` is optional;
    `use_default_expiration` applies the default window instead.
    """,
    dependencies=[Depends(requires_permission("INVITE_CODES:CREATE"))],
)
def create_invite_code(
    payload: InviteCodeCreate,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(invite_code_service.create_invite_code(store, payload, administrator_id))}


# ============================================================
# REDEEM (owner links the apartment to their account)
# ============================================================
@router.post("/redeem", summary="Redeem an invite code")
def redeem_invite_code(
    payload: RedeemRequest,
    request: Request,
    session: AuthenticatedSession = Depends(requires_permission("INVITE_CODES:UPDATE")),
    store: Store = Depends(get_store),
):
    require_rate_limit(
        get_rate_limit_identifier(request, "redeem", session.user_id),
        settings.RATE_LIMIT_REDEEM_MAX,
        settings.RATE_LIMIT_REDEEM_WINDOW_SECONDS,
    )

    result = invite_code_service.redeem_invite_code(
        store,
        {"code": payload.code, "user_id": session.user_id},
    )
    return {"success": True, "data": unwrap(result)}


# ============================================================
# CANCEL
# ============================================================
@router.post(
    "/{code_id}/cancel",
    summary="Cancel an active invite code",
    dependencies=[Depends(requires_permission("INVITE_CODES:DELETE"))],
)
def cancel_invite_code(
    code_id: str,
    administrator_id: str = Depends(get_administrator_id),
    store: Store = Depends(get_store),
):
    return {"success": True, "data": unwrap(invite_code_service.cancel_invite_code(store, code_id, administrator_id))}
