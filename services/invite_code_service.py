# services/invite_code_service.py

"""
Invite code lifecycle.

    ACTIVE ──redeem──▶ USED
       │──expiry────▶ EXPIRED    (detected lazily on a redemption attempt)
       └──cancel────▶ CANCELLED  (explicit, or replaced by a newer code)

USED, EXPIRED and CANCELLED are terminal. An apartment has at most one
ACTIVE code at a time.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic import ValidationError

from core.config import settings
from core.errors import (
    ErrorCode,
    ServiceResult,
    StoreError,
    internal_failure,
    validation_failure,
)
from core.logging_config import logger
from core.store import Store
from core.unique_codes import CodeGenerationError, generate_unique, random_code
from core.utils import parse_timestamp, utcnow
from models.enums import InviteCodeStatus
from models.invite_code import InviteCodeCreate, InviteCodeRead, InviteCodeRedeem
from models.user import UserSummary
from services.apartment_service import with_building


GLOBAL_SCOPE = "invite_codes"


# -----------------------------------------------------
# Code generation
# -----------------------------------------------------
def generate_invite_code() -> str:
    return random_code(settings.INVITE_CODE_LENGTH, settings.INVITE_CODE_ALPHABET)


def invite_code_exists(store: Store, _scope: str, code: str) -> bool:
    return store.select_one("invite_codes", {"code": code}) is not None


def generate_unique_invite_code(store: Store) -> str:
    """Raises CodeGenerationError once the attempts are exhausted."""
    return generate_unique(
        GLOBAL_SCOPE,
        settings.INVITE_CODE_MAX_ATTEMPTS,
        generate_invite_code,
        lambda scope, code: invite_code_exists(store, scope, code),
    )


# -----------------------------------------------------
# Enrichment (apartment / building / redeemer)
# -----------------------------------------------------
def _details(store: Store, rows: List[dict]) -> List[InviteCodeRead]:
    apartment_ids = list({r["apartment_id"] for r in rows})
    apartments = {a["id"]: a for a in store.select_in("apartments", "id", apartment_ids)}

    building_ids = list({a["building_id"] for a in apartments.values()})
    buildings = {b["id"]: b for b in store.select_in("buildings", "id", building_ids)}

    user_ids = list({r["used_by"] for r in rows if r.get("used_by")})
    users: Dict[str, dict] = {u["id"]: u for u in store.select_in("users", "id", user_ids)}

    result = []
    for row in rows:
        apartment = apartments.get(row["apartment_id"])
        redeemer = users.get(row.get("used_by"))
        result.append(
            InviteCodeRead(
                **row,
                apartment=with_building(apartment, buildings.get(apartment["building_id"])) if apartment else None,
                used_by_user=UserSummary(
                    id=redeemer["id"],
                    first_name=redeemer.get("first_name"),
                    last_name=redeemer.get("last_name"),
                    email=redeemer.get("email"),
                ) if redeemer else None,
            )
        )
    return result


def _detail(store: Store, row: dict) -> InviteCodeRead:
    return _details(store, [row])[0]


def _resolve_expiry(payload: InviteCodeCreate, now: datetime) -> Optional[datetime]:
    if payload.expires_at is not None:
        return parse_timestamp(payload.expires_at)
    if payload.use_default_expiration:
        return now + timedelta(days=settings.INVITE_CODE_DEFAULT_EXPIRATION_DAYS)
    return None


# -----------------------------------------------------
# Create
# -----------------------------------------------------
def create_invite_code(store: Store, data, administrator_id: str, now: Optional[datetime] = None) -> ServiceResult:
    """
    Issue a code for an unowned apartment in one of the administrator's
    buildings. A previous ACTIVE code for the apartment is cancelled first.
    """
    try:
        payload = data if isinstance(data, InviteCodeCreate) else InviteCodeCreate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    now = now or utcnow()

    try:
        apartment = store.select_one("apartments", {"id": payload.apartment_id, "deleted_at": None})
        building = None
        if apartment is not None:
            building = store.select_one(
                "buildings",
                {"id": apartment["building_id"], "administrator_id": administrator_id, "deleted_at": None},
            )
        if apartment is None or building is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)

        if apartment.get("owner_id"):
            return ServiceResult.fail(ErrorCode.APARTMENT_ALREADY_OWNED)

        try:
            code = generate_unique_invite_code(store)
        except CodeGenerationError as e:
            logger.warning(str(e))
            return ServiceResult.fail(ErrorCode.CODE_GENERATION_FAILED)

        # Cancels the previous ACTIVE code in the same store operation
        row = store.replace_active_invite_code(
            apartment["id"],
            {
                "code": code,
                "created_by": administrator_id,
                "expires_at": _resolve_expiry(payload, now),
                "used_by": None,
                "used_at": None,
            },
        )
        logger.info(f"Invite code {row['id']} issued for apartment {apartment['id']}")
        return ServiceResult.ok(_detail(store, row))

    except StoreError as e:
        return internal_failure(e, "Failed to create invite code")


# -----------------------------------------------------
# Redeem
# -----------------------------------------------------
def redeem_invite_code(store: Store, data, now: Optional[datetime] = None) -> ServiceResult:
    try:
        payload = data if isinstance(data, InviteCodeRedeem) else InviteCodeRedeem.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    now = now or utcnow()

    try:
        invite = store.select_one("invite_codes", {"code": payload.code})
        if invite is None:
            return ServiceResult.fail(ErrorCode.INVALID_CODE)

        status = InviteCodeStatus(invite["status"])
        if status == InviteCodeStatus.EXPIRED:
            return ServiceResult.fail(ErrorCode.CODE_EXPIRED)
        if status.is_terminal:
            return ServiceResult.fail(ErrorCode.CODE_NOT_ACTIVE)

        expires_at = parse_timestamp(invite.get("expires_at"))
        if expires_at is not None and now > expires_at:
            # Only an ACTIVE row is moved, so the transition happens once
            store.update(
                "invite_codes",
                {"id": invite["id"], "status": InviteCodeStatus.ACTIVE.value},
                {"status": InviteCodeStatus.EXPIRED.value},
            )
            logger.info(f"Invite code {invite['id']} expired")
            return ServiceResult.fail(ErrorCode.CODE_EXPIRED)

        apartment = store.select_one("apartments", {"id": invite["apartment_id"], "deleted_at": None})
        if apartment is None:
            return ServiceResult.fail(ErrorCode.APARTMENT_NOT_FOUND)
        if apartment.get("owner_id"):
            return ServiceResult.fail(ErrorCode.APARTMENT_ALREADY_OWNED)

        updated = store.redeem_invite_code(invite["id"], payload.user_id, apartment["id"], now)
        logger.info(f"Invite code {invite['id']} redeemed by {payload.user_id}")
        return ServiceResult.ok(_detail(store, updated))

    except StoreError as e:
        return internal_failure(e, "Failed to redeem invite code")


# -----------------------------------------------------
# Cancel
# -----------------------------------------------------
def cancel_invite_code(store: Store, code_id: str, administrator_id: str) -> ServiceResult:
    try:
        invite = store.select_one("invite_codes", {"id": code_id, "created_by": administrator_id})
        if invite is None:
            return ServiceResult.fail(ErrorCode.CODE_NOT_FOUND)

        if InviteCodeStatus(invite["status"]).is_terminal:
            return ServiceResult.fail(ErrorCode.CODE_NOT_CANCELLABLE)

        rows = store.update(
            "invite_codes",
            {"id": code_id, "status": InviteCodeStatus.ACTIVE.value},
            {"status": InviteCodeStatus.CANCELLED.value},
        )
        if not rows:
            # Redeemed or expired between the read and the write
            return ServiceResult.fail(ErrorCode.CODE_NOT_CANCELLABLE)

        return ServiceResult.ok(_detail(store, rows[0]))

    except StoreError as e:
        return internal_failure(e, "Failed to cancel invite code")


# -----------------------------------------------------
# List
# -----------------------------------------------------
def list_invite_codes(store: Store, administrator_id: str) -> ServiceResult:
    try:
        rows = store.select(
            "invite_codes",
            {"created_by": administrator_id},
            order_by="created_at",
            descending=True,
        )
        return ServiceResult.ok(_details(store, rows))

    except StoreError as e:
        return internal_failure(e, "Failed to fetch invite codes")
