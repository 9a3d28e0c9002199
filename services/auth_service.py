# services/auth_service.py

from typing import List, Optional, Tuple

import bcrypt
from pydantic import ValidationError

from core.errors import (
    ErrorCode,
    ServiceResult,
    StoreError,
    extract_store_error,
    internal_failure,
    validation_failure,
)
from core.logging_config import logger
from core.store import Store
from models.enums import RoleName
from models.organization import OrganizationRead, OrganizationRegister, OrganizationRegistration
from models.user import UserRegister
from services.permission_service import to_user_read


# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS = 12


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    if not password or not password.strip():
        raise ValueError("Password cannot be empty")
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    if not password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
    except ValueError:
        # Corrupt hash in the store
        logger.warning("Stored password hash could not be parsed")
        return False


def _undo(store: Store, created: List[Tuple[str, str]]):
    """Delete rows inserted earlier in a failed multi-row registration, newest first."""
    for table, row_id in reversed(created):
        try:
            store.delete(table, {"id": row_id})
        except StoreError as e:
            logger.error(f"Could not remove {table} row {row_id}: {extract_store_error(e)}")


def _user_row(payload: UserRegister, role: RoleName, organization_id: Optional[str]) -> dict:
    return {
        "email": payload.email.lower(),
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "phone": payload.phone,
        "password_hash": hash_password(payload.password),
        "role": role.value,
        "organization_id": organization_id,
        "permissions": [],
    }


def register_user(
    store: Store,
    data,
    role: RoleName = RoleName.OWNER,
    organization_id: Optional[str] = None,
) -> ServiceResult:
    try:
        payload = data if isinstance(data, UserRegister) else UserRegister.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    role = RoleName(role)
    created: List[Tuple[str, str]] = []

    try:
        if store.select_one("users", {"email": payload.email.lower()}):
            return ServiceResult.fail(ErrorCode.EMAIL_TAKEN)

        user = store.insert("users", _user_row(payload, role, organization_id))
        created.append(("users", user["id"]))

        if role == RoleName.ADMINISTRATOR:
            store.insert("administrators", {"user_id": user["id"], "organization_id": organization_id})

        logger.info(f"Registered {role.value} user {user['id']}")
        return ServiceResult.ok(to_user_read(store, user))

    except StoreError as e:
        _undo(store, created)
        return internal_failure(e, "Failed to register user")


def register_organization(store: Store, data) -> ServiceResult:
    """
    Create an organization together with its first administrator
    (user row plus administrator profile). Nothing is kept when any insert fails.
    """
    try:
        payload = data if isinstance(data, OrganizationRegister) else OrganizationRegister.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    created: List[Tuple[str, str]] = []

    try:
        if store.select_one("users", {"email": payload.email.lower()}):
            return ServiceResult.fail(ErrorCode.EMAIL_TAKEN)
        if store.select_one("organizations", {"code": payload.organization_code}):
            return ServiceResult.fail(ErrorCode.ORGANIZATION_CODE_TAKEN)

        organization = store.insert(
            "organizations",
            {
                "name": payload.organization_name,
                "code": payload.organization_code,
                "description": payload.organization_description,
            },
        )
        created.append(("organizations", organization["id"]))

        user = store.insert("users", _user_row(payload, RoleName.ADMINISTRATOR, organization["id"]))
        created.append(("users", user["id"]))

        store.insert("administrators", {"user_id": user["id"], "organization_id": organization["id"]})

        logger.info(f"Registered organization {organization['code']} with administrator {user['id']}")
        return ServiceResult.ok(
            OrganizationRegistration(
                organization=OrganizationRead(
                    id=organization["id"],
                    name=organization["name"],
                    code=organization.get("code"),
                    description=organization.get("description"),
                    created_at=organization.get("created_at"),
                ),
                user=to_user_read(store, user),
            )
        )

    except StoreError as e:
        _undo(store, created)
        return internal_failure(e, "Failed to register organization")


def authenticate(store: Store, email: str, password: str) -> ServiceResult:
    """Same INVALID_CREDENTIALS answer for unknown email and wrong password."""
    try:
        user = store.select_one("users", {"email": (email or "").strip().lower()})
    except StoreError as e:
        return internal_failure(e, "Failed to authenticate")

    if user is None or not verify_password(password, user.get("password_hash") or ""):
        return ServiceResult.fail(ErrorCode.INVALID_CREDENTIALS)

    return ServiceResult.ok(user["id"])
