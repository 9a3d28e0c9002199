# services/permission_service.py

"""
Roles, effective permissions and sessions.

System roles (SUPER_ADMIN, ADMINISTRATOR, OWNER) live in code
(core.permissions). Custom roles are rows of the `roles` table and carry
their own permission list.
"""

from typing import Dict, List, Optional

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
from core.permission_helpers import parse_permission
from core.permissions import ALL_PERMISSIONS, ROLE_DESCRIPTIONS, ROLE_PERMISSIONS
from core.store import Store
from models.enums import RoleName
from models.role import OwnedApartment, RoleAssign, RoleCreate, RoleRead, RoleSummary, UserWithRole
from models.session import AuthenticatedSession, Session, UnauthenticatedSession
from models.user import UserRead


# -----------------------------------------------------
# Effective permissions:
#   • role-based permissions (system map or stored role)
#   • per-user grants stored on the user row
# -----------------------------------------------------
def _well_formed(values) -> set:
    if not isinstance(values, list):
        return set()
    # Malformed entries are dropped here (and logged by parse_permission)
    return {p for p in values if parse_permission(p) is not None}


def role_permissions(store: Store, role_name: Optional[str]) -> List[str]:
    if role_name in ROLE_PERMISSIONS:
        return list(ROLE_PERMISSIONS[role_name])

    row = store.select_one("roles", {"name": role_name}) if role_name else None
    if row is None:
        return []
    return sorted(_well_formed(row.get("permissions") or []))


def get_user_permissions(store: Store, user: dict) -> List[str]:
    role_perms = set(role_permissions(store, user.get("role")))
    return sorted(role_perms | _well_formed(user.get("permissions") or []))


def to_user_read(store: Store, user: dict) -> UserRead:
    administrator = store.select_one("administrators", {"user_id": user["id"]})
    owner = store.select_one("owners", {"user_id": user["id"]})

    return UserRead(
        id=user["id"],
        email=user["email"],
        first_name=user.get("first_name"),
        last_name=user.get("last_name"),
        phone=user.get("phone"),
        role=user.get("role") or RoleName.OWNER.value,
        organization_id=user.get("organization_id"),
        administrator_id=administrator["id"] if administrator else None,
        owner_id=owner["id"] if owner else None,
        permissions=get_user_permissions(store, user),
        created_at=user.get("created_at"),
    )


def build_session(store: Store, user_id: Optional[str]) -> Session:
    """
    Fresh user + permission data for one request.
    Unknown users and store failures both yield an unauthenticated session.
    """
    if not user_id:
        return UnauthenticatedSession()

    try:
        user = store.select_one("users", {"id": user_id})
        if user is None:
            logger.info(f"Session for unknown user {user_id}")
            return UnauthenticatedSession()

        user_read = to_user_read(store, user)
    except StoreError as e:
        logger.error(f"Failed to load session for {user_id}: {extract_store_error(e)}")
        return UnauthenticatedSession()

    return AuthenticatedSession(user=user_read, permissions=user_read.permissions)


# -----------------------------------------------------
# Roles
# -----------------------------------------------------
def _role_exists(store: Store, name: str) -> bool:
    return name in ROLE_PERMISSIONS or store.select_one("roles", {"name": name}) is not None


def list_roles(store: Store) -> ServiceResult:
    """System roles first, then custom roles by name."""
    try:
        custom = store.select("roles", order_by="name")
        counts: Dict[str, int] = {}
        for user in store.select("users"):
            role = user.get("role") or RoleName.OWNER.value
            counts[role] = counts.get(role, 0) + 1
    except StoreError as e:
        return internal_failure(e, "Failed to fetch roles")

    roles = [
        RoleRead(
            name=name,
            description=ROLE_DESCRIPTIONS.get(name),
            permissions=sorted(perms),
            is_system=True,
            user_count=counts.get(name, 0),
        )
        for name, perms in ROLE_PERMISSIONS.items()
    ]
    roles += [
        RoleRead(
            name=row["name"],
            description=row.get("description"),
            permissions=sorted(_well_formed(row.get("permissions") or [])),
            is_system=False,
            user_count=counts.get(row["name"], 0),
            created_at=row.get("created_at"),
        )
        for row in custom
    ]
    return ServiceResult.ok(roles)


def create_role(store: Store, data, created_by: Optional[str] = None) -> ServiceResult:
    try:
        payload = data if isinstance(data, RoleCreate) else RoleCreate.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    unknown = sorted({p for p in payload.permissions if p not in ALL_PERMISSIONS})
    if unknown:
        return ServiceResult.fail(
            ErrorCode.INVALID_PERMISSIONS,
            error=f"Unknown permissions: {', '.join(unknown)}",
            details={"invalid": unknown},
        )

    try:
        if _role_exists(store, payload.name):
            return ServiceResult.fail(ErrorCode.ROLE_ALREADY_EXISTS)

        row = store.insert(
            "roles",
            {
                "name": payload.name,
                "description": payload.description,
                "permissions": sorted(set(payload.permissions)),
                "created_by": created_by,
            },
        )
    except StoreError as e:
        return internal_failure(e, "Failed to create role")

    logger.info(f"Role {row['name']} created with {len(row['permissions'])} permissions")
    return ServiceResult.ok(
        RoleRead(
            name=row["name"],
            description=row["description"],
            permissions=row["permissions"],
            created_at=row.get("created_at"),
        )
    )


# -----------------------------------------------------
# Users and their roles
# -----------------------------------------------------
def list_users_with_roles(store: Store) -> ServiceResult:
    """Every account, newest first, with its role, profiles and owned apartments."""
    try:
        users = store.select("users", order_by="created_at", descending=True)
        user_ids = [u["id"] for u in users]

        administrators = {a["user_id"]: a for a in store.select_in("administrators", "user_id", user_ids)}
        owners = {o["user_id"]: o for o in store.select_in("owners", "user_id", user_ids)}

        owner_ids = [o["id"] for o in owners.values()]
        apartments = store.select_in("apartments", "owner_id", owner_ids, {"deleted_at": None})
        buildings = {
            b["id"]: b
            for b in store.select_in("buildings", "id", list({a["building_id"] for a in apartments}))
        }
        custom_roles = {r["name"]: r for r in store.select("roles")}
    except StoreError as e:
        return internal_failure(e, "Failed to fetch users")

    by_owner: Dict[str, List[OwnedApartment]] = {}
    for apartment in sorted(apartments, key=lambda a: a["number"]):
        building = buildings.get(apartment["building_id"])
        by_owner.setdefault(apartment["owner_id"], []).append(
            OwnedApartment(
                id=apartment["id"],
                number=apartment["number"],
                building_name=building["name"] if building else None,
            )
        )

    result = []
    for user in users:
        role_name = user.get("role") or RoleName.OWNER.value
        custom = custom_roles.get(role_name)
        administrator = administrators.get(user["id"])
        owner = owners.get(user["id"])

        result.append(
            UserWithRole(
                id=user["id"],
                email=user["email"],
                first_name=user.get("first_name"),
                last_name=user.get("last_name"),
                phone=user.get("phone"),
                organization_id=user.get("organization_id"),
                role=RoleSummary(
                    name=role_name,
                    description=custom.get("description") if custom else ROLE_DESCRIPTIONS.get(role_name),
                    is_system=role_name in ROLE_PERMISSIONS,
                ),
                administrator_id=administrator["id"] if administrator else None,
                owner_id=owner["id"] if owner else None,
                apartments=by_owner.get(owner["id"], []) if owner else [],
                created_at=user.get("created_at"),
            )
        )
    return ServiceResult.ok(result)


def assign_role(store: Store, data) -> ServiceResult:
    """
    Move a user to another role. Becoming ADMINISTRATOR also creates the
    administrator profile when the user has none.
    """
    try:
        payload = data if isinstance(data, RoleAssign) else RoleAssign.model_validate(data)
    except ValidationError as e:
        return validation_failure(e)

    try:
        user = store.select_one("users", {"id": payload.user_id})
        if user is None:
            return ServiceResult.fail(ErrorCode.USER_NOT_FOUND)
        if not _role_exists(store, payload.role):
            return ServiceResult.fail(ErrorCode.ROLE_NOT_FOUND)

        profile = None
        if payload.role == RoleName.ADMINISTRATOR.value:
            if store.select_one("administrators", {"user_id": user["id"]}) is None:
                profile = store.insert(
                    "administrators",
                    {"user_id": user["id"], "organization_id": user.get("organization_id")},
                )

        try:
            user = store.update("users", {"id": user["id"]}, {"role": payload.role})[0]
        except StoreError:
            if profile is not None:
                store.delete("administrators", {"id": profile["id"]})
            raise

        logger.info(f"User {user['id']} assigned role {payload.role}")
        return ServiceResult.ok(to_user_read(store, user))

    except StoreError as e:
        return internal_failure(e, "Failed to assign role")
