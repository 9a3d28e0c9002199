from enum import Enum


class BaseStrEnum(str, Enum):
    """Base enum that serializes cleanly to a string."""

    def __str__(self):
        return str(self.value)


# -----------------------------------------------------
# INVITE CODE STATUS
# -----------------------------------------------------
class InviteCodeStatus(BaseStrEnum):
    """Lifecycle of an invite code. Only ACTIVE can transition."""

    ACTIVE = "ACTIVE"
    USED = "USED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not InviteCodeStatus.ACTIVE


# -----------------------------------------------------
# PERMISSION RESOURCE
# -----------------------------------------------------
class PermissionResource(BaseStrEnum):
    BUILDINGS = "BUILDINGS"
    APARTMENTS = "APARTMENTS"
    USERS = "USERS"
    WATER_METERS = "WATER_METERS"
    WATER_READINGS = "WATER_READINGS"
    INVITE_CODES = "INVITE_CODES"
    ROLES = "ROLES"
    ADMIN_GRANT = "ADMIN_GRANT"


# -----------------------------------------------------
# PERMISSION ACTION
# -----------------------------------------------------
class PermissionAction(BaseStrEnum):
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# -----------------------------------------------------
# ROLE NAME
# -----------------------------------------------------
class RoleName(BaseStrEnum):
    """System roles. Custom roles may exist in the store alongside these."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMINISTRATOR = "ADMINISTRATOR"
    OWNER = "OWNER"
