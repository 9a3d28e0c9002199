# -------------------------
# Enums
# -------------------------
from .enums import (
    InviteCodeStatus,
    PermissionAction,
    PermissionResource,
    RoleName,
)

# -------------------------
# User / Auth Models
# -------------------------
from .user import (
    LoginRequest,
    UserRead,
    UserRegister,
    UserSummary,
)

# -------------------------
# Session
# -------------------------
from .session import (
    AuthenticatedSession,
    Session,
    UnauthenticatedSession,
)

# -------------------------
# Building Models
# -------------------------
from .building import (
    BuildingCreate,
    BuildingList,
    BuildingRead,
    BuildingUpdate,
)

# -------------------------
# Apartment Models
# -------------------------
from .apartment import (
    ApartmentCreate,
    ApartmentRead,
    ApartmentUpdate,
)

# -------------------------
# Invite Code Models
# -------------------------
from .invite_code import (
    InviteCodeCreate,
    InviteCodeRead,
    InviteCodeRedeem,
)

# -------------------------
# Water Meter Models
# -------------------------
from .water_meter import (
    WaterMeterCreate,
    WaterMeterDetail,
    WaterMeterRead,
    WaterMeterUpdate,
)

# -------------------------
# Organization / Role Models
# -------------------------
from .organization import (
    OrganizationRead,
    OrganizationRegister,
    OrganizationRegistration,
)
from .role import (
    RoleAssign,
    RoleCreate,
    RoleRead,
    UserWithRole,
)

# -------------------------
# Dashboard Models
# -------------------------
from .dashboard import (
    AdminDashboardStats,
    BuildingWaterConsumption,
    OwnerDashboardStats,
)

__all__ = [
    # enums
    "InviteCodeStatus",
    "PermissionAction",
    "PermissionResource",
    "RoleName",

    # users
    "LoginRequest",
    "UserRead",
    "UserRegister",
    "UserSummary",

    # session
    "AuthenticatedSession",
    "Session",
    "UnauthenticatedSession",

    # buildings
    "BuildingCreate",
    "BuildingList",
    "BuildingRead",
    "BuildingUpdate",

    # apartments
    "ApartmentCreate",
    "ApartmentRead",
    "ApartmentUpdate",

    # invite codes
    "InviteCodeCreate",
    "InviteCodeRead",
    "InviteCodeRedeem",

    # water meters
    "WaterMeterCreate",
    "WaterMeterDetail",
    "WaterMeterRead",
    "WaterMeterUpdate",

    # organizations / roles
    "OrganizationRead",
    "OrganizationRegister",
    "OrganizationRegistration",
    "RoleAssign",
    "RoleCreate",
    "RoleRead",
    "UserWithRole",

    # dashboards
    "AdminDashboardStats",
    "BuildingWaterConsumption",
    "OwnerDashboardStats",
]
