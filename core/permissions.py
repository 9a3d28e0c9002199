from models.enums import PermissionAction, PermissionResource, RoleName


def permission_string(resource: PermissionResource, action: PermissionAction) -> str:
    """Build a "RESOURCE:ACTION" permission string."""
    return f"{resource.value}:{action.value}"


def _all_actions(resource: PermissionResource) -> list:
    return [permission_string(resource, action) for action in PermissionAction]


ALL_PERMISSIONS = [
    permission_string(resource, action)
    for resource in PermissionResource
    for action in PermissionAction
]


# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # SUPER ADMIN — every resource, every action
    # =====================================================
    RoleName.SUPER_ADMIN.value: list(ALL_PERMISSIONS),

    # =====================================================
    # ADMINISTRATOR — manages the buildings of an organization
    # =====================================================
    RoleName.ADMINISTRATOR.value: [
        *_all_actions(PermissionResource.BUILDINGS),
        *_all_actions(PermissionResource.APARTMENTS),
        *_all_actions(PermissionResource.WATER_METERS),
        *_all_actions(PermissionResource.INVITE_CODES),

        "WATER_READINGS:READ", "WATER_READINGS:UPDATE",
        "USERS:READ", "USERS:CREATE", "USERS:UPDATE",
    ],

    # =====================================================
    # OWNER — apartments claimed through an invite code
    # =====================================================
    RoleName.OWNER.value: [
        "APARTMENTS:READ", "APARTMENTS:UPDATE",
        "WATER_METERS:READ",
        "WATER_READINGS:READ", "WATER_READINGS:CREATE", "WATER_READINGS:UPDATE",
        "USERS:READ", "USERS:UPDATE",

        # Redeeming an invite code
        "INVITE_CODES:UPDATE",
    ],
}


ROLE_DESCRIPTIONS = {
    RoleName.SUPER_ADMIN.value: "Platform operator with every permission",
    RoleName.ADMINISTRATOR.value: "Manages the buildings of one organization",
    RoleName.OWNER.value: "Apartment owner who submits water readings",
}
