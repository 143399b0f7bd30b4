"""Static role → operation table.

Roles are fixed (seeded), so the table is code, not data.

can(role, operation) fails closed: unknown roles and unknown operations
are both denied.
"""

from enum import Enum

from app.db.enums import Role


class PermissionKey(str, Enum):
    """Operation identifiers checked at the HTTP boundary."""

    WORKORDERS_LIST = "workorders:list"
    WORKORDERS_GET = "workorders:get"
    WORKORDERS_CREATE = "workorders:create"
    WORKORDERS_UPDATE_STATUS = "workorders:update_status"

    USERS_LIST = "users:list"
    USERS_GET = "users:get"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DEACTIVATE = "users:deactivate"
    USERS_REACTIVATE = "users:reactivate"
    USERS_RESEND_SETUP_LINK = "users:resend_setup_link"
    USERS_REVOKE_SESSIONS = "users:revoke_sessions"

    SHOPS_LIST = "shops:list"
    SHOPS_GET = "shops:get"
    SHOPS_CREATE = "shops:create"
    SHOPS_UPDATE = "shops:update"

    PROFILE_READ = "profile:read"
    PROFILE_UPDATE = "profile:update"


P = PermissionKey

_STAFF_COMMON = {
    P.WORKORDERS_LIST,
    P.WORKORDERS_GET,
    P.WORKORDERS_UPDATE_STATUS,
    P.PROFILE_READ,
    P.PROFILE_UPDATE,
}

ROLE_PERMISSIONS: dict[Role, frozenset[PermissionKey]] = {
    Role.SUPERADMIN: frozenset(PermissionKey),
    Role.ADMIN: frozenset({
        *_STAFF_COMMON,
        P.WORKORDERS_CREATE,
        P.USERS_LIST,
        P.USERS_GET,
        P.USERS_CREATE,
        P.USERS_UPDATE,
        P.USERS_DEACTIVATE,
        P.USERS_REACTIVATE,
        P.USERS_RESEND_SETUP_LINK,
        P.USERS_REVOKE_SESSIONS,
        P.SHOPS_LIST,
        P.SHOPS_GET,
        P.SHOPS_UPDATE,
    }),
    Role.ADJUSTER: frozenset({*_STAFF_COMMON, P.WORKORDERS_CREATE}),
    Role.BODYMAN: frozenset(_STAFF_COMMON),
}


# =============================================================================
# Check
# =============================================================================

def can(role: Role | str | None, operation: PermissionKey | str) -> bool:
    """Return True only when the role is known and grants the operation."""
    if role is None or not Role.has_value(str(getattr(role, "value", role))):
        return False
    try:
        key = PermissionKey(operation)
    except ValueError:
        return False
    return key in ROLE_PERMISSIONS.get(Role(role), frozenset())
