"""Centralized RBAC policies for API resources."""

from dataclasses import dataclass

from app.core.permissions import PermissionKey as P


@dataclass(frozen=True)
class ResourcePolicy:
    """Default permission + per-action overrides for a resource."""

    default: P | None
    actions: dict[str, P]


POLICIES: dict[str, ResourcePolicy] = {
    "work_orders": ResourcePolicy(
        default=P.WORKORDERS_LIST,
        actions={
            "view": P.WORKORDERS_GET,
            "create": P.WORKORDERS_CREATE,
            "change_status": P.WORKORDERS_UPDATE_STATUS,
        },
    ),
    "users": ResourcePolicy(
        default=P.USERS_LIST,
        actions={
            "view": P.USERS_GET,
            "create": P.USERS_CREATE,
            "edit": P.USERS_UPDATE,
            "deactivate": P.USERS_DEACTIVATE,
            "reactivate": P.USERS_REACTIVATE,
            "resend_setup_link": P.USERS_RESEND_SETUP_LINK,
            "revoke_sessions": P.USERS_REVOKE_SESSIONS,
        },
    ),
    "shops": ResourcePolicy(
        default=P.SHOPS_LIST,
        actions={
            "view": P.SHOPS_GET,
            "create": P.SHOPS_CREATE,
            "edit": P.SHOPS_UPDATE,
        },
    ),
    "profile": ResourcePolicy(
        default=P.PROFILE_READ,
        actions={"edit": P.PROFILE_UPDATE},
    ),
}
