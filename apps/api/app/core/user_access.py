"""User access control - centralized hierarchy checks for user management.

Hierarchy: superadmin > admin > staff (adjuster, bodyman).

- Superadmin: sees and manages everyone.
- Admin: sees itself, other admins (read-only), and staff in its own shop.
  Never sees superadmins. Manages itself and its own shop's staff.
- Staff: no user management at all.

Targets that are not visible are reported as "not found" so their
existence is never confirmed. Visible-but-unmanageable targets raise
PermissionDeniedError.

Every function takes the actor explicitly. Targets are duck-typed: anything
with ``id``, ``role_code`` and ``shop_id`` (a User row or an Identity).
"""

from typing import Protocol
from uuid import UUID

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.db.enums import ADMIN_ROLES, ROLES_ADMIN_CAN_ASSIGN, STAFF_ROLES, Role
from app.schemas.auth import Identity


class UserTarget(Protocol):
    id: UUID
    shop_id: UUID | None

    @property
    def role_code(self) -> str: ...


def _role(target: UserTarget) -> str:
    code = target.role_code
    return code.value if hasattr(code, "value") else code


# =============================================================================
# Visibility
# =============================================================================

def can_view_user(actor: Identity, target: UserTarget) -> bool:
    """True if the actor may know this user exists."""
    if actor.is_super_admin():
        return True
    if not actor.is_admin_only():
        return False

    target_role = _role(target)
    if target_role == Role.SUPERADMIN.value:
        return False
    if target.id == actor.id or target_role == Role.ADMIN.value:
        return True
    # Staff: same shop only
    return actor.has_shop() and target.shop_id == actor.shop_id


def ensure_user_visible(actor: Identity, target: UserTarget) -> None:
    """
    Raises:
        NotFoundError: target hidden from actor
    """
    if not can_view_user(actor, target):
        raise NotFoundError("user not found")


# =============================================================================
# Management
# =============================================================================

def check_manage_user(actor: Identity, target: UserTarget) -> None:
    """
    Check if actor may modify target at all.

    Raises:
        PermissionDeniedError: actor outranks or is outside target's shop
    """
    if actor.is_super_admin():
        return
    if not actor.is_admin_only():
        raise PermissionDeniedError("permissions", "insufficient role to manage users")

    target_role = _role(target)
    if target_role == Role.SUPERADMIN.value:
        raise PermissionDeniedError("permissions", "cannot manage superadmin users")
    if target.id == actor.id:
        return
    if target_role == Role.ADMIN.value:
        raise PermissionDeniedError("permissions", "cannot manage other admin users")

    if not actor.has_shop() or target.shop_id is None:
        raise PermissionDeniedError("shop_id", "shop assignment required to manage staff")
    if target.shop_id != actor.shop_id:
        raise PermissionDeniedError("shop_id", "cannot manage users of another shop")


def can_manage_user(actor: Identity, target: UserTarget) -> bool:
    try:
        check_manage_user(actor, target)
    except PermissionDeniedError:
        return False
    return True


def check_field_update(
    actor: Identity,
    target: UserTarget,
    *,
    new_role: Role | None = None,
    new_shop_id: UUID | None = None,
    shop_changed: bool = False,
) -> None:
    """
    Check which fields of an update the actor may touch.

    Call after check_manage_user. ``shop_changed`` is True when the request
    names a shop (even one that resolves to the current shop).

    Raises:
        PermissionDeniedError: forbidden role or shop change
    """
    if actor.is_super_admin():
        return
    if not actor.is_admin_only():
        raise PermissionDeniedError("permissions", "insufficient role to manage users")

    if new_role is not None:
        if new_role in ADMIN_ROLES:
            raise PermissionDeniedError(
                "role_code", f"cannot assign the {new_role.value} role"
            )
        if target.id == actor.id:
            raise PermissionDeniedError("role_code", "cannot change your own role")

    if shop_changed and new_shop_id != target.shop_id:
        raise PermissionDeniedError("shop_code", "cannot move users between shops")


def ensure_not_self(actor: Identity, target_id: UUID, action: str) -> None:
    """
    Raises:
        ValidationError: actor is acting on its own account
    """
    if actor.id == target_id:
        raise ValidationError("permissions", f"cannot {action} yourself")


# =============================================================================
# Creation
# =============================================================================

def resolve_new_user_shop(
    actor: Identity,
    role: Role,
    requested_shop_id: UUID | None,
) -> UUID | None:
    """
    Decide which shop a new user lands in.

    Admins create staff in their own shop only; superadmins must name a
    shop for staff and may leave admins/superadmins shopless.

    Raises:
        PermissionDeniedError: actor cannot create this role
        ValidationError: missing or mismatched shop
    """
    if actor.is_super_admin():
        if role in STAFF_ROLES and requested_shop_id is None:
            raise ValidationError("shop_code", "shop is required for staff users")
        return requested_shop_id

    if not actor.is_admin_only():
        raise PermissionDeniedError("permissions", "insufficient role to create users")
    if role not in ROLES_ADMIN_CAN_ASSIGN:
        raise PermissionDeniedError(
            "role_code", "admin cannot create admin or superadmin users"
        )
    if not actor.has_shop():
        raise PermissionDeniedError("shop_id", "shop assignment required to create users")
    if requested_shop_id is not None and requested_shop_id != actor.shop_id:
        raise ValidationError("shop_code", "admins can only create users in their own shop")
    return actor.shop_id
