"""
Static role → operation table tests.

Tests cover:
- Every role's grants match the published table
- Fail-closed behavior for unknown roles and operations
- Policy actions map onto known operations
"""

import pytest

from app.core.permissions import ROLE_PERMISSIONS, PermissionKey, can
from app.core.policies import POLICIES
from app.db.enums import Role

P = PermissionKey

ALL_ROLES = list(Role)


@pytest.mark.parametrize("operation", [
    P.WORKORDERS_LIST,
    P.WORKORDERS_GET,
    P.WORKORDERS_UPDATE_STATUS,
    P.PROFILE_READ,
    P.PROFILE_UPDATE,
])
def test_everyone_can_read_work_orders_and_own_profile(operation):
    for role in ALL_ROLES:
        assert can(role, operation), role


def test_work_order_create_excludes_bodyman():
    assert can(Role.SUPERADMIN, P.WORKORDERS_CREATE)
    assert can(Role.ADMIN, P.WORKORDERS_CREATE)
    assert can(Role.ADJUSTER, P.WORKORDERS_CREATE)
    assert not can(Role.BODYMAN, P.WORKORDERS_CREATE)


@pytest.mark.parametrize("operation", [
    P.USERS_LIST,
    P.USERS_GET,
    P.USERS_CREATE,
    P.USERS_UPDATE,
    P.USERS_DEACTIVATE,
    P.USERS_REACTIVATE,
    P.USERS_RESEND_SETUP_LINK,
    P.USERS_REVOKE_SESSIONS,
])
def test_user_management_is_admin_only(operation):
    assert can(Role.SUPERADMIN, operation)
    assert can(Role.ADMIN, operation)
    assert not can(Role.ADJUSTER, operation)
    assert not can(Role.BODYMAN, operation)


def test_shop_registration_is_superadmin_only():
    assert can(Role.SUPERADMIN, P.SHOPS_CREATE)
    assert not can(Role.ADMIN, P.SHOPS_CREATE)
    assert can(Role.ADMIN, P.SHOPS_UPDATE)
    assert not can(Role.ADJUSTER, P.SHOPS_LIST)
    assert not can(Role.BODYMAN, P.SHOPS_GET)


def test_superadmin_has_every_operation():
    assert ROLE_PERMISSIONS[Role.SUPERADMIN] == frozenset(PermissionKey)


def test_every_role_has_a_row():
    assert set(ROLE_PERMISSIONS) == set(Role)


def test_string_role_and_operation_values_are_accepted():
    assert can("adjuster", "workorders:create")
    assert not can("bodyman", "workorders:create")


def test_unknown_role_is_denied():
    assert not can("mechanic", P.WORKORDERS_LIST)
    assert not can(None, P.WORKORDERS_LIST)
    assert not can("", P.PROFILE_READ)


def test_unknown_operation_is_denied():
    assert not can(Role.SUPERADMIN, "workorders:delete")
    assert not can(Role.ADMIN, "")


def test_policies_cover_every_operation():
    referenced = set()
    for policy in POLICIES.values():
        referenced.add(policy.default)
        referenced.update(policy.actions.values())
    assert referenced == set(PermissionKey)
