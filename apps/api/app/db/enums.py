"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with decreasing privilege levels.

    - SUPERADMIN: Platform operator (all shops, manages admins)
    - ADMIN: Shop administrator (own shop staff, shops)
    - ADJUSTER: Staff, creates and reviews work orders
    - BODYMAN: Staff, reads work orders and moves their status
    """
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    ADJUSTER = "adjuster"
    BODYMAN = "bodyman"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_

    @classmethod
    def staff_roles(cls) -> frozenset["Role"]:
        return STAFF_ROLES

    @classmethod
    def admin_roles(cls) -> frozenset["Role"]:
        return ADMIN_ROLES


# Role sets used by the policy engine
ADMIN_ROLES = frozenset({Role.SUPERADMIN, Role.ADMIN})
STAFF_ROLES = frozenset({Role.ADJUSTER, Role.BODYMAN})

# Roles an admin may assign when creating or updating users
ROLES_ADMIN_CAN_ASSIGN = STAFF_ROLES

ROLE_DISPLAY_NAMES: dict[Role, str] = {
    Role.SUPERADMIN: "Super Admin",
    Role.ADMIN: "Admin",
    Role.ADJUSTER: "Adjuster",
    Role.BODYMAN: "Bodyman",
}


class ShopStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class WorkOrderStatus(str, Enum):
    """
    Work order lifecycle.

    waiting_for_inspection → in_progress → completed
    Side states: follow_up_needed, awaiting_info
    """
    WAITING_FOR_INSPECTION = "waiting_for_inspection"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FOLLOW_UP_NEEDED = "follow_up_needed"
    AWAITING_INFO = "awaiting_info"


DEFAULT_WORK_ORDER_STATUS = WorkOrderStatus.WAITING_FOR_INSPECTION


# Canadian provinces and territories accepted on shop and customer addresses
CANADIAN_PROVINCES = frozenset({
    "AB", "BC", "MB", "NB", "NL", "NT", "NS", "NU", "ON", "PE", "QC", "SK", "YT",
})
