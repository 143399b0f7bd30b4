"""Service layer modules."""

from app.services.auth_service import resolve_identity
from app.services.user_service import (
    get_role_by_code,
    get_user_by_email,
    get_user_by_external_id,
    get_user_by_id,
    revoke_all_sessions,
)

# Import service modules (not individual functions) for cleaner access
from app.services import profile_service
from app.services import shop_service
from app.services import user_admin_service
from app.services import work_order_service

__all__ = [
    # Auth service
    "resolve_identity",
    # User service
    "get_user_by_id",
    "get_user_by_external_id",
    "get_user_by_email",
    "get_role_by_code",
    "revoke_all_sessions",
    # Service modules
    "profile_service",
    "shop_service",
    "user_admin_service",
    "work_order_service",
]
