"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.db.enums import ADMIN_ROLES, STAFF_ROLES, Role


class ExternalIdentity(BaseModel):
    """Claims extracted from a verified identity-platform token."""
    uid: str
    email: str | None = None
    email_verified: bool = False
    token_version: int | None = None  # custom claim, set on session revocation


class Identity(BaseModel):
    """
    Resolved caller for authenticated requests.

    Built from the user row on every request (never cached) and passed
    explicitly to policy checks and services.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    external_id: str
    role_code: Role  # Validated enum
    shop_id: UUID | None = None
    token_version: int = 1
    is_active: bool = True

    def has_role(self, *roles: Role) -> bool:
        return self.role_code in roles

    def is_super_admin(self) -> bool:
        return self.role_code == Role.SUPERADMIN

    def is_admin_only(self) -> bool:
        return self.role_code == Role.ADMIN

    def is_admin_or_above(self) -> bool:
        return self.role_code in ADMIN_ROLES

    def is_staff(self) -> bool:
        return self.role_code in STAFF_ROLES

    def has_shop(self) -> bool:
        return self.shop_id is not None


class MeResponse(BaseModel):
    """Response schema for GET /me."""
    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None
    image_url: str | None
    email_verified: bool
    is_active: bool
    role_code: Role
    role_name: str
    shop_id: UUID | None
    shop_code: str | None
    shop_name: str | None


class ProfileUpdate(BaseModel):
    """Self-service profile edit. Only contact fields are editable."""
    phone: str | None = None
    image_url: str | None = None
