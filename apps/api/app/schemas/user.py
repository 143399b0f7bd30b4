"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request schema for provisioning a user."""

    email: str = Field(..., max_length=255)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    role_code: str
    shop_code: str | None = None
    phone: str | None = None
    image_url: str | None = Field(None, max_length=500)


class UserUpdate(BaseModel):
    """Request schema for updating a user. Omitted fields are unchanged."""

    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str | None = None
    image_url: str | None = Field(None, max_length=500)
    role_code: str | None = None
    shop_code: str | None = None


class UserRead(BaseModel):
    """Response schema for reading a user."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None
    image_url: str | None
    email_verified: bool
    is_active: bool
    deactivated_at: datetime | None
    role_code: str
    shop_id: UUID | None
    shop_code: str | None = None
    created_at: datetime
    updated_at: datetime
    last_sign_in_at: datetime | None

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    items: list[UserRead]
    limit: int
    offset: int
