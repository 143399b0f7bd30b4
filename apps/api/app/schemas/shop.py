"""Shop-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import ShopStatus


class ShopBase(BaseModel):
    code: str = Field(..., max_length=20)
    shop_name: str = Field(..., max_length=255)
    status: ShopStatus = ShopStatus.ACTIVE
    address: str
    city: str
    province: str
    postal_code: str
    contact_name: str
    phone: str
    email: str


class ShopCreate(ShopBase):
    """Request schema for registering a shop."""

    pass


class ShopUpdate(ShopBase):
    """Full replacement of a shop's details (PUT)."""

    pass


class ShopRead(ShopBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ShopSummary(BaseModel):
    id: UUID
    code: str
    shop_name: str

    model_config = {"from_attributes": True}
