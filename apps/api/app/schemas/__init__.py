"""Pydantic schemas for API request/response models."""

from app.schemas.auth import ExternalIdentity, Identity, MeResponse, ProfileUpdate
from app.schemas.shop import ShopCreate, ShopRead, ShopSummary, ShopUpdate
from app.schemas.user import UserCreate, UserListResponse, UserRead, UserUpdate
from app.schemas.work_order import (
    WorkOrderDetail,
    WorkOrderIntake,
    WorkOrderListItem,
    WorkOrderListResponse,
    WorkOrderStatusUpdate,
)

__all__ = [
    # Auth
    "ExternalIdentity",
    "Identity",
    "MeResponse",
    "ProfileUpdate",
    # Shops
    "ShopCreate",
    "ShopRead",
    "ShopSummary",
    "ShopUpdate",
    # Users
    "UserCreate",
    "UserListResponse",
    "UserRead",
    "UserUpdate",
    # Work orders
    "WorkOrderDetail",
    "WorkOrderIntake",
    "WorkOrderListItem",
    "WorkOrderListResponse",
    "WorkOrderStatusUpdate",
]
