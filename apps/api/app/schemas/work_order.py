"""Work order intake and read schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.db.enums import WorkOrderStatus
from app.schemas.shop import ShopSummary


# =============================================================================
# Intake (request)
# =============================================================================


class CustomerIntake(BaseModel):
    first_name: str
    last_name: str
    address: str
    city: str
    postal_code: str
    province: str
    email: str
    phone: str


class VehicleIntake(BaseModel):
    plate_no: str
    make: str
    model: str
    body_style: str | None = None
    model_year: int = Field(..., ge=1900, le=2100)
    vin: str | None = None
    color: str | None = None


class InsuranceIntake(BaseModel):
    insurance_company: str | None = None
    agent_first_name: str | None = None
    agent_last_name: str | None = None
    agent_phone: str | None = None
    policy_number: str | None = None
    claim_number: str | None = None

    def is_empty(self) -> bool:
        """True when every field is missing or blank (insurance is skipped)."""
        return not any((value or "").strip() for value in self.model_dump().values())


class WorkOrderIntake(BaseModel):
    """Request schema for POST /workorders."""
    customer: CustomerIntake
    vehicle: VehicleIntake
    insurance: InsuranceIntake | None = None
    shop_code: str | None = None  # required for superadmins only
    damage_date: date | None = None


class WorkOrderStatusUpdate(BaseModel):
    status: WorkOrderStatus


# =============================================================================
# Read (response)
# =============================================================================


class CustomerDetail(BaseModel):
    full_name: str
    address: str
    city: str
    postal_code: str
    province: str
    email: str
    phone: str

    model_config = {"from_attributes": True}


class VehicleDetail(BaseModel):
    plate_no: str
    make: str
    model: str
    body_style: str | None
    model_year: int
    vin: str | None
    color: str | None

    model_config = {"from_attributes": True}


class InsuranceDetail(BaseModel):
    insurance_company: str
    agent_full_name: str
    agent_phone: str | None
    policy_number: str | None
    claim_number: str | None

    model_config = {"from_attributes": True}


class WorkOrderListItem(BaseModel):
    id: UUID
    code: str
    status: WorkOrderStatus
    created_at: datetime
    updated_at: datetime
    customer_full_name: str
    customer_email: str
    shop: ShopSummary


class WorkOrderListResponse(BaseModel):
    items: list[WorkOrderListItem]
    limit: int
    offset: int


class WorkOrderDetail(BaseModel):
    id: UUID
    code: str
    status: WorkOrderStatus
    damage_date: date | None
    date_received: datetime
    date_updated: datetime
    customer: CustomerDetail
    vehicle: VehicleDetail
    shop: ShopSummary
    insurance: InsuranceDetail | None = None
