"""Work order service - vehicle intake and shop-scoped work order access.

Every read and write is scoped through resolve_shop_scope: superadmins see
all shops, everyone else only their own. The owning shop of a new work order
comes from the caller, never from a hard-coded default.
"""

import logging
import secrets
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import validation
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.shop_scope import resolve_shop_scope
from app.db.enums import DEFAULT_WORK_ORDER_STATUS, WorkOrderStatus
from app.db.models import Customer, Insurance, Vehicle, WorkOrder
from app.schemas.auth import Identity
from app.schemas.shop import ShopSummary
from app.schemas.work_order import (
    CustomerDetail,
    CustomerIntake,
    InsuranceDetail,
    InsuranceIntake,
    VehicleDetail,
    VehicleIntake,
    WorkOrderDetail,
    WorkOrderIntake,
    WorkOrderListItem,
)
from app.services import shop_service

logger = logging.getLogger(__name__)

VIN_LENGTH = 17


def generate_work_order_code(now: datetime | None = None) -> str:
    """Human-facing code, e.g. WO-20250115-3FA9C2."""
    now = now or datetime.now(timezone.utc)
    return f"WO-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


# =============================================================================
# Intake normalization / validation
# =============================================================================

def _normalize_customer(data: CustomerIntake) -> dict:
    fields = {
        "first_name": (data.first_name or "").strip(),
        "last_name": (data.last_name or "").strip(),
        "address": (data.address or "").strip(),
        "city": (data.city or "").strip(),
        "postal_code": validation.normalize_postal_code(data.postal_code) or "",
        "province": (data.province or "").strip().upper(),
        "email": validation.normalize_email(data.email) or "",
        "phone": (data.phone or "").strip(),
    }
    for name in ("first_name", "last_name", "address", "city"):
        validation.require(f"customer.{name}", fields[name])
    validation.validate_postal_code("customer.postal_code", fields["postal_code"])
    validation.validate_province("customer.province", fields["province"])
    validation.validate_email("customer.email", fields["email"])
    validation.validate_phone("customer.phone", fields["phone"] or None, required=True)
    return fields


def _normalize_vehicle(data: VehicleIntake) -> dict:
    fields = {
        "plate_no": (data.plate_no or "").strip().upper(),
        "make": (data.make or "").strip(),
        "model": (data.model or "").strip(),
        "body_style": validation.clean(data.body_style),
        "model_year": data.model_year,
        "vin": (validation.clean(data.vin) or "").upper() or None,
        "color": validation.clean(data.color),
    }
    for name in ("plate_no", "make", "model"):
        validation.require(f"vehicle.{name}", fields[name])
    if fields["vin"] is not None and len(fields["vin"]) != VIN_LENGTH:
        raise ValidationError("vehicle.vin", f"must be {VIN_LENGTH} characters")
    return fields


def _normalize_insurance(data: InsuranceIntake | None) -> dict | None:
    """None when no insurance was given (all blank)."""
    if data is None or data.is_empty():
        return None
    fields = {name: validation.clean(value) for name, value in data.model_dump().items()}
    if not fields["insurance_company"]:
        raise ValidationError(
            "insurance.insurance_company",
            "insurance company is required when insurance information is provided",
        )
    validation.validate_phone("insurance.agent_phone", fields["agent_phone"])
    return fields


def _resolve_intake_shop(db: Session, actor: Identity, shop_code: str | None) -> UUID:
    """
    Superadmins must name the shop; everyone else gets their own.

    Raises:
        ValidationError: missing/unknown shop code, or code for another shop
        NoShopAssignmentError: non-superadmin without a shop
    """
    scope = resolve_shop_scope(actor)
    requested = shop_service.resolve_shop_id(db, shop_code)
    if scope is None:
        if requested is None:
            raise ValidationError("shop_code", "shop is required")
        return requested
    if requested is not None and requested != scope:
        raise ValidationError("shop_code", "cannot create work orders for another shop")
    return scope


# =============================================================================
# Read models
# =============================================================================

def to_list_item(work_order: WorkOrder) -> WorkOrderListItem:
    return WorkOrderListItem(
        id=work_order.id,
        code=work_order.code,
        status=work_order.status,
        created_at=work_order.created_at,
        updated_at=work_order.updated_at,
        customer_full_name=work_order.customer.full_name,
        customer_email=work_order.customer.email,
        shop=ShopSummary.model_validate(work_order.shop),
    )


def to_detail(work_order: WorkOrder) -> WorkOrderDetail:
    insurance = work_order.insurance
    return WorkOrderDetail(
        id=work_order.id,
        code=work_order.code,
        status=work_order.status,
        damage_date=work_order.damage_date,
        date_received=work_order.created_at,
        date_updated=work_order.updated_at,
        customer=CustomerDetail.model_validate(work_order.customer),
        vehicle=VehicleDetail.model_validate(work_order.vehicle),
        shop=ShopSummary.model_validate(work_order.shop),
        insurance=InsuranceDetail.model_validate(insurance) if insurance else None,
    )


# =============================================================================
# Operations
# =============================================================================

def list_work_orders(
    db: Session, actor: Identity, *, limit: int, offset: int
) -> list[WorkOrderListItem]:
    """Work orders in the actor's scope, newest first."""
    scope = resolve_shop_scope(actor)
    query = select(WorkOrder)
    if scope is not None:
        query = query.where(WorkOrder.shop_id == scope)
    query = query.order_by(WorkOrder.created_at.desc(), WorkOrder.id).limit(limit).offset(offset)
    return [to_list_item(wo) for wo in db.execute(query).unique().scalars().all()]


def _load_scoped(db: Session, actor: Identity, work_order_id: UUID) -> WorkOrder:
    """
    Raises:
        NotFoundError: missing or outside the actor's shop (indistinguishable)
    """
    scope = resolve_shop_scope(actor)
    work_order = db.get(WorkOrder, work_order_id)
    if work_order is None or (scope is not None and work_order.shop_id != scope):
        raise NotFoundError("work order not found")
    return work_order


def get_work_order(db: Session, actor: Identity, work_order_id: UUID) -> WorkOrderDetail:
    return to_detail(_load_scoped(db, actor, work_order_id))


def create_work_order(db: Session, actor: Identity, data: WorkOrderIntake) -> WorkOrderDetail:
    """
    Intake: customer + vehicle + work order + optional insurance, atomically.

    Raises:
        ValidationError: invalid intake or shop
        NoShopAssignmentError: non-superadmin without a shop
        ConflictError: generated code collided
    """
    shop_id = _resolve_intake_shop(db, actor, data.shop_code)
    customer_fields = _normalize_customer(data.customer)
    vehicle_fields = _normalize_vehicle(data.vehicle)
    insurance_fields = _normalize_insurance(data.insurance)

    try:
        customer = Customer(**customer_fields)
        vehicle = Vehicle(**vehicle_fields)
        db.add_all([customer, vehicle])
        db.flush()

        work_order = WorkOrder(
            code=generate_work_order_code(),
            status=DEFAULT_WORK_ORDER_STATUS.value,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            shop_id=shop_id,
            created_by_user_id=actor.id,
            damage_date=data.damage_date,
        )
        db.add(work_order)
        db.flush()

        if insurance_fields is not None:
            db.add(Insurance(work_order_id=work_order.id, **insurance_fields))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("work order could not be created, please retry") from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(work_order)
    logger.info("Work order %s created in shop %s by %s", work_order.code, shop_id, actor.id)
    return to_detail(work_order)


def update_work_order_status(
    db: Session, actor: Identity, work_order_id: UUID, status: WorkOrderStatus
) -> WorkOrderDetail:
    work_order = _load_scoped(db, actor, work_order_id)
    new_status = WorkOrderStatus(status).value
    if work_order.status != new_status:
        work_order.status = new_status
        db.commit()
        db.refresh(work_order)
        logger.info("Work order %s moved to %s by %s", work_order.code, new_status, actor.id)
    return to_detail(work_order)
