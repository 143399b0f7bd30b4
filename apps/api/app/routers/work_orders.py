"""Work order API endpoints (all roles, shop-scoped)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.deps import Pagination, get_db, get_shop_scope, require_permission
from app.core.policies import POLICIES
from app.schemas.auth import Identity
from app.schemas.work_order import (
    WorkOrderDetail,
    WorkOrderIntake,
    WorkOrderListResponse,
    WorkOrderStatusUpdate,
)
from app.services import work_order_service

# Rejects non-superadmins without a shop before any handler runs
router = APIRouter(dependencies=[Depends(get_shop_scope)])

_actions = POLICIES["work_orders"].actions


@router.get("", response_model=WorkOrderListResponse)
def list_work_orders(
    page: Pagination = Depends(),
    identity: Identity = Depends(require_permission(POLICIES["work_orders"].default)),
    db: Session = Depends(get_db),
):
    items = work_order_service.list_work_orders(
        db, identity, limit=page.limit, offset=page.offset
    )
    return WorkOrderListResponse(items=items, limit=page.limit, offset=page.offset)


@router.get("/{work_order_id}", response_model=WorkOrderDetail)
def get_work_order(
    work_order_id: UUID,
    identity: Identity = Depends(require_permission(_actions["view"])),
    db: Session = Depends(get_db),
):
    return work_order_service.get_work_order(db, identity, work_order_id)


@router.post("", response_model=WorkOrderDetail, status_code=status.HTTP_201_CREATED)
def create_work_order(
    data: WorkOrderIntake,
    identity: Identity = Depends(require_permission(_actions["create"])),
    db: Session = Depends(get_db),
):
    """Vehicle intake: customer, vehicle, optional insurance."""
    return work_order_service.create_work_order(db, identity, data)


@router.patch("/{work_order_id}/status", response_model=WorkOrderDetail)
def update_status(
    work_order_id: UUID,
    data: WorkOrderStatusUpdate,
    identity: Identity = Depends(require_permission(_actions["change_status"])),
    db: Session = Depends(get_db),
):
    return work_order_service.update_work_order_status(db, identity, work_order_id, data.status)
