"""Shop API endpoints (superadmin: all shops, admin: own shop)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.deps import Pagination, get_db, require_permission
from app.core.policies import POLICIES
from app.schemas.auth import Identity
from app.schemas.shop import ShopCreate, ShopRead, ShopUpdate
from app.services import shop_service

router = APIRouter()


@router.post("", response_model=ShopRead, status_code=status.HTTP_201_CREATED)
def create_shop(
    data: ShopCreate,
    identity: Identity = Depends(require_permission(POLICIES["shops"].actions["create"])),
    db: Session = Depends(get_db),
):
    return shop_service.create_shop(db, identity, data)


@router.get("", response_model=list[ShopRead])
def list_shops(
    page: Pagination = Depends(),
    identity: Identity = Depends(require_permission(POLICIES["shops"].default)),
    db: Session = Depends(get_db),
):
    return shop_service.list_shops(db, identity, limit=page.limit, offset=page.offset)


@router.get("/{code}", response_model=ShopRead)
def get_shop(
    code: str,
    identity: Identity = Depends(require_permission(POLICIES["shops"].actions["view"])),
    db: Session = Depends(get_db),
):
    return shop_service.get_shop(db, identity, code)


@router.put("/{code}", response_model=ShopRead)
def update_shop(
    code: str,
    data: ShopUpdate,
    identity: Identity = Depends(require_permission(POLICIES["shops"].actions["edit"])),
    db: Session = Depends(get_db),
):
    return shop_service.update_shop(db, identity, code, data)
