"""Shop service - shop registration and lookup.

Admins only ever see and edit their own shop; superadmins see all shops
and are the only role that registers new ones.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import validation
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.core.shop_scope import resolve_shop_scope
from app.db.enums import ShopStatus
from app.db.models import Shop
from app.schemas.auth import Identity
from app.schemas.shop import ShopBase

logger = logging.getLogger(__name__)

SHOP_CODE_MIN = 2
SHOP_CODE_MAX = 10


# =============================================================================
# Normalization / validation
# =============================================================================

def normalize_shop_code(code: str | None) -> str:
    return (code or "").strip().upper()


def normalize_shop(data: ShopBase) -> dict:
    """Trim every field; upper-case code/province, compact postal code, lower-case email."""
    return {
        "code": normalize_shop_code(data.code),
        "shop_name": (data.shop_name or "").strip(),
        "status": ShopStatus(data.status).value,
        "address": (data.address or "").strip(),
        "city": (data.city or "").strip(),
        "province": (data.province or "").strip().upper(),
        "postal_code": validation.normalize_postal_code(data.postal_code) or "",
        "contact_name": (data.contact_name or "").strip(),
        "phone": (data.phone or "").strip(),
        "email": validation.normalize_email(data.email) or "",
    }


def validate_shop(fields: dict) -> None:
    """
    Raises:
        ValidationError: first failing field
    """
    code = fields["code"]
    if not code:
        raise ValidationError("code", "code is required")
    if len(code) < SHOP_CODE_MIN:
        raise ValidationError("code", f"code must be at least {SHOP_CODE_MIN} characters")
    if len(code) > SHOP_CODE_MAX:
        raise ValidationError("code", f"code must not exceed {SHOP_CODE_MAX} characters")

    for field in ("shop_name", "address", "city", "province", "postal_code", "contact_name"):
        validation.require(field, fields[field])
    validation.validate_province("province", fields["province"])
    validation.validate_postal_code("postal_code", fields["postal_code"])
    validation.validate_phone("phone", fields["phone"] or None, required=True)
    validation.validate_email("email", fields["email"])


# =============================================================================
# Lookups
# =============================================================================

def get_shop_by_id(db: Session, shop_id: UUID) -> Shop | None:
    return db.get(Shop, shop_id)


def get_shop_by_code(db: Session, code: str) -> Shop | None:
    code = normalize_shop_code(code)
    if not code:
        return None
    return db.execute(select(Shop).where(Shop.code == code)).scalar_one_or_none()


def resolve_shop_id(db: Session, code: str | None, *, field: str = "shop_code") -> UUID | None:
    """
    Translate an optional shop code into an id.

    Raises:
        ValidationError: code given but no such shop
    """
    if not code or not code.strip():
        return None
    shop = get_shop_by_code(db, code)
    if shop is None:
        raise ValidationError(field, "invalid shop code")
    return shop.id


# =============================================================================
# Actor-scoped operations
# =============================================================================

def _visible(actor: Identity, shop: Shop) -> bool:
    return actor.is_super_admin() or (actor.has_shop() and shop.id == actor.shop_id)


def list_shops(db: Session, actor: Identity, *, limit: int, offset: int) -> list[Shop]:
    """List shops in scope (admins see only their own shop)."""
    scope = resolve_shop_scope(actor)
    query = select(Shop).order_by(Shop.code).limit(limit).offset(offset)
    if scope is not None:
        query = query.where(Shop.id == scope)
    return list(db.execute(query).scalars().all())


def get_shop(db: Session, actor: Identity, code: str) -> Shop:
    """
    Raises:
        NotFoundError: no such shop, or shop outside actor's scope
    """
    shop = get_shop_by_code(db, code)
    if shop is None or not _visible(actor, shop):
        raise NotFoundError("shop not found")
    return shop


def register_shop(db: Session, data: ShopBase) -> Shop:
    """
    Normalize, validate and insert a shop. No actor check; callers authorize.

    Raises:
        ValidationError: invalid input
        ConflictError: code already taken
    """
    fields = normalize_shop(data)
    validate_shop(fields)

    shop = Shop(**fields)
    db.add(shop)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"shop code {fields['code']} already exists") from exc
    db.refresh(shop)
    return shop


def create_shop(db: Session, actor: Identity, data: ShopBase) -> Shop:
    """
    Register a shop.

    Raises:
        ForbiddenError: actor is not a superadmin
        ValidationError / ConflictError: see register_shop
    """
    if not actor.is_super_admin():
        raise ForbiddenError("only superadmins can register shops")
    shop = register_shop(db, data)
    logger.info("Shop %s created by user %s", shop.code, actor.id)
    return shop


def update_shop(db: Session, actor: Identity, code: str, data: ShopBase) -> Shop:
    """
    Replace a shop's details.

    Raises:
        NotFoundError: shop missing or out of scope
        ValidationError / ConflictError: invalid input or duplicate code
    """
    shop = get_shop(db, actor, code)
    fields = normalize_shop(data)
    validate_shop(fields)

    for name, value in fields.items():
        setattr(shop, name, value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(f"shop code {fields['code']} already exists") from exc
    db.refresh(shop)
    return shop
