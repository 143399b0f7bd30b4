"""Profile service for the signed-in user's own account (/me)."""

from sqlalchemy.orm import Session

from app.core import validation
from app.core.exceptions import NotFoundError
from app.db.enums import ROLE_DISPLAY_NAMES, Role
from app.db.models import User
from app.schemas.auth import Identity, MeResponse, ProfileUpdate
from app.services import user_service


def _load_self(db: Session, actor: Identity) -> User:
    user = user_service.get_user_by_id(db, actor.id)
    if user is None:
        raise NotFoundError("user not found")
    return user


def to_me_response(user: User) -> MeResponse:
    role = Role(user.role_code)
    return MeResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        image_url=user.image_url,
        email_verified=user.email_verified,
        is_active=user.is_active,
        role_code=role,
        role_name=user.role.name or ROLE_DISPLAY_NAMES[role],
        shop_id=user.shop_id,
        shop_code=user.shop.code if user.shop else None,
        shop_name=user.shop.shop_name if user.shop else None,
    )


def get_profile(db: Session, actor: Identity) -> MeResponse:
    """Current user with role and shop details."""
    return to_me_response(_load_self(db, actor))


def update_profile(db: Session, actor: Identity, data: ProfileUpdate) -> MeResponse:
    """
    Self-service edit of contact fields. Role, shop, email and names are
    admin-managed and not accepted here.

    Raises:
        ValidationError: bad phone or image URL format
    """
    user = _load_self(db, actor)
    provided = data.model_fields_set
    changes: dict = {}
    if "phone" in provided:
        changes["phone"] = validation.clean(data.phone)
        validation.validate_phone("phone", changes["phone"])
    if "image_url" in provided:
        changes["image_url"] = validation.clean(data.image_url)
        validation.validate_image_url("image_url", changes["image_url"])

    if changes:
        user = user_service.update_user_fields(db, user, **changes)
    return to_me_response(user)
