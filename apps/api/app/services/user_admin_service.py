"""User administration - policy-checked user management for admins.

Every operation follows the same shape:
normalize → validate → policy (user_access) → persist → side effects.

Side effects on the identity platform that are not required for the
operation to be correct (disable/enable upstream, emails) are best-effort
and logged; provisioning is compensated when the local insert fails.
"""

import logging
from uuid import UUID

from sqlalchemy import and_, false, or_, select
from sqlalchemy.orm import Session

from app.core import user_access, validation
from app.core.background import BackgroundDispatcher
from app.core.exceptions import (
    ConflictError,
    ExternalAccountExistsError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.db.enums import STAFF_ROLES, Role
from app.db.models import SystemRole, User
from app.schemas.auth import Identity
from app.schemas.user import UserCreate, UserUpdate
from app.services import shop_service, user_service
from app.services.email_sender import EmailSender
from app.services.identity_platform import TOKEN_VERSION_CLAIM, IdentityDirectory

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def _resolve_role(db: Session, code: str | None) -> tuple[Role, SystemRole]:
    code = (code or "").strip().lower()
    if not code:
        raise ValidationError("role_code", "cannot be blank")
    if not Role.has_value(code):
        raise ValidationError("role_code", "invalid role code")
    row = user_service.get_role_by_code(db, code)
    if row is None:
        raise ValidationError("role_code", "invalid role code")
    return Role(code), row


def _load_visible_user(db: Session, actor: Identity, user_id: UUID) -> User:
    """
    Raises:
        NotFoundError: missing or hidden from actor (indistinguishable)
    """
    user = user_service.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("user not found")
    user_access.ensure_user_visible(actor, user)
    return user


def _load_manageable_user(db: Session, actor: Identity, user_id: UUID) -> User:
    user = _load_visible_user(db, actor, user_id)
    user_access.check_manage_user(actor, user)
    return user


def _validate_profile_fields(phone: str | None, image_url: str | None) -> None:
    validation.validate_phone("phone", phone)
    validation.validate_image_url("image_url", image_url)


# =============================================================================
# Create
# =============================================================================

def create_user(
    db: Session,
    actor: Identity,
    data: UserCreate,
    *,
    directory: IdentityDirectory,
    email_sender: EmailSender,
    dispatcher: BackgroundDispatcher,
) -> User:
    """
    Provision a user upstream and locally, then email a password setup link.

    Raises:
        ValidationError: invalid input or shop
        PermissionDeniedError: actor may not create this role
        ConflictError: email already registered (locally or upstream)
        ExternalServiceError: identity platform unavailable
    """
    email = validation.normalize_email(data.email)
    first_name = (data.first_name or "").strip()
    last_name = (data.last_name or "").strip()
    phone = validation.clean(data.phone)
    image_url = validation.clean(data.image_url)

    validation.validate_email("email", email)
    validation.require("first_name", first_name)
    validation.require("last_name", last_name)
    _validate_profile_fields(phone, image_url)

    role, role_row = _resolve_role(db, data.role_code)
    requested_shop_id = shop_service.resolve_shop_id(db, data.shop_code)
    shop_id = user_access.resolve_new_user_shop(actor, role, requested_shop_id)

    if user_service.get_user_by_email(db, email) is not None:
        raise ConflictError("email already registered")

    try:
        external_id = directory.create_passwordless_account(email, first_name, last_name)
    except ExternalAccountExistsError as exc:
        raise ConflictError("email already registered with the identity platform") from exc

    try:
        user = user_service.create_user(
            db,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role_id=role_row.id,
            shop_id=shop_id,
            external_id=external_id,
            phone=phone,
            image_url=image_url,
        )
    except Exception:
        # Compensate: the upstream account must not outlive a failed insert
        try:
            directory.delete_account(external_id)
        except ExternalServiceError:
            logger.exception(
                "Failed to roll back identity account %s after user insert failure", external_id
            )
        raise

    try:
        link = directory.generate_password_reset_link(user.email)
    except ExternalServiceError:
        # Admin can resend the link later
        logger.warning("Password setup link failed for user %s", user.id, exc_info=True)
        link = None

    if link:
        dispatcher.submit(
            f"welcome email for user {user.id}",
            email_sender.send_welcome_setup,
            user.email,
            user.first_name,
            link,
        )

    logger.info(
        "User %s created by %s (role=%s, shop=%s)", user.id, actor.id, role.value, shop_id
    )
    return user


# =============================================================================
# Read
# =============================================================================

def get_user(db: Session, actor: Identity, user_id: UUID) -> User:
    return _load_visible_user(db, actor, user_id)


def list_users(db: Session, actor: Identity, *, limit: int, offset: int) -> list[User]:
    """
    List users visible to the actor, newest first.

    Visibility is applied in SQL so pages are never short.
    """
    query = select(User).join(SystemRole, User.role_id == SystemRole.id)

    if actor.is_admin_only():
        same_shop = User.shop_id == actor.shop_id if actor.has_shop() else false()
        query = query.where(
            SystemRole.code != Role.SUPERADMIN.value,
            or_(
                User.id == actor.id,
                SystemRole.code == Role.ADMIN.value,
                and_(SystemRole.code.in_([r.value for r in STAFF_ROLES]), same_shop),
            ),
        )
    elif not actor.is_super_admin():
        raise ForbiddenError("insufficient role to list users")

    query = query.order_by(User.created_at.desc(), User.id).limit(limit).offset(offset)
    return list(db.execute(query).unique().scalars().all())


# =============================================================================
# Update
# =============================================================================

def update_user(db: Session, actor: Identity, user_id: UUID, data: UserUpdate) -> User:
    """
    Apply a partial update. Omitted fields are unchanged; blank phone or
    image URL clears it. email_verified and external_id are never updatable.

    Raises:
        NotFoundError / PermissionDeniedError / ValidationError
    """
    target = _load_manageable_user(db, actor, user_id)
    provided = data.model_fields_set
    changes: dict = {}

    new_role = None
    role_row = None
    if "role_code" in provided and (data.role_code or "").strip():
        new_role, role_row = _resolve_role(db, data.role_code)

    shop_changed = "shop_code" in provided and bool((data.shop_code or "").strip())
    new_shop_id = shop_service.resolve_shop_id(db, data.shop_code) if shop_changed else None

    user_access.check_field_update(
        actor, target, new_role=new_role, new_shop_id=new_shop_id, shop_changed=shop_changed
    )

    for name in ("first_name", "last_name"):
        if name in provided:
            changes[name] = validation.require(name, (getattr(data, name) or "").strip())
    for name in ("phone", "image_url"):
        if name in provided:
            changes[name] = validation.clean(getattr(data, name))
    _validate_profile_fields(changes.get("phone"), changes.get("image_url"))

    if role_row is not None:
        changes["role_id"] = role_row.id
    if shop_changed:
        changes["shop_id"] = new_shop_id

    final_role = new_role or Role(target.role_code)
    final_shop = changes.get("shop_id", target.shop_id)
    if final_role in STAFF_ROLES and final_shop is None:
        raise ValidationError("shop_code", "shop is required for staff users")

    if not changes:
        return target
    user = user_service.update_user_fields(db, target, **changes)
    logger.info("User %s updated by %s (fields=%s)", user.id, actor.id, sorted(changes))
    return user


# =============================================================================
# Lifecycle
# =============================================================================

def deactivate_user(
    db: Session, actor: Identity, user_id: UUID, *, directory: IdentityDirectory
) -> User:
    """
    Block sign-in. Idempotent; also revokes every session.

    Raises:
        ValidationError: actor targets itself
        NotFoundError / PermissionDeniedError
    """
    user_access.ensure_not_self(actor, user_id, "deactivate")
    target = _load_manageable_user(db, actor, user_id)

    if user_service.deactivate_user(db, target, actor.id):
        logger.info("User %s deactivated by %s", target.id, actor.id)

    if target.external_id:
        try:
            directory.disable_account(target.external_id)
            directory.revoke_refresh_tokens(target.external_id)
        except ExternalServiceError:
            logger.warning("Upstream disable failed for user %s", target.id, exc_info=True)
    return target


def reactivate_user(
    db: Session, actor: Identity, user_id: UUID, *, directory: IdentityDirectory
) -> User:
    """
    Restore sign-in. Idempotent.

    The current token version is pushed to the identity platform so new
    tokens pass the revocation check.
    """
    user_access.ensure_not_self(actor, user_id, "reactivate")
    target = _load_manageable_user(db, actor, user_id)

    if user_service.reactivate_user(db, target):
        logger.info("User %s reactivated by %s", target.id, actor.id)

    if target.external_id:
        try:
            directory.set_custom_claims(
                target.external_id, {TOKEN_VERSION_CLAIM: target.token_version}
            )
            directory.enable_account(target.external_id)
        except ExternalServiceError:
            logger.warning("Upstream enable failed for user %s", target.id, exc_info=True)
    return target


def resend_password_setup_link(
    db: Session,
    actor: Identity,
    user_id: UUID,
    *,
    directory: IdentityDirectory,
    email_sender: EmailSender,
    dispatcher: BackgroundDispatcher,
) -> None:
    """
    Generate a fresh setup link and email it in the background.

    Raises:
        ValidationError: target is deactivated
        ExternalServiceError: link generation failed
    """
    target = _load_manageable_user(db, actor, user_id)
    if not target.is_active:
        raise ValidationError("is_active", "user is deactivated")

    link = directory.generate_password_reset_link(target.email)
    dispatcher.submit(
        f"setup reminder email for user {target.id}",
        email_sender.send_setup_reminder,
        target.email,
        target.first_name,
        link,
    )
    logger.info("Password setup link resent for user %s by %s", target.id, actor.id)


def revoke_user_sessions(
    db: Session, actor: Identity, user_id: UUID, *, directory: IdentityDirectory
) -> int:
    """
    Force logout everywhere by bumping token_version.

    The upstream claim is written first: if the local bump then fails,
    tokens carry a newer version than the row and keep working.

    Returns:
        The new token_version
    """
    user_access.ensure_not_self(actor, user_id, "revoke sessions of")
    target = _load_manageable_user(db, actor, user_id)

    new_version = target.token_version + 1
    if target.external_id:
        directory.set_custom_claims(target.external_id, {TOKEN_VERSION_CLAIM: new_version})
        directory.revoke_refresh_tokens(target.external_id)

    version = user_service.revoke_all_sessions(db, target)
    logger.info("Sessions revoked for user %s by %s (version=%s)", target.id, actor.id, version)
    return version
