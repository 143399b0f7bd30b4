"""User service - user persistence and session management.

No authorization here; callers (user_admin_service, auth_service,
profile_service, CLI) enforce policy before calling in.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ValidationError
from app.db.models import SystemRole, User

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _raise_integrity_error(exc: IntegrityError, what: str) -> None:
    """Map a constraint violation to a domain error."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION or "unique" in str(orig).lower():
        raise ConflictError(f"{what} already exists") from exc
    raise ValidationError(what, "violates a data constraint") from exc


# =============================================================================
# Lookups
# =============================================================================

def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.get(User, user_id)


def get_user_by_external_id(db: Session, external_id: str) -> User | None:
    """Get user by identity-platform uid."""
    return db.execute(
        select(User).where(User.external_id == external_id)
    ).scalar_one_or_none()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.execute(
        select(User).where(User.email == email.strip().lower())
    ).scalar_one_or_none()


def get_role_by_code(db: Session, code: str) -> SystemRole | None:
    return db.execute(select(SystemRole).where(SystemRole.code == code)).scalar_one_or_none()


# =============================================================================
# Writes
# =============================================================================

def create_user(
    db: Session,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role_id: UUID,
    shop_id: UUID | None,
    external_id: str | None,
    phone: str | None = None,
    image_url: str | None = None,
) -> User:
    """
    Insert a user row and commit.

    Raises:
        ConflictError: email or external_id already taken
        ValidationError: other constraint violation
    """
    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role_id=role_id,
        shop_id=shop_id,
        external_id=external_id,
        phone=phone,
        image_url=image_url,
        email_verified=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        _raise_integrity_error(exc, "user")
    db.refresh(user)
    return user


def update_user_fields(db: Session, user: User, **fields) -> User:
    """
    Apply field changes and commit. external_id is never updatable.

    Raises:
        ConflictError / ValidationError: constraint violation
    """
    fields.pop("external_id", None)
    for name, value in fields.items():
        setattr(user, name, value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        _raise_integrity_error(exc, "user")
    db.refresh(user)
    return user


def revoke_all_sessions(db: Session, user: User) -> int:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with an older version fail validation.

    Returns:
        The new token_version
    """
    user.token_version += 1
    db.commit()
    return user.token_version


def deactivate_user(db: Session, user: User, deactivated_by: UUID) -> bool:
    """
    Deactivate user account. Idempotent.

    Also revokes all sessions by bumping token_version.

    Returns:
        True if the user transitioned from active to inactive
    """
    if not user.is_active:
        return False
    user.is_active = False
    user.deactivated_at = datetime.now(timezone.utc)
    user.deactivated_by = deactivated_by
    user.token_version += 1  # Also revoke sessions
    db.commit()
    return True


def reactivate_user(db: Session, user: User) -> bool:
    """
    Re-enable a deactivated user account. Idempotent.

    Returns:
        True if the user transitioned from inactive to active
    """
    if user.is_active:
        return False
    user.is_active = True
    user.deactivated_at = None
    user.deactivated_by = None
    db.commit()
    return True


def mark_email_verified(db: Session, user_id: UUID) -> None:
    user = db.get(User, user_id)
    if user is None or user.email_verified:
        return
    user.email_verified = True
    db.commit()


def touch_last_sign_in(db: Session, user_id: UUID) -> None:
    user = db.get(User, user_id)
    if user is None:
        return
    user.last_sign_in_at = datetime.now(timezone.utc)
    db.commit()
