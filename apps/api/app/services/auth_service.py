"""Authentication service - resolve a bearer token into a caller Identity."""

import logging
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.background import BackgroundDispatcher
from app.core.exceptions import (
    CredentialRevokedError,
    ForbiddenError,
    UserInactiveError,
    UserNotFoundError,
)
from app.core.security import extract_bearer_token
from app.db.enums import Role
from app.schemas.auth import Identity
from app.services import user_service
from app.services.identity_platform import IdentityDirectory, TokenVerifier

logger = logging.getLogger(__name__)


def resolve_identity(
    db: Session,
    authorization: str | None,
    *,
    verifier: TokenVerifier,
    directory: IdentityDirectory,
    dispatcher: BackgroundDispatcher,
    session_factory: Callable[[], Session],
) -> Identity:
    """
    Authenticate a request.

    Validates:
    - Bearer credential present and well-formed
    - Token verified by the identity platform
    - User row exists for the token subject and is active
    - Token version claim (when present) is current (revocation support)

    Side effects (detached, never block or fail the request):
    - First sign-in: mark email verified upstream and locally
    - Record last sign-in time

    Raises:
        AuthenticationError subclass on any failure
    """
    token = extract_bearer_token(authorization)
    external = verifier.verify(token)

    user = user_service.get_user_by_external_id(db, external.uid)
    if user is None:
        # Valid upstream identity with no local row: provisioning drift
        logger.warning("Verified identity has no local user (uid=%s)", external.uid)
        raise UserNotFoundError("no local user for identity")

    if not user.is_active:
        raise UserInactiveError("account disabled")

    # Tokens minted before any revocation carry no claim (version 1)
    if (external.token_version or 1) < user.token_version:
        raise CredentialRevokedError("session revoked")

    if not Role.has_value(user.role_code):
        # Seeded roles only; an unknown code means the row is corrupt
        logger.error("User %s has unknown role %r", user.id, user.role_code)
        raise ForbiddenError(f"Unknown role '{user.role_code}'. Contact administrator.")

    if not user.email_verified:
        dispatcher.submit(
            f"mark email verified for user {user.id}",
            mark_email_verified,
            session_factory,
            directory,
            user.id,
            external.uid,
        )
    dispatcher.submit(
        f"touch last sign-in for user {user.id}",
        touch_last_sign_in,
        session_factory,
        user.id,
    )

    return Identity(
        id=user.id,
        email=user.email,
        external_id=user.external_id,
        role_code=Role(user.role_code),
        shop_id=user.shop_id,
        token_version=user.token_version,
        is_active=user.is_active,
    )


# =============================================================================
# Background tasks (own session, never the request's)
# =============================================================================

def mark_email_verified(
    session_factory: Callable[[], Session],
    directory: IdentityDirectory,
    user_id: UUID,
    external_uid: str,
) -> None:
    """Reaching sign-in proves the user owns the mailbox (setup link was emailed)."""
    directory.set_email_verified(external_uid, True)
    db = session_factory()
    try:
        user_service.mark_email_verified(db, user_id)
    finally:
        db.close()
    logger.info("Email verified on first sign-in for user %s", user_id)


def touch_last_sign_in(session_factory: Callable[[], Session], user_id: UUID) -> None:
    db = session_factory()
    try:
        user_service.touch_last_sign_in(db, user_id)
    finally:
        db.close()
