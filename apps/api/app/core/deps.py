"""FastAPI dependencies for authentication, authorization, and database access."""

import logging
from typing import Generator
from uuid import UUID

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from app.core.background import BackgroundDispatcher
from app.core.config import settings
from app.core.exceptions import AuthenticationError, ForbiddenError
from app.core.permissions import PermissionKey, can
from app.core.shop_scope import resolve_shop_scope
from app.core.structured_logging import build_log_context
from app.db.session import SessionLocal
from app.schemas.auth import Identity
from app.services import auth_service
from app.services.email_sender import EmailSender
from app.services.identity_platform import IdentityDirectory, TokenVerifier

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Factory for sessions that outlive the request (background tasks)."""
    return SessionLocal


# =============================================================================
# Process-wide clients (created in the lifespan, stored on app.state)
# =============================================================================

def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.identity_platform


def get_identity_directory(request: Request) -> IdentityDirectory:
    return request.app.state.identity_platform


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


def get_dispatcher(request: Request) -> BackgroundDispatcher:
    return request.app.state.dispatcher


# =============================================================================
# Authentication
# =============================================================================

def get_current_identity(
    request: Request,
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
    verifier: TokenVerifier = Depends(get_token_verifier),
    directory: IdentityDirectory = Depends(get_identity_directory),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
    session_factory=Depends(get_session_factory),
) -> Identity:
    """
    Get the authenticated caller.

    This is the PRIMARY auth dependency for every protected endpoint.

    Raises:
        AuthenticationError: reason logged here, response is a generic 401
    """
    try:
        return auth_service.resolve_identity(
            db,
            authorization,
            verifier=verifier,
            directory=directory,
            dispatcher=dispatcher,
            session_factory=session_factory,
        )
    except AuthenticationError as exc:
        logger.info(
            "Authentication failed: %s",
            exc.reason,
            extra=build_log_context(
                request_id=request.headers.get("X-Request-ID"),
                route=request.url.path,
                method=request.method,
                reason=exc.reason,
            ),
        )
        raise


def require_permission(permission: PermissionKey):
    """
    Dependency factory for operation-level authorization (static table).

    Usage:
        identity: Identity = Depends(require_permission(POLICIES["users"].actions["create"]))
    """
    def dependency(request: Request, identity: Identity = Depends(get_current_identity)) -> Identity:
        if not can(identity.role_code, permission):
            logger.info(
                "Permission denied: %s",
                permission.value,
                extra=build_log_context(
                    user_id=str(identity.id),
                    shop_id=str(identity.shop_id) if identity.shop_id else None,
                    route=request.url.path,
                    method=request.method,
                ),
            )
            raise ForbiddenError(f"Missing permission: {permission.value}")
        return identity
    return dependency


def get_shop_scope(identity: Identity = Depends(get_current_identity)) -> UUID | None:
    """
    Get shop_id for query scoping (None = all shops, superadmin only).

    Raises:
        NoShopAssignmentError: non-superadmin without a shop
    """
    return resolve_shop_scope(identity)


# =============================================================================
# Pagination
# =============================================================================

class Pagination:
    def __init__(
        self,
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
        offset: int = Query(0, ge=0),
    ):
        self.limit = limit
        self.offset = offset
