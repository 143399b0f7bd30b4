"""User management API endpoints (superadmin + admin).

Coarse role gating happens in require_permission; hierarchy and shop rules
are enforced inside user_admin_service.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.background import BackgroundDispatcher
from app.core.deps import (
    Pagination,
    get_db,
    get_dispatcher,
    get_email_sender,
    get_identity_directory,
    require_permission,
)
from app.core.policies import POLICIES
from app.db.models import User
from app.schemas.auth import Identity
from app.schemas.user import UserCreate, UserListResponse, UserRead, UserUpdate
from app.services import user_admin_service
from app.services.email_sender import EmailSender
from app.services.identity_platform import IdentityDirectory

router = APIRouter()

_actions = POLICIES["users"].actions


def _user_to_read(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        image_url=user.image_url,
        email_verified=user.email_verified,
        is_active=user.is_active,
        deactivated_at=user.deactivated_at,
        role_code=user.role_code,
        shop_id=user.shop_id,
        shop_code=user.shop.code if user.shop else None,
        created_at=user.created_at,
        updated_at=user.updated_at,
        last_sign_in_at=user.last_sign_in_at,
    )


# =============================================================================
# CRUD
# =============================================================================


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    identity: Identity = Depends(require_permission(_actions["create"])),
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
    email_sender: EmailSender = Depends(get_email_sender),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
):
    """Provision a user and email a password setup link."""
    user = user_admin_service.create_user(
        db,
        identity,
        data,
        directory=directory,
        email_sender=email_sender,
        dispatcher=dispatcher,
    )
    return _user_to_read(user)


@router.get("", response_model=UserListResponse)
def list_users(
    page: Pagination = Depends(),
    identity: Identity = Depends(require_permission(POLICIES["users"].default)),
    db: Session = Depends(get_db),
):
    """List users visible to the caller."""
    users = user_admin_service.list_users(db, identity, limit=page.limit, offset=page.offset)
    return UserListResponse(
        items=[_user_to_read(u) for u in users], limit=page.limit, offset=page.offset
    )


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    identity: Identity = Depends(require_permission(_actions["view"])),
    db: Session = Depends(get_db),
):
    return _user_to_read(user_admin_service.get_user(db, identity, user_id))


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    identity: Identity = Depends(require_permission(_actions["edit"])),
    db: Session = Depends(get_db),
):
    """Partial update; omitted fields are unchanged."""
    return _user_to_read(user_admin_service.update_user(db, identity, user_id, data))


# =============================================================================
# Lifecycle
# =============================================================================


@router.put("/{user_id}/deactivate", response_model=UserRead)
def deactivate_user(
    user_id: UUID,
    identity: Identity = Depends(require_permission(_actions["deactivate"])),
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    user = user_admin_service.deactivate_user(db, identity, user_id, directory=directory)
    return _user_to_read(user)


@router.put("/{user_id}/reactivate", response_model=UserRead)
def reactivate_user(
    user_id: UUID,
    identity: Identity = Depends(require_permission(_actions["reactivate"])),
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    user = user_admin_service.reactivate_user(db, identity, user_id, directory=directory)
    return _user_to_read(user)


@router.post("/{user_id}/resend-password-link", status_code=status.HTTP_202_ACCEPTED)
def resend_password_link(
    user_id: UUID,
    identity: Identity = Depends(require_permission(_actions["resend_setup_link"])),
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
    email_sender: EmailSender = Depends(get_email_sender),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
):
    """Email a fresh password setup link."""
    user_admin_service.resend_password_setup_link(
        db,
        identity,
        user_id,
        directory=directory,
        email_sender=email_sender,
        dispatcher=dispatcher,
    )
    return {"status": "queued"}


@router.post("/{user_id}/revoke-sessions")
def revoke_sessions(
    user_id: UUID,
    identity: Identity = Depends(require_permission(_actions["revoke_sessions"])),
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    """Force logout on every device."""
    version = user_admin_service.revoke_user_sessions(db, identity, user_id, directory=directory)
    return {"token_version": version}
