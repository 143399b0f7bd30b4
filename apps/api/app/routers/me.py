"""Current-user endpoints (/me). Always refer to the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_permission
from app.core.policies import POLICIES
from app.schemas.auth import Identity, MeResponse, ProfileUpdate
from app.services import profile_service

router = APIRouter()


@router.get("", response_model=MeResponse)
def get_me(
    identity: Identity = Depends(require_permission(POLICIES["profile"].default)),
    db: Session = Depends(get_db),
):
    """Get the current user with role and shop."""
    return profile_service.get_profile(db, identity)


@router.put("", response_model=MeResponse)
def update_me(
    data: ProfileUpdate,
    identity: Identity = Depends(require_permission(POLICIES["profile"].actions["edit"])),
    db: Session = Depends(get_db),
):
    """Update own phone and profile image."""
    return profile_service.update_profile(db, identity, data)
