"""
Authentication resolver tests.

Tests cover:
- Credential failures map to AuthenticationError subclasses
- Provisioning drift (verified token, no local user)
- Deactivated users and revoked token versions
- Identity carries role and shop from the user row
- Sign-in bookkeeping runs detached with its own session
"""

import pytest

from app.core.exceptions import (
    CredentialRevokedError,
    InvalidCredentialError,
    NoCredentialError,
    UserInactiveError,
    UserNotFoundError,
)
from app.db.enums import Role
from app.db.models import User
from app.schemas.auth import ExternalIdentity
from app.services import auth_service, user_service


@pytest.fixture
def resolve(db, identity_platform, dispatcher, session_factory):
    def _resolve(authorization):
        return auth_service.resolve_identity(
            db,
            authorization,
            verifier=identity_platform,
            directory=identity_platform,
            dispatcher=dispatcher,
            session_factory=session_factory,
        )

    return _resolve


def test_missing_header(resolve):
    with pytest.raises(NoCredentialError):
        resolve(None)


def test_unverifiable_token(resolve):
    with pytest.raises(InvalidCredentialError):
        resolve("Bearer not-a-real-token")


def test_unknown_external_user(resolve, identity_platform, roles):
    identity_platform.tokens["orphan"] = ExternalIdentity(uid="ext-nobody", email="x@test.com")
    with pytest.raises(UserNotFoundError):
        resolve("Bearer orphan")


def test_resolves_identity_from_user_row(resolve, identity_platform, make_user, shop_a):
    user = make_user(Role.ADJUSTER, shop_a)
    token = identity_platform.issue_token(user)

    identity = resolve(f"Bearer {token}")

    assert identity.id == user.id
    assert identity.role_code == Role.ADJUSTER
    assert identity.shop_id == shop_a.id
    assert identity.email == user.email
    assert identity.token_version == 1


def test_inactive_user_rejected(resolve, identity_platform, make_user, db):
    actor = make_user(Role.SUPERADMIN)
    user = make_user(Role.ADMIN)
    token = identity_platform.issue_token(user)
    user_service.deactivate_user(db, user, actor.id)

    with pytest.raises(UserInactiveError):
        resolve(f"Bearer {token}")


def test_token_without_claim_is_revoked_after_bump(resolve, identity_platform, make_user, db):
    user = make_user(Role.BODYMAN, token_version=1)
    old_token = identity_platform.issue_token(user)
    resolve(f"Bearer {old_token}")

    user_service.revoke_all_sessions(db, user)

    with pytest.raises(CredentialRevokedError):
        resolve(f"Bearer {old_token}")


def test_token_with_current_claim_passes(resolve, identity_platform, make_user):
    user = make_user(Role.BODYMAN, token_version=3)
    stale = identity_platform.issue_token(user, token_version=2)
    fresh = identity_platform.issue_token(user, token_version=3)

    with pytest.raises(CredentialRevokedError):
        resolve(f"Bearer {stale}")
    assert resolve(f"Bearer {fresh}").token_version == 3


def test_sign_in_bookkeeping_is_detached(resolve, identity_platform, make_user, dispatcher, db):
    user = make_user(Role.ADJUSTER, email_verified=False)
    token = identity_platform.issue_token(user)

    resolve(f"Bearer {token}")

    # Nothing has run yet: the request never waits on bookkeeping
    assert len(dispatcher.tasks) == 2
    assert identity_platform.called("set_email_verified") == []

    dispatcher.run_all()

    assert identity_platform.called("set_email_verified") == [
        ("set_email_verified", user.external_id, True)
    ]
    db.expire_all()
    refreshed = db.get(User, user.id)
    assert refreshed.email_verified is True
    assert refreshed.last_sign_in_at is not None


def test_verified_user_only_touches_last_sign_in(resolve, identity_platform, make_user, dispatcher):
    user = make_user(Role.ADJUSTER, email_verified=True)
    resolve(f"Bearer {identity_platform.issue_token(user)}")

    assert len(dispatcher.tasks) == 1
    assert "last sign-in" in dispatcher.tasks[0].description
