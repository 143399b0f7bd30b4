"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, recreated for each test
- Seeded system roles, two shops, and a user factory
- Fake identity platform (token verifier + account directory)
- Recording email sender and background dispatcher
- HTTPX AsyncClient wired to the fakes through dependency overrides
"""
import inspect
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Callable, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("EMAIL_PROVIDER", "log")

from app.core.background import run_coroutine  # noqa: E402
from app.core.deps import (  # noqa: E402
    get_db,
    get_dispatcher,
    get_email_sender,
    get_identity_directory,
    get_session_factory,
    get_token_verifier,
)
from app.core.exceptions import (  # noqa: E402
    ExternalAccountExistsError,
    ExternalServiceError,
    InvalidCredentialError,
)
from app.db.base import Base  # noqa: E402
from app.db.enums import ROLE_DISPLAY_NAMES, Role  # noqa: E402
from app.db.models import Shop, SystemRole, User  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas.auth import ExternalIdentity, Identity  # noqa: E402


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test (one shared connection)."""
    test_engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def roles(db: Session) -> dict[Role, SystemRole]:
    """Seed the four system roles."""
    rows = {}
    for role in Role:
        row = SystemRole(code=role.value, name=ROLE_DISPLAY_NAMES[role], is_system=True)
        db.add(row)
        rows[role] = row
    db.commit()
    return rows


def _make_shop(db: Session, code: str, name: str) -> Shop:
    shop = Shop(
        code=code,
        shop_name=name,
        status="active",
        address="100 King St W",
        city="Toronto",
        province="ON",
        postal_code="M5X1A9",
        contact_name="Pat Lee",
        phone="416-555-0100",
        email=f"{code.lower()}@shops.test",
    )
    db.add(shop)
    db.commit()
    return shop


@pytest.fixture(scope="function")
def shop_a(db: Session) -> Shop:
    return _make_shop(db, "SHOPA", "Shop A Collision")


@pytest.fixture(scope="function")
def shop_b(db: Session) -> Shop:
    return _make_shop(db, "SHOPB", "Shop B Autobody")


@pytest.fixture(scope="function")
def make_user(db: Session, roles) -> Callable[..., User]:
    """Factory: make_user(Role.ADMIN, shop=shop_a, email=...)."""

    def _make(role: Role, shop: Shop | None = None, **overrides: Any) -> User:
        suffix = uuid.uuid4().hex[:8]
        values = {
            "email": f"{role.value}-{suffix}@test.com",
            "first_name": role.value.title(),
            "last_name": "Tester",
            "external_id": f"ext-{suffix}",
            "email_verified": True,
            "role_id": roles[role].id,
            "shop_id": shop.id if shop else None,
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.commit()
        return user

    return _make


def identity_for(user: User) -> Identity:
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
# Fakes
# =============================================================================

class FakeIdentityPlatform:
    """In-memory token verifier and account directory."""

    def __init__(self):
        self.tokens: dict[str, ExternalIdentity] = {}
        self.calls: list[tuple] = []
        self.existing_emails: set[str] = set()
        self.failing: set[str] = set()
        self.claims: dict[str, dict] = {}
        self.disabled: set[str] = set()
        self.accounts: dict[str, str] = {}

    def issue_token(self, user: User, *, token_version: int | None = None) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = ExternalIdentity(
            uid=user.external_id,
            email=user.email,
            email_verified=user.email_verified,
            token_version=token_version,
        )
        return token

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise ExternalServiceError(f"{name} failed")

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def verify(self, token: str) -> ExternalIdentity:
        identity = self.tokens.get(token)
        if identity is None:
            raise InvalidCredentialError("unknown token")
        return identity

    def create_passwordless_account(self, email: str, first_name: str, last_name: str) -> str:
        self._record("create_passwordless_account", email)
        if email in self.existing_emails:
            raise ExternalAccountExistsError("EMAIL_EXISTS")
        self.existing_emails.add(email)
        uid = f"ext-{uuid.uuid4().hex[:12]}"
        self.accounts[uid] = email
        return uid

    def delete_account(self, uid: str) -> None:
        self._record("delete_account", uid)
        self.existing_emails.discard(self.accounts.pop(uid, None))

    def disable_account(self, uid: str) -> None:
        self._record("disable_account", uid)
        self.disabled.add(uid)

    def enable_account(self, uid: str) -> None:
        self._record("enable_account", uid)
        self.disabled.discard(uid)

    def generate_password_reset_link(self, email: str) -> str:
        self._record("generate_password_reset_link", email)
        return f"https://auth.test/reset?email={email}"

    def set_email_verified(self, uid: str, verified: bool) -> None:
        self._record("set_email_verified", uid, verified)

    def set_custom_claims(self, uid: str, claims: dict) -> None:
        self._record("set_custom_claims", uid, claims)
        self.claims[uid] = dict(claims)

    def revoke_refresh_tokens(self, uid: str) -> None:
        self._record("revoke_refresh_tokens", uid)


class RecordingEmailSender:
    key = "recording"

    def __init__(self):
        self.sent: list[tuple[str, str, str, str]] = []

    async def send_welcome_setup(self, email: str, first_name: str, link: str) -> None:
        self.sent.append(("welcome", email, first_name, link))

    async def send_setup_reminder(self, email: str, first_name: str, link: str) -> None:
        self.sent.append(("reminder", email, first_name, link))


@dataclass
class SubmittedTask:
    description: str
    fn: Callable[..., Any]
    args: tuple
    kwargs: dict = field(default_factory=dict)


class RecordingDispatcher:
    """Collects submitted tasks; run_all() executes them in the calling thread."""

    def __init__(self):
        self.tasks: list[SubmittedTask] = []

    def submit(self, description: str, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        self.tasks.append(SubmittedTask(description, fn, args, kwargs))
        return None

    def descriptions(self) -> list[str]:
        return [task.description for task in self.tasks]

    def run_all(self) -> None:
        """Only call from sync tests (coroutines run on a private loop)."""
        tasks, self.tasks = self.tasks, []
        for task in tasks:
            if inspect.iscoroutinefunction(task.fn):
                run_coroutine(task.fn, *task.args, **task.kwargs)
            else:
                task.fn(*task.args, **task.kwargs)

    def shutdown(self, wait: bool = True) -> None:
        pass


@pytest.fixture(scope="function")
def identity_platform() -> FakeIdentityPlatform:
    return FakeIdentityPlatform()


@pytest.fixture(scope="function")
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture(scope="function")
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(
    db: Session,
    session_factory,
    identity_platform: FakeIdentityPlatform,
    email_sender: RecordingEmailSender,
    dispatcher: RecordingDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient with every external collaborator replaced by a fake."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_token_verifier] = lambda: identity_platform
    app.dependency_overrides[get_identity_directory] = lambda: identity_platform
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def auth_headers(identity_platform: FakeIdentityPlatform) -> Callable[[User], dict[str, str]]:
    """auth_headers(user) -> Authorization header carrying a fresh token."""

    def _headers(user: User, **kwargs: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {identity_platform.issue_token(user, **kwargs)}"}

    return _headers


@pytest.fixture(scope="function")
def as_identity() -> Callable[[User], Identity]:
    return identity_for
