"""Admin CLI commands against the test database."""

import logging

import pytest
from click.testing import CliRunner
from sqlalchemy import func, select

from app import cli as cli_module
from app.cli import cli
from app.core.exceptions import ConflictError
from app.db.enums import Role
from app.db.models import Shop, SystemRole, User
from app.services import user_service


@pytest.fixture
def runner(monkeypatch, session_factory) -> CliRunner:
    monkeypatch.setattr(cli_module, "SessionLocal", session_factory)
    return CliRunner()


@pytest.fixture
def cli_platform(monkeypatch, identity_platform):
    platform = identity_platform
    platform.open = lambda: platform.calls.append(("open",))
    platform.close = lambda: platform.calls.append(("close",))
    monkeypatch.setattr(
        cli_module.GoogleIdentityPlatform, "from_settings", classmethod(lambda cls: platform)
    )
    return platform


def test_seed_roles_is_idempotent(runner, db):
    first = runner.invoke(cli, ["seed-roles"])
    second = runner.invoke(cli, ["seed-roles"])

    assert first.exit_code == 0
    assert "Seeded roles" in first.output
    assert second.exit_code == 0
    assert "already present" in second.output
    assert db.scalar(select(func.count()).select_from(SystemRole)) == len(Role)


SHOP_ARGS = [
    "create-shop",
    "--code", "tor01",
    "--name", "Toronto Collision",
    "--address", "10 King St",
    "--city", "Toronto",
    "--province", "on",
    "--postal-code", "m5h 1a1",
    "--contact-name", "Jo Tan",
    "--phone", "416-555-0199",
    "--email", "Desk@Toronto.test",
]


def test_create_shop_normalizes_and_rejects_duplicates(runner, db):
    created = runner.invoke(cli, SHOP_ARGS)
    assert created.exit_code == 0, created.output

    shop = db.scalar(select(Shop).where(Shop.code == "TOR01"))
    assert shop.province == "ON"
    assert shop.postal_code == "M5H1A1"
    assert shop.email == "desk@toronto.test"

    duplicate = runner.invoke(cli, SHOP_ARGS)
    assert duplicate.exit_code != 0
    assert "already exists" in duplicate.output


def test_create_shop_validation_error(runner):
    args = [*SHOP_ARGS]
    args[args.index("416-555-0199")] = "4165550199"

    result = runner.invoke(cli, args)

    assert result.exit_code != 0
    assert "phone" in result.output


def test_create_superadmin_prints_setup_link(runner, cli_platform, roles, db):
    result = runner.invoke(
        cli,
        ["create-superadmin", "--email", "Ops@Shop.test", "--first-name", "Ada", "--last-name", "Ng"],
    )

    assert result.exit_code == 0, result.output
    assert "https://auth.test/reset?email=ops@shop.test" in result.output
    user = db.scalar(select(User).where(User.email == "ops@shop.test"))
    assert user.role_code == Role.SUPERADMIN.value
    assert user.shop_id is None
    assert cli_platform.called("create_passwordless_account")


def test_create_superadmin_failed_rollback_keeps_original_error(
    runner, cli_platform, roles, monkeypatch, caplog
):
    def _conflict(*args, **kwargs):
        raise ConflictError("user already exists")

    monkeypatch.setattr(user_service, "create_user", _conflict)
    cli_platform.failing.add("delete_account")

    with caplog.at_level(logging.ERROR, logger="app.cli"):
        result = runner.invoke(
            cli,
            ["create-superadmin", "--email", "ops@shop.test", "--first-name", "Ada", "--last-name", "Ng"],
        )

    assert result.exit_code != 0
    assert "user already exists" in result.output
    assert "delete_account failed" not in result.output
    assert cli_platform.called("delete_account")
    assert "roll back identity account" in caplog.text


def test_create_superadmin_requires_seeded_roles(runner, cli_platform):
    result = runner.invoke(
        cli,
        ["create-superadmin", "--email", "ops@shop.test", "--first-name", "Ada", "--last-name", "Ng"],
    )

    assert result.exit_code != 0
    assert "seed-roles" in result.output
    assert not cli_platform.called("create_passwordless_account")


def test_force_logout_bumps_version_and_claim(runner, cli_platform, make_user, shop_a, db):
    user = make_user(Role.BODYMAN, shop_a)

    result = runner.invoke(cli, ["force-logout", "--email", user.email])

    assert result.exit_code == 0, result.output
    db.expire_all()
    assert db.get(User, user.id).token_version == 2
    assert cli_platform.claims[user.external_id] == {"token_version": 2}
    assert cli_platform.called("revoke_refresh_tokens")


def test_force_logout_unknown_user(runner, cli_platform):
    result = runner.invoke(cli, ["force-logout", "--email", "ghost@shop.test"])

    assert result.exit_code != 0
    assert "User not found" in result.output
