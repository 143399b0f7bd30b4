"""CLI tools for platform administration (bootstrap and break-glass)."""

import logging

import click
from sqlalchemy import select

from app.core.exceptions import AppError, ExternalServiceError
from app.db.enums import ROLE_DISPLAY_NAMES, Role
from app.db.models import SystemRole
from app.db.session import SessionLocal
from app.schemas.shop import ShopCreate
from app.services import shop_service, user_service
from app.services.identity_platform import TOKEN_VERSION_CLAIM, GoogleIdentityPlatform

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Autobody admin CLI tools."""
    pass


@cli.command()
def seed_roles():
    """
    Insert any missing system roles. Safe to re-run.

    Example:
        python -m app.cli seed-roles
    """
    db = SessionLocal()
    try:
        existing = set(db.execute(select(SystemRole.code)).scalars().all())
        created = []
        for role in Role:
            if role.value in existing:
                continue
            db.add(SystemRole(code=role.value, name=ROLE_DISPLAY_NAMES[role], is_system=True))
            created.append(role.value)
        db.commit()
        if created:
            click.echo(f"✓ Seeded roles: {', '.join(created)}")
        else:
            click.echo("✓ All roles already present")
    finally:
        db.close()


@cli.command()
@click.option("--code", required=True, help="Shop code (2-10 characters)")
@click.option("--name", "shop_name", required=True, help="Shop name")
@click.option("--address", required=True)
@click.option("--city", required=True)
@click.option("--province", required=True, help="Two-letter province code")
@click.option("--postal-code", required=True)
@click.option("--contact-name", required=True)
@click.option("--phone", required=True)
@click.option("--email", required=True)
def create_shop(code, shop_name, address, city, province, postal_code, contact_name, phone, email):
    """
    Register a shop.

    Example:
        python -m app.cli create-shop --code TOR01 --name "Toronto Collision" ...
    """
    data = ShopCreate(
        code=code,
        shop_name=shop_name,
        address=address,
        city=city,
        province=province,
        postal_code=postal_code,
        contact_name=contact_name,
        phone=phone,
        email=email,
    )
    db = SessionLocal()
    try:
        shop = shop_service.register_shop(db, data)
        click.echo(f"✓ Created shop {shop.code}")
        click.echo(f"  ID: {shop.id}")
    except AppError as e:
        db.rollback()
        raise click.ClickException(str(e)) from e
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="Superadmin email address")
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
def create_superadmin(email: str, first_name: str, last_name: str):
    """
    Provision the first superadmin and print a password setup link.

    Example:
        python -m app.cli create-superadmin --email ops@example.com --first-name Ada --last-name Ng
    """
    email = email.strip().lower()
    platform = GoogleIdentityPlatform.from_settings()
    db = SessionLocal()
    try:
        role = user_service.get_role_by_code(db, Role.SUPERADMIN.value)
        if role is None:
            raise click.ClickException("Roles not seeded; run seed-roles first")
        if user_service.get_user_by_email(db, email) is not None:
            raise click.ClickException(f"User already exists: {email}")

        platform.open()
        external_id = platform.create_passwordless_account(email, first_name, last_name)
        try:
            user = user_service.create_user(
                db,
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                role_id=role.id,
                shop_id=None,
                external_id=external_id,
            )
        except AppError:
            try:
                platform.delete_account(external_id)
            except ExternalServiceError:
                logger.exception(
                    "Failed to roll back identity account %s after user insert failure",
                    external_id,
                )
            raise
        link = platform.generate_password_reset_link(email)

        click.echo(f"✓ Created superadmin {email}")
        click.echo(f"  ID: {user.id}")
        click.echo(f"→ Password setup link: {link}")
    except AppError as e:
        raise click.ClickException(str(e)) from e
    finally:
        db.close()
        platform.close()


@cli.command()
@click.option("--email", required=True, help="User email to force logout")
def force_logout(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli force-logout --email "user@example.com"
    """
    platform = GoogleIdentityPlatform.from_settings()
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"User not found: {email}")

        old_version = user.token_version
        if user.external_id:
            platform.open()
            platform.set_custom_claims(user.external_id, {TOKEN_VERSION_CLAIM: old_version + 1})
            platform.revoke_refresh_tokens(user.external_id)
        new_version = user_service.revoke_all_sessions(db, user)

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {new_version}")
    except AppError as e:
        db.rollback()
        raise click.ClickException(str(e)) from e
    finally:
        db.close()
        platform.close()


if __name__ == "__main__":
    cli()
