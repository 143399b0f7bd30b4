"""SQLAlchemy ORM models for roles and users."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models import Shop


class SystemRole(Base):
    """
    System role row.

    Rows are seeded by migration (superadmin, admin, adjuster, bodyman)
    and referenced by users.role_id. The API never creates roles.
    """

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_system: Mapped[bool] = mapped_column(
        Boolean, server_default=text("true"), default=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    users: Mapped[list["User"]] = relationship(back_populates="role")


class User(Base):
    """
    Dashboard user.

    Credentials live with the external identity platform; the row is linked
    to it through external_id. Users are deactivated, never deleted.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_shop_id", "shop_id"),
        Index("idx_users_role_id", "role_id"),
        CheckConstraint(
            "(deactivated_at IS NULL AND deactivated_by IS NULL) OR "
            "(deactivated_at IS NOT NULL AND deactivated_by IS NOT NULL)",
            name="ck_users_deactivation_pair",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    external_id: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    email_verified: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, server_default=text("true"), default=True, nullable=False
    )
    deactivated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    deactivated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    # Bumped to revoke every outstanding session
    token_version: Mapped[int] = mapped_column(
        Integer, server_default=text("1"), default=1, nullable=False
    )

    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=False
    )
    shop_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("shops.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
    last_sign_in_at: Mapped[datetime | None] = mapped_column(nullable=True)

    role: Mapped["SystemRole"] = relationship(back_populates="users", lazy="joined")
    shop: Mapped["Shop | None"] = relationship(back_populates="users", lazy="joined")

    @property
    def role_code(self) -> str:
        return self.role.code

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
