"""Work order intake models: customers, vehicles, work orders, insurance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
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


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(6), nullable=False)
    province: Mapped[str] = mapped_column(String(2), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plate_no: Mapped[str] = mapped_column(String(20), nullable=False)
    make: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    body_style: Mapped[str | None] = mapped_column(String(50), nullable=True)
    model_year: Mapped[int] = mapped_column(Integer, nullable=False)
    vin: Mapped[str | None] = mapped_column(String(17), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class WorkOrder(Base):
    """
    Repair job tied to one customer, one vehicle, and one shop.

    shop_id is always derived from the creating user's scope.
    """

    __tablename__ = "work_orders"
    __table_args__ = (
        Index("idx_work_orders_shop_created", "shop_id", "created_at"),
        CheckConstraint(
            "status IN ('waiting_for_inspection', 'in_progress', 'completed', "
            "'follow_up_needed', 'awaiting_info')",
            name="ck_work_orders_status_valid",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32),
        server_default=text("'waiting_for_inspection'"),
        default="waiting_for_inspection",
        nullable=False,
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False
    )
    shop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shops.id", ondelete="RESTRICT"), nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    damage_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    customer: Mapped["Customer"] = relationship(lazy="joined")
    vehicle: Mapped["Vehicle"] = relationship(lazy="joined")
    shop: Mapped["Shop"] = relationship(back_populates="work_orders", lazy="joined")
    insurance: Mapped["Insurance | None"] = relationship(
        back_populates="work_order", uselist=False, lazy="joined"
    )


class Insurance(Base):
    """Optional insurance details, at most one row per work order."""

    __tablename__ = "insurances"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("work_orders.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    insurance_company: Mapped[str] = mapped_column(String(255), nullable=False)
    agent_first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    agent_last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    agent_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    policy_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    claim_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    work_order: Mapped["WorkOrder"] = relationship(back_populates="insurance")

    @property
    def agent_full_name(self) -> str:
        return " ".join(p for p in (self.agent_first_name, self.agent_last_name) if p)
