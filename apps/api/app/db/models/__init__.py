"""ORM models, re-exported so `from app.db.models import X` works everywhere."""

from app.db.models.auth import SystemRole, User
from app.db.models.shops import Shop
from app.db.models.work_orders import Customer, Insurance, Vehicle, WorkOrder

__all__ = [
    "Customer",
    "Insurance",
    "SystemRole",
    "Shop",
    "User",
    "Vehicle",
    "WorkOrder",
]
