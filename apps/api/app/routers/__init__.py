"""API routers."""

from app.routers.me import router as me_router
from app.routers.shops import router as shops_router
from app.routers.users import router as users_router
from app.routers.work_orders import router as work_orders_router

__all__ = [
    "me_router",
    "shops_router",
    "users_router",
    "work_orders_router",
]
