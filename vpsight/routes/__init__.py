"""API Routes package"""

from .vps import router as vps_router
from .auth import router as auth_router
from .instances import router as instances_router
from .dashboard import router as dashboard_router

__all__ = [
    "vps_router",
    "auth_router",
    "instances_router",
    "dashboard_router"
]
