"""Services package"""

from .vps_store import VpsStore
from .renewal import RenewalEngine
from .acknowledgment import RenewalAcknowledgment
from .dashboard import DashboardView
from .auth import AdminSessionStore

__all__ = [
    "VpsStore",
    "RenewalEngine",
    "RenewalAcknowledgment",
    "DashboardView",
    "AdminSessionStore"
]
