"""Database models package"""

from .database import (
    Base, VpsInstance,
    get_db_context, init_db
)
from .schemas import (
    BillingSeverity, BillingStatus, RenewalErrorKind, RenewalResult,
    AcknowledgmentState, AcknowledgmentResponse,
    VpsInstanceCreate, VpsInstanceUpdate, VpsInstanceResponse,
    VpsData, DashboardRow, DashboardResponse,
    LoginRequest, LoginResponse, SessionStatus
)

__all__ = [
    "Base", "VpsInstance",
    "get_db_context", "init_db",
    "BillingSeverity", "BillingStatus", "RenewalErrorKind", "RenewalResult",
    "AcknowledgmentState", "AcknowledgmentResponse",
    "VpsInstanceCreate", "VpsInstanceUpdate", "VpsInstanceResponse",
    "VpsData", "DashboardRow", "DashboardResponse",
    "LoginRequest", "LoginResponse", "SessionStatus"
]
