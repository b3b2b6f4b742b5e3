"""
Pydantic Schemas for VPSight API

Request/Response models for the dashboard and admin API.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple, Union

from dateutil.parser import isoparse
from pydantic import BaseModel, Field, ConfigDict, field_validator


# ============================================
# Billing Schemas
# ============================================

class BillingSeverity(str, Enum):
    """Urgency band of a billing period"""
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    EXPIRED = "expired"


class RenewalErrorKind(str, Enum):
    """Reasons a renewal is refused"""
    INVALID_DATE = "invalid_date"
    UNSUPPORTED_CYCLE = "unsupported_cycle"
    INVALID_STATE = "invalid_state"
    RECORD_NOT_FOUND = "record_not_found"


class AcknowledgmentState(str, Enum):
    """Operator authorization for an unattended renewal"""
    UNACKNOWLEDGED = "unacknowledged"
    ACKNOWLEDGED = "acknowledged"
    RENEWING = "renewing"


# Integer days, or the "Expired" / "N/A" sentinels
DaysRemaining = Union[int, str]


class BillingStatus(BaseModel):
    """Billing values computed for one record at render time"""
    end_date: Optional[str] = None
    cycle: Optional[str] = None
    start_date: Optional[str] = None
    total_days_in_cycle: int = 0
    days_remaining: DaysRemaining = "N/A"
    days_remaining_label: str = "N/A"
    percentage: float = 0.0
    severity: Optional[BillingSeverity] = None
    color: str = "muted"


class RenewalResult(BaseModel):
    """Outcome of a renewal attempt"""
    success: bool
    record_id: int
    new_end_date: Optional[str] = None
    error: Optional[RenewalErrorKind] = None
    message: str = ""


# ============================================
# VPS Instance Schemas (admin record management)
# ============================================

def _validate_billing_date(value: Optional[str]) -> Optional[str]:
    """Empty form fields are stored as NULL; anything else must be YYYY-MM-DD."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return parsed.date().isoformat()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class VpsInstanceBase(BaseModel):
    """Editable fields of a VPS instance"""
    type: Optional[str] = None
    group_name: Optional[str] = None
    country_region: Optional[str] = None
    note_billing_start_date: Optional[str] = None
    note_billing_end_date: Optional[str] = None
    note_billing_cycle: Optional[str] = None
    note_billing_amount: Optional[str] = None
    note_plan_bandwidth: Optional[str] = None
    note_plan_traffic_type: Optional[int] = Field(None, ge=0, le=2)

    @field_validator("note_billing_start_date", "note_billing_end_date")
    @classmethod
    def check_billing_date(cls, value):
        return _validate_billing_date(value)

    @field_validator(
        "type", "group_name", "country_region", "note_billing_cycle",
        "note_billing_amount", "note_plan_bandwidth"
    )
    @classmethod
    def strip_blank(cls, value):
        return _blank_to_none(value)


class VpsInstanceCreate(VpsInstanceBase):
    """Schema for adding a VPS instance"""
    name: str = Field(..., min_length=1, description="Display name")
    note_plan_traffic_type: Optional[int] = Field(0, ge=0, le=2)

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class VpsInstanceUpdate(VpsInstanceBase):
    """Schema for editing a VPS instance"""
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class VpsInstanceResponse(VpsInstanceBase):
    """Schema for a VPS instance in admin API responses"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    ip_address: Optional[str] = None
    agent_version: Optional[str] = None
    secret: str
    install_command: str
    created_at: datetime
    updated_at: Optional[datetime] = None


# ============================================
# Dashboard Schemas (public feed)
# ============================================

class CpuInfo(BaseModel):
    model: str = "N/A"
    cores: int = 0
    usage: float = 0.0


class UsageInfo(BaseModel):
    used: str
    total: str
    percentage: float = 0.0


class SwapInfo(BaseModel):
    status: str = "OFF"
    used: Optional[str] = None
    total: Optional[str] = None
    percentage: Optional[float] = 0.0


class NetworkInfo(BaseModel):
    total_in: str = "0 GB"
    total_out: str = "0 GB"
    current_month_in: str = "0 GB"
    current_month_out: str = "0 GB"


class ConnectionInfo(BaseModel):
    tcp: int = 0
    udp: int = 0


class VpsData(BaseModel):
    """
    One row of the public dashboard.

    Metric fields are placeholders until an agent reports real values.
    """
    id: str
    name: str
    status: str = "offline"
    system: str = "Unknown OS"
    country_region: str = "N/A"
    price: str = "N/A"
    uptime: str = "N/A"
    load: float = 0.0
    nic_down: str = "0 KB/s"
    nic_up: str = "0 KB/s"
    cpu: CpuInfo = Field(default_factory=CpuInfo)
    disk: UsageInfo = Field(default_factory=lambda: UsageInfo(used="0 GB", total="0 GB"))
    ram: UsageInfo = Field(default_factory=lambda: UsageInfo(used="0 MB", total="0 MB"))
    swap: SwapInfo = Field(default_factory=SwapInfo)
    network: NetworkInfo = Field(default_factory=NetworkInfo)
    load_average: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    process_count: int = 0
    connections: ConnectionInfo = Field(default_factory=ConnectionInfo)
    boot_time: Optional[datetime] = None
    last_active: Optional[datetime] = None
    ip_address: Optional[str] = None
    agent_version: Optional[str] = None
    billing_cycle: Optional[str] = None
    plan_bandwidth: Optional[str] = None
    plan_traffic_type: str = "N/A"
    billing: BillingStatus = Field(default_factory=BillingStatus)


# ============================================
# Admin Dashboard & Acknowledgment Schemas
# ============================================

class DashboardRow(BaseModel):
    """A record as shown in the admin dashboard"""
    slot: int
    instance: VpsInstanceResponse
    billing: BillingStatus
    acknowledgment: AcknowledgmentState
    confirmation_pending: bool = False
    renewal: Optional[RenewalResult] = None


class DashboardResponse(BaseModel):
    """Admin dashboard snapshot after a refresh"""
    rows: List[DashboardRow]
    total: int
    renewals_attempted: int = 0
    generated_at: datetime


class AcknowledgmentResponse(BaseModel):
    """Acknowledgment state after an operator action"""
    record_id: int
    state: AcknowledgmentState
    confirmation_pending: bool = False
    message: str


# ============================================
# Admin Session Schemas
# ============================================

class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    success: bool
    error: Optional[str] = None


class SessionStatus(BaseModel):
    authenticated: bool
    expires_at: Optional[datetime] = None
