"""
Billing Cycle Service

Turns a free-text billing cycle ("Monthly", "2 months", "Bi-Annually",
"30 days") and a billing end date into the current billing window, the days
left until the end date, and a progress/severity pair for display.

Every function here is pure: "now" is always passed in by the caller.
"""

import logging
import re
from calendar import monthrange
from datetime import date, datetime, timedelta
from enum import Enum
from typing import NamedTuple, Optional, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from ..models.schemas import BillingSeverity, BillingStatus, DaysRemaining

logger = logging.getLogger(__name__)


EXPIRED = "Expired"
NOT_AVAILABLE = "N/A"

DEFAULT_WARNING_DAYS = 15
DEFAULT_CRITICAL_DAYS = 7
FALLBACK_CYCLE_DAYS = 30

SEVERITY_COLORS = {
    BillingSeverity.SAFE: "green",
    BillingSeverity.WARNING: "orange",
    BillingSeverity.CRITICAL: "red",
    BillingSeverity.EXPIRED: "muted",
}

DateLike = Union[date, datetime, str, None]

_LEADING_NUMBER = re.compile(r"^(\d+)")
_ANY_NUMBER = re.compile(r"(\d+)")
_DAY_COUNT = re.compile(r"^(\d+)\s*(?:days?)?$")


class CycleUnit(str, Enum):
    MONTHS = "months"
    YEARS = "years"
    DAYS = "days"


class CycleLength(NamedTuple):
    """How far one billing cycle reaches, e.g. (MONTHS, 3) for quarterly."""
    unit: CycleUnit
    count: int

    def as_delta(self) -> relativedelta:
        return relativedelta(**{self.unit.value: self.count})


class CycleWindow(NamedTuple):
    """The billing period [start_date, end_date] a cycle resolves to."""
    start_date: Optional[date]
    total_days_in_cycle: int


class BillingProgress(NamedTuple):
    percentage: float
    severity: Optional[BillingSeverity]


# ============================================
# Date helpers
# ============================================

def parse_date(value: DateLike) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or pass a date through); None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = value.strip()
    if not value:
        return None
    try:
        return isoparse(value).date()
    except (ValueError, OverflowError):
        logger.debug(f"Ignoring unparseable billing date {value!r}")
        return None


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def normalize_cycle(descriptor: Optional[str]) -> str:
    return (descriptor or "").strip().lower()


# ============================================
# Cycle descriptor rules
# ============================================

def _leading_count(text: str, default: int = 1) -> int:
    match = _LEADING_NUMBER.match(text)
    return int(match.group(1)) if match else default


def _match_months(text: str) -> Optional[CycleLength]:
    if "month" in text:
        return CycleLength(CycleUnit.MONTHS, _leading_count(text))
    return None


def _match_years(text: str) -> Optional[CycleLength]:
    if "year" not in text and "annu" not in text:
        return None
    if "bi-annu" in text or "biannu" in text:
        return CycleLength(CycleUnit.YEARS, 2)
    return CycleLength(CycleUnit.YEARS, _leading_count(text))


def _match_quarter(text: str) -> Optional[CycleLength]:
    if "quarter" in text:
        return CycleLength(CycleUnit.MONTHS, 3)
    return None


def _match_days(text: str) -> Optional[CycleLength]:
    match = _DAY_COUNT.match(text)
    if match:
        return CycleLength(CycleUnit.DAYS, int(match.group(1)))
    return None


# Order matters: "annually" must resolve before any digit rule sees it
CYCLE_RULES = (
    _match_months,
    _match_years,
    _match_quarter,
    _match_days,
)


def match_cycle_length(descriptor: Optional[str]) -> Optional[CycleLength]:
    """Resolve a cycle descriptor through the ordered rules; None if nothing matches."""
    text = normalize_cycle(descriptor)
    if not text:
        return None
    for rule in CYCLE_RULES:
        length = rule(text)
        if length is not None:
            return length
    return None


def renewal_cycle_length(descriptor: Optional[str]) -> Optional[CycleLength]:
    """
    Cycle length used when advancing an end date.

    Same rules as match_cycle_length, but any descriptor carrying a number
    ("every 45", "45d") is read as that many days.
    """
    length = match_cycle_length(descriptor)
    if length is not None:
        return length
    match = _ANY_NUMBER.search(normalize_cycle(descriptor))
    if match:
        return CycleLength(CycleUnit.DAYS, int(match.group(1)))
    return None


# ============================================
# Cycle Descriptor Parser
# ============================================

def parse_cycle(
    end_date: DateLike,
    cycle_descriptor: Optional[str],
    fallback_days: int = FALLBACK_CYCLE_DAYS
) -> CycleWindow:
    """
    Infer the current billing window ending at end_date.

    Returns CycleWindow(None, 0) when either input is missing or the end
    date cannot be parsed. Unrecognized descriptors assume a 30 day cycle.
    """
    end = parse_date(end_date)
    if end is None or not normalize_cycle(cycle_descriptor):
        return CycleWindow(None, 0)

    length = match_cycle_length(cycle_descriptor)
    try:
        if length is None:
            raise ValueError(f"unrecognized billing cycle {cycle_descriptor!r}")

        if length.unit is CycleUnit.DAYS:
            return CycleWindow(end - timedelta(days=length.count), length.count)

        start = end - length.as_delta()
        if length.unit is CycleUnit.MONTHS and length.count == 1:
            return CycleWindow(start, monthrange(start.year, start.month)[1])

        return CycleWindow(start, max(0, days_between(start, end)))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Falling back to {fallback_days} day cycle: {e}")

    try:
        return CycleWindow(end - timedelta(days=fallback_days), fallback_days)
    except OverflowError:
        return CycleWindow(None, 0)


# ============================================
# Expiry Calculator
# ============================================

def compute_expiry(
    end_date: DateLike,
    now: Union[date, datetime],
    status: Optional[str] = None
) -> DaysRemaining:
    """
    Signed whole days from now until end_date.

    A source status of "Expired" wins over any numeric computation.
    Missing or unparseable end dates give "N/A".
    """
    if status == EXPIRED:
        return EXPIRED

    end = parse_date(end_date)
    if end is None:
        return NOT_AVAILABLE

    today = now.date() if isinstance(now, datetime) else now
    return days_between(today, end)


def is_due(days_remaining: DaysRemaining, lead_days: int = 0) -> bool:
    """True when the record needs renewing (expired, or within lead_days of its end)."""
    if days_remaining == EXPIRED:
        return True
    if isinstance(days_remaining, int):
        return days_remaining <= lead_days
    return False


def format_days_remaining(days_remaining: DaysRemaining) -> str:
    if isinstance(days_remaining, str):
        return days_remaining
    if days_remaining < 0:
        return EXPIRED
    if days_remaining == 0:
        return "Today"
    return f"{days_remaining}d"


# ============================================
# Progress Normalizer
# ============================================

def classify_severity(
    days_remaining: DaysRemaining,
    warning_days: int = DEFAULT_WARNING_DAYS,
    critical_days: int = DEFAULT_CRITICAL_DAYS
) -> Optional[BillingSeverity]:
    if days_remaining == EXPIRED:
        return BillingSeverity.EXPIRED
    if not isinstance(days_remaining, int):
        return None
    if days_remaining < 0:
        return BillingSeverity.EXPIRED
    if days_remaining <= critical_days:
        return BillingSeverity.CRITICAL
    if days_remaining <= warning_days:
        return BillingSeverity.WARNING
    return BillingSeverity.SAFE


def compute_progress(
    days_remaining: DaysRemaining,
    total_days_in_cycle: int,
    warning_days: int = DEFAULT_WARNING_DAYS,
    critical_days: int = DEFAULT_CRITICAL_DAYS
) -> BillingProgress:
    """Fill ratio (0-100) of the remaining cycle plus its severity band."""
    severity = classify_severity(days_remaining, warning_days, critical_days)

    if not isinstance(days_remaining, int) or total_days_in_cycle <= 0:
        return BillingProgress(0.0, severity)

    percentage = 100.0 * max(0, days_remaining) / total_days_in_cycle
    return BillingProgress(min(100.0, max(0.0, percentage)), severity)


def billing_status(
    end_date: DateLike,
    cycle_descriptor: Optional[str],
    now: Union[date, datetime],
    warning_days: int = DEFAULT_WARNING_DAYS,
    critical_days: int = DEFAULT_CRITICAL_DAYS,
    fallback_days: int = FALLBACK_CYCLE_DAYS,
    status: Optional[str] = None
) -> BillingStatus:
    """Compute every billing display value for one record."""
    window = parse_cycle(end_date, cycle_descriptor, fallback_days)
    days_remaining = compute_expiry(end_date, now, status)
    progress = compute_progress(
        days_remaining, window.total_days_in_cycle, warning_days, critical_days
    )
    end = parse_date(end_date)

    return BillingStatus(
        end_date=format_date(end) if end else None,
        cycle=cycle_descriptor,
        start_date=format_date(window.start_date) if window.start_date else None,
        total_days_in_cycle=window.total_days_in_cycle,
        days_remaining=days_remaining,
        days_remaining_label=format_days_remaining(days_remaining),
        percentage=round(progress.percentage, 1),
        severity=progress.severity,
        color=SEVERITY_COLORS.get(progress.severity, "muted")
    )
