"""
Renewal Service

Advances a record's billing end date by one cycle and persists it.

Callers get a RenewalResult back, never an exception. Each call advances
from the end date currently stored, so re-read the record before renewing
it a second time.
"""

import logging
from datetime import date
from typing import Any, Optional

from .billing_cycle import (
    format_date, normalize_cycle, parse_date, renewal_cycle_length
)
from .vps_store import VpsStore
from ..models.schemas import RenewalErrorKind, RenewalResult

logger = logging.getLogger(__name__)


class RenewalError(Exception):
    """Base class for refused renewals."""
    kind: RenewalErrorKind = RenewalErrorKind.INVALID_STATE


class InvalidStateError(RenewalError):
    kind = RenewalErrorKind.INVALID_STATE


class InvalidDateError(RenewalError):
    kind = RenewalErrorKind.INVALID_DATE


class UnsupportedCycleError(RenewalError):
    kind = RenewalErrorKind.UNSUPPORTED_CYCLE


class RecordNotFoundError(RenewalError):
    kind = RenewalErrorKind.RECORD_NOT_FOUND


def next_end_date(end_date: Any, cycle_descriptor: Optional[str]) -> date:
    """
    End date after one more billing cycle.

    Month and year steps clamp to the end of shorter months
    (2024-01-31 + 1 month = 2024-02-29).

    Raises:
        InvalidStateError: end date or cycle missing
        InvalidDateError: end date present but unparseable
        UnsupportedCycleError: cycle text has no usable length
    """
    if end_date is None or (isinstance(end_date, str) and not end_date.strip()):
        raise InvalidStateError("Billing end date is not set")
    if not normalize_cycle(cycle_descriptor):
        raise InvalidStateError("Billing cycle is not set")

    end = parse_date(end_date)
    if end is None:
        raise InvalidDateError(f"Billing end date {end_date!r} is not a valid date")

    length = renewal_cycle_length(cycle_descriptor)
    if length is None or length.count <= 0:
        raise UnsupportedCycleError(f"Billing cycle {cycle_descriptor!r} is not supported")

    try:
        return end + length.as_delta()
    except (ValueError, OverflowError):
        raise UnsupportedCycleError(
            f"Billing cycle {cycle_descriptor!r} moves {format_date(end)} out of range"
        )


class RenewalEngine:
    """Applies renewals through the record store."""

    def __init__(self, store: Optional[VpsStore] = None):
        self.store = store or VpsStore()

    async def renew(self, record_id: int) -> RenewalResult:
        """Re-read a record and renew it."""
        record = await self.store.get_by_id(record_id)
        if record is None:
            return self._failure(record_id, RecordNotFoundError(f"VPS instance {record_id} not found"))
        return await self.renew_record(record)

    async def renew_record(self, record: Any) -> RenewalResult:
        """Renew an already loaded record (needs id, note_billing_end_date, note_billing_cycle)."""
        try:
            new_end = next_end_date(record.note_billing_end_date, record.note_billing_cycle)
            new_end_str = format_date(new_end)

            rows = await self.store.update(record.id, {"note_billing_end_date": new_end_str})
            if rows == 0:
                raise RecordNotFoundError(f"VPS instance {record.id} no longer exists")
        except RenewalError as e:
            return self._failure(record.id, e)

        logger.info(
            f"Renewed VPS instance {record.id}: {record.note_billing_end_date} -> {new_end_str} "
            f"({record.note_billing_cycle})"
        )
        return RenewalResult(
            success=True,
            record_id=record.id,
            new_end_date=new_end_str,
            message=f"Billing period renewed until {new_end_str}"
        )

    def _failure(self, record_id: int, error: RenewalError) -> RenewalResult:
        logger.warning(f"Renewal of VPS instance {record_id} refused: {error}")
        return RenewalResult(
            success=False,
            record_id=record_id,
            error=error.kind,
            message=str(error)
        )
