"""
Renewal Acknowledgment

Per-row state that records whether the operator has authorized an
unattended renewal, and fires that renewal once the record comes due.

    UNACKNOWLEDGED --request+confirm--> ACKNOWLEDGED --due--> RENEWING
    RENEWING --success--> UNACKNOWLEDGED
    RENEWING --failure--> ACKNOWLEDGED   (retried on the next evaluation)
"""

import logging
from typing import Awaitable, Callable, Optional

from .billing_cycle import is_due
from ..models.schemas import AcknowledgmentState, DaysRemaining, RenewalResult

logger = logging.getLogger(__name__)

RenewCallable = Callable[[int], Awaitable[RenewalResult]]


class RenewalAcknowledgment:
    """
    Acknowledgment for one displayed record.

    Binding a different record resets the state, so an authorization never
    carries over to an unrelated record. Every reset starts a new binding;
    a renewal result that arrives after its binding ended is not applied.
    """

    def __init__(self, record_id: Optional[int] = None, lead_days: int = 0):
        self.record_id = record_id
        self.lead_days = lead_days
        self.state = AcknowledgmentState.UNACKNOWLEDGED
        self.confirmation_pending = False
        self._binding = 0

    def bind(self, record_id: Optional[int]) -> None:
        if record_id != self.record_id:
            if self.state is not AcknowledgmentState.UNACKNOWLEDGED:
                logger.debug(f"Rebound from VPS instance {self.record_id} to {record_id}; acknowledgment dropped")
            self.record_id = record_id
            self._reset()

    def _reset(self) -> None:
        self.state = AcknowledgmentState.UNACKNOWLEDGED
        self.confirmation_pending = False
        self._binding += 1

    # Operator actions

    def request_confirmation(self) -> bool:
        """First step: ask the operator to confirm. False if already acknowledged."""
        if self.state is not AcknowledgmentState.UNACKNOWLEDGED:
            return False
        self.confirmation_pending = True
        return True

    def confirm(self) -> bool:
        """Second step: only valid right after request_confirmation()."""
        if not self.confirmation_pending or self.state is not AcknowledgmentState.UNACKNOWLEDGED:
            return False
        self.confirmation_pending = False
        self.state = AcknowledgmentState.ACKNOWLEDGED
        logger.info(f"Automatic renewal acknowledged for VPS instance {self.record_id}")
        return True

    def cancel(self) -> None:
        self.confirmation_pending = False

    def revoke(self) -> bool:
        """Withdraw an acknowledgment. Not possible while a renewal is in flight."""
        if self.state is not AcknowledgmentState.ACKNOWLEDGED:
            return False
        self._reset()
        logger.info(f"Automatic renewal revoked for VPS instance {self.record_id}")
        return True

    # Expiry checks

    def should_renew(self, days_remaining: DaysRemaining) -> bool:
        return (
            self.state is AcknowledgmentState.ACKNOWLEDGED
            and is_due(days_remaining, self.lead_days)
        )

    async def evaluate(
        self,
        days_remaining: DaysRemaining,
        renew: RenewCallable
    ) -> Optional[RenewalResult]:
        """
        Run the renewal if the record is due and acknowledged.

        Returns None when nothing was triggered, including while an earlier
        renewal for this record is still in flight.
        """
        if self.record_id is None or not self.should_renew(days_remaining):
            return None

        binding = self._binding
        self.state = AcknowledgmentState.RENEWING
        try:
            result = await renew(self.record_id)
        except Exception:
            if self._binding == binding:
                self.state = AcknowledgmentState.ACKNOWLEDGED
            raise

        if self._binding != binding:
            # Rebound while the call was outstanding, even if back to the same record
            return result

        if result.success:
            self._reset()
        else:
            self.state = AcknowledgmentState.ACKNOWLEDGED
        return result
