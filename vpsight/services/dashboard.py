"""
Dashboard Service

Builds the public VPS feed and the admin dashboard view. Billing values are
recomputed on every refresh; nothing is cached between refreshes.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Union

from ..config import settings
from ..models.database import VpsInstance
from ..models.schemas import (
    AcknowledgmentState, BillingStatus, DashboardResponse, DashboardRow, VpsData,
    VpsInstanceResponse
)
from .acknowledgment import RenewalAcknowledgment
from .billing_cycle import billing_status
from .renewal import RenewalEngine

logger = logging.getLogger(__name__)


TRAFFIC_TYPES = {
    0: "Both",
    1: "Outbound only",
    2: "Inbound only",
}


def record_billing(record: VpsInstance, now: Union[date, datetime]) -> BillingStatus:
    """Billing display values for a record using the configured thresholds."""
    return billing_status(
        record.note_billing_end_date,
        record.note_billing_cycle,
        now,
        warning_days=settings.billing.warning_days,
        critical_days=settings.billing.critical_days,
        fallback_days=settings.billing.fallback_cycle_days
    )


def to_vps_data(record: VpsInstance, now: Union[date, datetime]) -> VpsData:
    """Map a stored record to a dashboard row with placeholder metrics."""
    return VpsData(
        id=str(record.id),
        name=record.name,
        system=record.type or "Unknown OS",
        country_region=record.country_region or "N/A",
        price=record.note_billing_amount or "N/A",
        # No agent data yet: creation time stands in for boot/last-seen
        boot_time=record.created_at,
        last_active=record.created_at,
        ip_address=record.ip_address,
        agent_version=record.agent_version,
        billing_cycle=record.note_billing_cycle,
        plan_bandwidth=record.note_plan_bandwidth,
        plan_traffic_type=TRAFFIC_TYPES.get(record.note_plan_traffic_type, "N/A"),
        billing=record_billing(record, now)
    )


class DashboardView:
    """
    Admin dashboard rows, each with the renewal acknowledgment of its record.

    Acknowledgments are keyed by record id, so reordering the rows (a new
    record sorting first, a deleted one disappearing) keeps them. A record
    that leaves the dashboard loses its acknowledgment; if it comes back it
    starts unacknowledged.
    """

    def __init__(self, engine: Optional[RenewalEngine] = None, lead_days: Optional[int] = None):
        self.engine = engine or RenewalEngine()
        self.lead_days = settings.billing.renew_ahead_days if lead_days is None else lead_days
        self.acknowledgments: Dict[int, RenewalAcknowledgment] = {}

    def acknowledgment_for(self, record_id: int) -> Optional[RenewalAcknowledgment]:
        return self.acknowledgments.get(record_id)

    def _bind(self, records: Sequence[VpsInstance]) -> List[RenewalAcknowledgment]:
        current = {}
        for record in records:
            ack = self.acknowledgments.get(record.id)
            if ack is None:
                ack = RenewalAcknowledgment(record.id, lead_days=self.lead_days)
            current[record.id] = ack

        for record_id, ack in self.acknowledgments.items():
            if record_id not in current and ack.state is not AcknowledgmentState.UNACKNOWLEDGED:
                logger.debug(f"VPS instance {record_id} left the dashboard; acknowledgment dropped")

        self.acknowledgments = current
        return [current[record.id] for record in records]

    async def refresh(
        self,
        records: Sequence[VpsInstance],
        now: Union[date, datetime]
    ) -> DashboardResponse:
        """Recompute every row and run renewals that are due and acknowledged."""
        acknowledgments = self._bind(records)

        rows = []
        attempted = 0
        for index, (ack, record) in enumerate(zip(acknowledgments, records)):
            billing = record_billing(record, now)
            renewal = await ack.evaluate(billing.days_remaining, self.engine.renew)

            if renewal is not None:
                attempted += 1
                if renewal.success:
                    record = await self.engine.store.get_by_id(record.id) or record
                    billing = record_billing(record, now)

            rows.append(DashboardRow(
                slot=index,
                instance=VpsInstanceResponse.model_validate(record),
                billing=billing,
                acknowledgment=ack.state,
                confirmation_pending=ack.confirmation_pending,
                renewal=renewal
            ))

        if attempted:
            logger.info(f"Dashboard refresh ran {attempted} automatic renewal(s)")

        return DashboardResponse(
            rows=rows,
            total=len(rows),
            renewals_attempted=attempted,
            generated_at=datetime.utcnow()
        )
