"""
Public VPS Endpoints

Read-only dashboard feed with billing status and placeholder metrics.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..models.schemas import BillingStatus, VpsData
from ..services.dashboard import record_billing, to_vps_data
from .deps import get_now
from .instances import vps_store

router = APIRouter(prefix="/api", tags=["Dashboard"])


@router.get("/vps-list", response_model=List[VpsData])
async def list_vps(now: datetime = Depends(get_now)):
    """All VPS instances as dashboard rows."""
    records = await vps_store.list_all()
    return [to_vps_data(r, now) for r in records]


@router.get("/vps/{instance_id}/billing", response_model=BillingStatus)
async def get_billing(instance_id: int, now: datetime = Depends(get_now)):
    """Billing window, days remaining and progress for one VPS instance."""
    record = await vps_store.get_by_id(instance_id)

    if not record:
        raise HTTPException(status_code=404, detail="VPS instance not found")

    return record_billing(record, now)
