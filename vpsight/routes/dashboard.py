"""
Admin Dashboard Endpoints

Refreshes the admin view (running acknowledged renewals that are due) and
handles the two-step automatic renewal acknowledgment.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from ..models.schemas import AcknowledgmentResponse, DashboardResponse
from ..services.acknowledgment import RenewalAcknowledgment
from ..services.auth import AdminSession
from .deps import get_now, require_admin
from .instances import vps_store

router = APIRouter(prefix="/api/admin/dashboard", tags=["Admin Dashboard"])


def _acknowledgment_or_404(session: AdminSession, instance_id: int) -> RenewalAcknowledgment:
    ack = session.view.acknowledgment_for(instance_id)
    if ack is None:
        raise HTTPException(
            status_code=404,
            detail="VPS instance is not on the dashboard; refresh the dashboard first"
        )
    return ack


def _ack_response(ack: RenewalAcknowledgment, message: str) -> AcknowledgmentResponse:
    return AcknowledgmentResponse(
        record_id=ack.record_id,
        state=ack.state,
        confirmation_pending=ack.confirmation_pending,
        message=message
    )


@router.get("", response_model=DashboardResponse)
async def refresh_dashboard(
    session: AdminSession = Depends(require_admin),
    now: datetime = Depends(get_now)
):
    """
    Re-read all records and recompute their billing values.

    Records that are due and whose renewal was acknowledged are renewed
    during the refresh.
    """
    records = await vps_store.list_all()
    return await session.view.refresh(records, now)


@router.post("/{instance_id}/acknowledge/request", response_model=AcknowledgmentResponse)
async def request_acknowledgment(instance_id: int, session: AdminSession = Depends(require_admin)):
    """Step one: ask to authorize automatic renewal for a record."""
    ack = _acknowledgment_or_404(session, instance_id)

    if not ack.request_confirmation():
        raise HTTPException(status_code=409, detail=f"Renewal is already {ack.state.value}")

    return _ack_response(ack, "Confirm to allow automatic renewal when this server is due")


@router.post("/{instance_id}/acknowledge/confirm", response_model=AcknowledgmentResponse)
async def confirm_acknowledgment(instance_id: int, session: AdminSession = Depends(require_admin)):
    """Step two: confirm a pending acknowledgment request."""
    ack = _acknowledgment_or_404(session, instance_id)

    if not ack.confirm():
        raise HTTPException(status_code=409, detail="No pending acknowledgment to confirm")

    return _ack_response(ack, "Automatic renewal acknowledged")


@router.post("/{instance_id}/acknowledge/cancel", response_model=AcknowledgmentResponse)
async def cancel_acknowledgment(instance_id: int, session: AdminSession = Depends(require_admin)):
    """Drop a pending acknowledgment request."""
    ack = _acknowledgment_or_404(session, instance_id)
    ack.cancel()
    return _ack_response(ack, "Acknowledgment request cancelled")


@router.post("/{instance_id}/acknowledge/revoke", response_model=AcknowledgmentResponse)
async def revoke_acknowledgment(instance_id: int, session: AdminSession = Depends(require_admin)):
    """Withdraw an acknowledgment before the renewal runs."""
    ack = _acknowledgment_or_404(session, instance_id)

    if not ack.revoke():
        raise HTTPException(status_code=409, detail=f"Renewal is {ack.state.value}; nothing to revoke")

    return _ack_response(ack, "Automatic renewal revoked")
