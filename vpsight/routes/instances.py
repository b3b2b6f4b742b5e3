"""
VPS Instance Endpoints

Admin API for managing VPS instance records and renewing their billing period.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..models.schemas import (
    RenewalErrorKind, RenewalResult,
    VpsInstanceCreate, VpsInstanceUpdate, VpsInstanceResponse
)
from ..services.renewal import RenewalEngine
from ..services.vps_store import VpsStore
from .deps import require_admin

router = APIRouter(
    prefix="/api/admin/instances",
    tags=["VPS Instances"],
    dependencies=[Depends(require_admin)]
)

vps_store = VpsStore()
renewal_engine = RenewalEngine(vps_store)

RENEWAL_ERROR_STATUS = {
    RenewalErrorKind.RECORD_NOT_FOUND: 404,
    RenewalErrorKind.INVALID_STATE: 409,
    RenewalErrorKind.INVALID_DATE: 409,
    RenewalErrorKind.UNSUPPORTED_CYCLE: 422,
}


@router.get("", response_model=List[VpsInstanceResponse])
async def list_instances():
    """List all VPS instances, newest first."""
    instances = await vps_store.list_all()
    return [VpsInstanceResponse.model_validate(i) for i in instances]


@router.post("", response_model=VpsInstanceResponse)
async def create_instance(instance_data: VpsInstanceCreate):
    """Add a VPS instance."""
    instance_id = await vps_store.insert(instance_data.model_dump())
    instance = await vps_store.get_by_id(instance_id)
    return VpsInstanceResponse.model_validate(instance)


@router.get("/{instance_id}", response_model=VpsInstanceResponse)
async def get_instance(instance_id: int):
    """Get a specific VPS instance by ID."""
    instance = await vps_store.get_by_id(instance_id)

    if not instance:
        raise HTTPException(status_code=404, detail="VPS instance not found")

    return VpsInstanceResponse.model_validate(instance)


@router.put("/{instance_id}", response_model=VpsInstanceResponse)
async def update_instance(instance_id: int, update_data: VpsInstanceUpdate):
    """Edit a VPS instance."""
    rows = await vps_store.update(instance_id, update_data.model_dump(exclude_unset=True))

    if not rows:
        raise HTTPException(status_code=404, detail="VPS instance not found")

    instance = await vps_store.get_by_id(instance_id)
    return VpsInstanceResponse.model_validate(instance)


@router.delete("/{instance_id}")
async def delete_instance(instance_id: int):
    """Delete a VPS instance."""
    rows = await vps_store.delete(instance_id)

    if not rows:
        raise HTTPException(status_code=404, detail="VPS instance not found")

    return {"message": "VPS instance deleted successfully"}


@router.post("/{instance_id}/renew", response_model=RenewalResult)
async def renew_instance(instance_id: int):
    """Advance the billing end date by one billing cycle."""
    result = await renewal_engine.renew(instance_id)

    if not result.success:
        raise HTTPException(
            status_code=RENEWAL_ERROR_STATUS[result.error],
            detail=result.message
        )

    return result
