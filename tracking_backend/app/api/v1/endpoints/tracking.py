"""
Public tracking endpoint.

No authentication: anyone holding a tracking code can follow the shipment.
Contact details (phones, emails, street addresses) are never exposed here.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from tracking_backend.app.db.session import get_db
from tracking_backend.app.domain.shipments.shipment_service import ShipmentService
from tracking_backend.app.schemas.shipment import (
    PublicShipmentView,
    TimelineEntryResponse,
    TrackingProgress,
    TrackingResponse,
)

router = APIRouter(prefix="/track", tags=["Tracking"])


@router.get("/{tracking_code}", response_model=TrackingResponse)
async def track_shipment(
    tracking_code: str = Path(..., min_length=1, max_length=32, description="Tracking code, e.g. TRK8F3K2M9QZ"),
    db: AsyncSession = Depends(get_db)
):
    """
    Track a shipment by its tracking code.

    Returns the public shipment view, the timeline (newest first), progress
    through the status catalog and an estimated delivery date while the
    shipment is still on its way.

    Raises:
        404: Unknown tracking code
    """
    service = ShipmentService(db)
    tracking = await service.get_tracking(tracking_code)

    return TrackingResponse(
        shipment=PublicShipmentView.model_validate(tracking["shipment"]),
        timeline=[TimelineEntryResponse.model_validate(e) for e in tracking["timeline"]],
        progress=TrackingProgress(**tracking["progress"]),
        estimated_delivery=tracking["estimated_delivery"],
    )
