"""
Shipment Management API Endpoints (Admin).

Create, list, inspect, update and delete shipments. Status changes go
through the timeline reconciler; timeline problems come back as warnings.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Path, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from tracking_backend.app.db.session import get_db
from tracking_backend.app.core.dependencies import get_current_user
from tracking_backend.app.domain.shipments.reconciler import ReconciliationResult
from tracking_backend.app.domain.shipments.shipment_service import ShipmentService
from tracking_backend.app.models.shipment_enums import ShipmentStatus
from tracking_backend.app.schemas.shipment import (
    AuditEventResponse,
    ShipmentAuditResponse,
    ShipmentCreate,
    ShipmentUpdate,
    ShipmentResponse,
    ShipmentDetailResponse,
    ShipmentListResponse,
    ShipmentStatsResponse,
    TimelineEntryResponse,
)
from tracking_backend.app.services.audit import record_event, get_shipment_audit_trail, AuditAction

router = APIRouter(prefix="/admin/shipments", tags=["Admin - Shipments"])


def _detail_response(result: ReconciliationResult) -> ShipmentDetailResponse:
    return ShipmentDetailResponse(
        shipment=ShipmentResponse.model_validate(result.shipment),
        timeline=[TimelineEntryResponse.model_validate(e) for e in result.timeline],
        timeline_action=result.timeline_action.value if result.timeline_action else None,
        warnings=result.warnings,
    )


@router.post("", response_model=ShipmentDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    shipment_data: ShipmentCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a shipment.

    The tracking code is generated, status starts at Processing and the
    first timeline entry is recorded with default location/notes.
    """
    service = ShipmentService(db)
    result = await service.create_shipment(shipment_data.model_dump(exclude_none=True))
    response = _detail_response(result)

    await record_event(
        db,
        response.warnings,
        action=AuditAction.SHIPMENT_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        shipment_id=result.shipment.id,
        tracking_id=result.shipment.tracking_id,
        metadata={"warnings": result.warnings} if result.warnings else None
    )

    return response


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    status_filter: Optional[ShipmentStatus] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, max_length=100, description="Tracking code, sender or receiver name"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List shipments, newest first."""
    service = ShipmentService(db)
    shipments, total = await service.list_shipments(status_filter, search, page, page_size)

    return ShipmentListResponse(
        shipments=[ShipmentResponse.model_validate(s) for s in shipments],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/stats", response_model=ShipmentStatsResponse)
async def get_shipment_stats(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Total shipments and counts per status."""
    service = ShipmentService(db)
    return ShipmentStatsResponse(**await service.get_stats())


@router.get("/{shipment_ref}", response_model=ShipmentDetailResponse)
async def get_shipment(
    shipment_ref: str = Path(..., description="Shipment ID or tracking code"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Shipment details with the full timeline, newest first."""
    service = ShipmentService(db)
    return _detail_response(await service.get_shipment_detail(shipment_ref))


@router.patch("/{shipment_ref}", response_model=ShipmentDetailResponse)
async def update_shipment(
    shipment_ref: str = Path(..., description="Shipment ID or tracking code"),
    shipment_data: ShipmentUpdate = ...,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a shipment.

    - `status` moves the shipment forward or back; the timeline gets a new
      entry for a first visit and is amended for a revisit
    - `location`/`notes` override the default timeline text
    - every other field is applied to the shipment (strings stripped)
    """
    update_data = shipment_data.model_dump(exclude_unset=True)
    new_status = update_data.pop("status", None)
    location = update_data.pop("location", None)
    notes = update_data.pop("notes", None)

    service = ShipmentService(db)
    result = await service.update_shipment(
        shipment_ref,
        new_status=new_status,
        location=location,
        notes=notes,
        field_updates=update_data,
    )
    response = _detail_response(result)

    await record_event(
        db,
        response.warnings,
        action=AuditAction.SHIPMENT_UPDATED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        shipment_id=result.shipment.id,
        tracking_id=result.shipment.tracking_id,
        metadata={
            "status": new_status.value if new_status else None,
            "updated_fields": sorted(update_data.keys()),
            "timeline_action": result.timeline_action.value if result.timeline_action else None,
            "warnings": result.warnings,
        }
    )

    return response


@router.delete("/{shipment_ref}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    shipment_ref: str = Path(..., description="Shipment ID or tracking code"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a shipment and its timeline."""
    service = ShipmentService(db)
    shipment = await service.delete_shipment(shipment_ref)

    # No body on 204: a failed audit write is only logged
    await record_event(
        db,
        action=AuditAction.SHIPMENT_DELETED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        shipment_id=shipment.id,
        tracking_id=shipment.tracking_id
    )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{shipment_ref}/audit", response_model=ShipmentAuditResponse)
async def get_shipment_audit(
    shipment_ref: str = Path(..., description="Shipment ID or tracking code"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of events"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Who created, updated or deleted this shipment, most recent first."""
    service = ShipmentService(db)
    shipment = await service.get_shipment(shipment_ref)
    events = await get_shipment_audit_trail(db, shipment.id, limit=limit)

    return ShipmentAuditResponse(
        shipment_id=shipment.id,
        tracking_id=shipment.tracking_id,
        events=[AuditEventResponse.model_validate(e) for e in events]
    )
