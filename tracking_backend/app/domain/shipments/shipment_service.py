"""
Shipment Service (Domain Logic).

Creation, deletion, listing and read views for shipments. Every status
write goes through the TimelineReconciler.
"""

import logging
import secrets
import string
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from tracking_backend.app.core.config import settings
from tracking_backend.app.core.exceptions import ShipmentValidationError, StoreConflictError, StoreError
from tracking_backend.app.domain.shipments.reconciler import (
    ReconciliationResult,
    TimelineReconciler,
    UPDATABLE_FIELDS,
)
from tracking_backend.app.domain.shipments.status_catalog import (
    CATALOG,
    FINAL_STATUS,
    INITIAL_STATUS,
    StatusLike,
    parse_status,
    progress_of,
)
from tracking_backend.app.models.shipment import Shipment

logger = logging.getLogger("tracking.shipments")

REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("sender_name", "Sender name"),
    ("sender_phone", "Sender phone"),
    ("sender_street", "Sender street address"),
    ("sender_city", "Sender city"),
    ("sender_country", "Sender country"),
    ("receiver_name", "Receiver name"),
    ("receiver_phone", "Receiver phone"),
    ("receiver_street", "Receiver street address"),
    ("receiver_city", "Receiver city"),
    ("receiver_country", "Receiver country"),
    ("package_type", "Package type"),
)

TRACKING_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_TRACKING_CODE_ATTEMPTS = 5


def normalize_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Strip strings and turn empty strings into None."""
    normalized = {}
    for name, value in fields.items():
        if isinstance(value, str):
            value = value.strip() or None
        normalized[name] = value
    return normalized


def validate_shipment_fields(fields: Dict[str, Any]) -> List[str]:
    """Human-readable messages for every missing required or unknown field."""
    errors = [f"{label} is required" for name, label in REQUIRED_FIELDS if not fields.get(name)]
    errors.extend(f"Unknown shipment field '{name}'" for name in fields if name not in UPDATABLE_FIELDS)
    return errors


def generate_tracking_code() -> str:
    suffix = "".join(secrets.choice(TRACKING_CODE_ALPHABET) for _ in range(settings.tracking_code_length))
    return f"{settings.tracking_code_prefix}{suffix}"


class ShipmentService:
    """Admin and public operations on shipments."""

    def __init__(self, db: AsyncSession):
        self.reconciler = TimelineReconciler(db)
        self.shipments = self.reconciler.shipments

    async def create_shipment(self, fields: Dict[str, Any]) -> ReconciliationResult:
        """
        Create a shipment in the initial status and record its first
        timeline entry.

        Raises:
            ShipmentValidationError: Required fields missing (nothing persisted)
            StoreError: The shipment row could not be written
        """
        fields = normalize_fields(fields)
        errors = validate_shipment_fields(fields)
        if errors:
            raise ShipmentValidationError(errors)

        shipment = None
        for _ in range(MAX_TRACKING_CODE_ATTEMPTS):
            record = dict(fields, tracking_id=generate_tracking_code(), status=INITIAL_STATUS)
            try:
                shipment = await self.shipments.create(record)
                break
            except StoreConflictError:
                logger.info("Tracking code collision, retrying", extra={"tracking_id": record["tracking_id"]})
        if shipment is None:
            raise StoreError("shipments.create", "could not allocate a unique tracking code")

        self.shipments.detach(shipment)
        logger.info("Shipment created", extra={"shipment_id": shipment.id, "tracking_id": shipment.tracking_id})

        warnings: List[str] = []
        action = await self.reconciler.reconcile_timeline(shipment, INITIAL_STATUS, warnings=warnings)
        timeline = await self.reconciler.load_timeline(shipment, warnings)
        return ReconciliationResult(shipment=shipment, timeline=timeline, timeline_action=action, warnings=warnings)

    async def update_shipment(
        self,
        shipment_ref: str,
        new_status: StatusLike = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        field_updates: Optional[Dict[str, Any]] = None
    ) -> ReconciliationResult:
        return await self.reconciler.apply_status_change(
            shipment_ref,
            new_status=new_status,
            location=location,
            notes=notes,
            field_updates=field_updates,
        )

    async def delete_shipment(self, shipment_ref: str) -> Shipment:
        """Delete a shipment (and, via the store, its timeline)."""
        shipment = await self.shipments.get(shipment_ref)
        self.shipments.detach(shipment)
        await self.shipments.delete(shipment.id)
        logger.info("Shipment deleted", extra={"shipment_id": shipment.id, "tracking_id": shipment.tracking_id})
        return shipment

    async def get_shipment(self, shipment_ref: str) -> Shipment:
        shipment = await self.shipments.get(shipment_ref)
        self.shipments.detach(shipment)
        return shipment

    async def get_shipment_detail(self, shipment_ref: str) -> ReconciliationResult:
        shipment = await self.get_shipment(shipment_ref)
        warnings: List[str] = []
        timeline = await self.reconciler.load_timeline(shipment, warnings)
        return ReconciliationResult(shipment=shipment, timeline=timeline, warnings=warnings)

    async def list_shipments(
        self,
        status: StatusLike = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[Shipment], int]:
        """Newest-first page of shipments plus the total matching count."""
        status_filter = None
        if status:
            status_filter = parse_status(status)
            if status_filter is None:
                raise ShipmentValidationError([f"Unknown status '{status}'"])

        total = await self.shipments.count(status_filter, search)
        items = await self.shipments.list(
            status_filter, search,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return items, total

    async def get_stats(self) -> Dict[str, Any]:
        """Total and per-status counts for the dashboard cards."""
        counts = await self.shipments.count_by_status()
        by_status = {d.status.value: counts.get(d.status, 0) for d in CATALOG}
        return {"total": sum(counts.values()), "by_status": by_status}

    async def get_tracking(self, tracking_code: str) -> Dict[str, Any]:
        """
        Public tracking view: shipment, timeline (newest first), progress
        and an estimated delivery date.
        """
        shipment = await self.shipments.get_by_tracking_code(tracking_code.strip())
        self.shipments.detach(shipment)
        timeline = await self.reconciler.load_timeline(shipment, [])

        estimated_delivery = None
        if shipment.status != FINAL_STATUS and shipment.updated_at is not None:
            estimated_delivery = shipment.updated_at + timedelta(days=settings.estimated_delivery_days)

        return {
            "shipment": shipment,
            "timeline": timeline,
            "progress": progress_of(shipment.status),
            "estimated_delivery": estimated_delivery,
        }
