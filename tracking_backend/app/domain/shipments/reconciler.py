"""
Shipment Timeline Reconciler (Domain Logic).

Applies status changes so that the shipment row, its timeline and the
default location/notes text stay consistent.

Flow for apply_status_change:
1. Validate input and re-read the shipment (current status comes from the
   store, never from a client-held copy)
2. Persist field updates and the new status in one UPDATE (fatal on error)
3. Reconcile the timeline: amend the entry for a revisited status, insert
   one for a new status, do nothing for a repeated status
4. Return the refreshed shipment with its timeline, newest first

The shipment row is authoritative. Timeline failures are logged and
returned as warnings; they never undo or fail the status update.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from tracking_backend.app.core.exceptions import (
    ResourceNotFoundError,
    ShipmentValidationError,
    StoreConflictError,
    StoreError,
)
from tracking_backend.app.domain.shipments.status_catalog import (
    StatusLike,
    default_location_and_notes,
    parse_status,
)
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.shipment_enums import ShipmentStatus
from tracking_backend.app.models.shipment_timeline import ShipmentTimeline
from tracking_backend.app.repositories.shipments import ShipmentRepository
from tracking_backend.app.repositories.timeline import TimelineRepository

logger = logging.getLogger("tracking.timeline")

# Columns callers may never set through an update
PROTECTED_FIELDS = frozenset({"id", "tracking_id", "status", "created_at", "updated_at"})
UPDATABLE_FIELDS = frozenset(c.name for c in Shipment.__table__.columns) - PROTECTED_FIELDS


class TimelineAction(str, enum.Enum):
    INSERTED = "inserted"
    AMENDED = "amended"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class ReconciliationResult:
    shipment: Shipment
    timeline: List[ShipmentTimeline]
    timeline_action: Optional[TimelineAction] = None
    warnings: List[str] = field(default_factory=list)


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def validate_field_updates(field_updates: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Check that every key is a writable shipment column and that required
    columns are not blanked. String values are stripped; blank strings
    become None.

    Raises:
        ShipmentValidationError: Listing each rejected field
    """
    updates = {
        name: _clean_text(value) if isinstance(value, str) else value
        for name, value in (field_updates or {}).items()
    }
    errors = []
    columns = Shipment.__table__.columns
    for name, value in updates.items():
        if name in PROTECTED_FIELDS:
            errors.append(f"Field '{name}' cannot be updated directly")
        elif name not in UPDATABLE_FIELDS:
            errors.append(f"Unknown shipment field '{name}'")
        elif value is None and not columns[name].nullable:
            errors.append(f"Field '{name}' cannot be empty")
    if errors:
        raise ShipmentValidationError(errors)
    return updates


class TimelineReconciler:
    """Keeps a shipment's status and its timeline consistent."""

    def __init__(self, db: AsyncSession):
        self.shipments = ShipmentRepository(db)
        self.timeline = TimelineRepository(db)

    async def apply_status_change(
        self,
        shipment_ref: str,
        new_status: StatusLike = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        field_updates: Optional[Dict[str, Any]] = None
    ) -> ReconciliationResult:
        """
        Apply a status change and/or field updates to a shipment.

        Args:
            shipment_ref: Internal ID or tracking code
            new_status: Catalog status; None applies field updates only
            location: Explicit timeline location, overrides the default
            notes: Explicit timeline notes, overrides the default
            field_updates: Non-status shipment columns; strings are stripped

        Raises:
            ShipmentValidationError: Unknown status or non-writable field
            ResourceNotFoundError: Shipment does not exist
            StoreError: The shipment update itself failed
        """
        status = None
        if new_status is not None:
            status = parse_status(new_status)
            if status is None:
                raise ShipmentValidationError([f"Unknown status '{new_status}'"])
        updates = validate_field_updates(field_updates)

        shipment = await self.shipments.get(shipment_ref)
        self.shipments.detach(shipment)
        current_status = shipment.status

        if status is not None:
            updates["status"] = status
        await self.shipments.update(shipment.id, updates)

        warnings: List[str] = []
        shipment = await self._refresh(shipment, updates, warnings)

        logger.info(
            "Shipment updated",
            extra={
                "shipment_id": shipment.id,
                "tracking_id": shipment.tracking_id,
                "previous_status": current_status.value if current_status else None,
                "new_status": status.value if status else None,
                "updated_fields": sorted(k for k in updates if k != "status"),
            }
        )

        action = None
        if status is not None:
            action = await self.reconcile_timeline(
                shipment, status, location, notes,
                previous_status=current_status, warnings=warnings,
            )

        timeline = await self.load_timeline(shipment, warnings)
        return ReconciliationResult(shipment, timeline, action, warnings)

    async def reconcile_timeline(
        self,
        shipment: Shipment,
        status: ShipmentStatus,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        previous_status: Optional[ShipmentStatus] = None,
        warnings: Optional[List[str]] = None
    ) -> TimelineAction:
        """
        Bring the timeline in line with `status` (best-effort).

        Never raises for store failures: they are logged and appended to
        `warnings`, and TimelineAction.FAILED is returned.
        """
        warnings = warnings if warnings is not None else []
        explicit_location = _clean_text(location)
        explicit_notes = _clean_text(notes)
        has_explicit = explicit_location is not None or explicit_notes is not None

        try:
            existing = await self.timeline.find_by_status(shipment.id, status)
        except StoreError as e:
            # No insert after a failed lookup: it could duplicate an entry
            self._warn(warnings, shipment, status, "Timeline lookup failed; timeline left unchanged", e)
            return TimelineAction.FAILED

        try:
            if existing is not None and status == previous_status:
                if not has_explicit:
                    return TimelineAction.UNCHANGED
                await self.timeline.update_fields(existing.id, explicit_location, explicit_notes)
                return TimelineAction.AMENDED

            default_location, default_notes = default_location_and_notes(status, shipment)
            final_location = explicit_location or default_location
            final_notes = explicit_notes or default_notes

            if existing is not None:
                await self.timeline.update_fields(existing.id, final_location, final_notes)
                return TimelineAction.AMENDED

            try:
                await self.timeline.insert(shipment.id, status, final_location, final_notes)
                return TimelineAction.INSERTED
            except StoreConflictError:
                # Lost the race against a concurrent writer: amend its entry
                existing = await self.timeline.find_by_status(shipment.id, status)
                if existing is None:
                    raise
                await self.timeline.update_fields(existing.id, final_location, final_notes)
                return TimelineAction.AMENDED
        except (StoreError, ResourceNotFoundError) as e:
            self._warn(warnings, shipment, status, "Timeline write failed; shipment status kept", e)
            return TimelineAction.FAILED

    async def load_timeline(self, shipment: Shipment, warnings: List[str]) -> List[ShipmentTimeline]:
        try:
            return await self.timeline.list_for_shipment(shipment.id)
        except StoreError as e:
            self._warn(warnings, shipment, None, "Timeline could not be loaded", e)
            return []

    async def _refresh(self, shipment: Shipment, updates: Dict[str, Any], warnings: List[str]) -> Shipment:
        try:
            fresh = await self.shipments.get(shipment.id)
            self.shipments.detach(fresh)
            return fresh
        except StoreError as e:
            # The UPDATE is committed; mirror it locally without dirtying the row
            for name, value in updates.items():
                set_committed_value(shipment, name, value)
            self._warn(warnings, shipment, updates.get("status"), "Shipment could not be re-read after update", e)
            return shipment

    @staticmethod
    def _warn(
        warnings: List[str],
        shipment: Shipment,
        status: Optional[ShipmentStatus],
        message: str,
        error: Exception
    ) -> None:
        logger.warning(
            message,
            extra={
                "shipment_id": shipment.id,
                "tracking_id": shipment.tracking_id,
                "status": status.value if status else None,
                "error": str(error),
            }
        )
        warnings.append(f"{message}: {error}")
