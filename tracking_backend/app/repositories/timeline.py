"""
Timeline repository - read/write access to shipment_timeline rows.
"""

from typing import List, Optional

from sqlalchemy import select, update

from tracking_backend.app.core.exceptions import ResourceNotFoundError
from tracking_backend.app.models.shipment_enums import ShipmentStatus
from tracking_backend.app.models.shipment_timeline import ShipmentTimeline
from tracking_backend.app.repositories.base import BaseRepository


class TimelineRepository(BaseRepository):
    """Repository for timeline entries of one or more shipments."""

    async def list_for_shipment(self, shipment_id: str) -> List[ShipmentTimeline]:
        """All entries for a shipment, newest first (id breaks timestamp ties)."""
        async def _query():
            result = await self.db.execute(
                select(ShipmentTimeline)
                .where(ShipmentTimeline.shipment_id == shipment_id)
                .order_by(ShipmentTimeline.created_at.desc(), ShipmentTimeline.id.desc())
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

        return await self._run("timeline.list_for_shipment", _query)

    async def find_by_status(self, shipment_id: str, status: ShipmentStatus) -> Optional[ShipmentTimeline]:
        """Earliest entry for (shipment, status), or None."""
        async def _query():
            result = await self.db.execute(
                select(ShipmentTimeline)
                .where(
                    ShipmentTimeline.shipment_id == shipment_id,
                    ShipmentTimeline.status == status,
                )
                .order_by(ShipmentTimeline.created_at.asc(), ShipmentTimeline.id.asc())
                .limit(1)
                .execution_options(populate_existing=True)
            )
            return result.scalars().first()

        return await self._run("timeline.find_by_status", _query)

    async def insert(
        self,
        shipment_id: str,
        status: ShipmentStatus,
        location: Optional[str] = None,
        notes: Optional[str] = None
    ) -> ShipmentTimeline:
        """
        Insert an entry; created_at is assigned by the store.

        Raises:
            StoreConflictError: If an entry for this status already exists
        """
        entry = ShipmentTimeline(
            shipment_id=shipment_id,
            status=status,
            location=location,
            notes=notes,
        )

        async def _insert():
            self.db.add(entry)
            await self.db.commit()
            await self.db.refresh(entry)
            return entry

        return await self._run("timeline.insert", _insert)

    async def update_fields(self, entry_id: int, location: Optional[str] = None, notes: Optional[str] = None) -> None:
        """Overwrite location and/or notes; None leaves a field untouched."""
        values = {}
        if location is not None:
            values["location"] = location
        if notes is not None:
            values["notes"] = notes
        if not values:
            return

        async def _update():
            result = await self.db.execute(
                update(ShipmentTimeline)
                .where(ShipmentTimeline.id == entry_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount

        updated = await self._run("timeline.update_fields", _update)
        if updated == 0:
            raise ResourceNotFoundError("Timeline entry", entry_id)
