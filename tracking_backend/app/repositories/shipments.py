"""
Shipment repository - CRUD operations for shipment rows.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete, func, or_

from tracking_backend.app.core.exceptions import ResourceNotFoundError
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.shipment_enums import ShipmentStatus
from tracking_backend.app.repositories.base import BaseRepository


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ShipmentRepository(BaseRepository):
    """Repository for shipment CRUD operations."""

    async def _select_one(self, operation: str, condition) -> Optional[Shipment]:
        async def _query():
            result = await self.db.execute(
                select(Shipment)
                .where(condition)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

        return await self._run(operation, _query)

    async def get(self, shipment_ref: str) -> Shipment:
        """
        Get a shipment by internal ID, falling back to its tracking code.

        Raises:
            ResourceNotFoundError: If neither lookup matches
        """
        shipment = await self._select_one("shipments.get", Shipment.id == shipment_ref)
        if shipment is None:
            shipment = await self._select_one("shipments.get_by_tracking_code", Shipment.tracking_id == shipment_ref)
        if shipment is None:
            raise ResourceNotFoundError("Shipment", shipment_ref)
        return shipment

    async def get_by_tracking_code(self, tracking_code: str) -> Shipment:
        shipment = await self._select_one("shipments.get_by_tracking_code", Shipment.tracking_id == tracking_code)
        if shipment is None:
            raise ResourceNotFoundError("Shipment", tracking_code)
        return shipment

    async def create(self, fields: Dict[str, Any]) -> Shipment:
        """Insert a shipment row and return it with store-assigned values."""
        shipment = Shipment(**fields)

        async def _insert():
            self.db.add(shipment)
            await self.db.commit()
            await self.db.refresh(shipment)
            return shipment

        return await self._run("shipments.create", _insert)

    async def update(self, shipment_id: str, fields: Dict[str, Any]) -> None:
        """
        Apply `fields` to one shipment in a single UPDATE.

        Raises:
            ResourceNotFoundError: If no row has this ID
        """
        if not fields:
            return

        async def _update():
            result = await self.db.execute(
                update(Shipment)
                .where(Shipment.id == shipment_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount

        updated = await self._run("shipments.update", _update)
        if updated == 0:
            raise ResourceNotFoundError("Shipment", shipment_id)

    async def delete(self, shipment_id: str) -> None:
        """
        Delete one shipment. Its timeline goes with it through the
        ON DELETE CASCADE foreign key.
        """
        async def _delete():
            result = await self.db.execute(
                delete(Shipment)
                .where(Shipment.id == shipment_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount

        deleted = await self._run("shipments.delete", _delete)
        if deleted == 0:
            raise ResourceNotFoundError("Shipment", shipment_id)

    @staticmethod
    def _filters(status: Optional[ShipmentStatus], search: Optional[str]) -> list:
        conditions = []
        if status:
            conditions.append(Shipment.status == status)
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            conditions.append(or_(
                Shipment.tracking_id.ilike(pattern, escape="\\"),
                Shipment.sender_name.ilike(pattern, escape="\\"),
                Shipment.receiver_name.ilike(pattern, escape="\\"),
            ))
        return conditions

    async def list(
        self,
        status: Optional[ShipmentStatus] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 50
    ) -> List[Shipment]:
        """List shipments, newest first."""
        async def _query():
            result = await self.db.execute(
                select(Shipment)
                .where(*self._filters(status, search))
                .order_by(Shipment.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            return list(result.scalars().all())

        return await self._run("shipments.list", _query)

    async def count(self, status: Optional[ShipmentStatus] = None, search: Optional[str] = None) -> int:
        async def _query():
            result = await self.db.execute(
                select(func.count(Shipment.id)).where(*self._filters(status, search))
            )
            return result.scalar() or 0

        return await self._run("shipments.count", _query)

    async def count_by_status(self) -> Dict[ShipmentStatus, int]:
        async def _query():
            result = await self.db.execute(
                select(Shipment.status, func.count(Shipment.id)).group_by(Shipment.status)
            )
            return {row[0]: row[1] for row in result.all() if row[0] is not None}

        return await self._run("shipments.count_by_status", _query)
