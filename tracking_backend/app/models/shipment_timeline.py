"""
Shipment Timeline database model.

Append-mostly log of the statuses a shipment has passed through.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from tracking_backend.app.db.session import Base
from tracking_backend.app.models.shipment_enums import shipment_status_column_type


class ShipmentTimeline(Base):
    """
    Timeline entry model.

    At most one entry exists per (shipment, status): revisiting a status
    amends the existing row. Rows are removed with their shipment
    (ON DELETE CASCADE) and `created_at` is never rewritten.
    """
    __tablename__ = "shipment_timeline"
    __table_args__ = (
        UniqueConstraint("shipment_id", "status", name="uq_shipment_timeline_shipment_status"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    shipment_id = Column(
        String(36),
        ForeignKey("shipments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status = Column(shipment_status_column_type(), nullable=False)
    location = Column(String(300), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ShipmentTimeline(id={self.id}, shipment_id={self.shipment_id}, status='{self.status.value}')>"
