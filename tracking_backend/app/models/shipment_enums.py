"""
Shipment Status Enumeration.
"""

import enum
from sqlalchemy import Enum


class ShipmentStatus(str, enum.Enum):
    """
    Shipment lifecycle status.

    Status flow:
        Processing → Picked Up → In Transit → At Destination → Delivered
        Any earlier status may be revisited (rollback).
    """
    PROCESSING = "Processing"
    PICKED_UP = "Picked Up"
    IN_TRANSIT = "In Transit"
    AT_DESTINATION = "At Destination"
    DELIVERED = "Delivered"


def shipment_status_column_type() -> Enum:
    """Column type persisting the human-readable status values."""
    return Enum(
        ShipmentStatus,
        name="shipment_status",
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
