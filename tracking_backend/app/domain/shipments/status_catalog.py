"""
Status Catalog (Domain Logic).

Fixed ordered lifecycle of a shipment and the default timeline text for
each stage. Everything here is pure: defaults are computed from the
shipment fields passed in and the store is never queried.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from tracking_backend.app.models.shipment_enums import ShipmentStatus

StatusLike = Union[ShipmentStatus, str, None]


def _field(shipment: Any, name: str) -> Optional[str]:
    """Read a field from an ORM row, schema object or plain dict."""
    if shipment is None:
        return None
    if isinstance(shipment, dict):
        value = shipment.get(name)
    else:
        value = getattr(shipment, name, None)
    if isinstance(value, str):
        value = value.strip()
    return value or None


def _origin(shipment: Any) -> str:
    return _field(shipment, "sender_city") or "Origin"


def _destination(shipment: Any) -> str:
    return _field(shipment, "receiver_city") or "Destination"


def _receiver_address(shipment: Any) -> str:
    parts = [
        _field(shipment, "receiver_street"),
        _field(shipment, "receiver_city"),
        _field(shipment, "receiver_country"),
    ]
    parts = [p for p in parts if p]
    if parts:
        return ", ".join(parts)
    return _destination(shipment)


@dataclass(frozen=True)
class StatusDefinition:
    status: ShipmentStatus
    position: int
    default_location: Callable[[Any], str]
    default_notes: Callable[[Any], str]


CATALOG: Tuple[StatusDefinition, ...] = (
    StatusDefinition(
        ShipmentStatus.PROCESSING, 1,
        lambda s: f"{_origin(s)} Sorting Center",
        lambda s: "Shipment created and processed",
    ),
    StatusDefinition(
        ShipmentStatus.PICKED_UP, 2,
        lambda s: f"{_origin(s)} Sorting Center",
        lambda s: "Package picked up by courier",
    ),
    StatusDefinition(
        ShipmentStatus.IN_TRANSIT, 3,
        lambda s: f"{_destination(s)} Distribution Hub",
        lambda s: "Package in transit to destination",
    ),
    StatusDefinition(
        ShipmentStatus.AT_DESTINATION, 4,
        lambda s: f"{_destination(s)} Distribution Hub",
        lambda s: f"Package in {_destination(s)} Distribution Hub",
    ),
    StatusDefinition(
        ShipmentStatus.DELIVERED, 5,
        _receiver_address,
        lambda s: "Package picked up by receiver",
    ),
)

_BY_STATUS: Dict[ShipmentStatus, StatusDefinition] = {d.status: d for d in CATALOG}

TOTAL_STEPS = len(CATALOG)
INITIAL_STATUS = CATALOG[0].status
FINAL_STATUS = CATALOG[-1].status


def parse_status(status: StatusLike) -> Optional[ShipmentStatus]:
    """Return the catalog member for `status`, or None if it is not one."""
    if isinstance(status, ShipmentStatus):
        return status
    if not status:
        return None
    try:
        return ShipmentStatus(status)
    except ValueError:
        return None


def is_known(status: StatusLike) -> bool:
    return parse_status(status) is not None


def position_of(status: StatusLike) -> Optional[int]:
    """1-based position in the lifecycle, None for unknown statuses."""
    member = parse_status(status)
    if member is None:
        return None
    return _BY_STATUS[member].position


def default_location_and_notes(status: StatusLike, shipment: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Default timeline text for a status.

    Args:
        status: Catalog status (enum member or its string value)
        shipment: Row or mapping exposing sender_city, receiver_street,
            receiver_city and receiver_country

    Returns:
        (location, notes); (None, None) for an unknown status or no shipment
    """
    member = parse_status(status)
    if member is None or shipment is None:
        return None, None
    definition = _BY_STATUS[member]
    return definition.default_location(shipment), definition.default_notes(shipment)


def progress_of(status: StatusLike) -> Dict[str, Any]:
    """
    Progress information for the tracking page.

    Returns:
        completed_steps, total_steps, percentage, is_complete and one entry
        per catalog status with its completion flag.
    """
    completed = position_of(status) or 0
    steps: List[Dict[str, Any]] = [
        {
            "status": d.status.value,
            "position": d.position,
            "completed": d.position <= completed,
        }
        for d in CATALOG
    ]
    return {
        "completed_steps": completed,
        "total_steps": TOTAL_STEPS,
        "percentage": round(completed / TOTAL_STEPS * 100),
        "is_complete": completed == TOTAL_STEPS,
        "steps": steps,
    }
