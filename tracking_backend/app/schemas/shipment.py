"""
Shipment Pydantic schemas.

Defines request and response models for shipment management and public
tracking.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date
from typing import Optional, List, Dict, Any
from tracking_backend.app.models.shipment_enums import ShipmentStatus


class ShipmentFieldsBase(BaseModel):
    """Payment, customs and package fields shared by create and update."""
    weight_kg: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    length_cm: Optional[float] = Field(None, gt=0)
    width_cm: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    declared_value_usd: Optional[float] = Field(None, ge=0)

    invoice_number: Optional[str] = Field(None, max_length=100)
    payment_status: Optional[str] = Field(None, max_length=50)
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_date: Optional[date] = None
    shipping_cost_yen: Optional[float] = Field(None, ge=0)
    insurance_yen: Optional[float] = Field(None, ge=0)
    taxes_yen: Optional[float] = Field(None, ge=0)
    additional_fees_usd: Optional[float] = Field(None, ge=0)
    total_amount_yen: Optional[float] = Field(None, ge=0)

    clearance_status: Optional[str] = Field(None, max_length=50)
    declaration_number: Optional[str] = Field(None, max_length=100)
    clearance_notes: Optional[str] = None


class ShipmentCreate(ShipmentFieldsBase):
    """
    Schema for creating a shipment.

    Status is always initialized to Processing and the tracking code is
    assigned by the server. Required-field checks happen in the service so
    the client gets one message per missing field.
    """
    sender_name: Optional[str] = Field(None, max_length=200)
    sender_phone: Optional[str] = Field(None, max_length=50)
    sender_email: Optional[str] = Field(None, max_length=255)
    sender_street: Optional[str] = Field(None, max_length=300)
    sender_city: Optional[str] = Field(None, max_length=100)
    sender_country: Optional[str] = Field(None, max_length=100)

    receiver_name: Optional[str] = Field(None, max_length=200)
    receiver_phone: Optional[str] = Field(None, max_length=50)
    receiver_street: Optional[str] = Field(None, max_length=300)
    receiver_city: Optional[str] = Field(None, max_length=100)
    receiver_country: Optional[str] = Field(None, max_length=100)

    package_type: Optional[str] = Field(None, max_length=50)


class ShipmentUpdate(ShipmentFieldsBase):
    """
    Schema for updating a shipment.

    `location` and `notes` only feed the timeline entry for `status`; they
    are never stored on the shipment row.
    """
    status: Optional[ShipmentStatus] = None
    location: Optional[str] = Field(None, max_length=300, description="Timeline location override")
    notes: Optional[str] = Field(None, description="Timeline notes override")

    sender_name: Optional[str] = Field(None, min_length=1, max_length=200)
    sender_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    sender_email: Optional[str] = Field(None, max_length=255)
    sender_street: Optional[str] = Field(None, min_length=1, max_length=300)
    sender_city: Optional[str] = Field(None, min_length=1, max_length=100)
    sender_country: Optional[str] = Field(None, min_length=1, max_length=100)

    receiver_name: Optional[str] = Field(None, min_length=1, max_length=200)
    receiver_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    receiver_street: Optional[str] = Field(None, min_length=1, max_length=300)
    receiver_city: Optional[str] = Field(None, min_length=1, max_length=100)
    receiver_country: Optional[str] = Field(None, min_length=1, max_length=100)

    package_type: Optional[str] = Field(None, min_length=1, max_length=50)


class TimelineEntryResponse(BaseModel):
    """Schema for one timeline entry."""
    id: int
    status: ShipmentStatus
    location: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ShipmentResponse(BaseModel):
    """Schema for the full shipment row (admin only)."""
    id: str
    tracking_id: str
    status: Optional[ShipmentStatus]

    sender_name: str
    sender_phone: str
    sender_email: Optional[str]
    sender_street: str
    sender_city: str
    sender_country: str

    receiver_name: str
    receiver_phone: str
    receiver_street: str
    receiver_city: str
    receiver_country: str

    package_type: str
    weight_kg: Optional[float]
    length_cm: Optional[float]
    width_cm: Optional[float]
    height_cm: Optional[float]
    declared_value_usd: Optional[float]

    invoice_number: Optional[str]
    payment_status: Optional[str]
    payment_method: Optional[str]
    payment_date: Optional[date]
    shipping_cost_yen: Optional[float]
    insurance_yen: Optional[float]
    taxes_yen: Optional[float]
    additional_fees_usd: Optional[float]
    total_amount_yen: Optional[float]

    clearance_status: Optional[str]
    declaration_number: Optional[str]
    clearance_notes: Optional[str]

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ShipmentDetailResponse(BaseModel):
    """Shipment with its timeline (newest first) and any timeline warnings."""
    shipment: ShipmentResponse
    timeline: List[TimelineEntryResponse]
    timeline_action: Optional[str] = None
    warnings: List[str] = []


class ShipmentListResponse(BaseModel):
    """Schema for paginated shipment list."""
    shipments: List[ShipmentResponse]
    total: int
    page: int
    page_size: int


class ShipmentStatsResponse(BaseModel):
    """Counts for the dashboard cards."""
    total: int
    by_status: Dict[str, int]


class ProgressStep(BaseModel):
    status: str
    position: int
    completed: bool


class TrackingProgress(BaseModel):
    completed_steps: int
    total_steps: int
    percentage: int
    is_complete: bool
    steps: List[ProgressStep]


class PublicShipmentView(BaseModel):
    """Shipment fields exposed on the public tracking page (no contact details)."""
    tracking_id: str
    status: Optional[ShipmentStatus]
    sender_name: str
    sender_city: str
    sender_country: str
    receiver_name: str
    receiver_city: str
    receiver_country: str
    package_type: str
    weight_kg: Optional[float]
    length_cm: Optional[float]
    width_cm: Optional[float]
    height_cm: Optional[float]
    declared_value_usd: Optional[float]
    invoice_number: Optional[str]
    payment_status: Optional[str]
    payment_method: Optional[str]
    payment_date: Optional[date]
    total_amount_yen: Optional[float]
    clearance_status: Optional[str]
    clearance_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TrackingResponse(BaseModel):
    """Schema for GET /track/{tracking_code}."""
    shipment: PublicShipmentView
    timeline: List[TimelineEntryResponse]
    progress: TrackingProgress
    estimated_delivery: Optional[datetime]


class AuditEventResponse(BaseModel):
    """One audit log entry for a shipment."""
    id: int
    action: str
    actor_id: Optional[int]
    actor_username: Optional[str]
    tracking_id: Optional[str]
    meta_data: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class ShipmentAuditResponse(BaseModel):
    """Audit history of a shipment, most recent first."""
    shipment_id: str
    tracking_id: str
    events: List[AuditEventResponse]
