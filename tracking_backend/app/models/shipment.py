"""
Shipment database model.

One row per parcel handled by the admin console.
"""

import uuid
from sqlalchemy import Column, String, Float, Date, DateTime, Text
from sqlalchemy.sql import func
from tracking_backend.app.db.session import Base
from tracking_backend.app.models.shipment_enums import ShipmentStatus, shipment_status_column_type


def generate_shipment_id() -> str:
    return str(uuid.uuid4())


class Shipment(Base):
    """
    Shipment model.

    `id` is the opaque internal identifier, `tracking_id` the code handed to
    customers. Only explicit updates change descriptive fields; the timeline
    reconciler only ever writes `status`.
    """
    __tablename__ = "shipments"

    id = Column(String(36), primary_key=True, default=generate_shipment_id)
    tracking_id = Column(String(32), unique=True, nullable=False, index=True)

    status = Column(
        shipment_status_column_type(),
        default=ShipmentStatus.PROCESSING,
        nullable=True,
        index=True,
    )

    # Sender
    sender_name = Column(String(200), nullable=False)
    sender_phone = Column(String(50), nullable=False)
    sender_email = Column(String(255), nullable=True)
    sender_street = Column(String(300), nullable=False)
    sender_city = Column(String(100), nullable=False)
    sender_country = Column(String(100), nullable=False)

    # Receiver
    receiver_name = Column(String(200), nullable=False)
    receiver_phone = Column(String(50), nullable=False)
    receiver_street = Column(String(300), nullable=False)
    receiver_city = Column(String(100), nullable=False)
    receiver_country = Column(String(100), nullable=False)

    # Package
    package_type = Column(String(50), nullable=False)
    weight_kg = Column(Float, nullable=True)
    length_cm = Column(Float, nullable=True)
    width_cm = Column(Float, nullable=True)
    height_cm = Column(Float, nullable=True)
    declared_value_usd = Column(Float, nullable=True)

    # Payment
    invoice_number = Column(String(100), nullable=True)
    payment_status = Column(String(50), nullable=True)
    payment_method = Column(String(50), nullable=True)
    payment_date = Column(Date, nullable=True)
    shipping_cost_yen = Column(Float, nullable=True)
    insurance_yen = Column(Float, nullable=True)
    taxes_yen = Column(Float, nullable=True)
    additional_fees_usd = Column(Float, nullable=True)
    total_amount_yen = Column(Float, nullable=True)

    # Customs clearance
    clearance_status = Column(String(50), nullable=True)
    declaration_number = Column(String(100), nullable=True)
    clearance_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        status = self.status.value if self.status else None
        return f"<Shipment(id={self.id}, tracking_id='{self.tracking_id}', status='{status}')>"
