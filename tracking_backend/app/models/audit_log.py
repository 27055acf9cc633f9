"""
Audit Log Database Model.

Tracks admin sign-ins and shipment mutations for operators.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from tracking_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - SHIPMENT_CREATED / SHIPMENT_UPDATED / SHIPMENT_DELETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for failed logins of unknown users)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Shipment the action was applied to, if any
    shipment_id = Column(String(36), index=True, nullable=True)
    tracking_id = Column(String(32), nullable=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, tracking_id={self.tracking_id})>"
