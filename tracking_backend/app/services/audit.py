"""
Audit logging service for admin sign-ins and shipment mutations.
"""

import logging
from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from tracking_backend.app.core.exceptions import StoreError
from tracking_backend.app.core.reliability import run_store_call
from tracking_backend.app.models.audit_log import AuditLog

logger = logging.getLogger("tracking.audit")


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"

    SHIPMENT_CREATED = "SHIPMENT_CREATED"
    SHIPMENT_UPDATED = "SHIPMENT_UPDATED"
    SHIPMENT_DELETED = "SHIPMENT_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    shipment_id: Optional[str] = None,
    tracking_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Record an event in the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of admin performing the action
        actor_username: Username of actor
        shipment_id: Shipment acted upon (if applicable)
        tracking_id: Tracking code of that shipment
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        shipment_id=shipment_id,
        tracking_id=tracking_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def record_event(db: AsyncSession, warnings: Optional[List[str]] = None, **fields) -> Optional[AuditLog]:
    """
    Best-effort log_event for requests whose mutation is already committed.

    The write is bounded by the store timeout. A failure is logged, rolled
    back and appended to `warnings`; it never fails the request.

    Returns:
        The AuditLog row, or None if it could not be written
    """
    try:
        return await run_store_call("audit.log_event", log_event, db, **fields)
    except StoreError as e:
        await db.rollback()
        logger.warning(
            "Audit event not recorded",
            extra={
                "action": fields.get("action"),
                "shipment_id": fields.get("shipment_id"),
                "error": str(e),
            }
        )
        if warnings is not None:
            warnings.append(f"Audit event not recorded: {e}")
        return None


async def get_shipment_audit_trail(
    db: AsyncSession,
    shipment_id: str,
    limit: int = 50
) -> list[AuditLog]:
    """
    Audit history of one shipment, most recent first.
    """
    query = select(AuditLog).where(
        AuditLog.shipment_id == shipment_id
    ).order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    async def _query():
        result = await db.execute(query)
        return list(result.scalars().all())

    return await run_store_call("audit.shipment_trail", _query)
