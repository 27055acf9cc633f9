"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from tracking_backend.app.api.v1.endpoints import auth, admin_shipments, tracking

router = APIRouter()

# Admin authentication
router.include_router(auth.router)

# Admin shipment management
router.include_router(admin_shipments.router)

# Public tracking
router.include_router(tracking.router)
