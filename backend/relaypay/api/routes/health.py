"""Health & Status — liveness probe and server status counters.

Invariants:
    - GET /api/health always returns 200 if the process is up (liveness)
    - GET /api/status reports uptime and ledger counters without side effects
"""

import logging
from fastapi import APIRouter, Depends, status

from relaypay.services.hub import RealtimeHub, get_hub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "relaypay",
        "version": "1.0.0",
    }


@router.get("/status")
async def server_status(hub: RealtimeHub = Depends(get_hub)):
    return hub.ledger.status()
