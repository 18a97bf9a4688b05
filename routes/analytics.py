from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from utils.tracking_service import TrackingService, get_tracking_service

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("")
def analytics(
    tracking_id: Optional[str] = Query(default=None, alias="trackingId"),
    service: TrackingService = Depends(get_tracking_service),
) -> dict[str, Any]:
    """Statistik eines Tracking-Links inkl. vollständiger Scan-Historie."""
    return service.analytics(tracking_id).to_dict(include_scans=True)
