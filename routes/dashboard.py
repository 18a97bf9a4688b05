# =============================================================================
# 📊 routes/dashboard.py
# -----------------------------------------------------------------------------
# Dashboard-Routen:
#   • GET /dashboard          → eine Zeile pro Tracking-Link (neueste zuerst)
#   • GET /dashboard/summary  → Gesamtsummen + globale Top-Standorte
# Ohne userId: Admin-Ansicht über alle Links.
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request

from utils.tracking_service import TrackingService, get_tracking_service

# -------------------------------------------------------------------------
# ⚙️ Router Setup
# -------------------------------------------------------------------------
router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _owner(user_id: Optional[str]) -> Optional[str]:
    # ?userId= (leer) zählt wie nicht gesetzt
    return user_id or None


# -------------------------------------------------------------------------
# 📋 Übersicht aller Tracking-Links
# -------------------------------------------------------------------------
@router.get("")
def dashboard(
    request: Request,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    service: TrackingService = Depends(get_tracking_service),
) -> List[Dict[str, Any]]:
    base_url = str(request.base_url)
    rows = service.dashboard(
        _owner(user_id),
        tracking_url_for=lambda tracking_id: service.tracking_url(base_url, tracking_id),
    )
    return [row.to_dict() for row in rows]


# -------------------------------------------------------------------------
# 🧮 Gesamtsummen
# -------------------------------------------------------------------------
@router.get("/summary")
def dashboard_summary(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    service: TrackingService = Depends(get_tracking_service),
) -> Dict[str, Any]:
    return service.dashboard_rollup(_owner(user_id)).to_dict()
