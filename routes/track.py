# =============================================================================
# 🛰️ routes/track.py
# -----------------------------------------------------------------------------
#   PUT  /track        → Tracking-Link anlegen
#   GET  /track/{id}   → Scan aufzeichnen + Ziel bestimmen (Geräteerkennung)
#   POST /track        → Scan aufzeichnen (Server-zu-Server)
# Fehler (400/404/429/500) übersetzt der Exception-Handler in main.py.
# =============================================================================

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import AliasChoices, BaseModel, Field

from utils.tracking_service import TrackingService, get_tracking_service
from utils.tracking_types import AppStoreRouting, UsageLimit

router = APIRouter(prefix="/track", tags=["Tracking"])


class AppStoreRoutingIn(BaseModel):
    enabled: bool = False
    iosUrl: Optional[str] = None
    androidUrl: Optional[str] = None
    fallbackUrl: Optional[str] = None

    def to_domain(self) -> AppStoreRouting:
        return AppStoreRouting(
            enabled=self.enabled,
            ios_url=(self.iosUrl or "").strip(),
            android_url=(self.androidUrl or "").strip(),
            fallback_url=(self.fallbackUrl or "").strip(),
        )


class UsageLimitIn(BaseModel):
    enabled: bool = False
    maxScans: Optional[int] = None
    # wird ignoriert – der Zähler startet immer bei 0
    currentScans: Optional[int] = None

    def to_domain(self) -> UsageLimit:
        return UsageLimit(enabled=self.enabled, max_scans=self.maxScans)


class MintIn(BaseModel):
    originalUrl: Optional[str] = None
    ownerId: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("ownerId", "userId")
    )
    appStoreRouting: Optional[AppStoreRoutingIn] = Field(
        default=None, validation_alias=AliasChoices("appStoreRouting", "appStore")
    )
    usageLimit: Optional[UsageLimitIn] = None


class ScanIn(BaseModel):
    trackingId: Optional[str] = None
    userAgent: Optional[str] = None
    ip: Optional[str] = None


def client_ip(request: Request) -> str:
    """Erste Adresse aus X-Forwarded-For, sonst X-Real-IP, sonst "unknown"."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.strip():
        return forwarded.split(",", 1)[0].strip()
    real_ip = request.headers.get("x-real-ip", "").strip()
    return real_ip or "unknown"


@router.put("", status_code=201)
def mint_tracking_url(
    payload: MintIn,
    request: Request,
    service: TrackingService = Depends(get_tracking_service),
) -> dict[str, Any]:
    record = service.mint(
        payload.originalUrl,
        owner_id=payload.ownerId,
        app_store_routing=payload.appStoreRouting.to_domain() if payload.appStoreRouting else None,
        usage_limit=payload.usageLimit.to_domain() if payload.usageLimit else None,
    )
    return {
        "trackingId": record.id,
        "trackingUrl": service.tracking_url(str(request.base_url), record.id),
        "originalUrl": record.original_url,
    }


@router.get("/{tracking_id}")
def scan_tracking_url(
    tracking_id: str,
    request: Request,
    service: TrackingService = Depends(get_tracking_service),
) -> dict[str, Any]:
    outcome = service.scan(
        tracking_id,
        request.headers.get("user-agent", ""),
        client_ip(request),
    )
    record = outcome.record
    return {
        "destinationUrl": outcome.destination_url,
        "trackingId": record.id,
        "appStoreRouting": record.app_store_routing.to_dict() if record.app_store_routing else None,
        "usageLimit": record.usage_limit.to_dict() if record.usage_limit else None,
        "deviceDetected": outcome.device.detected(),
    }


@router.post("")
def record_scan(
    payload: ScanIn,
    service: TrackingService = Depends(get_tracking_service),
) -> dict[str, Any]:
    record = service.record_scan(payload.trackingId, payload.userAgent, payload.ip)
    return {
        "success": True,
        "originalUrl": record.original_url,
        "appStoreRouting": record.app_store_routing.to_dict() if record.app_store_routing else None,
        "usageLimit": record.usage_limit.to_dict() if record.usage_limit else None,
    }
