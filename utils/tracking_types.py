# =============================================================================
# 🧾 utils/tracking_types.py
# -----------------------------------------------------------------------------
# Datentypen der Scan-Tracking-Engine:
#   • TrackingRecord  – ein einlösbarer QR-Code-Link inkl. Scan-Historie
#   • ScanEvent       – ein einzelner, aufgezeichneter Scan
#   • DeviceDescriptor, Location, AppStoreRouting, UsageLimit
# Die Stores liefern immer Kopien (snapshot()), nie den internen Zustand.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

UNKNOWN = "Unknown"


def utc_now() -> datetime:
    """Aktuelle UTC-Zeit (timezone-aware)."""
    return datetime.now(timezone.utc)


def isoformat(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class DeviceDescriptor:
    type: str = "desktop"
    browser: str = UNKNOWN
    os: str = UNKNOWN
    is_ios: bool = False
    is_android: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "browser": self.browser, "os": self.os}

    def detected(self) -> Dict[str, Any]:
        return {"type": self.type, "isIOS": self.is_ios, "isAndroid": self.is_android}


@dataclass(frozen=True)
class Location:
    country: str = UNKNOWN
    city: str = UNKNOWN
    latitude: float = 0.0
    longitude: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country": self.country,
            "city": self.city,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class AppStoreRouting:
    enabled: bool = False
    ios_url: str = ""
    android_url: str = ""
    fallback_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "iosUrl": self.ios_url,
            "androidUrl": self.android_url,
            "fallbackUrl": self.fallback_url,
        }


@dataclass
class UsageLimit:
    enabled: bool = False
    max_scans: int = 0
    current_scans: int = 0

    @property
    def exhausted(self) -> bool:
        return self.enabled and self.current_scans >= self.max_scans

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "maxScans": self.max_scans,
            "currentScans": self.current_scans,
        }


@dataclass(frozen=True)
class ScanEvent:
    id: str
    timestamp: datetime
    raw_user_agent: str
    source_ip: str
    location: Location
    device: DeviceDescriptor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": isoformat(self.timestamp),
            "userAgent": self.raw_user_agent,
            "ip": self.source_ip,
            "location": self.location.to_dict(),
            "device": self.device.to_dict(),
        }


@dataclass
class TrackingRecord:
    """
    Ein Tracking-Datensatz.
    Nur usage_limit.current_scans und scans (neueste zuerst) ändern sich
    nach dem Anlegen, und zwar ausschließlich über den Scan-Recorder.
    """

    id: str
    original_url: str
    created_at: datetime = field(default_factory=utc_now)
    owner_id: Optional[str] = None
    app_store_routing: Optional[AppStoreRouting] = None
    usage_limit: Optional[UsageLimit] = None
    scans: List[ScanEvent] = field(default_factory=list)

    def snapshot(self) -> "TrackingRecord":
        return replace(
            self,
            usage_limit=replace(self.usage_limit) if self.usage_limit else None,
            scans=list(self.scans),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trackingId": self.id,
            "originalUrl": self.original_url,
            "createdAt": isoformat(self.created_at),
            "ownerId": self.owner_id,
            "appStoreRouting": self.app_store_routing.to_dict() if self.app_store_routing else None,
            "usageLimit": self.usage_limit.to_dict() if self.usage_limit else None,
        }
