# =============================================================================
# 📊 utils/dashboard_stats.py
# -----------------------------------------------------------------------------
# Dashboard-Übersicht über alle (oder die eigenen) Tracking-Datensätze:
#   • eine Zeile pro Datensatz inkl. Status und Top-Standort
#   • Gesamtsummen + globale Top-Standorte
# Gleichstand bei Standorten: der zuerst gezählte gewinnt.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from utils.analytics import location_stats, unique_visitors
from utils.tracking_types import UNKNOWN, TrackingRecord, UsageLimit, isoformat

NO_SCANS = "No scans"
LIMITED_RATIO = 0.8
RECENT_LOCATIONS = 3


def classify_status(usage_limit: Optional[UsageLimit]) -> str:
    if usage_limit is None or not usage_limit.enabled:
        return "Active"
    if usage_limit.current_scans >= usage_limit.max_scans:
        return "Exceeded"
    if usage_limit.current_scans / usage_limit.max_scans > LIMITED_RATIO:
        return "Limited"
    return "Active"


def top_location(stats: Dict[str, int]) -> Tuple[str, int]:
    best_name, best_count = NO_SCANS, 0
    for name, count in stats.items():
        if count > best_count:
            best_name, best_count = name, count
    return best_name, best_count


def recent_locations(record: TrackingRecord, limit: int = RECENT_LOCATIONS) -> List[str]:
    seen: List[str] = []
    for scan in record.scans:
        country = (scan.location.country if scan.location else "") or UNKNOWN
        if country not in seen:
            seen.append(country)
            if len(seen) >= limit:
                break
    return seen


def _sort_key(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class DashboardRow:
    record: TrackingRecord
    tracking_url: str
    total_scans: int
    unique_visitors: int
    status: str
    top_location: str
    top_location_count: int
    recent_locations: List[str] = field(default_factory=list)
    location_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def last_scan_at(self) -> Optional[datetime]:
        return self.record.scans[0].timestamp if self.record.scans else None

    def to_dict(self) -> Dict[str, Any]:
        record = self.record
        return {
            "id": record.id,
            "trackingId": record.id,
            "originalUrl": record.original_url,
            "trackingUrl": self.tracking_url,
            "createdAt": isoformat(record.created_at),
            "ownerId": record.owner_id,
            "appStoreRouting": record.app_store_routing.to_dict() if record.app_store_routing else None,
            "usageLimit": record.usage_limit.to_dict() if record.usage_limit else None,
            "totalScans": self.total_scans,
            "uniqueVisitors": self.unique_visitors,
            "lastScanAt": isoformat(self.last_scan_at),
            "status": self.status,
            "topLocation": self.top_location,
            "topLocationCount": self.top_location_count,
            "recentLocations": self.recent_locations,
            "locationStats": self.location_stats,
        }


@dataclass
class DashboardRollup:
    total_qr_codes: int
    total_scans: int
    total_unique_visitors: int
    active_qr_codes: int
    top_locations: List[Tuple[str, int]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalQrCodes": self.total_qr_codes,
            "totalScans": self.total_scans,
            "totalUniqueVisitors": self.total_unique_visitors,
            "activeQrCodes": self.active_qr_codes,
            "topLocations": [
                {"location": name, "count": count} for name, count in self.top_locations
            ],
        }


def build_row(record: TrackingRecord, tracking_url: str = "") -> DashboardRow:
    stats = location_stats(record.scans)
    name, count = top_location(stats)
    return DashboardRow(
        record=record,
        tracking_url=tracking_url,
        total_scans=len(record.scans),
        unique_visitors=unique_visitors(record.scans),
        status=classify_status(record.usage_limit),
        top_location=name,
        top_location_count=count,
        recent_locations=recent_locations(record),
        location_stats=stats,
    )


def list_summaries(
    records: Iterable[TrackingRecord],
    owner_id: Optional[str] = None,
    tracking_url_for: Optional[Callable[[str], str]] = None,
) -> List[DashboardRow]:
    """Zeilen, neueste Datensätze zuerst; ohne owner_id alle (Admin-Ansicht)."""
    selected = [r for r in records if owner_id is None or r.owner_id == owner_id]
    selected.sort(key=lambda r: _sort_key(r.created_at), reverse=True)
    return [
        build_row(r, tracking_url_for(r.id) if tracking_url_for else "")
        for r in selected
    ]


def rollup(rows: List[DashboardRow], top_n: int = 5) -> DashboardRollup:
    merged: Dict[str, int] = {}
    for row in rows:
        for name, count in row.location_stats.items():
            merged[name] = merged.get(name, 0) + count

    # sorted() ist stabil: bei Gleichstand bleibt die Einfügereihenfolge
    ranking = sorted(merged.items(), key=lambda item: item[1], reverse=True)
    return DashboardRollup(
        total_qr_codes=len(rows),
        total_scans=sum(row.total_scans for row in rows),
        total_unique_visitors=sum(row.unique_visitors for row in rows),
        active_qr_codes=len([row for row in rows if row.status == "Active"]),
        top_locations=ranking[:top_n],
    )
