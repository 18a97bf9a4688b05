# =============================================================================
# 📈 utils/analytics.py
# -----------------------------------------------------------------------------
# Auswertung eines einzelnen Tracking-Datensatzes (nur lesend, bei Abruf):
#   • Gesamtscans, eindeutige Besucher (nach IP)
#   • Häufigkeiten nach Gerätetyp, Browser, OS, Land
#   • letzte N Scans (Historie ist bereits neueste-zuerst)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from utils.tracking_types import UNKNOWN, ScanEvent, TrackingRecord, isoformat

RECENT_SCANS_LIMIT = 20


def frequency_table(values: Iterable[str]) -> Dict[str, int]:
    """Zählt Werte; leere Werte landen unter "Unknown"."""
    counts: Dict[str, int] = {}
    for value in values:
        key = value or UNKNOWN
        counts[key] = counts.get(key, 0) + 1
    return counts


def unique_visitors(scans: Iterable[ScanEvent]) -> int:
    return len({scan.source_ip for scan in scans})


def location_stats(scans: Iterable[ScanEvent]) -> Dict[str, int]:
    return frequency_table(scan.location.country if scan.location else UNKNOWN for scan in scans)


@dataclass
class AnalyticsSummary:
    record: TrackingRecord
    total_scans: int
    unique_visitors: int
    devices: Dict[str, int] = field(default_factory=dict)
    browsers: Dict[str, int] = field(default_factory=dict)
    operating_systems: Dict[str, int] = field(default_factory=dict)
    locations: Dict[str, int] = field(default_factory=dict)
    recent_scans: List[ScanEvent] = field(default_factory=list)

    def to_dict(self, include_scans: bool = True) -> Dict[str, Any]:
        record = self.record
        payload: Dict[str, Any] = {
            "trackingId": record.id,
            "originalUrl": record.original_url,
            "createdAt": isoformat(record.created_at),
            "totalScans": self.total_scans,
            "uniqueVisitors": self.unique_visitors,
            "appStoreRouting": record.app_store_routing.to_dict() if record.app_store_routing else None,
            "usageLimit": record.usage_limit.to_dict() if record.usage_limit else None,
            "statistics": {
                "devices": self.devices,
                "browsers": self.browsers,
                "operatingSystems": self.operating_systems,
                "locations": self.locations,
            },
            "recentScans": [scan.to_dict() for scan in self.recent_scans],
        }
        if include_scans:
            payload["scans"] = [scan.to_dict() for scan in record.scans]
        return payload


def summarize(record: TrackingRecord, recent_limit: int = RECENT_SCANS_LIMIT) -> AnalyticsSummary:
    scans = record.scans
    return AnalyticsSummary(
        record=record,
        total_scans=len(scans),
        unique_visitors=unique_visitors(scans),
        devices=frequency_table(scan.device.type for scan in scans),
        browsers=frequency_table(scan.device.browser for scan in scans),
        operating_systems=frequency_table(scan.device.os for scan in scans),
        locations=location_stats(scans),
        recent_scans=list(scans[:recent_limit]),
    )
