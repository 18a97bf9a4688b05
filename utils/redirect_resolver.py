# =============================================================================
# 🔀 utils/redirect_resolver.py
# -----------------------------------------------------------------------------
# Bestimmt das Weiterleitungsziel für (Datensatz, Gerät):
#   1) Nutzungslimit erreicht → LimitExceededError (kein Routing, kein Scan)
#   2) App-Store-Routing aktiv → iOS / Android / Fallback
#   3) sonst Original-URL
# Reine Berechnung ohne Seiteneffekte.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass

from utils.tracking_errors import LimitExceededError
from utils.tracking_types import DeviceDescriptor, TrackingRecord


@dataclass(frozen=True)
class Resolution:
    destination_url: str
    device: DeviceDescriptor


def check_admission(record: TrackingRecord) -> None:
    limit = record.usage_limit
    if limit is not None and limit.exhausted:
        raise LimitExceededError(limit.max_scans, limit.current_scans)


def destination_for(record: TrackingRecord, device: DeviceDescriptor) -> str:
    routing = record.app_store_routing
    if routing is None or not routing.enabled:
        return record.original_url

    if device.is_ios and routing.ios_url:
        return routing.ios_url
    if device.is_android and routing.android_url:
        return routing.android_url
    if routing.fallback_url:
        return routing.fallback_url
    return record.original_url


def resolve(record: TrackingRecord, device: DeviceDescriptor) -> Resolution:
    check_admission(record)
    return Resolution(destination_url=destination_for(record, device), device=device)
