# =============================================================================
# 🧭 utils/tracking_service.py
# -----------------------------------------------------------------------------
# Fassade der Tracking-Engine für die Routen:
#   mint → get → scan (Resolver + Recorder) → analytics / dashboard
# get_tracking_service() liefert die prozessweite Instanz (Store laut .env).
# =============================================================================

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional

from utils.analytics import AnalyticsSummary, summarize
from utils.dashboard_stats import DashboardRollup, DashboardRow, list_summaries, rollup
from utils.device_classifier import classify
from utils.geolocation import GeoProvider, UnknownGeoProvider
from utils.redirect_resolver import resolve
from utils.scan_recorder import ScanRecorder
from utils.tracking_config import TrackingSettings, load_settings
from utils.tracking_errors import InternalError, NotFoundError, ValidationError
from utils.tracking_store import MemoryTrackingStore, SqlTrackingStore, TrackingStore
from utils.tracking_types import (
    AppStoreRouting,
    DeviceDescriptor,
    ScanEvent,
    TrackingRecord,
    UsageLimit,
    utc_now,
)

logger = logging.getLogger("ouhud.tracking")

MINT_ATTEMPTS = 5


@dataclass(frozen=True)
class ScanOutcome:
    destination_url: str
    device: DeviceDescriptor
    event: ScanEvent
    record: TrackingRecord


def new_tracking_id() -> str:
    return uuid.uuid4().hex[:12]


class TrackingService:
    def __init__(
        self,
        store: TrackingStore,
        geo_provider: Optional[GeoProvider] = None,
        settings: Optional[TrackingSettings] = None,
    ) -> None:
        self.store = store
        self.settings = settings or TrackingSettings()
        self.recorder = ScanRecorder(store, geo_provider or UnknownGeoProvider())

    # ------------------------------------------------------------------ #
    # 🆕 Anlegen & Nachschlagen
    # ------------------------------------------------------------------ #
    def mint(
        self,
        original_url: Optional[str],
        owner_id: Optional[str] = None,
        app_store_routing: Optional[AppStoreRouting] = None,
        usage_limit: Optional[UsageLimit] = None,
    ) -> TrackingRecord:
        url = (original_url or "").strip() if isinstance(original_url, str) else ""
        if not url:
            raise ValidationError("Original URL is required")

        if usage_limit is not None:
            max_scans = usage_limit.max_scans
            if usage_limit.enabled:
                if max_scans is None:
                    raise ValidationError("maxScans is required when the usage limit is enabled")
                if max_scans < 0:
                    raise ValidationError("maxScans must not be negative")
            # Zähler beginnt immer bei 0, egal was mitgeschickt wurde
            usage_limit = UsageLimit(enabled=usage_limit.enabled, max_scans=max_scans or 0)

        tracking_id = self._unused_id()
        record = TrackingRecord(
            id=tracking_id,
            original_url=url,
            created_at=utc_now(),
            owner_id=owner_id or None,
            app_store_routing=app_store_routing,
            usage_limit=usage_limit,
        )
        self.store.put(record)
        logger.info("🆕 Tracking-Link %s angelegt (owner=%s)", tracking_id, record.owner_id)
        return record.snapshot()

    def _unused_id(self) -> str:
        for _ in range(MINT_ATTEMPTS):
            candidate = new_tracking_id()
            if not self.store.exists(candidate):
                return candidate
        raise InternalError("Could not generate a unique tracking id")

    def get(self, tracking_id: str) -> TrackingRecord:
        return self.store.get(tracking_id)

    def tracking_url(self, base_url: str, tracking_id: str) -> str:
        base = base_url.rstrip("/")
        if self.settings.app_domain and "127.0.0.1" not in base and "localhost" not in base:
            base = self.settings.app_domain
        return f"{base}{self.settings.page_prefix}/{tracking_id}"

    # ------------------------------------------------------------------ #
    # 📲 Scans
    # ------------------------------------------------------------------ #
    def scan(
        self, tracking_id: str, raw_user_agent: Optional[str], source_ip: Optional[str]
    ) -> ScanOutcome:
        """Auflösen + Aufzeichnen. Limit wird vorab und beim Schreiben geprüft."""
        record = self.store.get(tracking_id)
        device = classify(raw_user_agent)
        resolution = resolve(record, device)

        event, updated = self.recorder.record_scan(tracking_id, raw_user_agent, source_ip)
        return ScanOutcome(
            destination_url=resolution.destination_url,
            device=event.device,
            event=event,
            record=updated,
        )

    def record_scan(
        self, tracking_id: Optional[str], raw_user_agent: Optional[str], source_ip: Optional[str]
    ) -> TrackingRecord:
        if not tracking_id:
            raise NotFoundError(tracking_id or "")
        _, updated = self.recorder.record_scan(tracking_id, raw_user_agent, source_ip)
        return updated

    # ------------------------------------------------------------------ #
    # 📈 Auswertung
    # ------------------------------------------------------------------ #
    def analytics(self, tracking_id: Optional[str]) -> AnalyticsSummary:
        if not tracking_id:
            raise ValidationError("Tracking ID is required")
        return summarize(self.store.get(tracking_id), self.settings.recent_scans_limit)

    def dashboard(
        self, owner_id: Optional[str] = None, tracking_url_for: Optional[Callable[[str], str]] = None
    ) -> List[DashboardRow]:
        return list_summaries(self.store.list(owner_id), owner_id, tracking_url_for)

    def dashboard_rollup(self, owner_id: Optional[str] = None) -> DashboardRollup:
        return rollup(self.dashboard(owner_id), self.settings.dashboard_top_locations)


def build_service(settings: TrackingSettings) -> TrackingService:
    if settings.store_backend == "sql":
        from database import init_db, make_engine, make_session_factory

        engine = make_engine(settings.database_url)
        init_db(engine)
        store: TrackingStore = SqlTrackingStore(make_session_factory(engine))
    else:
        store = MemoryTrackingStore()
    logger.info("💾 Tracking-Store: %s", settings.store_backend)
    return TrackingService(store, UnknownGeoProvider(), settings)


@lru_cache(maxsize=1)
def get_tracking_service() -> TrackingService:
    """Dependency für FastAPI (in Tests per dependency_overrides ersetzbar)."""
    return build_service(load_settings())
