from __future__ import annotations

import logging
import uuid
from typing import Optional, Tuple

from utils.device_classifier import classify
from utils.geolocation import GeoProvider, UnknownGeoProvider
from utils.tracking_errors import LimitExceededError
from utils.tracking_store import TrackingStore
from utils.tracking_types import ScanEvent, TrackingRecord, utc_now

logger = logging.getLogger("ouhud.tracking.scan")


class ScanRecorder:
    """
    Zeichnet Scans auf: Gerät klassifizieren, Standort bestimmen,
    Scan vorne anhängen und Zähler erhöhen – atomar über den Store.
    """

    def __init__(self, store: TrackingStore, geo_provider: Optional[GeoProvider] = None) -> None:
        self.store = store
        self.geo_provider = geo_provider or UnknownGeoProvider()

    def build_event(self, raw_user_agent: Optional[str], source_ip: Optional[str]) -> ScanEvent:
        ip = source_ip or "unknown"
        return ScanEvent(
            id=uuid.uuid4().hex[:12],
            timestamp=utc_now(),
            raw_user_agent=raw_user_agent or "",
            source_ip=ip,
            location=self.geo_provider.locate(ip),
            device=classify(raw_user_agent),
        )

    def record_scan(
        self, tracking_id: str, raw_user_agent: Optional[str], source_ip: Optional[str]
    ) -> Tuple[ScanEvent, TrackingRecord]:
        """Wie record(), liefert zusätzlich den Datensatz nach dem Scan."""
        event = self.build_event(raw_user_agent, source_ip)
        try:
            record = self.store.append_scan(tracking_id, event)
        except LimitExceededError as exc:
            logger.warning(
                "⛔ Limit erreicht für %s (%s/%s)", tracking_id, exc.current_scans, exc.max_scans
            )
            raise

        logger.info(
            "📲 Scan %s für %s (%s, %s, %s)",
            event.id, tracking_id, event.device.type, event.device.browser, event.device.os,
        )
        return event, record

    def record(
        self, tracking_id: str, raw_user_agent: Optional[str], source_ip: Optional[str]
    ) -> ScanEvent:
        event, _ = self.record_scan(tracking_id, raw_user_agent, source_ip)
        return event
