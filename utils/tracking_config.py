from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./qr_tracking.db"


@dataclass(frozen=True)
class TrackingSettings:
    store_backend: str = "memory"
    database_url: str = DEFAULT_DATABASE_URL
    app_domain: str = ""
    page_prefix: str = "/t"
    recent_scans_limit: int = 20
    dashboard_top_locations: int = 5
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("⚠️ %s=%r ist keine Zahl – verwende %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("⚠️ %s=%r ist negativ – verwende %s", name, raw, default)
        return default
    return value


def load_settings() -> TrackingSettings:
    backend = os.getenv("TRACKING_STORE", "memory").strip().lower() or "memory"
    if backend not in {"memory", "sql"}:
        logger.warning("⚠️ Unbekannter TRACKING_STORE=%r – verwende 'memory'", backend)
        backend = "memory"

    prefix = "/" + (os.getenv("TRACKING_PAGE_PREFIX", "").strip().strip("/") or "t")

    return TrackingSettings(
        store_backend=backend,
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        app_domain=os.getenv("APP_DOMAIN", "").strip().rstrip("/"),
        page_prefix=prefix,
        recent_scans_limit=_env_int("RECENT_SCANS_LIMIT", 20),
        dashboard_top_locations=_env_int("DASHBOARD_TOP_LOCATIONS", 5),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
