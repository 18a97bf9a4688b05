from __future__ import annotations

from utils.tracking_config import load_settings
from utils.tracking_service import build_service
from utils.tracking_store import MemoryTrackingStore, SqlTrackingStore


def test_defaults(monkeypatch):
    for name in ["TRACKING_STORE", "APP_DOMAIN", "TRACKING_PAGE_PREFIX", "RECENT_SCANS_LIMIT"]:
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.store_backend == "memory"
    assert settings.page_prefix == "/t"
    assert settings.recent_scans_limit == 20


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("TRACKING_STORE", "SQL")
    monkeypatch.setenv("APP_DOMAIN", "https://qr.example.org/")
    monkeypatch.setenv("TRACKING_PAGE_PREFIX", "scan/")
    monkeypatch.setenv("RECENT_SCANS_LIMIT", "5")
    settings = load_settings()
    assert settings.store_backend == "sql"
    assert settings.app_domain == "https://qr.example.org"
    assert settings.page_prefix == "/scan"
    assert settings.recent_scans_limit == 5


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("TRACKING_STORE", "redis")
    monkeypatch.setenv("RECENT_SCANS_LIMIT", "viele")
    monkeypatch.setenv("DASHBOARD_TOP_LOCATIONS", "-3")
    settings = load_settings()
    assert settings.store_backend == "memory"
    assert settings.recent_scans_limit == 20
    assert settings.dashboard_top_locations == 5


def test_build_service_selects_store(monkeypatch):
    monkeypatch.setenv("TRACKING_STORE", "memory")
    assert isinstance(build_service(load_settings()).store, MemoryTrackingStore)

    monkeypatch.setenv("TRACKING_STORE", "sql")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    service = build_service(load_settings())
    assert isinstance(service.store, SqlTrackingStore)
    record = service.mint("https://example.com")
    assert service.get(record.id).original_url == "https://example.com"
