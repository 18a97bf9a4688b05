from __future__ import annotations

import pytest

from tests.helpers.user_agents import ANDROID_UA, DESKTOP_UA, IPHONE_UA
from utils.device_classifier import classify
from utils.redirect_resolver import destination_for, resolve
from utils.tracking_errors import LimitExceededError
from utils.tracking_types import AppStoreRouting, TrackingRecord, UsageLimit

ROUTING = AppStoreRouting(
    enabled=True,
    ios_url="https://apps.apple.com/app/id1",
    android_url="https://play.google.com/store/apps/details?id=x",
    fallback_url="https://example.com/download",
)


def _record(routing=None, limit=None) -> TrackingRecord:
    return TrackingRecord(
        id="abc123",
        original_url="https://example.com",
        app_store_routing=routing,
        usage_limit=limit,
    )


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        (IPHONE_UA, ROUTING.ios_url),
        (ANDROID_UA, ROUTING.android_url),
        (DESKTOP_UA, ROUTING.fallback_url),
    ],
)
def test_app_store_precedence(user_agent, expected):
    record = _record(routing=ROUTING)
    assert resolve(record, classify(user_agent)).destination_url == expected


def test_disabled_routing_always_uses_original_url():
    routing = AppStoreRouting(enabled=False, ios_url="https://ios", android_url="https://android")
    record = _record(routing=routing)
    assert destination_for(record, classify(IPHONE_UA)) == "https://example.com"
    assert destination_for(record, classify(ANDROID_UA)) == "https://example.com"


def test_missing_store_url_falls_back():
    routing = AppStoreRouting(enabled=True, ios_url="", android_url="", fallback_url="https://fb")
    assert destination_for(_record(routing=routing), classify(IPHONE_UA)) == "https://fb"


def test_no_urls_at_all_falls_through_to_original():
    routing = AppStoreRouting(enabled=True)
    assert destination_for(_record(routing=routing), classify(ANDROID_UA)) == "https://example.com"


def test_limit_reached_is_refused_before_routing():
    record = _record(routing=ROUTING, limit=UsageLimit(enabled=True, max_scans=2, current_scans=2))
    with pytest.raises(LimitExceededError) as excinfo:
        resolve(record, classify(IPHONE_UA))
    assert excinfo.value.max_scans == 2
    assert excinfo.value.current_scans == 2


def test_disabled_limit_is_ignored():
    record = _record(limit=UsageLimit(enabled=False, max_scans=1, current_scans=5))
    assert resolve(record, classify(DESKTOP_UA)).destination_url == "https://example.com"


def test_resolve_does_not_mutate_record():
    limit = UsageLimit(enabled=True, max_scans=3, current_scans=1)
    record = _record(limit=limit)
    resolve(record, classify(DESKTOP_UA))
    assert record.usage_limit.current_scans == 1
    assert record.scans == []
