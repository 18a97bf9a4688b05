from __future__ import annotations

from tests.helpers.user_agents import ANDROID_UA, DESKTOP_UA, IPHONE_UA
from utils.device_classifier import classify


def test_iphone_is_mobile_ios_safari():
    device = classify(IPHONE_UA)
    assert device.type == "mobile"
    assert device.os == "iOS"
    assert device.browser == "Safari"
    assert device.is_ios is True
    assert device.is_android is False


def test_android_chrome_is_mobile():
    device = classify(ANDROID_UA)
    assert device.type == "mobile"
    assert device.browser == "Chrome"
    assert device.is_android is True
    assert device.is_ios is False
    # "Linux" steht in der Prioritätsliste vor "Android"
    assert device.os == "Linux"


def test_windows_desktop():
    device = classify(DESKTOP_UA)
    assert device.type == "desktop"
    assert device.os == "Windows"
    assert device.browser == "Chrome"


def test_ipad_is_tablet_not_mobile():
    device = classify("Mozilla/5.0 (iPad; CPU OS 16_0) AppleWebKit/605.1.15 Version/16.0 Safari/604.1")
    assert device.type == "tablet"
    assert device.is_ios is True


def test_generic_tablet_signal():
    assert classify("Mozilla/5.0 (Linux; Android 12; Tablet) Firefox/118.0").type == "tablet"


def test_webview_with_safari_and_chrome_resolves_to_chrome():
    device = classify("Mozilla/5.0 (X11; Linux x86_64) Chrome/116.0 Safari/537.36")
    assert device.browser == "Chrome"


def test_firefox_and_mac():
    device = classify("Mozilla/5.0 (Macintosh; Intel Mac OS X 13.5; rv:109.0) Gecko/20100101 Firefox/118.0")
    assert device.browser == "Firefox"
    assert device.os == "macOS"
    assert device.type == "desktop"


def test_ipod_counts_as_ios():
    device = classify("Mozilla/5.0 (iPod touch; CPU iPhone OS 12_0) Safari/604.1")
    assert device.is_ios is True


def test_empty_and_none_degrade_to_unknown():
    for ua in ("", None, "curl/8.0"):
        device = classify(ua)
        assert device.type == "desktop"
        assert device.browser == "Unknown"
        assert device.os == "Unknown"
        assert device.is_ios is False
        assert device.is_android is False


def test_classification_is_deterministic():
    assert classify(ANDROID_UA) == classify(ANDROID_UA)
