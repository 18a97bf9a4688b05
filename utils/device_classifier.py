# =============================================================================
# 📱 utils/device_classifier.py
# -----------------------------------------------------------------------------
# Ordnet einen rohen User-Agent einem Gerätetyp, Browser und Betriebssystem zu.
# Reine Funktion: kein Zustand, keine Fehler – unbekannt bleibt "Unknown".
# =============================================================================

from __future__ import annotations

import re
from typing import Optional, Tuple

from utils.tracking_types import UNKNOWN, DeviceDescriptor

_MOBILE_RE = re.compile(r"Mobile|Android|iPhone|iPad")
_TABLET_RE = re.compile(r"iPad|Tablet")
_IOS_RE = re.compile(r"iPhone|iPad|iPod")
_ANDROID_RE = re.compile(r"Android")

# Reihenfolge ist verbindlich: erster Treffer gewinnt
# (WebViews enthalten z. B. "Safari" UND "Chrome" → Chrome).
BROWSER_SIGNATURES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Chrome", ("Chrome",)),
    ("Firefox", ("Firefox",)),
    ("Safari", ("Safari",)),
    ("Edge", ("Edge",)),
)

OS_SIGNATURES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Windows", ("Windows",)),
    ("macOS", ("Mac",)),
    ("Linux", ("Linux",)),
    ("Android", ("Android",)),
    ("iOS", ("iOS", "iPhone", "iPad", "iPod")),
)


def _first_match(user_agent: str, signatures: Tuple[Tuple[str, Tuple[str, ...]], ...]) -> str:
    for label, needles in signatures:
        if any(needle in user_agent for needle in needles):
            return label
    return UNKNOWN


def device_type(user_agent: str) -> str:
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def classify(raw_user_agent: Optional[str]) -> DeviceDescriptor:
    """Liefert den DeviceDescriptor für einen User-Agent (auch leer/None)."""
    ua = raw_user_agent or ""
    return DeviceDescriptor(
        type=device_type(ua),
        browser=_first_match(ua, BROWSER_SIGNATURES),
        os=_first_match(ua, OS_SIGNATURES),
        is_ios=bool(_IOS_RE.search(ua)),
        is_android=bool(_ANDROID_RE.search(ua)),
    )
