# =============================================================================
# 📦 models/__init__.py
# -----------------------------------------------------------------------------
# Minimal: registriert alle Tabellen an Base.metadata
# =============================================================================

from .tracking_link import TrackingLink
from .tracking_scan import TrackingScan

__all__ = [
    "TrackingLink",
    "TrackingScan",
]
