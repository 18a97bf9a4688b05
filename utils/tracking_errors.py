from __future__ import annotations

from typing import Any, Dict


class TrackingError(Exception):
    """Basisklasse aller Fehler der Tracking-Engine."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(TrackingError):
    status_code = 400


class NotFoundError(TrackingError):
    status_code = 404

    def __init__(self, tracking_id: str) -> None:
        super().__init__("Tracking ID not found")
        self.tracking_id = tracking_id


class LimitExceededError(TrackingError):
    status_code = 429

    def __init__(self, max_scans: int, current_scans: int) -> None:
        super().__init__("Usage limit exceeded")
        self.max_scans = max_scans
        self.current_scans = current_scans

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "limitExceeded": True,
            "maxScans": self.max_scans,
            "currentScans": self.current_scans,
        }


class InternalError(TrackingError):
    status_code = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Internal server error"}
