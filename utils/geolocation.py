from __future__ import annotations

from abc import ABC, abstractmethod

from utils.tracking_types import Location


class GeoProvider(ABC):
    """Schnittstelle für IP-Geolokalisierung (Schlüssel: Quell-IP)."""

    @abstractmethod
    def locate(self, source_ip: str) -> Location:
        raise NotImplementedError


class UnknownGeoProvider(GeoProvider):
    """Standard ohne angebundenen Dienst: immer "Unknown" / 0,0."""

    def locate(self, source_ip: str) -> Location:
        return Location()
