# =============================================================================
# 📊 models/tracking_scan.py
# -----------------------------------------------------------------------------
# Ein Datensatz pro aufgezeichnetem Scan (Gerät, Browser, OS, Standort, IP).
# seq bestimmt die Einfügereihenfolge, id ist die öffentliche Scan-ID.
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.tracking_link import TrackingLink


class TrackingScan(Base):
    __tablename__ = "tracking_scans"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    link_id: Mapped[str] = mapped_column(
        ForeignKey("tracking_links.id", ondelete="CASCADE"), nullable=False, index=True
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )
    user_agent: Mapped[str] = mapped_column(Text, default="")
    ip_address: Mapped[str] = mapped_column(String(64), default="unknown")

    # Standort
    country: Mapped[str] = mapped_column(String(100), default="Unknown")
    city: Mapped[str] = mapped_column(String(100), default="Unknown")
    latitude: Mapped[float] = mapped_column(Float, default=0.0)
    longitude: Mapped[float] = mapped_column(Float, default=0.0)

    # Gerät
    device_type: Mapped[str] = mapped_column(String(20), default="desktop")
    browser: Mapped[str] = mapped_column(String(50), default="Unknown")
    os: Mapped[str] = mapped_column(String(50), default="Unknown")
    is_ios: Mapped[bool] = mapped_column(Boolean, default=False)
    is_android: Mapped[bool] = mapped_column(Boolean, default=False)

    link: Mapped["TrackingLink"] = relationship("TrackingLink", back_populates="scans")

    def __repr__(self) -> str:
        return (
            f"<TrackingScan(id='{self.id}', link='{self.link_id}', device='{self.device_type}', "
            f"country='{self.country}', timestamp={self.timestamp})>"
        )
