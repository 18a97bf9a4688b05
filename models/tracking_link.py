# =============================================================================
# 🔗 models/tracking_link.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Modell für Tracking-Links (ein Datensatz pro ausgegebenem QR-Link).
# App-Store-Routing und Nutzungslimit sind optional: NULL in *_enabled heißt
# "nicht konfiguriert".
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.tracking_scan import TrackingScan


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackingLink(Base):
    __tablename__ = "tracking_links"

    # ---------------------------------------------------------------------
    # 🧾 Basisattribute (unveränderlich)
    # ---------------------------------------------------------------------
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    # ---------------------------------------------------------------------
    # 📱 App-Store-Weiterleitung
    # ---------------------------------------------------------------------
    app_store_enabled: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    ios_url: Mapped[Optional[str]] = mapped_column(Text)
    android_url: Mapped[Optional[str]] = mapped_column(Text)
    fallback_url: Mapped[Optional[str]] = mapped_column(Text)

    # ---------------------------------------------------------------------
    # 🔢 Nutzungslimit (current_scans nur per bedingtem UPDATE erhöhen)
    # ---------------------------------------------------------------------
    usage_limit_enabled: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    max_scans: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_scans: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ---------------------------------------------------------------------
    # 🔗 Beziehungen (neueste Scans zuerst)
    # ---------------------------------------------------------------------
    scans: Mapped[list["TrackingScan"]] = relationship(
        "TrackingScan",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="TrackingScan.seq.desc()",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<TrackingLink(id='{self.id}', owner='{self.owner_id}', "
            f"scans={self.current_scans}/{self.max_scans})>"
        )
