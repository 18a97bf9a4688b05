# =============================================================================
# 💾 utils/tracking_store.py
# -----------------------------------------------------------------------------
# Speicher für Tracking-Datensätze:
#   • TrackingStore        – Schnittstelle (get / put / append_scan / list)
#   • MemoryTrackingStore  – prozessweites Dict (Standard)
#   • SqlTrackingStore     – SQLAlchemy (SQLite / MySQL / Postgres)
#
# append_scan ist die einzige schreibende Operation nach dem Anlegen:
# Limit-Prüfung, Einfügen und Hochzählen laufen pro Datensatz serialisiert.
# =============================================================================

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, ContextManager, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from models.tracking_link import TrackingLink
from models.tracking_scan import TrackingScan
from utils.tracking_errors import InternalError, LimitExceededError, NotFoundError
from utils.tracking_types import (
    AppStoreRouting,
    DeviceDescriptor,
    Location,
    ScanEvent,
    TrackingRecord,
    UsageLimit,
)

logger = logging.getLogger("ouhud.tracking.store")


class RecordLocks:
    """Ein Lock pro Tracking-ID; Locks werden bei Bedarf angelegt."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, tracking_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(tracking_id)
            if lock is None:
                lock = self._locks[tracking_id] = threading.Lock()
            return lock


class TrackingStore(ABC):
    @abstractmethod
    def get(self, tracking_id: str) -> TrackingRecord:
        """Kopie des Datensatzes; NotFoundError wenn unbekannt."""

    @abstractmethod
    def exists(self, tracking_id: str) -> bool:
        ...

    @abstractmethod
    def put(self, record: TrackingRecord) -> None:
        ...

    @abstractmethod
    def append_scan(self, tracking_id: str, event: ScanEvent) -> TrackingRecord:
        """
        Fügt einen Scan vorne an und erhöht current_scans (falls Limit aktiv).
        Wirft LimitExceededError ohne jede Änderung, wenn das Limit erreicht ist.
        Gibt den Datensatz nach der Änderung zurück.
        """

    @abstractmethod
    def list(self, owner_id: Optional[str] = None) -> List[TrackingRecord]:
        ...


# --------------------------------------------------------------------------- #
# 🧠 In-Memory
# --------------------------------------------------------------------------- #
class MemoryTrackingStore(TrackingStore):
    def __init__(self) -> None:
        self._records: Dict[str, TrackingRecord] = {}
        self._guard = threading.Lock()
        self._locks = RecordLocks()

    def _lookup(self, tracking_id: str) -> TrackingRecord:
        with self._guard:
            record = self._records.get(tracking_id)
        if record is None:
            raise NotFoundError(tracking_id)
        return record

    def get(self, tracking_id: str) -> TrackingRecord:
        record = self._lookup(tracking_id)
        with self._locks.lock_for(tracking_id):
            return record.snapshot()

    def exists(self, tracking_id: str) -> bool:
        with self._guard:
            return tracking_id in self._records

    def put(self, record: TrackingRecord) -> None:
        with self._guard:
            if record.id in self._records:
                raise InternalError(f"Duplicate tracking id {record.id}")
            self._records[record.id] = record.snapshot()

    def append_scan(self, tracking_id: str, event: ScanEvent) -> TrackingRecord:
        record = self._lookup(tracking_id)
        with self._locks.lock_for(tracking_id):
            limit = record.usage_limit
            if limit is not None and limit.exhausted:
                raise LimitExceededError(limit.max_scans, limit.current_scans)
            record.scans.insert(0, event)
            if limit is not None and limit.enabled:
                limit.current_scans += 1
            return record.snapshot()

    def list(self, owner_id: Optional[str] = None) -> List[TrackingRecord]:
        with self._guard:
            records = list(self._records.values())
        if owner_id is not None:
            records = [r for r in records if r.owner_id == owner_id]
        result = []
        for record in records:
            with self._locks.lock_for(record.id):
                result.append(record.snapshot())
        return result


# --------------------------------------------------------------------------- #
# 🗄️ SQLAlchemy
# --------------------------------------------------------------------------- #
def _to_scan_event(row: TrackingScan) -> ScanEvent:
    return ScanEvent(
        id=row.id,
        timestamp=row.timestamp,
        raw_user_agent=row.user_agent or "",
        source_ip=row.ip_address or "unknown",
        location=Location(
            country=row.country,
            city=row.city,
            latitude=row.latitude,
            longitude=row.longitude,
        ),
        device=DeviceDescriptor(
            type=row.device_type,
            browser=row.browser,
            os=row.os,
            is_ios=bool(row.is_ios),
            is_android=bool(row.is_android),
        ),
    )


def _to_record(link: TrackingLink) -> TrackingRecord:
    routing = None
    if link.app_store_enabled is not None:
        routing = AppStoreRouting(
            enabled=link.app_store_enabled,
            ios_url=link.ios_url or "",
            android_url=link.android_url or "",
            fallback_url=link.fallback_url or "",
        )
    limit = None
    if link.usage_limit_enabled is not None:
        limit = UsageLimit(
            enabled=link.usage_limit_enabled,
            max_scans=link.max_scans,
            current_scans=link.current_scans,
        )
    return TrackingRecord(
        id=link.id,
        original_url=link.original_url,
        created_at=link.created_at,
        owner_id=link.owner_id,
        app_store_routing=routing,
        usage_limit=limit,
        scans=[_to_scan_event(row) for row in link.scans],
    )


def _to_link(record: TrackingRecord) -> TrackingLink:
    routing = record.app_store_routing
    limit = record.usage_limit
    return TrackingLink(
        id=record.id,
        original_url=record.original_url,
        owner_id=record.owner_id,
        created_at=record.created_at,
        app_store_enabled=routing.enabled if routing else None,
        ios_url=routing.ios_url if routing else None,
        android_url=routing.android_url if routing else None,
        fallback_url=routing.fallback_url if routing else None,
        usage_limit_enabled=limit.enabled if limit else None,
        max_scans=limit.max_scans if limit else 0,
        current_scans=limit.current_scans if limit else 0,
    )


def _to_scan_row(tracking_id: str, event: ScanEvent) -> TrackingScan:
    return TrackingScan(
        id=event.id,
        link_id=tracking_id,
        timestamp=event.timestamp,
        user_agent=event.raw_user_agent,
        ip_address=event.source_ip,
        country=event.location.country,
        city=event.location.city,
        latitude=event.location.latitude,
        longitude=event.location.longitude,
        device_type=event.device.type,
        browser=event.device.browser,
        os=event.device.os,
        is_ios=event.device.is_ios,
        is_android=event.device.is_android,
    )


class SqlTrackingStore(TrackingStore):
    """
    SQL-Variante. Das Limit wird per bedingtem UPDATE
    (current_scans < max_scans) in derselben Transaktion wie der INSERT
    des Scans geprüft; der Prozess-Lock serialisiert zusätzlich pro Datensatz.

    SQLite: alle Sessions teilen sich (StaticPool) eine Verbindung bzw. eine
    Schreibsperre – dort läuft jede Operation unter einem store-weiten Lock.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._locks = RecordLocks()
        bind = session_factory.kw.get("bind")
        self._store_lock = (
            threading.RLock() if bind is not None and bind.dialect.name == "sqlite" else None
        )

    def _read_guard(self) -> ContextManager[Any]:
        return self._store_lock if self._store_lock is not None else nullcontext()

    def _write_guard(self, tracking_id: str) -> ContextManager[Any]:
        if self._store_lock is not None:
            return self._store_lock
        return self._locks.lock_for(tracking_id)

    def _load(self, db: Session, tracking_id: str) -> TrackingLink:
        link = db.get(TrackingLink, tracking_id)
        if link is None:
            raise NotFoundError(tracking_id)
        return link

    def get(self, tracking_id: str) -> TrackingRecord:
        try:
            with self._read_guard(), self._session_factory() as db:
                return _to_record(self._load(db, tracking_id))
        except SQLAlchemyError as exc:
            logger.exception("❌ Tracking-Datensatz %s konnte nicht geladen werden", tracking_id)
            raise InternalError("Tracking record could not be loaded") from exc

    def exists(self, tracking_id: str) -> bool:
        try:
            with self._read_guard(), self._session_factory() as db:
                return db.get(TrackingLink, tracking_id) is not None
        except SQLAlchemyError as exc:
            raise InternalError("Tracking store unavailable") from exc

    def put(self, record: TrackingRecord) -> None:
        with self._read_guard(), self._session_factory() as db:
            try:
                db.add(_to_link(record))
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("❌ Tracking-Datensatz %s konnte nicht gespeichert werden", record.id)
                raise InternalError("Tracking record could not be stored") from exc

    def append_scan(self, tracking_id: str, event: ScanEvent) -> TrackingRecord:
        with self._write_guard(tracking_id):
            with self._session_factory() as db:
                try:
                    link = self._load(db, tracking_id)
                    if link.usage_limit_enabled:
                        max_scans, current_scans = link.max_scans, link.current_scans
                        result = db.execute(
                            update(TrackingLink)
                            .where(
                                TrackingLink.id == tracking_id,
                                TrackingLink.current_scans < TrackingLink.max_scans,
                            )
                            .values(current_scans=TrackingLink.current_scans + 1)
                            .execution_options(synchronize_session=False)
                        )
                        if result.rowcount != 1:
                            db.rollback()
                            raise LimitExceededError(max_scans, current_scans)
                    db.add(_to_scan_row(tracking_id, event))
                    db.commit()
                except SQLAlchemyError as exc:
                    db.rollback()
                    logger.exception("❌ Scan für %s konnte nicht gespeichert werden", tracking_id)
                    raise InternalError("Scan could not be recorded") from exc
            return self.get(tracking_id)

    def list(self, owner_id: Optional[str] = None) -> List[TrackingRecord]:
        try:
            with self._read_guard(), self._session_factory() as db:
                stmt = select(TrackingLink)
                if owner_id is not None:
                    stmt = stmt.where(TrackingLink.owner_id == owner_id)
                return [_to_record(link) for link in db.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            logger.exception("❌ Tracking-Datensätze konnten nicht gelistet werden")
            raise InternalError("Tracking records could not be listed") from exc
