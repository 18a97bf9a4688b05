# =============================================================================
# 🗄️ database.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Konfiguration für den SQL-Tracking-Store
# DATABASE_URL aus .env (Standard: lokale SQLite-Datei), UTC-aware Zeitstempel
# =============================================================================

import os
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

# 🔹 .env laden (z. B. aus .env-Datei im Projektverzeichnis)
load_dotenv()

SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./qr_tracking.db")

# 🔹 Basisklasse für alle SQLAlchemy-Modelle
Base = declarative_base()


def make_engine(url: str = SQLALCHEMY_DATABASE_URL) -> Engine:
    """
    Erstellt die Engine.
    SQLite: Threads teilen sich die Verbindung, In-Memory-DBs über StaticPool.
    Andere Server (MySQL/Postgres): pool_pre_ping + pool_recycle.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(url, pool_pre_ping=True, pool_recycle=280)


def make_session_factory(engine: Engine) -> sessionmaker:
    """SessionFactory – eine Session pro Store-Operation."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """Legt fehlende Tabellen an (idempotent)."""
    import models  # noqa: F401  (registriert alle Tabellen an Base.metadata)

    Base.metadata.create_all(bind=engine, checkfirst=True)
