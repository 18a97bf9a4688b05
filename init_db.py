# =============================================================================
# 🧩 init_db.py
# -----------------------------------------------------------------------------
# Legt die Tabellen für den SQL-Tracking-Store an (tracking_links, tracking_scans).
# Nutzt DATABASE_URL aus .env; bestehende Tabellen bleiben unverändert.
# =============================================================================

from database import SQLALCHEMY_DATABASE_URL, init_db, make_engine

if __name__ == "__main__":
    print(f"🛠️ Erstelle Tabellen in {SQLALCHEMY_DATABASE_URL} ...")
    engine = make_engine(SQLALCHEMY_DATABASE_URL)
    init_db(engine)
    print("✅ Tabellen wurden erfolgreich erstellt.")
