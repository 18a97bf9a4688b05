# =============================================================================
# 🚀 QR Tracking – Hauptapplikation (main.py)
# =============================================================================

from __future__ import annotations
import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

# -------------------------------------------------------------------------
# 1️⃣ .env laden (muss ganz oben sein!)
# -------------------------------------------------------------------------
env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path)

from utils.tracking_config import load_settings
from utils.tracking_errors import InternalError, TrackingError

settings = load_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("ouhud.tracking.app")

# -------------------------------------------------------------------------
# 2️⃣ FastAPI App
# -------------------------------------------------------------------------
app = FastAPI(title="Ouhud QR Tracking", version="2.0")

# -------------------------------------------------------------------------
# 3️⃣ Fehlerbehandlung: Domänenfehler → JSON mit passendem Status
# -------------------------------------------------------------------------
@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("❌ Interner Fehler bei %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# -------------------------------------------------------------------------
# 4️⃣ Routen laden
# -------------------------------------------------------------------------
from routes import track
from routes import analytics
from routes import dashboard
from routes import scan_page

app.include_router(track.router)
app.include_router(analytics.router)
app.include_router(dashboard.router)

# zentraler Resolver für die QR-Ziel-URLs
app.include_router(scan_page.router)


# -------------------------------------------------------------------------
# 5️⃣ Health
# -------------------------------------------------------------------------
@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "store": settings.store_backend}
