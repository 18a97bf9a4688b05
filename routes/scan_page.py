# =============================================================================
# 🔄 routes/scan_page.py
# -----------------------------------------------------------------------------
# Öffentliches Ziel der QR-Codes:  GET /t/{tracking_id}
#   • Erfolg          → 302 Redirect (App Store / Play Store / Fallback / URL)
#   • Limit erreicht  → 429 eigene Seite "Usage Limit Exceeded"
#   • Unbekannt       → 404 Seite "Invalid or expired tracking link"
# =============================================================================

from __future__ import annotations

from html import escape
from typing import Union

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from routes.track import client_ip
from utils.tracking_config import load_settings
from utils.tracking_errors import LimitExceededError, NotFoundError
from utils.tracking_service import TrackingService, get_tracking_service

router = APIRouter(prefix=load_settings().page_prefix, tags=["QR-Resolver"])

ResponseType = Union[RedirectResponse, HTMLResponse]


def _page(title: str, message: str, status_code: int) -> HTMLResponse:
    html = f"""
    <html><head><meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{escape(title)}</title></head>
    <body style="font-family:system-ui;padding:24px">
      <h2>{escape(title)}</h2>
      <p>{escape(message)}</p>
      <p><a href="/">Create your own QR code</a></p>
    </body></html>
    """
    return HTMLResponse(html, status_code=status_code)


@router.get("/{tracking_id}", response_model=None)
def open_tracking_link(
    tracking_id: str,
    request: Request,
    service: TrackingService = Depends(get_tracking_service),
) -> ResponseType:
    try:
        outcome = service.scan(
            tracking_id,
            request.headers.get("user-agent", ""),
            client_ip(request),
        )
    except LimitExceededError as exc:
        return _page(
            "Usage Limit Exceeded",
            f"This QR code has reached its usage limit of {exc.max_scans} scans.",
            status_code=429,
        )
    except NotFoundError:
        return _page("Error", "Invalid or expired tracking link", status_code=404)

    return RedirectResponse(outcome.destination_url, status_code=302)
