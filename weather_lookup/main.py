"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together the preference store, the weather session and templates
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from sqlalchemy.orm import Session

from .settings import settings
from .db import Base, engine, get_db, session_scope
from . import models  # noqa: F401  (registers tables on Base)
from .crud import load_preferences, save_preferences
from .errors import (
    CredentialInvalidError,
    ProviderError,
    RateLimitedError,
    SupersededError,
    TransportError,
    WeatherError,
)
from .schemas import Preferences, TemperatureUnit, WeatherOut
from .session import GENERIC_ERROR, WeatherSession
from .weather_clients import GiphyClient, VisualCrossingClient

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

# Create tables automatically; there is only the preferences table.
Base.metadata.create_all(bind=engine)

# One session for the whole process, like one open browser tab.
weather_session = WeatherSession(
    VisualCrossingClient(
        settings.visual_crossing_api_key,
        base_url=settings.visual_crossing_base_url,
        timeout_s=settings.timeout_s,
    ),
    GiphyClient(
        settings.giphy_api_key,
        base_url=settings.giphy_base_url,
        timeout_s=settings.timeout_s,
    ),
    unit=TemperatureUnit(settings.default_unit),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    with session_scope() as db:
        prefs = load_preferences(db)
    if prefs is not None:
        logger.info("Loaded preferences: unit=%s", prefs.unit.value)
        weather_session.apply_preferences(prefs)
    yield
    await weather_session.wait_for_auxiliary()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def status_for(error: WeatherError) -> int:
    """HTTP status our API answers with for a failed search."""
    if isinstance(error, RateLimitedError):
        return 429
    if isinstance(error, SupersededError):
        return 409
    if isinstance(error, (CredentialInvalidError, ProviderError, TransportError)):
        # Upstream/configuration problem, not the caller's fault.
        return 502
    return 400


def page_context(request: Request, **extra) -> dict:
    context = {
        "request": request,
        "app_name": settings.app_name,
        "unit": weather_session.unit.value,
        "last_location": weather_session.last_location,
        "gif_enabled": weather_session.gif_client.enabled,
        "loading": weather_session.loading,
    }
    context.update(extra)
    return context


def render_results(request: Request, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "results.html",
        page_context(
            request,
            q=weather_session.last_location,
            display=weather_session.render(),
            gif=weather_session.gif,
            error=weather_session.error,
        ),
        status_code=status_code,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Last line of defence: never leave the page half-updated or a spinner stuck."""
    logger.exception("Unhandled error on %s", request.url.path)
    weather_session.loading = False
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": GENERIC_ERROR}, status_code=500)
    return templates.TemplateResponse(
        request,
        "results.html",
        page_context(request, q="", display=None, gif=None, error=GENERIC_ERROR),
        status_code=500,
    )


# -------------------------
# UI routes
# -------------------------

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    """Landing page with the search form."""
    return templates.TemplateResponse(request, "index.html", page_context(request))


@app.get("/results", response_class=HTMLResponse)
async def results_page(
    request: Request,
    q: Optional[str] = Query(None, max_length=255),
    unit: Optional[TemperatureUnit] = Query(None),
):
    """
    Server-rendered weather result page.
    - one timeline request, asked for in `unit` when given
    - without `q`, the result already on display is shown again
    - page themed by the current condition
    - GIF slot filled in later by the page itself (/api/status)
    """
    if unit is not None:
        weather_session.unit = unit
    if q is None:
        if weather_session.view_model is None:
            return RedirectResponse("/", status_code=303)
        return render_results(request)
    try:
        await weather_session.lookup(q)
    except SupersededError:
        # A newer search owns the page now; show that one.
        return render_results(request)
    except WeatherError as exc:
        return render_results(request, status_code=status_for(exc))
    return render_results(request)


@app.post("/unit", response_class=HTMLResponse)
async def toggle_unit_page(request: Request):
    """Switch C/F on the page that is already showing; no new request."""
    weather_session.toggle_unit()
    if weather_session.view_model is None:
        return RedirectResponse("/", status_code=303)
    return render_results(request)


@app.post("/preferences", response_class=HTMLResponse)
async def save_preferences_page(db: Session = Depends(get_db)):
    save_preferences(db, weather_session.preferences())
    # /results without q shows the held result again, no new search
    return RedirectResponse("/results", status_code=303)


# -------------------------
# JSON APIs
# -------------------------

def weather_out() -> WeatherOut:
    return WeatherOut(weather=weather_session.view_model, display=weather_session.render())


@app.get("/api/weather", response_model=WeatherOut)
async def api_weather(q: str = Query(..., max_length=255)):
    """
    Current conditions + up to 7 forecast days for a location string.

    409 when a newer search started before this one finished.
    """
    try:
        await weather_session.lookup(q)
    except WeatherError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc))
    return weather_out()


@app.get("/api/weather/by-coords", response_model=WeatherOut)
async def api_weather_by_coords(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
):
    """Weather for the browser's geolocation coordinates."""
    try:
        await weather_session.lookup_coordinates(lat, lon)
    except WeatherError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc))
    return weather_out()


@app.post("/api/unit/toggle")
async def api_toggle_unit():
    """Flip C/F. Re-renders the held result without calling the provider."""
    display = weather_session.toggle_unit()
    return {"unit": weather_session.unit.value, "display": display}


@app.get("/api/gif")
async def api_gif():
    """The GIF for the current result, or null while it is loading / unavailable."""
    return {"gif": weather_session.gif}


@app.get("/api/status")
async def api_status():
    """Whether a search is in flight, plus the error and GIF the page should show."""
    return weather_session.status()


@app.get("/api/preferences", response_model=Preferences, response_model_by_alias=True)
def api_get_preferences(db: Session = Depends(get_db)):
    """Saved preferences, or the defaults when nothing has been saved yet."""
    return load_preferences(db) or Preferences()


@app.put("/api/preferences", response_model=Preferences, response_model_by_alias=True)
def api_put_preferences(payload: Preferences, db: Session = Depends(get_db)):
    """Apply and persist preferences."""
    weather_session.unit = payload.unit
    if payload.last_location:
        weather_session.last_location = payload.last_location
    return save_preferences(db, payload)


@app.get("/health")
def health():
    return {"status": "ok"}
