"""
Weather clients.

We intentionally separate API logic from FastAPI endpoints:
- easier to test in isolation
- cleaner main.py
- the session object only ever sees a view model or a WeatherError
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .errors import (
    AuxiliaryLookupError,
    CredentialInvalidError,
    InputInvalidError,
    LocationUnresolvedError,
    ProviderError,
    RateLimitedError,
    TransportError,
    WeatherError,
)
from .processing import normalize_weather
from .schemas import WeatherGif, WeatherViewModel

logger = logging.getLogger(__name__)

UNIT_GROUPS = ("metric", "us")

# Same set of characters JavaScript's encodeURIComponent leaves alone.
_PATH_SAFE = "-_.!~*'()"


def classify_status(status_code: int) -> Optional[WeatherError]:
    """
    Map a provider HTTP status to the error we report, or None for 2xx.
    """
    if 200 <= status_code < 300:
        return None
    if status_code == 400:
        return LocationUnresolvedError()
    if status_code == 401:
        return CredentialInvalidError()
    if status_code == 429:
        return RateLimitedError()
    return ProviderError(status_code)


class VisualCrossingClient:
    """
    Visual Crossing timeline API wrapper.

    Endpoint used:
        /timeline/<location>?unitGroup=metric|us&key=KEY&contentType=json

    One call returns today plus the coming days, so a single request is all a
    search needs.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline",
        timeout_s: float = 10.0,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.base = base_url.rstrip("/")

    def timeline_url(self, location: str) -> str:
        """The location travels in the path, escaped like encodeURIComponent."""
        return f"{self.base}/{quote(location, safe=_PATH_SAFE)}"

    def timeline_params(self, unit_group: str) -> Dict[str, str]:
        if unit_group not in UNIT_GROUPS:
            raise ValueError(f"Unsupported unit group: {unit_group!r}")
        return {"unitGroup": unit_group, "key": self.api_key, "contentType": "json"}

    async def fetch_timeline(self, location: str, unit_group: str = "metric") -> Dict[str, Any]:
        """
        Issue the timeline request and return the decoded JSON payload.

        Every failure is classified before anything is parsed, so callers never
        see a half-read response.
        """
        query = (location or "").strip()
        if not query:
            raise InputInvalidError()

        url = self.timeline_url(query)
        params = self.timeline_params(unit_group)
        logger.info("Fetching weather for %r (unitGroup=%s)", query, unit_group)

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                r = await client.get(url, params=params)
        except httpx.TransportError as exc:
            logger.warning("Weather request for %r failed: %s", query, exc)
            raise TransportError() from exc

        logger.info("Weather provider answered %s for %r", r.status_code, query)
        error = classify_status(r.status_code)
        if error is not None:
            logger.warning("Weather lookup for %r failed: %s", query, error)
            raise error

        try:
            data = r.json()
        except ValueError as exc:
            raise ProviderError(r.status_code, "The weather service returned an unreadable response.") from exc

        if not isinstance(data, dict):
            raise ProviderError(r.status_code, "The weather service returned an unexpected response.")
        return data

    async def get_weather(self, location: str, unit_group: str = "metric") -> WeatherViewModel:
        """Fetch and normalize in one go."""
        raw = await self.fetch_timeline(location, unit_group)
        return normalize_weather(raw, unit_group)


class GiphyClient:
    """
    Giphy wrapper for the decorative weather GIF.

    Endpoint used:
        /v1/gifs/translate?api_key=KEY&s=<condition> weather

    translate is Giphy's "single best match" endpoint. This lookup is
    best-effort: best_match() never raises, it returns None instead.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.giphy.com/v1/gifs",
        timeout_s: float = 10.0,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.base = base_url.rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def search_phrase(condition: Optional[str]) -> str:
        return f"{condition or ''} weather".strip()

    async def best_match(self, condition: Optional[str]) -> Optional[WeatherGif]:
        """Return the best GIF for a condition label, or None on any failure."""
        if not self.enabled:
            logger.info("Giphy API key not configured, skipping GIF")
            return None
        try:
            return await self._translate(condition)
        except AuxiliaryLookupError as exc:
            logger.info("Could not fetch GIF for %r, continuing without it: %s", condition, exc)
            return None

    async def _translate(self, condition: Optional[str]) -> WeatherGif:
        params = {"api_key": self.api_key, "s": self.search_phrase(condition)}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                r = await client.get(f"{self.base}/translate", params=params)
        except httpx.HTTPError as exc:
            raise AuxiliaryLookupError(f"request failed: {exc}") from exc

        if r.status_code != 200:
            raise AuxiliaryLookupError(f"status {r.status_code}")

        try:
            payload = r.json()
        except ValueError as exc:
            raise AuxiliaryLookupError("response was not JSON") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        images = data.get("images") if isinstance(data, dict) else None
        original = images.get("original") if isinstance(images, dict) else None
        url = original.get("url") if isinstance(original, dict) else None
        if not url:
            raise AuxiliaryLookupError("no GIF found")

        try:
            return WeatherGif(url=url, title=data.get("title") or "", condition=condition or "")
        except ValidationError as exc:
            raise AuxiliaryLookupError("GIF data had an unexpected shape") from exc
