"""
Weather session.

One WeatherSession holds everything that changes while the app runs: the
current view model, the active unit, the loading/error state and the GIF.
Only the session writes to it, on the event loop's single thread.

Sequencing:
- every search gets a number; results (weather or GIF) from anything but the
  latest search are dropped, so a slow old query can never overwrite a newer one
- nothing is cancelled; an overtaken lookup runs out and raises SupersededError
- the GIF lookup runs as a detached task and never delays the weather display
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set

from .display import render_weather
from .errors import InputInvalidError, SupersededError, WeatherError
from .schemas import (
    Preferences,
    TemperatureUnit,
    WeatherDisplay,
    WeatherGif,
    WeatherViewModel,
)
from .weather_clients import GiphyClient, VisualCrossingClient

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."


class WeatherSession:
    def __init__(
        self,
        weather_client: VisualCrossingClient,
        gif_client: GiphyClient,
        unit: TemperatureUnit = TemperatureUnit.CELSIUS,
    ):
        self.weather_client = weather_client
        self.gif_client = gif_client
        self.unit = unit

        self.view_model: Optional[WeatherViewModel] = None
        self.gif: Optional[WeatherGif] = None
        self.error: Optional[str] = None
        self.loading = False
        self.last_location = ""

        self._query_seq = 0
        self._gif_tasks: Set[asyncio.Task] = set()

    @property
    def unit_group(self) -> str:
        return self.unit.unit_group

    def is_current(self, seq: int) -> bool:
        return seq == self._query_seq

    async def lookup(self, location: str) -> WeatherViewModel:
        """
        Look up weather for `location` and make it the displayed result.

        Raises the WeatherError for this particular search. A search that a
        newer one overtook raises SupersededError and leaves the session state
        to the newer search. Unexpected faults are logged, recorded as the
        generic message and re-raised.
        """
        query = (location or "").strip()
        if not query:
            error = InputInvalidError()
            self.error = str(error)
            raise error

        self._query_seq += 1
        seq = self._query_seq
        self.loading = True
        self.error = None

        try:
            model = await self.weather_client.get_weather(query, self.unit_group)
        except WeatherError as exc:
            if not self.is_current(seq):
                raise SupersededError() from exc
            self.error = str(exc)
            raise
        except Exception:
            logger.exception("Unexpected error while searching for %r", query)
            if self.is_current(seq):
                self.error = GENERIC_ERROR
            raise
        finally:
            if self.is_current(seq):
                self.loading = False

        if not self.is_current(seq):
            logger.info("Discarding result for %r, a newer search has started", query)
            raise SupersededError()

        self.view_model = model
        self.last_location = query
        self.gif = None
        self._start_gif_lookup(model.current.conditions, seq)
        return model

    async def search(self, location: str) -> Optional[WeatherViewModel]:
        """
        Like lookup(), but never raises.

        Failures are left in `self.error` as a user-facing message and the
        previous view model stays on display.
        """
        try:
            return await self.lookup(location)
        except WeatherError:
            return None
        except Exception:
            # lookup() already logged it and set the generic message
            return None

    async def lookup_coordinates(self, latitude: float, longitude: float) -> WeatherViewModel:
        return await self.lookup(f"{latitude},{longitude}")

    def status(self) -> dict:
        """Snapshot of what the page is showing, for polling clients."""
        return {
            "loading": self.loading,
            "error": self.error,
            "unit": self.unit.value,
            "location": self.last_location,
            "has_weather": self.view_model is not None,
            "gif": self.gif,
        }

    async def search_coordinates(self, latitude: float, longitude: float) -> Optional[WeatherViewModel]:
        """Search by a 'lat,lon' pair, e.g. from the browser's geolocation."""
        return await self.search(f"{latitude},{longitude}")

    def _start_gif_lookup(self, condition: Optional[str], seq: int) -> None:
        if not self.gif_client.enabled:
            return
        task = asyncio.get_running_loop().create_task(self._load_gif(condition, seq))
        self._gif_tasks.add(task)
        task.add_done_callback(self._gif_tasks.discard)

    async def _load_gif(self, condition: Optional[str], seq: int) -> None:
        try:
            gif = await self.gif_client.best_match(condition)
        except Exception:
            # best_match already absorbs lookup failures; this only catches bugs
            logger.exception("GIF lookup crashed for %r", condition)
            return
        if gif is not None and self.is_current(seq):
            self.gif = gif

    async def wait_for_auxiliary(self) -> None:
        """Wait until pending GIF lookups settle (shutdown and tests)."""
        if self._gif_tasks:
            await asyncio.gather(*list(self._gif_tasks), return_exceptions=True)

    def toggle_unit(self) -> Optional[WeatherDisplay]:
        """
        Flip between C and F and re-render.

        Does nothing until there is weather to show. The stored model is never
        touched; the next search asks the provider for the new unit group.
        """
        if self.view_model is None:
            logger.info("No weather data to convert yet")
            return None
        self.unit = self.unit.toggled()
        logger.info("Switching to %s", self.unit.value)
        return self.render()

    def render(self) -> Optional[WeatherDisplay]:
        if self.view_model is None:
            return None
        return render_weather(self.view_model, self.unit)

    def preferences(self) -> Preferences:
        return Preferences(unit=self.unit, last_location=self.last_location)

    def apply_preferences(self, prefs: Preferences) -> None:
        self.unit = prefs.unit
        if prefs.last_location and not self.last_location:
            self.last_location = prefs.last_location
