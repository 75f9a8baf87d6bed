"""Shared test fixtures."""

import os
import tempfile
from datetime import date, timedelta

import pytest

# Settings are read at import time, so the environment has to be ready before
# any weather_lookup module is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="weather-lookup-tests-")
os.environ["VISUAL_CROSSING_API_KEY"] = "test-key"
os.environ["GIPHY_API_KEY"] = ""
os.environ["VISUAL_CROSSING_BASE_URL"] = "https://weather.test/timeline"
os.environ["GIPHY_BASE_URL"] = "https://giphy.test/v1/gifs"
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "preferences.sqlite3")
os.environ["DEFAULT_UNIT"] = "C"

FIRST_DAY = date(2024, 1, 15)  # a Monday


def build_day(index: int = 0, **overrides) -> dict:
    day = {
        "datetime": (FIRST_DAY + timedelta(days=index)).isoformat(),
        "temp": 18.5,
        "feelslike": 17.2,
        "tempmax": 21.6,
        "tempmin": 12.4,
        "humidity": 64.3,
        "windspeed": 14.5,
        "visibility": 24.1,
        "pressure": 1015.2,
        "uvindex": 5.0,
        "conditions": "Partially cloudy",
        "description": "Partly cloudy throughout the day.",
        "icon": "partly-cloudy-day",
        "sunrise": "07:58:12",
        "sunset": "16:21:40",
        "precipprob": 12.9,
    }
    day.update(overrides)
    return day


def build_payload(n_days: int = 15, **overrides) -> dict:
    payload = {
        "resolvedAddress": "London, England, United Kingdom",
        "timezone": "Europe/London",
        "latitude": 51.5064,
        "longitude": -0.12721,
        "description": "Similar temperatures continuing with a chance of rain.",
        "days": [build_day(i) for i in range(n_days)],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_day():
    return build_day


@pytest.fixture
def make_payload():
    return build_payload


@pytest.fixture
def london_payload() -> dict:
    return build_payload()
