"""
Pure data helpers.

Nothing in here performs I/O, so the whole module can be tested with plain
dictionaries:
- provider payload -> WeatherViewModel
- rounding and Celsius/Fahrenheit conversion
- icon token -> theme category
- date and icon URL formatting
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .schemas import (
    Coordinates,
    CurrentConditions,
    ForecastDay,
    LocationInfo,
    TemperatureUnit,
    WeatherCategory,
    WeatherViewModel,
)
from .errors import WeatherError

# Today is shown separately, the forecast strip holds at most this many days.
FORECAST_DAYS = 7

MISSING = "--"

ICON_BASE_URL = (
    "https://raw.githubusercontent.com/visualcrossing/WeatherIcons/main/SVG/2nd%20Set%20-%20Color"
)

CATEGORY_BY_ICON: Dict[str, WeatherCategory] = {
    "clear-day": WeatherCategory.SUNNY,
    "clear-night": WeatherCategory.CLEAR_NIGHT,
    "partly-cloudy-day": WeatherCategory.CLOUDY,
    "partly-cloudy-night": WeatherCategory.CLOUDY,
    "cloudy": WeatherCategory.CLOUDY,
    "rain": WeatherCategory.RAINY,
    "snow": WeatherCategory.SNOWY,
    "wind": WeatherCategory.WINDY,
    "fog": WeatherCategory.FOGGY,
}


def round_half_away(value: Any) -> Optional[int]:
    """
    Round to the nearest whole unit, halves away from zero (18.5 -> 19, -2.5 -> -3).

    Python's round() does banker's rounding, so we go through Decimal instead.
    Going through str() keeps 18.5 as exactly 18.5 rather than its binary neighbour.
    Missing or non-numeric input gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def convert_temperature(
    value: Optional[float],
    from_unit: TemperatureUnit,
    to_unit: TemperatureUnit,
) -> Optional[float]:
    """
    Convert between Celsius and Fahrenheit.

    Rounding happens once, on the final result. Converting a converted value
    back is lossy (C -> F -> C may be off by one) and callers should always
    convert from the stored original instead.
    """
    if value is None or from_unit == to_unit:
        return value
    if from_unit is TemperatureUnit.CELSIUS:
        return round_half_away(value * 9 / 5 + 32)
    return round_half_away((value - 32) * 5 / 9)


def weather_category(icon: Optional[str]) -> WeatherCategory:
    """Theme category for a provider icon token; anything unknown is cloudy."""
    return CATEGORY_BY_ICON.get(icon or "", WeatherCategory.CLOUDY)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: Optional[str]) -> str:
    """'2024-01-15' -> 'Monday, January 15, 2024'."""
    d = _parse_date(value)
    if d is None:
        return MISSING
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def day_of_week(value: Optional[str]) -> str:
    d = _parse_date(value)
    return d.strftime("%A") if d else MISSING


def weather_icon_url(icon: Optional[str]) -> str:
    """Visual Crossing's colour icon set; unknown tokens fall back to 'cloudy'."""
    return f"{ICON_BASE_URL}/{quote(icon or 'cloudy')}.svg"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _current_from_day(day: Dict[str, Any]) -> CurrentConditions:
    return CurrentConditions(
        datetime=day.get("datetime"),
        temp=round_half_away(day.get("temp")),
        feels_like=round_half_away(day.get("feelslike")),
        temp_max=round_half_away(day.get("tempmax")),
        temp_min=round_half_away(day.get("tempmin")),
        humidity=round_half_away(day.get("humidity")),
        wind_speed=round_half_away(day.get("windspeed")),
        visibility=day.get("visibility"),
        pressure=day.get("pressure"),
        uv_index=day.get("uvindex"),
        conditions=day.get("conditions"),
        description=day.get("description"),
        icon=day.get("icon"),
        sunrise=day.get("sunrise"),
        sunset=day.get("sunset"),
        precip_prob=day.get("precipprob"),
    )


def _forecast_from_day(day: Dict[str, Any]) -> ForecastDay:
    return ForecastDay(
        date=day.get("datetime"),
        temp_max=round_half_away(day.get("tempmax")),
        temp_min=round_half_away(day.get("tempmin")),
        conditions=day.get("conditions"),
        icon=day.get("icon"),
        precip_prob=day.get("precipprob"),
        humidity=round_half_away(day.get("humidity")),
    )


def normalize_weather(raw: Dict[str, Any], unit_group: str = "metric") -> WeatherViewModel:
    """
    Reshape a Visual Crossing timeline payload into a WeatherViewModel.

    - days[0] becomes `current`
    - days[1..7] become `forecast` (shorter if the provider sent fewer days,
      never padded)
    - location fields are copied as-is

    Raises WeatherError when there is no daily record at all, since there is
    nothing to show as current conditions.
    """
    days: List[Dict[str, Any]] = [_as_dict(d) for d in (raw.get("days") or [])]
    if not days:
        raise WeatherError("No daily weather data was returned for that location.")

    return WeatherViewModel(
        location=LocationInfo(
            name=raw.get("resolvedAddress"),
            timezone=raw.get("timezone"),
            coordinates=Coordinates(
                latitude=raw.get("latitude"),
                longitude=raw.get("longitude"),
            ),
        ),
        current=_current_from_day(days[0]),
        forecast=[_forecast_from_day(d) for d in days[1:FORECAST_DAYS + 1]],
        description=raw.get("description"),
        unit=TemperatureUnit.from_unit_group(unit_group),
    )
