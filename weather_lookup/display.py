"""
Display helpers.

Turns a WeatherViewModel into the strings the page shows. Rendering always
starts from the stored model, so switching C -> F -> C gives back exactly the
text we started with instead of compounding rounding errors.

Missing values render as "--" so "no data" never looks like zero.
"""

from __future__ import annotations

from typing import Optional

from .processing import (
    MISSING,
    convert_temperature,
    day_of_week,
    format_date,
    round_half_away,
    weather_category,
    weather_icon_url,
)
from .schemas import (
    ForecastCard,
    ForecastDay,
    TemperatureUnit,
    WeatherDisplay,
    WeatherViewModel,
)


def _number(value: Optional[float]) -> str:
    if value is None:
        return MISSING
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _with_suffix(value: Optional[float], suffix: str) -> str:
    text = _number(value)
    return text if text == MISSING else f"{text}{suffix}"


def _temp(value: Optional[int], stored: TemperatureUnit, shown: TemperatureUnit) -> Optional[float]:
    return convert_temperature(value, stored, shown)


def _forecast_card(day: ForecastDay, stored: TemperatureUnit, shown: TemperatureUnit) -> ForecastCard:
    return ForecastCard(
        day_name=day_of_week(day.date),
        date=day.date or MISSING,
        icon_url=weather_icon_url(day.icon),
        conditions=day.conditions or MISSING,
        temp_high=_with_suffix(_temp(day.temp_max, stored, shown), "°"),
        temp_low=_with_suffix(_temp(day.temp_min, stored, shown), "°"),
        precip=_with_suffix(round_half_away(day.precip_prob), "%"),
        humidity=_with_suffix(day.humidity, "%"),
    )


def render_weather(model: WeatherViewModel, unit: TemperatureUnit) -> WeatherDisplay:
    """
    Render `model` with temperatures shown in `unit`.

    Only temperatures are converted. Wind speed and visibility are labelled in
    the unit system the provider actually answered in (km/h and km for metric,
    mph and mi for us).
    """
    stored = model.unit
    current = model.current
    symbol = f"°{unit.value}"
    metric = stored is TemperatureUnit.CELSIUS

    return WeatherDisplay(
        location_name=model.location.name or MISSING,
        date=format_date(current.datetime),
        temp=_number(_temp(current.temp, stored, unit)),
        unit_symbol=symbol,
        feels_like=_with_suffix(_temp(current.feels_like, stored, unit), symbol),
        temp_high=_with_suffix(_temp(current.temp_max, stored, unit), "°"),
        temp_low=_with_suffix(_temp(current.temp_min, stored, unit), "°"),
        humidity=_with_suffix(current.humidity, "%"),
        wind_speed=_with_suffix(current.wind_speed, " km/h" if metric else " mph"),
        visibility=_with_suffix(current.visibility, " km" if metric else " mi"),
        pressure=_with_suffix(current.pressure, " mb"),
        uv_index=_number(current.uv_index),
        sunrise=current.sunrise or MISSING,
        sunset=current.sunset or MISSING,
        precip=_with_suffix(round_half_away(current.precip_prob), "%"),
        conditions=current.conditions or MISSING,
        description=current.description or model.description or "",
        icon_url=weather_icon_url(current.icon),
        category=weather_category(current.icon),
        forecast=[_forecast_card(day, stored, unit) for day in model.forecast],
    )
