"""
Pydantic schemas.

Why:
- The view model is the only shape the presentation layer ever sees
- Defines the contract of our JSON endpoints
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TemperatureUnit(str, Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"

    @property
    def unit_group(self) -> str:
        """Provider-side unit group that yields temperatures in this unit."""
        return "metric" if self is TemperatureUnit.CELSIUS else "us"

    @classmethod
    def from_unit_group(cls, unit_group: str) -> "TemperatureUnit":
        return cls.FAHRENHEIT if unit_group == "us" else cls.CELSIUS

    def toggled(self) -> "TemperatureUnit":
        return TemperatureUnit.FAHRENHEIT if self is TemperatureUnit.CELSIUS else TemperatureUnit.CELSIUS


class WeatherCategory(str, Enum):
    SUNNY = "sunny"
    CLEAR_NIGHT = "clear-night"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    SNOWY = "snowy"
    WINDY = "windy"
    FOGGY = "foggy"


class Coordinates(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class LocationInfo(BaseModel):
    """Location fields copied straight from the provider payload."""
    name: Optional[str] = None
    timezone: Optional[str] = None
    coordinates: Coordinates = Field(default_factory=Coordinates)


class CurrentConditions(BaseModel):
    """
    Today's record.

    Temperatures, humidity and wind speed are whole numbers; visibility,
    pressure and UV index are kept as the provider sent them.
    None means "no data", which is not the same as zero.
    """
    datetime: Optional[str] = None
    temp: Optional[int] = None
    feels_like: Optional[int] = None
    temp_max: Optional[int] = None
    temp_min: Optional[int] = None
    humidity: Optional[int] = None
    wind_speed: Optional[int] = None
    visibility: Optional[float] = None
    pressure: Optional[float] = None
    uv_index: Optional[float] = None
    conditions: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    precip_prob: Optional[float] = None


class ForecastDay(BaseModel):
    """One forecast card."""
    date: Optional[str] = None
    temp_max: Optional[int] = None
    temp_min: Optional[int] = None
    conditions: Optional[str] = None
    icon: Optional[str] = None
    precip_prob: Optional[float] = None
    humidity: Optional[int] = None


class WeatherViewModel(BaseModel):
    """Normalized, display-ready result of one successful query."""
    model_config = ConfigDict(frozen=True)

    location: LocationInfo
    current: CurrentConditions
    forecast: List[ForecastDay] = Field(default_factory=list)
    description: Optional[str] = None
    unit: TemperatureUnit = TemperatureUnit.CELSIUS


class WeatherGif(BaseModel):
    url: str
    title: str = ""
    condition: str


class Preferences(BaseModel):
    """Persisted user preferences; serialized with the browser-era key names."""
    model_config = ConfigDict(populate_by_name=True)

    unit: TemperatureUnit = TemperatureUnit.CELSIUS
    last_location: str = Field("", alias="lastLocation", max_length=255)


class ForecastCard(BaseModel):
    day_name: str
    date: str
    icon_url: str
    conditions: str
    temp_high: str
    temp_low: str
    precip: str
    humidity: str


class WeatherDisplay(BaseModel):
    """Everything the page shows, already formatted as text."""
    location_name: str
    date: str
    temp: str
    unit_symbol: str
    feels_like: str
    temp_high: str
    temp_low: str
    humidity: str
    wind_speed: str
    visibility: str
    pressure: str
    uv_index: str
    sunrise: str
    sunset: str
    precip: str
    conditions: str
    description: str
    icon_url: str
    category: WeatherCategory
    forecast: List[ForecastCard] = Field(default_factory=list)


class WeatherOut(BaseModel):
    """Response of the weather endpoints: raw view model plus its rendering."""
    weather: WeatherViewModel
    display: WeatherDisplay
