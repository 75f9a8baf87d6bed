"""
Error taxonomy.

Every primary-path failure is a WeatherError whose str() is safe to show to
the user as-is. AuxiliaryLookupError never leaves the image client.
"""

from __future__ import annotations

from typing import Optional


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    pass


class InputInvalidError(WeatherError):
    """The location query was empty."""

    def __init__(self, message: str = "Please enter a location"):
        super().__init__(message)


class LocationUnresolvedError(WeatherError):
    """Provider answered 400: it could not make sense of the location."""

    def __init__(self, message: str = "Location not found. Please check the spelling and try again."):
        super().__init__(message)


class CredentialInvalidError(WeatherError):
    """Provider answered 401."""

    def __init__(self, message: str = "Invalid API key. Please check your configuration."):
        super().__init__(message)


class RateLimitedError(WeatherError):
    """Provider answered 429."""

    def __init__(self, message: str = "Too many requests. Please try again later."):
        super().__init__(message)


class ProviderError(WeatherError):
    """Any other non-2xx answer, or a 2xx answer we could not read."""

    def __init__(self, status_code: Optional[int], message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Failed to fetch weather data (Status: {status_code})")


class TransportError(WeatherError):
    """The request never got an HTTP answer (DNS, connection, timeout...)."""

    def __init__(self, message: str = "Could not reach the weather service. Please check your connection and try again."):
        super().__init__(message)


class AuxiliaryLookupError(RuntimeError):
    """Image lookup failed; always absorbed by the image client."""
    pass


class SupersededError(WeatherError):
    """A newer search started before this one finished; its result was dropped."""

    def __init__(self, message: str = "A newer search replaced this one before it finished."):
        super().__init__(message)
