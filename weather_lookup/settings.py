from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Why:
    - Keeps secrets (API keys) out of source code
    - Lets the same code talk to stub endpoints in tests

    Loaded from:
    - environment variables
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required key (the app should fail fast if missing)
    visual_crossing_api_key: str

    # Optional: without it the animated image slot simply stays empty
    giphy_api_key: str = ""

    visual_crossing_base_url: str = (
        "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline"
    )
    giphy_base_url: str = "https://api.giphy.com/v1/gifs"
    timeout_s: float = 10.0

    # Non-secret cosmetics
    app_name: str = "Weather Lookup"
    log_level: str = "INFO"
    default_unit: str = "C"

    # SQLite file holding the saved preferences
    sqlite_path: str = "weather_lookup.sqlite3"


settings = Settings()
