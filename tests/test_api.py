"""API and page tests through FastAPI's TestClient, provider traffic mocked with respx."""

import asyncio

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from weather_lookup.db import Base, engine
from weather_lookup.errors import SupersededError
from weather_lookup.main import app, status_for, weather_session
from weather_lookup.processing import normalize_weather
from weather_lookup.schemas import TemperatureUnit
from weather_lookup.session import GENERIC_ERROR
from weather_lookup.settings import settings

TIMELINE = settings.visual_crossing_base_url


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    weather_session.view_model = None
    weather_session.gif = None
    weather_session.error = None
    weather_session.loading = False
    weather_session.last_location = ""
    weather_session.unit = TemperatureUnit.CELSIUS

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def provider(london_payload):
    with respx.mock(assert_all_called=False) as router:
        router.get(url__startswith=TIMELINE).mock(return_value=httpx.Response(200, json=london_payload))
        yield router


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_home_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Weather Lookup" in response.text


def test_weather_endpoint(client, provider):
    response = client.get("/api/weather", params={"q": "London"})

    assert response.status_code == 200
    body = response.json()
    assert body["weather"]["location"]["name"] == "London, England, United Kingdom"
    assert body["weather"]["current"]["temp"] == 19
    assert len(body["weather"]["forecast"]) == 7
    assert body["display"]["temp"] == "19"
    assert body["display"]["category"] == "cloudy"
    assert provider.calls.last.request.url.params["unitGroup"] == "metric"


@pytest.mark.parametrize(
    "status, expected_status, message",
    [
        (400, 400, "Location not found"),
        (401, 502, "Invalid API key"),
        (429, 429, "Too many requests"),
        (500, 502, "Status: 500"),
    ],
)
def test_weather_endpoint_failures(client, status, expected_status, message):
    with respx.mock:
        respx.get(url__startswith=TIMELINE).mock(return_value=httpx.Response(status))
        response = client.get("/api/weather", params={"q": "Atlantis"})

    assert response.status_code == expected_status
    assert message in response.json()["detail"]
    assert weather_session.view_model is None


def test_transport_failure(client):
    with respx.mock:
        respx.get(url__startswith=TIMELINE).mock(side_effect=httpx.ConnectError("offline"))
        response = client.get("/api/weather", params={"q": "London"})

    assert response.status_code == 502
    assert "connection" in response.json()["detail"]


def test_empty_query(client):
    response = client.get("/api/weather", params={"q": "  "})

    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter a location"


def test_by_coords(client, provider):
    response = client.get("/api/weather/by-coords", params={"lat": 51.5, "lon": -0.12})

    assert response.status_code == 200
    assert provider.calls.last.request.url.path.endswith("/51.5,-0.12")


def test_by_coords_out_of_range(client):
    response = client.get("/api/weather/by-coords", params={"lat": 100, "lon": 0})
    assert response.status_code == 422


def test_toggle_without_data(client):
    response = client.post("/api/unit/toggle")
    assert response.json() == {"unit": "C", "display": None}


def test_toggle_twice_restores_display(client, provider):
    original = client.get("/api/weather", params={"q": "London"}).json()["display"]

    first = client.post("/api/unit/toggle").json()
    second = client.post("/api/unit/toggle").json()

    assert first["unit"] == "F"
    assert first["display"]["temp"] == "66"
    assert first["display"]["feels_like"] == "63°F"
    assert second["unit"] == "C"
    assert second["display"] == original
    # Toggling re-renders the held result, it never calls the provider again.
    assert provider.calls.call_count == 1


def test_gif_is_empty_when_disabled(client, provider):
    client.get("/api/weather", params={"q": "London"})
    assert client.get("/api/gif").json() == {"gif": None}


def test_results_page(client, provider):
    response = client.get("/results", params={"q": "London"})

    assert response.status_code == 200
    assert "London, England, United Kingdom" in response.text
    assert 'class="cloudy"' in response.text
    assert "Monday, January 15, 2024" in response.text


def test_results_page_error_banner(client):
    with respx.mock:
        respx.get(url__startswith=TIMELINE).mock(return_value=httpx.Response(400))
        response = client.get("/results", params={"q": "Atlantis"})

    assert response.status_code == 400
    assert "Location not found. Please check the spelling and try again." in response.text


def test_results_page_in_requested_unit(client, provider):
    response = client.get("/results", params={"q": "London", "unit": "F"})

    assert response.status_code == 200
    assert provider.calls.last.request.url.params["unitGroup"] == "us"
    assert '<span id="tempUnit">°F</span>' in response.text
    assert weather_session.unit == TemperatureUnit.FAHRENHEIT


def test_results_page_without_query_reshows_held_result(client, provider):
    client.get("/results", params={"q": "London"})

    response = client.get("/results", params={"unit": "F"})

    assert response.status_code == 200
    assert '<span id="currentTemp">66</span>' in response.text
    assert 'id="errorMessage"' not in response.text
    assert provider.calls.call_count == 1


def test_results_page_without_query_or_result_goes_home(client):
    response = client.get("/results", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/"


def test_results_page_with_empty_query_asks_for_location(client):
    response = client.get("/results", params={"q": ""})

    assert response.status_code == 400
    assert "Please enter a location" in response.text


def test_unit_toggle_page(client, provider):
    client.get("/results", params={"q": "London"})

    response = client.post("/unit")

    assert response.status_code == 200
    assert "°F" in response.text
    assert weather_session.unit == TemperatureUnit.FAHRENHEIT


def test_preferences_default(client):
    assert client.get("/api/preferences").json() == {"unit": "C", "lastLocation": ""}


def test_preferences_save_and_load(client):
    response = client.put("/api/preferences", json={"unit": "F", "lastLocation": "Paris"})

    assert response.status_code == 200
    assert client.get("/api/preferences").json() == {"unit": "F", "lastLocation": "Paris"}
    assert weather_session.unit == TemperatureUnit.FAHRENHEIT
    assert weather_session.unit_group == "us"


def test_preferences_rejects_unknown_unit(client):
    response = client.put("/api/preferences", json={"unit": "K"})
    assert response.status_code == 422


def test_save_preferences_from_page(client, provider):
    client.get("/results", params={"q": "London"})
    client.post("/unit")

    response = client.post("/preferences")

    assert response.status_code == 200
    assert str(response.url).endswith("/results")
    assert 'id="errorMessage"' not in response.text
    assert "London, England, United Kingdom" in response.text
    assert '<span id="tempUnit">°F</span>' in response.text
    assert provider.calls.call_count == 1
    assert client.get("/api/preferences").json() == {"unit": "F", "lastLocation": "London"}


def test_save_preferences_before_any_search(client):
    response = client.post("/preferences")

    assert response.status_code == 200
    assert str(response.url).endswith("/")
    assert client.get("/api/preferences").json() == {"unit": "C", "lastLocation": ""}


def test_unexpected_error_is_contained(client, provider, monkeypatch):
    def broken_render():
        raise RuntimeError("template exploded")

    monkeypatch.setattr(weather_session, "render", broken_render)

    response = client.get("/api/weather", params={"q": "London"})

    assert response.status_code == 500
    assert response.json() == {"detail": GENERIC_ERROR}
    assert weather_session.loading is False


class HeldWeatherClient:
    """Holds the London reply until released so a second search can overtake it."""

    def __init__(self, models):
        self.models = models
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def get_weather(self, location, unit_group="metric"):
        if location == "London":
            self.started.set()
            await self.release.wait()
        return self.models[location]


def test_overtaken_request_gets_409(client, monkeypatch, make_payload):
    models = {
        "London": normalize_weather(make_payload(8)),
        "Paris": normalize_weather(make_payload(8, resolvedAddress="Paris, France")),
    }

    async def scenario():
        held = HeldWeatherClient(models)
        monkeypatch.setattr(weather_session, "weather_client", held)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            first = asyncio.create_task(ac.get("/api/weather", params={"q": "London"}))
            await held.started.wait()
            status = (await ac.get("/api/status")).json()
            second = await ac.get("/api/weather", params={"q": "Paris"})
            held.release.set()
            return await first, second, status

    first, second, status_during = asyncio.run(scenario())

    assert status_during["loading"] is True
    assert second.status_code == 200
    assert second.json()["weather"]["location"]["name"] == "Paris, France"
    assert first.status_code == 409
    assert first.json()["detail"] == "A newer search replaced this one before it finished."
    assert weather_session.view_model.location.name == "Paris, France"


def test_superseded_maps_to_conflict():
    assert status_for(SupersededError()) == 409


def test_status_endpoint(client, provider):
    assert client.get("/api/status").json() == {
        "loading": False,
        "error": None,
        "unit": "C",
        "location": "",
        "has_weather": False,
        "gif": None,
    }

    client.get("/api/weather", params={"q": "London"})
    body = client.get("/api/status").json()

    assert body["loading"] is False
    assert body["has_weather"] is True
    assert body["location"] == "London"


def test_status_endpoint_reports_last_error(client):
    client.get("/api/weather", params={"q": " "})
    assert client.get("/api/status").json()["error"] == "Please enter a location"
