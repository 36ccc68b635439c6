"""Shared fixtures: settings, locations, and a fake HTTP layer built on httpx.MockTransport."""

import json
from typing import Any, Callable

import httpx
import pytest

from vedicpanchanga.config import Settings
from vedicpanchanga.models import GeoLocation

API_URL = "http://panchanga.test/api/v1/panchanga"
NOMINATIM_URL = "http://nominatim.test/reverse"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_url=API_URL,
        nominatim_url=NOMINATIM_URL,
        host_time_zone="Asia/Kolkata",
        http_timeout=5.0,
    )


@pytest.fixture
def bengaluru() -> GeoLocation:
    return GeoLocation(
        latitude=12.9716,
        longitude=77.5946,
        time_zone_id="Asia/Kolkata",
        city="Bengaluru",
        country="India",
    )


@pytest.fixture
def full_response() -> dict[str, Any]:
    return {
        "date": "2024-01-15T01:00:00+00:00",
        "location": {
            "latitude": 12.9716,
            "longitude": 77.5946,
            "timezone": "Asia/Kolkata",
            "city": "Bengaluru",
            "country": "India",
        },
        "panchanga": {
            "tithi": "Shukla Chaturthi",
            "nakshatra": "Shatabhisha",
            "yoga": "Variyana",
            "karana": "Vanija",
            "vara": "Somavara",
        },
        "sun": {"rise": "06:45", "set": "18:15"},
        "moon": {"rise": "09:30", "set": "21:10"},
        "muhurta": {
            "rahuKala": {"start": "08:10", "end": "09:35"},
            "yamaGanda": {"start": "11:05", "end": "12:30"},
            "gulikaKala": {"start": "13:55", "end": "15:20"},
            "abhijit": {"start": "12:07", "end": "12:53"},
        },
        "calendar": {"ayanamsha": 24.1834, "masa": "Pausha"},
        "planets": [
            {"name": "Sun", "longitude": 270.52, "sign": "Capricorn"},
            {"name": "Moon", "longitude": 316.9, "sign": "Aquarius"},
        ],
        "birth_chart": "iVBORw0KGgo=",
        "api": {"version": "1.0"},
    }


class FakeService:
    """Records requests and answers them with a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


@pytest.fixture
def fake_service() -> Callable[..., FakeService]:
    return FakeService


def route(
    compute: Callable[[httpx.Request], httpx.Response] | None = None,
    reverse: Callable[[httpx.Request], httpx.Response] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Dispatch by host to the computation or geocoding handler."""

    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "nominatim.test" and reverse is not None:
            return reverse(request)
        if request.url.host == "panchanga.test" and compute is not None:
            return compute(request)
        return httpx.Response(404, json={"detail": "not routed"})

    return _handler
