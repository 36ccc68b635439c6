"""Location layer: device positioning, reverse geocoding, and host time zone resolution."""

import logging
import os
from typing import Any, Awaitable, Callable

import httpx
from pytz import UnknownTimeZoneError, timezone
from timezonefinder import TimezoneFinder
from tzlocal import get_localzone_name

from vedicpanchanga.config import Settings
from vedicpanchanga.errors import GeocodingFailed, LocationUnavailable
from vedicpanchanga.models import GeoLocation

logger = logging.getLogger(__name__)

FALLBACK_CITY = "Current Location"

# Single-shot positioning query. Any exception it raises counts as a denial.
PositionProvider = Callable[[], Awaitable[tuple[float, float]]]

_tf: TimezoneFinder | None = None


def static_position(latitude: float, longitude: float) -> PositionProvider:
    """Positioning capability that always reports the same coordinates."""

    async def _provider() -> tuple[float, float]:
        return latitude, longitude

    return _provider


def _is_known_zone(name: str | None) -> bool:
    if not name:
        return False
    try:
        timezone(name)
    except UnknownTimeZoneError:
        return False
    return True


def host_time_zone(
    latitude: float | None = None,
    longitude: float | None = None,
    configured: str | None = None,
) -> str:
    """Resolve the host's IANA zone name.

    Order: explicit configuration, the ``TZ`` environment variable, the
    host's configured zone (tzlocal), timezonefinder at the device
    coordinates, then "UTC".
    """
    global _tf
    if _is_known_zone(configured):
        return configured  # type: ignore[return-value]
    env_tz = os.environ.get("TZ", "").lstrip(":")
    if _is_known_zone(env_tz):
        return env_tz
    try:
        local_tz = get_localzone_name()
    except (LookupError, OSError, ValueError):
        local_tz = None
    if _is_known_zone(local_tz):
        return local_tz  # type: ignore[return-value]
    if latitude is not None and longitude is not None:
        if _tf is None:
            _tf = TimezoneFinder()
        tz_str = _tf.timezone_at(lat=latitude, lng=longitude)
        if _is_known_zone(tz_str):
            return tz_str  # type: ignore[return-value]
    return "UTC"


def place_names(address: dict[str, Any] | None) -> tuple[str, str]:
    """Pick (city, country) from a Nominatim ``address`` object."""
    address = address or {}
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("state")
        or FALLBACK_CITY
    )
    return city, address.get("country") or ""


class LocationResolver:
    """Best-effort device location, resolved once per call."""

    def __init__(
        self,
        settings: Settings,
        position_provider: PositionProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.position_provider = position_provider
        self._http_client = http_client

    async def _reverse_geocode(self, latitude: float, longitude: float) -> tuple[str, str]:
        """Single Nominatim reverse call. Raises GeocodingFailed on any error."""
        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": 10,
            "addressdetails": 1,
        }
        headers = {"User-Agent": self.settings.user_agent}
        try:
            if self._http_client is not None:
                resp = await self._http_client.get(
                    self.settings.nominatim_url,
                    params=params,
                    headers=headers,
                    timeout=self.settings.http_timeout,
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
                    resp = await client.get(
                        self.settings.nominatim_url, params=params, headers=headers
                    )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingFailed(f"reverse geocoding failed: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("address"), dict):
            raise GeocodingFailed("reverse geocoding returned no address")
        return place_names(data["address"])

    async def _place_names_or_fallback(self, latitude: float, longitude: float) -> tuple[str, str]:
        try:
            return await self._reverse_geocode(latitude, longitude)
        except GeocodingFailed as exc:
            logger.warning("geocoding_fallback: %s", exc)
            return FALLBACK_CITY, ""

    async def _current_position(self) -> tuple[float, float]:
        if self.position_provider is None:
            raise LocationUnavailable("no positioning capability")
        try:
            position = await self.position_provider()
        except Exception as exc:  # noqa: BLE001
            raise LocationUnavailable(f"positioning failed: {exc}") from exc
        try:
            latitude, longitude = position
            latitude, longitude = float(latitude), float(longitude)
        except (TypeError, ValueError) as exc:
            raise LocationUnavailable(f"malformed position: {position!r}") from exc
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            raise LocationUnavailable(f"position out of range: {latitude}, {longitude}")
        return latitude, longitude

    async def resolve(self, default_location: GeoLocation) -> GeoLocation:
        """Resolve the device location.

        ``default_location`` is not applied here; see ``resolve_or_default``.

        Raises:
            LocationUnavailable: No positioning capability, or it failed.
        """
        latitude, longitude = await self._current_position()
        city, country = await self._place_names_or_fallback(latitude, longitude)
        time_zone_id = host_time_zone(latitude, longitude, self.settings.host_time_zone)
        location = GeoLocation(
            latitude=latitude,
            longitude=longitude,
            time_zone_id=time_zone_id,
            city=city,
            country=country,
        )
        logger.info("location_resolved city=%s country=%s tz=%s", city, country, time_zone_id)
        return location

    async def resolve_or_default(self, default_location: GeoLocation) -> GeoLocation:
        """``resolve`` with LocationUnavailable recovered to ``default_location``."""
        try:
            return await self.resolve(default_location)
        except LocationUnavailable as exc:
            logger.warning("location_unavailable, using default %s: %s", default_location.city, exc)
            return default_location
