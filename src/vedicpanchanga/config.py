"""Runtime settings read from the environment (and a local .env via python-dotenv)."""

import os
from dataclasses import dataclass
from typing import Mapping

from vedicpanchanga.models import GeoLocation

DEFAULT_API_URL = "http://localhost:8000/api/v1/panchanga"
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "VedicPanchanga/1.0"


def _float(env: Mapping[str, str], key: str, default: float | None) -> float | None:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout: float = 10.0  # Seconds, applied to both HTTP calls
    host_time_zone: str | None = None  # Overrides host zone detection
    default_location: GeoLocation = GeoLocation(
        latitude=28.6139,
        longitude=77.2090,
        time_zone_id="Asia/Kolkata",
        city="New Delhi",
        country="India",
    )
    device_position: tuple[float, float] | None = None  # None = no positioning capability
    recent_limit: int = 5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (tests).

        Raises:
            ValueError: On malformed numeric values or an invalid default place.
        """
        env = os.environ if env is None else env
        default = cls.default_location

        lat = _float(env, "PANCHANGA_DEVICE_LAT", None)
        lon = _float(env, "PANCHANGA_DEVICE_LON", None)
        device_position = (lat, lon) if lat is not None and lon is not None else None

        return cls(
            api_url=env.get("PANCHANGA_API_URL", DEFAULT_API_URL),
            nominatim_url=env.get("NOMINATIM_URL", DEFAULT_NOMINATIM_URL),
            user_agent=env.get("PANCHANGA_USER_AGENT", DEFAULT_USER_AGENT),
            http_timeout=_float(env, "PANCHANGA_HTTP_TIMEOUT", 10.0),  # type: ignore[arg-type]
            host_time_zone=env.get("PANCHANGA_HOST_TZ") or None,
            default_location=GeoLocation(
                latitude=_float(env, "DEFAULT_PLACE_LAT", default.latitude),  # type: ignore[arg-type]
                longitude=_float(env, "DEFAULT_PLACE_LON", default.longitude),  # type: ignore[arg-type]
                time_zone_id=env.get("DEFAULT_PLACE_TZ", default.time_zone_id),
                city=env.get("DEFAULT_PLACE_CITY", default.city),
                country=env.get("DEFAULT_PLACE_COUNTRY", default.country),
            ),
            device_position=device_position,
            recent_limit=_int(env, "PANCHANGA_RECENT_LIMIT", 5),
            log_level=env.get("PANCHANGA_LOG_LEVEL", "INFO").upper(),
        )
