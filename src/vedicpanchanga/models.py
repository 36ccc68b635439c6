"""Data model definitions — explicit boundaries between location, request, and result layers."""

import enum
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Literal

from pytz import UnknownTimeZoneError, timezone, utc
from pytz.exceptions import AmbiguousTimeError, NonExistentTimeError

NOT_AVAILABLE = "N/A"

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{1,2})\s*$")

# Raw mappings handed back by the computation service, passed through untouched.
RawServiceResponse = dict[str, Any]
PlanetPosition = dict[str, Any]
BirthChartImage = str


@dataclass(frozen=True)
class GeoLocation:
    """A resolved place. Replaced, never mutated."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]
    time_zone_id: str  # IANA zone ("Asia/Kolkata")
    city: str
    country: str

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")
        try:
            timezone(self.time_zone_id)
        except UnknownTimeZoneError as exc:
            raise ValueError(f"unknown time zone: {self.time_zone_id}") from exc

    def to_payload(self) -> dict[str, Any]:
        """Wire form sent to the computation service."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timezone": self.time_zone_id,
            "city": self.city,
            "country": self.country,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "GeoLocation":
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            time_zone_id=data["timezone"],
            city=data.get("city", ""),
            country=data.get("country", ""),
        )

    @property
    def coordinates(self) -> tuple[float, float]:
        return self.latitude, self.longitude


def parse_time_of_day(value: str) -> time:
    """Parse a "HH:MM" wall-clock string.

    Raises:
        ValueError: When the string is not HH:MM or out of range.
    """
    match = _HHMM.match(value)
    if match is None:
        raise ValueError(f"time must be HH:MM, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    return time(hours, minutes)


@dataclass(frozen=True)
class ComputationRequest:
    """A (UTC instant, location) pair. Built fresh for every call."""

    instant: datetime  # UTC datetime (with tzinfo=utc)
    location: GeoLocation

    @classmethod
    def from_selection(
        cls, selected_date: date, selected_time: str, location: GeoLocation
    ) -> "ComputationRequest":
        """Merge a calendar date and an "HH:MM" time in the location's local zone.

        Wall times that fall in a DST gap or overlap resolve to standard time.
        """
        local_tz = timezone(location.time_zone_id)
        naive = datetime.combine(selected_date, parse_time_of_day(selected_time))
        try:
            local_dt = local_tz.localize(naive, is_dst=None)
        except (AmbiguousTimeError, NonExistentTimeError):
            local_dt = local_tz.localize(naive, is_dst=False)
        return cls(instant=local_dt.astimezone(utc), location=location)

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": self.instant.isoformat(),
            "location": self.location.to_payload(),
        }


@dataclass(frozen=True)
class MuhurtaWindow:
    """A named time window. Both ends come from the same source block."""

    start: str | None
    end: str | None

    @classmethod
    def unavailable(cls) -> "MuhurtaWindow":
        return cls(start=NOT_AVAILABLE, end=NOT_AVAILABLE)

    @property
    def is_available(self) -> bool:
        return self.start not in (None, NOT_AVAILABLE)

    def to_payload(self) -> dict[str, Any]:
        return {"start": self.start, "end": self.end}


# (result attribute, flat view key, muhurta source key)
MUHURTA_WINDOWS: tuple[tuple[str, str, str], ...] = (
    ("rahu_kala", "rahuKala", "rahuKala"),
    ("yama_ganda", "yamaGanda", "yamaGanda"),
    ("gulika_kala", "gulikaKala", "gulikaKala"),
    ("abhijit_muhurta", "abhijitMuhurta", "abhijit"),
)


@dataclass(frozen=True)
class PanchangaResult:
    """Normalized service response. Read-only to every consumer.

    Fields of the service's "panchanga" block live in ``attributes`` and are
    also reachable as attributes (``result.tithi``) or items
    (``result["tithi"]``).
    """

    date: Any  # datetime when the service sent ISO-8601
    location: Any
    attributes: dict[str, Any]
    sunrise: str
    sunset: str
    moonrise: str
    moonset: str
    rahu_kala: MuhurtaWindow
    yama_ganda: MuhurtaWindow
    gulika_kala: MuhurtaWindow
    abhijit_muhurta: MuhurtaWindow
    durmuhurta: tuple[Any, ...] = ()
    muhurta: dict[str, Any] | None = None
    calendar: dict[str, Any] | None = None
    ayanamsha: Any = None  # None and 0.0 mean different things
    api: dict[str, Any] | None = None
    planets: tuple[PlanetPosition, ...] | None = None
    birth_chart: BirthChartImage | None = None

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not dataclass fields.
        attributes = self.__dict__.get("attributes", {})
        if name in attributes:
            return attributes[name]
        raise AttributeError(name)

    def __getitem__(self, key: str) -> Any:
        return self.as_dict()[key]

    def as_dict(self) -> dict[str, Any]:
        """Flat camelCase view in the order display surfaces expect."""
        flat: dict[str, Any] = {
            "date": self.date.isoformat() if isinstance(self.date, datetime) else self.date,
            "location": self.location,
        }
        flat.update(self.attributes)
        flat.update(
            {
                "sunrise": self.sunrise,
                "sunset": self.sunset,
                "moonrise": self.moonrise,
                "moonset": self.moonset,
            }
        )
        for attr, key, _ in MUHURTA_WINDOWS:
            flat[key] = getattr(self, attr).to_payload()
        flat.update(
            {
                "durmuhurta": list(self.durmuhurta),
                "muhurta": self.muhurta,
                "calendar": self.calendar,
                "ayanamsha": self.ayanamsha,
                "api": self.api,
            }
        )
        return flat

    def to_payload(self) -> dict[str, Any]:
        """Re-serialize into the computation service's response schema."""
        payload: dict[str, Any] = {
            "date": self.date.isoformat() if isinstance(self.date, datetime) else self.date,
            "location": self.location,
            "panchanga": dict(self.attributes),
            "sun": {"rise": self.sunrise, "set": self.sunset},
            "moon": {"rise": self.moonrise, "set": self.moonset},
        }
        if self.muhurta is not None:
            payload["muhurta"] = self.muhurta
        if self.calendar is not None:
            payload["calendar"] = self.calendar
        if self.api is not None:
            payload["api"] = self.api
        if self.planets is not None:
            payload["planets"] = list(self.planets)
        if self.birth_chart is not None:
            payload["birth_chart"] = self.birth_chart
        return payload


class CycleState(enum.Enum):
    IDLE = "idle"
    LOCATION_PENDING = "location_pending"
    COMPUTING = "computing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A user-facing message raised by a cycle."""

    level: Literal["success", "error"]
    message: str


@dataclass(frozen=True)
class Snapshot:
    """Everything a display surface may read. Swapped whole on every change."""

    state: CycleState = CycleState.IDLE
    location: GeoLocation | None = None
    result: PanchangaResult | None = None
    planets: tuple[PlanetPosition, ...] = ()
    birth_chart: BirthChartImage | None = None
    error: str | None = None
    recent_locations: tuple[GeoLocation, ...] = field(default_factory=tuple)

    @property
    def busy(self) -> bool:
        return self.state in (CycleState.LOCATION_PENDING, CycleState.COMPUTING)
