"""Response normalization from the loosely-shaped service payload to PanchangaResult.

Every default and sentinel decision lives here. ``normalize`` never fails on
missing optional data; it only assumes the minimal envelope (``date``,
``location``, ``panchanga``) that ComputationClient guarantees.
"""

from datetime import datetime
from typing import Any

from vedicpanchanga.models import (
    MUHURTA_WINDOWS,
    NOT_AVAILABLE,
    MuhurtaWindow,
    PanchangaResult,
    RawServiceResponse,
)


def _block(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _parse_date(value: Any) -> datetime | Any:
    """ISO-8601 strings become datetimes; anything else passes through."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return value


def _window(source: Any) -> MuhurtaWindow:
    # One source per window: absent means unavailable as a unit.
    if not isinstance(source, dict):
        return MuhurtaWindow.unavailable()
    return MuhurtaWindow(start=source.get("start"), end=source.get("end"))


def normalize(raw: RawServiceResponse) -> PanchangaResult:
    """Map a raw service response to a PanchangaResult.

    Args:
        raw: Decoded response body from ComputationClient.

    Returns:
        PanchangaResult with "N/A" sentinels for missing sun/moon times and
        muhurta windows.
    """
    attributes = dict(_block(raw, "panchanga"))
    # Flattened panchanga fields win over the envelope's own date/location.
    date_value = attributes.pop("date", raw.get("date"))
    location = attributes.pop("location", raw.get("location"))

    sun = _block(raw, "sun")
    moon = _block(raw, "moon")
    muhurta_block = raw.get("muhurta") if isinstance(raw.get("muhurta"), dict) else None
    calendar = raw.get("calendar") if isinstance(raw.get("calendar"), dict) else None
    api = raw.get("api") if isinstance(raw.get("api"), dict) else None

    windows = {
        attr: _window((muhurta_block or {}).get(source))
        for attr, _, source in MUHURTA_WINDOWS
    }

    planets = raw.get("planets")
    birth_chart = raw.get("birth_chart")

    return PanchangaResult(
        date=_parse_date(date_value),
        location=location,
        attributes=attributes,
        sunrise=sun.get("rise") or NOT_AVAILABLE,
        sunset=sun.get("set") or NOT_AVAILABLE,
        moonrise=moon.get("rise") or NOT_AVAILABLE,
        moonset=moon.get("set") or NOT_AVAILABLE,
        durmuhurta=(),
        muhurta=muhurta_block,
        calendar=calendar,
        ayanamsha=calendar.get("ayanamsha") if calendar is not None else None,
        api=api,
        planets=tuple(planets) if isinstance(planets, list) else None,
        birth_chart=birth_chart if birth_chart else None,
        **windows,
    )
