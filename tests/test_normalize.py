from datetime import datetime, timezone

import pytest

from vedicpanchanga.models import MuhurtaWindow
from vedicpanchanga.normalize import normalize

UNAVAILABLE = MuhurtaWindow(start="N/A", end="N/A")


def _envelope(**extra):
    raw = {"date": "2024-01-15T01:00:00Z", "location": {"city": "Pune"}, "panchanga": {}}
    raw.update(extra)
    return raw


def test_missing_sun_moon_muhurta_blocks_default_everything():
    result = normalize(_envelope())

    assert (result.sunrise, result.sunset) == ("N/A", "N/A")
    assert (result.moonrise, result.moonset) == ("N/A", "N/A")
    for window in (result.rahu_kala, result.yama_ganda, result.gulika_kala, result.abhijit_muhurta):
        assert window == UNAVAILABLE


def test_flattens_panchanga_and_defaults_sunset():
    result = normalize(_envelope(panchanga={"tithi": "Shukla Pratipada"}, sun={"rise": "06:00"}))

    assert result.tithi == "Shukla Pratipada"
    assert result["tithi"] == "Shukla Pratipada"
    assert result.sunrise == "06:00"
    assert result.sunset == "N/A"


def test_abhijit_maps_from_differently_named_field():
    result = normalize(_envelope(muhurta={"abhijit": {"start": "11:50", "end": "12:40"}}))

    assert result.abhijit_muhurta.start == "11:50"
    assert result.abhijit_muhurta.end == "12:40"
    assert result.rahu_kala == UNAVAILABLE
    assert result.as_dict()["abhijitMuhurta"] == {"start": "11:50", "end": "12:40"}


def test_partial_window_is_not_filled_from_default():
    result = normalize(_envelope(muhurta={"rahuKala": {"start": "07:30"}}))

    assert result.rahu_kala == MuhurtaWindow(start="07:30", end=None)


def test_null_window_defaults_as_a_unit():
    result = normalize(_envelope(muhurta={"yamaGanda": None}))

    assert result.yama_ganda == UNAVAILABLE


def test_empty_rise_string_becomes_sentinel():
    result = normalize(_envelope(moon={"rise": "", "set": "20:01"}))

    assert result.moonrise == "N/A"
    assert result.moonset == "20:01"


def test_durmuhurta_always_empty():
    result = normalize(_envelope(muhurta={"durmuhurta": [{"start": "10:00", "end": "10:48"}]}))

    assert result.durmuhurta == ()
    assert result.as_dict()["durmuhurta"] == []


def test_ayanamsha_absent_is_none_and_zero_is_kept():
    assert normalize(_envelope()).ayanamsha is None
    assert normalize(_envelope(calendar={"masa": "Magha"})).ayanamsha is None

    zero = normalize(_envelope(calendar={"ayanamsha": 0}))
    assert zero.ayanamsha == 0
    assert zero.ayanamsha is not None


def test_planets_and_chart_absent_stay_none(full_response):
    result = normalize(_envelope())

    assert result.planets is None
    assert result.birth_chart is None

    present = normalize(full_response)
    assert present.planets == tuple(full_response["planets"])
    assert present.birth_chart == full_response["birth_chart"]


def test_empty_planet_list_is_distinct_from_absent():
    result = normalize(_envelope(planets=[]))

    assert result.planets == ()


def test_flattened_fields_win_over_envelope_date_and_location():
    result = normalize(
        _envelope(panchanga={"location": {"city": "Ujjain"}, "tithi": "Purnima"})
    )

    assert result.location == {"city": "Ujjain"}
    assert "location" not in result.attributes


def test_mapped_fields_win_over_flattened_fields():
    result = normalize(_envelope(panchanga={"sunrise": "stale"}, sun={"rise": "06:12"}))

    assert result.sunrise == "06:12"
    assert result.as_dict()["sunrise"] == "06:12"


def test_date_is_parsed_when_iso():
    result = normalize(_envelope())

    assert result.date == datetime(2024, 1, 15, 1, 0, tzinfo=timezone.utc)


def test_non_iso_date_passes_through():
    result = normalize(_envelope(date="Monday"))

    assert result.date == "Monday"


def test_passthrough_blocks(full_response):
    result = normalize(full_response)

    assert result.muhurta == full_response["muhurta"]
    assert result.calendar == full_response["calendar"]
    assert result.api == {"version": "1.0"}
    assert result.ayanamsha == pytest.approx(24.1834)


def test_unknown_attribute_raises_attribute_error():
    result = normalize(_envelope())

    with pytest.raises(AttributeError):
        result.nakshatra


@pytest.mark.parametrize(
    "extra",
    [
        {},
        {"sun": {"rise": "06:00"}, "panchanga": {"tithi": "Shukla Pratipada"}},
        {"muhurta": {"abhijit": {"start": "11:50", "end": "12:40"}}},
    ],
)
def test_normalize_is_idempotent_over_reserialization(extra):
    once = normalize(_envelope(**extra))

    assert normalize(once.to_payload()) == once


def test_full_response_is_idempotent(full_response):
    once = normalize(full_response)

    assert normalize(once.to_payload()) == once
