import base64

import pytest

from vedicpanchanga.chart import decode_chart_image, save_birth_chart
from vedicpanchanga.normalize import normalize

PNG_BYTES = b"\x89PNG\r\n\x1a\n"
PNG_B64 = base64.b64encode(PNG_BYTES).decode()


def test_decode_bare_base64():
    assert decode_chart_image(PNG_B64) == (PNG_BYTES, ".png")


def test_decode_data_uri():
    data, ext = decode_chart_image(f"data:image/jpeg;base64,{PNG_B64}")

    assert data == PNG_BYTES
    assert ext == ".jpg"


def test_decode_inline_svg():
    data, ext = decode_chart_image('<svg xmlns="http://www.w3.org/2000/svg"></svg>')

    assert ext == ".svg"
    assert data.startswith(b"<svg")


@pytest.mark.parametrize("artifact", ["not base64!!", "data:image/png,rawbytes"])
def test_decode_rejects(artifact):
    with pytest.raises(ValueError):
        decode_chart_image(artifact)


def test_save_birth_chart(tmp_path, full_response):
    full_response["birth_chart"] = PNG_B64
    result = normalize(full_response)

    path = save_birth_chart(result, tmp_path / "charts" / "chart.png")

    assert path.read_bytes() == PNG_BYTES


def test_save_without_chart_raises(tmp_path):
    result = normalize({"date": "x", "location": {}, "panchanga": {}})

    with pytest.raises(ValueError, match="no birth chart"):
        save_birth_chart(result, tmp_path / "chart.png")
