"""Birth chart artifact export."""

import base64
import binascii
import re
from datetime import datetime
from pathlib import Path

from vedicpanchanga.models import BirthChartImage, PanchangaResult

_ROOT = Path(__file__).parent.parent.parent

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*),(?P<data>.*)$", re.DOTALL)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/svg+xml": ".svg",
    "image/webp": ".webp",
}


def decode_chart_image(artifact: BirthChartImage) -> tuple[bytes, str]:
    """Decode the service's chart artifact.

    Accepts a ``data:<mime>;base64,`` URI, bare base64 (taken as PNG), or
    inline SVG markup.

    Returns:
        (image bytes, file extension).

    Raises:
        ValueError: When the artifact is none of the accepted forms.
    """
    text = artifact.strip()
    if text.startswith("<svg") or text.startswith("<?xml"):
        return text.encode("utf-8"), ".svg"

    match = _DATA_URI.match(text)
    if match is not None:
        mime = match.group("mime") or "image/png"
        if ";base64" not in match.group("params"):
            raise ValueError("chart data URI is not base64 encoded")
        text = match.group("data")
    else:
        mime = "image/png"

    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("chart artifact is not valid base64") from exc
    return data, _EXTENSIONS.get(mime, ".bin")


def save_birth_chart(result: PanchangaResult, output_path: Path | None = None) -> Path:
    """Write the result's chart artifact to disk.

    Args:
        result: Normalized result carrying ``birth_chart``.
        output_path: Destination path. Auto-generated under results/ if None.

    Returns:
        Path to the saved file.

    Raises:
        ValueError: When the result has no chart or it cannot be decoded.
    """
    if result.birth_chart is None:
        raise ValueError("result has no birth chart")
    data, ext = decode_chart_image(result.birth_chart)

    if output_path is None:
        city = result.location.get("city", "") if isinstance(result.location, dict) else ""
        when = result.date.strftime("%Y_%m_%d_%H_%M") if isinstance(result.date, datetime) else "chart"
        filename = f"birth_chart__{city or 'unknown'}__{when}{ext}".replace(" ", "_")
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path
