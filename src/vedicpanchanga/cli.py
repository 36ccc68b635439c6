"""CLI entry point: run one startup cycle and print the panchanga.

    uv run vedicpanchanga --date 2024-01-15 --time 06:30 --lat 12.97 --lon 77.59
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Sequence

import httpx
from dotenv import load_dotenv

from vedicpanchanga.chart import save_birth_chart
from vedicpanchanga.client import ComputationClient
from vedicpanchanga.config import Settings
from vedicpanchanga.location import LocationResolver, static_position
from vedicpanchanga.models import NOT_AVAILABLE, Notification, PanchangaResult
from vedicpanchanga.orchestrator import RequestOrchestrator


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Vedic panchanga for a place and time")
    parser.add_argument("--date", type=date.fromisoformat, help="YYYY-MM-DD (default: today)")
    parser.add_argument("--time", help="HH:MM local time at the location (default: now)")
    parser.add_argument("--lat", type=float, help="Device latitude")
    parser.add_argument("--lon", type=float, help="Device longitude")
    parser.add_argument("--chart-out", type=Path, help="Save the birth chart to this path")
    parser.add_argument("--json", action="store_true", help="Print the flat result as JSON")
    args = parser.parse_args(argv)
    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")
    return args


def format_result(result: PanchangaResult) -> str:
    """Plain text summary of a result."""
    location = result.location if isinstance(result.location, dict) else {}
    place = ", ".join(p for p in (location.get("city"), location.get("country")) if p)
    lines = [f"Panchanga for {place or 'unknown place'} at {result.as_dict()['date']}"]
    for key, value in result.attributes.items():
        if not isinstance(value, (dict, list)):
            lines.append(f"  {key}: {value}")
    lines.append(f"  sunrise/sunset: {result.sunrise} / {result.sunset}")
    lines.append(f"  moonrise/moonset: {result.moonrise} / {result.moonset}")
    for label, window in (
        ("Abhijit Muhurta", result.abhijit_muhurta),
        ("Rahu Kala", result.rahu_kala),
        ("Yama Ganda", result.yama_ganda),
        ("Gulika Kala", result.gulika_kala),
    ):
        lines.append(f"  {label}: {window.start or NOT_AVAILABLE} - {window.end or NOT_AVAILABLE}")
    if result.ayanamsha is not None:
        lines.append(f"  ayanamsha: {result.ayanamsha}")
    return "\n".join(lines)


async def _run(args: argparse.Namespace, settings: Settings) -> PanchangaResult | None:
    position = (args.lat, args.lon) if args.lat is not None else settings.device_position
    notifications: list[Notification] = []

    async with httpx.AsyncClient(timeout=settings.http_timeout) as http_client:
        orchestrator = RequestOrchestrator(
            settings,
            LocationResolver(
                settings,
                position_provider=static_position(*position) if position else None,
                http_client=http_client,
            ),
            ComputationClient(settings, http_client=http_client),
            notifier=notifications.append,
            selected_date=args.date,
            selected_time=args.time,
        )
        result = await orchestrator.start()

    for notification in notifications:
        stream = sys.stderr if notification.level == "error" else sys.stdout
        print(notification.message, file=stream)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = _parse_args(argv)

    result = asyncio.run(_run(args, settings))
    if result is None:
        return 1

    if args.json:
        print(json.dumps(result.as_dict(), ensure_ascii=False, indent=2, default=str))
    else:
        print(format_result(result))

    if args.chart_out is not None:
        if result.birth_chart is None:
            print("No birth chart in response", file=sys.stderr)
        else:
            print(f"Saved: {save_birth_chart(result, args.chart_out)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
