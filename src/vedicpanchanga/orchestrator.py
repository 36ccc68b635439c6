"""Request orchestration: location, computation, and normalization as one cycle.

RequestOrchestrator is the single writer of the location and result slots.
Display surfaces read ``snapshot`` or ``subscribe`` to receive every new one.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable

from pytz import timezone

from vedicpanchanga.client import ComputationClient
from vedicpanchanga.config import Settings
from vedicpanchanga.errors import ComputationFailed, MissingLocation
from vedicpanchanga.location import LocationResolver
from vedicpanchanga.models import (
    ComputationRequest,
    CycleState,
    GeoLocation,
    Notification,
    PanchangaResult,
    Snapshot,
)
from vedicpanchanga.normalize import normalize

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Panchanga calculated successfully"

Listener = Callable[[Snapshot], None]
Notifier = Callable[[Notification], None]


class CycleCancelled(Exception):
    """A newer cycle superseded this one."""


class CancellationToken:
    """Checked by a cycle after each suspension point."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CycleCancelled()


def log_notification(notification: Notification) -> None:
    if notification.level == "error":
        logger.error("notify: %s", notification.message)
    else:
        logger.info("notify: %s", notification.message)


def remember_location(
    recent: tuple[GeoLocation, ...], location: GeoLocation, limit: int
) -> tuple[GeoLocation, ...]:
    """Most-recent-first list, deduplicated by coordinates."""
    rest = tuple(r for r in recent if r.coordinates != location.coordinates)
    return ((location,) + rest)[: max(limit, 0)]


class RequestOrchestrator:
    def __init__(
        self,
        settings: Settings,
        resolver: LocationResolver,
        client: ComputationClient,
        notifier: Notifier = log_notification,
        normalizer: Callable[[dict[str, Any]], PanchangaResult] = normalize,
        selected_date: date | None = None,
        selected_time: str | None = None,
    ):
        self.settings = settings
        self.resolver = resolver
        self.client = client
        self.notifier = notifier
        self.normalizer = normalizer
        # None means "now" in the selected location's zone, read when a cycle runs.
        self.selected_date = selected_date
        self.selected_time = selected_time
        self._snapshot = Snapshot()
        self._listeners: list[Listener] = []
        self._token: CancellationToken | None = None

    # --- Read interface ---

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for every published snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, **changes: Any) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        for listener in list(self._listeners):
            listener(self._snapshot)

    def _notify(self, level: str, message: str) -> None:
        self.notifier(Notification(level=level, message=message))  # type: ignore[arg-type]

    # --- Selection ---

    def select_location(self, location: GeoLocation, remember: bool = True) -> None:
        recent = self._snapshot.recent_locations
        if remember:
            recent = remember_location(recent, location, self.settings.recent_limit)
        self._publish(location=location, recent_locations=recent)

    def select_date(self, selected_date: date | None) -> None:
        self.selected_date = selected_date

    def select_time(self, selected_time: str | None) -> None:
        """Set the "HH:MM" wall-clock time. Malformed input fails the next cycle."""
        self.selected_time = selected_time

    def _request_for(self, location: GeoLocation) -> ComputationRequest:
        now = datetime.now(timezone(location.time_zone_id))
        selected_date = self.selected_date or now.date()
        selected_time = self.selected_time or now.strftime("%H:%M")
        return ComputationRequest.from_selection(selected_date, selected_time, location)

    # --- Cycles ---

    def _begin(self) -> CancellationToken:
        if self._token is not None:
            logger.info("cycle_superseded")
            self._token.cancel()
        self._token = CancellationToken()
        return self._token

    def _end(self, token: CancellationToken) -> None:
        if self._token is not token:
            return
        self._token = None
        if self._snapshot.state is not CycleState.IDLE:
            self._publish(state=CycleState.IDLE)

    def _fail(self, message: str) -> None:
        self._publish(state=CycleState.ERROR, error=message)
        self._notify("error", message)
        self._publish(state=CycleState.IDLE)

    async def start(self) -> PanchangaResult | None:
        """Startup cycle: resolve a location unless one is set, then compute.

        A device location that cannot be obtained falls back to the
        configured default location.
        """
        token = self._begin()
        try:
            location = self._snapshot.location
            if location is None:
                self._publish(state=CycleState.LOCATION_PENDING, error=None)
                default = self.settings.default_location
                location = await self.resolver.resolve_or_default(default)
                token.raise_if_cancelled()
                self.select_location(location, remember=location is not default)
            return await self._compute(token, location)
        except CycleCancelled:
            return None
        finally:
            self._end(token)

    async def run_cycle(self) -> PanchangaResult | None:
        """Manual cycle. Requires a selected location; never resolves one."""
        token = self._begin()
        try:
            location = self._snapshot.location
            if location is None:
                self._fail(MissingLocation().message)
                return None
            return await self._compute(token, location)
        except CycleCancelled:
            return None
        finally:
            self._end(token)

    async def _compute(
        self, token: CancellationToken, location: GeoLocation
    ) -> PanchangaResult | None:
        try:
            request = self._request_for(location)
        except ValueError as exc:
            self._fail(str(exc))
            return None
        self._publish(state=CycleState.COMPUTING, error=None)
        try:
            raw = await self.client.compute(request)
        except ComputationFailed as exc:
            token.raise_if_cancelled()
            self._fail(exc.message)
            return None
        token.raise_if_cancelled()

        result = self.normalizer(raw)
        self._publish(
            state=CycleState.READY,
            result=result,
            planets=result.planets or (),
            birth_chart=result.birth_chart,
            error=None,
        )
        self._notify("success", SUCCESS_MESSAGE)
        self._publish(state=CycleState.IDLE)
        return result
