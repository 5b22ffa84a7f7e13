"""Telemetry poller: refresh cadence, countdown and fetch recovery."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Awaitable, Callable, List, Optional

from ..const import COUNTDOWN_STEP_SECONDS, DEFAULT_REFRESH_INTERVAL
from ..models.sensor_data import SensorReading
from ..models.time_range import TimeRange
from .exceptions import TelemetryException

_LOGGER = logging.getLogger(__name__)

FetchReadings = Callable[[dt.datetime], Awaitable[List[SensorReading]]]
DataHandler = Callable[[List[SensorReading]], Awaitable[None]]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TelemetryPoller:
    """Runs one fetch-then-countdown cycle at a time for a lookback window.

    The countdown is reset to the full interval only after the fetch it
    triggered has settled, so it always shows the time until the next
    fetch attempt begins. A failed fetch keeps the previous readings and
    polling carries on.
    """

    __slots__ = (
        "_fetch",
        "_listener",
        "_data_handler",
        "_sleep",
        "_now",
        "refresh_interval",
        "seconds_until_refresh",
        "readings",
        "time_range",
        "last_update_success",
        "last_update_time",
        "_generation",
        "_task",
    )

    def __init__(
        self,
        fetch: FetchReadings,
        listener: Callable[[], None],
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
        data_handler: Optional[DataHandler] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        now: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        """Initialize the poller.

        Args:
            fetch: Coroutine returning readings received since a start boundary
            listener: Called whenever countdown or readings change
            refresh_interval: Seconds between fetches
            data_handler: Awaited with the new readings after each successful fetch
            sleep: Countdown sleep, injectable for tests
            now: Clock used for the window boundary
        """
        self._fetch = fetch
        self._listener = listener
        self._data_handler = data_handler
        self._sleep = sleep
        self._now = now
        self.refresh_interval = refresh_interval
        self.seconds_until_refresh = refresh_interval
        self.readings: List[SensorReading] = []
        self.time_range: Optional[TimeRange] = None
        self.last_update_success = False
        self.last_update_time: Optional[dt.datetime] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, time_range: TimeRange) -> None:
        """Begin (or restart) polling for ``time_range``.

        Any running cycle is cancelled first, an immediate fetch is issued
        and the countdown restarts from the full interval.
        """
        self._cancel_task()
        self._generation += 1
        self.time_range = time_range
        self.seconds_until_refresh = self.refresh_interval
        _LOGGER.info(
            f"Polling {time_range.label} every {self.refresh_interval}s "
            f"(generation {self._generation})"
        )
        self._notify()
        self._task = asyncio.create_task(self._async_run(self._generation))

    async def async_stop(self) -> None:
        """Cancel the poll task and wait for it to finish."""
        task = self._task
        self._cancel_task()
        # Bump so a result still on its way in is never applied
        self._generation += 1
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        _LOGGER.info("Polling stopped")

    def _cancel_task(self) -> None:
        if self._task is not None:
            if not self._task.done():
                if _LOGGER.isEnabledFor(logging.DEBUG):
                    _LOGGER.debug("Cancelling poll task (generation %s)", self._generation)
                self._task.cancel()
            self._task = None

    async def _async_run(self, generation: int) -> None:
        await self._async_fetch(generation)
        while generation == self._generation:
            await self._sleep(COUNTDOWN_STEP_SECONDS)
            await self.async_tick()

    async def async_tick(self) -> None:
        """Advance the countdown by one step, fetching when it reaches zero."""
        generation = self._generation
        self.seconds_until_refresh = max(0, self.seconds_until_refresh - COUNTDOWN_STEP_SECONDS)
        self._notify()
        if self.seconds_until_refresh > 0:
            return

        await self._async_fetch(generation)
        if generation != self._generation:
            return
        self.seconds_until_refresh = self.refresh_interval
        self._notify()

    async def _async_fetch(self, generation: int) -> None:
        """Fetch the current window; failures are logged and leave readings alone."""
        if self.time_range is None:
            _LOGGER.warning("Fetch requested before a time range was selected")
            return

        start = self.time_range.start(self._now())
        try:
            readings = await self._fetch(start)
        except TelemetryException as err:
            if generation == self._generation:
                self.last_update_success = False
                self._notify()
            _LOGGER.warning(f"Telemetry fetch failed, keeping previous data: {err}")
            return
        except Exception:
            if generation == self._generation:
                self.last_update_success = False
                self._notify()
            _LOGGER.exception("Unexpected error fetching telemetry")
            return

        if generation != self._generation:
            if _LOGGER.isEnabledFor(logging.DEBUG):
                _LOGGER.debug(
                    "Discarding stale response (generation %s, current %s)",
                    generation,
                    self._generation,
                )
            return

        self.readings = readings
        self.last_update_success = True
        self.last_update_time = self._now()
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Replaced working set with %d readings", len(readings))

        if self._data_handler is not None:
            try:
                await self._data_handler(readings)
            except Exception:
                _LOGGER.exception("Error handling new telemetry")
        self._notify()

    def _notify(self) -> None:
        try:
            self._listener()
        except Exception:
            _LOGGER.exception("Error in poller listener")
