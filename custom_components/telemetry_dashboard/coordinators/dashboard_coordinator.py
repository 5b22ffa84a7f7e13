"""Dashboard coordinator: ties poller, alert and threshold store to Home Assistant."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_send

from ..const import (
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_THRESHOLD,
    DEFAULT_TIME_RANGE,
    DEVICE_LABELS,
    KEY_MAX_TEMPERATURE,
    KEY_NEXT_REFRESH,
    KEY_ONLINE_STATUS,
    KEY_OVER_TEMPERATURE,
    KEY_READING_COUNT,
    KEY_TIME_RANGE,
    SIGNAL_UPDATE_FORMAT,
)
from ..core.alert import AlertRule, OverTemperatureAlert
from ..core.api_client import TelemetryHttpApiClient
from ..core.poller import TelemetryPoller
from ..models.sensor_data import SensorReading, latest_by_device
from ..models.time_range import TimeRange
from ..services.threshold_store import ThresholdStore

_LOGGER = logging.getLogger(__name__)

KEY_SNAPSHOT = "snapshot"


class DashboardCoordinator:
    """Owns the poll cycle, alert and threshold for one backend."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        api_client: TelemetryHttpApiClient,
        threshold_store: ThresholdStore,
        rule: AlertRule,
        device_ids: List[str],
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance
            entry_id: Config entry the coordinator belongs to
            api_client: Backend client used for fetches and commands
            threshold_store: Persistent alert threshold
            rule: Which device metric is monitored and how it is compared
            device_ids: Devices that get reading entities
            refresh_interval: Seconds between fetches
        """
        self.hass = hass
        self.entry_id = entry_id
        self.api_client = api_client
        self.threshold_store = threshold_store
        self.device_ids = list(device_ids)
        self.signal = SIGNAL_UPDATE_FORMAT.format(entry_id=entry_id)
        self.time_range = TimeRange.from_key(DEFAULT_TIME_RANGE)
        self.snapshot: Dict[str, SensorReading] = {}
        self.alert = OverTemperatureAlert(rule, api_client.send_command)
        self.poller = TelemetryPoller(
            api_client.get_logs,
            self.async_publish,
            refresh_interval=refresh_interval,
            data_handler=self._async_handle_readings,
        )

    @staticmethod
    def device_label(device_id: str) -> str:
        return DEVICE_LABELS.get(device_id, device_id)

    @property
    def threshold(self) -> int:
        return self.threshold_store.value

    @property
    def data(self) -> Dict[str, Any]:
        return {
            KEY_NEXT_REFRESH: self.poller.seconds_until_refresh,
            KEY_READING_COUNT: len(self.poller.readings),
            KEY_ONLINE_STATUS: self.poller.last_update_success,
            KEY_TIME_RANGE: self.time_range.label,
            KEY_MAX_TEMPERATURE: self.threshold_store.value,
            KEY_OVER_TEMPERATURE: self.alert.indicator_on,
            KEY_SNAPSHOT: self.snapshot,
        }

    async def async_start(self) -> None:
        """Restore the threshold and start polling."""
        threshold = await self.hass.async_add_executor_job(self.threshold_store.load)
        _LOGGER.info(f"Restored alert threshold {threshold} for {self.entry_id}")
        self.poller.start(self.time_range)

    async def async_stop(self) -> None:
        await self.poller.async_stop()

    async def async_set_time_range(self, key: str) -> None:
        """Switch lookback window and restart the poll cycle.

        Accepts a time range key (``1d``) or its label (``Last 1 day``).

        Raises:
            KeyError: If the time range is unknown
        """
        try:
            time_range = TimeRange.from_key(key)
        except KeyError:
            time_range = TimeRange.from_label(key)
        self.time_range = time_range
        self.poller.start(time_range)

    async def async_set_threshold(self, value: Any) -> Optional[int]:
        """Apply an operator threshold edit from either input surface.

        Returns:
            The clamped threshold, or None when the input was not numeric
        """
        try:
            threshold = self.threshold_store.set(value)
        except ValueError as err:
            _LOGGER.warning(f"Ignoring threshold update: {err}")
            return None
        await self.hass.async_add_executor_job(self.threshold_store.save)
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Alert threshold set to %s (input %s)", threshold, value)
        await self.alert.async_evaluate(self.snapshot, threshold)
        self.async_publish()
        return threshold

    async def async_clear_alert(self) -> None:
        """Operator disabled the indicator: reset threshold and end the episode."""
        self.threshold_store.set(DEFAULT_THRESHOLD)
        await self.hass.async_add_executor_job(self.threshold_store.save)
        await self.alert.async_clear()
        self.async_publish()

    async def async_reset_threshold(self) -> None:
        self.threshold_store.set(DEFAULT_THRESHOLD)
        await self.hass.async_add_executor_job(self.threshold_store.save)
        self.async_publish()

    async def _async_handle_readings(self, readings: List[SensorReading]) -> None:
        self.snapshot = latest_by_device(readings)
        await self.alert.async_evaluate(self.snapshot, self.threshold_store.value)

    @callback
    def async_publish(self) -> None:
        async_dispatcher_send(self.hass, self.signal, self.data)
