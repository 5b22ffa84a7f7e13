"""Select entities for Telemetry Dashboard integration."""

import logging
from typing import Any, Dict

from homeassistant.components.select import SelectEntity, SelectEntityDescription
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN, KEY_TIME_RANGE
from ..coordinators.dashboard_coordinator import DashboardCoordinator
from ..models.time_range import all_time_ranges
from .base_entity import TelemetryBaseEntity, dashboard_device_info

_LOGGER = logging.getLogger(__name__)

TIME_RANGE_DESCRIPTION = SelectEntityDescription(
    key=KEY_TIME_RANGE,
    name="Time Range",
    icon="mdi:calendar-clock",
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up select platform."""
    try:
        coordinator: DashboardCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    except KeyError as exc:
        _LOGGER.error(f"Missing key {exc} for selects")
        return

    async_add_entities(
        [TimeRangeSelect(coordinator, dashboard_device_info(entry), TIME_RANGE_DESCRIPTION)]
    )


class TimeRangeSelect(TelemetryBaseEntity, SelectEntity):
    """Lookback window picker; changing it restarts the poll cycle."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_info,
        description: SelectEntityDescription,
    ) -> None:
        super().__init__(coordinator, description.key, device_info)
        self.entity_description = description
        self._attr_options = [time_range.label for time_range in all_time_ranges()]
        self._attr_current_option = coordinator.time_range.label

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        label = data.get(KEY_TIME_RANGE)
        if label is None or label == self._attr_current_option:
            return False
        self._attr_current_option = label
        return True

    async def async_select_option(self, option: str) -> None:
        _LOGGER.info(f"Time range changed to {option}")
        await self.coordinator.async_set_time_range(option)
