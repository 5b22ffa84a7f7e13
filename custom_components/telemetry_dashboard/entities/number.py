"""Number entities for Telemetry Dashboard integration."""

import logging
from typing import Any, Dict

from homeassistant.components.number import (
    NumberEntity,
    NumberEntityDescription,
    NumberMode,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfTemperature
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN, KEY_MAX_TEMPERATURE, THRESHOLD_MIN, THRESHOLD_MAX
from ..coordinators.dashboard_coordinator import DashboardCoordinator
from .base_entity import TelemetryBaseEntity, dashboard_device_info

_LOGGER = logging.getLogger(__name__)

MAX_TEMPERATURE_DESCRIPTION = NumberEntityDescription(
    key=KEY_MAX_TEMPERATURE,
    name="Max Temperature",
    icon="mdi:thermometer-alert",
    native_min_value=THRESHOLD_MIN,
    native_max_value=THRESHOLD_MAX,
    native_step=1,
    native_unit_of_measurement=UnitOfTemperature.CELSIUS,
    mode=NumberMode.SLIDER,
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up number platform."""
    try:
        coordinator: DashboardCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    except KeyError as exc:
        _LOGGER.error(f"Missing key {exc} for numbers")
        return

    async_add_entities(
        [AlertThresholdNumber(coordinator, dashboard_device_info(entry), MAX_TEMPERATURE_DESCRIPTION)]
    )


class AlertThresholdNumber(TelemetryBaseEntity, NumberEntity):
    """Alert threshold slider."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_info,
        description: NumberEntityDescription,
    ) -> None:
        super().__init__(coordinator, description.key, device_info)
        self.entity_description = description
        self._attr_native_value = coordinator.threshold

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        value = data.get(KEY_MAX_TEMPERATURE)
        if value is None or value == self._attr_native_value:
            return False
        self._attr_native_value = value
        return True

    async def async_set_native_value(self, value: float) -> None:
        await self.coordinator.async_set_threshold(value)
