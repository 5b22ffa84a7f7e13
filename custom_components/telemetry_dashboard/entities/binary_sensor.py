"""Binary sensor entities for Telemetry Dashboard integration."""

import logging
from typing import Any, Dict

from homeassistant.components.binary_sensor import (
    BinarySensorEntity,
    BinarySensorEntityDescription,
    BinarySensorDeviceClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN, KEY_ONLINE_STATUS
from ..coordinators.dashboard_coordinator import DashboardCoordinator
from .base_entity import TelemetryBaseEntity, dashboard_device_info

_LOGGER = logging.getLogger(__name__)

BINARY_SENSOR_DESCRIPTIONS: tuple[BinarySensorEntityDescription, ...] = (
    BinarySensorEntityDescription(
        key=KEY_ONLINE_STATUS,
        name="Telemetry Online",
        device_class=BinarySensorDeviceClass.CONNECTIVITY,
        entity_registry_enabled_default=True,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up binary sensor platform."""
    _LOGGER.debug(f"Setting up binary sensor platform for {entry.title}")

    try:
        coordinator: DashboardCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    except KeyError as exc:
        _LOGGER.error(f"Missing key {exc} for binary sensors")
        return

    device_info = dashboard_device_info(entry)
    entities = [
        TelemetryBinarySensor(coordinator, device_info, description)
        for description in BINARY_SENSOR_DESCRIPTIONS
    ]

    if entities:
        async_add_entities(entities)
        _LOGGER.info(f"Added {len(entities)} binary sensors for {entry.title}")


class TelemetryBinarySensor(TelemetryBaseEntity, BinarySensorEntity):
    """Binary sensor entity."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_info,
        description: BinarySensorEntityDescription,
    ) -> None:
        """Initialize binary sensor."""
        super().__init__(coordinator, description.key, device_info)
        self.entity_description = description
        self._attr_is_on = None

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        new_state = data.get(self.entity_description.key)
        if not isinstance(new_state, bool):
            return False
        if self._attr_is_on == new_state:
            return False
        _LOGGER.info(f"Binary sensor {self.entity_id} state changing to: {new_state}")
        self._attr_is_on = new_state
        return True
