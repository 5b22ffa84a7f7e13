"""Switch entities for Telemetry Dashboard integration."""

import logging
from typing import Any, Dict

from homeassistant.components.switch import SwitchEntity, SwitchEntityDescription
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import DOMAIN, KEY_OVER_TEMPERATURE, ATTR_ALERT_STATE, ATTR_RULE
from ..coordinators.dashboard_coordinator import DashboardCoordinator
from .base_entity import TelemetryBaseEntity, dashboard_device_info

_LOGGER = logging.getLogger(__name__)

OVER_TEMPERATURE_DESCRIPTION = SwitchEntityDescription(
    key=KEY_OVER_TEMPERATURE,
    name="Over-Temperature Indicator",
    icon="mdi:thermometer-alert",
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up switch platform."""
    try:
        coordinator: DashboardCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    except KeyError as exc:
        _LOGGER.error(f"Missing key {exc} for switches")
        return

    async_add_entities(
        [OverTemperatureSwitch(coordinator, dashboard_device_info(entry), OVER_TEMPERATURE_DESCRIPTION)]
    )


class OverTemperatureSwitch(TelemetryBaseEntity, SwitchEntity):
    """Shows the alert indicator; turning it off ends the breach episode."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_info,
        description: SwitchEntityDescription,
    ) -> None:
        super().__init__(coordinator, description.key, device_info)
        self.entity_description = description
        self._attr_is_on = coordinator.alert.indicator_on
        self._attr_extra_state_attributes = self._attributes()

    def _attributes(self) -> Dict[str, Any]:
        alert = self.coordinator.alert
        return {
            ATTR_ALERT_STATE: alert.state.value,
            ATTR_RULE: alert.rule.describe(),
        }

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        is_on = bool(data.get(KEY_OVER_TEMPERATURE))
        attributes = self._attributes()
        if is_on == self._attr_is_on and attributes == self._attr_extra_state_attributes:
            return False
        self._attr_is_on = is_on
        self._attr_extra_state_attributes = attributes
        return True

    async def async_turn_off(self, **kwargs: Any) -> None:
        await self.coordinator.async_clear_alert()

    async def async_turn_on(self, **kwargs: Any) -> None:
        # Toggling the indicator on only restores the default threshold
        await self.coordinator.async_reset_threshold()
