"""Sensor entities for Telemetry Dashboard integration."""

from typing import Any, Dict, Optional
import logging

from homeassistant.components.sensor import (
    SensorEntity,
    SensorEntityDescription,
    SensorDeviceClass,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, UnitOfTemperature, UnitOfTime, EntityCategory
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from ..const import (
    DOMAIN,
    KEY_TEMPERATURE,
    KEY_HUMIDITY,
    KEY_NEXT_REFRESH,
    KEY_READING_COUNT,
    KEY_TIME_RANGE,
    ATTR_RECEIVED_AT,
    ATTR_REFRESH_INTERVAL,
    ATTR_PROGRESS,
    ATTR_LAST_UPDATE_TIME,
)
from ..coordinators.dashboard_coordinator import DashboardCoordinator, KEY_SNAPSHOT
from .base_entity import TelemetryBaseEntity, dashboard_device_info, sensor_device_info

_LOGGER = logging.getLogger(__name__)

# Sensor Descriptions (per telemetry device)
READING_SENSOR_DESCRIPTIONS: tuple[SensorEntityDescription, ...] = (
    SensorEntityDescription(
        key=KEY_TEMPERATURE,
        name="Temperature",
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=1,
    ),
    SensorEntityDescription(
        key=KEY_HUMIDITY,
        name="Humidity",
        native_unit_of_measurement=PERCENTAGE,
        device_class=SensorDeviceClass.HUMIDITY,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=1,
    ),
)

# Sensor Descriptions (poller status)
STATUS_SENSOR_DESCRIPTIONS: tuple[SensorEntityDescription, ...] = (
    SensorEntityDescription(
        key=KEY_NEXT_REFRESH,
        name="Next Refresh",
        native_unit_of_measurement=UnitOfTime.SECONDS,
        device_class=SensorDeviceClass.DURATION,
        icon="mdi:timer-refresh-outline",
        entity_category=EntityCategory.DIAGNOSTIC,
        entity_registry_enabled_default=False,
    ),
    SensorEntityDescription(
        key=KEY_READING_COUNT,
        name="Readings",
        state_class=SensorStateClass.MEASUREMENT,
        icon="mdi:table-large",
    ),
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensor platform."""
    _LOGGER.debug(f"Setting up sensor platform for {entry.title}")

    try:
        coordinator: DashboardCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]
    except KeyError as exc:
        _LOGGER.error(f"Missing key {exc} for sensors")
        return

    entities: list[SensorEntity] = []
    for device_id in coordinator.device_ids:
        device_info = sensor_device_info(entry, device_id)
        entities.extend(
            TelemetryReadingSensor(coordinator, device_id, device_info, description)
            for description in READING_SENSOR_DESCRIPTIONS
        )

    dashboard_info = dashboard_device_info(entry)
    entities.extend(
        TelemetryStatusSensor(coordinator, dashboard_info, description)
        for description in STATUS_SENSOR_DESCRIPTIONS
    )

    async_add_entities(entities)
    _LOGGER.info(f"Added {len(entities)} sensors for {entry.title}")


class TelemetryReadingSensor(TelemetryBaseEntity, SensorEntity):
    """Latest temperature or humidity of one device."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_id: str,
        device_info,
        description: SensorEntityDescription,
    ) -> None:
        super().__init__(coordinator, f"{device_id}_{description.key}", device_info)
        self.entity_description = description
        self._device_id = device_id
        self._attr_native_value = None
        self._attr_extra_state_attributes: Dict[str, Any] = {}

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        reading = data.get(KEY_SNAPSHOT, {}).get(self._device_id)
        if reading is None:
            return False
        value = reading.metric(self.entity_description.key)
        received_at = reading.received_at.isoformat()
        if (
            value == self._attr_native_value
            and self._attr_extra_state_attributes.get(ATTR_RECEIVED_AT) == received_at
        ):
            return False
        self._attr_native_value = value
        self._attr_extra_state_attributes = {ATTR_RECEIVED_AT: received_at}
        return True


class TelemetryStatusSensor(TelemetryBaseEntity, SensorEntity):
    """Poller status: countdown and working-set size."""

    def __init__(
        self,
        coordinator: DashboardCoordinator,
        device_info,
        description: SensorEntityDescription,
    ) -> None:
        super().__init__(coordinator, description.key, device_info)
        self.entity_description = description
        self._attr_native_value: Optional[int] = None
        self._attr_extra_state_attributes: Dict[str, Any] = {}

    def _attributes(self) -> Dict[str, Any]:
        poller = self.coordinator.poller
        if self.entity_description.key == KEY_NEXT_REFRESH:
            return {
                ATTR_REFRESH_INTERVAL: poller.refresh_interval,
                ATTR_PROGRESS: round(
                    poller.seconds_until_refresh * 100 / poller.refresh_interval
                ),
            }
        last = poller.last_update_time
        return {
            KEY_TIME_RANGE: self.coordinator.time_range.label,
            ATTR_LAST_UPDATE_TIME: last.isoformat() if last else None,
        }

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        value = data.get(self.entity_description.key)
        attributes = self._attributes()
        if value == self._attr_native_value and attributes == self._attr_extra_state_attributes:
            return False
        self._attr_native_value = value
        self._attr_extra_state_attributes = attributes
        return True
