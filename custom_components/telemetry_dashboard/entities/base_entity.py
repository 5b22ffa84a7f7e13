"""Base entity class for Telemetry Dashboard integration."""

from typing import Any, Callable, Dict, Optional
import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import DeviceInfo, Entity

from ..const import DOMAIN
from ..coordinators.dashboard_coordinator import DashboardCoordinator

_LOGGER = logging.getLogger(__name__)


def dashboard_device_info(entry: ConfigEntry) -> DeviceInfo:
    """Device grouping the dashboard controls for one backend."""
    return DeviceInfo(
        identifiers={(DOMAIN, entry.entry_id)},
        name=entry.title,
        manufacturer="HeriSure",
        model="IoT Telemetry Dashboard",
    )


def sensor_device_info(entry: ConfigEntry, device_id: str) -> DeviceInfo:
    """Device for one telemetry source (a LoRaWAN end device)."""
    return DeviceInfo(
        identifiers={(DOMAIN, device_id)},
        name=DashboardCoordinator.device_label(device_id),
        model=device_id,
        via_device=(DOMAIN, entry.entry_id),
    )


class TelemetryBaseEntity(Entity):
    """Base class for entities fed by the dashboard coordinator."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(
        self, coordinator: DashboardCoordinator, unique_key: str, device_info: DeviceInfo
    ) -> None:
        """Initialize base entity.

        Args:
            coordinator: Dashboard coordinator publishing updates
            unique_key: Suffix making the unique id distinct within the entry
            device_info: Device information
        """
        self.coordinator = coordinator
        self._attr_unique_id = f"{coordinator.entry_id}_{unique_key}"
        self._attr_device_info = device_info
        self._remove_dispatcher: Optional[Callable] = None

    @callback
    def _update_from_data(self, data: Dict[str, Any]) -> bool:
        """Apply coordinator data; return True if the state changed."""
        raise NotImplementedError

    @callback
    def _handle_update(self, data: Dict[str, Any]) -> None:
        """Handle updates from the dispatcher."""
        if self._update_from_data(data):
            self.async_write_ha_state()

    async def async_added_to_hass(self) -> None:
        """Register dispatcher connection."""
        self._update_from_data(self.coordinator.data)
        self._remove_dispatcher = async_dispatcher_connect(
            self.hass, self.coordinator.signal, self._handle_update
        )
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Entity %s registered", self.unique_id)

    async def async_will_remove_from_hass(self) -> None:
        """Unregister dispatcher connection."""
        if self._remove_dispatcher:
            self._remove_dispatcher()
            self._remove_dispatcher = None
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Entity %s unregistered", self.unique_id)
