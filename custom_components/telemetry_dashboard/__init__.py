"""IoT Telemetry Dashboard integration for Home Assistant."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform, EVENT_HOMEASSISTANT_STOP
from homeassistant.core import (
    HomeAssistant,
    Event,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.storage import STORAGE_DIR
import homeassistant.helpers.config_validation as cv

from .const import (
    DOMAIN, _LOGGER, CONF_BASE_URL, CONF_DEVICE_IDS, CONF_MONITORED_DEVICE_ID,
    CONF_ALERT_METRIC, CONF_ALERT_COMPARATOR, DEFAULT_MONITORED_DEVICE_ID,
    DEFAULT_COMPARATOR, DEVICE_LABELS, METRICS, METRIC_TEMPERATURE,
    SERVICE_SET_ALERT_THRESHOLD, SERVICE_GET_READINGS, SERVICE_GET_CHART_SERIES,
    ATTR_VALUE, ATTR_DEVICE_ID, ATTR_LIMIT, ATTR_METRIC,
)
from .coordinators.dashboard_coordinator import DashboardCoordinator
from .core.alert import AlertRule
from .core.api_client import TelemetryHttpApiClient
from .models.sensor_data import chart_series, log_rows
from .services.threshold_store import ThresholdStore

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.SELECT,
    Platform.NUMBER,
    Platform.SWITCH,
]

ATTR_ENTRY_ID = "entry_id"

SET_THRESHOLD_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_VALUE): vol.Coerce(float),
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)
GET_READINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_DEVICE_ID): cv.string,
        vol.Optional(ATTR_LIMIT): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)
GET_CHART_SERIES_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_METRIC, default=METRIC_TEMPERATURE): vol.In(METRICS),
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)


def threshold_store_path(hass: HomeAssistant, entry_id: str) -> Optional[str]:
    """Return the threshold file for an entry, or None without a config dir."""
    if not getattr(hass.config, "config_dir", None):
        return None
    return hass.config.path(STORAGE_DIR, DOMAIN, f"{entry_id}.json")


async def async_setup(hass: HomeAssistant, config: dict) -> bool:
    """Set up the Telemetry Dashboard integration."""
    # Config flow is handled automatically by Home Assistant
    # when config_flow: true is set in manifest.json
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Telemetry Dashboard from a config entry."""
    _LOGGER.info(f"Setting up Telemetry Dashboard: {entry.title} ({entry.entry_id})")
    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = {}

    coordinator: Optional[DashboardCoordinator] = None
    platforms_loaded = False

    try:
        base_url = entry.data[CONF_BASE_URL]
        device_ids = list(entry.data.get(CONF_DEVICE_IDS) or DEVICE_LABELS)
        rule = AlertRule(
            device_id=entry.data.get(CONF_MONITORED_DEVICE_ID, DEFAULT_MONITORED_DEVICE_ID),
            metric=entry.data.get(CONF_ALERT_METRIC, METRIC_TEMPERATURE),
            comparator=entry.data.get(CONF_ALERT_COMPARATOR, DEFAULT_COMPARATOR),
        )

        session = async_get_clientsession(hass)
        api_client = TelemetryHttpApiClient(session, base_url)
        store = ThresholdStore(threshold_store_path(hass, entry.entry_id))
        coordinator = DashboardCoordinator(
            hass, entry.entry_id, api_client, store, rule, device_ids
        )
        hass.data[DOMAIN][entry.entry_id].update({
            "api_client": api_client,
            "coordinator": coordinator,
        })

        async def _async_stop_polling(event: Event) -> None:
            """Stop polling on Home Assistant stop."""
            _LOGGER.info("Home Assistant stop event received.")
            await coordinator.async_stop()

        entry.async_on_unload(
            hass.bus.async_listen_once(EVENT_HOMEASSISTANT_STOP, _async_stop_polling)
        )

        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
        platforms_loaded = True
        await coordinator.async_start()
        _async_register_services(hass)

        _LOGGER.info(
            f"Setup complete for {entry.title}: {len(device_ids)} devices, "
            f"alert rule {rule.describe()}"
        )
        return True

    except Exception:
        _LOGGER.exception(f"Unexpected setup error {entry.title}")
        if coordinator is not None:
            await coordinator.async_stop()
        if platforms_loaded:
            await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        return False


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.info(f"Unloading Telemetry Dashboard: {entry.title}")

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if entry_data:
        coordinator = entry_data.get("coordinator")
        if isinstance(coordinator, DashboardCoordinator):
            await coordinator.async_stop()
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Removed entry data %s.", entry.entry_id)
    else:
        _LOGGER.warning(f"No entry data {entry.entry_id} to clean.")

    if not hass.data.get(DOMAIN):
        for service in (
            SERVICE_SET_ALERT_THRESHOLD,
            SERVICE_GET_READINGS,
            SERVICE_GET_CHART_SERIES,
        ):
            hass.services.async_remove(DOMAIN, service)

    _LOGGER.info(f"Unload {entry.title}: {'OK' if unload_ok else 'Failed'}.")
    return unload_ok


def _get_coordinator(hass: HomeAssistant, call: ServiceCall) -> DashboardCoordinator:
    entries: Dict[str, Any] = hass.data.get(DOMAIN, {})
    entry_id = call.data.get(ATTR_ENTRY_ID)
    if entry_id is not None:
        entry_data = entries.get(entry_id)
    else:
        entry_data = next(iter(entries.values()), None)
    coordinator = entry_data.get("coordinator") if entry_data else None
    if not isinstance(coordinator, DashboardCoordinator):
        raise HomeAssistantError(f"No telemetry dashboard loaded for {entry_id or 'any entry'}")
    return coordinator


def _async_register_services(hass: HomeAssistant) -> None:
    if hass.services.has_service(DOMAIN, SERVICE_SET_ALERT_THRESHOLD):
        return

    async def _svc_set_alert_threshold(call: ServiceCall) -> None:
        """Numeric entry for the alert threshold; clamped like the slider."""
        coordinator = _get_coordinator(hass, call)
        await coordinator.async_set_threshold(call.data[ATTR_VALUE])

    async def _svc_get_readings(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call)
        rows = log_rows(
            coordinator.poller.readings,
            device_id=call.data.get(ATTR_DEVICE_ID),
            limit=call.data.get(ATTR_LIMIT),
        )
        return {"time_range": coordinator.time_range.label, "readings": rows}

    async def _svc_get_chart_series(call: ServiceCall) -> ServiceResponse:
        coordinator = _get_coordinator(hass, call)
        metric = call.data[ATTR_METRIC]
        return {
            "metric": metric,
            "devices": {
                device_id: coordinator.device_label(device_id)
                for device_id in coordinator.device_ids
            },
            "series": chart_series(coordinator.poller.readings, metric),
        }

    hass.services.async_register(
        DOMAIN, SERVICE_SET_ALERT_THRESHOLD, _svc_set_alert_threshold,
        schema=SET_THRESHOLD_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_GET_READINGS, _svc_get_readings,
        schema=GET_READINGS_SCHEMA, supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_GET_CHART_SERIES, _svc_get_chart_series,
        schema=GET_CHART_SERIES_SCHEMA, supports_response=SupportsResponse.ONLY,
    )
