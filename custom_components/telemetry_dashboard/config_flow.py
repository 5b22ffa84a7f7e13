"""Configuration flow for Telemetry Dashboard integration."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.config_entries import ConfigFlowResult
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import (
    DOMAIN,
    CONF_BASE_URL,
    CONF_DEVICE_IDS,
    CONF_MONITORED_DEVICE_ID,
    CONF_ALERT_METRIC,
    CONF_ALERT_COMPARATOR,
    COMPARATORS,
    DEFAULT_COMPARATOR,
    DEFAULT_MONITORED_DEVICE_ID,
    DEVICE_LABELS,
    METRICS,
    METRIC_TEMPERATURE,
)
from .core.api_client import TelemetryHttpApiClient
from .core.exceptions import ApiException, ParseException

_LOGGER = logging.getLogger(__name__)

PROBE_WINDOW = dt.timedelta(minutes=30)


def parse_device_ids(raw: str) -> List[str]:
    """Split a comma separated device list, dropping blanks and duplicates."""
    seen: List[str] = []
    for part in raw.split(","):
        device_id = part.strip()
        if device_id and device_id not in seen:
            seen.append(device_id)
    return seen


def normalize_base_url(raw: str) -> str:
    return raw.strip().rstrip("/")


class TelemetryDashboardConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Config flow for Telemetry Dashboard (backend URL + alert rule)."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize config flow."""
        self._user_input: Dict[str, Any] = {}

    async def _async_probe_backend(self, base_url: str) -> int:
        """Fetch a short window of logs to prove the backend answers.

        Returns:
            Number of readings in the probe window
        """
        session = async_get_clientsession(self.hass)
        api = TelemetryHttpApiClient(session, base_url)
        start = dt.datetime.now(dt.timezone.utc) - PROBE_WINDOW
        readings = await api.get_logs(start)
        return len(readings)

    async def async_step_user(self, user_input: Optional[Dict[str, Any]] = None) -> ConfigFlowResult:
        """Handle the initial step."""
        errors: Dict[str, str] = {}

        if user_input is not None:
            self._user_input = dict(user_input)
            base_url = normalize_base_url(user_input.get(CONF_BASE_URL, ""))
            device_ids = parse_device_ids(user_input.get(CONF_DEVICE_IDS, ""))
            monitored = user_input.get(CONF_MONITORED_DEVICE_ID, "").strip()

            if not base_url.startswith(("http://", "https://")):
                errors[CONF_BASE_URL] = "invalid_url"
            elif not device_ids:
                errors[CONF_DEVICE_IDS] = "no_devices"
            elif not monitored:
                errors[CONF_MONITORED_DEVICE_ID] = "no_monitored_device"
            else:
                try:
                    count = await self._async_probe_backend(base_url)
                    _LOGGER.info(f"Backend {base_url} answered with {count} readings")
                except ParseException as exc:
                    _LOGGER.warning(f"Backend {base_url} returned an unexpected body: {exc}")
                    errors["base"] = "invalid_response"
                except ApiException as exc:
                    _LOGGER.error(f"Cannot reach backend {base_url}: {exc}")
                    errors["base"] = "cannot_connect"
                except Exception as exc:
                    _LOGGER.exception(f"Unexpected error probing {base_url}: {exc}")
                    errors["base"] = "unknown"

            if not errors:
                await self.async_set_unique_id(base_url)
                self._abort_if_unique_id_configured()
                config_data = {
                    CONF_BASE_URL: base_url,
                    CONF_DEVICE_IDS: device_ids,
                    CONF_MONITORED_DEVICE_ID: monitored,
                    CONF_ALERT_METRIC: user_input.get(CONF_ALERT_METRIC, METRIC_TEMPERATURE),
                    CONF_ALERT_COMPARATOR: user_input.get(CONF_ALERT_COMPARATOR, DEFAULT_COMPARATOR),
                }
                _LOGGER.info(f"Creating new entry for {base_url}")
                return self.async_create_entry(title=base_url, data=config_data)

        defaults = self._user_input
        schema = vol.Schema(
            {
                vol.Required(CONF_BASE_URL, default=defaults.get(CONF_BASE_URL, "")): str,
                vol.Required(
                    CONF_DEVICE_IDS,
                    default=defaults.get(CONF_DEVICE_IDS, ", ".join(DEVICE_LABELS)),
                ): str,
                vol.Required(
                    CONF_MONITORED_DEVICE_ID,
                    default=defaults.get(CONF_MONITORED_DEVICE_ID, DEFAULT_MONITORED_DEVICE_ID),
                ): str,
                vol.Required(
                    CONF_ALERT_METRIC,
                    default=defaults.get(CONF_ALERT_METRIC, METRIC_TEMPERATURE),
                ): vol.In(METRICS),
                vol.Required(
                    CONF_ALERT_COMPARATOR,
                    default=defaults.get(CONF_ALERT_COMPARATOR, DEFAULT_COMPARATOR),
                ): vol.In(COMPARATORS),
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)
