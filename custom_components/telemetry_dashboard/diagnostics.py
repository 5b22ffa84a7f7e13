"""Diagnostics support for Telemetry Dashboard integration."""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN, CONF_BASE_URL
from .coordinators.dashboard_coordinator import DashboardCoordinator

TO_REDACT = {CONF_BASE_URL, "token", "password", "secret"}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    entry_data = hass.data.get(DOMAIN, {}).get(entry.entry_id, {})

    diagnostics_data: dict[str, Any] = {
        "entry": {
            "entry_id": entry.entry_id,
            "title": entry.title,
            "data": async_redact_data(entry.data, TO_REDACT),
            "options": entry.options,
        },
        "version": "1.0.0",  # From manifest.json
    }

    coordinator = entry_data.get("coordinator")
    if not isinstance(coordinator, DashboardCoordinator):
        diagnostics_data["coordinator"] = {"status": "not_initialized"}
        return diagnostics_data

    poller = coordinator.poller
    last = poller.last_update_time
    diagnostics_data["poller"] = {
        "running": poller.is_running,
        "generation": poller.generation,
        "time_range": coordinator.time_range.key,
        "refresh_interval": poller.refresh_interval,
        "seconds_until_refresh": poller.seconds_until_refresh,
        "last_update_success": poller.last_update_success,
        "last_update_time": last.isoformat() if last else None,
        "reading_count": len(poller.readings),
    }

    alert = coordinator.alert
    diagnostics_data["alert"] = {
        "rule": alert.rule.describe(),
        "state": alert.state.value,
        "over_threshold": alert.over_threshold,
        "last_value": alert.last_value,
        "threshold": coordinator.threshold,
        "threshold_persisted": coordinator.threshold_store.path is not None,
    }

    diagnostics_data["snapshot"] = {
        device_id: reading.as_log_row()
        for device_id, reading in coordinator.snapshot.items()
    }
    return diagnostics_data
