"""Pytest configuration and fixtures for Telemetry Dashboard integration tests."""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from custom_components.telemetry_dashboard.const import (
    DOMAIN,
    CONF_BASE_URL,
    CONF_DEVICE_IDS,
    CONF_MONITORED_DEVICE_ID,
    CONF_ALERT_METRIC,
    CONF_ALERT_COMPARATOR,
)
from custom_components.telemetry_dashboard.models.sensor_data import SensorReading

MONITORED_DEVICE = "eui-ac1f09fffe171756"
OTHER_DEVICE = "eui-a84041e8f18646dc"
NOW = dt.datetime(2024, 11, 20, 12, 0, tzinfo=dt.timezone.utc)


def make_reading(
    device_id: str = MONITORED_DEVICE,
    temperature: float = 25.0,
    humidity: float = 50.0,
    minutes_ago: int = 0,
    reading_id: str | None = None,
) -> SensorReading:
    received_at = NOW - dt.timedelta(minutes=minutes_ago)
    return SensorReading(
        id=reading_id or f"{device_id}-{minutes_ago}-{temperature}",
        device_id=device_id,
        application_id="herisure-app",
        received_at=received_at,
        temperature=temperature,
        humidity=humidity,
    )


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class BlockingSleep:
    """Countdown sleep that never returns; tests drive ticks by hand."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.Event().wait()


@pytest.fixture
def mock_hass() -> HomeAssistant:
    """Mock Home Assistant instance."""
    hass = MagicMock(spec=HomeAssistant)
    hass.data = {DOMAIN: {}}
    hass.config = MagicMock()
    hass.config.config_dir = None
    hass.async_add_executor_job = AsyncMock(side_effect=lambda func, *args: func(*args))
    hass.services = MagicMock()
    hass.services.has_service.return_value = False
    hass.bus = MagicMock()
    hass.config_entries = MagicMock()
    hass.config_entries.async_forward_entry_setups = AsyncMock(return_value=True)
    hass.config_entries.async_unload_platforms = AsyncMock(return_value=True)
    return hass


@pytest.fixture
def mock_config_entry() -> ConfigEntry:
    """Mock config entry."""
    entry = MagicMock(spec=ConfigEntry)
    entry.entry_id = "test_entry_id"
    entry.title = "http://dashboard.local:3000"
    entry.data = {
        CONF_BASE_URL: "http://dashboard.local:3000",
        CONF_DEVICE_IDS: [MONITORED_DEVICE, OTHER_DEVICE],
        CONF_MONITORED_DEVICE_ID: MONITORED_DEVICE,
        CONF_ALERT_METRIC: "temperature",
        CONF_ALERT_COMPARATOR: ">",
    }
    entry.options = {}
    return entry


@pytest.fixture
def sample_envelopes() -> list[dict[str, Any]]:
    """Sample ``GET /api/logs`` body."""
    return [
        {
            "id": "1",
            "message": {
                "device_id": MONITORED_DEVICE,
                "application_id": "herisure-app",
                "received_at": "2024-11-20T11:58:00.123456789Z",
                "temperature": 24.5,
                "humidity": 61,
            },
        },
        {
            "id": "2",
            "message": {
                "device_id": OTHER_DEVICE,
                "application_id": "herisure-app",
                "received_at": "2024-11-20T11:59:00Z",
                "temperature": 21.0,
                "humidity": 55.5,
            },
        },
        {
            "id": "3",
            "message": {
                "device_id": MONITORED_DEVICE,
                "application_id": "herisure-app",
                "received_at": "2024-11-20T11:59:30Z",
                "temperature": 26.0,
                "humidity": 60.0,
            },
        },
    ]


@pytest.fixture
def mock_api_client():
    """Mock HTTP API client."""
    client = MagicMock()
    client.get_logs = AsyncMock(return_value=[])
    client.send_command = AsyncMock(return_value=None)
    client.base_url = "http://dashboard.local:3000"
    return client
