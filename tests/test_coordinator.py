"""Tests for the dashboard coordinator."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from homeassistant.core import HomeAssistant

from custom_components.telemetry_dashboard.const import (
    KEY_MAX_TEMPERATURE,
    KEY_NEXT_REFRESH,
    KEY_ONLINE_STATUS,
    KEY_OVER_TEMPERATURE,
    KEY_READING_COUNT,
    KEY_TIME_RANGE,
)
from custom_components.telemetry_dashboard.coordinators.dashboard_coordinator import (
    KEY_SNAPSHOT,
    DashboardCoordinator,
)
from custom_components.telemetry_dashboard.core.alert import AlertRule, AlertState
from custom_components.telemetry_dashboard.services.threshold_store import ThresholdStore

from .conftest import MONITORED_DEVICE, NOW, OTHER_DEVICE, BlockingSleep, make_reading, settle

DISPATCH = (
    "custom_components.telemetry_dashboard.coordinators."
    "dashboard_coordinator.async_dispatcher_send"
)


@pytest.fixture
def coordinator(mock_hass: HomeAssistant, mock_api_client, tmp_path):
    store = ThresholdStore(str(tmp_path / "test_entry_id.json"))
    coord = DashboardCoordinator(
        mock_hass,
        "test_entry_id",
        mock_api_client,
        store,
        AlertRule(MONITORED_DEVICE),
        [MONITORED_DEVICE, OTHER_DEVICE],
    )
    coord.poller._sleep = BlockingSleep()
    coord.poller._now = lambda: NOW
    return coord


@pytest.mark.asyncio
async def test_start_restores_threshold_and_polls(coordinator, mock_api_client, tmp_path):
    (tmp_path / "test_entry_id.json").write_text(json.dumps({"maxTemperature": 22}))
    mock_api_client.get_logs.return_value = [make_reading(temperature=25.0)]

    with patch(DISPATCH) as mock_dispatch:
        await coordinator.async_start()
        await settle()

    assert coordinator.threshold == 22
    mock_api_client.get_logs.assert_awaited_once()
    data = mock_dispatch.call_args.args[2]
    assert data[KEY_READING_COUNT] == 1
    assert data[KEY_ONLINE_STATUS] is True
    assert data[KEY_TIME_RANGE] == "Last 1 day"
    assert data[KEY_NEXT_REFRESH] == 60
    assert data[KEY_MAX_TEMPERATURE] == 22
    assert data[KEY_SNAPSHOT][MONITORED_DEVICE].temperature == 25.0
    # 25 is above the restored 22
    mock_api_client.send_command.assert_awaited_once_with(1, 0, 1)
    assert data[KEY_OVER_TEMPERATURE] is True

    await coordinator.async_stop()


@pytest.mark.asyncio
async def test_readings_fire_alert_once(coordinator, mock_api_client):
    """Test successive hot readings dispatch a single alert."""
    with patch(DISPATCH):
        await coordinator._async_handle_readings([make_reading(temperature=25.0)])
        await coordinator._async_handle_readings([make_reading(temperature=32.0)])
        await coordinator._async_handle_readings([make_reading(temperature=33.0)])

    mock_api_client.send_command.assert_awaited_once_with(1, 0, 1)
    assert coordinator.alert.state is AlertState.SENT


@pytest.mark.asyncio
async def test_clear_alert_resets_threshold(coordinator, mock_api_client, tmp_path):
    """Test disabling the indicator resets to 30, persists and sends off."""
    coordinator.threshold_store.set(25)
    with patch(DISPATCH) as mock_dispatch:
        await coordinator._async_handle_readings([make_reading(temperature=31.0)])
        await coordinator.async_clear_alert()

    assert mock_api_client.send_command.await_args_list[-1].args == (1, 0, 0)
    assert coordinator.threshold == 30
    assert json.loads((tmp_path / "test_entry_id.json").read_text()) == {"maxTemperature": 30}
    assert coordinator.alert.state is AlertState.NORMAL
    assert mock_dispatch.call_args.args[2][KEY_OVER_TEMPERATURE] is False


@pytest.mark.asyncio
async def test_clear_alert_when_off_sends_nothing(coordinator, mock_api_client):
    with patch(DISPATCH):
        await coordinator.async_clear_alert()

    mock_api_client.send_command.assert_not_awaited()
    assert coordinator.threshold == 30


@pytest.mark.asyncio
async def test_set_threshold_clamps_persists_and_evaluates(
    coordinator, mock_api_client, tmp_path
):
    with patch(DISPATCH) as mock_dispatch:
        await coordinator._async_handle_readings([make_reading(temperature=28.0)])
        mock_api_client.send_command.assert_not_awaited()

        assert await coordinator.async_set_threshold(-5) == 0

    assert json.loads((tmp_path / "test_entry_id.json").read_text()) == {"maxTemperature": 0}
    mock_api_client.send_command.assert_awaited_once_with(1, 0, 1)
    assert mock_dispatch.call_args.args[2][KEY_MAX_TEMPERATURE] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(("raw", "expected"), [(999, 35), (22.7, 22)])
async def test_set_threshold_values(coordinator, raw, expected):
    with patch(DISPATCH):
        assert await coordinator.async_set_threshold(raw) == expected
    assert coordinator.threshold == expected


@pytest.mark.asyncio
async def test_set_threshold_rejects_non_numeric(coordinator, tmp_path):
    with patch(DISPATCH) as mock_dispatch:
        assert await coordinator.async_set_threshold("abc") is None

    assert coordinator.threshold == 30
    mock_dispatch.assert_not_called()
    assert not (tmp_path / "test_entry_id.json").exists()


@pytest.mark.asyncio
async def test_set_time_range_restarts_poller(coordinator, mock_api_client):
    with patch(DISPATCH):
        await coordinator.async_start()
        await settle()
        await coordinator.async_set_time_range("Last hour")
        await settle()

    assert coordinator.time_range.key == "1h"
    assert mock_api_client.get_logs.await_count == 2
    assert coordinator.poller.generation == 2

    with pytest.raises(KeyError):
        await coordinator.async_set_time_range("Last decade")

    await coordinator.async_stop()


@pytest.mark.asyncio
async def test_reset_threshold_keeps_alert_state(coordinator, mock_api_client):
    with patch(DISPATCH):
        await coordinator._async_handle_readings([make_reading(temperature=36.0)])
        coordinator.threshold_store.set(10)
        await coordinator.async_reset_threshold()

    assert coordinator.threshold == 30
    assert coordinator.alert.state is AlertState.SENT
    assert mock_api_client.send_command.await_count == 1


def test_publish_sends_signal(coordinator, mock_hass):
    with patch(DISPATCH) as mock_dispatch:
        coordinator.async_publish()

    mock_dispatch.assert_called_once()
    hass, signal, data = mock_dispatch.call_args.args
    assert hass is mock_hass
    assert signal == "telemetry_dashboard_update_test_entry_id"
    assert data[KEY_READING_COUNT] == 0


def test_device_label():
    assert DashboardCoordinator.device_label("unknown-device") == "unknown-device"
    assert DashboardCoordinator.device_label(MONITORED_DEVICE) != MONITORED_DEVICE
