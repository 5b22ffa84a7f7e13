"""Tests for the telemetry poller refresh cycle."""

from __future__ import annotations

import asyncio
import datetime as dt
from unittest.mock import AsyncMock, MagicMock

import pytest

from custom_components.telemetry_dashboard.core.exceptions import ApiException
from custom_components.telemetry_dashboard.core.poller import TelemetryPoller
from custom_components.telemetry_dashboard.models.time_range import TimeRange

from .conftest import NOW, BlockingSleep, make_reading, settle


def _poller(fetch, listener=None, **kwargs) -> TelemetryPoller:
    return TelemetryPoller(
        fetch,
        listener or MagicMock(),
        sleep=BlockingSleep(),
        now=lambda: NOW,
        **kwargs,
    )


async def _run_countdown(poller: TelemetryPoller) -> None:
    for _ in range(poller.refresh_interval):
        await poller.async_tick()


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["30d", "7d", "1d", "6h", "3h", "1h", "30m"])
async def test_start_fetches_immediately_for_window(key):
    """Test start issues one fetch bounded at now - hours."""
    reading = make_reading()
    fetch = AsyncMock(return_value=[reading])
    poller = _poller(fetch)
    time_range = TimeRange.from_key(key)

    poller.start(time_range)
    await settle()

    fetch.assert_awaited_once_with(NOW - dt.timedelta(hours=time_range.hours))
    assert poller.readings == [reading]
    assert poller.last_update_success is True
    assert poller.seconds_until_refresh == 60
    assert poller.is_running

    await poller.async_stop()


@pytest.mark.asyncio
async def test_time_range_change_cancels_previous_cycle():
    """Test changing the window cancels the running task and refetches once."""
    fetch = AsyncMock(return_value=[])
    poller = _poller(fetch)

    poller.start(TimeRange.from_key("1d"))
    await settle()
    first_task = poller._task
    for _ in range(10):
        await poller.async_tick()
    assert poller.seconds_until_refresh == 50

    poller.start(TimeRange.from_key("1h"))
    await settle()

    assert first_task.cancelled()
    assert fetch.await_count == 2
    assert fetch.await_args_list[1].args[0] == NOW - dt.timedelta(hours=1)
    assert poller.seconds_until_refresh == 60

    await poller.async_stop()


@pytest.mark.asyncio
async def test_countdown_resets_only_after_fetch_settles():
    """Test countdown never increases mid-cycle and resets after the fetch."""
    gate = asyncio.Event()
    calls = []

    async def fetch(start):
        calls.append(start)
        if len(calls) == 2:
            await gate.wait()
        return []

    values: list[int] = []
    poller = _poller(fetch, listener=lambda: values.append(poller.seconds_until_refresh))
    poller.start(TimeRange.from_key("1d"))
    await settle()
    values.clear()

    for _ in range(59):
        await poller.async_tick()
    assert values == list(range(59, 0, -1))

    tick = asyncio.create_task(poller.async_tick())
    await settle()
    assert len(calls) == 2
    assert poller.seconds_until_refresh == 0

    gate.set()
    await tick
    assert poller.seconds_until_refresh == 60
    assert values[-2:] == [0, 60]

    await poller.async_stop()


@pytest.mark.asyncio
async def test_failed_fetch_keeps_data_and_polling_continues():
    """Test an HTTP 500 leaves readings alone and the next cycle still runs."""
    first = make_reading(temperature=24.0)
    later = make_reading(temperature=26.0)
    fetch = AsyncMock(
        side_effect=[[first], ApiException("HTTP error! status: 500"), [later]]
    )
    poller = _poller(fetch)
    poller.start(TimeRange.from_key("1d"))
    await settle()

    await _run_countdown(poller)
    assert fetch.await_count == 2
    assert poller.readings == [first]
    assert poller.last_update_success is False
    assert poller.seconds_until_refresh == 60

    await _run_countdown(poller)
    assert fetch.await_count == 3
    assert poller.readings == [later]
    assert poller.last_update_success is True

    await poller.async_stop()


@pytest.mark.asyncio
async def test_unexpected_error_does_not_stop_polling():
    fetch = AsyncMock(side_effect=[ValueError("bad body"), []])
    poller = _poller(fetch)
    poller.start(TimeRange.from_key("3h"))
    await settle()

    assert poller.last_update_success is False
    assert poller.is_running

    await _run_countdown(poller)
    assert poller.last_update_success is True

    await poller.async_stop()


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    """Test a response for an old window never overwrites newer data."""
    stale = make_reading(temperature=99.0)
    fresh = make_reading(temperature=21.0)
    calls = []

    async def fetch(start):
        calls.append(start)
        if len(calls) == 2:
            # Window changes while this response is on its way back
            poller.start(TimeRange.from_key("1h"))
            return [stale]
        return [fresh] if len(calls) == 3 else []

    poller = _poller(fetch)
    poller.start(TimeRange.from_key("1d"))
    await settle()

    await _run_countdown(poller)
    await settle()

    assert len(calls) == 3
    assert poller.readings == [fresh]
    assert poller.time_range.key == "1h"

    await poller.async_stop()


@pytest.mark.asyncio
async def test_in_flight_fetch_cancelled_on_restart():
    gate = asyncio.Event()
    stale = make_reading(temperature=99.0)
    fresh = make_reading(temperature=21.0)
    calls = []

    async def fetch(start):
        calls.append(start)
        if len(calls) == 1:
            await gate.wait()
            return [stale]
        return [fresh]

    poller = _poller(fetch)
    poller.start(TimeRange.from_key("7d"))
    await settle()
    poller.start(TimeRange.from_key("30m"))
    await settle()
    gate.set()
    await settle()

    assert poller.readings == [fresh]

    await poller.async_stop()


@pytest.mark.asyncio
async def test_data_handler_receives_new_readings():
    reading = make_reading()
    handler = AsyncMock()
    poller = _poller(AsyncMock(return_value=[reading]), data_handler=handler)

    poller.start(TimeRange.from_key("1d"))
    await settle()

    handler.assert_awaited_once_with([reading])
    await poller.async_stop()


@pytest.mark.asyncio
async def test_stop_cancels_task():
    poller = _poller(AsyncMock(return_value=[]))
    poller.start(TimeRange.from_key("1d"))
    await settle()
    task = poller._task

    await poller.async_stop()

    assert task.done()
    assert not poller.is_running


@pytest.mark.asyncio
async def test_stop_without_start():
    poller = _poller(AsyncMock(return_value=[]))
    await poller.async_stop()
    assert not poller.is_running
