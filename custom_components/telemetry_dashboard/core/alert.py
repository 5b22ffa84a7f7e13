"""Over-temperature alert state machine."""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Mapping, Optional

from ..const import (
    ALERT_OFF_COMMAND,
    ALERT_ON_COMMAND,
    DEFAULT_COMPARATOR,
    METRIC_TEMPERATURE,
)
from ..models.sensor_data import SensorReading
from .exceptions import TelemetryException

_LOGGER = logging.getLogger(__name__)

SendCommand = Callable[[int, int, int], Awaitable[None]]

_COMPARATORS: Dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


class AlertState(str, Enum):
    """Alert lifecycle for one breach episode."""

    NORMAL = "normal"
    ARMED = "armed"
    SENT = "sent"


@dataclass(frozen=True)
class AlertRule:
    """Monitored device, metric and comparator."""

    device_id: str
    metric: str = METRIC_TEMPERATURE
    comparator: str = DEFAULT_COMPARATOR

    def __post_init__(self) -> None:
        if self.comparator not in _COMPARATORS:
            raise ValueError(f"Unsupported comparator: {self.comparator}")

    def value(self, snapshot: Mapping[str, SensorReading]) -> Optional[float]:
        reading = snapshot.get(self.device_id)
        if reading is None:
            return None
        return reading.metric(self.metric)

    def matches(self, value: float, threshold: float) -> bool:
        return _COMPARATORS[self.comparator](value, threshold)

    def describe(self) -> str:
        return f"{self.device_id}.{self.metric} {self.comparator} threshold"


class OverTemperatureAlert:
    """Sends one alert command per breach episode.

    An episode starts when the rule first matches and ends only when the
    operator clears it; a value that drops back below the threshold does
    not end it.
    """

    __slots__ = (
        "rule",
        "_send_command",
        "state",
        "over_threshold",
        "last_value",
        "_episode",
    )

    def __init__(self, rule: AlertRule, send_command: SendCommand) -> None:
        self.rule = rule
        self._send_command = send_command
        self.state = AlertState.NORMAL
        self.over_threshold = False
        self.last_value: Optional[float] = None
        self._episode = 0

    @property
    def indicator_on(self) -> bool:
        return self.over_threshold or self.state is AlertState.SENT

    async def async_evaluate(
        self, snapshot: Mapping[str, SensorReading], threshold: float
    ) -> bool:
        """Re-evaluate the rule against the latest snapshot.

        Returns:
            True if an alert command was dispatched by this call
        """
        value = self.rule.value(snapshot)
        self.last_value = value
        self.over_threshold = value is not None and self.rule.matches(value, threshold)

        if not self.over_threshold or self.state is not AlertState.NORMAL:
            return False

        # Armed before awaiting, so a concurrent evaluation cannot dispatch again
        self.state = AlertState.ARMED
        episode = self._episode
        _LOGGER.warning(
            f"Alert rule {self.rule.describe()} matched: {value} vs {threshold}. Sending alert."
        )
        await self._async_dispatch(ALERT_ON_COMMAND)
        if episode != self._episode:
            _LOGGER.info("Alert cleared while the alert command was in flight")
            return True
        self.state = AlertState.SENT
        return True

    async def async_clear(self) -> bool:
        """End the breach episode on operator request.

        Returns:
            True if an alert-off command was dispatched
        """
        was_on = self.indicator_on
        self._episode += 1
        self.state = AlertState.NORMAL
        self.over_threshold = False
        if not was_on:
            if _LOGGER.isEnabledFor(logging.DEBUG):
                _LOGGER.debug("Alert clear requested while indicator already off")
            return False

        _LOGGER.info(f"Alert for {self.rule.device_id} cleared by operator")
        await self._async_dispatch(ALERT_OFF_COMMAND)
        return True

    async def _async_dispatch(self, command: tuple) -> None:
        f_port, code, value = command
        try:
            await self._send_command(f_port, code, value)
        except TelemetryException as err:
            _LOGGER.warning(f"Failed to send command {command}: {err}")
        except Exception:
            _LOGGER.exception(f"Unexpected error sending command {command}")
