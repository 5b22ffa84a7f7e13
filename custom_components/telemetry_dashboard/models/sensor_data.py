"""Sensor reading models for Telemetry Dashboard integration."""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..core.exceptions import ParseException

# Network servers stamp nanoseconds; datetime holds microseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


def _parse_timestamp(value: Any) -> dt.datetime:
    if not isinstance(value, str) or not value:
        raise ParseException(f"Invalid received_at: {value!r}")
    try:
        parsed = dt.datetime.fromisoformat(_EXTRA_FRACTION.sub(r"\1", value))
    except ValueError as err:
        raise ParseException(f"Invalid received_at: {value!r}") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _to_float(message: Dict[str, Any], key: str) -> float:
    value = message.get(key)
    # bool is an int subclass; a flag is not a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseException(f"Invalid {key}: {value!r}")
    return float(value)


@dataclass(frozen=True)
class SensorReading:
    """One timestamped temperature/humidity sample from a device."""

    id: str
    device_id: str
    application_id: str
    received_at: dt.datetime
    temperature: float
    humidity: float

    @classmethod
    def from_envelope(cls, envelope: Any) -> "SensorReading":
        """Build a reading from a ``{id, message: {...}}`` envelope.

        Raises:
            ParseException: If the envelope is missing fields or has bad types
        """
        if not isinstance(envelope, dict):
            raise ParseException(f"Envelope must be an object, got {type(envelope).__name__}")
        message = envelope.get("message")
        if not isinstance(message, dict):
            raise ParseException(f"Envelope {envelope.get('id')!r} has no message")

        reading_id = envelope.get("id")
        device_id = message.get("device_id")
        if reading_id is None or not device_id:
            raise ParseException(f"Envelope missing id/device_id: {envelope!r}")

        return cls(
            id=str(reading_id),
            device_id=str(device_id),
            application_id=str(message.get("application_id") or ""),
            received_at=_parse_timestamp(message.get("received_at")),
            temperature=_to_float(message, "temperature"),
            humidity=_to_float(message, "humidity"),
        )

    def metric(self, name: str) -> float:
        """Return the value of ``temperature`` or ``humidity``."""
        if name == "temperature":
            return self.temperature
        if name == "humidity":
            return self.humidity
        raise KeyError(name)

    def as_log_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "application_id": self.application_id,
            "received_at": self.received_at.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
        }


def parse_envelopes(payload: Any) -> List[SensorReading]:
    """Parse a ``GET /api/logs`` body into readings.

    Raises:
        ParseException: If the body is not a list or an envelope is malformed
    """
    if not isinstance(payload, list):
        raise ParseException(f"Expected a JSON array, got {type(payload).__name__}")
    return [SensorReading.from_envelope(item) for item in payload]


def latest_by_device(readings: Iterable[SensorReading]) -> Dict[str, SensorReading]:
    """Fold readings into the most recent reading per device.

    The source does not guarantee monotonic timestamps, so readings are
    stably ordered by ``received_at`` first; ties keep list order.
    """
    snapshot: Dict[str, SensorReading] = {}
    for reading in sorted(readings, key=lambda r: r.received_at):
        snapshot[reading.device_id] = reading
    return snapshot


def chart_series(readings: Iterable[SensorReading], metric: str) -> List[Dict[str, Any]]:
    """Shape readings as ``{date, <device_id>: value}`` points for a chart."""
    return [
        {"date": reading.received_at.isoformat(), reading.device_id: reading.metric(metric)}
        for reading in readings
    ]


def log_rows(
    readings: Iterable[SensorReading],
    device_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Flatten readings for the log view, newest first."""
    selected = [r for r in readings if device_id is None or r.device_id == device_id]
    selected.sort(key=lambda r: r.received_at, reverse=True)
    if limit is not None:
        selected = selected[:limit]
    return [r.as_log_row() for r in selected]
