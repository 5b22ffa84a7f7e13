"""Lookback window models for Telemetry Dashboard integration."""

import datetime as dt
from dataclasses import dataclass

from ..const import TIME_RANGES


@dataclass(frozen=True)
class TimeRange:
    """Operator-selectable lookback window."""

    key: str
    label: str
    hours: float

    @classmethod
    def from_key(cls, key: str) -> "TimeRange":
        """Return the time range registered under ``key``.

        Raises:
            KeyError: If the key is not a known time range
        """
        label, hours = TIME_RANGES[key]
        return cls(key=key, label=label, hours=hours)

    @classmethod
    def from_label(cls, label: str) -> "TimeRange":
        for key, (range_label, hours) in TIME_RANGES.items():
            if range_label == label:
                return cls(key=key, label=range_label, hours=hours)
        raise KeyError(label)

    def start(self, now: dt.datetime) -> dt.datetime:
        """Return the fetch window start boundary (``now - hours``)."""
        return now - dt.timedelta(hours=self.hours)


def all_time_ranges() -> list[TimeRange]:
    return [TimeRange.from_key(key) for key in TIME_RANGES]
