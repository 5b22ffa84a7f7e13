"""Persistent alert threshold for Telemetry Dashboard.

Layout per config entry:
  .storage/telemetry_dashboard/{entry_id}.json

Structure:
{
  "maxTemperature": 30
}
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

from ..const import DEFAULT_THRESHOLD, STORAGE_KEY_THRESHOLD, THRESHOLD_MAX, THRESHOLD_MIN

_LOGGER = logging.getLogger(__name__)


class ThresholdStore:
    """Holds the alert threshold and persists it to a JSON file.

    A store without a path has no storage facility: it keeps the value in
    memory and never touches the filesystem.
    """

    __slots__ = ("path", "value")

    def __init__(self, path: Optional[str]) -> None:
        self.path = path
        self.value: int = DEFAULT_THRESHOLD

    @staticmethod
    def clamp(value: Any) -> int:
        """Truncate to an integer and clamp to the allowed range.

        Raises:
            ValueError: If the value is not numeric
        """
        if isinstance(value, bool):
            raise ValueError(f"Invalid threshold: {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError) as err:
            raise ValueError(f"Invalid threshold: {value!r}") from err
        if number != number:  # NaN
            raise ValueError("Invalid threshold: NaN")
        number = max(float(THRESHOLD_MIN), min(float(THRESHOLD_MAX), number))
        return int(number)

    def set(self, value: Any) -> int:
        self.value = self.clamp(value)
        return self.value

    def load(self) -> int:
        """Read the stored threshold, falling back to the default."""
        self.value = DEFAULT_THRESHOLD
        if self.path is None or not os.path.exists(self.path):
            return self.value
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            stored = data.get(STORAGE_KEY_THRESHOLD) if isinstance(data, dict) else None
            if stored is not None:
                self.value = self.clamp(stored)
        except (OSError, ValueError) as err:
            _LOGGER.warning(f"Could not read threshold from {self.path}: {err}. Using default")
            self.value = DEFAULT_THRESHOLD
        return self.value

    def save(self, value: Optional[int] = None) -> None:
        """Write the threshold; a store without a path skips silently."""
        if value is not None:
            self.set(value)
        if self.path is None:
            return
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({STORAGE_KEY_THRESHOLD: self.value}, f)
        except OSError as err:
            _LOGGER.warning(f"Could not persist threshold to {self.path}: {err}")
