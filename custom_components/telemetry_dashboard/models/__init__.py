"""Data models for Telemetry Dashboard integration.

This package contains data models and validation.
"""

__all__ = [
    "SensorReading",
    "TimeRange",
]
