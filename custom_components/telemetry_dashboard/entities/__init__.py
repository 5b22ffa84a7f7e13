"""Entity implementations for Telemetry Dashboard integration.

This package contains all entity types:
- Sensors (device readings, poller status)
- Binary sensors
- Select, number and switch controls
- Base entity classes
"""

__all__ = [
    "TelemetryBaseEntity",
]
