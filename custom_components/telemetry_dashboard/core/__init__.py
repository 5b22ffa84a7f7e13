"""Core business logic for Telemetry Dashboard integration.

This package contains the core functionality:
- API client for HTTP communication
- Telemetry poller (refresh cadence and countdown)
- Over-temperature alert state machine
- Custom exceptions
"""

__all__ = [
    "TelemetryHttpApiClient",
    "TelemetryPoller",
    "OverTemperatureAlert",
    "TelemetryException",
    "ApiException",
    "ParseException",
]
