"""Custom exceptions for the Telemetry Dashboard integration."""


class TelemetryException(Exception):
    """Base exception for Telemetry Dashboard integration."""

    pass


class ApiException(TelemetryException):
    """Exception for transport or HTTP status failures."""

    pass


class ParseException(TelemetryException):
    """Exception for malformed response bodies."""

    pass
