"""Number platform for Telemetry Dashboard integration."""

from .entities.number import async_setup_entry

__all__ = ["async_setup_entry"]
