"""Select platform for Telemetry Dashboard integration."""

from .entities.select import async_setup_entry

__all__ = ["async_setup_entry"]
