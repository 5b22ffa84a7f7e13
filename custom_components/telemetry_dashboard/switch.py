"""Switch platform for Telemetry Dashboard integration."""

from .entities.switch import async_setup_entry

__all__ = ["async_setup_entry"]
