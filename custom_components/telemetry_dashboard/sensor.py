"""Sensor platform for Telemetry Dashboard integration."""

from .entities.sensor import async_setup_entry

__all__ = ["async_setup_entry"]
