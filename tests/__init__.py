"""Tests for Telemetry Dashboard integration."""
