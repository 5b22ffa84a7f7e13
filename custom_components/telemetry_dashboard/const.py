# /config/custom_components/telemetry_dashboard/const.py

import logging
from typing import Final

DOMAIN: Final = "telemetry_dashboard"
_LOGGER = logging.getLogger(__package__)

# --- HTTP API Constants ---
URL_LOGS: Final = "/api/logs"
URL_COMMAND: Final = "/api/mqtt"

DEFAULT_HEADERS: Final = {
    "Accept": "application/json, text/plain, */*",
}

# --- Configuration Keys ---
CONF_BASE_URL: Final = "base_url"
CONF_DEVICE_IDS: Final = "device_ids"
CONF_MONITORED_DEVICE_ID: Final = "monitored_device_id"
CONF_ALERT_METRIC: Final = "alert_metric"
CONF_ALERT_COMPARATOR: Final = "alert_comparator"

# --- Polling ---
DEFAULT_REFRESH_INTERVAL: Final = 60  # seconds between fetches
COUNTDOWN_STEP_SECONDS: Final = 1

# --- Alert threshold ---
THRESHOLD_MIN: Final = 0
THRESHOLD_MAX: Final = 35
DEFAULT_THRESHOLD: Final = 30
STORAGE_KEY_THRESHOLD: Final = "maxTemperature"

# (fPort, command, value)
ALERT_ON_COMMAND: Final = (1, 0, 1)
ALERT_OFF_COMMAND: Final = (1, 0, 0)

METRIC_TEMPERATURE: Final = "temperature"
METRIC_HUMIDITY: Final = "humidity"
METRICS: Final = (METRIC_TEMPERATURE, METRIC_HUMIDITY)
COMPARATORS: Final = (">", ">=", "<", "<=")
DEFAULT_COMPARATOR: Final = ">"

# --- Time ranges: key -> (label, lookback hours) ---
TIME_RANGES: Final = {
    "30d": ("Last 1 month", 30 * 24),
    "7d": ("Last 7 days", 7 * 24),
    "1d": ("Last 1 day", 24),
    "6h": ("Last 6 hours", 6),
    "3h": ("Last 3 hours", 3),
    "1h": ("Last hour", 1),
    "30m": ("Last 30 minutes", 0.5),
}
DEFAULT_TIME_RANGE: Final = "1d"

# --- Devices ---
DEVICE_LABELS: Final = {
    "eui-a84041e8f18646dc": "Dragino",
    "eui-ac1f09fffe171756": "RAK3712",
    "eui-24e124785d441512": "Milesight",
}
DEFAULT_MONITORED_DEVICE_ID: Final = "eui-ac1f09fffe171756"

# --- Dispatcher Signal ---
SIGNAL_UPDATE_FORMAT: Final = f"{DOMAIN}_update_{{entry_id}}"

# --- Entity Keys ---
KEY_TEMPERATURE: Final = METRIC_TEMPERATURE
KEY_HUMIDITY: Final = METRIC_HUMIDITY
KEY_NEXT_REFRESH: Final = "next_refresh"
KEY_READING_COUNT: Final = "reading_count"
KEY_ONLINE_STATUS: Final = "online_status"
KEY_TIME_RANGE: Final = "time_range"
KEY_MAX_TEMPERATURE: Final = "max_temperature"
KEY_OVER_TEMPERATURE: Final = "over_temperature"

# --- Attributes ---
ATTR_RECEIVED_AT: Final = "received_at"
ATTR_REFRESH_INTERVAL: Final = "refresh_interval"
ATTR_PROGRESS: Final = "progress"
ATTR_LAST_UPDATE_TIME: Final = "last_update_time"
ATTR_ALERT_STATE: Final = "alert_state"
ATTR_RULE: Final = "rule"

# --- Services ---
SERVICE_SET_ALERT_THRESHOLD: Final = "set_alert_threshold"
SERVICE_GET_READINGS: Final = "get_readings"
SERVICE_GET_CHART_SERIES: Final = "get_chart_series"
ATTR_VALUE: Final = "value"
ATTR_DEVICE_ID: Final = "device_id"
ATTR_LIMIT: Final = "limit"
ATTR_METRIC: Final = "metric"
