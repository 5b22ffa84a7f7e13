"""HTTP API client for Telemetry Dashboard integration."""

import asyncio
import datetime as dt
from typing import Any, Dict, List, Optional
import logging

import aiohttp
from aiohttp.client import ClientTimeout

from ..const import DEFAULT_HEADERS, URL_COMMAND, URL_LOGS
from ..models.sensor_data import SensorReading, parse_envelopes
from .exceptions import ApiException, ParseException

_LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT = ClientTimeout(total=30)


def format_time_start(value: dt.datetime) -> str:
    """Format a boundary as UTC ISO-8601 with millisecond precision and ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    utc = value.astimezone(dt.timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TelemetryHttpApiClient:
    """HTTP client for the dashboard backend (logs + outbound commands)."""

    __slots__ = ("_session", "_base_url")

    def __init__(self, session: aiohttp.ClientSession, base_url: str) -> None:
        """Initialize the API client.

        Args:
            session: aiohttp client session for HTTP requests
            base_url: Backend root, e.g. ``http://dashboard.local:3000``
        """
        self._session = session
        self._base_url = base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        parse_json: bool = True,
    ) -> Any:
        """Make one HTTP request to the backend.

        No retry happens here; the poller's next cycle is the retry.

        Args:
            method: HTTP method (GET, POST)
            endpoint: API endpoint path
            params: Query parameters
            json_body: JSON request body
            parse_json: Whether to decode and return the response body

        Returns:
            Decoded JSON body, or None when ``parse_json`` is False

        Raises:
            ApiException: On transport failure or non-2xx status
            ParseException: If the body is not valid JSON
        """
        url = f"{self._base_url}{endpoint}"
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("HTTP %s %s params=%s", method, url, params)

        try:
            async with self._session.request(
                method,
                url,
                headers=DEFAULT_HEADERS,
                params=params,
                json=json_body,
                timeout=DEFAULT_TIMEOUT,
            ) as response:
                if _LOGGER.isEnabledFor(logging.DEBUG):
                    _LOGGER.debug("HTTP %s response: %s", url, response.status)

                if not response.ok:
                    raise ApiException(f"HTTP error! status: {response.status}")

                if not parse_json:
                    return None

                try:
                    return await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError) as json_err:
                    resp_text = (await response.text())[:300]
                    _LOGGER.error(f"Invalid JSON from {url}: {resp_text}")
                    raise ParseException(f"Invalid JSON: {resp_text}") from json_err

        except (ApiException, ParseException):
            raise
        except asyncio.TimeoutError as exc:
            raise ApiException(f"Timeout calling {url}") from exc
        except aiohttp.ClientError as exc:
            raise ApiException(f"Client error calling {url}: {exc}") from exc

    async def get_logs(self, time_start: dt.datetime) -> List[SensorReading]:
        """Fetch readings received since ``time_start``.

        Args:
            time_start: Lower bound of the lookback window

        Returns:
            Readings in the order the backend returned them
        """
        payload = await self._request(
            "GET", URL_LOGS, params={"timeStart": format_time_start(time_start)}
        )
        readings = parse_envelopes(payload)
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Fetched %d readings since %s", len(readings), time_start)
        return readings

    async def send_command(self, f_port: int, command: int, value: int) -> None:
        """Dispatch an outbound device command.

        Args:
            f_port: LoRaWAN port the command is sent on
            command: Command code
            value: Command argument
        """
        body = {"fPort": f_port, "command": command, "value": value}
        _LOGGER.info(f"Sending command {body}")
        await self._request("POST", URL_COMMAND, json_body=body, parse_json=False)
