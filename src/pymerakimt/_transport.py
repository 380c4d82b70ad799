"""HTTP transport for the Meraki Dashboard API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

import aiohttp

from pymerakimt._constants import API_KEY_HEADER, USER_AGENT
from pymerakimt._redact import redact_headers, shorten_body
from pymerakimt.config import MerakiConfig
from pymerakimt.exceptions import MerakiTransportError

_logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: QueryParams = ()) -> Any:
        ...


class HttpTransport:
    """Authenticated GET requests with a bounded timeout."""

    def __init__(self, config: MerakiConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        return {
            API_KEY_HEADER: self._config.api_key,
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

    async def get_json(self, endpoint: str, params: QueryParams = ()) -> Any:
        """GET ``base_url/endpoint`` and return the decoded JSON body.

        Array query parameters (``networkIds[]``) are passed as repeated
        key/value pairs, so *params* is a sequence of tuples rather than a dict.
        """
        url = f"{self._config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        headers = self._headers()

        if self._config.api_trace_enabled:
            _logger.debug(
                "GET %s params=%s headers=%s",
                url,
                list(params),
                redact_headers(headers),
            )
        else:
            _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, params=list(params), headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status < 200 or resp.status >= 300:
                    raise MerakiTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except MerakiTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise MerakiTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise MerakiTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except ValueError as exc:
            raise MerakiTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("Response from %s: %s", endpoint, shorten_body(body))
        return body
