"""
Upstream proxy for the Bee Maps telematics API.

Single chokepoint for every Bee Maps call: injects the stored API key,
issues one GET and converts each kind of failure into a FleetProxyError.
"""

import logging
from typing import Any, Mapping, Optional

import requests

from bee_fleet_proxy.exceptions import (
    UnauthorizedError,
    UpstreamHttpError,
    UpstreamProtocolError,
    UpstreamUnreachableError,
)
from bee_fleet_proxy.services.credential_store import CredentialStore
from bee_fleet_proxy.utils.error_codes import ErrorCode, StructuredError
from bee_fleet_proxy.utils.wide_events import WideEvent

logger = logging.getLogger(__name__)

API_KEY_MISSING_MESSAGE = "API key not configured. Go to Settings to add it."
JSON_CONTENT_TYPE = "application/json"


class UpstreamProxy:
    """Forwards GET requests to Bee Maps with the configured credential."""

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str,
        timeout: float = 10,
        max_attempts: int = 1,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def forward(self, path: str, params: Optional[Mapping[str, str]] = None) -> Any:
        """
        GET ``path`` from Bee Maps and return the parsed JSON body.

        Args:
            path: Upstream path such as "/devices"
            params: Query parameters

        Returns:
            Parsed JSON body, unchanged

        Raises:
            UnauthorizedError: no API key configured (no request is made)
            UpstreamProtocolError: response was not JSON
            UpstreamHttpError: upstream answered with a non-2xx status
            UpstreamUnreachableError: network-level failure
        """
        api_key = self.credentials.get()
        if not api_key:
            raise UnauthorizedError(API_KEY_MISSING_MESSAGE)

        url = self.url_for(path)
        params = dict(params or {})

        event = WideEvent("external_api_bee_maps")
        event.add_context(service="bee_maps", path=path, url=url, timeout_seconds=self.timeout)
        # Query values can identify devices, keep them for tracing
        if params:
            event.add_context(params=params)

        response = self._get(url, params, api_key, event)
        status_code = response.status_code
        content_type = response.headers.get("Content-Type", "")
        event.add_context(status_code=status_code, content_type=content_type)

        if JSON_CONTENT_TYPE not in content_type.lower():
            logger.error(f"Non-JSON response from {url}: {status_code} {content_type}")
            self._fail(event, ErrorCode.E102_UPSTREAM_INVALID_RESPONSE,
                       f"Non-JSON response: {status_code} {content_type}", url=url)
            raise UpstreamProtocolError(url=url, content_type=content_type, upstream_status=status_code)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Unparseable JSON from {url}: {status_code}")
            self._fail(event, ErrorCode.E102_UPSTREAM_INVALID_RESPONSE,
                       "Response body is not valid JSON", exception=e, url=url)
            raise UpstreamProtocolError(url=url, content_type=content_type, upstream_status=status_code) from e

        if not response.ok:
            logger.warning(f"Bee Maps API error for {url}: HTTP {status_code}")
            self._fail(event, ErrorCode.E103_UPSTREAM_HTTP_ERROR,
                       f"HTTP {status_code}", url=url)
            raise UpstreamHttpError(status_code, data, url=url)

        event.add_technical_metric("response_size_bytes", len(response.content))
        event.mark_success()
        event.emit()
        return data

    def _get(self, url: str, params: dict, api_key: str, event: WideEvent) -> requests.Response:
        """Issue the GET, re-attempting network failures up to max_attempts."""
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Accept": JSON_CONTENT_TYPE,
        }
        last_error: Optional[requests.RequestException] = None

        for attempt in range(self.max_attempts):
            try:
                with event.timer(f"request_attempt_{attempt + 1}"):
                    response = requests.get(url, params=params, headers=headers, timeout=self.timeout)
                event.add_technical_metric("attempts", attempt + 1)
                return response

            except requests.exceptions.Timeout as e:
                last_error = e
                logger.warning(f"Bee Maps API timeout for {url} (attempt {attempt + 1}/{self.max_attempts})")
                event.add_technical_metric(f"attempt_{attempt + 1}_timeout", True)

            except requests.exceptions.RequestException as e:
                last_error = e
                logger.warning(
                    f"Bee Maps API connection error for {url} (attempt {attempt + 1}/{self.max_attempts}): {e}"
                )
                event.add_technical_metric(f"attempt_{attempt + 1}_connection_error", True)

        event.add_technical_metric("attempts", self.max_attempts)
        error_code = (
            ErrorCode.E100_UPSTREAM_TIMEOUT
            if isinstance(last_error, requests.exceptions.Timeout)
            else ErrorCode.E101_UPSTREAM_CONNECTION
        )
        logger.error(f"Proxy error for {url}: {last_error}")
        self._fail(event, error_code, f"Failed after {self.max_attempts} attempt(s)",
                   exception=last_error, url=url)
        raise UpstreamUnreachableError(url=url, cause=last_error) from last_error

    @staticmethod
    def _fail(event: WideEvent, code: ErrorCode, message: str, exception: Exception = None, **context) -> None:
        event.add_error(StructuredError(code, message, exception=exception, **context))
        event.emit(level="warning", force=True)
