"""
Custom exceptions for the Bee fleet proxy.

Every error that can reach a client derives from FleetProxyError and carries
the HTTP status it maps to, so route handlers can simply raise.
"""

from typing import Any, Optional

from bee_fleet_proxy.utils.error_codes import ErrorCode


class FleetProxyError(Exception):
    """Base exception for all fleet proxy errors."""

    status_code = 500
    # Logged by the app error handler when set
    error_code: Optional[ErrorCode] = None

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_response_body(self) -> Any:
        """JSON body sent to the client."""
        return {'error': self.message}


class InvalidInputError(FleetProxyError):
    """Caller supplied a missing or malformed value."""

    status_code = 400

    def __init__(self, message: str, field: str = None,
                 error_code: ErrorCode = ErrorCode.E002_MISSING_REQUIRED_FIELD):
        details = {}
        if field:
            details['field'] = field
        super().__init__(message, details)
        self.field = field
        self.error_code = error_code


class UnauthorizedError(FleetProxyError):
    """No Bee Maps API key is configured."""

    status_code = 401
    error_code = ErrorCode.E001_API_KEY_NOT_CONFIGURED


class UpstreamError(FleetProxyError):
    """Base for failures talking to the Bee Maps API."""

    status_code = 502

    def __init__(self, message: str, url: str = None, details: dict = None):
        details = dict(details or {})
        if url:
            details['url'] = url
        super().__init__(message, details)
        self.url = url


class UpstreamHttpError(UpstreamError):
    """Upstream answered with a non-2xx status; its body is relayed verbatim."""

    def __init__(self, status_code: int, body: Any, url: str = None):
        super().__init__(
            f"Bee Maps API returned HTTP {status_code}",
            url=url,
            details={'status_code': status_code},
        )
        self.status_code = status_code
        self.body = body

    def to_response_body(self) -> Any:
        return self.body


class UpstreamProtocolError(UpstreamError):
    """Upstream answered with something other than JSON."""

    def __init__(self, message: str = "Bee Maps API returned an unexpected response",
                 url: str = None, content_type: str = None, upstream_status: int = None):
        details = {}
        if content_type is not None:
            details['content_type'] = content_type
        if upstream_status is not None:
            details['upstream_status'] = upstream_status
        super().__init__(message, url=url, details=details)
        self.content_type = content_type
        self.upstream_status = upstream_status


class UpstreamUnreachableError(UpstreamError):
    """Network-level failure reaching upstream (DNS, timeout, refused)."""

    def __init__(self, message: str = "Failed to reach Bee Maps API", url: str = None,
                 cause: Exception = None):
        details = {}
        if cause is not None:
            details['cause'] = type(cause).__name__
        super().__init__(message, url=url, details=details)
        self.cause = cause


class SettingsStorageError(FleetProxyError):
    """The settings file could not be written."""

    status_code = 500

    def __init__(self, message: str = "Failed to save settings", path: str = None):
        details = {}
        if path:
            details['path'] = path
        super().__init__(message, details)
        self.path = path


class ConfigurationError(FleetProxyError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_key: str = None):
        details = {}
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, details)
        self.config_key = config_key
