"""
Error Code Taxonomy for the Bee fleet proxy

Structured error codes for better alerting, debugging, and monitoring.

Error Code Format:
- E001-E099: Validation errors (bad input data)
- E100-E199: External API errors (Bee Maps, geocoding)
- E200-E299: Storage errors (settings file)
- E500-E599: System errors
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """High-level error categories for grouping and alerting."""

    VALIDATION = "validation"
    EXTERNAL_API = "external_api"
    STORAGE = "storage"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Structured error codes with consistent format."""

    # Validation Errors (E001-E099)
    E001_API_KEY_NOT_CONFIGURED = "E001"  # No credential stored or in environment
    E002_MISSING_REQUIRED_FIELD = "E002"  # Required query param or body field missing
    E003_INVALID_DATA_TYPE = "E003"  # Field has wrong data type

    # External API Errors (E100-E199)
    E100_UPSTREAM_TIMEOUT = "E100"  # Bee Maps request timed out
    E101_UPSTREAM_CONNECTION = "E101"  # Bee Maps connection failed
    E102_UPSTREAM_INVALID_RESPONSE = "E102"  # Bee Maps returned non-JSON
    E103_UPSTREAM_HTTP_ERROR = "E103"  # Bee Maps answered with a failure status
    E104_GEOCODING_API_ERROR = "E104"  # Geocoding service error

    # Storage Errors (E200-E299)
    E200_SETTINGS_READ_FAILED = "E200"  # Settings file unreadable or corrupt
    E201_SETTINGS_WRITE_FAILED = "E201"  # Settings file could not be written

    # System Errors (E500-E599)
    E500_INTERNAL_SERVER_ERROR = "E500"  # Unhandled internal error


# Error metadata: maps error codes to categories and descriptions
ERROR_METADATA = {
    ErrorCode.E001_API_KEY_NOT_CONFIGURED: {
        "category": ErrorCategory.VALIDATION,
        "description": "API key not configured",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E002_MISSING_REQUIRED_FIELD: {
        "category": ErrorCategory.VALIDATION,
        "description": "Required field missing in request",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E003_INVALID_DATA_TYPE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Field has wrong data type",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E100_UPSTREAM_TIMEOUT: {
        "category": ErrorCategory.EXTERNAL_API,
        "description": "Bee Maps API request timed out",
        "severity": "warning",
        "alert": True,
    },
    ErrorCode.E101_UPSTREAM_CONNECTION: {
        "category": ErrorCategory.EXTERNAL_API,
        "description": "Bee Maps API connection failed",
        "severity": "warning",
        "alert": True,
    },
    ErrorCode.E102_UPSTREAM_INVALID_RESPONSE: {
        "category": ErrorCategory.EXTERNAL_API,
        "description": "Bee Maps API returned a non-JSON response",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E103_UPSTREAM_HTTP_ERROR: {
        "category": ErrorCategory.EXTERNAL_API,
        "description": "Bee Maps API returned a failure status",
        "severity": "warning",
        "alert": False,  # Usually a bad key or unknown device, relayed to the client
    },
    ErrorCode.E104_GEOCODING_API_ERROR: {
        "category": ErrorCategory.EXTERNAL_API,
        "description": "Geocoding service error",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E200_SETTINGS_READ_FAILED: {
        "category": ErrorCategory.STORAGE,
        "description": "Settings file unreadable or corrupt",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E201_SETTINGS_WRITE_FAILED: {
        "category": ErrorCategory.STORAGE,
        "description": "Settings file could not be written",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E500_INTERNAL_SERVER_ERROR: {
        "category": ErrorCategory.SYSTEM,
        "description": "Unhandled internal error",
        "severity": "critical",
        "alert": True,
    },
}


def get_error_metadata(error_code: ErrorCode) -> dict:
    """Get metadata for an error code."""
    return ERROR_METADATA.get(
        error_code,
        {
            "category": ErrorCategory.SYSTEM,
            "description": "Unknown error",
            "severity": "error",
            "alert": True,
        },
    )


class StructuredError:
    """Structured error with code, category, and metadata."""

    def __init__(self, code: ErrorCode, message: str, exception: Optional[Exception] = None, **context):
        """
        Create a structured error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            exception: Original exception (if applicable)
            **context: Additional context fields (url, device_id, etc.)
        """
        self.code = code
        self.message = message
        self.exception = exception
        self.context = context
        self.metadata = get_error_metadata(code)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        error_dict = {
            "code": self.code.value,
            "category": self.metadata["category"].value,
            "message": self.message,
            "severity": self.metadata["severity"],
            "alert": self.metadata["alert"],
        }

        if self.exception:
            error_dict["exception_type"] = type(self.exception).__name__
            error_dict["exception_message"] = str(self.exception)

        if self.context:
            error_dict["context"] = self.context

        return error_dict

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"
