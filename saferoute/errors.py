"""
SafeRoute error taxonomy.

- Validation errors: caller bug, fail fast, never defaulted.
- Configuration errors: fatal, surfaced at construction.
- Intelligence errors: recovered locally by the deterministic fallback.
- Decision errors: contract violation (empty candidate batch).
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Standard error codes for SafeRoute."""
    # General errors (1xxx)
    UNKNOWN_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    CONFIGURATION_ERROR = "E1002"

    # Data errors (2xxx)
    DATA_INVALID = "E2001"
    DATA_CORRUPT = "E2003"

    # Service errors (4xxx)
    SERVICE_UNAVAILABLE = "E4000"
    SERVICE_TIMEOUT = "E4001"
    UPSTREAM_ERROR = "E4003"

    # Decision errors (5xxx)
    NO_ROUTES = "E5001"


class SafeRouteError(Exception):
    """
    Base exception for SafeRoute.

    All custom exceptions inherit from this class.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/API responses."""
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code.value}] {self.message}"


# ── Validation ────────────────────────────────────────────────────────


class RouteValidationError(SafeRouteError):
    """Malformed route input (missing coordinates, bad enum, no segments)."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 422


class DecodeError(RouteValidationError):
    """Encoded polyline is truncated or contains invalid characters."""

    error_code = ErrorCode.DATA_INVALID

    def __init__(self, message: str, position: int, decoded_points: int = 0):
        super().__init__(
            message,
            details={"position": position, "decoded_points": decoded_points},
        )
        self.position = position
        self.decoded_points = decoded_points


# ── Configuration ─────────────────────────────────────────────────────


class MissingCredentialsError(SafeRouteError):
    """No credential configured for the intelligence service."""

    error_code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500


# ── Intelligence service ──────────────────────────────────────────────


class IntelligenceError(SafeRouteError):
    """Any recoverable failure of the intelligence enrichment call."""

    error_code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 502


class NetworkFailureError(IntelligenceError):
    """Transport failure or timeout talking to the intelligence service."""

    error_code = ErrorCode.SERVICE_TIMEOUT


class ServiceError(IntelligenceError):
    """Non-2xx status or unusable envelope from the intelligence service."""

    error_code = ErrorCode.UPSTREAM_ERROR

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, details={"status": status} if status else None)
        self.status = status


class MalformedResponseError(IntelligenceError):
    """Completion text is not the expected JSON object."""

    error_code = ErrorCode.DATA_CORRUPT


# ── Decision ──────────────────────────────────────────────────────────


class NoRoutesProvidedError(SafeRouteError):
    """The comparator was invoked with an empty candidate list."""

    error_code = ErrorCode.NO_ROUTES
    status_code = 400

    def __init__(self, message: str = "No routes provided for decision analysis"):
        super().__init__(message)
