"""Error handling utilities for the claim intake wizard."""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum


# Surfaced verbatim to the user when the backend has no RPA flow for a claim
RPA_NOT_AVAILABLE_MESSAGE = "RPA not available for this claim. Contact support."


class ErrorType(Enum):
    """Enumeration of error types raised by the wizard."""

    # Backend API Errors
    BACKEND_HTTP_ERROR = "BACKEND_HTTP_ERROR"
    BACKEND_TRANSPORT_ERROR = "BACKEND_TRANSPORT_ERROR"
    BACKEND_TIMEOUT = "BACKEND_TIMEOUT"
    BACKEND_INVALID_JSON = "BACKEND_INVALID_JSON"
    BACKEND_OFFLINE = "BACKEND_OFFLINE"

    # Domain Errors
    RPA_NOT_AVAILABLE = "RPA_NOT_AVAILABLE"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # General Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass
class ErrorContext:
    """
    Context information for errors raised by the wizard.

    Attributes:
        error_type: Type of error from ErrorType enum
        message: Human-readable error message (shown in toasts)
        recoverable: Whether the user can retry the step
        fallback_action: Optional description of what the user should do next
        details: Optional additional error details
        original_exception: Optional original exception that caused this error
    """

    error_type: ErrorType
    message: str
    recoverable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error context to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error context
        """
        return {
            "error_type": self.error_type.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "fallback_action": self.fallback_action,
            "details": self.details or {},
            "original_exception": str(self.original_exception) if self.original_exception else None
        }


class ClaimsIntakeError(Exception):
    """
    Base exception for all claim intake errors.

    Wraps errors with additional context so the wizard can convert them
    into user-facing notifications.

    Attributes:
        context: ErrorContext with detailed error information
    """

    def __init__(self, context: ErrorContext):
        """
        Initialize claim intake error.

        Args:
            context: ErrorContext with error details
        """
        self.context = context
        super().__init__(context.message)

    def __str__(self) -> str:
        """String representation of the error."""
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    @property
    def user_message(self) -> str:
        """Message suitable for a toast notification."""
        return self.context.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of error
        """
        return self.context.to_dict()


class BackendHTTPError(ClaimsIntakeError):
    """Exception for non-2xx responses from the claims backend."""

    @classmethod
    def from_response(
        cls,
        operation: str,
        status_code: int,
        reason: str = "",
        url: Optional[str] = None
    ) -> "BackendHTTPError":
        """
        Create BackendHTTPError from an HTTP status.

        Args:
            operation: Description of operation that failed (e.g. "create claim")
            status_code: HTTP status code returned by the backend
            reason: HTTP reason phrase
            url: Request URL

        Returns:
            BackendHTTPError instance
        """
        reason_text = f" {reason}" if reason else ""
        context = ErrorContext(
            error_type=ErrorType.BACKEND_HTTP_ERROR,
            message=f"Failed to {operation}: HTTP {status_code}{reason_text}",
            recoverable=True,
            fallback_action="Retry the step",
            details={
                "operation": operation,
                "status_code": status_code,
                "url": url
            }
        )
        return cls(context)

    @property
    def status_code(self) -> Optional[int]:
        return (self.context.details or {}).get("status_code")


class BackendTransportError(ClaimsIntakeError):
    """Exception for requests that never produced a response (CORS, DNS, refused)."""

    @classmethod
    def unreachable(
        cls,
        operation: str,
        base_url: str,
        error: Exception
    ) -> "BackendTransportError":
        """
        Create error for a transport-level failure.

        A request that fails before any response arrives is treated as a
        possible CORS or network problem, and the message tells the user
        which backend the wizard was trying to reach.

        Args:
            operation: Description of operation that failed
            base_url: Configured backend base URL
            error: Original transport exception

        Returns:
            BackendTransportError instance
        """
        context = ErrorContext(
            error_type=ErrorType.BACKEND_TRANSPORT_ERROR,
            message=(
                f"Could not {operation}: the claims backend at {base_url} is unreachable "
                f"(possible CORS or network error). Make sure the backend is running "
                f"and allows requests from this app, then retry."
            ),
            recoverable=True,
            fallback_action="Start the backend and retry",
            details={"operation": operation, "base_url": base_url},
            original_exception=error
        )
        return cls(context)


class BackendTimeoutError(ClaimsIntakeError):
    """Exception for requests aborted after the configured timeout."""

    @classmethod
    def timed_out(
        cls,
        operation: str,
        timeout: float,
        error: Optional[Exception] = None
    ) -> "BackendTimeoutError":
        """
        Create error for a request that exceeded the timeout.

        Args:
            operation: Description of operation that failed
            timeout: Timeout in seconds that was exceeded
            error: Original timeout exception

        Returns:
            BackendTimeoutError instance
        """
        context = ErrorContext(
            error_type=ErrorType.BACKEND_TIMEOUT,
            message=f"Request to {operation} timed out after {timeout:g}s",
            recoverable=True,
            fallback_action="Retry the step",
            details={"operation": operation, "timeout": timeout},
            original_exception=error
        )
        return cls(context)


class BackendResponseError(ClaimsIntakeError):
    """Exception for responses whose body is not valid JSON."""

    @classmethod
    def invalid_json(
        cls,
        operation: str,
        body: str,
        error: Optional[Exception] = None
    ) -> "BackendResponseError":
        """
        Create error for an unparseable response body.

        Args:
            operation: Description of operation that failed
            body: Raw response body (truncated to 200 characters in the message)
            error: Original decode exception

        Returns:
            BackendResponseError instance
        """
        context = ErrorContext(
            error_type=ErrorType.BACKEND_INVALID_JSON,
            message=f"Invalid JSON response: {body[:200]}",
            recoverable=True,
            fallback_action="Retry the step",
            details={"operation": operation},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def missing_field(
        cls,
        operation: str,
        field_name: str,
        body: str
    ) -> "BackendResponseError":
        """Create error for a JSON response that lacks a required field."""
        context = ErrorContext(
            error_type=ErrorType.BACKEND_INVALID_JSON,
            message=f"Response to {operation} has no '{field_name}': {body[:200]}",
            recoverable=True,
            fallback_action="Retry the step",
            details={"operation": operation, "field": field_name}
        )
        return cls(context)


class RPANotAvailableError(ClaimsIntakeError):
    """Exception for claims that have no RPA flow on the backend."""

    @classmethod
    def for_claim(cls, claim_id: str) -> "RPANotAvailableError":
        context = ErrorContext(
            error_type=ErrorType.RPA_NOT_AVAILABLE,
            message=RPA_NOT_AVAILABLE_MESSAGE,
            recoverable=False,
            fallback_action="Contact support",
            details={"claim_id": claim_id, "status_code": 404}
        )
        return cls(context)


class BackendOfflineError(ClaimsIntakeError):
    """Exception for actions attempted while the connectivity monitor reports offline."""

    @classmethod
    def offline(cls, base_url: str) -> "BackendOfflineError":
        context = ErrorContext(
            error_type=ErrorType.BACKEND_OFFLINE,
            message=f"Backend is offline. Start the claims backend at {base_url} and press Retry.",
            recoverable=True,
            fallback_action="Retry once the backend is online",
            details={"base_url": base_url}
        )
        return cls(context)


class ConfigurationError(ClaimsIntakeError):
    """Exception for missing or invalid configuration."""

    @classmethod
    def missing(cls, config_path: str, error: Optional[Exception] = None) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_MISSING,
            message=f"Configuration file not found at '{config_path}'",
            recoverable=False,
            details={"config_path": config_path},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def invalid(cls, key: str, error: Optional[Exception] = None) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_INVALID,
            message=f"Invalid or missing configuration value '{key}'",
            recoverable=False,
            details={"key": key},
            original_exception=error
        )
        return cls(context)


def handle_backend_error(
    error: ClaimsIntakeError,
    operation: str,
    logger
) -> None:
    """
    Log a backend error at a level matching its recoverability and re-raise it.

    Args:
        error: Wrapped backend error
        operation: Description of operation that failed
        logger: Logger instance for error logging

    Raises:
        ClaimsIntakeError: The same error, for the caller to turn into a toast
    """
    if error.context.recoverable:
        logger.warning(f"Recoverable backend error during {operation}: {error}")
    else:
        logger.error(f"Non-recoverable backend error during {operation}: {error}")

    raise error
