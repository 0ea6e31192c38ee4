# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Custom exceptions for the AI gateway.

Adapters raise the ``BackendError`` family; the fallback orchestrator and the
availability prober catch them and turn them into plain data, so none of these
ever reach a caller of ``dispatch``.
"""

from typing import Any


class GatewayError(Exception):
    """Base exception for all gateway errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize gateway base exception."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "message": self.message,
                "type": self.__class__.__name__,
                "code": self.error_code,
                "details": self.details,
            }
        }


class ValidationError(GatewayError):
    """Exception for a chat payload that has nothing left after sanitization."""

    http_status = 400

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        """Initialize validation error with field context."""
        self.field = field
        details = kwargs.get("details", {})
        details["field"] = field
        super().__init__(message, error_code="validation_error", details=details)


class BackendError(GatewayError):
    """Exception for a failed call to one backend."""

    default_code = "backend_error"

    def __init__(
        self,
        backend: Any,
        message: str,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize backend error with backend context."""
        self.backend = getattr(backend, "value", backend)
        self.status_code = status_code
        details = kwargs.get("details", {})
        details.update({"backend": self.backend, "status_code": status_code})
        super().__init__(message, kwargs.get("error_code", self.default_code), details)


class NotConfiguredError(BackendError):
    """The backend's credential is missing; no network call was made."""

    default_code = "not_configured"


class BackendHTTPError(BackendError):
    """The backend answered with a non-2xx status."""

    default_code = "backend_http_error"


class EmptyResponseError(BackendError):
    """The backend answered 2xx but without any usable text."""

    default_code = "empty_response"


class BackendNetworkError(BackendError):
    """Transport-level failure talking to the backend."""

    default_code = "network_error"


class BackendTimeoutError(BackendNetworkError):
    """The backend call exceeded its deadline."""

    default_code = "timeout_error"

    def __init__(
        self,
        backend: Any,
        message: str = "Request timeout",
        timeout_duration: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize timeout error with duration context."""
        self.timeout_duration = timeout_duration
        details = kwargs.pop("details", {})
        details["timeout_duration"] = timeout_duration
        super().__init__(backend, message, details=details, **kwargs)
