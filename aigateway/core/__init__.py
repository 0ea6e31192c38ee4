# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Core gateway components.

This package contains the exception hierarchy and the input sanitizer.
"""

from .exceptions import (
    BackendError,
    BackendHTTPError,
    BackendNetworkError,
    BackendTimeoutError,
    EmptyResponseError,
    GatewayError,
    NotConfiguredError,
    ValidationError,
)
from .sanitize import (
    normalize_backend,
    sanitize_max_tokens,
    sanitize_messages,
    sanitize_request,
    sanitize_temperature,
)

__all__ = [
    "BackendError",
    "BackendHTTPError",
    "BackendNetworkError",
    "BackendTimeoutError",
    "EmptyResponseError",
    "GatewayError",
    "NotConfiguredError",
    "ValidationError",
    "normalize_backend",
    "sanitize_max_tokens",
    "sanitize_messages",
    "sanitize_request",
    "sanitize_temperature",
]
