# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Abstract base class for backend adapters.

Each adapter translates the canonical ChatRequest into one backend's wire
format, issues a single bounded HTTP call, and translates the answer back into
a CanonicalResponse. Every failure surfaces as a ``BackendError`` subclass so
the orchestrator can record it and move on to the next backend.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from ..core.exceptions import (
    BackendError,
    BackendHTTPError,
    BackendNetworkError,
    BackendTimeoutError,
    EmptyResponseError,
)
from ..models import Backend, CanonicalResponse, ChatRequest, CredentialBundle
from ..settings import settings
from ..telemetry.metrics import PROVIDER_ERRORS, PROVIDER_LATENCY, PROVIDER_REQUESTS
from ..telemetry.tracing import start_span_async

logger = structlog.get_logger(__name__)

# Standard User-Agent for all backend adapters
USER_AGENT = "AIGateway/1.0.0"


def extract_error_message(payload: Any) -> str | None:
    """Pull a readable message out of a JSON error envelope.

    Cloud backends nest it as ``{"error": {"message": ...}}``; the local backend
    sends ``{"error": "..."}``.
    """
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, str):
        return error.strip() or None
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


class BackendAdapter(ABC):
    """Abstract adapter with a unified call() method and lifecycle management."""

    backend: Backend

    def __init__(self, client: httpx.AsyncClient | None = None, timeout_s: float | None = None):
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self.timeout_s = timeout_s if timeout_s is not None else settings.providers.timeout_ms / 1000

    @property
    def name(self) -> str:
        return self.backend.display_name

    @abstractmethod
    def build_request(
        self, credentials: CredentialBundle, request: ChatRequest, model: str
    ) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str]]:
        """Return ``(url, json_body, headers, query_params)`` for the backend call."""
        raise NotImplementedError

    @abstractmethod
    def parse_response(self, payload: dict[str, Any], model: str) -> CanonicalResponse | None:
        """Translate a 2xx payload; None when it carries no usable text."""
        raise NotImplementedError

    def is_configured(self, credentials: CredentialBundle) -> bool:
        return True

    async def call(
        self, credentials: CredentialBundle, request: ChatRequest, model: str
    ) -> CanonicalResponse:
        """Send one completion request and return the canonical response.

        Raises:
            BackendHTTPError: The backend answered with a non-2xx status.
            EmptyResponseError: The backend answered 2xx without text.
            BackendTimeoutError: The call exceeded ``timeout_s``.
            BackendNetworkError: Any other transport failure.
        """
        provider = self.backend.value
        start = time.perf_counter()
        url, body, headers, params = self.build_request(credentials, request, model)
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"{USER_AGENT} ({self.name})",
            **headers,
        }

        async with start_span_async("provider.call", provider=provider, model=model):
            try:
                resp = await asyncio.wait_for(
                    self._client.post(
                        url, json=body, headers=headers, params=params, timeout=self.timeout_s
                    ),
                    timeout=self.timeout_s,
                )
                payload = self._decode(resp)
                if not resp.is_success:
                    message = extract_error_message(payload) or (
                        f"{self.name} request failed ({resp.status_code})"
                    )
                    raise BackendHTTPError(self.backend, message, status_code=resp.status_code)

                result = self.parse_response(payload, model)
                if result is None:
                    raise EmptyResponseError(self.backend, f"{self.name} returned an empty response.")
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                self._record_failure(provider, model, start, "timeout")
                raise BackendTimeoutError(
                    self.backend,
                    f"{self.name} request timed out after {self.timeout_s:g}s",
                    timeout_duration=self.timeout_s,
                ) from e
            except httpx.HTTPError as e:
                self._record_failure(provider, model, start, "network")
                raise BackendNetworkError(
                    self.backend, f"{self.name} request failed: {str(e) or type(e).__name__}"
                ) from e
            except BackendError as e:
                self._record_failure(provider, model, start, e.error_code or "backend_error")
                raise

        PROVIDER_REQUESTS.labels(provider=provider, model=model, outcome="success").inc()
        PROVIDER_LATENCY.labels(provider=provider, model=model).observe(time.perf_counter() - start)
        return result

    @staticmethod
    def _decode(resp: httpx.Response) -> dict[str, Any]:
        try:
            payload = resp.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def _record_failure(self, provider: str, model: str, start: float, error_type: str) -> None:
        PROVIDER_REQUESTS.labels(provider=provider, model=model, outcome="error").inc()
        PROVIDER_LATENCY.labels(provider=provider, model=model).observe(time.perf_counter() - start)
        PROVIDER_ERRORS.labels(provider=provider, error_type=error_type).inc()

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()


def join_text_parts(parts: Any) -> str:
    """Join the ``text`` fields of a list of content parts with newlines."""
    if not isinstance(parts, list):
        return ""
    texts = [
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str) and p["text"]
    ]
    return "\n".join(texts).strip()
