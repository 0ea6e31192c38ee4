# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Fallback orchestration across backends.

``GatewayRouter.dispatch`` sanitizes the payload, asks the order policy which
backends to try, and walks that list strictly one backend at a time until one
answers. No backend is retried within a dispatch.
"""

from __future__ import annotations

from typing import Any

import structlog

from .core.exceptions import BackendError, NotConfiguredError, ValidationError
from .core.sanitize import sanitize_request
from .discovery import LocalModelResolver, resolve_model
from .models import (
    AUTO,
    Backend,
    BackendFailure,
    CanonicalResponse,
    ChatRequest,
    CredentialBundle,
    DispatchFailure,
    DispatchOutcome,
    DispatchSuccess,
)
from .providers.base import BackendAdapter
from .routing.policy import LOCAL_FIRST, OrderPolicy, PriorityOrderPolicy, dedupe_backends
from .telemetry.metrics import DISPATCH_TOTAL, ROUTER_FALLBACKS
from .telemetry.tracing import start_span_async

logger = structlog.get_logger(__name__)

VALIDATION_MESSAGE = "messages is required and must include at least one message."
EXHAUSTED_MESSAGE = "No AI backend is currently available."


class _DispatchState:
    """Per-dispatch memo of the local model resolution."""

    def __init__(self) -> None:
        self.local_model: str | None = None


class GatewayRouter:
    """Tries backends in policy order and returns the first success as data."""

    def __init__(
        self,
        registry: dict[Backend, BackendAdapter],
        local_resolver: LocalModelResolver,
        order_policy: OrderPolicy | None = None,
    ) -> None:
        self.registry = registry
        self.local_resolver = local_resolver
        self.order_policy: OrderPolicy = order_policy or PriorityOrderPolicy()

    async def dispatch(self, raw_payload: Any, credentials: CredentialBundle) -> DispatchOutcome:
        """Run one chat request through the ordered backends.

        Never raises: validation problems come back as a 400 DispatchFailure and
        exhausted backends as a 503 DispatchFailure with one error per attempt.
        """
        try:
            request = sanitize_request(raw_payload)
        except ValidationError as e:
            logger.info("dispatch_rejected", reason=e.message)
            DISPATCH_TOTAL.labels(requested="unknown", outcome="invalid").inc()
            return DispatchFailure(message=VALIDATION_MESSAGE, http_status=400)

        requested = request.backend.value if isinstance(request.backend, Backend) else AUTO
        order = self._order(request)
        errors: list[BackendFailure] = []
        state = _DispatchState()

        order_attr = ",".join(b.value for b in order)
        async with start_span_async("gateway.dispatch", requested=requested, order=order_attr):
            for index, backend in enumerate(order):
                try:
                    response = await self._attempt(backend, request, credentials, state)
                except Exception as e:
                    failure = self._to_failure(backend, e)
                    errors.append(failure)
                    logger.warning(
                        "backend_attempt_failed",
                        backend=backend.value,
                        error=failure.message,
                        status_code=failure.status_code,
                    )
                    continue

                fallback_used = backend is not order[0]
                if fallback_used:
                    ROUTER_FALLBACKS.labels(from_backend=order[0].value, to_backend=backend.value).inc()
                DISPATCH_TOTAL.labels(requested=requested, outcome="success").inc()
                logger.info(
                    "dispatch_succeeded",
                    backend=backend.value,
                    model=response.model,
                    attempts=index + 1,
                    fallback_used=fallback_used,
                )
                return DispatchSuccess(
                    backend=response.backend,
                    model=response.model,
                    content=response.content,
                    usage=response.usage,
                    attempted=order[: index + 1],
                    fallback_used=fallback_used,
                    errors=errors,
                )

        DISPATCH_TOTAL.labels(requested=requested, outcome="exhausted").inc()
        logger.error(
            "dispatch_exhausted",
            attempted=[b.value for b in order],
            errors=[f"{f.backend.value}: {f.message}" for f in errors],
        )
        return DispatchFailure(message=EXHAUSTED_MESSAGE, attempted=order, errors=errors)

    def _order(self, request: ChatRequest) -> list[Backend]:
        """Ask the policy for the attempt order; a failing or empty policy gets the default order."""
        try:
            order = dedupe_backends(self.order_policy(request.backend, request.feature_hint))
            if order:
                return order
            logger.warning("order_policy_empty", requested=getattr(request.backend, "value", AUTO))
        except Exception as e:
            logger.error("order_policy_failed", error=str(e) or type(e).__name__)
        if isinstance(request.backend, Backend):
            return [request.backend]
        return list(LOCAL_FIRST)

    async def _attempt(
        self,
        backend: Backend,
        request: ChatRequest,
        credentials: CredentialBundle,
        state: _DispatchState,
    ) -> CanonicalResponse:
        adapter = self.registry.get(backend)
        if adapter is None:
            raise NotConfiguredError(backend, f"{backend.display_name} backend is not registered.")
        if not adapter.is_configured(credentials):
            raise NotConfiguredError(backend, f"{backend.display_name} API key is not configured.")

        if backend is Backend.OLLAMA:
            model = await self._local_model(request, credentials, state)
        else:
            model = resolve_model(backend, credentials, request.model)
        return await adapter.call(credentials, request, model)

    async def _local_model(
        self, request: ChatRequest, credentials: CredentialBundle, state: _DispatchState
    ) -> str:
        if state.local_model is None:
            resolution = await self.local_resolver.resolve(credentials)
            if not resolution.available:
                raise BackendError(
                    Backend.OLLAMA,
                    f"Ollama has no models available at {credentials.ollama_base_url}.",
                    error_code="no_local_models",
                )
            state.local_model = resolution.model
        return request.model or state.local_model

    @staticmethod
    def _to_failure(backend: Backend, error: Exception) -> BackendFailure:
        if isinstance(error, BackendError):
            return BackendFailure(backend=backend, message=error.message, status_code=error.status_code)
        return BackendFailure(backend=backend, message=str(error) or "Backend request failed")
