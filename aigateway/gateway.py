# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
AIGateway: the single entry point callers use.

It owns one shared HTTP client, the discovery cache, the adapter registry and
the order policy, and wires them into a GatewayRouter. Use it as an async
context manager so the client is closed on exit:

    async with AIGateway() as gateway:
        outcome = await gateway.dispatch_with_headers(payload, request.headers)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from .credentials import resolve_credentials
from .discovery import LocalModelResolver, ModelDiscoveryCache
from .models import Backend, CredentialBundle, DispatchOutcome, ProviderAvailability
from .monitoring.availability import probe_availability
from .providers.base import BackendAdapter
from .providers.registry import build_registry, cleanup_registry
from .router import GatewayRouter
from .routing.policy import OrderPolicy, PriorityOrderPolicy
from .settings import settings

logger = structlog.get_logger(__name__)


class AIGateway:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        cache: ModelDiscoveryCache | None = None,
        order_policy: OrderPolicy | None = None,
        registry: dict[Backend, BackendAdapter] | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()
        self.cache = cache if cache is not None else ModelDiscoveryCache()
        self.timeout_s = timeout_s if timeout_s is not None else settings.providers.timeout_ms / 1000
        self.registry = (
            registry if registry is not None else build_registry(self.client, self.timeout_s)
        )
        self.resolver = LocalModelResolver(cache=self.cache, client=self.client)
        self.router = GatewayRouter(
            self.registry, self.resolver, order_policy or PriorityOrderPolicy()
        )

    async def dispatch(self, raw_payload: Any, credentials: CredentialBundle) -> DispatchOutcome:
        return await self.router.dispatch(raw_payload, credentials)

    async def dispatch_with_headers(
        self,
        raw_payload: Any,
        headers: Mapping[str, Any] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> DispatchOutcome:
        """Resolve credentials from request headers and the environment, then dispatch."""
        return await self.dispatch(raw_payload, resolve_credentials(headers, env))

    async def probe(
        self, credentials: CredentialBundle, timeout_s: float | None = None
    ) -> list[ProviderAvailability]:
        return await probe_availability(credentials, self.resolver, timeout_s)

    async def aclose(self) -> None:
        await cleanup_registry(self.registry)
        await self.resolver.aclose()
        if self._owns_client:
            await self.client.aclose()
        logger.debug("gateway_closed")

    async def __aenter__(self) -> AIGateway:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
