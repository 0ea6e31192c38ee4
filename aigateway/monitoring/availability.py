# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Read-only availability probe for status and health reporting.

The local backend is checked live through model discovery. Cloud backends are
reported available when a key is configured; a live round-trip would bill
tokens for a pure status check.
"""

from __future__ import annotations

import structlog

from ..discovery import LocalModelResolver, default_model_for_backend
from ..models import Backend, CredentialBundle, ProviderAvailability

logger = structlog.get_logger(__name__)


async def _probe_backend(
    backend: Backend,
    credentials: CredentialBundle,
    resolver: LocalModelResolver,
    timeout_s: float | None,
) -> ProviderAvailability:
    if backend is Backend.OLLAMA:
        resolution = await resolver.resolve(credentials, timeout_s)
        return ProviderAvailability(
            backend=backend, available=resolution.available, default_model=resolution.model
        )
    return ProviderAvailability(
        backend=backend,
        available=credentials.api_key_for(backend) is not None,
        default_model=default_model_for_backend(backend, credentials),
    )


async def probe_availability(
    credentials: CredentialBundle,
    resolver: LocalModelResolver,
    timeout_s: float | None = None,
) -> list[ProviderAvailability]:
    """Report every known backend, in declaration order. Never raises."""
    results: list[ProviderAvailability] = []
    for backend in Backend:
        try:
            results.append(await _probe_backend(backend, credentials, resolver, timeout_s))
        except Exception as e:
            logger.warning("availability_probe_failed", backend=backend.value, error=str(e))
            results.append(
                ProviderAvailability(
                    backend=backend,
                    available=False,
                    default_model=default_model_for_backend(backend, credentials),
                )
            )
    return results
