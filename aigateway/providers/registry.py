# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

import httpx
import structlog

from ..models import Backend
from .base import BackendAdapter
from .gemini import GeminiAdapter
from .ollama import OllamaAdapter
from .openai import OpenAIAdapter

logger = structlog.get_logger(__name__)


def build_registry(
    client: httpx.AsyncClient | None = None, timeout_s: float | None = None
) -> dict[Backend, BackendAdapter]:
    """Create one adapter per backend.

    Adapters are built whether or not a key is configured: credentials arrive
    per request, so configuration is checked at dispatch time.
    """
    return {
        Backend.OLLAMA: OllamaAdapter(client=client, timeout_s=timeout_s),
        Backend.OPENAI: OpenAIAdapter(client=client, timeout_s=timeout_s),
        Backend.GEMINI: GeminiAdapter(client=client, timeout_s=timeout_s),
    }


async def cleanup_registry(registry: dict[Backend, BackendAdapter]) -> None:
    """Close all adapters; failures are logged so shutdown can finish."""
    for backend, adapter in registry.items():
        try:
            await adapter.aclose()
            logger.debug("adapter_closed", backend=backend.value)
        except Exception as e:
            logger.warning("adapter_close_failed", backend=backend.value, error=str(e))
