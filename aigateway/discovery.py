# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Model resolution for each backend, including live discovery on the local backend.

Self-hosted installations are often missing the exact configured model but
carry a usable substitute, so the local resolver lists what is installed and
picks the closest match instead of failing outright.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, NamedTuple

import httpx
import structlog

from .models import Backend, CredentialBundle, LocalModelResolution
from .settings import settings
from .telemetry.metrics import DISCOVERY_CACHE_HITS, DISCOVERY_CACHE_MISSES

logger = structlog.get_logger(__name__)


class DiscoveryEntry(NamedTuple):
    """Model names listed by one local backend, with the time they were fetched."""

    fetched_at: float
    models: tuple[str, ...]


class ModelDiscoveryCache:
    """TTL cache of discovered model names keyed by local backend base URL.

    Entries are immutable tuples replaced wholesale, so concurrent readers see
    either the old or the new list. Two racing refreshes only cost an extra
    listing call. Entries are never evicted; a process talks to a handful of
    base URLs at most.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.providers.discovery_ttl_sec if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, DiscoveryEntry] = {}

    def get(self, base_url: str) -> list[str] | None:
        """Return the cached list, or None when missing or older than the TTL."""
        entry = self._entries.get(base_url)
        if entry is None or self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return list(entry.models)

    def set(self, base_url: str, models: list[str]) -> None:
        self._entries[base_url] = DiscoveryEntry(self._clock(), tuple(models))

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)


def _normalize_model_name(name: str) -> str:
    return name.strip().lower()


def is_embedding_model(name: str) -> bool:
    return "embed" in _normalize_model_name(name)


def is_cloud_model(name: str) -> bool:
    n = _normalize_model_name(name)
    return n.endswith(":cloud") or "-cloud" in n


def pick_best_ollama_model(preferred: str, models: list[str]) -> str | None:
    """Choose the installed model closest to ``preferred``.

    Precedence, first match wins: exact name (case-insensitive), same base name
    before the ``:`` tag, local text model, any non-embedding model, first model.
    """
    if not models:
        return None
    preferred_norm = _normalize_model_name(preferred)
    for m in models:
        if _normalize_model_name(m) == preferred_norm:
            return m

    preferred_base = preferred_norm.split(":")[0]
    for m in models:
        if _normalize_model_name(m).startswith(f"{preferred_base}:"):
            return m

    for m in models:
        if not is_embedding_model(m) and not is_cloud_model(m):
            return m

    for m in models:
        if not is_embedding_model(m):
            return m

    return models[0]


def _parse_model_names(payload: Any) -> list[str]:
    if not isinstance(payload, dict) or not isinstance(payload.get("models"), list):
        return []
    names = []
    for item in payload["models"]:
        name = item.get("name") if isinstance(item, dict) else None
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def default_model_for_backend(backend: Backend, credentials: CredentialBundle) -> str:
    """Configured default model for a backend (no discovery)."""
    if backend is Backend.OPENAI:
        return credentials.openai_model
    if backend is Backend.GEMINI:
        return credentials.gemini_model
    return credentials.ollama_model


def resolve_model(backend: Backend, credentials: CredentialBundle, override: str | None = None) -> str:
    """Model for a cloud backend: the explicit override, else the configured default."""
    if override and override.strip():
        return override.strip()
    return default_model_for_backend(backend, credentials)


class LocalModelResolver:
    """Discovers installed models on the local backend and picks one to use."""

    def __init__(
        self,
        cache: ModelDiscoveryCache | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.cache = cache if cache is not None else ModelDiscoveryCache()
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self.timeout_s = (
            timeout_s if timeout_s is not None else settings.providers.discovery_timeout_ms / 1000
        )

    async def fetch_model_names(self, base_url: str, timeout_s: float | None = None) -> list[str]:
        """List installed model names, served from cache within the TTL.

        Any failure yields an empty list; only a parsed 2xx answer is cached.
        """
        cached = self.cache.get(base_url)
        if cached is not None:
            DISCOVERY_CACHE_HITS.inc()
            return cached

        DISCOVERY_CACHE_MISSES.inc()
        timeout = self.timeout_s if timeout_s is None else timeout_s
        try:
            resp = await asyncio.wait_for(
                self._client.get(f"{base_url}/api/tags", timeout=timeout), timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.HTTPError) as e:
            logger.info("local_discovery_failed", base_url=base_url, error=str(e) or type(e).__name__)
            return []

        if not resp.is_success:
            logger.info("local_discovery_failed", base_url=base_url, status_code=resp.status_code)
            return []
        try:
            payload = resp.json()
        except ValueError:
            logger.info("local_discovery_malformed", base_url=base_url)
            return []

        models = _parse_model_names(payload)
        self.cache.set(base_url, models)
        logger.debug("local_discovery_succeeded", base_url=base_url, model_count=len(models))
        return models

    async def resolve(
        self, credentials: CredentialBundle, timeout_s: float | None = None
    ) -> LocalModelResolution:
        discovered = await self.fetch_model_names(credentials.ollama_base_url, timeout_s)
        preferred = credentials.ollama_model
        selected = pick_best_ollama_model(preferred, discovered) or preferred
        return LocalModelResolution(
            available=len(discovered) > 0,
            model=selected,
            discovered=discovered,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
