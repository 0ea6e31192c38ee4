# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Shared fixtures for the gateway test suite.

This module provides fixtures for:
- Credential bundles with and without cloud keys
- A discovery cache driven by a controllable clock
- httpx clients backed by MockTransport handlers
- Raw chat payloads
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from aigateway.discovery import LocalModelResolver, ModelDiscoveryCache
from aigateway.models import CredentialBundle

OLLAMA_URL = "http://ollama.test:11434"


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_credentials(**overrides: Any) -> CredentialBundle:
    values: dict[str, Any] = {
        "openai_api_key": None,
        "gemini_api_key": None,
        "ollama_base_url": OLLAMA_URL,
        "ollama_model": "llama3.1:8b",
        "openai_model": "gpt-4o-mini",
        "gemini_model": "gemini-1.5-flash",
    }
    values.update(overrides)
    for key in ("openai_api_key", "gemini_api_key"):
        if isinstance(values[key], str):
            values[key] = SecretStr(values[key])
    return CredentialBundle(**values)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def tags_response(*names: str) -> httpx.Response:
    return httpx.Response(200, json={"models": [{"name": n} for n in names]})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ModelDiscoveryCache:
    """Fresh discovery cache per test, with a 60s TTL."""
    return ModelDiscoveryCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def local_only_credentials() -> CredentialBundle:
    return make_credentials()


@pytest.fixture
def full_credentials() -> CredentialBundle:
    return make_credentials(openai_api_key="sk-test", gemini_api_key="gm-test")


@pytest.fixture
def simple_payload() -> dict[str, Any]:
    return {"messages": [{"role": "user", "content": "Hello there"}]}


@pytest.fixture
def resolver_factory(cache: ModelDiscoveryCache):
    """Build a LocalModelResolver whose HTTP calls go to ``handler``."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> LocalModelResolver:
        return LocalModelResolver(cache=cache, client=mock_client(handler), timeout_s=2.0)

    return _factory
