# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Tests for the fallback orchestrator.

Adapters are exercised end to end against httpx.MockTransport so that the
router, the adapters and local model discovery run together.
"""

from __future__ import annotations

import json

import httpx
import pytest

from aigateway.discovery import LocalModelResolver
from aigateway.models import Backend, DispatchFailure, DispatchSuccess
from aigateway.providers.registry import build_registry
from aigateway.router import EXHAUSTED_MESSAGE, VALIDATION_MESSAGE, GatewayRouter
from aigateway.routing.policy import PriorityOrderPolicy
from tests.conftest import make_credentials, mock_client, tags_response

OPENAI_OK = {"model": "gpt-4o-mini", "choices": [{"message": {"content": "from openai"}}]}
GEMINI_OK = {"candidates": [{"content": {"parts": [{"text": "from gemini"}]}}]}
OLLAMA_OK = {"model": "llama3.1:8b", "message": {"content": "from ollama"}}


class FakeBackends:
    """Routes MockTransport requests by path and records every call."""

    def __init__(self, **responses: httpx.Response) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/api/tags"):
            key = "tags"
        elif path.endswith("/api/chat"):
            key = "ollama"
        elif path.endswith("/chat/completions"):
            key = "openai"
        else:
            key = "gemini"
        self.calls.append(key)
        response = self.responses.get(key)
        if response is None:
            raise httpx.ConnectError("connection refused", request=request)
        return response


def build_router(handler, cache, priority="local_first"):
    client = mock_client(handler)
    registry = build_registry(client=client, timeout_s=5)
    resolver = LocalModelResolver(cache=cache, client=client, timeout_s=2)
    policy = PriorityOrderPolicy(priority=priority, feature_backends={"calendar": "gemini"})
    return GatewayRouter(registry, resolver, policy)


@pytest.mark.asyncio
async def test_invalid_payload_is_a_400_without_attempts(cache, full_credentials):
    backends = FakeBackends()
    router = build_router(backends, cache)

    outcome = await router.dispatch({"messages": [{"role": "user", "content": "   "}]}, full_credentials)

    assert isinstance(outcome, DispatchFailure)
    assert outcome.http_status == 400
    assert outcome.message == VALIDATION_MESSAGE
    assert outcome.attempted == []
    assert outcome.errors == []
    assert backends.calls == []


@pytest.mark.asyncio
async def test_local_backend_answers_first(cache, full_credentials, simple_payload):
    backends = FakeBackends(
        tags=tags_response("llama3.1:8b"),
        ollama=httpx.Response(200, json=OLLAMA_OK),
    )
    router = build_router(backends, cache)

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.backend is Backend.OLLAMA
    assert outcome.content == "from ollama"
    assert outcome.attempted == [Backend.OLLAMA]
    assert outcome.fallback_used is False
    assert outcome.errors == []
    assert backends.calls == ["tags", "ollama"]


@pytest.mark.asyncio
async def test_falls_back_when_local_has_no_models(cache, simple_payload):
    credentials = make_credentials(openai_api_key="sk-test")
    backends = FakeBackends(tags=tags_response(), openai=httpx.Response(200, json=OPENAI_OK))
    router = build_router(backends, cache)

    outcome = await router.dispatch(simple_payload, credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.backend is Backend.OPENAI
    assert outcome.attempted == [Backend.OLLAMA, Backend.OPENAI]
    assert outcome.fallback_used is True
    assert len(outcome.errors) == 1
    assert outcome.errors[0].backend is Backend.OLLAMA
    assert "no models available" in outcome.errors[0].message
    assert backends.calls == ["tags", "openai"]


@pytest.mark.asyncio
async def test_unconfigured_backend_is_skipped_without_network(cache, simple_payload):
    credentials = make_credentials(gemini_api_key="gm-test")
    backends = FakeBackends(gemini=httpx.Response(200, json=GEMINI_OK))
    router = build_router(backends, cache, priority="cloud_first")

    outcome = await router.dispatch(simple_payload, credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.backend is Backend.GEMINI
    assert outcome.attempted == [Backend.OPENAI, Backend.GEMINI]
    assert outcome.fallback_used is True
    assert outcome.errors[0].backend is Backend.OPENAI
    assert outcome.errors[0].message == "OpenAI API key is not configured."
    assert backends.calls == ["gemini"]


@pytest.mark.asyncio
async def test_all_backends_fail(cache, full_credentials, simple_payload):
    backends = FakeBackends(
        tags=tags_response("llama3.1:8b"),
        ollama=httpx.Response(500, json={"error": "out of memory"}),
        openai=httpx.Response(429, json={"error": {"message": "Rate limit reached"}}),
        gemini=httpx.Response(200, json={"candidates": []}),
    )
    router = build_router(backends, cache)

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchFailure)
    assert outcome.http_status == 503
    assert outcome.message == EXHAUSTED_MESSAGE
    assert outcome.attempted == [Backend.OLLAMA, Backend.OPENAI, Backend.GEMINI]
    assert len(outcome.errors) == len(outcome.attempted)
    assert [(e.backend, e.status_code) for e in outcome.errors] == [
        (Backend.OLLAMA, 500),
        (Backend.OPENAI, 429),
        (Backend.GEMINI, None),
    ]
    assert outcome.errors[0].message == "out of memory"
    assert outcome.errors[1].message == "Rate limit reached"
    assert outcome.errors[2].message == "Gemini returned an empty response."


@pytest.mark.asyncio
async def test_explicit_backend_is_not_retried_elsewhere(cache, full_credentials):
    backends = FakeBackends(openai=httpx.Response(500, json={}), gemini=httpx.Response(200, json=GEMINI_OK))
    router = build_router(backends, cache)

    outcome = await router.dispatch(
        {"backend": "openai", "messages": [{"role": "user", "content": "Hi"}]}, full_credentials
    )

    assert isinstance(outcome, DispatchFailure)
    assert outcome.attempted == [Backend.OPENAI]
    assert len(outcome.errors) == 1
    assert outcome.errors[0].message == "OpenAI request failed (500)"
    assert backends.calls == ["openai"]


@pytest.mark.asyncio
async def test_feature_hint_reorders(cache, full_credentials):
    backends = FakeBackends(gemini=httpx.Response(200, json=GEMINI_OK))
    router = build_router(backends, cache)

    outcome = await router.dispatch(
        {"featureHint": "calendar", "messages": [{"role": "user", "content": "Plan"}]},
        full_credentials,
    )

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.backend is Backend.GEMINI
    assert outcome.attempted == [Backend.GEMINI]
    assert outcome.fallback_used is False


@pytest.mark.asyncio
async def test_model_override_is_sent_to_backend(cache, full_credentials):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=OPENAI_OK)

    router = build_router(handler, cache)
    await router.dispatch(
        {"backend": "openai", "model": "gpt-4.1", "messages": [{"role": "user", "content": "Hi"}]},
        full_credentials,
    )
    assert bodies[0]["model"] == "gpt-4.1"


@pytest.mark.asyncio
async def test_discovered_model_is_used_locally(cache, full_credentials, simple_payload):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/api/tags"):
            return tags_response("nomic-embed-text", "llama3.1:70b")
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=OLLAMA_OK)

    router = build_router(handler, cache)
    await router.dispatch(simple_payload, full_credentials)
    assert bodies[0]["model"] == "llama3.1:70b"


@pytest.mark.asyncio
async def test_unexpected_adapter_exception_is_recorded(cache, full_credentials, simple_payload):
    backends = FakeBackends(gemini=httpx.Response(200, json=GEMINI_OK))
    router = build_router(backends, cache, priority="cloud_first")

    async def boom(*args, **kwargs):
        raise RuntimeError("adapter exploded")

    router.registry[Backend.OPENAI].call = boom

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.backend is Backend.GEMINI
    assert outcome.errors[0].message == "adapter exploded"


@pytest.mark.asyncio
async def test_custom_order_policy(cache, full_credentials, simple_payload):
    backends = FakeBackends(openai=httpx.Response(200, json=OPENAI_OK))
    router = build_router(backends, cache)
    router.order_policy = lambda choice, hint: [Backend.OPENAI, Backend.OPENAI]

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.attempted == [Backend.OPENAI]


@pytest.mark.asyncio
async def test_oversized_numbers_take_defaults(cache, full_credentials):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=OPENAI_OK)

    router = build_router(handler, cache)
    payload = json.loads(
        '{"backend": "openai", "messages": [{"role": "user", "content": "Hi"}], '
        '"maxTokens": 1' + "0" * 400 + ', "temperature": -1' + "0" * 400 + "}"
    )

    outcome = await router.dispatch(payload, full_credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert bodies[0]["max_tokens"] == 900
    assert bodies[0]["temperature"] == 0.35


@pytest.mark.asyncio
async def test_failing_order_policy_uses_default_order(cache, full_credentials, simple_payload):
    backends = FakeBackends(
        tags=tags_response("llama3.1:8b"), ollama=httpx.Response(200, json=OLLAMA_OK)
    )
    router = build_router(backends, cache)

    def broken_policy(choice, hint):
        raise RuntimeError("policy exploded")

    router.order_policy = broken_policy

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.attempted == [Backend.OLLAMA]


@pytest.mark.asyncio
async def test_empty_order_policy_uses_default_order(cache, full_credentials, simple_payload):
    backends = FakeBackends()
    router = build_router(backends, cache)
    router.order_policy = lambda choice, hint: []

    outcome = await router.dispatch(simple_payload, full_credentials)

    assert isinstance(outcome, DispatchFailure)
    assert outcome.attempted == [Backend.OLLAMA, Backend.OPENAI, Backend.GEMINI]
    assert len(outcome.errors) == 3


@pytest.mark.asyncio
async def test_empty_order_policy_keeps_explicit_backend(cache, full_credentials):
    backends = FakeBackends(gemini=httpx.Response(200, json=GEMINI_OK))
    router = build_router(backends, cache)
    router.order_policy = lambda choice, hint: []

    outcome = await router.dispatch(
        {"backend": "gemini", "messages": [{"role": "user", "content": "Hi"}]}, full_credentials
    )

    assert isinstance(outcome, DispatchSuccess)
    assert outcome.attempted == [Backend.GEMINI]
