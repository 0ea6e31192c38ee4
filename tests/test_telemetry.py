# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.

import httpx
import pytest
from prometheus_client import REGISTRY

from aigateway.core.exceptions import BackendHTTPError
from aigateway.core.sanitize import sanitize_request
from aigateway.providers.openai import OpenAIAdapter
from aigateway.telemetry.tracing import get_trace_id, start_span_async
from tests.conftest import OLLAMA_URL, mock_client, tags_response


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.mark.asyncio
async def test_discovery_cache_counters(resolver_factory):
    hits_before = _sample("aigateway_discovery_cache_hits_total")
    misses_before = _sample("aigateway_discovery_cache_misses_total")

    resolver = resolver_factory(lambda request: tags_response("phi3"))
    await resolver.fetch_model_names(OLLAMA_URL)
    await resolver.fetch_model_names(OLLAMA_URL)

    assert _sample("aigateway_discovery_cache_misses_total") == misses_before + 1
    assert _sample("aigateway_discovery_cache_hits_total") == hits_before + 1


@pytest.mark.asyncio
async def test_provider_error_counter(full_credentials, simple_payload):
    labels = {"provider": "openai", "error_type": "backend_http_error"}
    before = _sample("aigateway_provider_errors_total", labels)

    adapter = OpenAIAdapter(
        base_url="https://api.test/v1", client=mock_client(lambda r: httpx.Response(503))
    )
    with pytest.raises(BackendHTTPError):
        await adapter.call(full_credentials, sanitize_request(simple_payload), "gpt-4o-mini")

    assert _sample("aigateway_provider_errors_total", labels) == before + 1


@pytest.mark.asyncio
async def test_spans_work_without_a_tracer_provider():
    async with start_span_async("gateway.dispatch", requested="auto", order=None) as span:
        assert span is not None
    assert get_trace_id() is None
