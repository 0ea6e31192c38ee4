# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Prometheus metrics for gateway telemetry.

Module-level collectors register against the default prometheus_client
registry; the host process decides whether and where to expose them.
"""

from prometheus_client import Counter, Histogram

# Dispatch metrics
DISPATCH_TOTAL = Counter(
    "aigateway_dispatch_total",
    "Dispatch calls by requested backend and outcome",
    ["requested", "outcome"],
)

ROUTER_FALLBACKS = Counter(
    "aigateway_router_fallbacks_total",
    "Successful dispatches served by a backend other than the first in order",
    ["from_backend", "to_backend"],
)

# Provider metrics
PROVIDER_REQUESTS = Counter(
    "aigateway_provider_requests_total",
    "Backend requests by backend, model, and outcome",
    ["provider", "model", "outcome"],
)

PROVIDER_LATENCY = Histogram(
    "aigateway_provider_latency_seconds",
    "Backend response latency in seconds",
    ["provider", "model"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 50.0],
)

PROVIDER_ERRORS = Counter(
    "aigateway_provider_errors_total",
    "Backend errors by backend and error type",
    ["provider", "error_type"],
)

# Local model discovery
DISCOVERY_CACHE_HITS = Counter(
    "aigateway_discovery_cache_hits_total", "Local model list served from cache"
)

DISCOVERY_CACHE_MISSES = Counter(
    "aigateway_discovery_cache_misses_total", "Local model list fetched from the backend"
)
